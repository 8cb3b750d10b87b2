"""Random password generation for new entries."""

from __future__ import annotations

import secrets
import string
from dataclasses import asdict, dataclass
from typing import Any, Dict

from .exceptions import ValidationError

LOWERCASE = string.ascii_lowercase
UPPERCASE = string.ascii_uppercase
NUMBERS = string.digits
SPECIAL = "!@#$%^&*()-_=+[]{}|;:,.<>?"

DEFAULT_LENGTH = 16
MAX_LENGTH = 128


@dataclass
class PasswordConfig:
    # lowercase letters are always part of the alphabet
    include_uppercase: bool = True
    include_numbers: bool = True
    include_special: bool = True
    length: int = DEFAULT_LENGTH

    def classes(self) -> list[str]:
        out = [LOWERCASE]
        if self.include_uppercase:
            out.append(UPPERCASE)
        if self.include_numbers:
            out.append(NUMBERS)
        if self.include_special:
            out.append(SPECIAL)
        return out

    def validate(self) -> None:
        minimum = len(self.classes())
        if not minimum <= self.length <= MAX_LENGTH:
            raise ValidationError(f"password length must be between {minimum} and {MAX_LENGTH}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PasswordConfig":
        default = cls()
        return cls(
            include_uppercase=bool(data.get("include_uppercase", default.include_uppercase)),
            include_numbers=bool(data.get("include_numbers", default.include_numbers)),
            include_special=bool(data.get("include_special", default.include_special)),
            length=int(data.get("length", default.length)),
        )


def generate_password(config: PasswordConfig | None = None) -> str:
    """
    Return a random password containing at least one character of every
    enabled class. Draws again until that holds.
    """
    config = config or PasswordConfig()
    config.validate()
    classes = config.classes()

    alphabet = "".join(classes)
    while True:
        candidate = "".join(secrets.choice(alphabet) for _ in range(config.length))
        if all(any(c in cls for c in candidate) for cls in classes):
            return candidate
