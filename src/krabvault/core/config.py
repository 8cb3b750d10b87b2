"""
Application settings, stored as config.json next to the vault files
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from krabvault.security.kdf import ARGON2ID, SCRYPT

from .exceptions import ValidationError
from .generator import PasswordConfig
from .storage import VaultFileStorage

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"


@dataclass
class AppConfig:
    password: PasswordConfig = field(default_factory=PasswordConfig)
    # used for vaults registered from now on; existing vaults keep theirs
    kdf_algorithm: str = SCRYPT

    def to_dict(self) -> dict:
        return {
            "password_config": self.password.to_dict(),
            "kdf_algorithm": self.kdf_algorithm,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppConfig":
        algorithm = data.get("kdf_algorithm", SCRYPT)
        if algorithm not in (SCRYPT, ARGON2ID):
            raise ValueError(f"unknown kdf_algorithm {algorithm!r}")
        password = PasswordConfig.from_dict(data.get("password_config", {}))
        password.validate()
        return cls(password=password, kdf_algorithm=algorithm)


def save_config(config: AppConfig, path: Path | str) -> None:
    raw = json.dumps(config.to_dict(), indent=2).encode("utf-8")
    VaultFileStorage().write_atomic(Path(path), raw)


def load_config(path: Path | str) -> AppConfig:
    """
    Load settings from ``path``.

    A missing file is created with defaults. A malformed one (bad JSON,
    unknown algorithm, password length out of range) is replaced with
    defaults: settings hold no secrets, so nothing is lost that the user
    cannot set again. A file that cannot be read at all is left alone and
    the defaults are used for this run.
    """
    path = Path(path)
    if not path.exists():
        config = AppConfig()
        save_config(config, path)
        return config

    try:
        raw = path.read_bytes()
    except OSError as exc:
        # left in place, only malformed content is reset
        logger.warning("config file %s cannot be read (%s), using defaults", path, exc)
        return AppConfig()

    try:
        return AppConfig.from_dict(json.loads(raw))
    except (ValueError, TypeError, AttributeError, ValidationError) as exc:
        logger.warning("config file %s is malformed (%s), resetting to defaults", path, exc)
        config = AppConfig()
        save_config(config, path)
        return config
