"""
Username to vault file mapping

A vault lives at <root>/<sha256(username)>.krab. The directory listing shows
only digests; whether a user exists is decided purely by file presence.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .exceptions import AlreadyExistsError, NotFoundError, ValidationError
from .hashing import username_digest
from .storage import VaultFileStorage

VAULT_SUFFIX = ".krab"


class UserRegistry:
    def __init__(self, root: Path | str, storage: Optional[VaultFileStorage] = None):
        self.root = Path(root)
        self.storage = storage or VaultFileStorage()

    def resolve(self, username: str) -> Path:
        """Deterministic vault path for ``username``."""
        if not username or not username.strip():
            raise ValidationError("username must not be empty")
        return self.root / (username_digest(username) + VAULT_SUFFIX)

    def exists(self, username: str) -> bool:
        return self.storage.exists(self.resolve(username))

    def require_new(self, username: str) -> Path:
        # registration path
        path = self.resolve(username)
        if self.storage.exists(path):
            raise AlreadyExistsError("a vault for this username already exists")
        return path

    def require_existing(self, username: str) -> Path:
        # login path
        path = self.resolve(username)
        if not self.storage.exists(path):
            raise NotFoundError("no vault found for this username")
        return path
