"""Unlocked-vault sessions.

A :class:`Session` is the only owner of a derived vault key. The key is
held in a ``bytearray`` so :meth:`Session.close` can overwrite it in place;
use the session as a context manager so that happens on every exit path.
The :class:`SessionManager` runs the register and login flows and keeps at
most one open session per username in this process.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

from krabvault.core.exceptions import (
    AuthOrIntegrityError,
    SessionError,
    SessionLockedError,
    ValidationError,
)
from krabvault.core.models import VaultPlaintext
from krabvault.core.registry import UserRegistry
from krabvault.core.storage import VaultFileStorage
from krabvault.core.vault import VaultStore

from .envelope import read_header, seal, unseal
from .kdf import SCRYPT, CryptoParams, derive_key

logger = logging.getLogger(__name__)


class Session:
    def __init__(self, username: str, path: Path, key: bytes, params: CryptoParams):
        self.username = username
        self.path = Path(path)
        self.params = params
        self._key: Optional[bytearray] = bytearray(key)
        self.store: Optional[VaultStore] = None

    @property
    def closed(self) -> bool:
        return self._key is None

    @property
    def key(self) -> bytearray:
        """Return the vault key or raise if the session has been closed."""
        if self._key is None:
            raise SessionLockedError("session is closed")
        return self._key

    def seal(self, plaintext: bytes) -> bytes:
        # bound into the VaultStore as its sealer
        return seal(plaintext, self.key, self.params)

    def attach(self, store: VaultStore) -> VaultStore:
        self.store = store
        return store

    def close(self) -> None:
        """Zero the key in place and drop the decrypted collection. Idempotent."""
        if self._key is not None:
            for i in range(len(self._key)):
                self._key[i] = 0
            logger.debug("session for %s closed", self.path.name)
        self._key = None
        self.store = None

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"Session(vault={self.path.name!r}, {state})"


class SessionManager:
    """Register / login flows on top of a :class:`UserRegistry`."""

    def __init__(
        self,
        registry: UserRegistry,
        storage: Optional[VaultFileStorage] = None,
        kdf_algorithm: str = SCRYPT,
    ):
        self.registry = registry
        self.storage = storage or registry.storage
        self.kdf_algorithm = kdf_algorithm
        self._sessions: Dict[str, Session] = {}

    def active(self, username: str) -> Optional[Session]:
        session = self._sessions.get(username)
        if session is not None and session.closed:
            del self._sessions[username]
            return None
        return session

    def _require_no_session(self, username: str) -> None:
        if self.active(username) is not None:
            raise SessionError("this user already has an open session")

    def _new_params(self) -> CryptoParams:
        return CryptoParams.generate(self.kdf_algorithm)

    def register(
        self,
        username: str,
        password: str,
        confirm: str,
        first_label: str,
        first_secret: str,
    ) -> Session:
        """Create a new vault seeded with one entry and return its open session."""
        fields = (username, password, confirm, first_label, first_secret)
        if any(not f or not f.strip() for f in fields):
            raise ValidationError("all fields are required")
        if password != confirm:
            raise ValidationError("passwords do not match")
        path = self.registry.require_new(username)
        self._require_no_session(username)

        params = self._new_params()
        session = Session(username, path, derive_key(password, params), params)
        try:
            session.attach(
                VaultStore.create(path, first_label, first_secret, session.seal, self.storage)
            )
        except BaseException:
            session.close()
            raise

        self._sessions[username] = session
        logger.info("registered new vault %s (%s)", path.name, params.algorithm)
        return session

    def login(self, username: str, password: str) -> Session:
        """Unlock an existing vault; every crypto failure is an AuthOrIntegrityError."""
        if not password:
            raise ValidationError("password must not be empty")
        path = self.registry.require_existing(username)
        self._require_no_session(username)

        try:
            blob = self.storage.read(path)
        except OSError as exc:
            raise AuthOrIntegrityError("unable to read vault file") from exc

        header = read_header(blob)
        session = Session(username, path, derive_key(password, header.params), header.params)
        try:
            plaintext = VaultPlaintext.from_bytes(unseal(blob, session.key))
        except BaseException:
            session.close()
            logger.info("failed unlock attempt for %s", path.name)
            raise

        session.attach(VaultStore(path, plaintext, session.seal, self.storage))
        self._sessions[username] = session
        logger.info("unlocked vault %s (%d entries)", path.name, len(plaintext.entries))
        return session

    def close(self, username: str) -> None:
        session = self._sessions.pop(username, None)
        if session is not None:
            session.close()

    def close_all(self) -> None:
        for username in list(self._sessions):
            self.close(username)
