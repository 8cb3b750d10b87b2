"""
In-memory secret collection for one unlocked vault

Every mutation re-serialises the whole collection, seals it with a fresh
nonce and atomically replaces the vault file. A mutation is only committed
in memory once the file write has succeeded, so a failed persist leaves the
session and the disk agreeing on the previous state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Tuple

from .exceptions import NotFoundError, ValidationError
from .hashing import utf8
from .models import SecretEntry, VaultPlaintext
from .storage import VaultFileStorage

logger = logging.getLogger(__name__)

# bytes in, sealed vault file image out
Sealer = Callable[[bytes], bytes]


def _require_text(value: Optional[str], field_name: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    utf8(value, field_name)
    return value


class VaultStore:
    """
    Ordered entries of one vault plus the means to persist them.

    ``sealer`` is supplied by the owning session and encrypts with the
    session key; once the session is closed it raises and nothing more can
    be written.
    """

    def __init__(
        self,
        path: Path,
        plaintext: VaultPlaintext,
        sealer: Sealer,
        storage: Optional[VaultFileStorage] = None,
    ):
        self.path = Path(path)
        self._plaintext = plaintext
        self._sealer = sealer
        self.storage = storage or VaultFileStorage()

    @classmethod
    def create(
        cls,
        path: Path,
        first_label: str,
        first_secret: str,
        sealer: Sealer,
        storage: Optional[VaultFileStorage] = None,
    ) -> "VaultStore":
        """Write a brand-new vault seeded with its mandatory first entry."""
        store = cls(path, VaultPlaintext(), sealer, storage)
        store._append(first_label, first_secret, exclusive=True)
        return store

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._plaintext.entries)

    def list(self) -> Tuple[SecretEntry, ...]:
        return tuple(self._plaintext.entries)

    def get(self, entry_id: int) -> SecretEntry:
        idx = self._plaintext.index_of(entry_id)
        if idx < 0:
            raise NotFoundError(f"no entry with id {entry_id}")
        return self._plaintext.entries[idx]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, label: str, secret: str) -> SecretEntry:
        return self._append(label, secret)

    def _append(self, label: str, secret: str, exclusive: bool = False) -> SecretEntry:
        label = _require_text(label, "label").strip()
        secret = _require_text(secret, "secret")

        staged = self._plaintext.copy()
        entry = SecretEntry(entry_id=staged.next_id, label=label, secret=secret)
        staged.entries.append(entry)
        staged.next_id += 1

        self._commit(staged, exclusive)
        logger.info("added entry %d to %s", entry.entry_id, self.path.name)
        return entry

    def edit(
        self, entry_id: int, label: Optional[str] = None, secret: Optional[str] = None
    ) -> SecretEntry:
        idx = self._plaintext.index_of(entry_id)
        if idx < 0:
            raise NotFoundError(f"no entry with id {entry_id}")
        if label is not None:
            label = _require_text(label, "label").strip()
        if secret is not None:
            secret = _require_text(secret, "secret")

        staged = self._plaintext.copy()
        entry = staged.entries[idx].updated(label=label, secret=secret)
        staged.entries[idx] = entry

        self._commit(staged)
        logger.info("edited entry %d in %s", entry_id, self.path.name)
        return entry

    def delete(self, entry_id: int) -> None:
        idx = self._plaintext.index_of(entry_id)
        if idx < 0:
            raise NotFoundError(f"no entry with id {entry_id}")

        staged = self._plaintext.copy()
        del staged.entries[idx]

        self._commit(staged)
        logger.info("deleted entry %d from %s", entry_id, self.path.name)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def persist(self) -> None:
        """Seal and atomically write the current collection."""
        self._write(self._plaintext)

    def _write(self, plaintext: VaultPlaintext, exclusive: bool = False) -> None:
        blob = self._sealer(plaintext.to_bytes())
        if exclusive:
            # first write of a new vault must not clobber one created meanwhile
            self.storage.write_new(self.path, blob)
        else:
            self.storage.write_atomic(self.path, blob)
        logger.debug("persisted %d entries to %s", len(plaintext.entries), self.path.name)

    def _commit(self, staged: VaultPlaintext, exclusive: bool = False) -> None:
        self._write(staged, exclusive)
        self._plaintext = staged
