"""
Data models for vault entries and the decrypted vault body
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .exceptions import AuthOrIntegrityError

PLAINTEXT_VERSION = 1
MASK_WIDTH = 32
MASK_CHAR = "•"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SecretEntry:
    """One named credential. The secret only leaves the object through reveal()."""

    entry_id: int
    label: str
    secret: str = field(repr=False)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def reveal(self) -> str:
        return self.secret

    def masked(self) -> str:
        # Fixed width so the mask does not leak the secret's length.
        return MASK_CHAR * MASK_WIDTH

    def updated(self, label: Optional[str] = None, secret: Optional[str] = None) -> "SecretEntry":
        """Return a copy with the given fields replaced and updated_at bumped."""
        return replace(
            self,
            label=self.label if label is None else label,
            secret=self.secret if secret is None else secret,
            updated_at=utcnow(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.entry_id,
            "label": self.label,
            "secret": self.secret,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SecretEntry":
        return cls(
            entry_id=int(data["id"]),
            label=str(data["label"]),
            secret=str(data["secret"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )


@dataclass
class VaultPlaintext:
    """
    The decrypted vault body: entries in display order plus the id counter.

    ``next_id`` is persisted with the entries so an identifier freed by a
    delete is never handed out again.
    """

    entries: List[SecretEntry] = field(default_factory=list)
    next_id: int = 1
    version: int = PLAINTEXT_VERSION

    def copy(self) -> "VaultPlaintext":
        return VaultPlaintext(entries=list(self.entries), next_id=self.next_id, version=self.version)

    def index_of(self, entry_id: int) -> int:
        for i, entry in enumerate(self.entries):
            if entry.entry_id == entry_id:
                return i
        return -1

    def to_bytes(self) -> bytes:
        body = {
            "version": self.version,
            "next_id": self.next_id,
            "entries": [e.to_dict() for e in self.entries],
        }
        return json.dumps(body, ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "VaultPlaintext":
        try:
            body = json.loads(raw.decode("utf-8"))
            if body["version"] != PLAINTEXT_VERSION:
                raise AuthOrIntegrityError(f"unsupported vault body version {body['version']}")
            entries = [SecretEntry.from_dict(e) for e in body["entries"]]
            next_id = int(body["next_id"])
        except (ValueError, KeyError, TypeError) as exc:
            raise AuthOrIntegrityError("vault body is malformed") from exc

        ids = [e.entry_id for e in entries]
        if len(set(ids)) != len(ids) or any(i >= next_id for i in ids):
            raise AuthOrIntegrityError("vault body has inconsistent entry ids")
        return cls(entries=entries, next_id=next_id)
