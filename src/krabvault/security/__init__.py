"""Security helpers: key derivation, the vault envelope and sessions.

This package provides:
- scrypt (default) or Argon2id master key derivation
- the versioned AES-GCM envelope every vault file is stored in
- Session objects that own and wipe the derived key
"""

from .kdf import CryptoParams, generate_salt, derive_key
from .envelope import read_header, seal, unseal
from .session import Session, SessionManager

__all__ = [
    "CryptoParams",
    "generate_salt",
    "derive_key",
    "read_header",
    "seal",
    "unseal",
    "Session",
    "SessionManager",
]
