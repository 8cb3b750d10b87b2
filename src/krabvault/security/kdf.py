"""Master key derivation for krabvault vault files."""
from __future__ import annotations

import os
from dataclasses import dataclass

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from krabvault.core.exceptions import ResourceError, ValidationError
from krabvault.core.hashing import utf8

SCRYPT = "scrypt"
ARGON2ID = "argon2id"

KEY_LEN = 32
SALT_LEN = 16

# scrypt: N, r, p
SCRYPT_N = 2**15
SCRYPT_R = 8
SCRYPT_P = 1

# argon2id: time cost, memory cost (KiB), lanes
ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 65536
ARGON2_PARALLELISM = 1

# Upper bounds keep a tampered header from requesting an absurd derivation.
# Headers are parsed before they can be authenticated.
MAX_KDF_MEMORY = 256 * 1024 * 1024

_BOUNDS = {
    SCRYPT: ((2, 2**20), (1, 32), (1, 16)),
    ARGON2ID: ((1, 16), (8, MAX_KDF_MEMORY // 1024), (1, 16)),
}


@dataclass(frozen=True)
class CryptoParams:
    """
    KDF cost parameters plus salt, fixed for the life of one vault.

    ``work_factor``, ``block_size`` and ``parallelism`` are scrypt's N, r
    and p. For argon2id the same three slots carry time cost, memory cost
    in KiB and lanes.
    """

    algorithm: str
    salt: bytes
    work_factor: int
    block_size: int
    parallelism: int

    @classmethod
    def generate(cls, algorithm: str = SCRYPT) -> "CryptoParams":
        """Fresh salt plus the default costs for ``algorithm``."""
        if algorithm == SCRYPT:
            costs = (SCRYPT_N, SCRYPT_R, SCRYPT_P)
        elif algorithm == ARGON2ID:
            costs = (ARGON2_TIME_COST, ARGON2_MEMORY_COST, ARGON2_PARALLELISM)
        else:
            raise ValidationError(f"unknown key derivation algorithm: {algorithm}")
        return cls(algorithm, generate_salt(), *costs)


def generate_salt(length: int = SALT_LEN) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


def validate_params(params: CryptoParams) -> None:
    """Raise ValidationError unless ``params`` is within the supported range."""
    bounds = _BOUNDS.get(params.algorithm)
    if bounds is None:
        raise ValidationError(f"unknown key derivation algorithm: {params.algorithm}")
    if len(params.salt) != SALT_LEN:
        raise ValidationError("salt must be 16 bytes")

    values = (params.work_factor, params.block_size, params.parallelism)
    for value, (low, high) in zip(values, bounds):
        if not low <= value <= high:
            raise ValidationError(f"{params.algorithm} cost parameter out of range: {value}")

    n = params.work_factor
    if params.algorithm == SCRYPT and n & (n - 1):
        raise ValidationError("scrypt work factor must be a power of two")
    if params.algorithm == SCRYPT and 128 * n * params.block_size > MAX_KDF_MEMORY:
        raise ValidationError("scrypt parameters need too much memory")
    if params.algorithm == ARGON2ID and params.block_size < 8 * params.parallelism:
        raise ValidationError("argon2id memory cost must be at least 8 KiB per lane")


def derive_key(password: bytes | str, params: CryptoParams) -> bytes:
    """
    Derive the 32-byte vault key from a master password.

    Deterministic for identical inputs; there is no stored password hash,
    so this output is the only thing that authenticates the user.
    """
    if isinstance(password, str):
        password = utf8(password, "password")
    validate_params(params)

    try:
        if params.algorithm == SCRYPT:
            kdf = Scrypt(
                salt=params.salt,
                length=KEY_LEN,
                n=params.work_factor,
                r=params.block_size,
                p=params.parallelism,
            )
            return kdf.derive(password)

        return hash_secret_raw(
            secret=password,
            salt=params.salt,
            time_cost=params.work_factor,
            memory_cost=params.block_size,
            parallelism=params.parallelism,
            hash_len=KEY_LEN,
            type=Type.ID,
        )
    except (MemoryError, HashingError) as exc:
        raise ResourceError("key derivation failed") from exc
