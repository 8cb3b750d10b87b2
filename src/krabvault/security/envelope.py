"""AEAD envelope for krabvault vault files.

Layout (binary, all big-endian, fixed width):
- 4 bytes: magic b'KRBV'
- 1 byte: format version (1)
- 1 byte: kdf_id (1 = scrypt, 2 = argon2id)
- 1 byte: aead_id (1 = AES-256-GCM)
- 16 bytes: salt
- 3 x 4 bytes: KDF cost parameters (work factor, block size, parallelism)
- 12 bytes: nonce

Body: AES-GCM ciphertext with the 16-byte tag appended.

Everything before the body is passed as associated data, so flipping a
salt, cost or nonce byte fails tag verification exactly like flipping a
ciphertext byte does.
"""
from __future__ import annotations

import os
import struct
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from krabvault.core.exceptions import (
    AuthOrIntegrityError,
    UnsupportedFormatError,
    ValidationError,
)

from .kdf import ARGON2ID, SCRYPT, CryptoParams, validate_params


MAGIC = b"KRBV"
VERSION = 1
ALG_ID_AESGCM = 1
NONCE_LEN = 12
TAG_LEN = 16

KDF_IDS = {SCRYPT: 1, ARGON2ID: 2}
_KDF_NAMES = {v: k for k, v in KDF_IDS.items()}

_PREFIX = struct.Struct(">4sBBB")
_PARAMS = struct.Struct(">16sIII")
HEADER_LEN = _PREFIX.size + _PARAMS.size + NONCE_LEN

# One message for every way opening can fail.
AUTH_FAILURE = "unable to open vault: authentication failed"


@dataclass(frozen=True)
class VaultHeader:
    version: int
    params: CryptoParams
    nonce: bytes
    raw: bytes


def _pack_header(params: CryptoParams, nonce: bytes) -> bytes:
    header = bytearray()
    header += _PREFIX.pack(MAGIC, VERSION, KDF_IDS[params.algorithm], ALG_ID_AESGCM)
    header += _PARAMS.pack(
        params.salt, params.work_factor, params.block_size, params.parallelism
    )
    header += nonce
    return bytes(header)


def read_header(blob: bytes) -> VaultHeader:
    """
    Parse and sanity-check the envelope header without a key.

    Login needs the salt and costs before it can derive anything, so this
    runs first. Raises :class:`UnsupportedFormatError` for a recognised
    file from a different format version and :class:`AuthOrIntegrityError`
    for anything that is not a well-formed envelope.
    """
    if len(blob) < HEADER_LEN + TAG_LEN:
        raise AuthOrIntegrityError(AUTH_FAILURE)

    magic, version, kdf_id, alg_id = _PREFIX.unpack_from(blob, 0)
    if magic != MAGIC:
        raise AuthOrIntegrityError(AUTH_FAILURE)
    if version != VERSION:
        raise UnsupportedFormatError(f"unsupported vault format version {version}")
    if kdf_id not in _KDF_NAMES or alg_id != ALG_ID_AESGCM:
        raise UnsupportedFormatError("unsupported vault algorithm identifier")

    salt, work_factor, block_size, parallelism = _PARAMS.unpack_from(blob, _PREFIX.size)
    params = CryptoParams(_KDF_NAMES[kdf_id], salt, work_factor, block_size, parallelism)
    try:
        validate_params(params)
    except ValidationError as exc:
        raise AuthOrIntegrityError(AUTH_FAILURE) from exc

    nonce_at = _PREFIX.size + _PARAMS.size
    nonce = blob[nonce_at:HEADER_LEN]
    return VaultHeader(version=version, params=params, nonce=nonce, raw=blob[:HEADER_LEN])


def seal(plaintext: bytes, key: bytes | bytearray, params: CryptoParams) -> bytes:
    """
    Encrypt ``plaintext`` into a complete vault file image.

    A fresh random nonce is drawn on every call; the same key is reused for
    every mutation of a vault, so nonces must never repeat.
    """
    nonce = os.urandom(NONCE_LEN)
    header = _pack_header(params, nonce)
    ct = AESGCM(key).encrypt(nonce, plaintext, header)
    return header + ct


def unseal(blob: bytes, key: bytes | bytearray) -> bytes:
    """
    Verify and decrypt a vault file image produced by :func:`seal`.

    No plaintext is returned unless the GCM tag over header and body
    verifies. Wrong key, wrong password and corruption are not told apart.
    """
    header = read_header(blob)
    try:
        return AESGCM(key).decrypt(header.nonce, blob[HEADER_LEN:], header.raw)
    except (InvalidTag, ValueError) as exc:
        raise AuthOrIntegrityError(AUTH_FAILURE) from exc
