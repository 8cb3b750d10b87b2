""" Utility for one-way file naming. """

import hashlib

from .exceptions import ValidationError


def utf8(text: str, field_name: str) -> bytes:
    # lone surrogates cannot be stored or hashed
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValidationError(f"{field_name} contains characters that cannot be stored") from exc


def username_digest(username: str) -> str:

    # SHA-256 of the exact UTF-8 bytes; no case folding or normalisation,
    # so two different strings never share a digest.

    return hashlib.sha256(utf8(username, "username")).hexdigest()
