"""Shared fixtures: cheap KDF costs so the suite does not spend seconds per derivation."""

import pytest

from krabvault.core.registry import UserRegistry
from krabvault.core.storage import VaultFileStorage
from krabvault.security import kdf
from krabvault.security.session import SessionManager


@pytest.fixture(autouse=True)
def fast_kdf(monkeypatch):
    monkeypatch.setattr(kdf, "SCRYPT_N", 2**10)
    monkeypatch.setattr(kdf, "ARGON2_TIME_COST", 1)
    monkeypatch.setattr(kdf, "ARGON2_MEMORY_COST", 1024)


@pytest.fixture
def fast_params():
    return kdf.CryptoParams(kdf.SCRYPT, kdf.generate_salt(), 2**10, 8, 1)


@pytest.fixture
def storage():
    return VaultFileStorage()


@pytest.fixture
def registry(tmp_path, storage):
    return UserRegistry(tmp_path, storage)


@pytest.fixture
def sessions(registry, storage):
    return SessionManager(registry, storage)
