"""Unit tests for VaultFileStorage (atomic writes)."""

import os
import stat

import pytest
from unittest.mock import patch

from krabvault.core.exceptions import AlreadyExistsError, PersistenceError
from krabvault.core.storage import TEMP_PREFIX, VaultFileStorage


def _leftover_temps(directory):
    return [p for p in directory.iterdir() if p.name.startswith(TEMP_PREFIX)]


def test_write_atomic_creates_file(storage, tmp_path):
    target = tmp_path / "vault.krab"
    storage.write_atomic(target, b"payload")
    assert storage.read(target) == b"payload"
    assert storage.exists(target)
    assert _leftover_temps(tmp_path) == []


def test_write_atomic_replaces_whole_file(storage, tmp_path):
    target = tmp_path / "vault.krab"
    storage.write_atomic(target, b"a much longer first version")
    storage.write_atomic(target, b"short")
    assert target.read_bytes() == b"short"


@pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
def test_write_atomic_owner_only_mode(storage, tmp_path):
    target = tmp_path / "vault.krab"
    storage.write_atomic(target, b"x")
    assert stat.S_IMODE(target.stat().st_mode) == 0o600


def test_failed_rename_keeps_old_file(storage, tmp_path):
    """Interrupted replace: the previous file is untouched and no temp is left."""
    target = tmp_path / "vault.krab"
    storage.write_atomic(target, b"old")

    with patch("krabvault.core.storage.os.replace", side_effect=OSError("disk gone")):
        with pytest.raises(PersistenceError):
            storage.write_atomic(target, b"new")

    assert target.read_bytes() == b"old"
    assert _leftover_temps(tmp_path) == []


def test_failed_write_keeps_old_file(storage, tmp_path):
    target = tmp_path / "vault.krab"
    storage.write_atomic(target, b"old")

    with patch("krabvault.core.storage.os.fsync", side_effect=OSError("io error")):
        with pytest.raises(PersistenceError):
            storage.write_atomic(target, b"new")

    assert target.read_bytes() == b"old"
    assert _leftover_temps(tmp_path) == []


def test_missing_directory_is_persistence_error(storage, tmp_path):
    with pytest.raises(PersistenceError):
        storage.write_atomic(tmp_path / "nope" / "vault.krab", b"x")


def test_new_temp_in_same_directory(storage, tmp_path):
    with storage.new_temp_in(tmp_path) as handle:
        handle.write(b"x")
    created = _leftover_temps(tmp_path)
    assert len(created) == 1
    assert created[0].parent == tmp_path


def test_exists_false_for_directory(storage, tmp_path):
    assert storage.exists(tmp_path) is False
    assert storage.exists(tmp_path / "missing") is False


def test_write_new_creates_file(storage, tmp_path):
    target = tmp_path / "vault.krab"
    storage.write_new(target, b"payload")
    assert target.read_bytes() == b"payload"
    assert _leftover_temps(tmp_path) == []


@pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
def test_write_new_owner_only_mode(storage, tmp_path):
    target = tmp_path / "vault.krab"
    storage.write_new(target, b"x")
    assert stat.S_IMODE(target.stat().st_mode) == 0o600


def test_write_new_never_clobbers(storage, tmp_path):
    target = tmp_path / "vault.krab"
    storage.write_atomic(target, b"someone else's vault")

    with pytest.raises(AlreadyExistsError):
        storage.write_new(target, b"mine")

    assert target.read_bytes() == b"someone else's vault"
    assert _leftover_temps(tmp_path) == []


def test_write_new_failure_leaves_nothing(storage, tmp_path):
    target = tmp_path / "vault.krab"
    with patch("krabvault.core.storage.os.link", side_effect=OSError("no links here")):
        with pytest.raises(PersistenceError):
            storage.write_new(target, b"x")
    assert not target.exists()
    assert _leftover_temps(tmp_path) == []
