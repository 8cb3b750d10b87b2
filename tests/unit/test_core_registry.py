"""Unit tests for UserRegistry and username hashing."""

import pytest

from krabvault.core.exceptions import AlreadyExistsError, NotFoundError, ValidationError
from krabvault.core.hashing import username_digest
from krabvault.core.registry import VAULT_SUFFIX


def test_digest_known_value():
    # sha256("alice")
    assert username_digest("alice") == (
        "2bd806c97f0e00af1a1fc3328fa763a9269723c8db8fac4f93af71db186d6e90"
    )


def test_resolve_is_deterministic(registry, tmp_path):
    assert registry.resolve("alice") == registry.resolve("alice")
    assert registry.resolve("alice").parent == tmp_path
    assert registry.resolve("alice").name.endswith(VAULT_SUFFIX)


def test_resolve_hides_username(registry):
    assert "alice" not in registry.resolve("alice").name


def test_resolve_distinct_users_never_collide(registry):
    names = ["alice", "Alice", "alice ", " alice", "bob", "b\u00f6b", "bo\u0308b", "a" * 500, "1", "01"]
    paths = {registry.resolve(n) for n in names}
    assert len(paths) == len(names)


@pytest.mark.parametrize("bad", ["", "   ", None])
def test_resolve_rejects_empty(registry, bad):
    with pytest.raises(ValidationError):
        registry.resolve(bad)


def test_exists_follows_file_presence(registry, storage):
    assert registry.exists("alice") is False
    storage.write_atomic(registry.resolve("alice"), b"x")
    assert registry.exists("alice") is True
    assert registry.exists("bob") is False


def test_require_new_and_existing(registry, storage):
    path = registry.require_new("alice")
    with pytest.raises(NotFoundError):
        registry.require_existing("alice")

    storage.write_atomic(path, b"x")
    assert registry.require_existing("alice") == path
    with pytest.raises(AlreadyExistsError):
        registry.require_new("alice")


def test_resolve_rejects_unencodable_username(registry):
    with pytest.raises(ValidationError):
        registry.resolve("bob\udc80")
