"""Integration tests: the full register / login / edit cycle against real files."""

import pytest

from krabvault.core.exceptions import AuthOrIntegrityError, UnsupportedFormatError
from krabvault.core.interaction import (
    ChooseLogin,
    Confirm,
    Lock,
    RequestDelete,
    Screen,
    SelectPrev,
    Submit,
)
from krabvault.frontend.cli.context import build_context

PASSWORD = "Sup3rSecret!"

# --- Fixtures ---


@pytest.fixture
def ctx(tmp_path):
    return build_context(tmp_path / "data", clipboard=None)


def _pairs(store):
    return [(e.label, e.secret) for e in store.list()]


# --- Engine level ---


def test_alice_scenario(ctx):
    sessions, registry = ctx.sessions, ctx.registry

    with sessions.register("alice", PASSWORD, PASSWORD, "email.com", "hunter2"):
        pass
    path = registry.resolve("alice")
    assert path.is_file()
    assert b"hunter2" not in path.read_bytes()
    assert b"alice" not in path.name.encode()

    session = sessions.login("alice", PASSWORD)
    assert _pairs(session.store) == [("email.com", "hunter2")]
    session.close()

    with pytest.raises(AuthOrIntegrityError):
        sessions.login("alice", "wrong")

    with sessions.login("alice", PASSWORD) as session:
        store = session.store
        store.add("bank.com", "xyz")
        assert [e.label for e in store.list()] == ["email.com", "bank.com"]

        store.delete(store.list()[0].entry_id)
        assert _pairs(store) == [("bank.com", "xyz")]

    with sessions.login("alice", PASSWORD) as session:
        assert _pairs(session.store) == [("bank.com", "xyz")]


def test_users_are_isolated(ctx):
    sessions = ctx.sessions
    sessions.register("alice", PASSWORD, PASSWORD, "email.com", "hunter2").close()
    sessions.register("bob", "b0bPass!", "b0bPass!", "chat.org", "s3cret").close()

    with sessions.login("bob", "b0bPass!") as session:
        assert _pairs(session.store) == [("chat.org", "s3cret")]
    with pytest.raises(AuthOrIntegrityError):
        sessions.login("alice", "b0bPass!")


def test_vault_survives_new_process_context(tmp_path):
    first = build_context(tmp_path, clipboard=None)
    first.sessions.register("alice", PASSWORD, PASSWORD, "email.com", "hunter2").close()

    second = build_context(tmp_path, clipboard=None)
    with second.sessions.login("alice", PASSWORD) as session:
        assert _pairs(session.store) == [("email.com", "hunter2")]


def test_future_format_version_rejected(ctx):
    ctx.sessions.register("alice", PASSWORD, PASSWORD, "email.com", "hunter2").close()
    path = ctx.registry.resolve("alice")
    data = bytearray(path.read_bytes())
    data[4] = 2
    path.write_bytes(bytes(data))

    with pytest.raises(UnsupportedFormatError):
        ctx.sessions.login("alice", PASSWORD)


# --- Controller level ---


def test_alice_scenario_through_controller(ctx):
    controller = ctx.controller
    ctx.sessions.register("alice", PASSWORD, PASSWORD, "email.com", "hunter2").close()

    controller.dispatch(ChooseLogin())
    assert not controller.dispatch(Submit({"username": "alice", "password": "nope"})).ok
    assert controller.screen == Screen.LOGIN
    assert controller.dispatch(Submit({"username": "alice", "password": PASSWORD})).ok

    controller.session.store.add("bank.com", "xyz")
    controller.dispatch(SelectPrev())
    controller.dispatch(RequestDelete())
    controller.dispatch(Confirm())
    assert [v.label for v in controller.visible_entries()] == ["bank.com"]

    controller.dispatch(Lock())
    with ctx.sessions.login("alice", PASSWORD) as session:
        assert _pairs(session.store) == [("bank.com", "xyz")]
