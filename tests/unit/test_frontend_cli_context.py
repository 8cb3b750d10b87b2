"""Unit tests for the CLI AppContext builder."""

import json
import stat

import pytest
from unittest.mock import Mock, patch

from krabvault.core.interaction import Screen
from krabvault.frontend.cli.clipboard import copy_to_clipboard
from krabvault.frontend.cli.context import DATA_DIR_ENV, build_context, default_data_dir
from krabvault.security.kdf import ARGON2ID


def test_build_context_creates_private_dir(tmp_path):
    data_dir = tmp_path / "vaults"
    ctx = build_context(data_dir)

    assert data_dir.is_dir()
    assert stat.S_IMODE(data_dir.stat().st_mode) == 0o700
    assert (data_dir / "config.json").exists()
    assert ctx.registry.root == data_dir
    assert ctx.log_file == data_dir / "krabvault.log"
    assert ctx.controller.screen == Screen.WELCOME
    assert ctx.controller.clipboard is copy_to_clipboard


def test_build_context_uses_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path / "env-dir"))
    assert default_data_dir() == tmp_path / "env-dir"
    ctx = build_context()
    assert ctx.data_dir == tmp_path / "env-dir"


def test_default_data_dir_in_home(monkeypatch, tmp_path):
    monkeypatch.delenv(DATA_DIR_ENV, raising=False)
    with patch("krabvault.frontend.cli.context.Path.home", return_value=tmp_path):
        assert default_data_dir() == tmp_path / ".krabvault"


def test_build_context_reads_kdf_setting(tmp_path):
    (tmp_path / "config.json").write_text(json.dumps({"kdf_algorithm": ARGON2ID}))
    ctx = build_context(tmp_path)
    assert ctx.config.kdf_algorithm == ARGON2ID
    assert ctx.sessions.kdf_algorithm == ARGON2ID


def test_build_context_custom_clipboard(tmp_path):
    clip = Mock()
    ctx = build_context(tmp_path, clipboard=clip)
    assert ctx.controller.clipboard is clip


def test_copy_to_clipboard_uses_pyperclip():
    with patch("krabvault.frontend.cli.clipboard.pyperclip.copy") as copy:
        copy_to_clipboard("hunter2")
    copy.assert_called_once_with("hunter2")
