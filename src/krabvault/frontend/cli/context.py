"""Small helper to build a krabvault app context for the TUI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from krabvault.core.config import CONFIG_FILE, AppConfig, load_config
from krabvault.core.interaction import VaultController
from krabvault.core.registry import UserRegistry
from krabvault.core.storage import VaultFileStorage
from krabvault.frontend.cli.clipboard import copy_to_clipboard
from krabvault.security.session import SessionManager

DATA_DIR_ENV = "KRABVAULT_DIR"
LOG_FILE = "krabvault.log"


@dataclass
class AppContext:
    """Container for runtime objects the UI needs."""

    data_dir: Path
    storage: VaultFileStorage
    registry: UserRegistry
    config: AppConfig
    sessions: SessionManager
    controller: VaultController

    @property
    def log_file(self) -> Path:
        return self.data_dir / LOG_FILE


def default_data_dir() -> Path:
    """
    ``$KRABVAULT_DIR`` when set (tests and development), otherwise
    ``~/.krabvault``.
    """
    override = os.getenv(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".krabvault"


def build_context(
    data_dir: Optional[str | Path] = None,
    clipboard: Optional[Callable[[str], None]] = copy_to_clipboard,
) -> AppContext:
    """
    Create the data directory (owner-only) and wire storage, registry,
    settings, session manager and controller together.
    """
    data_dir = Path(data_dir).expanduser() if data_dir else default_data_dir()
    data_dir.mkdir(mode=0o700, parents=True, exist_ok=True)

    storage = VaultFileStorage()
    registry = UserRegistry(data_dir, storage)
    config_path = data_dir / CONFIG_FILE
    config = load_config(config_path)
    sessions = SessionManager(registry, storage, kdf_algorithm=config.kdf_algorithm)
    controller = VaultController(
        sessions, config=config, config_path=config_path, clipboard=clipboard
    )
    return AppContext(
        data_dir=data_dir,
        storage=storage,
        registry=registry,
        config=config,
        sessions=sessions,
        controller=controller,
    )
