"""
Interaction state machine between the terminal UI and the vault engine

The UI never calls the engine directly: it turns key presses into intents,
hands them to VaultController.dispatch() and renders whatever state the
controller is in afterwards. Engine exceptions stop here and come back as
Outcome objects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

from krabvault.security.session import Session, SessionManager

from .config import AppConfig, save_config
from .exceptions import AuthOrIntegrityError, KrabVaultError, NotFoundError, ValidationError
from .generator import PasswordConfig, generate_password
from .models import SecretEntry
from .search import rank

logger = logging.getLogger(__name__)

# Shown for wrong password, tampered file and unknown format alike.
AUTH_MESSAGE = "Invalid username or password, or the vault file is damaged."


class Screen(Enum):
    WELCOME = "welcome"
    LOGIN = "login"
    REGISTER = "register"
    UNLOCKED = "unlocked"
    ADD_EDIT = "add_edit"
    CONFIRM_DELETE = "confirm_delete"
    SETTINGS = "settings"
    EXITED = "exited"


# === Intents ===


@dataclass(frozen=True)
class ChooseLogin:
    pass


@dataclass(frozen=True)
class ChooseRegister:
    pass


@dataclass(frozen=True)
class OpenSettings:
    pass


@dataclass(frozen=True)
class Submit:
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class SelectNext:
    pass


@dataclass(frozen=True)
class SelectPrev:
    pass


@dataclass(frozen=True)
class RequestAdd:
    pass


@dataclass(frozen=True)
class RequestEdit:
    pass


@dataclass(frozen=True)
class RequestDelete:
    pass


@dataclass(frozen=True)
class Confirm:
    pass


@dataclass(frozen=True)
class ToggleReveal:
    pass


@dataclass(frozen=True)
class Copy:
    pass


@dataclass(frozen=True)
class Filter:
    text: str = ""


@dataclass(frozen=True)
class GeneratePassword:
    pass


@dataclass(frozen=True)
class Lock:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass
class Outcome:
    ok: bool = True
    message: str = ""
    error: Optional[type] = None
    value: Any = None


@dataclass(frozen=True)
class EntryView:
    entry_id: int
    label: str
    display: str
    revealed: bool


class VaultController:
    """
    Drives the Welcome -> Login/Register -> Unlocked flow.

    Owns at most one :class:`Session` at a time and closes it on Lock and
    Quit. Forms can always be cancelled without touching the vault file:
    nothing is persisted before a Submit or Confirm.
    """

    def __init__(
        self,
        sessions: SessionManager,
        config: Optional[AppConfig] = None,
        config_path: Optional[Path] = None,
        clipboard: Optional[Callable[[str], None]] = None,
    ):
        self.sessions = sessions
        self.config = config or AppConfig()
        self.config_path = config_path
        self.clipboard = clipboard

        self.screen = Screen.WELCOME
        self.session: Optional[Session] = None
        self.selection = 0
        self.revealed: Set[int] = set()
        self.filter_text = ""
        self.editing_id: Optional[int] = None
        self.pending_delete: Optional[int] = None
        self.error: Optional[str] = None

        self._handlers: Dict[tuple, Callable[[Any], Outcome]] = {
            (Screen.WELCOME, ChooseLogin): lambda _: self._goto(Screen.LOGIN),
            (Screen.WELCOME, ChooseRegister): lambda _: self._goto(Screen.REGISTER),
            (Screen.WELCOME, OpenSettings): lambda _: self._goto(Screen.SETTINGS),
            (Screen.LOGIN, Submit): self._submit_login,
            (Screen.LOGIN, Cancel): lambda _: self._goto(Screen.WELCOME),
            (Screen.REGISTER, Submit): self._submit_register,
            (Screen.REGISTER, GeneratePassword): self._generate,
            (Screen.REGISTER, Cancel): lambda _: self._goto(Screen.WELCOME),
            (Screen.SETTINGS, Submit): self._submit_settings,
            (Screen.SETTINGS, Cancel): lambda _: self._goto(Screen.WELCOME),
            (Screen.UNLOCKED, SelectNext): lambda _: self._move(1),
            (Screen.UNLOCKED, SelectPrev): lambda _: self._move(-1),
            (Screen.UNLOCKED, ToggleReveal): self._toggle_reveal,
            (Screen.UNLOCKED, Copy): self._copy,
            (Screen.UNLOCKED, Filter): self._filter,
            (Screen.UNLOCKED, Cancel): lambda _: self._filter(Filter("")),
            (Screen.UNLOCKED, RequestAdd): self._request_add,
            (Screen.UNLOCKED, RequestEdit): self._request_edit,
            (Screen.UNLOCKED, RequestDelete): self._request_delete,
            (Screen.UNLOCKED, Lock): self._lock,
            (Screen.ADD_EDIT, Submit): self._submit_entry,
            (Screen.ADD_EDIT, GeneratePassword): self._generate,
            (Screen.ADD_EDIT, Cancel): lambda _: self._goto(Screen.UNLOCKED),
            (Screen.CONFIRM_DELETE, Confirm): self._confirm_delete,
            (Screen.CONFIRM_DELETE, Cancel): self._cancel_delete,
        }

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, intent) -> Outcome:
        if isinstance(intent, Quit):
            outcome = self._quit()
        else:
            handler = self._handlers.get((self.screen, type(intent)))
            if handler is None:
                return Outcome(
                    ok=False,
                    message=f"{type(intent).__name__} is not available on the {self.screen.value} screen",
                )
            try:
                outcome = handler(intent)
            except AuthOrIntegrityError as exc:
                logger.info("unlock failed: %s", type(exc).__name__)
                outcome = Outcome(ok=False, message=AUTH_MESSAGE, error=AuthOrIntegrityError)
            except KrabVaultError as exc:
                outcome = Outcome(ok=False, message=str(exc), error=type(exc))
        self.error = None if outcome.ok else outcome.message
        return outcome

    # ------------------------------------------------------------------
    # View helpers
    # ------------------------------------------------------------------

    @property
    def unlocked(self) -> bool:
        return self.session is not None and not self.session.closed

    def _entries(self) -> List[SecretEntry]:
        if not self.unlocked or self.session.store is None:
            return []
        return rank(self.filter_text, self.session.store.list(), key=lambda e: e.label)

    def visible_entries(self) -> List[EntryView]:
        """Filtered entries in display order, masked unless toggled visible."""
        views = []
        for entry in self._entries():
            shown = entry.entry_id in self.revealed
            views.append(
                EntryView(
                    entry_id=entry.entry_id,
                    label=entry.label,
                    display=entry.reveal() if shown else entry.masked(),
                    revealed=shown,
                )
            )
        return views

    def selected_entry(self) -> Optional[SecretEntry]:
        entries = self._entries()
        if not entries:
            return None
        self.selection = max(0, min(self.selection, len(entries) - 1))
        return entries[self.selection]

    def editing_entry(self) -> Optional[SecretEntry]:
        if self.editing_id is None or not self.unlocked:
            return None
        return self.session.store.get(self.editing_id)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _goto(self, screen: Screen) -> Outcome:
        self.screen = screen
        return Outcome()

    def _enter_unlocked(self, session: Session) -> None:
        self.session = session
        self.selection = 0
        self.revealed = set()
        self.filter_text = ""
        self.screen = Screen.UNLOCKED

    def _submit_login(self, intent: Submit) -> Outcome:
        f = intent.fields
        session = self.sessions.login(f.get("username", ""), f.get("password", ""))
        self._enter_unlocked(session)
        return Outcome(message="Vault unlocked")

    def _submit_register(self, intent: Submit) -> Outcome:
        f = intent.fields
        session = self.sessions.register(
            f.get("username", ""),
            f.get("password", ""),
            f.get("confirm", ""),
            f.get("label", ""),
            f.get("secret", ""),
        )
        self._enter_unlocked(session)
        return Outcome(message="Vault created")

    def _submit_settings(self, intent: Submit) -> Outcome:
        f = intent.fields
        try:
            length = int(f.get("length", self.config.password.length))
        except (TypeError, ValueError) as exc:
            raise ValidationError("length must be a number") from exc
        password = PasswordConfig(
            include_uppercase=bool(f.get("include_uppercase", self.config.password.include_uppercase)),
            include_numbers=bool(f.get("include_numbers", self.config.password.include_numbers)),
            include_special=bool(f.get("include_special", self.config.password.include_special)),
            length=length,
        )
        password.validate()

        self.config.password = password
        if self.config_path is not None:
            save_config(self.config, self.config_path)
        self.screen = Screen.WELCOME
        return Outcome(message="Settings saved")

    def _generate(self, _intent) -> Outcome:
        return Outcome(value=generate_password(self.config.password))

    def _move(self, step: int) -> Outcome:
        count = len(self._entries())
        if count:
            self.selection = max(0, min(self.selection + step, count - 1))
        return Outcome()

    def _toggle_reveal(self, _intent) -> Outcome:
        entry = self.selected_entry()
        if entry is None:
            raise NotFoundError("no entry selected")
        if entry.entry_id in self.revealed:
            self.revealed.discard(entry.entry_id)
        else:
            self.revealed.add(entry.entry_id)
        return Outcome()

    def _copy(self, _intent) -> Outcome:
        entry = self.selected_entry()
        if entry is None:
            raise NotFoundError("no entry selected")
        if self.clipboard is None:
            return Outcome(ok=False, message="Clipboard is not available")
        try:
            self.clipboard(entry.reveal())
        except Exception as exc:
            logger.warning("clipboard copy failed: %s", type(exc).__name__)
            return Outcome(ok=False, message="Could not copy to clipboard")
        return Outcome(message=f"Copied secret for {entry.label}")

    def _filter(self, intent: Filter) -> Outcome:
        self.filter_text = intent.text
        self.selection = 0
        return Outcome()

    def _request_add(self, _intent) -> Outcome:
        self.editing_id = None
        self.screen = Screen.ADD_EDIT
        return Outcome()

    def _request_edit(self, _intent) -> Outcome:
        entry = self.selected_entry()
        if entry is None:
            raise NotFoundError("no entry selected")
        self.editing_id = entry.entry_id
        self.screen = Screen.ADD_EDIT
        return Outcome()

    def _request_delete(self, _intent) -> Outcome:
        entry = self.selected_entry()
        if entry is None:
            raise NotFoundError("no entry selected")
        self.pending_delete = entry.entry_id
        self.screen = Screen.CONFIRM_DELETE
        return Outcome()

    def _submit_entry(self, intent: Submit) -> Outcome:
        f = intent.fields
        store = self.session.store
        if self.editing_id is None:
            entry = store.add(f.get("label", ""), f.get("secret", ""))
            message = f"Added {entry.label}"
        else:
            entry = store.edit(self.editing_id, label=f.get("label"), secret=f.get("secret"))
            message = f"Updated {entry.label}"
        self.editing_id = None
        self.screen = Screen.UNLOCKED
        self._select_id(entry.entry_id)
        return Outcome(message=message, value=entry.entry_id)

    def _confirm_delete(self, _intent) -> Outcome:
        entry_id = self.pending_delete
        self.pending_delete = None
        self.screen = Screen.UNLOCKED
        if entry_id is None:
            raise NotFoundError("nothing to delete")
        self.session.store.delete(entry_id)
        self.revealed.discard(entry_id)
        self.selected_entry()
        return Outcome(message="Entry deleted")

    def _cancel_delete(self, _intent) -> Outcome:
        self.pending_delete = None
        self.screen = Screen.UNLOCKED
        return Outcome()

    def _select_id(self, entry_id: int) -> None:
        for i, entry in enumerate(self._entries()):
            if entry.entry_id == entry_id:
                self.selection = i
                return

    def _close_session(self) -> None:
        if self.session is not None:
            self.sessions.close(self.session.username)
            self.session.close()
        self.session = None
        self.revealed = set()
        self.filter_text = ""
        self.selection = 0
        self.editing_id = None
        self.pending_delete = None

    def _lock(self, _intent) -> Outcome:
        self._close_session()
        self.screen = Screen.WELCOME
        return Outcome(message="Vault locked")

    def _quit(self) -> Outcome:
        # key is zeroed before the process is allowed to exit
        self._close_session()
        self.sessions.close_all()
        self.screen = Screen.EXITED
        return Outcome()
