"""Textual frontend for krabvault.

Start here with `python -m krabvault` or `python main.py`. Every key press is
translated into an intent for :class:`VaultController`; the app only renders
whatever state the controller ends up in.
"""

from __future__ import annotations

from typing import Callable, Optional

from textual import on
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    Checkbox,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Static,
)

from krabvault.core.generator import PasswordConfig
from krabvault.core.interaction import (
    Cancel,
    ChooseLogin,
    ChooseRegister,
    Confirm,
    Copy,
    Filter,
    GeneratePassword,
    Lock,
    OpenSettings,
    Outcome,
    Quit,
    RequestAdd,
    RequestDelete,
    RequestEdit,
    Screen,
    SelectNext,
    SelectPrev,
    Submit,
    ToggleReveal,
)
from krabvault.frontend.cli.context import AppContext, build_context


# === Modal definitions ===


class WelcomeModal(ModalScreen[Optional[str]]):
    """Start screen: pick login, register or settings."""

    def compose(self) -> ComposeResult:  # pragma: no cover - UI only
        with Vertical(classes="dialog"):
            yield Static("krabvault", classes="title")
            yield Label("Local password vault. Choose an option.")
            with Horizontal():
                yield Button("Login (l)", id="login", variant="primary")
                yield Button("Register (r)", id="register")
                yield Button("Settings (s)", id="settings")
                yield Button("Quit (q)", id="quit", variant="error")

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        self.dismiss(event.button.id)

    def on_key(self, event) -> None:
        choice = {"l": "login", "r": "register", "s": "settings", "q": "quit", "escape": "quit"}
        if event.key in choice:
            event.stop()
            self.dismiss(choice[event.key])


class LoginModal(ModalScreen[Optional[dict]]):
    def __init__(self, username: str = "", error: str | None = None):
        super().__init__()
        self.username = username
        self.error = error

    def compose(self) -> ComposeResult:  # pragma: no cover - UI only
        with Vertical(classes="dialog"):
            yield Static("Login", classes="title")
            if self.error:
                yield Static(self.error, classes="error")
            yield Label("Username")
            self.username_input = Input(value=self.username, placeholder="username")
            yield self.username_input
            yield Label("Master password")
            self.password_input = Input(placeholder="••••••", password=True)
            yield self.password_input
            with Horizontal():
                yield Button("Cancel (Esc)", id="cancel")
                yield Button("Unlock (Enter)", id="ok", variant="primary")

    def on_mount(self) -> None:  # pragma: no cover
        self.set_focus(self.password_input if self.username else self.username_input)

    def _submit(self) -> None:
        self.dismiss(
            {"username": self.username_input.value, "password": self.password_input.value}
        )

    def on_input_submitted(self, event: Input.Submitted) -> None:  # pragma: no cover
        self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        if event.button.id == "cancel":
            self.dismiss(None)
        else:
            self._submit()

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key == "escape":
            self.dismiss(None)


class RegisterModal(ModalScreen[Optional[dict]]):
    """New vault: credentials plus the mandatory first entry."""

    def __init__(
        self,
        generate: Callable[[], str],
        initial: dict | None = None,
        error: str | None = None,
    ):
        super().__init__()
        self.generate = generate
        self.initial = initial or {}
        self.error = error

    def compose(self) -> ComposeResult:  # pragma: no cover - UI only
        with Vertical(classes="dialog"):
            yield Static("Register", classes="title")
            if self.error:
                yield Static(self.error, classes="error")
            yield Label("Username")
            self.username_input = Input(value=self.initial.get("username", ""))
            yield self.username_input
            yield Label("Master password")
            self.password_input = Input(placeholder="••••••", password=True)
            yield self.password_input
            yield Label("Confirm master password")
            self.confirm_input = Input(placeholder="••••••", password=True)
            yield self.confirm_input
            yield Label("First entry: domain / service")
            self.label_input = Input(value=self.initial.get("label", ""), placeholder="example.com")
            yield self.label_input
            yield Label("First entry: password")
            self.secret_input = Input(placeholder="••••••", password=True)
            yield self.secret_input
            with Horizontal():
                yield Button("Cancel (Esc)", id="cancel")
                yield Button("Generate", id="generate")
                yield Button("Create (Enter)", id="ok", variant="primary")

    def on_mount(self) -> None:  # pragma: no cover
        self.set_focus(self.username_input)

    def _submit(self) -> None:
        self.dismiss(
            {
                "username": self.username_input.value,
                "password": self.password_input.value,
                "confirm": self.confirm_input.value,
                "label": self.label_input.value,
                "secret": self.secret_input.value,
            }
        )

    def on_input_submitted(self, event: Input.Submitted) -> None:  # pragma: no cover
        self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        if event.button.id == "cancel":
            self.dismiss(None)
        elif event.button.id == "generate":
            self.secret_input.value = self.generate()
        else:
            self._submit()

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key == "escape":
            self.dismiss(None)


class EntryModal(ModalScreen[Optional[dict]]):
    """Add or edit one entry."""

    def __init__(
        self,
        generate: Callable[[], str],
        title: str = "Add entry",
        label: str = "",
        secret: str = "",
        error: str | None = None,
    ):
        super().__init__()
        self.generate = generate
        self.dialog_title = title
        self.label = label
        self.secret = secret
        self.error = error

    def compose(self) -> ComposeResult:  # pragma: no cover - UI only
        with Vertical(classes="dialog"):
            yield Static(self.dialog_title, classes="title")
            if self.error:
                yield Static(self.error, classes="error")
            yield Label("Domain / service")
            self.label_input = Input(value=self.label, placeholder="example.com")
            yield self.label_input
            yield Label("Password")
            self.secret_input = Input(value=self.secret, placeholder="••••••", password=True)
            yield self.secret_input
            with Horizontal():
                yield Button("Cancel (Esc)", id="cancel")
                yield Button("Generate", id="generate")
                yield Button("Save (Enter)", id="ok", variant="primary")

    def on_mount(self) -> None:  # pragma: no cover
        self.set_focus(self.label_input)

    def _submit(self) -> None:
        self.dismiss({"label": self.label_input.value, "secret": self.secret_input.value})

    def on_input_submitted(self, event: Input.Submitted) -> None:  # pragma: no cover
        self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        if event.button.id == "cancel":
            self.dismiss(None)
        elif event.button.id == "generate":
            self.secret_input.value = self.generate()
        else:
            self._submit()

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key == "escape":
            self.dismiss(None)


class SettingsModal(ModalScreen[Optional[dict]]):
    """Password generator options."""

    def __init__(self, config: PasswordConfig, error: str | None = None):
        super().__init__()
        self.config = config
        self.error = error

    def compose(self) -> ComposeResult:  # pragma: no cover - UI only
        with Vertical(classes="dialog"):
            yield Static("Settings", classes="title")
            if self.error:
                yield Static(self.error, classes="error")
            self.upper_box = Checkbox("Include uppercase letters", self.config.include_uppercase)
            yield self.upper_box
            self.numbers_box = Checkbox("Include numbers", self.config.include_numbers)
            yield self.numbers_box
            self.special_box = Checkbox("Include special characters", self.config.include_special)
            yield self.special_box
            yield Label("Generated password length")
            self.length_input = Input(value=str(self.config.length))
            yield self.length_input
            with Horizontal():
                yield Button("Back (Esc)", id="cancel")
                yield Button("Save", id="ok", variant="primary")

    def _submit(self) -> None:
        self.dismiss(
            {
                "include_uppercase": self.upper_box.value,
                "include_numbers": self.numbers_box.value,
                "include_special": self.special_box.value,
                "length": self.length_input.value,
            }
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        if event.button.id == "cancel":
            self.dismiss(None)
        else:
            self._submit()

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key == "escape":
            self.dismiss(None)


class DeleteConfirmModal(ModalScreen[Optional[bool]]):
    def __init__(self, prompt: str):
        super().__init__()
        self.prompt = prompt

    def compose(self) -> ComposeResult:  # pragma: no cover
        with Vertical(classes="dialog"):
            yield Static(self.prompt)
            with Horizontal():
                yield Button("Cancel (Esc)", id="cancel")
                yield Button("Delete (Enter)", id="ok", variant="error")

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        self.dismiss(event.button.id == "ok")

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key == "escape":
            self.dismiss(False)
        elif event.key == "enter":
            self.dismiss(True)


class KrabVaultApp(App):
    """Entry list for one unlocked vault, with forms as modals on top."""

    TITLE = "krabvault"
    # the hidden filter input must not take focus, or it swallows j/k
    AUTO_FOCUS = None

    CSS = """
    #main { border: heavy $surface; }
    .title { padding: 1 1; text-style: bold; }
    .error { padding: 0 1; color: $error; }
    #status { padding: 0 1 1 1; height: 3; color: $text-muted; }
    #filter { display: none; }
    #filter.active { display: block; }
    ModalScreen { align: center middle; background: rgba(0,0,0,0.45); }
    .dialog { width: 75%; height: auto; max-height: 90%; padding: 1; border: heavy $surface; background: $boost; }
    """

    BINDINGS = [
        ("q", "quit_vault", "Quit"),
        ("j", "select_next", "Down"),
        ("down", "select_next", "Down"),
        ("k", "select_prev", "Up"),
        ("up", "select_prev", "Up"),
        ("enter", "toggle_reveal", "Show/Hide"),
        ("a", "add_entry", "Add"),
        ("e", "edit_entry", "Edit"),
        ("d", "delete_entry", "Delete"),
        ("c", "copy_secret", "Copy"),
        ("slash", "filter", "Filter"),
        ("escape", "clear_filter", "Clear filter"),
        ("l", "lock", "Lock"),
    ]

    def __init__(self, ctx: AppContext | None = None):
        self.ctx = ctx or build_context()
        super().__init__()
        self.controller = self.ctx.controller
        self.table: DataTable | None = None
        self.filter_input: Input | None = None
        self.status: Static | None = None
        self.title_bar: Static | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="main"):
            self.title_bar = Static("Secrets", classes="title")
            yield self.title_bar
            self.filter_input = Input(placeholder="Filter entries", id="filter")
            yield self.filter_input
            self.table = DataTable(id="entries", cursor_type="row")
            # app bindings drive selection, not the table's own keys
            self.table.can_focus = False
            yield self.table
            self.status = Static("", id="status")
            yield self.status
        yield Footer()

    def on_mount(self) -> None:
        assert self.table is not None
        self.table.add_columns("Domain", "Password")
        self._sync()

    # ------------------------------------------------------------------
    # Controller plumbing
    # ------------------------------------------------------------------

    def _dispatch(self, intent) -> Outcome:
        outcome = self.controller.dispatch(intent)
        if outcome.message:
            self._set_status(outcome.message)
            if not outcome.ok:
                self.notify(outcome.message, severity="error")
        return outcome

    def _generate(self) -> str:
        return self.controller.dispatch(GeneratePassword()).value or ""

    def _sync(self, error: str | None = None, initial: dict | None = None) -> None:
        """Bring the screen stack in line with the controller's state."""
        screen = self.controller.screen
        if screen is Screen.EXITED:
            self.exit()
        elif screen is Screen.WELCOME:
            self.refresh_entries()
            self.push_screen(WelcomeModal(), self._handle_welcome)
        elif screen is Screen.LOGIN:
            username = (initial or {}).get("username", "")
            self.push_screen(LoginModal(username=username, error=error), self._handle_login)
        elif screen is Screen.REGISTER:
            self.push_screen(
                RegisterModal(self._generate, initial=initial, error=error), self._handle_register
            )
        elif screen is Screen.SETTINGS:
            self.push_screen(
                SettingsModal(self.controller.config.password, error=error), self._handle_settings
            )
        elif screen is Screen.ADD_EDIT:
            entry = self.controller.editing_entry()
            initial = initial or {}
            if entry is None:
                modal = EntryModal(self._generate, label=initial.get("label", ""), error=error)
            else:
                modal = EntryModal(
                    self._generate,
                    title="Edit entry",
                    label=initial.get("label", entry.label),
                    secret=entry.reveal(),
                    error=error,
                )
            self.push_screen(modal, self._handle_entry)
        elif screen is Screen.CONFIRM_DELETE:
            entry = self.controller.selected_entry()
            label = entry.label if entry else "this entry"
            self.push_screen(
                DeleteConfirmModal(f"Delete the entry for {label}?"), self._handle_delete
            )
        else:
            self.refresh_entries()

    def _after_form(self, outcome: Outcome, fields: dict | None) -> None:
        # On failure the controller stays on the form; show it again with the error.
        self._sync(error=None if outcome.ok else outcome.message, initial=fields)

    def _handle_welcome(self, choice: Optional[str]) -> None:
        intent = {
            "login": ChooseLogin(),
            "register": ChooseRegister(),
            "settings": OpenSettings(),
        }.get(choice or "quit", Quit())
        self._dispatch(intent)
        self._sync()

    def _handle_login(self, fields: Optional[dict]) -> None:
        if fields is None:
            self._dispatch(Cancel())
            self._sync()
            return
        outcome = self._dispatch(Submit(fields))
        self._after_form(outcome, {"username": fields.get("username", "")})

    def _handle_register(self, fields: Optional[dict]) -> None:
        if fields is None:
            self._dispatch(Cancel())
            self._sync()
            return
        outcome = self._dispatch(Submit(fields))
        self._after_form(
            outcome, {"username": fields.get("username", ""), "label": fields.get("label", "")}
        )

    def _handle_settings(self, fields: Optional[dict]) -> None:
        outcome = self._dispatch(Cancel() if fields is None else Submit(fields))
        self._after_form(outcome, None)

    def _handle_entry(self, fields: Optional[dict]) -> None:
        if fields is None:
            self._dispatch(Cancel())
            self._sync()
            return
        outcome = self._dispatch(Submit(fields))
        self._after_form(outcome, {"label": fields.get("label", "")})

    def _handle_delete(self, confirmed: Optional[bool]) -> None:
        self._dispatch(Confirm() if confirmed else Cancel())
        self._sync()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def refresh_entries(self) -> None:
        if self.table is None:
            return
        self.table.clear()
        views = self.controller.visible_entries()
        for view in views:
            self.table.add_row(view.label, view.display, key=str(view.entry_id))
        if views:
            self.table.move_cursor(row=self.controller.selection)
        self._update_title()

    def _update_title(self) -> None:
        if self.title_bar is None:
            return
        session = self.controller.session
        if session is None or session.closed:
            self.title_bar.update("Locked")
            return
        text = f"{session.username}: {len(self.controller.visible_entries())} entries"
        if self.controller.filter_text:
            text += f" matching '{self.controller.filter_text}'"
        self.title_bar.update(text)

    def _set_status(self, message: str) -> None:
        if self.status is not None:
            self.status.update(message)

    # ------------------------------------------------------------------
    # Unlocked-screen actions
    # ------------------------------------------------------------------

    def _unlocked_action(self, intent) -> None:
        if self.controller.screen is not Screen.UNLOCKED:
            return
        self._dispatch(intent)
        self._sync()

    def action_select_next(self) -> None:
        self._unlocked_action(SelectNext())

    def action_select_prev(self) -> None:
        self._unlocked_action(SelectPrev())

    def action_toggle_reveal(self) -> None:
        self._unlocked_action(ToggleReveal())

    def action_add_entry(self) -> None:
        self._unlocked_action(RequestAdd())

    def action_edit_entry(self) -> None:
        self._unlocked_action(RequestEdit())

    def action_delete_entry(self) -> None:
        self._unlocked_action(RequestDelete())

    def action_copy_secret(self) -> None:
        self._unlocked_action(Copy())

    def action_lock(self) -> None:
        self._unlocked_action(Lock())

    def action_filter(self) -> None:
        if self.controller.screen is not Screen.UNLOCKED or self.filter_input is None:
            return
        self.filter_input.add_class("active")
        self.filter_input.focus()

    def action_clear_filter(self) -> None:
        if self.filter_input is None:
            return
        self.filter_input.value = ""
        self.filter_input.remove_class("active")
        self.set_focus(None)
        self._unlocked_action(Cancel())

    @on(Input.Changed, "#filter")
    def on_filter_changed(self, event: Input.Changed) -> None:
        self._unlocked_action(Filter(event.value))

    @on(Input.Submitted, "#filter")
    def on_filter_submitted(self, event: Input.Submitted) -> None:
        # keep the filter, hand keys back to the list
        self.set_focus(None)

    def action_quit_vault(self) -> None:
        self._dispatch(Quit())
        self._sync()


def run(ctx: AppContext | None = None) -> None:
    """Run the app; the session is closed however the app ends."""
    app = KrabVaultApp(ctx)
    try:
        app.run()
    finally:
        app.controller.dispatch(Quit())
