"""Modal screens for nodepm.

Screens only draw. Keys bubble up to the app, which routes them through the
coordinator; text prompts report their value with ``Input.Submitted``.
"""

from rich.console import RenderableType
from rich.markdown import Markdown
from rich.markup import escape
from textual.app import ComposeResult
from textual.containers import Container, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Input, Label, Static

from nodepm.formatting import truncate
from nodepm.models import ProcessRecord


class ConfirmKillScreen(ModalScreen[None]):
    """Asks before a process is sent SIGTERM."""

    DEFAULT_CSS = """
    ConfirmKillScreen {
        align: center middle;
    }

    ConfirmKillScreen > Container {
        width: 60;
        height: auto;
        border: solid $error;
        background: $surface;
        padding: 1 2;
    }

    ConfirmKillScreen .title {
        text-style: bold;
        color: $error;
        width: 100%;
        content-align: center middle;
    }
    """

    def __init__(self, process: ProcessRecord) -> None:
        super().__init__()
        self.process = process

    def compose(self) -> ComposeResult:
        p = self.process
        with Container():
            yield Label("Confirm Kill Process", classes="title")
            yield Static(
                "\nKill process?\n\n"
                f"[cyan]PID:[/cyan] {p.pid}\n"
                f"[cyan]Name:[/cyan] {escape(p.name)}\n"
                f"[cyan]Command:[/cyan] {escape(truncate(p.command, 40))}\n\n"
                "[bold]Press 'y' to confirm, 'n' to cancel[/bold]",
                markup=True,
            )


class TextPromptScreen(ModalScreen[None]):
    """Single-line text entry (API key or free-form question)."""

    DEFAULT_CSS = """
    TextPromptScreen {
        align: center middle;
    }

    TextPromptScreen > Container {
        width: 80;
        height: auto;
        border: solid $accent;
        background: $surface;
        padding: 1 2;
    }

    TextPromptScreen .title {
        text-style: bold;
        color: $accent;
    }

    TextPromptScreen Input {
        width: 100%;
        margin: 1 0;
    }

    TextPromptScreen .footer-text {
        color: $text-muted;
    }
    """

    def __init__(self, title: str, message: str, password: bool = False, placeholder: str = "") -> None:
        super().__init__()
        self._title = title
        self._message = message
        self._password = password
        self._placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Container():
            yield Label(self._title, classes="title")
            yield Static(self._message)
            yield Input(
                placeholder=self._placeholder,
                password=self._password,
                id="prompt-input",
            )
            yield Label("Press ENTER to submit, ESC to cancel", classes="footer-text")

    def on_mount(self) -> None:
        """Focus the input when mounted."""
        self.query_one("#prompt-input", Input).focus()


class ScrollableTextScreen(ModalScreen[None]):
    """Read-only scrollable text: AI answers and help."""

    DEFAULT_CSS = """
    ScrollableTextScreen {
        align: center middle;
    }

    ScrollableTextScreen > Container {
        width: 85%;
        height: 75%;
        border: solid $success;
        background: $surface;
    }

    ScrollableTextScreen .title {
        dock: top;
        width: 100%;
        text-style: bold;
        color: $success;
        padding: 0 1;
    }

    ScrollableTextScreen VerticalScroll {
        padding: 0 1;
    }

    ScrollableTextScreen .footer-text {
        dock: bottom;
        width: 100%;
        color: $text-muted;
        padding: 0 1;
    }
    """

    def __init__(self, title: str, body: RenderableType | str, footer: str | None = None) -> None:
        super().__init__()
        self._title = title
        self._body = Markdown(body) if isinstance(body, str) else body
        self._footer = footer or "Press ESC, Q, Enter, or Space to close..."

    def compose(self) -> ComposeResult:
        with Container():
            yield Label(self._title, classes="title", markup=False)
            with VerticalScroll(id="scroll-body"):
                yield Static(self._body)
            yield Label(self._footer, classes="footer-text")

    def on_mount(self) -> None:
        """Focus the scroll area so arrow keys scroll."""
        self.query_one("#scroll-body", VerticalScroll).focus()
