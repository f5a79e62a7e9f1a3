"""nodepm - Main Textual application.

The app is a thin adapter: Textual key and widget messages become coordinator
events, and the effects the coordinator returns become screen updates and
collaborator calls. Blocking collaborators run in worker threads; their
results come back as events on the UI loop.
"""

import asyncio
import os
from collections import deque
from collections.abc import Callable, Sequence
from pathlib import Path

from rich.markup import escape
from rich.text import Text
from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import DataTable, Header, Input, Static

from nodepm.ai import AIClient, AIError
from nodepm.clipboard import ClipboardError, copy_to_clipboard
from nodepm.config import Config, store_api_key
from nodepm.coordinator import (
    AIAnswered,
    AIFailed,
    ApiKeySaved,
    ApiKeySaveFailed,
    AskQuestion,
    CloseModal,
    ConfirmKill,
    Coordinator,
    CopyFailed,
    CopySucceeded,
    CopyText,
    Effect,
    Event,
    ExplainProcess,
    HelpModal,
    KeyPressed,
    KillFailed,
    KillProcess,
    KillSucceeded,
    Modal,
    Notify,
    OpenModal,
    PromptPurpose,
    Quit,
    Refresh,
    Render,
    RowSelected,
    SaveApiKey,
    ScrollableText,
    SetStatus,
    SnapshotFailed,
    SnapshotLoaded,
    StatusLevel,
    TextPrompt,
    TextSubmitted,
    ViewState,
)
from nodepm.formatting import column_headers, status_summary, to_display_row
from nodepm.help import render_help
from nodepm.keybindings import help_bar_text
from nodepm.logging import get_logger
from nodepm.models import DisplayRow, ProcessRecord, Severity
from nodepm.monitor import KillError, ProcessSource, SnapshotError
from nodepm.screens import ConfirmKillScreen, ScrollableTextScreen, TextPromptScreen

log = get_logger()

_CPU_STYLES = {
    Severity.NORMAL: "green",
    Severity.ELEVATED: "yellow",
    Severity.CRITICAL: "red",
}

_MEMORY_STYLES = {
    Severity.NORMAL: "cyan",
    Severity.ELEVATED: "yellow",
    Severity.CRITICAL: "red",
}

_STATUS_STYLES = {
    StatusLevel.INFO: "white",
    StatusLevel.SUCCESS: "green",
    StatusLevel.WARNING: "yellow",
    StatusLevel.ERROR: "red",
}

_NOTIFY_SEVERITY = {
    StatusLevel.INFO: "information",
    StatusLevel.SUCCESS: "information",
    StatusLevel.WARNING: "warning",
    StatusLevel.ERROR: "error",
}

_COLUMNS = [("pid", 8), ("name", 32), ("cpu", 9), ("memory", 12), ("command", None)]

_QUESTION_HELP = (
    "Ask a question about your running processes.\n\n"
    'Examples: "Which process is using the most memory?"\n'
    '"I\'ve been using Vitest, which processes are related?"'
)


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        table = DataTable(id="process-table", cursor_type="row")
        # Keys are routed by the app, not by the table
        table.can_focus = False
        yield table

    def update_processes(
        self,
        processes: Sequence[ProcessRecord],
        headers: list[str],
        own_pid: int,
        cursor: int,
    ) -> None:
        """Replace every row; order and headers change with sort and filter."""
        table = self.query_one("#process-table", DataTable)
        table.clear(columns=True)
        for (key, width), label in zip(_COLUMNS, headers):
            table.add_column(label, key=key, width=width)

        for proc in processes:
            row = to_display_row(proc, own_pid)
            table.add_row(*self._cells(row), key=str(row.pid))

        self.move_cursor(cursor)

    def move_cursor(self, row: int) -> None:
        table = self.query_one("#process-table", DataTable)
        if table.row_count and table.cursor_row != row:
            table.move_cursor(row=row)

    @staticmethod
    def _cells(row: DisplayRow) -> list[Text]:
        pid, name, cpu, memory, command = row.cells
        name_style = "bold green" if row.is_self else "white"
        return [
            Text(pid, style="cyan"),
            Text(name, style=name_style),
            Text(cpu, style=_CPU_STYLES[row.cpu_severity]),
            Text(memory, style=_MEMORY_STYLES[row.memory_severity]),
            Text(command, style="dim"),
        ]


class NodepmApp(App):
    """Main nodepm application."""

    TITLE = "nodepm"
    SUB_TITLE = "Node Processes"
    ENABLE_COMMAND_PALETTE = False
    AUTO_FOCUS = None

    CSS = """
    Screen {
        layout: vertical;
    }

    #filter-bar {
        height: 3;
        border: solid $warning;
        padding: 0 1;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
    }

    #help-bar {
        height: 1;
        background: $accent;
        color: $text;
    }
    """

    # Force quit bypasses every modal and the filter
    BINDINGS = [
        Binding("ctrl+c", "force_quit('ctrl+c')", "Quit", show=False, priority=True),
        Binding("ctrl+d", "force_quit('ctrl+d')", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        source: ProcessSource | None = None,
        *,
        show_all: bool = False,
        api_key: str | None = None,
        config: Config | None = None,
        config_path: Path | None = None,
        ai_factory: Callable[[str], AIClient] = AIClient,
        clipboard: Callable[[str], None] = copy_to_clipboard,
        own_pid: int | None = None,
    ) -> None:
        """Initialize the NodepmApp.

        Args:
            source: Snapshot source and kill primitive; psutil-backed by default.
            show_all: List every process instead of only Node.js ones.
            api_key: OpenAI key resolved at startup, if any.
            config: Loaded config record, updated when a key is captured.
            config_path: Override for where the config is saved.
            ai_factory: Builds the language-model client from a key.
            clipboard: Copies text to the system clipboard.
            own_pid: PID marked as "This Process" (defaults to ours).
        """
        super().__init__()
        self._process_source = source or ProcessSource(show_all=show_all)
        self._show_all = show_all
        self._settings = config or Config()
        self._settings_path = config_path
        self._ai_factory = ai_factory
        self._ai = ai_factory(api_key) if api_key else None
        self._copy_text = clipboard
        self._own_pid = own_pid if own_pid is not None else os.getpid()
        self._coordinator = Coordinator(ViewState(show_all=show_all, has_api_key=bool(api_key)))
        self._pending_events: deque[Event] = deque()
        self._dispatching = False
        self._status_message = Text("Loading processes...")

        self.sub_title = "All Processes" if show_all else "Node Processes"

    @property
    def coordinator(self) -> Coordinator:
        return self._coordinator

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        # self.query_one only searches the active screen, which may be a modal
        self._filter_bar = Static(id="filter-bar")
        self._process_table = ProcessTable()
        self._status_bar = Static(self._status_message, id="status-bar")

        yield Header()
        yield self._filter_bar
        yield self._process_table
        yield self._status_bar
        yield Static(help_bar_text(), id="help-bar")

    def on_mount(self) -> None:
        """Load the first snapshot once the table exists."""
        self._filter_bar.display = False
        log.info("started", show_all=self._show_all, ai_enabled=self._ai is not None)
        self._run_refresh()

    # ─── Input ───

    def on_key(self, event: events.Key) -> None:
        character = event.character if event.is_printable else None
        self.process_event(KeyPressed(event.key, character))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.process_event(TextSubmitted(event.value))

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self.process_event(RowSelected(event.cursor_row))

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        # Highlights posted before a re-render or cursor sync are stale
        if event.cursor_row != event.data_table.cursor_row:
            return
        if event.cursor_row == self._coordinator.view.cursor:
            return
        self.process_event(RowSelected(event.cursor_row))

    def action_force_quit(self, key: str) -> None:
        self.process_event(KeyPressed(key))

    def process_event(self, event: Event) -> None:
        """Feed ``event`` to the coordinator and apply the resulting effects.

        Events raised while effects are being applied are queued and handled
        in order once the current batch is done.
        """
        self._pending_events.append(event)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._pending_events:
                for effect in self._coordinator.dispatch(self._pending_events.popleft()):
                    self._apply_effect(effect)
        finally:
            self._dispatching = False
        self._process_table.move_cursor(self._coordinator.view.cursor)

    # ─── Effects ───

    def _apply_effect(self, effect: Effect) -> None:
        if isinstance(effect, Quit):
            log.info("quit")
            self.exit()
        elif isinstance(effect, Render):
            self._render_processes()
        elif isinstance(effect, OpenModal):
            self.push_screen(self._screen_for(effect.modal))
        elif isinstance(effect, CloseModal):
            self.pop_screen()
        elif isinstance(effect, Refresh):
            self._run_refresh(effect.delay)
        elif isinstance(effect, KillProcess):
            self._run_kill(effect.process)
        elif isinstance(effect, CopyText):
            self._run_copy(effect.text)
        elif isinstance(effect, SaveApiKey):
            self._save_api_key(effect.api_key)
        elif isinstance(effect, ExplainProcess):
            self._run_explain(effect.process)
        elif isinstance(effect, AskQuestion):
            self._run_ask(effect.question, effect.processes)
        elif isinstance(effect, Notify):
            self.notify(
                escape(effect.message),
                severity=_NOTIFY_SEVERITY[effect.level],
                timeout=effect.timeout,
            )
        elif isinstance(effect, SetStatus):
            self._set_status(Text(effect.message, style=_STATUS_STYLES[effect.level]))
        else:
            raise TypeError(f"Unsupported effect: {effect!r}")

    def _screen_for(self, modal: Modal) -> Screen:
        if isinstance(modal, ConfirmKill):
            return ConfirmKillScreen(modal.process)
        if isinstance(modal, TextPrompt):
            if modal.purpose is PromptPurpose.API_KEY:
                return TextPromptScreen(
                    "OpenAI API Key Required",
                    "No OpenAI API key found.\n\nPlease enter your OpenAI API key:",
                    password=True,
                    placeholder="sk-...",
                )
            return TextPromptScreen(
                "AI Ask - Custom Question",
                _QUESTION_HELP,
                placeholder="Which process is using the most memory?",
            )
        if isinstance(modal, ScrollableText):
            return ScrollableTextScreen(modal.title, modal.content)
        if isinstance(modal, HelpModal):
            return ScrollableTextScreen(
                "Help",
                render_help(),
                footer="Press ESC, Q, H, Enter, or Space to close... Use ↑↓ to scroll",
            )
        raise TypeError(f"Unsupported modal: {modal!r}")

    def _render_processes(self) -> None:
        view = self._coordinator.view
        visible = self._coordinator.visible()
        self._process_table.update_processes(
            visible,
            column_headers(view.sort_column, view.sort_order),
            self._own_pid,
            view.cursor,
        )

        self._filter_bar.display = view.filter_active
        self._filter_bar.update(
            Text.assemble(("Type to filter (ESC to exit): ", "yellow"), view.filter_query)
        )

        summary = status_summary(
            self._coordinator.state.processes,
            shown=len(visible),
            column=view.sort_column,
            order=view.sort_order,
            filtering=view.filter_active and bool(view.filter_query),
            show_all=self._show_all,
        )
        self._set_status(Text.from_markup(summary))

    @property
    def status_text(self) -> str:
        """Plain text of the status bar."""
        return self._status_message.plain

    def _set_status(self, text: Text) -> None:
        self._status_message = text
        self._status_bar.update(text)

    def _save_api_key(self, api_key: str) -> None:
        self._ai = self._ai_factory(api_key)
        try:
            path = store_api_key(self._settings, api_key, self._settings_path)
        except OSError as e:
            log.warning("api_key_save_failed", error=str(e))
            self.process_event(ApiKeySaveFailed(str(e)))
            return
        log.info("api_key_saved", path=str(path))
        self.process_event(ApiKeySaved(str(path)))

    # ─── Workers ───

    @work(exclusive=True, group="refresh")
    async def _run_refresh(self, delay: float = 0.0) -> None:
        if delay:
            await asyncio.sleep(delay)
        self._set_status(Text("Refreshing...", style="yellow"))
        try:
            processes = await asyncio.to_thread(self._process_source.snapshot)
        except SnapshotError as e:
            log.warning("refresh_failed", error=str(e))
            self.process_event(SnapshotFailed(str(e)))
            return
        log.info("refreshed", count=len(processes))
        self.process_event(SnapshotLoaded(tuple(processes)))

    @work(group="kill")
    async def _run_kill(self, process: ProcessRecord) -> None:
        log.info("kill_requested", pid=process.pid, name=process.name)
        try:
            await asyncio.to_thread(self._process_source.kill, process.pid)
        except KillError as e:
            log.warning("kill_failed", pid=process.pid, error=str(e))
            self.process_event(KillFailed(process, str(e)))
            return
        self.process_event(KillSucceeded(process))

    @work(group="clipboard")
    async def _run_copy(self, text: str) -> None:
        try:
            await asyncio.to_thread(self._copy_text, text)
        except ClipboardError as e:
            log.warning("copy_failed", error=str(e))
            self.process_event(CopyFailed(str(e)))
            return
        self.process_event(CopySucceeded())

    @work(group="ai")
    async def _run_explain(self, process: ProcessRecord) -> None:
        if self._ai is None:
            self.process_event(AIFailed("explain", "No OpenAI API key configured"))
            return
        try:
            answer = await asyncio.to_thread(self._ai.explain, process)
        except AIError as e:
            log.warning("ai_failed", kind="explain", error=str(e))
            self.process_event(AIFailed("explain", str(e)))
            return
        log.info("ai_answered", kind="explain", pid=process.pid)
        title = f"AI Explanation - {process.name} (PID: {process.pid})"
        self.process_event(AIAnswered(title, answer))

    @work(group="ai")
    async def _run_ask(self, question: str, processes: tuple[ProcessRecord, ...]) -> None:
        if self._ai is None:
            self.process_event(AIFailed("ask", "No OpenAI API key configured"))
            return
        label = "" if self._show_all else "Node.js"
        try:
            answer = await asyncio.to_thread(self._ai.ask, question, processes, label)
        except AIError as e:
            log.warning("ai_failed", kind="ask", error=str(e))
            self.process_event(AIFailed("ask", str(e)))
            return
        log.info("ai_answered", kind="ask", processes=len(processes))
        self.process_event(AIAnswered("AI Answer", f"**Q: {question}**\n\n{answer}"))
