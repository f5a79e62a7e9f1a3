"""Selection and modal coordinator.

All UI state lives in an immutable ``State``. ``reduce`` maps a state and an
input ``Event`` to the next state plus a list of ``Effect`` values; the Textual
adapter turns effects into screen updates and collaborator calls. The modal
stack decides which keys are live: while it is non-empty only the top modal's
keys (and force quit) do anything.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

from nodepm.formatting import clipboard_text
from nodepm.keybindings import Action, binding_for_key
from nodepm.models import ProcessRecord, SortColumn, SortOrder
from nodepm.pipeline import filter_processes, next_sort, sort_processes, toggle_sort

KILL_REFRESH_DELAY = 0.5
NOTIFY_TIMEOUT = 2.0
NOTIFY_ERROR_TIMEOUT = 3.0


class StatusLevel(Enum):
    """Tone of a status bar message or notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class PromptPurpose(Enum):
    API_KEY = "api_key"
    QUESTION = "question"


# ─── AI requests waiting on a credential ───


@dataclass(slots=True, frozen=True)
class ExplainRequest:
    process: ProcessRecord


@dataclass(slots=True, frozen=True)
class AskRequest:
    pass


AIRequest = ExplainRequest | AskRequest


# ─── Modals ───


@dataclass(slots=True, frozen=True)
class ConfirmKill:
    process: ProcessRecord


@dataclass(slots=True, frozen=True)
class TextPrompt:
    purpose: PromptPurpose
    then: AIRequest | None = None


@dataclass(slots=True, frozen=True)
class ScrollableText:
    title: str
    content: str  # Markdown


@dataclass(slots=True, frozen=True)
class HelpModal:
    pass


Modal = ConfirmKill | TextPrompt | ScrollableText | HelpModal


# ─── Events ───


@dataclass(slots=True, frozen=True)
class KeyPressed:
    key: str
    character: str | None = None  # Set only for printable keys


@dataclass(slots=True, frozen=True)
class TextSubmitted:
    text: str


@dataclass(slots=True, frozen=True)
class RowSelected:
    index: int


@dataclass(slots=True, frozen=True)
class SnapshotLoaded:
    processes: tuple[ProcessRecord, ...]


@dataclass(slots=True, frozen=True)
class SnapshotFailed:
    message: str


@dataclass(slots=True, frozen=True)
class KillSucceeded:
    process: ProcessRecord


@dataclass(slots=True, frozen=True)
class KillFailed:
    process: ProcessRecord
    message: str


@dataclass(slots=True, frozen=True)
class CopySucceeded:
    pass


@dataclass(slots=True, frozen=True)
class CopyFailed:
    message: str


@dataclass(slots=True, frozen=True)
class ApiKeySaved:
    path: str


@dataclass(slots=True, frozen=True)
class ApiKeySaveFailed:
    message: str


@dataclass(slots=True, frozen=True)
class AIAnswered:
    title: str
    content: str


@dataclass(slots=True, frozen=True)
class AIFailed:
    kind: str  # "explain" or "ask"
    message: str


Event = (
    KeyPressed
    | TextSubmitted
    | RowSelected
    | SnapshotLoaded
    | SnapshotFailed
    | KillSucceeded
    | KillFailed
    | CopySucceeded
    | CopyFailed
    | ApiKeySaved
    | ApiKeySaveFailed
    | AIAnswered
    | AIFailed
)


# ─── Effects ───


@dataclass(slots=True, frozen=True)
class Quit:
    pass


@dataclass(slots=True, frozen=True)
class Render:
    """Visible rows, headers or the filter line changed."""


@dataclass(slots=True, frozen=True)
class OpenModal:
    modal: Modal


@dataclass(slots=True, frozen=True)
class CloseModal:
    pass


@dataclass(slots=True, frozen=True)
class Refresh:
    delay: float = 0.0


@dataclass(slots=True, frozen=True)
class KillProcess:
    process: ProcessRecord


@dataclass(slots=True, frozen=True)
class CopyText:
    text: str


@dataclass(slots=True, frozen=True)
class SaveApiKey:
    api_key: str


@dataclass(slots=True, frozen=True)
class ExplainProcess:
    process: ProcessRecord


@dataclass(slots=True, frozen=True)
class AskQuestion:
    question: str
    processes: tuple[ProcessRecord, ...]


@dataclass(slots=True, frozen=True)
class Notify:
    message: str
    level: StatusLevel = StatusLevel.INFO
    timeout: float = NOTIFY_TIMEOUT


@dataclass(slots=True, frozen=True)
class SetStatus:
    message: str
    level: StatusLevel = StatusLevel.INFO


Effect = (
    Quit
    | Render
    | OpenModal
    | CloseModal
    | Refresh
    | KillProcess
    | CopyText
    | SaveApiKey
    | ExplainProcess
    | AskQuestion
    | Notify
    | SetStatus
)


# ─── State ───


@dataclass(slots=True, frozen=True)
class ViewState:
    """Process-independent UI state."""

    sort_column: SortColumn = SortColumn.NONE
    sort_order: SortOrder = SortOrder.DESC
    filter_active: bool = False
    filter_query: str = ""
    modal_stack: tuple[Modal, ...] = ()
    show_all: bool = False
    cursor: int = 0
    has_api_key: bool = False

    @property
    def top_modal(self) -> Modal | None:
        return self.modal_stack[-1] if self.modal_stack else None


@dataclass(slots=True, frozen=True)
class State:
    view: ViewState = field(default_factory=ViewState)
    processes: tuple[ProcessRecord, ...] = ()


Transition = tuple[State, list[Effect]]


def visible_processes(state: State) -> Sequence[ProcessRecord]:
    """The snapshot after the filter and sort stages."""
    view = state.view
    filtered = filter_processes(state.processes, view.filter_query)
    return sort_processes(filtered, view.sort_column, view.sort_order)


def selected_process(state: State) -> ProcessRecord | None:
    rows = visible_processes(state)
    if not rows:
        return None
    return rows[min(state.view.cursor, len(rows) - 1)]


def _with_view(state: State, **changes) -> State:
    return replace(state, view=replace(state.view, **changes))


def _clamped(state: State) -> State:
    count = len(visible_processes(state))
    cursor = max(0, min(state.view.cursor, count - 1)) if count else 0
    if cursor == state.view.cursor:
        return state
    return _with_view(state, cursor=cursor)


def _push(state: State, modal: Modal) -> Transition:
    state = _with_view(state, modal_stack=state.view.modal_stack + (modal,))
    return state, [OpenModal(modal)]


def _pop(state: State) -> Transition:
    state = _with_view(state, modal_stack=state.view.modal_stack[:-1])
    return state, [CloseModal()]


def _cancel_message(prompt: TextPrompt) -> str:
    if prompt.purpose is PromptPurpose.API_KEY and isinstance(prompt.then, ExplainRequest):
        return "⚠ AI explain cancelled"
    return "⚠ AI ask cancelled"


def _no_selection() -> SetStatus:
    return SetStatus("⚠ No process selected", StatusLevel.WARNING)


def _explain(process: ProcessRecord) -> list[Effect]:
    return [
        ExplainProcess(process),
        SetStatus("🤖 Asking AI about this process...", StatusLevel.WARNING),
    ]


# ─── Keys ───


def _on_modal_key(state: State, modal: Modal, key: str) -> Transition:
    if isinstance(modal, ConfirmKill):
        if key == "y":
            state, effects = _pop(state)
            pid = modal.process.pid
            effects += [
                KillProcess(modal.process),
                SetStatus(f"Killing process {pid}...", StatusLevel.WARNING),
            ]
            return state, effects
        if key in ("n", "escape", "q"):
            state, effects = _pop(state)
            effects.append(SetStatus("⚠ Kill cancelled", StatusLevel.WARNING))
            return state, effects
        return state, []

    if isinstance(modal, TextPrompt):
        # Text itself arrives as TextSubmitted
        if key == "escape":
            state, effects = _pop(state)
            effects.append(SetStatus(_cancel_message(modal), StatusLevel.WARNING))
            return state, effects
        return state, []

    close_keys = ("escape", "q", "enter", "space")
    if isinstance(modal, HelpModal):
        close_keys += ("h",)
    if key in close_keys:
        return _pop(state)
    return state, []


def _on_filter_key(state: State, event: KeyPressed) -> Transition | None:
    """Consume keys that edit the filter; None lets the key fall through."""
    query = state.view.filter_query
    if event.key == "escape":
        state = _with_view(state, filter_active=False, filter_query="")
        return _clamped(state), [Render()]
    if event.key == "backspace":
        if not query:
            return state, []
        state = _with_view(state, filter_query=query[:-1])
        return _clamped(state), [Render()]
    if event.character:
        state = _with_view(state, filter_query=query + event.character)
        return _clamped(state), [Render()]
    return None


def _run_action(state: State, action: Action) -> Transition:
    view = state.view

    if action is Action.QUIT:
        return state, [Quit()]

    if action in (Action.NAVIGATE_UP, Action.NAVIGATE_DOWN):
        step = -1 if action is Action.NAVIGATE_UP else 1
        return _clamped(_with_view(state, cursor=view.cursor + step)), []

    if action is Action.SORT_CYCLE:
        column, order = next_sort(view.sort_column, view.sort_order)
        return _clamped(_with_view(state, sort_column=column, sort_order=order)), [Render()]

    if action in (Action.SORT_CPU, Action.SORT_MEMORY):
        selected = SortColumn.CPU if action is Action.SORT_CPU else SortColumn.MEMORY
        column, order = toggle_sort(view.sort_column, view.sort_order, selected)
        return _clamped(_with_view(state, sort_column=column, sort_order=order)), [Render()]

    if action is Action.REFRESH:
        return state, [Refresh()]

    if action is Action.FILTER:
        return _with_view(state, filter_active=True, filter_query=""), [Render()]

    if action is Action.HELP:
        return _push(state, HelpModal())

    if action is Action.AI_ASK:
        if view.has_api_key:
            return _push(state, TextPrompt(PromptPurpose.QUESTION))
        return _push(state, TextPrompt(PromptPurpose.API_KEY, then=AskRequest()))

    process = selected_process(state)

    if action is Action.COPY:
        if process is None:
            return state, [Notify("⚠ No process selected", StatusLevel.WARNING)]
        return state, [CopyText(clipboard_text(process))]

    if process is None:
        return state, [_no_selection()]

    if action is Action.KILL:
        return _push(state, ConfirmKill(process))

    if action is Action.AI_EXPLAIN:
        if view.has_api_key:
            return state, _explain(process)
        return _push(state, TextPrompt(PromptPurpose.API_KEY, then=ExplainRequest(process)))

    raise ValueError(f"Unhandled action: {action}")


def _on_key(state: State, event: KeyPressed) -> Transition:
    binding = binding_for_key(event.key)
    if binding is not None and binding.action is Action.FORCE_QUIT:
        return state, [Quit()]

    view = state.view
    if view.modal_stack:
        return _on_modal_key(state, view.modal_stack[-1], event.key)

    if view.filter_active:
        consumed = _on_filter_key(state, event)
        if consumed is not None:
            return consumed

    if binding is None:
        return state, []
    if binding.requires_no_filter and view.filter_active:
        return state, []
    return _run_action(state, binding.action)


# ─── Other events ───


def _on_text_submitted(state: State, event: TextSubmitted) -> Transition:
    prompt = state.view.top_modal
    if not isinstance(prompt, TextPrompt):
        return state, []

    text = event.text.strip()
    state, effects = _pop(state)
    if not text:
        effects.append(SetStatus(_cancel_message(prompt), StatusLevel.WARNING))
        return state, effects

    if prompt.purpose is PromptPurpose.QUESTION:
        effects += [
            AskQuestion(text, state.processes),
            SetStatus("🤖 AI is analyzing your processes...", StatusLevel.WARNING),
        ]
        return state, effects

    state = _with_view(state, has_api_key=True)
    effects.append(SaveApiKey(text))
    if isinstance(prompt.then, ExplainRequest):
        effects += _explain(prompt.then.process)
    elif isinstance(prompt.then, AskRequest):
        state, opened = _push(state, TextPrompt(PromptPurpose.QUESTION))
        effects += opened
    return state, effects


def _on_row_selected(state: State, event: RowSelected) -> Transition:
    if state.view.modal_stack:
        return state, []
    return _clamped(_with_view(state, cursor=event.index)), []


def _on_snapshot_loaded(state: State, event: SnapshotLoaded) -> Transition:
    return _clamped(replace(state, processes=tuple(event.processes))), [Render()]


def _on_snapshot_failed(state: State, event: SnapshotFailed) -> Transition:
    return state, [SetStatus(f"✗ Error: {event.message}", StatusLevel.ERROR)]


def _on_kill_succeeded(state: State, event: KillSucceeded) -> Transition:
    process = event.process
    return state, [
        SetStatus(
            f"✓ Successfully killed process {process.pid} ({process.name})",
            StatusLevel.SUCCESS,
        ),
        Refresh(delay=KILL_REFRESH_DELAY),
    ]


def _on_kill_failed(state: State, event: KillFailed) -> Transition:
    message = f"✗ Failed to kill process {event.process.pid}: {event.message}"
    return state, [SetStatus(message, StatusLevel.ERROR)]


def _on_copy_succeeded(state: State, event: CopySucceeded) -> Transition:
    return state, [Notify("✓ Copied process to clipboard", StatusLevel.SUCCESS)]


def _on_copy_failed(state: State, event: CopyFailed) -> Transition:
    message = f"✗ Failed to copy: {event.message}"
    return state, [Notify(message, StatusLevel.ERROR, NOTIFY_ERROR_TIMEOUT)]


def _on_api_key_saved(state: State, event: ApiKeySaved) -> Transition:
    return state, [SetStatus(f"✓ API key saved to {event.path}", StatusLevel.SUCCESS)]


def _on_api_key_save_failed(state: State, event: ApiKeySaveFailed) -> Transition:
    return state, [SetStatus(f"✗ Failed to save API key: {event.message}", StatusLevel.ERROR)]


def _on_ai_answered(state: State, event: AIAnswered) -> Transition:
    state, effects = _push(state, ScrollableText(event.title, event.content))
    effects.append(SetStatus("✓ AI answer retrieved", StatusLevel.SUCCESS))
    return state, effects


def _on_ai_failed(state: State, event: AIFailed) -> Transition:
    return state, [SetStatus(f"✗ AI {event.kind} failed: {event.message}", StatusLevel.ERROR)]


_HANDLERS: dict[type, Callable[[State, Event], Transition]] = {
    KeyPressed: _on_key,
    TextSubmitted: _on_text_submitted,
    RowSelected: _on_row_selected,
    SnapshotLoaded: _on_snapshot_loaded,
    SnapshotFailed: _on_snapshot_failed,
    KillSucceeded: _on_kill_succeeded,
    KillFailed: _on_kill_failed,
    CopySucceeded: _on_copy_succeeded,
    CopyFailed: _on_copy_failed,
    ApiKeySaved: _on_api_key_saved,
    ApiKeySaveFailed: _on_api_key_save_failed,
    AIAnswered: _on_ai_answered,
    AIFailed: _on_ai_failed,
}


def reduce(state: State, event: Event) -> Transition:
    """Apply ``event`` to ``state``; never mutates ``state``."""
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unsupported event: {event!r}")
    return handler(state, event)


class Coordinator:
    """Owns the current State and feeds events through ``reduce``."""

    def __init__(self, view: ViewState | None = None, processes: Sequence[ProcessRecord] = ()) -> None:
        self._state = State(view=view or ViewState(), processes=tuple(processes))

    @property
    def state(self) -> State:
        return self._state

    @property
    def view(self) -> ViewState:
        return self._state.view

    def dispatch(self, event: Event) -> list[Effect]:
        self._state, effects = reduce(self._state, event)
        return effects

    def visible(self) -> Sequence[ProcessRecord]:
        return visible_processes(self._state)

    def selected(self) -> ProcessRecord | None:
        return selected_process(self._state)
