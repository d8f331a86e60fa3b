import threading
import uuid
from collections import OrderedDict
from typing import Dict, Iterator, Literal, Optional, Protocol

from config import Settings
from exporters.base import ExportedFile, ExportError, NoteMetadata
from exporters.registry import get_exporter
from exporters.share import SharePayload, conversation_share_payload, note_share_payload
from llm.conversation import ChatFactory, IdeasConversation
from llm.note_generator import ContentGenerator, NoteGenerationError, generate_note
from models import GeneratedNote, Goal, SessionData, blank_session, example_session, validate_session
from utils.logging_utils import get_logger

logger = get_logger(__name__)

MainTab = Literal["form", "results"]
ResultTab = Literal["note", "ideas"]


class LanguageModel(ContentGenerator, ChatFactory, Protocol):
    """One-shot generation plus chat handles, as provided by LanguageModelClient."""


class GoalRemovalError(ValueError):
    pass


class SessionWorkspace:
    """
    Everything one page instance is working on: the form, the note and the ideas chat.

    Route handlers call into this object and render `snapshot()`. Model
    failures never escape; they are stored as messages the user can dismiss.
    """

    def __init__(self, client: LanguageModel, settings: Settings, workspace_id: Optional[str] = None):
        self.id = workspace_id or uuid.uuid4().hex
        self._client = client
        self._settings = settings

        self.session_data: SessionData = blank_session()
        self.field_errors: Dict[str, str] = {}

        self.note = GeneratedNote()
        self.note_loading = False
        self.note_error: Optional[str] = None
        self._note_request = 0

        self.conversation = IdeasConversation(client, settings.ideas_model)

        self.export_error: Optional[str] = None

        self.main_tab: MainTab = "form"
        self.active_tab: ResultTab = "note"
        self.results_available = False

    # --- form -----------------------------------------------------------------

    def replace_session(self, data: SessionData) -> None:
        # Fields the user has just touched no longer show stale errors.
        previous = self.session_data
        for name in list(self.field_errors):
            if name.startswith("goal_"):
                continue
            if getattr(previous, name, None) != getattr(data, name, None):
                del self.field_errors[name]
        self.session_data = data

    def add_goal(self) -> None:
        self.session_data.goals.append(Goal())

    def remove_goal(self, index: int) -> None:
        goals = self.session_data.goals
        if len(goals) <= 1:
            raise GoalRemovalError("At least one goal is required.")
        if not 0 <= index < len(goals):
            raise GoalRemovalError(f"No goal at position {index + 1}.")
        del goals[index]
        self.field_errors = {k: v for k, v in self.field_errors.items() if not k.startswith("goal_")}

    def load_example(self) -> None:
        self.session_data = example_session()
        self.field_errors = {}

    def reset_form(self) -> None:
        self.session_data = blank_session()
        self.field_errors = {}

    def validate(self) -> bool:
        self.field_errors = validate_session(self.session_data)
        return not self.field_errors

    def submit(self) -> bool:
        """Validate the form and generate the note. Returns False when validation failed."""
        if not self.validate():
            logger.info("Workspace %s: form invalid (%s)", self.id, ", ".join(sorted(self.field_errors)))
            return False
        self.generate_note()
        return True

    # --- note -----------------------------------------------------------------

    def generate_note(self) -> None:
        self._note_request += 1
        request_id = self._note_request

        self.note_loading = True
        self.note_error = None
        self.note.replace("")
        self.conversation.reset()

        data = self.session_data.model_copy(deep=True)
        try:
            text = generate_note(data, self._client, self._settings.note_model)
        except NoteGenerationError as exc:
            if request_id != self._note_request:
                logger.info("Workspace %s: dropping failure of superseded request %s", self.id, request_id)
                return
            self.note_error = str(exc)
        else:
            if request_id != self._note_request:
                logger.info("Workspace %s: dropping result of superseded request %s", self.id, request_id)
                return
            self.note.replace(text)
        finally:
            if request_id == self._note_request:
                self.note_loading = False

        self.active_tab = "note"
        self.main_tab = "results"
        self.results_available = True

    def begin_edit(self) -> None:
        self.note.begin_edit()

    def update_draft(self, text: str) -> None:
        self.note.update_draft(text)

    def save_edit(self) -> None:
        self.note.save()

    def cancel_edit(self) -> None:
        self.note.cancel()

    def dismiss_note_error(self) -> None:
        self.note_error = None

    # --- ideas ----------------------------------------------------------------

    def start_ideas(self) -> Iterator[str]:
        self.active_tab = "ideas"
        self.main_tab = "results"
        self.results_available = True
        return self.conversation.start(self.session_data.model_copy(deep=True))

    def send_follow_up(self, message: str) -> Iterator[str]:
        return self.conversation.send_follow_up(message)

    def dismiss_ideas_error(self) -> None:
        self.conversation.error = None

    # --- export & share -------------------------------------------------------

    def metadata(self) -> NoteMetadata:
        return NoteMetadata.from_session(self.session_data)

    def export(self, fmt: str) -> Optional[ExportedFile]:
        """Render the note in `fmt`; a rendering failure is recorded and None returned."""
        exporter = get_exporter(fmt)
        self.export_error = None
        try:
            return exporter.export(self.note.current_text, self.metadata())
        except ExportError as exc:
            logger.exception("Workspace %s: export as %s failed", self.id, exc.fmt)
            self.export_error = str(exc)
            return None

    def dismiss_export_error(self) -> None:
        self.export_error = None

    def note_share(self) -> SharePayload:
        return note_share_payload(self.note.current_text, self.session_data.client_name)

    def ideas_share(self) -> SharePayload:
        return conversation_share_payload(self.conversation.format_transcript())

    # --- navigation -----------------------------------------------------------

    def select_tabs(self, main_tab: Optional[MainTab] = None, active_tab: Optional[ResultTab] = None) -> None:
        if main_tab == "results" and not self.results_available:
            raise ValueError("No results to show yet.")
        if main_tab is not None:
            self.main_tab = main_tab
        if active_tab is not None:
            self.active_tab = active_tab

    def snapshot(self) -> dict:
        return {
            "workspace_id": self.id,
            "session": self.session_data.model_dump(),
            "field_errors": dict(self.field_errors),
            "note": {
                "text": self.note.committed,
                "draft": self.note.draft,
                "editing": self.note.editing,
                "loading": self.note_loading,
                "error": self.note_error,
            },
            "ideas": {
                "state": self.conversation.state.value,
                "open": self.conversation.is_open,
                "messages": [message.model_dump() for message in self.conversation.transcript],
                "loading": self.conversation.is_streaming,
                "error": self.conversation.error,
            },
            "export_error": self.export_error,
            "main_tab": self.main_tab,
            "active_tab": self.active_tab,
            "results_available": self.results_available,
        }


class WorkspaceStore:
    """In-memory workspaces by id, least recently used evicted past `max_workspaces`. Nothing survives a restart."""

    def __init__(self, client: LanguageModel, settings: Settings):
        self._client = client
        self._settings = settings
        self._max_workspaces = settings.max_workspaces
        self._workspaces: "OrderedDict[str, SessionWorkspace]" = OrderedDict()
        self._lock = threading.Lock()

    def create(self) -> SessionWorkspace:
        workspace = SessionWorkspace(self._client, self._settings)
        with self._lock:
            self._workspaces[workspace.id] = workspace
            while len(self._workspaces) > self._max_workspaces:
                evicted, _ = self._workspaces.popitem(last=False)
                logger.info("Evicted workspace %s", evicted)
        logger.info("Created workspace %s", workspace.id)
        return workspace

    def get(self, workspace_id: str) -> Optional[SessionWorkspace]:
        with self._lock:
            workspace = self._workspaces.get(workspace_id)
            if workspace is not None:
                self._workspaces.move_to_end(workspace_id)
            return workspace

    def __len__(self) -> int:
        with self._lock:
            return len(self._workspaces)
