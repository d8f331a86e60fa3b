import json
from pathlib import Path
from typing import Iterator, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import FileResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from config import Settings
from exporters.base import UnsupportedFormatError
from exporters.share import SharePayload
from llm.client import LanguageModelClient
from llm.conversation import ConversationBusyError, ConversationNotStartedError
from models import SessionData
from server.workspace import (
    GoalRemovalError,
    LanguageModel,
    MainTab,
    ResultTab,
    SessionWorkspace,
    WorkspaceStore,
)
from utils.logging_utils import configure_logging, get_logger

logger = get_logger(__name__)

VERSION = "0.1.0"
STATIC_DIR = Path(__file__).parent / "static"


class DraftRequest(BaseModel):
    text: str


class FollowUpRequest(BaseModel):
    message: str


class TabsRequest(BaseModel):
    main_tab: Optional[MainTab] = None
    active_tab: Optional[ResultTab] = None


def _sse(obj: dict) -> str:
    return f"data: {json.dumps(obj)}\n\n"


def _ideas_events(workspace: SessionWorkspace, chunks: Iterator[str]) -> Iterator[str]:
    for text in chunks:
        yield _sse({"type": "chunk", "text": text})
    if workspace.conversation.error:
        yield _sse({"type": "error", "message": workspace.conversation.error})
    yield _sse({"type": "done", "workspace": workspace.snapshot()})


def get_workspace(workspace_id: str, request: Request) -> SessionWorkspace:
    workspace = request.app.state.store.get(workspace_id)
    if workspace is None:
        raise HTTPException(404, detail="Unknown workspace")
    return workspace


def create_app(settings: Optional[Settings] = None, client: Optional[LanguageModel] = None) -> FastAPI:
    """
    Build the web app around one language model client.

    The client is created here from settings unless one is passed in, which is
    how tests substitute a fake.
    """
    if settings is None:
        from config import settings as default_settings

        settings = default_settings
    configure_logging(settings.log_level)
    if client is None:
        client = LanguageModelClient(api_key=settings.openai_api_key, timeout=settings.openai_timeout)

    app = FastAPI(title="RBT Session Note Assistant", version=VERSION)
    app.state.settings = settings
    app.state.store = WorkspaceStore(client, settings)
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    logger.info("App ready (note_model=%s, ideas_model=%s)", settings.note_model, settings.ideas_model)

    # --- Page & health ---

    @app.get("/", include_in_schema=False)
    async def index():
        return FileResponse(STATIC_DIR / "index.html")

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": VERSION}

    # --- Workspace & form ---

    @app.post("/api/workspaces", status_code=201)
    async def create_workspace(request: Request):
        return request.app.state.store.create().snapshot()

    @app.get("/api/workspaces/{workspace_id}")
    async def read_workspace(workspace: SessionWorkspace = Depends(get_workspace)):
        return workspace.snapshot()

    @app.put("/api/workspaces/{workspace_id}/session")
    async def replace_session(body: SessionData, workspace: SessionWorkspace = Depends(get_workspace)):
        workspace.replace_session(body)
        return workspace.snapshot()

    @app.post("/api/workspaces/{workspace_id}/session/example")
    async def load_example(workspace: SessionWorkspace = Depends(get_workspace)):
        workspace.load_example()
        return workspace.snapshot()

    @app.post("/api/workspaces/{workspace_id}/session/reset")
    async def reset_form(workspace: SessionWorkspace = Depends(get_workspace)):
        workspace.reset_form()
        return workspace.snapshot()

    @app.post("/api/workspaces/{workspace_id}/goals")
    async def add_goal(workspace: SessionWorkspace = Depends(get_workspace)):
        workspace.add_goal()
        return workspace.snapshot()

    @app.delete("/api/workspaces/{workspace_id}/goals/{index}")
    async def remove_goal(index: int, workspace: SessionWorkspace = Depends(get_workspace)):
        try:
            workspace.remove_goal(index)
        except GoalRemovalError as e:
            raise HTTPException(400, detail=str(e))
        return workspace.snapshot()

    @app.put("/api/workspaces/{workspace_id}/tabs")
    async def select_tabs(body: TabsRequest, workspace: SessionWorkspace = Depends(get_workspace)):
        try:
            workspace.select_tabs(main_tab=body.main_tab, active_tab=body.active_tab)
        except ValueError as e:
            raise HTTPException(409, detail=str(e))
        return workspace.snapshot()

    # --- Note ---

    @app.post("/api/workspaces/{workspace_id}/note")
    def submit_note(workspace: SessionWorkspace = Depends(get_workspace)):
        if not workspace.submit():
            raise HTTPException(422, detail={"field_errors": workspace.field_errors})
        return workspace.snapshot()

    @app.post("/api/workspaces/{workspace_id}/note/edit")
    async def begin_edit(workspace: SessionWorkspace = Depends(get_workspace)):
        workspace.begin_edit()
        return workspace.snapshot()

    @app.put("/api/workspaces/{workspace_id}/note/draft")
    async def update_draft(body: DraftRequest, workspace: SessionWorkspace = Depends(get_workspace)):
        try:
            workspace.update_draft(body.text)
        except ValueError as e:
            raise HTTPException(409, detail=str(e))
        return workspace.snapshot()

    @app.post("/api/workspaces/{workspace_id}/note/save")
    async def save_edit(workspace: SessionWorkspace = Depends(get_workspace)):
        workspace.save_edit()
        return workspace.snapshot()

    @app.post("/api/workspaces/{workspace_id}/note/cancel")
    async def cancel_edit(workspace: SessionWorkspace = Depends(get_workspace)):
        workspace.cancel_edit()
        return workspace.snapshot()

    @app.delete("/api/workspaces/{workspace_id}/note/error")
    async def dismiss_note_error(workspace: SessionWorkspace = Depends(get_workspace)):
        workspace.dismiss_note_error()
        return workspace.snapshot()

    # --- Ideas ---

    @app.post("/api/workspaces/{workspace_id}/ideas")
    def start_ideas(workspace: SessionWorkspace = Depends(get_workspace)):
        chunks = workspace.start_ideas()
        return StreamingResponse(_ideas_events(workspace, chunks), media_type="text/event-stream")

    @app.post("/api/workspaces/{workspace_id}/ideas/messages")
    def send_follow_up(body: FollowUpRequest, workspace: SessionWorkspace = Depends(get_workspace)):
        message = body.message.strip()
        if not message:
            raise HTTPException(400, detail="Message must not be empty")
        try:
            chunks = workspace.send_follow_up(message)
        except (ConversationNotStartedError, ConversationBusyError) as e:
            raise HTTPException(409, detail=str(e))
        return StreamingResponse(_ideas_events(workspace, chunks), media_type="text/event-stream")

    @app.delete("/api/workspaces/{workspace_id}/ideas/error")
    async def dismiss_ideas_error(workspace: SessionWorkspace = Depends(get_workspace)):
        workspace.dismiss_ideas_error()
        return workspace.snapshot()

    # --- Export & share ---

    @app.get("/api/workspaces/{workspace_id}/export/{fmt}")
    def export_note(fmt: str, workspace: SessionWorkspace = Depends(get_workspace)):
        if not workspace.note.current_text:
            raise HTTPException(400, detail="There is no note to export")
        try:
            exported = workspace.export(fmt)
        except UnsupportedFormatError as e:
            raise HTTPException(400, detail=str(e))
        if exported is None:
            raise HTTPException(500, detail=workspace.export_error)
        return Response(
            content=exported.content,
            media_type=exported.media_type,
            headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
        )

    @app.delete("/api/workspaces/{workspace_id}/export/error")
    async def dismiss_export_error(workspace: SessionWorkspace = Depends(get_workspace)):
        workspace.dismiss_export_error()
        return workspace.snapshot()

    @app.get("/api/workspaces/{workspace_id}/share/note", response_model=SharePayload)
    async def share_note(workspace: SessionWorkspace = Depends(get_workspace)):
        return workspace.note_share()

    @app.get("/api/workspaces/{workspace_id}/share/ideas", response_model=SharePayload)
    async def share_ideas(workspace: SessionWorkspace = Depends(get_workspace)):
        return workspace.ideas_share()

    return app
