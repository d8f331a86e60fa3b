from pathlib import Path
from typing import Optional

import typer
import uvicorn
from pydantic import ValidationError

from config import settings
from exporters.base import ExportError, NoteMetadata, UnsupportedFormatError
from exporters.registry import get_exporter
from llm.client import LanguageModelClient
from llm.note_generator import NoteGenerationError, generate_note
from models import validate_session
from utils.io_utils import load_session, save_export, save_failure_output
from utils.logging_utils import configure_logging, get_logger

logger = get_logger(__name__)

app = typer.Typer(help="RBT session note assistant.")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address; defaults to HOST."),
    port: Optional[int] = typer.Option(None, help="Port; defaults to PORT."),
    reload: bool = typer.Option(False, help="Reload on code changes (development only)."),
):
    """
    Run the web app.
    """
    configure_logging(settings.log_level)
    bind_host = host or settings.host
    bind_port = port or settings.port
    typer.echo(f"[info] serving on http://{bind_host}:{bind_port}")
    uvicorn.run("server.main:app", host=bind_host, port=bind_port, reload=reload)


@app.command("generate-note")
def generate_note_command(
    session_path: Path = typer.Option(..., exists=True, file_okay=True, dir_okay=False, readable=True),
    fmt: str = typer.Option("txt", "--format", help='Export format: "txt", "docx" or "pdf".'),
    output_dir: Optional[Path] = typer.Option(None, help="Directory for the exported note; defaults to OUTPUT_DIR."),
    skip_validation: bool = typer.Option(False, help="Send the session even if required fields are missing."),
):
    """
    Generate a note for a session JSON file and write it in the chosen format.
    """
    configure_logging(settings.log_level)
    try:
        exporter = get_exporter(fmt)
    except UnsupportedFormatError as exc:
        raise typer.BadParameter(str(exc))

    try:
        session = load_session(session_path)
    except (ValueError, ValidationError) as exc:
        logger.error("Could not read session file %s: %s", session_path, exc)
        raise typer.Exit(code=1)

    if not skip_validation:
        errors = validate_session(session)
        if errors:
            for field, message in errors.items():
                typer.echo(f"[error] {field}: {message}", err=True)
            raise typer.Exit(code=2)

    typer.echo(f"[info] client={session.client_name!r} goals={len(session.goals)} format={exporter.fmt}")

    client = LanguageModelClient(api_key=settings.openai_api_key, timeout=settings.openai_timeout)
    try:
        note = generate_note(session, client, settings.note_model)
    except NoteGenerationError as exc:
        failure_path = save_failure_output(session, str(exc), output_dir)
        typer.echo(f"Note generation failed: {exc} See: {failure_path}", err=True)
        raise typer.Exit(code=1)

    try:
        exported = exporter.export(note, NoteMetadata.from_session(session))
    except ExportError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    path = save_export(exported, output_dir)
    typer.echo(f"Note written to: {path}")


if __name__ == "__main__":
    app()
