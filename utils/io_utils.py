import json
from pathlib import Path
from typing import Optional

from config import settings
from exporters.base import ExportedFile
from models import SessionData


def ensure_output_dir(output_dir: Optional[Path] = None) -> Path:
    base = Path(output_dir or settings.output_dir)
    base.mkdir(parents=True, exist_ok=True)
    return base


def load_session(session_path: Path) -> SessionData:
    with open(session_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return SessionData(**data)


def save_export(exported: ExportedFile, output_dir: Optional[Path] = None) -> Path:
    path = ensure_output_dir(output_dir) / exported.filename
    with open(path, "wb") as f:
        f.write(exported.content)
    return path


def save_failure_output(
    session: SessionData, error_message: str, output_dir: Optional[Path] = None
) -> Path:
    base = ensure_output_dir(output_dir)
    failure_path = base / "note_failure.txt"
    with open(failure_path, "w", encoding="utf-8") as f:
        f.write(f"Note generation failed: {error_message}\n\n")
        f.write("Session data:\n")
        json.dump(session.model_dump(), f, indent=2, ensure_ascii=False)
    return failure_path
