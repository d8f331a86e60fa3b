import re
from abc import ABC, abstractmethod
from datetime import date

from pydantic import BaseModel

from models import SessionData

MISSING_FIELD = "N/A"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9]")
# Dates keep their hyphens so ISO dates pass through unchanged.
_UNSAFE_DATE_CHARS = re.compile(r"[^a-zA-Z0-9-]")


class NoteMetadata(BaseModel):
    client_name: str = ""
    session_date: str = ""
    start_time: str = ""
    end_time: str = ""

    @classmethod
    def from_session(cls, data: SessionData) -> "NoteMetadata":
        return cls(
            client_name=data.client_name,
            session_date=data.session_date,
            start_time=data.start_time,
            end_time=data.end_time,
        )

    @property
    def client_line(self) -> str:
        return f"Client: {self.client_name or MISSING_FIELD}"

    @property
    def date_line(self) -> str:
        return f"Date: {self.session_date or MISSING_FIELD}"

    @property
    def time_line(self) -> str:
        return f"Time: {self.start_time or MISSING_FIELD} - {self.end_time or MISSING_FIELD}"

    def filename_base(self) -> str:
        safe_client = _UNSAFE_FILENAME_CHARS.sub("_", self.client_name or "Client")
        safe_date = _UNSAFE_DATE_CHARS.sub("_", self.session_date or date.today().isoformat())
        return f"RBT_Note_{safe_client}_{safe_date}"


class ExportedFile(BaseModel):
    filename: str
    media_type: str
    content: bytes


class ExportError(Exception):
    def __init__(self, fmt: str, message: str):
        super().__init__(message)
        self.fmt = fmt


class UnsupportedFormatError(ValueError):
    pass


class NoteExporter(ABC):
    fmt: str
    extension: str
    media_type: str

    def export(self, note: str, metadata: NoteMetadata) -> ExportedFile:
        """Render the note; any rendering failure is raised as ExportError."""
        try:
            content = self.render(note, metadata)
        except Exception as exc:
            raise ExportError(self.fmt, f"Failed to download as {self.fmt}: {exc}") from exc
        return ExportedFile(
            filename=f"{metadata.filename_base()}.{self.extension}",
            media_type=self.media_type,
            content=content,
        )

    @abstractmethod
    def render(self, note: str, metadata: NoteMetadata) -> bytes:
        """Return the file body for the note with its session header."""
        raise NotImplementedError
