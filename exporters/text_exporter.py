from exporters.base import NoteExporter, NoteMetadata


def render_text(note: str, metadata: NoteMetadata) -> str:
    header = f"{metadata.client_line}\n{metadata.date_line}\n{metadata.time_line}\n\n"
    return header + note


class TextExporter(NoteExporter):
    fmt = "txt"
    extension = "txt"
    media_type = "text/plain; charset=utf-8"

    def render(self, note: str, metadata: NoteMetadata) -> bytes:
        return render_text(note, metadata).encode("utf-8")
