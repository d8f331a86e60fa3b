import io

from docx import Document
from docx.shared import Pt

from exporters.base import NoteExporter, NoteMetadata

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def build_note_document(note: str, metadata: NoteMetadata):
    """Client heading, date and time lines, then one paragraph per non-blank note line."""
    doc = Document()

    heading = doc.add_paragraph()
    run = heading.add_run(metadata.client_line)
    run.bold = True
    run.font.size = Pt(14)
    heading.paragraph_format.space_after = Pt(10)

    date_para = doc.add_paragraph()
    date_para.add_run(metadata.date_line).font.size = Pt(12)

    time_para = doc.add_paragraph()
    time_para.add_run(metadata.time_line).font.size = Pt(12)
    time_para.paragraph_format.space_after = Pt(20)

    for line in note.split("\n"):
        if not line.strip():
            continue
        para = doc.add_paragraph(line)
        para.paragraph_format.space_after = Pt(7.5)

    return doc


class DocxExporter(NoteExporter):
    fmt = "docx"
    extension = "docx"
    media_type = DOCX_MEDIA_TYPE

    def render(self, note: str, metadata: NoteMetadata) -> bytes:
        buf = io.BytesIO()
        build_note_document(note, metadata).save(buf)
        return buf.getvalue()
