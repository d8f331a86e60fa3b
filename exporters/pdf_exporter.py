from fpdf import FPDF

from exporters.base import NoteExporter, NoteMetadata

# Layout in millimetres on an A4 page.
LEFT = 15
HEADER_Y = 20
DATE_Y = 30
TIME_Y = 38
BODY_Y = 50
BODY_WIDTH = 180
BODY_LINE_HEIGHT = 6
BOTTOM_MARGIN = 15

_LATIN1_REPLACEMENTS = {
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "–": "-",
    "—": "-",
    "…": "...",
    "•": "-",
    " ": " ",
}


def to_latin1_safe(text: str) -> str:
    """The core Helvetica font only covers Latin-1."""
    for src, dst in _LATIN1_REPLACEMENTS.items():
        text = text.replace(src, dst)
    return text.encode("latin-1", "replace").decode("latin-1")


def build_note_pdf(note: str, metadata: NoteMetadata) -> FPDF:
    pdf = FPDF(format="A4", unit="mm")
    pdf.set_auto_page_break(auto=True, margin=BOTTOM_MARGIN)
    pdf.set_margins(LEFT, HEADER_Y)
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 14)
    pdf.text(LEFT, HEADER_Y, to_latin1_safe(metadata.client_line))

    pdf.set_font("Helvetica", "", 12)
    pdf.text(LEFT, DATE_Y, to_latin1_safe(metadata.date_line))
    pdf.text(LEFT, TIME_Y, to_latin1_safe(metadata.time_line))

    # multi_cell wraps to the body width and breaks onto new pages as needed.
    pdf.set_xy(LEFT, BODY_Y)
    pdf.multi_cell(BODY_WIDTH, BODY_LINE_HEIGHT, to_latin1_safe(note))
    return pdf


class PdfExporter(NoteExporter):
    fmt = "pdf"
    extension = "pdf"
    media_type = "application/pdf"

    def render(self, note: str, metadata: NoteMetadata) -> bytes:
        return bytes(build_note_pdf(note, metadata).output())
