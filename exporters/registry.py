from typing import Dict

from exporters.base import NoteExporter, UnsupportedFormatError
from exporters.docx_exporter import DocxExporter
from exporters.pdf_exporter import PdfExporter
from exporters.text_exporter import TextExporter

EXPORTERS: Dict[str, NoteExporter] = {
    exporter.fmt: exporter for exporter in (TextExporter(), DocxExporter(), PdfExporter())
}


def get_exporter(fmt: str) -> NoteExporter:
    exporter = EXPORTERS.get(fmt.lower())
    if exporter is None:
        raise UnsupportedFormatError(f"Format must be one of: {', '.join(EXPORTERS)}.")
    return exporter
