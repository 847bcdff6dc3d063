"""PDF text extraction and heuristic section segmentation.

``extract_pdf`` is a thin pass-through over ``pypdf``.  ``segment_pdf_text``
splits the extracted text into sections using upper-case lines as titles.
The heuristic is deliberately simple: PDFs with inconsistent casing or OCR
noise will be mis-segmented, and downstream topic classification depends on
its exact behaviour, so it is kept as-is.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any

import pypdf

from docpipe.errors import PdfParseError
from docpipe.scraper.models import PdfExtraction, PdfSection

_MIN_TITLE_LEN = 4
_MAX_TITLE_LEN = 49


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def _document_info(reader: pypdf.PdfReader) -> dict[str, Any]:
    info = reader.metadata
    if not info:
        return {}
    return {str(key).lstrip("/"): str(value) for key, value in info.items()}


def extract_pdf(data: bytes) -> PdfExtraction:
    """Return the text, page count and document info of the PDF in *data*.

    Raises:
        PdfParseError: If *data* is not a readable PDF.
    """
    try:
        reader = pypdf.PdfReader(io.BytesIO(data))
        pages: list[str] = []
        for page in reader.pages:
            text = page.extract_text() or ""
            if text.strip():
                pages.append(text)
        return PdfExtraction(
            text="\n\n".join(pages),
            page_count=len(reader.pages),
            metadata={"version": reader.pdf_header, "encrypted": reader.is_encrypted},
            info=_document_info(reader),
        )
    except Exception as exc:  # noqa: BLE001 - pypdf raises arbitrary types on damaged files
        raise PdfParseError(f"Not a readable PDF: {exc}") from exc


def extract_pdf_file(path: str | Path) -> PdfExtraction:
    """Read *path* from disk and delegate to :func:`extract_pdf`.

    Raises:
        FileNotFoundError: If *path* does not exist.
        PdfParseError: If the file is not a readable PDF.
    """
    pdf_path = Path(path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF not found: {pdf_path}")
    return extract_pdf(pdf_path.read_bytes())


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------

def is_section_title(line: str) -> bool:
    """An already-trimmed line is a title if it is upper-case and 4-49 chars."""
    return line == line.upper() and _MIN_TITLE_LEN <= len(line) <= _MAX_TITLE_LEN


def segment_pdf_text(text: str) -> list[PdfSection]:
    """Split *text* into sections headed by upper-case lines.

    A section is only emitted once it holds at least one content line, so a
    title followed directly by another title is replaced by the later one.
    """
    sections: list[PdfSection] = []
    current = PdfSection(title="")

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        if is_section_title(line):
            if current.content:
                sections.append(current)
            current = PdfSection(title=line)
        else:
            current.content.append(line)

    if current.content:
        sections.append(current)
    return sections
