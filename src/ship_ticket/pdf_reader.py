"""PDF text-layer reading: pages of positioned text fragments via PyMuPDF."""
from __future__ import annotations

from pathlib import Path

import pymupdf

from .models import TextFragment


def page_fragments(page: pymupdf.Page, page_index: int = 0) -> list[TextFragment]:
    """Return one fragment per text span on *page*.

    PyMuPDF measures y downward from the top of the page. Fragments use the
    PDF convention instead (y grows upward), taken at the span's baseline,
    so a larger ``y`` is visually higher.
    """
    page_height = page.rect.height
    fragments = []
    for block in page.get_text("dict")["blocks"]:
        # Image blocks (type 1) carry no lines
        for line in block.get("lines", []):
            for span in line["spans"]:
                text = span["text"]
                if not text.strip():
                    continue
                x0, y0, x1, y1 = span["bbox"]
                origin_x, origin_y = span["origin"]
                fragments.append(TextFragment(
                    content=text,
                    x=origin_x,
                    y=page_height - origin_y,
                    width=x1 - x0,
                    height=y1 - y0,
                    page=page_index,
                ))
    return fragments


def read_pdf_fragments(source: Path | str | bytes) -> list[list[TextFragment]]:
    """Read every page of a PDF into fragment lists, in page order.

    Args:
        source: Path to a PDF file, or the PDF's bytes.

    Returns:
        One list of fragments per page (empty for pages without text).
    """
    if isinstance(source, (bytes, bytearray)):
        doc = pymupdf.open(stream=bytes(source), filetype="pdf")
    else:
        doc = pymupdf.open(Path(source))

    try:
        return [page_fragments(page, i) for i, page in enumerate(doc)]
    finally:
        doc.close()
