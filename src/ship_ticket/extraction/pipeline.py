"""Extraction driver: turns a document's positioned fragments into line items.

Orchestrates the full extraction flow for one document:
1. Order each page's fragments into reading order
2. Assemble lines (and note tabular line candidates per page)
3. Locate the header and map its fragments to columns
4. Extract rows positionally; fall back to the lexical path if that fails
5. Drop invoice summary rows via the stoplist
6. Pull estimate metadata from the assembled text

The result is tagged with the path that produced it. Nothing here raises:
a crash while processing a document is returned as a FAILED result.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Sequence

from ..config import Config
from ..models import (
    DEFAULT_LINE_TOLERANCE,
    DocumentMetadata,
    ExtractionPath,
    ExtractionResult,
    Line,
    RowRecord,
    TextFragment,
)
from .classifier import is_table_row, split_columns
from .geometry import assemble_lines, order_fragments
from .header import locate_header, map_columns
from .metadata import extract_metadata
from .rows import apply_stoplist, extract_lexical_rows, extract_positional_rows

logger = logging.getLogger(__name__)

MIN_CANDIDATE_PARTS = 3


@dataclass(frozen=True)
class PageText:
    """Lines and derived text of one page."""
    page: int
    lines: tuple[Line, ...]
    table_candidates: tuple[tuple[str, ...], ...]

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)

    @property
    def fragments(self) -> list[TextFragment]:
        return [f for line in self.lines for f in line.fragments]


def extract_page(
    fragments: Sequence[TextFragment],
    page: int = 0,
    *,
    tolerance: float = DEFAULT_LINE_TOLERANCE,
) -> PageText:
    """Order and assemble one page, collecting tabular line candidates."""
    tagged = [f if f.page == page else dataclasses.replace(f, page=page) for f in fragments]
    lines = assemble_lines(order_fragments(tagged, tolerance=tolerance), tolerance=tolerance)

    candidates = []
    for line in lines:
        text = line.text
        if is_table_row(text):
            parts = split_columns(text)
            if len(parts) >= MIN_CANDIDATE_PARTS:
                candidates.append(tuple(parts))

    return PageText(page=page, lines=tuple(lines), table_candidates=tuple(candidates))


def _positional_rows(fragments: list[TextFragment], config: Config) -> list[RowRecord]:
    header_items, header_y = locate_header(
        fragments, target_columns=config.target_columns, tolerance=config.line_tolerance,
    )
    if header_y is None:
        logger.warning("No header line found; falling back to lexical extraction")
        return []

    columns = map_columns(
        header_items, target_columns=config.target_columns, padding=config.column_padding,
    )
    rows = extract_positional_rows(
        fragments,
        header_y,
        columns,
        header_page=header_items[0].page,
        tolerance=config.line_tolerance,
    )
    rows = apply_stoplist(rows, config.stoplist)
    if not rows:
        logger.warning("Header found but no rows extracted; falling back to lexical extraction")
    return rows


def _extract(fragments_by_page: Sequence[Sequence[TextFragment]], config: Config) -> ExtractionResult:
    pages = [
        extract_page(fragments, i, tolerance=config.line_tolerance)
        for i, fragments in enumerate(fragments_by_page)
    ]
    logger.debug("Assembled %d pages, %d lines", len(pages), sum(len(p.lines) for p in pages))

    text = "\n\n".join(p.text for p in pages)
    tables = tuple(p.table_candidates for p in pages if p.table_candidates)
    metadata = extract_metadata(text)
    fragments = [f for p in pages for f in p.fragments]

    rows = _positional_rows(fragments, config)
    if rows:
        path = ExtractionPath.POSITIONAL
    else:
        rows = apply_stoplist(extract_lexical_rows(text), config.stoplist)
        if rows:
            path = ExtractionPath.LEXICAL
        else:
            logger.warning("No structured rows found; returning raw text")
            path = ExtractionPath.RAW_TEXT

    logger.info("Extracted %d rows via %s path", len(rows), path.value)
    return ExtractionResult(
        path=path,
        rows=tuple(rows),
        metadata=metadata,
        text=text,
        tables=tables,
    )


def extract(
    fragments_by_page: Sequence[Sequence[TextFragment]],
    config: Config | None = None,
) -> ExtractionResult:
    """Extract line items and metadata from one document.

    Pure function of its input: no I/O, no state kept between calls.

    Args:
        fragments_by_page: For each page, its text fragments in any order.
        config: Heuristic thresholds, target columns and stoplist.
            Defaults to ``Config()``.

    Returns:
        An ExtractionResult tagged with the path that produced it. Any
        exception raised while processing becomes a FAILED result carrying
        the error message.
    """
    if config is None:
        config = Config()
    try:
        return _extract(fragments_by_page, config)
    except Exception as exc:
        logger.warning("Extraction crashed: %s: %s", type(exc).__name__, exc)
        return ExtractionResult(
            path=ExtractionPath.FAILED,
            metadata=DocumentMetadata(),
            error=f"{type(exc).__name__}: {exc}",
        )
