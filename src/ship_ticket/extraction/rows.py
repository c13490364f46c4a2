"""Row extraction: positional (column x-ranges) and lexical (text-only) paths.

The positional path assigns fragments under the header to columns by x and
groups them into rows by rounded y. The lexical path is the fallback for
documents whose header could not be mapped: it splits assembled text lines
on column gaps and reads fields by position.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Iterable, Sequence

from ..models import (
    COL_DESCRIPTION,
    COL_NUMBER,
    COL_PRODUCT,
    COL_QTY,
    DEFAULT_LINE_TOLERANCE,
    DEFAULT_STOPLIST,
    Column,
    RowRecord,
    TextFragment,
)
from .classifier import split_columns

logger = logging.getLogger(__name__)

_LEADING_DIGITS_RE = re.compile(r"^(\d+)")
_ROW_NUMBER_RE = re.compile(r"^\d+\.?$")

MIN_POPULATED_FIELDS = 2
MIN_LEXICAL_PARTS = 3


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def normalize_qty(value: str) -> str:
    """Reduce a quantity cell to its leading digit run (``"12 pcs"`` -> ``"12"``)."""
    m = _LEADING_DIGITS_RE.match(value)
    return m.group(1) if m else value


def dedupe_rows(rows: Iterable[RowRecord]) -> list[RowRecord]:
    """Keep the first row for each ``(#, product, description)`` key."""
    seen: set[tuple[str, str, str]] = set()
    out: list[RowRecord] = []
    for row in rows:
        key = row.dedup_key()
        if key in seen:
            continue
        seen.add(key)
        out.append(row)
    return out


def apply_stoplist(rows: Iterable[RowRecord], stoplist: Sequence[str] = DEFAULT_STOPLIST) -> list[RowRecord]:
    """Drop invoice summary rows whose product field contains a stoplist entry."""
    kept = []
    for row in rows:
        product = row.get(COL_PRODUCT)
        if any(word in product for word in stoplist):
            logger.debug("Dropping summary row %r", product)
            continue
        kept.append(row)
    return kept


def _group_rows(
    fragments: Sequence[TextFragment],
    header_y: float,
    header_page: int,
    tolerance: float,
) -> list[list[TextFragment]]:
    """Group fragments under the header by ``(page, round(y))``, top to bottom."""
    groups: dict[tuple[int, int], list[TextFragment]] = {}
    for frag in fragments:
        if frag.page < header_page:
            continue
        if frag.page == header_page and frag.y >= header_y - tolerance:
            continue
        groups.setdefault((frag.page, _round_half_up(frag.y)), []).append(frag)

    # Page order first, then descending y (visually top row first)
    ordered_keys = sorted(groups, key=lambda k: (k[0], -k[1]))
    return [groups[k] for k in ordered_keys]


def _assign_to_columns(row: Sequence[TextFragment], columns: Sequence[Column]) -> dict[str, str]:
    cells: dict[str, str] = {}
    for frag in row:
        for column in columns:
            if column.contains(frag.x):
                if cells.get(column.name):
                    cells[column.name] += " " + frag.content
                else:
                    cells[column.name] = frag.content
                break
    return cells


def extract_positional_rows(
    fragments: Sequence[TextFragment],
    header_y: float,
    columns: Sequence[Column],
    *,
    header_page: int = 0,
    tolerance: float = DEFAULT_LINE_TOLERANCE,
) -> list[RowRecord]:
    """Build row records from fragments below the header using column x-ranges.

    Args:
        fragments: All positioned fragments of the document, in reading order.
        header_y: y of the header line (PDF convention, larger is higher).
        columns: Output of :func:`map_columns`, in schema order.
        header_page: Page holding the header; earlier pages are ignored.
        tolerance: Fragments must sit more than this far below ``header_y``.

    Returns:
        Deduplicated rows, each with at least two populated fields and a
        product or description. ``Qty`` is reduced to its leading digits.
    """
    if not columns:
        return []

    candidates = []
    for row in _group_rows(fragments, header_y, header_page, tolerance):
        cells = _assign_to_columns(row, columns)
        record = RowRecord(cells)
        if record.populated_count < MIN_POPULATED_FIELDS:
            continue
        if not (record.get(COL_PRODUCT) or record.get(COL_DESCRIPTION)):
            continue
        if COL_QTY in record:
            cells = record.to_dict()
            cells[COL_QTY] = normalize_qty(cells[COL_QTY])
            record = RowRecord(cells)
        candidates.append(record)

    rows = dedupe_rows(candidates)
    logger.debug("Positional path: %d candidate rows, %d after dedupe", len(candidates), len(rows))
    return rows


def find_lexical_header(lines: Sequence[str]) -> int:
    """Index of the first line naming both the product and description columns, or -1."""
    for i, line in enumerate(lines):
        if COL_PRODUCT in line and COL_DESCRIPTION in line:
            return i
    return -1


def _parse_lexical_line(parts: list[str]) -> dict[str, str]:
    if _ROW_NUMBER_RE.match(parts[0]):
        number = parts[0].replace(".", "")
        fields = parts[1:]
    else:
        # No row number: the first token is already the product code
        number = ""
        fields = parts
    product, description, qty = (fields + ["", "", ""])[:3]
    return {
        COL_NUMBER: number,
        COL_PRODUCT: product,
        COL_DESCRIPTION: description,
        COL_QTY: qty,
    }


def extract_lexical_rows(text: str) -> list[RowRecord]:
    """Fallback: read rows from assembled text lines split on column gaps.

    Only lines after the header line that split into at least three parts
    are considered.
    """
    lines = [line.strip() for line in text.split("\n")]
    header_index = find_lexical_header(lines)
    if header_index < 0:
        logger.debug("Lexical path: no header line found")
        return []

    candidates = []
    for line in lines[header_index + 1:]:
        if not line:
            continue
        parts = split_columns(line)
        if len(parts) < MIN_LEXICAL_PARTS:
            continue
        record = RowRecord(_parse_lexical_line(parts))
        if record.get(COL_PRODUCT) or record.get(COL_DESCRIPTION):
            candidates.append(record)

    rows = dedupe_rows(candidates)
    logger.debug("Lexical path: %d candidate rows, %d after dedupe", len(candidates), len(rows))
    return rows
