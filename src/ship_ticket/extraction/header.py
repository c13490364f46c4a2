"""Header row detection and header-derived column boundaries.

The header is the line holding the first fragment that mentions a known
column title. Its fragments are matched to titles and turned into
half-open x-intervals, ordered by the canonical schema rather than by their
position on the page.
"""
from __future__ import annotations

import logging
import math
from typing import Sequence

from ..models import (
    DEFAULT_COLUMN_PADDING,
    DEFAULT_LINE_TOLERANCE,
    DEFAULT_TARGET_COLUMNS,
    UNMATCHED_COLUMN_INDEX,
    Column,
    TextFragment,
)

logger = logging.getLogger(__name__)


def locate_header(
    fragments: Sequence[TextFragment],
    *,
    target_columns: Sequence[str] = DEFAULT_TARGET_COLUMNS,
    tolerance: float = DEFAULT_LINE_TOLERANCE,
) -> tuple[list[TextFragment], float | None]:
    """Find the header line among a document's fragments.

    Scans in order; the first fragment containing any target title fixes
    ``header_y``. Every fragment on the same page within ``tolerance`` of
    ``header_y`` joins the header set.

    Returns:
        ``(header_items, header_y)``. ``header_y`` is None when no fragment
        mentions a target title.
    """
    anchor = next(
        (f for f in fragments if any(title in f.content for title in target_columns)),
        None,
    )
    if anchor is None:
        return [], None

    header_items = [
        f for f in fragments
        if f.page == anchor.page and abs(f.y - anchor.y) <= tolerance
    ]
    logger.debug(
        "Header at y=%.1f on page %d with %d fragments", anchor.y, anchor.page, len(header_items)
    )
    return header_items, anchor.y


def best_title_match(text: str, target_columns: Sequence[str]) -> str | None:
    """Return the longest target title contained in *text*, or None.

    Longest wins so that a title which is a substring of another (``"#"``
    inside ``"Item #"``) does not shadow the more specific one.
    """
    best = None
    for title in target_columns:
        if title in text and (best is None or len(title) > len(best)):
            best = title
    return best


def map_columns(
    header_items: Sequence[TextFragment],
    *,
    target_columns: Sequence[str] = DEFAULT_TARGET_COLUMNS,
    padding: float = DEFAULT_COLUMN_PADDING,
) -> list[Column]:
    """Turn header fragments into named columns with x boundaries.

    Each column starts ``padding`` left of its header fragment and ends where
    the next header fragment (by x) starts; the right-most column is
    unbounded. Fragments matching no title become ad-hoc columns named after
    their own text, sorted after all known titles.

    Returns:
        Columns ordered by expected schema index.
    """
    by_x = sorted(header_items, key=lambda f: f.x)
    titles = list(target_columns)

    columns: list[Column] = []
    for i, item in enumerate(by_x):
        match = best_title_match(item.content, titles)
        end_x = by_x[i + 1].x - padding if i + 1 < len(by_x) else math.inf
        columns.append(Column(
            name=match if match is not None else item.content,
            start_x=item.x - padding,
            end_x=end_x,
            expected_index=titles.index(match) if match is not None else UNMATCHED_COLUMN_INDEX,
        ))

    columns.sort(key=lambda c: c.expected_index)
    return columns
