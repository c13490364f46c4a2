"""Reading-order sorting and line assembly for positioned text fragments.

Works on raw fragment geometry only: two fragments are on the same visual
line when their ``y`` values differ by at most the line tolerance.
"""
from __future__ import annotations

from functools import cmp_to_key
from typing import Iterable

from ..models import DEFAULT_LINE_TOLERANCE, Line, TextFragment


def _reading_order_cmp(tolerance: float):
    def compare(a: TextFragment, b: TextFragment) -> int:
        y_diff = a.y - b.y
        if abs(y_diff) <= tolerance:
            # Same line: left to right
            return (a.x > b.x) - (a.x < b.x)
        # Larger y is visually higher, so it comes first
        return -1 if y_diff > 0 else 1
    return compare


def order_fragments(
    fragments: Iterable[TextFragment],
    *,
    tolerance: float = DEFAULT_LINE_TOLERANCE,
) -> list[TextFragment]:
    """Sort one page's fragments into reading order (top-to-bottom, left-to-right).

    A single stable sort with a tolerance-aware comparator. Fragments that
    compare equal keep their input order, so sorting an already-sorted list
    returns it unchanged.

    Args:
        fragments: Fragments of one page in arbitrary order.
        tolerance: Maximum y distance for two fragments to share a line.

    Returns:
        A new list holding the same fragments in reading order.
    """
    return sorted(fragments, key=cmp_to_key(_reading_order_cmp(tolerance)))


def assemble_lines(
    ordered: Iterable[TextFragment],
    *,
    tolerance: float = DEFAULT_LINE_TOLERANCE,
) -> list[Line]:
    """Group reading-ordered fragments into lines in a single sequential pass.

    A fragment opens a new line when its ``y`` is more than ``tolerance``
    away from the current line's anchor, which is the ``y`` of the line's
    first fragment. Whitespace-only fragments carry no text and are dropped;
    contents are stripped.

    Args:
        ordered: Output of :func:`order_fragments`.
        tolerance: Maximum y distance from the anchor to stay on a line.

    Returns:
        Lines in reading order.
    """
    lines: list[Line] = []
    current: list[TextFragment] = []
    anchor: float | None = None
    anchor_page = 0

    for frag in ordered:
        content = frag.content.strip()
        if not content:
            continue
        if content != frag.content:
            frag = TextFragment(content, frag.x, frag.y, frag.width, frag.height, frag.page)

        if anchor is None or frag.page != anchor_page or abs(frag.y - anchor) > tolerance:
            if current:
                lines.append(Line(tuple(current), anchor, anchor_page))
            current = [frag]
            anchor = frag.y
            anchor_page = frag.page
        else:
            current.append(frag)

    # Flush the last open line
    if current:
        lines.append(Line(tuple(current), anchor, anchor_page))

    return lines
