"""Lexical table-row heuristics.

A line looks tabular when it carries a number (or a dollar amount) and the
source laid it out in visual columns, which survives in the text as runs of
two or more whitespace characters.
"""
from __future__ import annotations

import re

_DIGIT_RE = re.compile(r"\d+")
_CURRENCY_RE = re.compile(r"\$\d+(?:\.\d+)?")
_COLUMN_GAP_RE = re.compile(r"\s{2,}")


def is_table_row(line: str) -> bool:
    """Return True if *line* looks like a row of a table rather than prose."""
    has_number = bool(_DIGIT_RE.search(line)) or bool(_CURRENCY_RE.search(line))
    return has_number and bool(_COLUMN_GAP_RE.search(line))


def split_columns(line: str) -> list[str]:
    """Split *line* on column gaps, dropping empty parts."""
    return [part.strip() for part in _COLUMN_GAP_RE.split(line) if part.strip()]
