"""Extraction pipeline: fragment ordering, line assembly, header mapping, row extraction."""

from .classifier import is_table_row, split_columns
from .geometry import assemble_lines, order_fragments
from .header import best_title_match, locate_header, map_columns
from .metadata import extract_metadata
from .pipeline import PageText, extract, extract_page
from .rows import (
    apply_stoplist,
    dedupe_rows,
    extract_lexical_rows,
    extract_positional_rows,
    normalize_qty,
)

__all__ = [
    "apply_stoplist",
    "assemble_lines",
    "best_title_match",
    "dedupe_rows",
    "extract",
    "extract_lexical_rows",
    "extract_metadata",
    "extract_page",
    "extract_positional_rows",
    "is_table_row",
    "locate_header",
    "map_columns",
    "normalize_qty",
    "order_fragments",
    "PageText",
    "split_columns",
]
