"""Tests for header location and column mapping."""
from __future__ import annotations

import math

from ship_ticket.extraction.header import best_title_match, locate_header, map_columns
from ship_ticket.models import UNMATCHED_COLUMN_INDEX, TextFragment


def _frag(content: str, x: float, y: float, page: int = 0) -> TextFragment:
    return TextFragment(content=content, x=x, y=y, width=10.0, height=10.0, page=page)


class TestLocateHeader:
    def test_finds_header_line(self) -> None:
        """First title-bearing fragment fixes header_y; its whole line joins."""
        frags = [
            _frag("INVOICE", 72, 760),
            _frag("Product or service", 100, 600),
            _frag("Description", 250, 602),
            _frag("Notes", 500, 598),
            _frag("WIDGET-1", 105, 570),
        ]
        items, header_y = locate_header(frags)
        assert header_y == 600
        assert [f.content for f in items] == ["Product or service", "Description", "Notes"]

    def test_no_header(self) -> None:
        """No fragment mentions a title: header_y is None."""
        items, header_y = locate_header([_frag("INVOICE", 72, 760), _frag("Total", 72, 100)])
        assert items == []
        assert header_y is None

    def test_other_pages_excluded(self) -> None:
        """A fragment at header height on another page is not a header item."""
        frags = [
            _frag("Description", 250, 600, page=0),
            _frag("WIDGET-9", 105, 600, page=1),
        ]
        items, _ = locate_header(frags)
        assert [f.content for f in items] == ["Description"]

    def test_custom_titles(self) -> None:
        frags = [_frag("Item", 50, 500), _frag("Quantity", 300, 500)]
        items, header_y = locate_header(frags, target_columns=["Item", "Quantity"])
        assert header_y == 500
        assert len(items) == 2


class TestBestTitleMatch:
    def test_longest_title_wins(self) -> None:
        """A shorter title contained in a longer one does not shadow it."""
        titles = ["#", "Product or service", "Description"]
        assert best_title_match("Product or service #", titles) == "Product or service"

    def test_no_match(self) -> None:
        assert best_title_match("Notes", ["#", "Qty"]) is None


class TestMapColumns:
    def test_boundaries_from_header_fragments(self) -> None:
        """Each column starts padding left of its fragment and ends at the next start."""
        header = [
            _frag("Product or service", 100, 600),
            _frag("Description", 250, 600),
            _frag("Qty", 400, 600),
        ]
        columns = map_columns(header)
        assert [c.name for c in columns] == ["Product or service", "Description", "Qty"]
        assert [c.start_x for c in columns] == [95, 245, 395]
        assert columns[0].end_x == 245
        assert columns[1].end_x == 395
        assert math.isinf(columns[2].end_x)

    def test_schema_order_not_page_order(self) -> None:
        """Columns are ordered by schema index even if the page shows them differently."""
        header = [
            _frag("Qty", 50, 600),
            _frag("Description", 300, 600),
            _frag("#", 200, 600),
        ]
        columns = map_columns(header)
        assert [c.name for c in columns] == ["#", "Description", "Qty"]
        qty = columns[2]
        assert qty.start_x == 45
        assert qty.end_x == 195

    def test_unmatched_fragment_sorts_last(self) -> None:
        header = [_frag("Notes", 10, 600), _frag("Qty", 300, 600)]
        columns = map_columns(header)
        assert [c.name for c in columns] == ["Qty", "Notes"]
        assert columns[1].expected_index == UNMATCHED_COLUMN_INDEX

    def test_custom_padding(self) -> None:
        header = [_frag("Qty", 100, 600), _frag("Rate", 200, 600)]
        columns = map_columns(header, padding=0)
        assert columns[0].start_x == 100
        assert columns[0].end_x == 200
        assert columns[0].contains(100)
        assert not columns[0].contains(200)

    def test_empty(self) -> None:
        assert map_columns([]) == []
