"""Template-preserving row insertion into a shipping-ticket spreadsheet.

The template has a fixed data block followed by a styled signature block.
When there are more rows than the data block holds, rows are inserted after
the block's last row: everything below is shifted down, the new rows take
their styling from the block's last row, and merged regions at or below the
signature row move with it.

Steps, in this order:
1. Snapshot every merged region, then unmerge all of them
2. Compute how many rows to insert (steps 3-6 are skipped when none)
3. Snapshot the signature row
4. Shift trailing rows down, bottom row first
5. Style the new rows after the data block's last row
6. Restore the signature row at its new index
7. Re-merge every region, shifted if it started at or below the signature row
8. Write the data values into the first output columns
"""
from __future__ import annotations

import logging
from copy import copy
from dataclasses import dataclass
from io import BytesIO
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from openpyxl import load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE, MergedCell
from openpyxl.styles import Alignment

from .models import DEFAULT_OUTPUT_COLUMNS, MergeRegion, Product, RowRecord, TemplateLayout

if TYPE_CHECKING:
    from openpyxl.worksheet.worksheet import Worksheet

logger = logging.getLogger(__name__)

# Excel's "middle" vertical alignment is "center" in OOXML
CENTERED = Alignment(horizontal="center", vertical="center", wrap_text=True)

RowLike = RowRecord | Product | Mapping[str, str]


class TemplateLoadError(Exception):
    """Raised when template bytes cannot be read as a workbook."""


class MissingWorksheetError(TemplateLoadError):
    """Raised when the template workbook has no worksheet."""


class TemplateLayoutError(ValueError):
    """Raised when the template's merged regions do not fit the layout."""


# =============================================================================
# CELL SNAPSHOTS
# =============================================================================

@dataclass(frozen=True)
class CellSnapshot:
    """Value copy of one cell's content and style facets."""
    column: int
    value: Any
    font: Any
    border: Any
    fill: Any
    number_format: str
    alignment: Any
    protection: Any

    @classmethod
    def capture(cls, ws: Worksheet, row: int, column: int) -> CellSnapshot:
        cell = ws.cell(row=row, column=column)
        return cls(
            column=column,
            value=cell.value,
            font=copy(cell.font),
            border=copy(cell.border),
            fill=copy(cell.fill),
            number_format=cell.number_format,
            alignment=copy(cell.alignment),
            protection=copy(cell.protection),
        )

    def apply(self, ws: Worksheet, row: int, *, with_value: bool = True) -> None:
        cell = ws.cell(row=row, column=self.column)
        if with_value:
            cell.value = self.value
        cell.font = copy(self.font)
        cell.border = copy(self.border)
        cell.fill = copy(self.fill)
        cell.number_format = self.number_format
        cell.alignment = copy(self.alignment)
        cell.protection = copy(self.protection)


@dataclass(frozen=True)
class RowSnapshot:
    """All cells of one row plus its height."""
    cells: tuple[CellSnapshot, ...]
    height: float | None

    @classmethod
    def capture(cls, ws: Worksheet, row: int, max_column: int) -> RowSnapshot:
        return cls(
            cells=tuple(CellSnapshot.capture(ws, row, col) for col in range(1, max_column + 1)),
            height=ws.row_dimensions[row].height,
        )

    def apply(self, ws: Worksheet, row: int, *, with_value: bool = True) -> None:
        ws.row_dimensions[row].height = self.height
        for cell in self.cells:
            cell.apply(ws, row, with_value=with_value)


@dataclass
class InsertionReport:
    """Summary of one template fill."""
    rows_written: int = 0
    rows_to_insert: int = 0
    signature_row: int = 0       # signature row index after insertion
    merges_restored: int = 0
    merge_failures: int = 0


def _row_value(row: RowLike, name: str) -> str:
    # Control characters from the PDF text layer are not valid in XLSX cells
    return ILLEGAL_CHARACTERS_RE.sub("", row.get(name, "") or "")


# =============================================================================
# ENGINE
# =============================================================================

class TemplateRowEngine:
    """Fills a worksheet's data block, growing it in place when needed.

    One engine call owns the worksheet for its duration; nothing is shared
    across calls.
    """

    def __init__(
        self,
        layout: TemplateLayout,
        output_columns: Sequence[str] = DEFAULT_OUTPUT_COLUMNS,
    ):
        """
        Args:
            layout: Data block and signature row positions.
            output_columns: Schema column names written to sheet columns
                1..N of each data row.
        """
        self.layout = layout
        self.output_columns = tuple(output_columns)

    # ------------------------------------------------------------------
    # Merged regions
    # ------------------------------------------------------------------

    @staticmethod
    def snapshot_merges(ws: Worksheet) -> list[MergeRegion]:
        return [
            MergeRegion(
                top=cr.min_row,
                left=cr.min_col,
                bottom=cr.max_row,
                right=cr.max_col,
                address=cr.coord,
            )
            for cr in list(ws.merged_cells.ranges)
        ]

    def check_merges(self, merges: Sequence[MergeRegion]) -> None:
        """Reject regions that start between the data block and the signature row."""
        gap = [
            m for m in merges
            if self.layout.data_end_row < m.top < self.layout.signature_row
        ]
        if gap:
            raise TemplateLayoutError(
                f"Merged regions {[m.address for m in gap]} start between data_end_row "
                f"{self.layout.data_end_row} and signature_row {self.layout.signature_row}"
            )

    @staticmethod
    def _unmerge_all(ws: Worksheet, merges: Sequence[MergeRegion], report: InsertionReport) -> None:
        for m in merges:
            try:
                ws.unmerge_cells(
                    start_row=m.top, start_column=m.left, end_row=m.bottom, end_column=m.right,
                )
            except Exception as exc:
                report.merge_failures += 1
                logger.warning("Could not unmerge %s: %s", m.address, exc)

    def _remerge_all(
        self,
        ws: Worksheet,
        merges: Sequence[MergeRegion],
        rows_to_insert: int,
        report: InsertionReport,
    ) -> None:
        for m in merges:
            target = m
            if m.top >= self.layout.signature_row and rows_to_insert > 0:
                target = m.shifted(rows_to_insert)
            try:
                ws.merge_cells(
                    start_row=target.top,
                    start_column=target.left,
                    end_row=target.bottom,
                    end_column=target.right,
                )
                report.merges_restored += 1
            except Exception as exc:
                report.merge_failures += 1
                logger.warning("Could not re-merge %s: %s", m.address, exc)

    # ------------------------------------------------------------------
    # Row insertion
    # ------------------------------------------------------------------

    def _shift_rows_down(self, ws: Worksheet, rows_to_insert: int, max_column: int) -> None:
        """Copy every row after the data block down by ``rows_to_insert``.

        Iterates from the bottom row upward so no row is overwritten before
        it has been copied.
        """
        last_row = ws.max_row
        for i in range(last_row, self.layout.data_end_row, -1):
            RowSnapshot.capture(ws, i, max_column).apply(ws, i + rows_to_insert)

    def _materialize_rows(self, ws: Worksheet, rows_to_insert: int, max_column: int) -> None:
        """Give each inserted row the data block's last-row styling, no values."""
        template = RowSnapshot.capture(ws, self.layout.data_end_row, max_column)
        for i in range(1, rows_to_insert + 1):
            row = self.layout.data_end_row + i
            template.apply(ws, row, with_value=False)
            for col in range(1, max_column + 1):
                cell = ws.cell(row=row, column=col)
                cell.value = None
                cell.alignment = copy(CENTERED)

    def _write_rows(self, ws: Worksheet, rows: Sequence[RowLike]) -> int:
        written = 0
        for k, row in enumerate(rows):
            sheet_row = self.layout.data_start_row + k
            for col, name in enumerate(self.output_columns, start=1):
                cell = ws.cell(row=sheet_row, column=col)
                if isinstance(cell, MergedCell):
                    # Only the top-left cell of a merged region holds a value
                    logger.debug("Skipping merged cell %s", cell.coordinate)
                    continue
                original = CellSnapshot.capture(ws, sheet_row, col)
                value = _row_value(row, name)
                cell.value = value or None
                if value:
                    # Extracted text is never a formula, even when it starts with "="
                    cell.data_type = "s"
                cell.border = copy(original.border)
                cell.font = copy(original.font)
                cell.fill = copy(original.fill)
                cell.number_format = original.number_format
                cell.alignment = copy(CENTERED)
            written += 1
        return written

    def apply(self, ws: Worksheet, rows: Sequence[RowLike]) -> InsertionReport:
        """Write *rows* into the data block of *ws*, inserting rows as needed.

        Args:
            ws: Worksheet to modify in place.
            rows: Records to place; each needs a ``get(name, default)``
                method (RowRecord, Product or a plain dict).

        Returns:
            InsertionReport describing what was done.

        Raises:
            TemplateLayoutError: A merged region starts between the data
                block and the signature row. Raised before any change.
        """
        layout = self.layout
        report = InsertionReport(signature_row=layout.signature_row)

        merges = self.snapshot_merges(ws)
        self.check_merges(merges)
        self._unmerge_all(ws, merges, report)

        rows_to_insert = layout.rows_to_insert(len(rows))
        report.rows_to_insert = rows_to_insert

        if rows_to_insert > 0:
            logger.info(
                "%d rows exceed data capacity %d; inserting %d rows",
                len(rows), layout.capacity, rows_to_insert,
            )
            max_column = ws.max_column
            signature = RowSnapshot.capture(ws, layout.signature_row, max_column)
            self._shift_rows_down(ws, rows_to_insert, max_column)
            self._materialize_rows(ws, rows_to_insert, max_column)
            signature.apply(ws, layout.signature_row + rows_to_insert)
            report.signature_row = layout.signature_row + rows_to_insert

        self._remerge_all(ws, merges, rows_to_insert, report)
        report.rows_written = self._write_rows(ws, rows)
        return report


def load_template(template_bytes: bytes):
    """Load a workbook from bytes and return ``(workbook, first_worksheet)``.

    Raises:
        TemplateLoadError: The bytes are not a readable workbook.
        MissingWorksheetError: The workbook holds no worksheet.
    """
    try:
        wb = load_workbook(BytesIO(template_bytes))
    except Exception as exc:
        raise TemplateLoadError(f"Cannot load template: {type(exc).__name__}: {exc}") from exc
    if not wb.worksheets:
        raise MissingWorksheetError("Template workbook has no worksheet")
    return wb, wb.worksheets[0]


def export_selected(
    template_bytes: bytes,
    layout: TemplateLayout,
    rows: Sequence[RowLike],
    *,
    output_columns: Sequence[str] = DEFAULT_OUTPUT_COLUMNS,
) -> bytes:
    """Fill a copy of the template with *rows* and return the workbook bytes.

    The template bytes are never modified; each call works on its own
    freshly loaded workbook.
    """
    wb, ws = load_template(template_bytes)
    report = TemplateRowEngine(layout, output_columns).apply(ws, rows)
    logger.info(
        "Exported %d rows (%d inserted, signature at row %d, %d merges restored, %d merge failures)",
        report.rows_written,
        report.rows_to_insert,
        report.signature_row,
        report.merges_restored,
        report.merge_failures,
    )
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
