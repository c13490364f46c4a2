"""
Shared pytest fixtures for ship-ticket tests.

Workbooks are built in memory with openpyxl so no binary fixtures are
checked in.
"""
from __future__ import annotations

from io import BytesIO

import pytest
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from ship_ticket.models import TemplateLayout, TextFragment

THIN = Side(style="thin")
DATA_BORDER = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)
DATA_FONT = Font(name="Arial", size=10)
DATA_FILL = PatternFill(fill_type="solid", start_color="FFEFEFEF", end_color="FFEFEFEF")
SIGNATURE_FONT = Font(name="Arial", size=11, bold=True)


def frag(content: str, x: float, y: float, page: int = 0) -> TextFragment:
    """Create a text fragment with a nominal size."""
    return TextFragment(content=content, x=x, y=y, width=len(content) * 5.0, height=10.0, page=page)


def build_template(layout: TemplateLayout = TemplateLayout(), n_columns: int = 5) -> Workbook:
    """Build a shipping-ticket-like template.

    Rows 1..data_start_row-1 hold a title (merged across A:C) and labels.
    The data block is blank but styled; column 4 carries a note per row.
    The signature row holds "Approved by:" (merged A:B), followed by a
    "Date:" row (merged A:C) and a closing "Thank you" row.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Ticket"

    ws.cell(row=1, column=1, value="SHIPPING TICKET")
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=3)
    ws.cell(row=2, column=1, value="Customer:")
    header_row = layout.data_start_row - 1
    for col, title in enumerate(["Item", "Description", "Order Qty", "Note", "Ship Qty"], start=1):
        ws.cell(row=header_row, column=col, value=title).font = Font(bold=True)

    for row in range(layout.data_start_row, layout.data_end_row + 1):
        ws.row_dimensions[row].height = 18
        for col in range(1, n_columns + 1):
            cell = ws.cell(row=row, column=col)
            cell.border = DATA_BORDER
            cell.font = DATA_FONT
            cell.fill = DATA_FILL
            cell.alignment = Alignment(horizontal="left")
        ws.cell(row=row, column=4).value = f"note-{row}"
        ws.cell(row=row, column=5).number_format = "0.00"

    sig = layout.signature_row
    ws.row_dimensions[sig].height = 30
    ws.cell(row=sig, column=1, value="Approved by:").font = SIGNATURE_FONT
    ws.cell(row=sig, column=4, value="Received by:").font = SIGNATURE_FONT
    ws.merge_cells(start_row=sig, start_column=1, end_row=sig, end_column=2)
    ws.cell(row=sig + 1, column=1, value="Date:")
    ws.merge_cells(start_row=sig + 1, start_column=1, end_row=sig + 1, end_column=3)
    ws.cell(row=sig + 2, column=1, value="Thank you")
    return wb


def workbook_bytes(wb: Workbook) -> bytes:
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def layout() -> TemplateLayout:
    return TemplateLayout(data_start_row=9, data_end_row=23, signature_row=24)


@pytest.fixture
def template_workbook(layout: TemplateLayout) -> Workbook:
    return build_template(layout)


@pytest.fixture
def template_bytes(template_workbook: Workbook) -> bytes:
    return workbook_bytes(template_workbook)


@pytest.fixture
def invoice_page() -> list[TextFragment]:
    """One invoice page in arbitrary fragment order (PDF y grows upward)."""
    return [
        frag("Qty", 400, 600),
        frag("Estimate no.: 1042", 72, 740),
        frag("Product or service", 100, 600),
        frag("#", 60, 600),
        frag("Description", 250, 600),
        frag("Estimate date: 3/14/2024", 72, 725),
        frag("Rate", 460, 600),
        frag("Amount", 520, 600),
        frag("1.", 60, 570),
        frag("WIDGET-1", 105, 570),
        frag("Blue widget", 255, 570),
        frag("12 pcs", 405, 570),
        frag("$5.00", 465, 570),
        frag("$60.00", 525, 570),
        frag("2.", 60, 550),
        frag("GADGET-7", 105, 550),
        frag("Red gadget", 255, 550),
        frag("3", 405, 550),
        frag("$10.00", 465, 550),
        frag("$30.00", 525, 550),
        frag("Subtotal", 105, 500),
        frag("$90.00", 525, 500),
    ]


@pytest.fixture
def make_template():
    """Factory: ``make_template(layout) -> Workbook``."""
    return build_template
