"""
All dataclasses for the system. No dependencies on implementation modules.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

# Canonical invoice schema column titles
COL_NUMBER = "#"
COL_PRODUCT = "Product or service"
COL_DESCRIPTION = "Description"
COL_QTY = "Qty"
COL_RATE = "Rate"
COL_AMOUNT = "Amount"

DEFAULT_TARGET_COLUMNS: tuple[str, ...] = (
    COL_NUMBER,
    COL_PRODUCT,
    COL_DESCRIPTION,
    COL_QTY,
    COL_RATE,
    COL_AMOUNT,
)

# Invoice summary lines that look row-like but are not line items
DEFAULT_STOPLIST: tuple[str, ...] = ("Subtotal", "Discount", "Sales tax", "Payment")

# Template columns 1..3 receive Item, Description, Order Qty
DEFAULT_OUTPUT_COLUMNS: tuple[str, ...] = (COL_PRODUCT, COL_DESCRIPTION, COL_QTY)

DEFAULT_LINE_TOLERANCE = 5.0   # geometry units
DEFAULT_COLUMN_PADDING = 5.0   # geometry units

# expectedIndex given to header fragments matching no target title
UNMATCHED_COLUMN_INDEX = 999


# =============================================================================
# DOCUMENT GEOMETRY MODELS
# =============================================================================

@dataclass(frozen=True)
class TextFragment:
    """One positioned run of text from a document's text layer.

    ``y`` follows the PDF convention: a larger ``y`` is visually higher.
    """
    content: str
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    page: int = 0             # 0-based page index


@dataclass(frozen=True)
class Line:
    """Fragments sharing one inferred visual row."""
    fragments: tuple[TextFragment, ...]
    y: float                  # anchor: y of the line's first fragment
    page: int = 0

    @property
    def text(self) -> str:
        return " ".join(f.content for f in self.fragments)


@dataclass(frozen=True)
class Column:
    """Half-open x-interval ``[start_x, end_x)`` owning one logical field."""
    name: str
    start_x: float
    end_x: float              # math.inf for the right-most column
    expected_index: int

    def contains(self, x: float) -> bool:
        return self.start_x <= x < self.end_x


# =============================================================================
# ROW MODELS
# =============================================================================

@dataclass(frozen=True)
class RowRecord:
    """Column name -> trimmed cell text. Only populated fields are stored."""
    values: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        cleaned = {k: v.strip() for k, v in self.values.items() if v and v.strip()}
        object.__setattr__(self, "values", MappingProxyType(cleaned))

    def get(self, name: str, default: str = "") -> str:
        return self.values.get(name, default)

    def __getitem__(self, name: str) -> str:
        return self.values[name]

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def __len__(self) -> int:
        return len(self.values)

    @property
    def populated_count(self) -> int:
        return len(self.values)

    def dedup_key(self) -> tuple[str, str, str]:
        """Composite key used to collapse duplicate detections of one row."""
        return (self.get(COL_NUMBER), self.get(COL_PRODUCT), self.get(COL_DESCRIPTION))

    def to_dict(self) -> dict[str, str]:
        return dict(self.values)


@dataclass(frozen=True)
class Product:
    """A line item: a RowRecord tagged with the document it came from."""
    record: RowRecord
    source: str

    def get(self, name: str, default: str = "") -> str:
        return self.record.get(name, default)

    def to_dict(self) -> dict[str, str]:
        return {**self.record.to_dict(), "source": self.source}


@dataclass(frozen=True)
class DocumentMetadata:
    """Auxiliary key/value fields found in the document text."""
    estimate_no: str | None = None
    estimate_date: str | None = None

    def to_dict(self) -> dict[str, str]:
        out = {}
        if self.estimate_no is not None:
            out["estimateNo"] = self.estimate_no
        if self.estimate_date is not None:
            out["estimateDate"] = self.estimate_date
        return out


class ExtractionPath(enum.Enum):
    """Which extraction path produced a result."""
    POSITIONAL = "positional"
    LEXICAL = "lexical"
    RAW_TEXT = "raw_text"
    FAILED = "failed"


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of extracting one document."""
    path: ExtractionPath
    rows: tuple[RowRecord, ...] = ()
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    text: str = ""
    tables: tuple[tuple[tuple[str, ...], ...], ...] = ()   # tabular line candidates per page
    error: str | None = None

    @property
    def products(self) -> tuple[RowRecord, ...]:
        return self.rows

    @property
    def ok(self) -> bool:
        return self.path is not ExtractionPath.FAILED

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable dict."""
        if self.error is not None:
            return {"error": self.error}
        out: dict[str, Any] = {
            "products": [r.to_dict() for r in self.rows],
            "metadata": self.metadata.to_dict(),
        }
        if self.path is ExtractionPath.RAW_TEXT:
            out["rawText"] = self.text
        return out


# =============================================================================
# TEMPLATE MODELS
# =============================================================================

@dataclass(frozen=True)
class MergeRegion:
    """Merged-cell rectangle in 1-based sheet coordinates, inclusive."""
    top: int
    left: int
    bottom: int
    right: int
    address: str = ""         # original A1 range, e.g. "A24:C24"

    def shifted(self, rows: int) -> MergeRegion:
        return MergeRegion(
            top=self.top + rows,
            left=self.left,
            bottom=self.bottom + rows,
            right=self.right,
            address=self.address,
        )


@dataclass(frozen=True)
class TemplateLayout:
    """Fixed data block followed by a signature block, 1-based sheet rows."""
    data_start_row: int = 9
    data_end_row: int = 23
    signature_row: int = 24

    def __post_init__(self) -> None:
        if self.data_start_row < 1:
            raise ValueError(f"data_start_row must be >= 1, got {self.data_start_row}")
        if not self.data_start_row <= self.data_end_row < self.signature_row:
            raise ValueError(
                "Template layout requires data_start_row <= data_end_row < signature_row, "
                f"got ({self.data_start_row}, {self.data_end_row}, {self.signature_row})"
            )

    @property
    def capacity(self) -> int:
        return self.data_end_row - self.data_start_row + 1

    def rows_to_insert(self, n_rows: int) -> int:
        return max(0, n_rows - self.capacity)
