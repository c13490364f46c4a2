"""Invoice line-item extraction and shipping-ticket template filling."""
from .models import (
    TextFragment,
    Line,
    Column,
    RowRecord,
    Product,
    DocumentMetadata,
    ExtractionPath,
    ExtractionResult,
    MergeRegion,
    TemplateLayout,
)
from .config import Config
from .extraction import extract
from .template_engine import (
    TemplateRowEngine,
    TemplateLoadError,
    MissingWorksheetError,
    TemplateLayoutError,
    export_selected,
)

__all__ = [
    "TextFragment",
    "Line",
    "Column",
    "RowRecord",
    "Product",
    "DocumentMetadata",
    "ExtractionPath",
    "ExtractionResult",
    "MergeRegion",
    "TemplateLayout",
    "Config",
    "extract",
    "TemplateRowEngine",
    "TemplateLoadError",
    "MissingWorksheetError",
    "TemplateLayoutError",
    "export_selected",
]
