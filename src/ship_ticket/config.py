"""Configuration management."""
from dataclasses import dataclass, field
from pathlib import Path
import json
import os

from .models import (
    DEFAULT_COLUMN_PADDING,
    DEFAULT_LINE_TOLERANCE,
    DEFAULT_OUTPUT_COLUMNS,
    DEFAULT_STOPLIST,
    DEFAULT_TARGET_COLUMNS,
    TemplateLayout,
)


@dataclass
class Config:
    """Application configuration."""
    # Extraction heuristics
    line_tolerance: float = DEFAULT_LINE_TOLERANCE   # max y distance for "same line"
    column_padding: float = DEFAULT_COLUMN_PADDING   # widens each column's left edge
    stoplist: tuple[str, ...] = DEFAULT_STOPLIST
    target_columns: tuple[str, ...] = DEFAULT_TARGET_COLUMNS
    # Template layout (1-based sheet rows)
    data_start_row: int = 9
    data_end_row: int = 23
    signature_row: int = 24
    # Schema columns written to template columns 1..N
    output_columns: tuple[str, ...] = DEFAULT_OUTPUT_COLUMNS
    template_path: Path | None = None
    show_progress: bool = True
    extra: dict = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "Config":
        """Load config from file and/or environment."""
        if path is not None:
            config_path = Path(path).expanduser()
        else:
            config_path = Path("~/.config/ship-ticket/config.json").expanduser()

        data = {}
        if config_path.exists():
            with open(config_path) as f:
                data = json.load(f)

        template = data.get("template_path") or os.environ.get("SHIP_TICKET_TEMPLATE")

        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        return cls(
            line_tolerance=float(data.get("line_tolerance", DEFAULT_LINE_TOLERANCE)),
            column_padding=float(data.get("column_padding", DEFAULT_COLUMN_PADDING)),
            stoplist=tuple(data.get("stoplist", DEFAULT_STOPLIST)),
            target_columns=tuple(data.get("target_columns", DEFAULT_TARGET_COLUMNS)),
            data_start_row=data.get("data_start_row", 9),
            data_end_row=data.get("data_end_row", 23),
            signature_row=data.get("signature_row", 24),
            output_columns=tuple(data.get("output_columns", DEFAULT_OUTPUT_COLUMNS)),
            template_path=Path(template).expanduser() if template else None,
            show_progress=data.get("show_progress", True),
            # Unrecognized keys are kept so validate() can report them
            extra={k: v for k, v in data.items() if k not in known},
        )

    @property
    def layout(self) -> TemplateLayout:
        """Template layout; raises ValueError if the rows are inconsistent."""
        return TemplateLayout(
            data_start_row=self.data_start_row,
            data_end_row=self.data_end_row,
            signature_row=self.signature_row,
        )

    def validate(self) -> list[str]:
        """Return list of validation errors, empty if valid."""
        errors = []
        if self.line_tolerance <= 0:
            errors.append(f"line_tolerance must be positive, got {self.line_tolerance}")
        if self.column_padding < 0:
            errors.append(f"column_padding must not be negative, got {self.column_padding}")
        if not self.target_columns:
            errors.append("target_columns must name at least one column title")

        unknown_outputs = [c for c in self.output_columns if c not in self.target_columns]
        if unknown_outputs:
            errors.append(f"output_columns not in target_columns: {unknown_outputs}")

        try:
            self.layout
        except ValueError as e:
            errors.append(str(e))

        if self.template_path is not None and not self.template_path.exists():
            errors.append(f"Template not found: {self.template_path}")

        for key in sorted(self.extra):
            errors.append(f"Unknown config key: {key}")

        return errors
