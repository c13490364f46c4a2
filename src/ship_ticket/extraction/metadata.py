"""Estimate number and date extraction from assembled document text."""
from __future__ import annotations

import re

from ..models import DocumentMetadata

_ESTIMATE_NO_RE = re.compile(r"Estimate\s+no\.?\s*:?\s*(\d+)", re.IGNORECASE)
_ESTIMATE_DATE_RE = re.compile(
    r"Estimate\s+date\s*:?\s*(\d{1,2}/\d{1,2}/\d{2,4})", re.IGNORECASE
)


def extract_metadata(text: str) -> DocumentMetadata:
    """Pull the estimate number and date out of *text*. Both are optional."""
    no_match = _ESTIMATE_NO_RE.search(text)
    date_match = _ESTIMATE_DATE_RE.search(text)
    return DocumentMetadata(
        estimate_no=no_match.group(1) if no_match else None,
        estimate_date=date_match.group(1) if date_match else None,
    )
