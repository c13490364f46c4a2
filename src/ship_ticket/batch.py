"""Document queue orchestration.

Pipeline: PDF -> fragments -> ExtractionResult -> source-tagged Products

Documents are processed strictly one at a time in the order they were
queued, so at most one document is ever in flight. A failure in one
document is recorded on that document and never stops the queue.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence, Union

from tqdm import tqdm

from .config import Config
from .extraction.pipeline import extract
from .models import ExtractionResult, Product, TemplateLayout, TextFragment
from .pdf_reader import read_pdf_fragments
from .template_engine import export_selected

logger = logging.getLogger(__name__)

# A PDF path, the PDF's bytes, or pages of fragments already read
DocumentPayload = Union[Path, str, bytes, Sequence[Sequence[TextFragment]]]


class DocumentStatus(enum.Enum):
    PENDING = "pending"
    DONE = "done"          # products extracted
    EMPTY = "empty"        # read fine, no line items found
    FAILED = "failed"


@dataclass
class QueuedDocument:
    """One document and the outcome of extracting it."""
    source: str
    payload: DocumentPayload
    status: DocumentStatus = DocumentStatus.PENDING
    result: ExtractionResult | None = None
    error: str = ""
    n_products: int = 0


class ExtractionQueue:
    """
    Sequential extraction queue with a source-tagged product table.

    Products keep the order in which their documents finished; a source
    contributes its products once.
    """

    def __init__(
        self,
        config: Config | None = None,
        reader: Callable[[Path | str | bytes], list[list[TextFragment]]] = read_pdf_fragments,
    ):
        self.config = config if config is not None else Config()
        self.reader = reader
        self._queue: list[QueuedDocument] = []
        self._products: dict[str, list[Product]] = {}
        self._current: QueuedDocument | None = None

    # ------------------------------------------------------------------
    # Queue management
    # ------------------------------------------------------------------

    @property
    def documents(self) -> list[QueuedDocument]:
        return list(self._queue)

    @property
    def current(self) -> QueuedDocument | None:
        """The document being extracted right now, if any."""
        return self._current

    @property
    def pending(self) -> list[QueuedDocument]:
        return [d for d in self._queue if d.status is DocumentStatus.PENDING]

    def enqueue(self, source: str, payload: DocumentPayload) -> QueuedDocument:
        doc = QueuedDocument(source=source, payload=payload)
        self._queue.append(doc)
        return doc

    def remove(self, source: str) -> None:
        """Drop a document and every product it contributed."""
        self._queue = [d for d in self._queue if d.source != source]
        self._products.pop(source, None)

    def clear(self) -> None:
        self._queue = []
        self._products = {}
        self._current = None

    def retry(self, source: str) -> QueuedDocument:
        """Re-queue a failed document at the back of the queue."""
        for doc in self._queue:
            if doc.source == source and doc.status is DocumentStatus.FAILED:
                self._queue.remove(doc)
                doc.status = DocumentStatus.PENDING
                doc.result = None
                doc.error = ""
                self._queue.append(doc)
                return doc
        raise KeyError(f"No failed document with source: {source}")

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def _read(self, payload: DocumentPayload) -> Sequence[Sequence[TextFragment]]:
        if isinstance(payload, (Path, str, bytes, bytearray)):
            return self.reader(payload)
        return payload

    def _process(self, doc: QueuedDocument) -> None:
        try:
            pages = self._read(doc.payload)
        except Exception as e:
            logger.error(f"Failed to read {doc.source}: {type(e).__name__}: {e}")
            doc.status = DocumentStatus.FAILED
            doc.error = f"{type(e).__name__}: {e}"
            return

        result = extract(pages, self.config)
        doc.result = result
        if not result.ok:
            logger.error(f"Failed to extract {doc.source}: {result.error}")
            doc.status = DocumentStatus.FAILED
            doc.error = result.error or ""
            return

        if not result.rows:
            doc.status = DocumentStatus.EMPTY
            return

        doc.status = DocumentStatus.DONE
        doc.n_products = len(result.rows)
        if doc.source in self._products:
            logger.info(f"Products from {doc.source} already present, not adding again")
            return
        self._products[doc.source] = [Product(record=r, source=doc.source) for r in result.rows]
        logger.info(f"Added {len(result.rows)} products from {doc.source}")

    def process_next(self) -> QueuedDocument | None:
        """Extract the oldest pending document. Returns None when none is left."""
        pending = self.pending
        if not pending:
            return None
        doc = pending[0]
        self._current = doc
        try:
            self._process(doc)
        finally:
            self._current = None
        return doc

    def process_all(self) -> list[QueuedDocument]:
        """Drain the queue one document at a time."""
        processed = []
        n_pending = len(self.pending)
        with tqdm(total=n_pending, desc="Extracting", disable=not self.config.show_progress) as bar:
            while (doc := self.process_next()) is not None:
                processed.append(doc)
                bar.set_postfix_str(doc.source)
                bar.update(1)

        counts = {s.value: sum(1 for d in processed if d.status is s) for s in DocumentStatus}
        logger.info(f"Processed {len(processed)} documents: {counts}")
        return processed

    # ------------------------------------------------------------------
    # Product table
    # ------------------------------------------------------------------

    @property
    def products(self) -> list[Product]:
        return [p for products in self._products.values() for p in products]

    def products_by_source(self) -> dict[str, list[Product]]:
        return {source: list(products) for source, products in self._products.items()}

    def select(self, indices: Sequence[int]) -> list[Product]:
        """Products at *indices* of :attr:`products`, in the given order."""
        products = self.products
        return [products[i] for i in indices]

    def export(
        self,
        template_bytes: bytes,
        indices: Sequence[int] | None = None,
        layout: TemplateLayout | None = None,
    ) -> bytes:
        """Fill the template with the selected products (all when *indices* is None).

        The queue and its products are left untouched, also when the export
        fails, so the same selection can be exported again.
        """
        selected = self.products if indices is None else self.select(indices)
        return export_selected(
            template_bytes,
            layout if layout is not None else self.config.layout,
            selected,
            output_columns=self.config.output_columns,
        )
