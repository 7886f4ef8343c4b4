from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from scan_service.integrations.catalog import ProductCatalog
from scan_service.integrations.payments import PaymentDispatcher
from scan_service.integrations.storage import ScanStore
from scan_service.processor.decoder import CodeDecoder
from scan_service.processor.ocr import OcrAdapter
from scan_service.processor.receipt_parser import ReceiptParser


class PipelineContext(BaseModel):
    """Collaborators and configuration for scan pipelines.

    Built and owned by the caller (the web app builds one at startup) and
    handed to every ScanPipeline. Nothing in here is mutated by a pipeline
    run, so one context can serve concurrent runs.
    """

    decoder: CodeDecoder
    """Barcode/QR decoder."""

    ocr: OcrAdapter | None = None
    """OCR engine for the receipt fallback; receipt mode fails without it."""

    receipt_parser: ReceiptParser = Field(default_factory=ReceiptParser)
    """Heuristic parser applied to OCR text."""

    catalog: ProductCatalog | None = None
    """Product catalog for retail barcodes; placeholders are used when None."""

    store: ScanStore | None = None
    """Where results are persisted; persistence is skipped when None."""

    payments: PaymentDispatcher | None = None
    """Receives every UPI payment intent."""

    ocr_language: str | None = None
    """Overrides the OCR adapter language when set."""

    pipeline_threads: int = Field(4, ge=1)
    """Thread pool size for multi-image batches."""

    log_level: int = Field(20, ge=0, le=50)

    model_config = ConfigDict(arbitrary_types_allowed=True)
