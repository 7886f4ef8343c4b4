from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from scan_service.dto.payloads import Payload

CODE_CONFIDENCE = 0.8
RECEIPT_CONFIDENCE = 0.7


class ScanKind(str, Enum):
    UPI = "upi"
    QR = "qr"
    BARCODE = "barcode"
    RECEIPT = "receipt"


class ScanMode(str, Enum):
    """Caller intent. Only `receipt` enables the OCR fallback."""

    RECEIPT = "receipt"
    PRODUCT = "product"
    UPI = "upi"
    CODE = "code"


class FailureReason(str, Enum):
    NO_CODE_FOUND = "no_code_found"
    INVALID_IMAGE = "invalid_image"
    DECODER_FAULT = "decoder_fault"
    OCR_FAILURE = "ocr_failure"
    INTERNAL_ERROR = "internal_error"


# payload `type` tags each kind may carry
KIND_PAYLOAD_TYPES: dict[ScanKind, frozenset[str]] = {
    ScanKind.UPI: frozenset({"upi"}),
    ScanKind.QR: frozenset({"url", "text"}),
    ScanKind.BARCODE: frozenset({"product"}),
    ScanKind.RECEIPT: frozenset({"receipt"}),
}


def _new_scan_id() -> str:
    return uuid.uuid4().hex


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScanResult(BaseModel):
    """Outcome of one successful recognition run.

    Instances are frozen. The pipeline attaches a storage diagnostic with
    `model_copy(update={"error": ...})` before handing the result out.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_scan_id, description="Opaque unique identifier.")
    kind: ScanKind
    raw_content: str = Field(..., min_length=1, description="Decoded string or OCR text.")
    payload: Payload
    confidence: float = Field(..., ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=_utc_now)
    error: str | None = Field(default=None, description="Non-fatal diagnostic, e.g. a storage failure.")

    @model_validator(mode="after")
    def check_payload_matches_kind(self) -> "ScanResult":
        allowed = KIND_PAYLOAD_TYPES[self.kind]
        if self.payload.type not in allowed:
            raise ValueError(f"payload '{self.payload.type}' is not valid for kind '{self.kind.value}'")
        return self


class PipelineFailure(BaseModel):
    """Terminal, non-exceptional outcome of a recognition run."""

    model_config = ConfigDict(frozen=True)

    reason: FailureReason
    message: str = ""
