from __future__ import annotations

from enum import Enum

from scan_service.dto.scan_result import ScanKind
from scan_service.processor.decoder import Symbology


class ContentType(str, Enum):
    UPI = "upi"
    URL = "url"
    PRODUCT_BARCODE = "product_barcode"
    GENERIC_TEXT = "generic_text"


# retail/commodity symbologies whose payload is a product number
COMMODITY_SYMBOLOGIES = frozenset({
    Symbology.EAN_13,
    Symbology.EAN_8,
    Symbology.UPC_A,
    Symbology.UPC_E,
    Symbology.CODE_128,
})

CONTENT_TYPE_KINDS: dict[ContentType, ScanKind] = {
    ContentType.UPI: ScanKind.UPI,
    ContentType.URL: ScanKind.QR,
    ContentType.PRODUCT_BARCODE: ScanKind.BARCODE,
    ContentType.GENERIC_TEXT: ScanKind.QR,
}


def classify(raw: str, symbology: Symbology | None = None) -> ContentType:
    """Map decoded text to a content type. The first matching rule wins."""
    if raw.lower().startswith("upi://pay"):
        return ContentType.UPI
    if raw.startswith("http") or "www." in raw:
        return ContentType.URL
    if symbology in COMMODITY_SYMBOLOGIES:
        return ContentType.PRODUCT_BARCODE
    return ContentType.GENERIC_TEXT


def kind_for(content_type: ContentType) -> ScanKind:
    return CONTENT_TYPE_KINDS[content_type]
