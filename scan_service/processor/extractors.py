"""Per-content-type payload extraction.

Extractors never raise: malformed input degrades to a partial record
(UPI), a plain-text payload (URL) or a placeholder product (catalog miss or
lookup failure).
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from urllib.parse import parse_qsl, urlsplit

from scan_service.dto.payloads import GenericText, ProductInfo, UpiPayment, UrlContent
from scan_service.integrations.catalog import ProductCatalog
from scan_service.processor.classifier import ContentType
from scan_service.processor.decoder import DecodedCode, Symbology
from scan_service.processor.errors import CatalogError

log = logging.getLogger("extractors")

DEFAULT_UPI_CURRENCY = "INR"

_UPI_QUERY = re.compile(r"upi://pay\?(.+)", re.IGNORECASE | re.DOTALL)

UPI_FIELDS: dict[str, str] = {
    "pa": "payee_address",
    "pn": "payee_name",
    "am": "amount",
    "cu": "currency",
    "tn": "note",
    "mc": "merchant_code",
    "tr": "transaction_ref",
}

PRODUCT_NOT_FOUND = "Product Not Found"
UNKNOWN_BRAND = "Unknown"
UNKNOWN_PRICE = "N/A"
DEFAULT_CATEGORY = "General"

# GS1 prefix heuristics, keyed on the 2nd and 3rd digit of the barcode
_CATEGORY_BY_PREFIX: dict[str, str] = {
    "00": "Food & Beverages",
    "01": "Food & Beverages",
    "02": "Meat & Poultry",
    "03": "Dairy Products",
    "04": "Produce",
    "05": "Canned Goods",
    "20": "Health & Beauty",
    "30": "Household Items",
    "40": "Clothing & Textiles",
    "50": "Electronics",
    "60": "Books & Media",
    "70": "Automotive",
    "80": "Toys & Games",
    "90": "General Merchandise",
}


def parse_upi(raw: str) -> UpiPayment:
    """Extract the payment fields from a `upi://pay?...` link.

    Query parameters follow URL query semantics (`+` and `%xx` decoded, the
    first occurrence of a key wins). A missing or empty `cu` means INR.
    """
    match = _UPI_QUERY.search(raw)
    if not match:
        log.debug("UPI link without a query segment: %r", raw[:64])
        return UpiPayment()

    fields: dict[str, str] = {}
    try:
        pairs = parse_qsl(match.group(1), keep_blank_values=True)
    except ValueError:
        log.warning("could not parse UPI query segment", exc_info=True)
        pairs = []

    for key, value in pairs:
        attr = UPI_FIELDS.get(key)
        if attr and attr not in fields:
            fields[attr] = value

    if not fields.get("currency"):
        fields["currency"] = DEFAULT_UPI_CURRENCY

    return UpiPayment(**fields)


def upi_intent_uri(raw: str) -> str:
    """Rebuild the `upi://pay?...` intent handed to the payment dispatcher."""
    match = _UPI_QUERY.search(raw)
    return "upi://pay?" + match.group(1) if match else raw


def to_generic(raw: str) -> GenericText:
    return GenericText(content=raw, length=len(raw))


def parse_url(raw: str) -> UrlContent | GenericText:
    """Split a URL into `{url, domain}`; anything without a host stays plain text."""
    try:
        hostname = urlsplit(raw.strip()).hostname
    except ValueError:
        hostname = None

    if not hostname:
        return to_generic(raw)
    return UrlContent(url=raw, domain=hostname)


def guess_category(barcode: str) -> str:
    if barcode.startswith("890"):
        return "Food & Beverages"
    return _CATEGORY_BY_PREFIX.get(barcode[1:3], DEFAULT_CATEGORY)


def placeholder_product(barcode: str, symbology: Symbology | None) -> ProductInfo:
    return ProductInfo(
        barcode=barcode,
        name=PRODUCT_NOT_FOUND,
        brand=UNKNOWN_BRAND,
        category=guess_category(barcode),
        price=UNKNOWN_PRICE,
        format=symbology.value if symbology else None,
        scanned_at=datetime.now(timezone.utc),
    )


def lookup_product(barcode: str, symbology: Symbology | None, catalog: ProductCatalog | None) -> ProductInfo:
    """Resolve a product barcode through the catalog, falling back to a placeholder."""
    if catalog is None:
        return placeholder_product(barcode, symbology)

    try:
        record = catalog.lookup(barcode)
    except CatalogError as exc:
        log.warning("product lookup failed for %s: %s", barcode, exc)
        return placeholder_product(barcode, symbology)

    if record is None:
        log.info("product %s not in catalog", barcode)
        return placeholder_product(barcode, symbology)

    return ProductInfo(
        barcode=barcode,
        name=record.name or PRODUCT_NOT_FOUND,
        brand=record.brand or UNKNOWN_BRAND,
        category=record.category or guess_category(barcode),
        price=record.price or UNKNOWN_PRICE,
        format=symbology.value if symbology else None,
        description=record.description,
        scanned_at=datetime.now(timezone.utc),
    )


def extract_payload(
    content_type: ContentType,
    code: DecodedCode,
    catalog: ProductCatalog | None = None,
) -> UpiPayment | UrlContent | ProductInfo | GenericText:
    """Dispatch decoded text to the extractor for its content type."""
    if content_type is ContentType.UPI:
        return parse_upi(code.text)
    if content_type is ContentType.URL:
        return parse_url(code.text)
    if content_type is ContentType.PRODUCT_BARCODE:
        return lookup_product(code.text, code.symbology, catalog)
    return to_generic(code.text)
