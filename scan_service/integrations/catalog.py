from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import requests

from scan_service.processor.errors import CatalogError
from scan_service.utils.utils import setup_logging


@dataclass(frozen=True, slots=True)
class ProductRecord:
    barcode: str
    name: str
    brand: str
    category: str
    price: str | None = None
    description: str | None = None


@runtime_checkable
class ProductCatalog(Protocol):
    def lookup(self, barcode: str) -> ProductRecord | None:
        """Return the record for `barcode`, None when unknown; raise CatalogError on failure."""
        ...


class StaticProductCatalog:
    """In-memory catalog, optionally loaded from a JSON object keyed by barcode."""

    def __init__(self, products: Mapping[str, ProductRecord | Mapping[str, Any]] | None = None) -> None:
        self._products: dict[str, ProductRecord] = {}
        for barcode, product in (products or {}).items():
            if isinstance(product, ProductRecord):
                self._products[barcode] = product
            else:
                self._products[barcode] = ProductRecord(
                    barcode=barcode,
                    name=str(product.get("name", "")),
                    brand=str(product.get("brand", "")),
                    category=str(product.get("category", "")),
                    price=product.get("price"),
                    description=product.get("description"),
                )

    @classmethod
    def from_json_file(cls, path: str | Path) -> "StaticProductCatalog":
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise CatalogError(f"could not load product catalog {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise CatalogError(f"product catalog {path} must be a JSON object keyed by barcode")
        return cls(data)

    def lookup(self, barcode: str) -> ProductRecord | None:
        return self._products.get(barcode)

    def __len__(self) -> int:
        return len(self._products)


class OpenFoodFactsCatalog:
    """Product lookups against the Open Food Facts v0 product API."""

    def __init__(
        self,
        base_url: str = "https://world.openfoodfacts.org",
        *,
        timeout: float = 5.0,
        session: requests.Session | None = None,
        log_level: int = 20,
    ) -> None:
        self.base = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.log = setup_logging(component_name="catalog", log_level=log_level)
        self.s = session or requests.Session()
        self.s.headers.update({"Accept": "application/json"})

    def lookup(self, barcode: str) -> ProductRecord | None:
        if not barcode.isdigit():
            return None

        url = f"{self.base}/api/v0/product/{barcode}.json"
        try:
            r = self.s.get(url, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as exc:
            raise CatalogError(f"open food facts lookup failed for {barcode}: {exc}") from exc

        if not isinstance(data, dict) or data.get("status") != 1 or not data.get("product"):
            self.log.debug("open food facts has no product %s", barcode)
            return None

        product = data["product"]
        categories = product.get("categories_tags") or []
        category = str(categories[0]).replace("en:", "") if categories else "General"

        return ProductRecord(
            barcode=barcode,
            name=product.get("product_name") or "Unknown Product",
            brand=product.get("brands") or "Unknown Brand",
            category=category,
            description=product.get("generic_name") or None,
        )


class ChainedProductCatalog:
    """Tries each catalog in order; the first hit wins.

    A failing source is logged and skipped. CatalogError is raised only when
    every source failed.
    """

    def __init__(self, catalogs: Iterable[ProductCatalog], log_level: int = 20) -> None:
        self.catalogs = list(catalogs)
        self.log = setup_logging(component_name="catalog", log_level=log_level)

    def lookup(self, barcode: str) -> ProductRecord | None:
        errors: list[CatalogError] = []
        for catalog in self.catalogs:
            try:
                record = catalog.lookup(barcode)
            except CatalogError as exc:
                self.log.warning("%s lookup failed: %s", type(catalog).__name__, exc)
                errors.append(exc)
                continue
            if record is not None:
                return record

        if errors and len(errors) == len(self.catalogs):
            raise CatalogError("all product catalogs failed for " + barcode) from errors[-1]
        return None
