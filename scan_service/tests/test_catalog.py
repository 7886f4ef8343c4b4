import json
import os
import tempfile
import unittest
from unittest.mock import MagicMock

import requests

from scan_service.integrations.catalog import (
    ChainedProductCatalog,
    OpenFoodFactsCatalog,
    ProductRecord,
    StaticProductCatalog,
)
from scan_service.processor.errors import CatalogError


def _response(payload=None, exc=None):
    response = MagicMock()
    if exc is not None:
        response.raise_for_status.side_effect = exc
    response.json.return_value = payload
    return response


class TestStaticProductCatalog(unittest.TestCase):

    def test_from_json_file(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = os.path.join(tmp_dir, "catalog.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"123": {"name": "Soap", "brand": "Clean", "category": "Household", "price": "₹40"}}, f)

            catalog = StaticProductCatalog.from_json_file(path)

        self.assertEqual(len(catalog), 1)
        self.assertEqual(catalog.lookup("123"),
                         ProductRecord(barcode="123", name="Soap", brand="Clean", category="Household", price="₹40"))
        self.assertIsNone(catalog.lookup("999"))

    def test_bad_file_raises_catalog_error(self):
        with self.assertRaises(CatalogError):
            StaticProductCatalog.from_json_file("/nonexistent/catalog.json")

        with tempfile.TemporaryDirectory() as tmp_dir:
            path = os.path.join(tmp_dir, "catalog.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(["not", "a", "mapping"], f)
            with self.assertRaises(CatalogError):
                StaticProductCatalog.from_json_file(path)


class TestOpenFoodFactsCatalog(unittest.TestCase):

    def setUp(self) -> None:
        self.session = MagicMock()
        self.session.headers = {}
        self.catalog = OpenFoodFactsCatalog("https://off.test/", timeout=2.0, session=self.session, log_level=30)

    def test_found_product(self):
        self.session.get.return_value = _response({
            "status": 1,
            "product": {
                "product_name": "Masala Chai",
                "brands": "Tata",
                "categories_tags": ["en:beverages", "en:teas"],
                "generic_name": "Spiced tea",
            },
        })

        record = self.catalog.lookup("8901234567890")

        self.session.get.assert_called_once_with("https://off.test/api/v0/product/8901234567890.json", timeout=2.0)
        self.assertEqual(record.name, "Masala Chai")
        self.assertEqual(record.brand, "Tata")
        self.assertEqual(record.category, "beverages")
        self.assertEqual(record.description, "Spiced tea")

    def test_sparse_product_uses_defaults(self):
        self.session.get.return_value = _response({"status": 1, "product": {"code": "1"}})
        record = self.catalog.lookup("1")
        self.assertEqual(record.name, "Unknown Product")
        self.assertEqual(record.brand, "Unknown Brand")
        self.assertEqual(record.category, "General")

    def test_unknown_product(self):
        self.session.get.return_value = _response({"status": 0, "status_verbose": "product not found"})
        self.assertIsNone(self.catalog.lookup("8901234567890"))

    def test_non_numeric_barcode_is_not_looked_up(self):
        self.assertIsNone(self.catalog.lookup("ABC-123"))
        self.session.get.assert_not_called()

    def test_http_error_raises_catalog_error(self):
        self.session.get.return_value = _response(exc=requests.HTTPError("503"))
        with self.assertRaises(CatalogError):
            self.catalog.lookup("8901234567890")

    def test_connection_error_raises_catalog_error(self):
        self.session.get.side_effect = requests.ConnectionError("down")
        with self.assertRaises(CatalogError):
            self.catalog.lookup("8901234567890")


class TestChainedProductCatalog(unittest.TestCase):

    def setUp(self) -> None:
        self.local = StaticProductCatalog({"1": {"name": "Local", "brand": "A", "category": "B"}})
        self.failing = MagicMock()
        self.failing.lookup.side_effect = CatalogError("offline")

    def test_first_hit_wins(self):
        remote = MagicMock()
        chain = ChainedProductCatalog([self.local, remote], log_level=30)
        self.assertEqual(chain.lookup("1").name, "Local")
        remote.lookup.assert_not_called()

    def test_failing_source_is_skipped(self):
        chain = ChainedProductCatalog([self.failing, self.local], log_level=30)
        self.assertEqual(chain.lookup("1").name, "Local")
        self.assertIsNone(chain.lookup("2"))

    def test_raises_only_when_every_source_failed(self):
        chain = ChainedProductCatalog([self.failing], log_level=30)
        with self.assertRaises(CatalogError):
            chain.lookup("1")
