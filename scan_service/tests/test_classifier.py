import unittest

from scan_service.dto.scan_result import ScanKind
from scan_service.processor.classifier import ContentType, classify, kind_for
from scan_service.processor.decoder import Symbology


class TestClassifier(unittest.TestCase):

    def test_upi_links_in_any_case(self):
        for raw in ["upi://pay?pa=a@b", "UPI://PAY?pa=a@b", "Upi://Pay?am=1", "upi://pay?"]:
            with self.subTest(raw=raw):
                self.assertEqual(classify(raw, Symbology.QR_CODE), ContentType.UPI)

    def test_upi_rule_wins_over_url_rule(self):
        self.assertEqual(classify("upi://pay?pa=a@b&tn=see www.shop.in"), ContentType.UPI)

    def test_urls(self):
        for raw in ["https://example.com/a", "http://x.org", "visit www.example.com", "httpfoo"]:
            with self.subTest(raw=raw):
                self.assertEqual(classify(raw, Symbology.QR_CODE), ContentType.URL)

    def test_url_rule_beats_commodity_symbology(self):
        self.assertEqual(classify("www.example.com", Symbology.CODE_128), ContentType.URL)

    def test_commodity_symbologies_are_products(self):
        for symbology in [Symbology.EAN_13, Symbology.EAN_8, Symbology.UPC_A, Symbology.UPC_E, Symbology.CODE_128]:
            with self.subTest(symbology=symbology):
                self.assertEqual(classify("8901234567890", symbology), ContentType.PRODUCT_BARCODE)

    def test_everything_else_is_generic_text(self):
        self.assertEqual(classify("hello world", Symbology.QR_CODE), ContentType.GENERIC_TEXT)
        self.assertEqual(classify("12345", Symbology.CODE_39), ContentType.GENERIC_TEXT)
        self.assertEqual(classify("12345"), ContentType.GENERIC_TEXT)

    def test_kind_mapping(self):
        self.assertEqual(kind_for(ContentType.UPI), ScanKind.UPI)
        self.assertEqual(kind_for(ContentType.URL), ScanKind.QR)
        self.assertEqual(kind_for(ContentType.PRODUCT_BARCODE), ScanKind.BARCODE)
        self.assertEqual(kind_for(ContentType.GENERIC_TEXT), ScanKind.QR)
