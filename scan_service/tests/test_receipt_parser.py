import unittest
from datetime import date

from scan_service.processor.receipt_parser import UNKNOWN_MERCHANT, ReceiptParser

from .utils_helpers import SAMPLE_RECEIPT_LINES, SAMPLE_RECEIPT_TEXT


class TestReceiptParser(unittest.TestCase):

    def setUp(self) -> None:
        self.parser = ReceiptParser("₹", today=lambda: date(2024, 1, 2))

    def test_parse_sample_receipt_lines(self):
        receipt = self.parser.parse(SAMPLE_RECEIPT_LINES)

        self.assertEqual(receipt.merchant_name, "Joe's Store")
        self.assertEqual(receipt.date, "12/05/2024")
        self.assertEqual(receipt.total_amount, 450)
        self.assertEqual(receipt.item_count, 2)
        self.assertEqual(len(receipt.items), 2)
        self.assertEqual(receipt.items[0].description, "Coffee")
        self.assertEqual(receipt.items[0].price, 150)
        self.assertEqual(receipt.items[1].description, "Total")
        self.assertEqual(receipt.raw_text, SAMPLE_RECEIPT_TEXT)

    def test_text_and_lines_give_the_same_receipt(self):
        self.assertEqual(self.parser.parse(SAMPLE_RECEIPT_TEXT), self.parser.parse(SAMPLE_RECEIPT_LINES))

    def test_no_currency_symbol(self):
        receipt = self.parser.parse("Some Shop\nMilk 40\nBread 25")

        self.assertIsNone(receipt.total_amount)
        self.assertEqual(receipt.items, ())
        self.assertEqual(receipt.item_count, 0)
        self.assertEqual(receipt.merchant_name, "Some Shop")

    def test_missing_date_falls_back_to_today(self):
        receipt = self.parser.parse("Some Shop\nTea ₹20")
        self.assertEqual(receipt.date, "02/01/2024")

    def test_dash_separated_date(self):
        self.assertEqual(self.parser.parse("Shop Name\n3-7-2023\nTea ₹20").date, "3-7-2023")

    def test_merchant_skips_short_numeric_and_dated_lines(self):
        receipt = self.parser.parse("AB\n12345\n01/01/2024\nReal Merchant")
        self.assertEqual(receipt.merchant_name, UNKNOWN_MERCHANT)

        receipt = self.parser.parse("AB\n12345\nCafe Mocha\nLatte ₹120")
        self.assertEqual(receipt.merchant_name, "Cafe Mocha")

    def test_total_is_largest_amount_with_thousands_separator(self):
        receipt = self.parser.parse("Big Shop\nTV ₹1,25,000.50\nCable ₹499\nTotal ₹1,00,000")
        self.assertEqual(receipt.total_amount, 125000.5)
        self.assertEqual(receipt.items[0].price, 125000.5)

    def test_short_lines_are_not_items(self):
        receipt = self.parser.parse("Tiny Shop\n₹50")
        self.assertEqual(receipt.item_count, 0)
        self.assertEqual(receipt.total_amount, 50)

    def test_unparsable_amount_gives_zero_price(self):
        receipt = self.parser.parse("Odd Shop\nDonation ₹,,")
        self.assertEqual(receipt.item_count, 1)
        self.assertEqual(receipt.items[0].price, 0.0)
        self.assertIsNone(receipt.total_amount)

    def test_other_currency_symbol(self):
        receipt = ReceiptParser("$").parse("Diner\nBurger $12.50\nTotal $15.00")
        self.assertEqual(receipt.total_amount, 15.0)
        self.assertEqual(receipt.item_count, 2)

    def test_empty_text(self):
        receipt = self.parser.parse("")
        self.assertEqual(receipt.merchant_name, UNKNOWN_MERCHANT)
        self.assertIsNone(receipt.total_amount)
        self.assertEqual(receipt.item_count, 0)
