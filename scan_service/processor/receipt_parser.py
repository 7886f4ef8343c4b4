"""Heuristic receipt extraction over raw OCR text.

The rules are deliberately simple and tolerant of OCR noise:

* merchant name - first plausible line among the first three
* total - the largest currency amount anywhere on the receipt
* date - first `D/M/YYYY` or `D-M-YYYY` looking token, today's date otherwise
* items - every line carrying a currency amount

Only one currency symbol is recognised per parser instance. The "largest
amount is the total" rule misfires when a subtotal exceeds a discounted
total; that behaviour is kept as is.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from datetime import date

from scan_service.dto.payloads import ReceiptData, ReceiptItem

UNKNOWN_MERCHANT = "Unknown Merchant"
DATE_FORMAT = "%d/%m/%Y"

DATE_PATTERN = re.compile(r"\d{1,2}[/-]\d{1,2}[/-]\d{4}")
_DIGITS_ONLY = re.compile(r"\d+")

MERCHANT_SEARCH_LINES = 3
MERCHANT_MIN_LENGTH = 3
ITEM_MIN_LENGTH = 5


class ReceiptParser:

    def __init__(self, currency_symbol: str = "₹", today: Callable[[], date] = date.today) -> None:
        self.currency_symbol = currency_symbol
        self._today = today
        self._amount_pattern = re.compile(re.escape(currency_symbol) + r"[\d,]+\.?\d*")

    def _to_number(self, amount_text: str) -> float | None:
        digits = amount_text.replace(self.currency_symbol, "", 1).replace(",", "")
        try:
            return float(digits)
        except ValueError:
            return None

    def _merchant_name(self, lines: list[str]) -> str:
        for line in lines[:MERCHANT_SEARCH_LINES]:
            if (
                len(line) > MERCHANT_MIN_LENGTH
                and not _DIGITS_ONLY.fullmatch(line)
                and self.currency_symbol not in line
                and not DATE_PATTERN.search(line)
            ):
                return line
        return UNKNOWN_MERCHANT

    def _amounts(self, text: str) -> list[float]:
        amounts = []
        for match in self._amount_pattern.finditer(text):
            value = self._to_number(match.group(0))
            if value is not None:
                amounts.append(value)
        return amounts

    def _date(self, text: str) -> str:
        match = DATE_PATTERN.search(text)
        if match:
            return match.group(0)
        return self._today().strftime(DATE_FORMAT)

    def _items(self, lines: list[str]) -> list[ReceiptItem]:
        items = []
        for line in lines:
            if self.currency_symbol not in line or len(line) <= ITEM_MIN_LENGTH:
                continue
            match = self._amount_pattern.search(line)
            price = self._to_number(match.group(0)) if match else None
            description = self._amount_pattern.sub("", line, count=1).strip()
            items.append(ReceiptItem(description=description, price=price if price is not None else 0.0))
        return items

    def parse(self, text: str | Iterable[str]) -> ReceiptData:
        """Extract a ReceiptData record from OCR text. Never raises.

        `text` may also be given as an iterable of lines; it is joined with
        newlines and that joined text becomes `raw_text`.
        """
        if text is None:
            text = ""
        elif not isinstance(text, str):
            text = "\n".join(str(line) for line in text)

        lines = [line.strip() for line in text.splitlines() if line.strip()]
        amounts = self._amounts(text)
        items = self._items(lines)

        return ReceiptData(
            merchant_name=self._merchant_name(lines),
            date=self._date(text),
            total_amount=max(amounts) if amounts else None,
            items=tuple(items),
            item_count=len(items),
            raw_text=text,
        )
