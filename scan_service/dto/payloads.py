from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class UpiPayment(BaseModel):
    """Fields of a `upi://pay?...` payment intent. Every field may be missing."""

    model_config = ConfigDict(frozen=True)

    type: Literal["upi"] = "upi"
    payee_address: str | None = Field(default=None, description="`pa`, the payee VPA.")
    payee_name: str | None = Field(default=None, description="`pn`.")
    amount: str | None = Field(default=None, description="`am`, kept verbatim.")
    currency: str = Field(default="INR", description="`cu`, INR when absent.")
    note: str | None = Field(default=None, description="`tn`.")
    merchant_code: str | None = Field(default=None, description="`mc`.")
    transaction_ref: str | None = Field(default=None, description="`tr`.")


class UrlContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["url"] = "url"
    url: str
    domain: str


class ProductInfo(BaseModel):
    """Product details for a retail barcode; placeholders when the catalog has no match."""

    model_config = ConfigDict(frozen=True)

    type: Literal["product"] = "product"
    barcode: str
    name: str
    brand: str
    category: str
    price: str
    format: str | None = None
    description: str | None = None
    scanned_at: datetime


class GenericText(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    content: str
    length: int


class ReceiptItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    price: float


class ReceiptData(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["receipt"] = "receipt"
    merchant_name: str
    date: str
    total_amount: float | None = None
    items: tuple[ReceiptItem, ...] = ()
    item_count: int = 0
    raw_text: str = ""


Payload = Annotated[
    Union[UpiPayment, UrlContent, ProductInfo, GenericText, ReceiptData],
    Field(discriminator="type"),
]
