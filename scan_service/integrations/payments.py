from __future__ import annotations

from typing import Protocol, runtime_checkable

import requests

from scan_service.dto.payloads import UpiPayment
from scan_service.utils.utils import setup_logging


@runtime_checkable
class PaymentDispatcher(Protocol):
    def dispatch(self, payment: UpiPayment, intent_uri: str) -> None:
        """Hand a parsed UPI intent to the payment handler. Fire-and-forget."""
        ...


class LoggingPaymentDispatcher:
    """Default dispatcher for headless deployments: records the intent only."""

    def __init__(self, log_level: int = 20) -> None:
        self.log = setup_logging(component_name="payments", log_level=log_level)

    def dispatch(self, payment: UpiPayment, intent_uri: str) -> None:
        self.log.info("UPI intent for payee=%s amount=%s %s: %s",
                      payment.payee_address, payment.amount, payment.currency, intent_uri)


class WebhookPaymentDispatcher:
    """POSTs `{intent, payment}` to a payment handler URL."""

    def __init__(self, url: str, *, timeout: float = 5.0, session: requests.Session | None = None,
                 log_level: int = 20) -> None:
        self.url = url
        self.timeout = float(timeout)
        self.s = session or requests.Session()
        self.log = setup_logging(component_name="payments", log_level=log_level)

    def dispatch(self, payment: UpiPayment, intent_uri: str) -> None:
        body = {"intent": intent_uri, "payment": payment.model_dump(mode="json", exclude={"type"})}
        r = self.s.post(self.url, json=body, timeout=self.timeout)
        r.raise_for_status()
        self.log.info("UPI intent forwarded to %s (status %s)", self.url, r.status_code)
