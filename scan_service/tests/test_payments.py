import unittest
from unittest.mock import MagicMock

import requests

from scan_service.dto.payloads import UpiPayment
from scan_service.integrations.payments import LoggingPaymentDispatcher, PaymentDispatcher, WebhookPaymentDispatcher


class TestPaymentDispatchers(unittest.TestCase):

    def test_dispatchers_match_protocol(self):
        self.assertIsInstance(LoggingPaymentDispatcher(log_level=30), PaymentDispatcher)
        self.assertIsInstance(WebhookPaymentDispatcher("http://payments.test", session=MagicMock()), PaymentDispatcher)

    def test_logging_dispatcher(self):
        dispatcher = LoggingPaymentDispatcher()
        with self.assertLogs("payments", level="INFO") as logs:
            dispatcher.dispatch(UpiPayment(payee_address="a@b", amount="5"), "upi://pay?pa=a@b&am=5")
        self.assertIn("upi://pay?pa=a@b&am=5", logs.output[0])

    def test_webhook_posts_intent(self):
        session = MagicMock()
        dispatcher = WebhookPaymentDispatcher("http://payments.test/intent", timeout=3.0, session=session,
                                              log_level=30)

        dispatcher.dispatch(UpiPayment(payee_address="a@b", amount="5"), "upi://pay?pa=a@b&am=5")

        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        self.assertEqual(args[0], "http://payments.test/intent")
        self.assertEqual(kwargs["timeout"], 3.0)
        self.assertEqual(kwargs["json"]["intent"], "upi://pay?pa=a@b&am=5")
        self.assertEqual(kwargs["json"]["payment"]["payee_address"], "a@b")
        self.assertNotIn("type", kwargs["json"]["payment"])

    def test_webhook_http_error_propagates(self):
        session = MagicMock()
        session.post.return_value.raise_for_status.side_effect = requests.HTTPError("500")
        dispatcher = WebhookPaymentDispatcher("http://payments.test/intent", session=session, log_level=30)

        with self.assertRaises(requests.HTTPError):
            dispatcher.dispatch(UpiPayment(), "upi://pay?")
