import threading
from io import BytesIO

from PIL import Image

from scan_service.dto.payloads import Payload, UpiPayment
from scan_service.dto.scan_result import ScanKind
from scan_service.processor.decoder import CodeDecoder, DecodedCode, Symbology
from scan_service.processor.errors import OcrFailure, StorageError
from scan_service.processor.ocr import OcrAdapter

SAMPLE_RECEIPT_LINES = ["Joe's Store", "12/05/2024", "Coffee ₹150", "Total ₹450"]
SAMPLE_RECEIPT_TEXT = "\n".join(SAMPLE_RECEIPT_LINES)

UPI_LINK = "upi://pay?pa=shop@upi&pn=Corner%20Shop&am=250.00&cu=INR&tn=Groceries"


def make_image_bytes(width: int = 32, height: int = 32, color: str = "white", fmt: str = "PNG") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color=color).save(buffer, format=fmt)
    return buffer.getvalue()


class FakeDecoder(CodeDecoder):
    """Returns canned codes, keyed by image width when `codes_by_width` is given."""

    def __init__(self, code: DecodedCode | None = None, codes_by_width: dict[int, DecodedCode] | None = None,
                 exception: Exception | None = None) -> None:
        super().__init__(log_level=30)
        self.code = code
        self.codes_by_width = codes_by_width or {}
        self.exception = exception
        self.calls = 0
        self._lock = threading.Lock()

    def decode(self, image):
        with self._lock:
            self.calls += 1
        if self.exception is not None:
            raise self.exception
        if self.codes_by_width:
            return self.codes_by_width.get(image.size[0])
        return self.code


class FakeOcr(OcrAdapter):

    def __init__(self, text: str | None = SAMPLE_RECEIPT_TEXT) -> None:
        super().__init__("/tmp/tessdata", "eng", log_level=30)
        self.text = text
        self.languages: list[str | None] = []

    def recognize(self, image, language=None, progress=None):
        self.languages.append(language)
        if progress is not None:
            progress(0.0)
        if not self.text:
            raise OcrFailure("OCR produced no text")
        if progress is not None:
            progress(1.0)
        return self.text


class MemoryScanStore:

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.saved: list[tuple[ScanKind, str, Payload, float]] = []
        self._lock = threading.Lock()

    def create_scan(self, kind, raw_content, payload, confidence) -> str:
        if self.fail:
            raise StorageError("disk full")
        with self._lock:
            self.saved.append((kind, raw_content, payload, confidence))
            return str(len(self.saved))


class RecordingPaymentDispatcher:

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.intents: list[tuple[UpiPayment, str]] = []

    def dispatch(self, payment: UpiPayment, intent_uri: str) -> None:
        self.intents.append((payment, intent_uri))
        if self.fail:
            raise RuntimeError("payment handler unreachable")


def qr(text: str) -> DecodedCode:
    return DecodedCode(text=text, symbology=Symbology.QR_CODE)


def ean13(text: str = "8901234567890") -> DecodedCode:
    return DecodedCode(text=text, symbology=Symbology.EAN_13)
