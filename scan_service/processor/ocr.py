from __future__ import annotations

import time
from collections.abc import Callable

from PIL import Image
from tesserocr import PSM, PyTessBaseAPI

from scan_service.processor.errors import OcrFailure
from scan_service.utils.utils import ImageSource, load_image, setup_logging

# characters tesseract may emit for receipts; keeps OCR noise out of amounts
RECEIPT_CHAR_WHITELIST = (
    "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz.,:-/₹$€£¥ \n()[]'&"
)

ProgressCallback = Callable[[float], None]


class OcrAdapter:
    """Runs tesseract (through tesserocr) over a single receipt image.

    A fresh PyTessBaseAPI is created per call: the API object is not
    thread-safe and batch scans run pipelines in parallel.
    """

    def __init__(
        self,
        tessdata_prefix: str,
        language: str = "eng",
        *,
        grayscale: bool = True,
        char_whitelist: str | None = RECEIPT_CHAR_WHITELIST,
        log_level: int = 20,
    ) -> None:
        self.log = setup_logging(component_name="ocr", log_level=log_level)
        self.tessdata_prefix = tessdata_prefix
        self.language = language
        self.grayscale = grayscale
        self.char_whitelist = char_whitelist

    def _prepare(self, image: ImageSource) -> Image.Image:
        img = load_image(image)
        if not isinstance(img, Image.Image):
            img = Image.fromarray(img)
        if self.grayscale and img.mode != "L":
            img = img.convert("L")
        return img

    def recognize(
        self,
        image: ImageSource,
        language: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> str:
        """ OCR an image and return the recognized text.

        Args:
            image: bytes, path, PIL image or numpy frame.
            language (str, optional): tesseract language string, e.g. "eng+hin".
                Defaults to the adapter language.
            progress (callable, optional): receives values in [0.0, 1.0] as the
                run advances, ending with 1.0 on success.

        Raises:
            OcrFailure: tesseract failed or returned no text.

        Returns:
            str: text exactly as tesseract produced it
        """
        lang = language or self.language
        report = progress or (lambda _value: None)
        ocr_start_time = time.time()

        try:
            report(0.0)
            img = self._prepare(image)
            report(0.1)

            with PyTessBaseAPI(path=self.tessdata_prefix, lang=lang, psm=PSM.SINGLE_BLOCK) as tess_api:
                if self.char_whitelist:
                    tess_api.SetVariable("tessedit_char_whitelist", self.char_whitelist)
                tess_api.SetImage(img)
                report(0.3)
                tess_api.Recognize()
                report(0.9)
                output_text = tess_api.GetUTF8Text()
        except Exception as exception:
            raise OcrFailure("OCR failed: " + str(exception)) from exception

        if not output_text or not output_text.strip():
            raise OcrFailure("OCR produced no text")

        report(1.0)
        self.log.info(f"OCR processing finished | Elapsed : {time.time() - ocr_start_time:.4f} seconds")

        return output_text
