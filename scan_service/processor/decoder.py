from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import zxingcpp

from scan_service.processor.errors import DecoderFault
from scan_service.utils.utils import ImageSource, load_image, setup_logging


class Symbology(str, Enum):
    QR_CODE = "QR_CODE"
    DATA_MATRIX = "DATA_MATRIX"
    AZTEC = "AZTEC"
    PDF_417 = "PDF_417"
    CODE_39 = "CODE_39"
    CODE_93 = "CODE_93"
    CODE_128 = "CODE_128"
    EAN_8 = "EAN_8"
    EAN_13 = "EAN_13"
    UPC_A = "UPC_A"
    UPC_E = "UPC_E"
    ITF = "ITF"
    CODABAR = "CODABAR"


_ZXING_FORMATS: dict[object, Symbology] = {
    zxingcpp.BarcodeFormat.QRCode: Symbology.QR_CODE,
    zxingcpp.BarcodeFormat.DataMatrix: Symbology.DATA_MATRIX,
    zxingcpp.BarcodeFormat.Aztec: Symbology.AZTEC,
    zxingcpp.BarcodeFormat.PDF417: Symbology.PDF_417,
    zxingcpp.BarcodeFormat.Code39: Symbology.CODE_39,
    zxingcpp.BarcodeFormat.Code93: Symbology.CODE_93,
    zxingcpp.BarcodeFormat.Code128: Symbology.CODE_128,
    zxingcpp.BarcodeFormat.EAN8: Symbology.EAN_8,
    zxingcpp.BarcodeFormat.EAN13: Symbology.EAN_13,
    zxingcpp.BarcodeFormat.UPCA: Symbology.UPC_A,
    zxingcpp.BarcodeFormat.UPCE: Symbology.UPC_E,
    zxingcpp.BarcodeFormat.ITF: Symbology.ITF,
    zxingcpp.BarcodeFormat.Codabar: Symbology.CODABAR,
}


@dataclass(frozen=True, slots=True)
class DecodedCode:
    text: str
    symbology: Symbology | None


class CodeDecoder:
    """Multi-symbology barcode/QR decoder backed by zxing-cpp.

    `decode` returns None when the image holds no readable code; that is the
    normal trigger for the OCR fallback, not an error.
    """

    def __init__(self, symbologies: list[Symbology] | None = None, log_level: int = 20) -> None:
        self.log = setup_logging(component_name="decoder", log_level=log_level)
        self.symbologies = list(symbologies) if symbologies else list(Symbology)
        wanted = set(self.symbologies)
        self._formats = tuple(fmt for fmt, sym in _ZXING_FORMATS.items() if sym in wanted)

    def decode(self, image: ImageSource) -> DecodedCode | None:
        """Decode the first readable code in a still image or video frame.

        Raises:
            InvalidImage: the input is not an image.
            DecoderFault: zxing-cpp failed while reading the image.
        """
        img = load_image(image)

        try:
            results = zxingcpp.read_barcodes(img, formats=self._formats)
        except Exception as exception:
            raise DecoderFault("barcode decoding failed: " + str(exception)) from exception

        for result in results:
            if not getattr(result, "valid", True) or not result.text:
                continue
            symbology = _ZXING_FORMATS.get(result.format)
            self.log.debug("decoded %s code (%d chars)", symbology, len(result.text))
            return DecodedCode(text=result.text, symbology=symbology)

        self.log.debug("no code found in image")
        return None
