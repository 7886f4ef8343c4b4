class ScanServiceError(Exception):
    """Base class for errors raised by the scan pipeline and its collaborators."""


class InvalidImage(ScanServiceError):
    """The input could not be loaded as an image."""


class DecoderFault(ScanServiceError):
    """The barcode decoder failed for a reason other than "no code in the image"."""


class OcrFailure(ScanServiceError):
    """The OCR engine failed or produced no text."""


class StorageError(ScanServiceError):
    """The scan store could not persist or read a record."""


class CatalogError(ScanServiceError):
    """A product catalog lookup failed (network, bad payload, ...)."""


class CameraUnavailable(ScanServiceError):
    """The capture device could not be opened (missing or permission denied)."""
