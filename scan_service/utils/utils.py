"""Utility helpers for the scan service.

This module centralizes shared behaviors across the API and processor layers:
logging setup, image loading and file type detection, the bounded scan
history kept by the web app, and the flat export rows used for CSV export.
"""

import csv
import io
import json
import logging
import os
import sys
import threading
from collections import deque
from collections.abc import Iterable
from io import BytesIO
from pathlib import Path
from typing import Any

import filetype
import numpy as np
from filetype.types import IMAGE
from PIL import Image, UnidentifiedImageError

from scan_service.dto.scan_result import ScanResult
from scan_service.processor.errors import InvalidImage
from scan_service.settings import settings

EXPORT_CONTENT_PREFIX_LENGTH = 150

EXPORT_FIELDS = ["timestamp", "kind", "content_prefix", "confidence", "payload_as_json"]

ImageSource = bytes | str | Path | Image.Image | np.ndarray


def get_app_info(symbologies: list[str]) -> dict:
    """Return general information about the application.

    Used by the `/api/info` endpoint.
    """
    return {"service_app_name": "scan-service",
            "service_version": settings.SCAN_SERVICE_VERSION,
            "service_model": settings.TESSDATA_PREFIX,
            "symbologies": symbologies,
            "currency_symbol": settings.CURRENCY_SYMBOL}


def detect_file_type(stream: bytes) -> object | None:
    """Best-effort file type detection using the `filetype` library.

    Args:
        stream: Raw bytes to inspect.

    Returns:
        object | None: Detected type descriptor or None if unknown.
    """
    file_type = None
    try:
        file_type = filetype.guess(stream)
    except Exception:
        logging.error("Could not determine file Type")
    return file_type


def is_image_stream(stream: bytes) -> bool:
    """Return True if `filetype` recognises the bytes as one of its image types."""
    return detect_file_type(stream) in IMAGE


def load_image(source: ImageSource) -> Image.Image | np.ndarray:
    """Turn any accepted image input into something the decoder and OCR can read.

    PIL images and numpy frames pass through untouched; bytes and paths are
    opened with Pillow and copied into memory so no file handle stays open.

    Raises:
        InvalidImage: the input is empty, unreadable or not an image.
    """
    if isinstance(source, (Image.Image, np.ndarray)):
        return source

    if isinstance(source, (str, Path)):
        try:
            source = Path(source).read_bytes()
        except OSError as exc:
            raise InvalidImage(f"could not read image file: {exc}") from exc

    if not source:
        raise InvalidImage("empty image stream")

    try:
        with Image.open(BytesIO(source)) as imgf:
            imgf.load()
            return imgf.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise InvalidImage(f"could not decode image: {exc}") from exc


def to_export_row(result: ScanResult) -> dict[str, Any]:
    """Flatten a result into the tabular export row."""
    return {
        "timestamp": result.timestamp.isoformat(),
        "kind": result.kind.value,
        "content_prefix": result.raw_content[:EXPORT_CONTENT_PREFIX_LENGTH],
        "confidence": result.confidence,
        "payload_as_json": json.dumps(result.payload.model_dump(mode="json"), ensure_ascii=False),
    }


def export_csv(results: Iterable[ScanResult]) -> str:
    """Render results as CSV text, one export row per result."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS)
    writer.writeheader()
    for result in results:
        writer.writerow(to_export_row(result))
    return buffer.getvalue()


class ScanHistory:
    """Bounded, append-only list of recent results, newest first.

    Owned by the caller (the web app keeps one per worker). Appends happen in
    completion order, so concurrent batch runs land in nondeterministic order.
    """

    def __init__(self, max_size: int = 10) -> None:
        self._items: deque[ScanResult] = deque(maxlen=max_size)
        self._lock = threading.Lock()

    def append(self, result: ScanResult) -> None:
        with self._lock:
            self._items.appendleft(result)

    def snapshot(self) -> list[ScanResult]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def ensure_dir(path: str) -> None:
    """Create the parent directory of `path` if it does not exist yet."""
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)


def setup_logging(component_name: str = "config_logger", log_level: int = 20) -> logging.Logger:
    """Configure a logger that writes to stdout with a consistent format.

    Args:
        component_name: Logger name to configure.
        log_level: Logging level to set on the logger and handler.

    Returns:
        logging.Logger: Configured logger instance.
    """
    root_logger = logging.getLogger(component_name)
    log_format = '[%(asctime)s] [%(levelname)s] %(name)s: %(message)s'
    log_handler = logging.StreamHandler(sys.stdout)
    log_handler.setFormatter(logging.Formatter(fmt=log_format))
    log_handler.setLevel(level=log_level)
    root_logger.setLevel(level=log_level)
    root_logger.propagate = False

    # only add the handler if a previous one does not exists
    handler_exists = False
    for h in root_logger.handlers:
        if isinstance(h, logging.StreamHandler) and h.level is log_handler.level:
            handler_exists = True
            break

    if not handler_exists:
        root_logger.addHandler(log_handler)

    return root_logger
