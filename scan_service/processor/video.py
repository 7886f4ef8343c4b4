from __future__ import annotations

import threading
import traceback
from collections.abc import Callable
from typing import Any, Protocol

import cv2

from scan_service.dto.scan_result import ScanResult
from scan_service.processor.errors import CameraUnavailable, DecoderFault, InvalidImage
from scan_service.processor.pipeline import CompletionCallback, ScanPipeline
from scan_service.settings import settings
from scan_service.utils.utils import setup_logging


class FrameSource(Protocol):
    """The subset of `cv2.VideoCapture` the session relies on."""

    def isOpened(self) -> bool: ...

    def read(self) -> tuple[bool, Any]: ...

    def release(self) -> None: ...


class VideoScanSession:
    """Cancellable decode loop over a live video source.

    `start()` opens the capture device and runs the decode loop on a worker
    thread until a code is found, the source runs dry, or `stop()` is called.
    The device is released exactly once whichever way the loop ends, and
    `stop()` may be called any number of times.

    Stopping only cancels the decode loop. OCR work running elsewhere for a
    previously captured frame is not affected.
    """

    def __init__(
        self,
        pipeline: ScanPipeline,
        on_detect: CompletionCallback | None = None,
        *,
        capture_factory: Callable[[], FrameSource] | None = None,
        camera_index: int | None = None,
        frame_interval: float | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.on_detect = on_detect
        self.frame_interval = settings.SCAN_SERVICE_VIDEO_FRAME_INTERVAL if frame_interval is None else frame_interval
        self.log = setup_logging(component_name="video", log_level=pipeline.context.log_level)

        if camera_index is None:
            camera_index = settings.SCAN_SERVICE_CAMERA_INDEX
        self._capture_factory = capture_factory or (lambda: cv2.VideoCapture(camera_index))
        self._capture: FrameSource | None = None
        self._released = False
        self._release_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

        self.result: ScanResult | None = None
        self.error: Exception | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "VideoScanSession":
        if self._thread is not None:
            raise RuntimeError("video scan session can only be started once")

        capture = self._capture_factory()
        if capture is None or not capture.isOpened():
            if capture is not None:
                capture.release()
            raise CameraUnavailable("could not open the capture device (missing or permission denied)")

        self._capture = capture
        self._thread = threading.Thread(target=self._run, name="video_scan_loop", daemon=True)
        self._thread.start()
        self.log.info("video scan session started")
        return self

    def _run(self) -> None:
        try:
            while not self._stop_event.is_set():
                ok, frame = self._capture.read()  # type: ignore[union-attr]
                if not ok:
                    self.log.warning("capture device stopped delivering frames")
                    break

                try:
                    code = self.pipeline.context.decoder.decode(frame)
                except (DecoderFault, InvalidImage) as exc:
                    self.log.error("decoder fault in video loop: %s", exc)
                    self.error = exc
                    break

                if code is not None:
                    if self._stop_event.is_set():
                        break
                    self.result = self.pipeline.finish(self.pipeline.build_code_result(code), self.on_detect)
                    break

                self._stop_event.wait(self.frame_interval)
        except Exception as exc:
            self.log.error("video scan loop failed: " + str(traceback.format_exc()))
            self.error = exc
        finally:
            self._release()

    def _release(self) -> None:
        with self._release_lock:
            if self._released or self._capture is None:
                return
            self._released = True
            self._capture.release()
        self.log.info("capture device released")

    def stop(self, timeout: float = 5.0) -> None:
        """Cancel the decode loop and release the device. Idempotent."""
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
        self._release()

    def wait(self, timeout: float | None = None) -> ScanResult | None:
        """Block until the loop ends and return the detected result, if any."""
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        return self.result

    def __enter__(self) -> "VideoScanSession":
        return self.start()

    def __exit__(self, exc_type, exc_value, tb) -> None:
        self.stop()
