from __future__ import annotations

import time
import traceback
from collections.abc import Callable, Sequence
from multiprocessing.dummy import Pool

from scan_service.dto.payloads import UpiPayment
from scan_service.dto.pipeline_context import PipelineContext
from scan_service.dto.scan_result import (
    CODE_CONFIDENCE,
    RECEIPT_CONFIDENCE,
    FailureReason,
    PipelineFailure,
    ScanKind,
    ScanMode,
    ScanResult,
)
from scan_service.processor.classifier import ContentType, classify, kind_for
from scan_service.processor.decoder import DecodedCode
from scan_service.processor.errors import DecoderFault, InvalidImage, OcrFailure
from scan_service.processor.extractors import extract_payload, upi_intent_uri
from scan_service.processor.ocr import ProgressCallback
from scan_service.utils.utils import ImageSource, load_image, setup_logging

CompletionCallback = Callable[[ScanResult], None]
ScanOutcome = ScanResult | PipelineFailure


class ScanPipeline:
    """Decode -> classify -> extract, with an OCR receipt fallback.

    A pipeline holds no per-run state; every call to `recognize` works on its
    own locals, so one instance may serve concurrent runs.
    """

    def __init__(self, context: PipelineContext) -> None:
        self.context = context
        self.log = setup_logging(component_name="pipeline", log_level=context.log_level)

    def _fail(self, reason: FailureReason, message: str = "") -> PipelineFailure:
        self.log.info("scan failed: %s %s", reason.value, message)
        return PipelineFailure(reason=reason, message=message)

    def _dispatch_payment(self, payment: UpiPayment, raw: str) -> None:
        if self.context.payments is None:
            return
        try:
            self.context.payments.dispatch(payment, upi_intent_uri(raw))
        except Exception:
            self.log.warning("payment dispatch failed: " + str(traceback.format_exc()))

    def build_code_result(self, code: DecodedCode) -> ScanResult:
        """Classify decoded text, extract its payload and wrap it in a result."""
        content_type = classify(code.text, code.symbology)
        payload = extract_payload(content_type, code, self.context.catalog)

        if content_type is ContentType.UPI and isinstance(payload, UpiPayment):
            self._dispatch_payment(payload, code.text)

        self.log.info("decoded %s content (%s)", content_type.value,
                      code.symbology.value if code.symbology else "unknown symbology")

        return ScanResult(
            kind=kind_for(content_type),
            raw_content=code.text,
            payload=payload,
            confidence=CODE_CONFIDENCE,
        )

    def build_receipt_result(self, text: str) -> ScanResult:
        receipt = self.context.receipt_parser.parse(text)
        self.log.info("parsed receipt from %s with %d item(s)", receipt.merchant_name, receipt.item_count)
        return ScanResult(
            kind=ScanKind.RECEIPT,
            raw_content=text,
            payload=receipt,
            confidence=RECEIPT_CONFIDENCE,
        )

    def finish(self, result: ScanResult, on_complete: CompletionCallback | None = None) -> ScanResult:
        """Persist the result and notify the caller.

        A storage failure is logged and copied into `result.error`; the
        result itself stays valid.
        """
        if self.context.store is not None:
            try:
                self.context.store.create_scan(result.kind, result.raw_content, result.payload, result.confidence)
            except Exception as exc:
                self.log.error("failed to save scan %s: %s", result.id, exc)
                result = result.model_copy(update={"error": f"storage failure: {exc}"})

        if on_complete is not None:
            try:
                on_complete(result)
            except Exception:
                self.log.error("completion callback failed: " + str(traceback.format_exc()))

        return result

    def _recognize(
        self,
        image: ImageSource,
        scan_mode: ScanMode,
        on_complete: CompletionCallback | None,
        progress: ProgressCallback | None,
    ) -> ScanOutcome:
        try:
            img = load_image(image)
        except InvalidImage as exc:
            return self._fail(FailureReason.INVALID_IMAGE, str(exc))

        try:
            code = self.context.decoder.decode(img)
        except DecoderFault as exc:
            self.log.error("decoder fault: %s", exc)
            return self._fail(FailureReason.DECODER_FAULT, str(exc))

        if code is not None:
            return self.finish(self.build_code_result(code), on_complete)

        if scan_mode is not ScanMode.RECEIPT:
            return self._fail(FailureReason.NO_CODE_FOUND, "no barcode or QR code found in image")

        if self.context.ocr is None:
            return self._fail(FailureReason.OCR_FAILURE, "no OCR engine configured")

        self.log.info("no code found, falling back to receipt OCR")
        try:
            text = self.context.ocr.recognize(img, language=self.context.ocr_language, progress=progress)
        except OcrFailure as exc:
            self.log.error("receipt OCR failed: %s", exc)
            return self._fail(FailureReason.OCR_FAILURE, str(exc))

        return self.finish(self.build_receipt_result(text), on_complete)

    def recognize(
        self,
        image: ImageSource,
        scan_mode: ScanMode = ScanMode.CODE,
        on_complete: CompletionCallback | None = None,
        progress: ProgressCallback | None = None,
    ) -> ScanOutcome:
        """ Runs one recognition attempt over a still image or frame.

        Args:
            image: bytes, path, PIL image or numpy frame.
            scan_mode (ScanMode): only `ScanMode.RECEIPT` enables the OCR fallback
                when no code is found.
            on_complete (callable, optional): called with the result after it
                has been stored. Not called for failures.
            progress (callable, optional): OCR progress in [0.0, 1.0].

        Returns:
            ScanResult | PipelineFailure: never raises.
        """
        start_time = time.time()

        try:
            outcome = self._recognize(image, ScanMode(scan_mode), on_complete, progress)
        except Exception:
            self.log.error("unexpected pipeline error: " + str(traceback.format_exc()))
            outcome = PipelineFailure(reason=FailureReason.INTERNAL_ERROR, message="unexpected pipeline error")

        self.log.debug("scan finished | Elapsed : %.4f seconds", time.time() - start_time)
        return outcome

    def recognize_many(
        self,
        images: Sequence[ImageSource],
        scan_mode: ScanMode = ScanMode.CODE,
        on_complete: CompletionCallback | None = None,
    ) -> list[tuple[int, ScanOutcome]]:
        """Run one independent pipeline per image on a thread pool.

        Returns `(index, outcome)` pairs in completion order; `on_complete`
        also fires in completion order.
        """
        if not images:
            return []

        def run(indexed: tuple[int, ImageSource]) -> tuple[int, ScanOutcome]:
            index, image = indexed
            return index, self.recognize(image, scan_mode, on_complete)

        threads = min(self.context.pipeline_threads, len(images))
        self.log.info("processing %d image(s) on %d thread(s)", len(images), threads)

        with Pool(threads) as pool:
            return list(pool.imap_unordered(run, list(enumerate(images))))
