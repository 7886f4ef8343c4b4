from fastapi import APIRouter, File, Query, Request, UploadFile
from fastapi.responses import ORJSONResponse
from starlette.concurrency import run_in_threadpool

from scan_service.dto.scan_response import BatchScanResponse, FailureResponse, ScanResponse
from scan_service.dto.scan_result import FailureReason, PipelineFailure, ScanMode, ScanResult
from scan_service.processor.pipeline import ScanPipeline
from scan_service.settings import settings
from scan_service.utils.utils import ScanHistory, is_image_stream

scan_api = APIRouter(prefix="/api")

FAILURE_STATUS_CODES: dict[FailureReason, int] = {
    FailureReason.NO_CODE_FOUND: 422,
    FailureReason.INVALID_IMAGE: 422,
    FailureReason.DECODER_FAULT: 500,
    FailureReason.OCR_FAILURE: 500,
    FailureReason.INTERNAL_ERROR: 500,
}


def _failure_response(failure: PipelineFailure, status_code: int | None = None) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=status_code or FAILURE_STATUS_CODES[failure.reason],
        content=FailureResponse(failure=failure).model_dump(mode="json"),
    )


def _rejected_upload(stream: bytes) -> tuple[PipelineFailure, int] | None:
    """Return the failure and status code for empty, oversized or non-image uploads."""
    if not stream:
        return PipelineFailure(reason=FailureReason.INVALID_IMAGE, message="empty upload"), 400
    if len(stream) > settings.SCAN_SERVICE_MAX_UPLOAD_BYTES:
        return PipelineFailure(reason=FailureReason.INVALID_IMAGE,
                               message=f"upload exceeds {settings.SCAN_SERVICE_MAX_UPLOAD_BYTES} bytes"), 413
    if not is_image_stream(stream):
        return PipelineFailure(reason=FailureReason.INVALID_IMAGE, message="upload is not a supported image type"), 415
    return None


@scan_api.post("/scan", response_model=ScanResponse, response_class=ORJSONResponse)
async def scan(
    request: Request,
    scan_mode: ScanMode = Query(ScanMode.CODE),
    file: UploadFile | None = File(default=None),
) -> ORJSONResponse:
    """Scan one image sent either as a multipart `file` or as the raw request body."""
    pipeline: ScanPipeline = request.app.state.pipeline
    history: ScanHistory = request.app.state.history

    stream = await file.read() if file is not None else await request.body()

    rejected = _rejected_upload(stream)
    if rejected is not None:
        return _failure_response(*rejected)

    outcome = await run_in_threadpool(pipeline.recognize, stream, scan_mode, history.append)

    if isinstance(outcome, PipelineFailure):
        return _failure_response(outcome)

    return ORJSONResponse(content=ScanResponse(result=outcome).model_dump(mode="json"))


@scan_api.post("/scan/batch", response_model=BatchScanResponse, response_class=ORJSONResponse)
async def scan_batch(
    request: Request,
    scan_mode: ScanMode = Query(ScanMode.CODE),
    files: list[UploadFile] = File(...),
) -> ORJSONResponse:
    """Scan several images concurrently. Entries come back in completion order."""
    pipeline: ScanPipeline = request.app.state.pipeline
    history: ScanHistory = request.app.state.history

    response = BatchScanResponse()
    names: list[str] = []
    streams: list[bytes] = []

    for upload in files:
        stream = await upload.read()
        file_name = upload.filename or f"file_{len(names) + len(response.failures)}"
        rejected = _rejected_upload(stream)
        if rejected is not None:
            failure, _status_code = rejected
            response.failures.append({"file_name": file_name, "failure": failure.model_dump(mode="json")})
            continue
        names.append(file_name)
        streams.append(stream)

    outcomes = await run_in_threadpool(pipeline.recognize_many, streams, scan_mode, history.append)

    for index, outcome in outcomes:
        if isinstance(outcome, ScanResult):
            response.results.append(outcome)
        else:
            response.failures.append({"file_name": names[index], "failure": outcome.model_dump(mode="json")})

    return ORJSONResponse(content=response.model_dump(mode="json"))
