from pydantic import BaseModel, Field

from scan_service.dto.scan_result import PipelineFailure, ScanResult


class ScanResponse(BaseModel):
    """Response payload for a successful /api/scan call."""

    result: ScanResult = Field(..., description="Recognition result.")


class FailureResponse(BaseModel):
    """Response payload when the pipeline resolves to a failure."""

    failure: PipelineFailure = Field(..., description="Why no result was produced.")


class BatchScanResponse(BaseModel):
    """Response payload for /api/scan/batch, entries in completion order."""

    results: list[ScanResult] = Field(default_factory=list)
    failures: list[dict] = Field(default_factory=list, description="`{file_name, failure}` entries.")


class HistoryResponse(BaseModel):
    results: list[ScanResult] = Field(default_factory=list, description="Most recent results first.")
