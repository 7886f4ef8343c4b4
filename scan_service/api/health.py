from fastapi import APIRouter, Request
from fastapi.responses import ORJSONResponse

from scan_service.dto.info_response import InfoResponse
from scan_service.processor.decoder import Symbology
from scan_service.utils.utils import get_app_info

health_api = APIRouter(prefix="/api")


@health_api.get("/health", response_class=ORJSONResponse)
def health() -> ORJSONResponse:
    return ORJSONResponse(content={"status": "healthy"})


@health_api.get("/ready", response_class=ORJSONResponse)
def ready(request: Request) -> ORJSONResponse:
    issues: list[str] = []

    if getattr(request.app.state, "pipeline", None) is None:
        issues.append("pipeline_not_initialized")
    if getattr(request.app.state, "history", None) is None:
        issues.append("history_not_initialized")

    if issues:
        return ORJSONResponse(status_code=503, content={"status": "not_ready", "issues": issues})
    return ORJSONResponse(content={"status": "ready"})


@health_api.get("/info", response_model=InfoResponse, response_class=ORJSONResponse)
def info() -> ORJSONResponse:
    return ORJSONResponse(content=get_app_info([symbology.value for symbology in Symbology]))
