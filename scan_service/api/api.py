from fastapi import APIRouter

from scan_service.api.health import health_api
from scan_service.api.history import history_api
from scan_service.api.scan import scan_api

api = APIRouter()

api.include_router(health_api)
api.include_router(scan_api)
api.include_router(history_api)
