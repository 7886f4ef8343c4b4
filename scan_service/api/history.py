from datetime import date

from fastapi import APIRouter, Request
from fastapi.responses import ORJSONResponse, Response

from scan_service.dto.scan_response import HistoryResponse
from scan_service.utils.utils import ScanHistory, export_csv

history_api = APIRouter(prefix="/api")


@history_api.get("/history", response_model=HistoryResponse, response_class=ORJSONResponse)
def history(request: Request) -> ORJSONResponse:
    scan_history: ScanHistory = request.app.state.history
    return ORJSONResponse(content=HistoryResponse(results=scan_history.snapshot()).model_dump(mode="json"))


@history_api.get("/history/export")
def export_history(request: Request) -> Response:
    scan_history: ScanHistory = request.app.state.history
    file_name = f"scan_results_{date.today().isoformat()}.csv"
    return Response(
        content=export_csv(scan_history.snapshot()),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )
