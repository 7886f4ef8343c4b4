"""
ASGI entrypoint: serves the scan service FastAPI application with uvicorn
"""
import uvicorn

from scan_service.app import create_app
from scan_service.settings import settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.SCAN_SERVICE_PORT, reload=False)
