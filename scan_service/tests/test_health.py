import unittest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from scan_service.api.health import health_api
from scan_service.dto.pipeline_context import PipelineContext
from scan_service.processor.pipeline import ScanPipeline
from scan_service.utils.utils import ScanHistory

from .utils_helpers import FakeDecoder


class TestHealthApi(unittest.TestCase):
    def setUp(self) -> None:
        self.app = FastAPI()
        self.app.include_router(health_api)
        self.client = TestClient(self.app)

    def tearDown(self) -> None:
        self.client.close()

    def test_health_returns_healthy(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})

    def test_ready_returns_503_when_pipeline_not_initialized(self):
        response = self.client.get("/api/ready")
        self.assertEqual(response.status_code, 503)
        data = response.json()
        self.assertEqual(data.get("status"), "not_ready")
        self.assertIn("pipeline_not_initialized", data.get("issues", []))
        self.assertIn("history_not_initialized", data.get("issues", []))

    def test_ready_returns_200_when_pipeline_and_history_exist(self):
        self.app.state.pipeline = ScanPipeline(PipelineContext(decoder=FakeDecoder(), log_level=30))
        self.app.state.history = ScanHistory(5)

        response = self.client.get("/api/ready")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ready"})

    def test_info_lists_symbologies(self):
        response = self.client.get("/api/info")
        self.assertEqual(response.status_code, 200)
        info = response.json()
        self.assertEqual(info["service_app_name"], "scan-service")
        self.assertIn("QR_CODE", info["symbologies"])
        self.assertIn("DATA_MATRIX", info["symbologies"])
        self.assertEqual(len(info["symbologies"]), 13)
