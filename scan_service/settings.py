import logging
import os
from pathlib import Path
from sys import platform
from typing import Any

from pydantic import AliasChoices, Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore", validate_assignment=True)

    SCAN_SERVICE_VERSION: str = Field(
        "dev",
        min_length=1,
        validation_alias=AliasChoices("SCAN_SERVICE_VERSION", "SCAN_SERVICE_IMAGE_RELEASE_VERSION"),
    )
    SCAN_SERVICE_LOG_LEVEL: int = Field(20, ge=0, le=50)
    SCAN_SERVICE_DEBUG_MODE: bool = Field(False)
    SCAN_TMP_DIR: str | None = None

    SCAN_SERVICE_PORT: int = Field(8090, ge=1, le=65535)
    SCAN_WEB_SERVICE_WORKERS: int = Field(1, ge=1)
    SCAN_SERVICE_WORKERS: int = Field(4, ge=1)
    SCAN_SERVICE_MAX_UPLOAD_BYTES: int = Field(10 * 1024 * 1024, gt=0)

    SCAN_TESSDATA_PREFIX: str = Field("/opt/homebrew/share/tessdata", min_length=1)
    SCAN_SERVICE_TESSERACT_LANG: str = Field("eng", min_length=1)
    SCAN_CONVERT_GRAYSCALE_IMAGES: bool = Field(True)

    SCAN_SERVICE_CURRENCY_SYMBOL: str = Field("₹", min_length=1)
    SCAN_SERVICE_HISTORY_SIZE: int = Field(10, ge=1)

    SCAN_SERVICE_DB_PATH: str | None = None

    SCAN_SERVICE_PRODUCT_CATALOG_FILE: str | None = None
    SCAN_SERVICE_OPEN_FOOD_FACTS_ENABLED: bool = Field(True)
    SCAN_SERVICE_OPEN_FOOD_FACTS_URL: str = Field("https://world.openfoodfacts.org", min_length=1)
    SCAN_SERVICE_HTTP_TIMEOUT: float = Field(5.0, gt=0)

    SCAN_SERVICE_PAYMENT_WEBHOOK_URL: str | None = None

    SCAN_SERVICE_CAMERA_INDEX: int = Field(0, ge=0)
    SCAN_SERVICE_VIDEO_FRAME_INTERVAL: float = Field(0.1, ge=0)

    @field_validator("SCAN_SERVICE_CURRENCY_SYMBOL")
    @classmethod
    def strip_currency_symbol(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("currency symbol must not be blank")
        return value

    @field_validator("SCAN_WEB_SERVICE_WORKERS")
    @classmethod
    def warn_workers(cls, value: int) -> int:
        if value > 1:
            logging.warning(
                "SCAN_WEB_SERVICE_WORKERS > 1: scan history is kept per worker and will not be shared."
            )
        return value

    def model_post_init(self, __context: Any) -> None:
        tessdata_prefix = self.SCAN_TESSDATA_PREFIX

        if platform in ("linux", "linux2"):
            tessdata_prefix = "/usr/share/tesseract-ocr/5/tessdata"

            if not os.path.exists(tessdata_prefix):
                tessdata_prefix = "/usr/share/tesseract-ocr/4.00/tessdata"
        elif platform == "darwin":
            tessdata_prefix = "/opt/homebrew/share/tessdata"

        if platform in ("linux", "linux2", "darwin") and "SCAN_TESSDATA_PREFIX" not in self.model_fields_set:
            self.SCAN_TESSDATA_PREFIX = tessdata_prefix

    @computed_field  # type: ignore[prop-decorator]
    @property
    def LOG_LEVEL(self) -> int:
        # 50 - CRITICAL, 40 - ERROR, 30 - WARNING, 20 - INFO, 10 - DEBUG, 0 - NOTSET
        return self.SCAN_SERVICE_LOG_LEVEL

    @computed_field  # type: ignore[prop-decorator]
    @property
    def DEBUG_MODE(self) -> bool:
        return self.SCAN_SERVICE_DEBUG_MODE

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ROOT_DIR(self) -> str:
        return str(Path(__file__).resolve().parents[1])

    @computed_field  # type: ignore[prop-decorator]
    @property
    def TMP_FILE_DIR(self) -> str:
        return self.SCAN_TMP_DIR or os.path.join(self.ROOT_DIR, "tmp")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def DB_PATH(self) -> str:
        return self.SCAN_SERVICE_DB_PATH or os.path.join(self.TMP_FILE_DIR, "scans.sqlite3")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def TESSDATA_PREFIX(self) -> str:
        return self.SCAN_TESSDATA_PREFIX

    @computed_field  # type: ignore[prop-decorator]
    @property
    def TESSERACT_LANGUAGE(self) -> str:
        return self.SCAN_SERVICE_TESSERACT_LANG

    @computed_field  # type: ignore[prop-decorator]
    @property
    def CURRENCY_SYMBOL(self) -> str:
        return self.SCAN_SERVICE_CURRENCY_SYMBOL

    @computed_field  # type: ignore[prop-decorator]
    @property
    def HISTORY_SIZE(self) -> int:
        return self.SCAN_SERVICE_HISTORY_SIZE

    @computed_field  # type: ignore[prop-decorator]
    @property
    def PIPELINE_THREADS(self) -> int:
        return self.SCAN_SERVICE_WORKERS

settings = Settings() # type: ignore[call-arg]
