import logging

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse

from scan_service.api.api import api
from scan_service.dto.pipeline_context import PipelineContext
from scan_service.integrations.catalog import (
    ChainedProductCatalog,
    OpenFoodFactsCatalog,
    ProductCatalog,
    StaticProductCatalog,
)
from scan_service.integrations.payments import LoggingPaymentDispatcher, WebhookPaymentDispatcher
from scan_service.integrations.storage import SqliteScanStore
from scan_service.processor.decoder import CodeDecoder
from scan_service.processor.ocr import OcrAdapter
from scan_service.processor.pipeline import ScanPipeline
from scan_service.processor.receipt_parser import ReceiptParser
from scan_service.settings import Settings, settings
from scan_service.utils.utils import ScanHistory


def build_pipeline_context(config: Settings = settings) -> PipelineContext:
    """
        :description: Builds the pipeline collaborators from the service settings
        :param config: Settings instance, defaults to the module level settings
        :return: PipelineContext shared by every pipeline run of this worker
    """

    catalogs: list[ProductCatalog] = []
    if config.SCAN_SERVICE_PRODUCT_CATALOG_FILE:
        catalogs.append(StaticProductCatalog.from_json_file(config.SCAN_SERVICE_PRODUCT_CATALOG_FILE))
    if config.SCAN_SERVICE_OPEN_FOOD_FACTS_ENABLED:
        catalogs.append(OpenFoodFactsCatalog(config.SCAN_SERVICE_OPEN_FOOD_FACTS_URL,
                                             timeout=config.SCAN_SERVICE_HTTP_TIMEOUT,
                                             log_level=config.LOG_LEVEL))

    if config.SCAN_SERVICE_PAYMENT_WEBHOOK_URL:
        payments = WebhookPaymentDispatcher(config.SCAN_SERVICE_PAYMENT_WEBHOOK_URL,
                                            timeout=config.SCAN_SERVICE_HTTP_TIMEOUT,
                                            log_level=config.LOG_LEVEL)
    else:
        payments = LoggingPaymentDispatcher(log_level=config.LOG_LEVEL)

    return PipelineContext(
        decoder=CodeDecoder(log_level=config.LOG_LEVEL),
        ocr=OcrAdapter(config.TESSDATA_PREFIX,
                       config.TESSERACT_LANGUAGE,
                       grayscale=config.SCAN_CONVERT_GRAYSCALE_IMAGES,
                       log_level=config.LOG_LEVEL),
        receipt_parser=ReceiptParser(config.CURRENCY_SYMBOL),
        catalog=ChainedProductCatalog(catalogs, log_level=config.LOG_LEVEL) if catalogs else None,
        store=SqliteScanStore(config.DB_PATH, log_level=config.LOG_LEVEL),
        payments=payments,
        pipeline_threads=config.PIPELINE_THREADS,
        log_level=config.LOG_LEVEL,
    )


def create_app(context: PipelineContext | None = None) -> FastAPI:
    """
        :description: Creates FastAPI application with API router, scan pipeline and result history
        :param context: optional prebuilt PipelineContext, built from settings when omitted
        :return: FastAPI application instance
    """

    app = FastAPI(title="Scan Service",
                  description="Barcode, QR, UPI and receipt scanning API",
                  version=settings.SCAN_SERVICE_VERSION,
                  default_response_class=ORJSONResponse,
                  debug=settings.DEBUG_MODE)
    app.include_router(api)

    if context is None:
        context = build_pipeline_context(settings)

    app.state.pipeline = ScanPipeline(context)
    app.state.history = ScanHistory(settings.HISTORY_SIZE)

    logging.info("scan service started, history size: %s, pipeline threads: %s",
                 settings.HISTORY_SIZE, context.pipeline_threads)

    return app
