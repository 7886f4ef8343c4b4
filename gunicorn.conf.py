from scan_service.settings import settings

wsgi_app = "wsgi:app"
bind = f"0.0.0.0:{settings.SCAN_SERVICE_PORT}"
workers = settings.SCAN_WEB_SERVICE_WORKERS
# OCR of a large receipt can take a while on a busy host
timeout = 120
loglevel = "debug" if settings.DEBUG_MODE else "info"
accesslog = "-"
errorlog = "-"
