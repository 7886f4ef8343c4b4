from scan_service.app.app import create_app

__all__ = ["create_app"]
