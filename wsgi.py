import re

from a2wsgi import ASGIMiddleware

from scan_service.app import create_app

asgi_app = create_app()
asgi_middleware = ASGIMiddleware(asgi_app)  # type: ignore[arg-type]

_BAD_URI = re.compile(r"(%2e%2e|%00|\${jndi:|/winnt/|/etc/passwd)", re.I)


def app(environ, start_response):
    path = environ.get("PATH_INFO", "")
    try:
        if _BAD_URI.search(path):
            start_response("400 Bad Request", [("Content-Type", "text/plain")])
            return [b"Bad Request: blocked"]

        return asgi_middleware(environ, start_response)

    except UnicodeDecodeError:
        start_response("400 Bad Request", [("Content-Type", "text/plain")])
        return [b"Bad Request: malformed path"]

    except Exception:
        # keep the worker alive on a single broken request
        start_response("500 Internal Server Error", [("Content-Type", "text/plain")])
        return [b"Internal Server Error"]
