"""Flask app factory for the brewdeck HTTP API."""

from __future__ import annotations

import time

from flask import Flask, Response, g, jsonify, request
from werkzeug.exceptions import HTTPException

from brewdeck.core.config import Settings
from brewdeck.core.logging import bind_request, clear_request, get_logger
from brewdeck.core.manager import BrewManager

log = get_logger(__name__)

ALLOWED_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOWED_HEADERS = "Content-Type, Authorization"
CORS_MAX_AGE = "86400"

_CODES = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _allowed_origin(origins: tuple[str, ...], origin: str | None) -> str | None:
    if "*" in origins:
        return "*"
    if origin and origin in origins:
        return origin
    return None


def create_app(
    settings: Settings | None = None,
    manager: BrewManager | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        settings: Runtime settings. Defaults to Settings().
        manager: Facade to serve. Built from settings when omitted.

    Returns:
        Configured Flask application.
    """
    settings = settings or Settings()
    app = Flask(__name__)
    app.config["BREWDECK_SETTINGS"] = settings
    app.extensions["brewdeck"] = manager or BrewManager(settings)

    from brewdeck.web.routes_api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    @app.before_request
    def _start_timer():  # type: ignore[no-untyped-def]
        g.request_start = time.perf_counter()
        g.request_id = bind_request(request.method, request.path)
        if request.method == "OPTIONS":
            return app.make_default_options_response()
        return None

    @app.after_request
    def _cors_and_log(response: Response) -> Response:
        allowed = _allowed_origin(settings.cors_origins, request.headers.get("Origin"))
        if allowed:
            response.headers["Access-Control-Allow-Origin"] = allowed
            if allowed != "*":
                response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
            response.headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
            response.headers["Access-Control-Max-Age"] = CORS_MAX_AGE
        response.headers["X-Request-ID"] = g.get("request_id", "")

        duration_ms = int((time.perf_counter() - g.get("request_start", time.perf_counter())) * 1000)
        event = dict(status=response.status_code, duration_ms=duration_ms)
        if response.status_code >= 500:
            log.error("request_complete", **event)
        elif response.status_code >= 400:
            log.warning("request_complete", **event)
        else:
            log.info("request_complete", **event)
        return response

    @app.teardown_request
    def _unbind(exc: BaseException | None) -> None:
        clear_request()

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):  # type: ignore[no-untyped-def]
        status = e.code or 500
        return jsonify({"error": e.description, "code": _CODES.get(status, "INTERNAL_ERROR")}), status

    @app.errorhandler(Exception)
    def _recover(e: Exception):  # type: ignore[no-untyped-def]
        log.error("unhandled_exception", path=request.path, error=str(e), exc_info=True)
        return jsonify({"error": "An unexpected error occurred.", "code": "INTERNAL_ERROR"}), 500

    log.info("app_created", brew=settings.brew_binary, cors_origins=list(settings.cors_origins))
    return app


def run_server(app: Flask, host: str = "127.0.0.1", port: int = 8080) -> None:
    """Serve the app with Flask's threaded development server."""
    log.info("server_start", url=f"http://{host}:{port}")
    app.run(host=host, port=port, debug=False, use_reloader=False, threaded=True)
