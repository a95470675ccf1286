"""
Doppelganger Server — Flask app serving the mirror UI and the webhook.

The app is a thin layer: each blueprint parses the request, calls one
service from the container and renders the result.
"""

from __future__ import annotations

import logging
import signal
import threading
import time
from pathlib import Path

from flask import Flask, g, request
from werkzeug.exceptions import HTTPException
from werkzeug.serving import make_server

from ..cancellation import Cancellation
from ..container import Services
from .errors import render_error
from .routes_mirror import mirror_bp
from .routes_repos import repos_bp
from .routes_webhook import webhook_bp

logger = logging.getLogger(__name__)


def create_app(services: Services) -> Flask:
    """Create the Flask application around an already wired container."""

    static_folder = Path(__file__).parent / "static"
    template_folder = Path(__file__).parent / "templates"

    app = Flask(
        __name__,
        static_folder=str(static_folder),
        static_url_path="/static",
        template_folder=str(template_folder),
    )

    app.config["SERVICES"] = services

    # ── Register Blueprints ───────────────────────────────────────
    # /mirror and /apihook are single-segment, so they never clash with /<owner>/<repo>
    app.register_blueprint(mirror_bp)                                   # POST /mirror
    app.register_blueprint(webhook_bp)                                  # POST /apihook
    app.register_blueprint(repos_bp)                                    # /, /src/*, /<owner>/<repo>

    # ── Error Handlers ────────────────────────────────────────────

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        return render_error(e.description or e.name, e.code or 500, request.referrer)

    @app.errorhandler(Exception)
    def internal_server_error(e: Exception):
        """Catch-all: log the traceback, show the user a generic page."""
        logger.error(f"Unhandled error on {request.method} {request.path}: {e}", exc_info=True)
        return render_error("Internal server error", 500, request.referrer)

    # ── Request Scope ─────────────────────────────────────────────

    @app.before_request
    def start_request():
        """Start the clock and create this request's cancellation token."""
        g.start_time = time.monotonic()
        g.cancel = Cancellation(timeout=services.settings.request_timeout)

    @app.after_request
    def log_request_end(response):
        duration_ms = 0
        if "start_time" in g:
            duration_ms = int((time.monotonic() - g.start_time) * 1000)

        log_fn = logger.debug if request.path.startswith("/static/") else logger.info
        log_fn(f"{request.method} {request.path} → {response.status_code} ({duration_ms}ms)")
        return response

    @app.teardown_request
    def cancel_request(exc):
        """
        Fire the token once the view has returned.

        Only work that outlives the view observes this; anything running
        inside the view is stopped by the token's deadline instead.
        """
        cancel = g.pop("cancel", None)
        if cancel is not None:
            cancel.cancel()

    logger.info(f"Doppelganger app initialized (mirrors={services.settings.mirror_dir})")

    return app


def run_server(app: Flask, host: str, port: int) -> None:
    """
    Serve ``app`` until SIGINT or SIGTERM.

    Raises OSError when the address cannot be bound.
    """
    server = make_server(host, port, app, threaded=True)
    logger.info(f"doppelganger is listening on {host}:{port}")

    def _shutdown_signal(signum, frame):
        logger.info("shutdown signal received, terminating...")
        # shutdown() blocks until serve_forever returns, so not from this thread
        threading.Thread(target=server.shutdown, name="shutdown", daemon=True).start()

    signal.signal(signal.SIGINT, _shutdown_signal)
    signal.signal(signal.SIGTERM, _shutdown_signal)

    try:
        server.serve_forever()
    finally:
        server.server_close()
        logger.info("server stopped")
