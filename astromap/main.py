# astromap/main.py
from __future__ import annotations

import logging
import os
import traceback
from time import perf_counter
from typing import Final, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, Gauge, Histogram, generate_latest
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from astromap.api.routes import api as api_bp
from astromap.core.ephemeris import EphemerisProvider
from astromap.utils.config import load_config
from astromap.version import VERSION

# ───────────────────────── Prometheus ─────────────────────────
MET_REQUESTS: Final = Counter("astromap_requests_total", "API requests", ["route"])
REQ_LATENCY: Final = Histogram("astromap_request_seconds", "API request latency", ["route"])
GAUGE_APP_UP: Final = Gauge("astromap_app_up", "1 if app is running")

_SEEDED_ROUTES = (
    "/", "/health", "/metrics",
    "/api/health", "/api/config", "/api/timescales",
    "/api/acg/lines", "/api/zenith", "/api/parans", "/api/grid", "/api/map",
)


# ───────────────────────── helpers: logging & errors ─────────────────────────
def _configure_logging(app: Flask) -> None:
    gerr = logging.getLogger("gunicorn.error")
    if gerr.handlers:
        app.logger.handlers = gerr.handlers
        app.logger.setLevel(gerr.level)
        logging.getLogger("astromap").setLevel(gerr.level)
    else:
        logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))

def _register_errors(app: Flask) -> None:
    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        app.logger.warning("HTTP %s at %s %s: %s", e.code, request.method, request.path, e.description)
        return jsonify(
            ok=False,
            error="http_error",
            code=e.code,
            name=e.name,
            message=e.description,
            path=request.path,
        ), e.code

    @app.errorhandler(Exception)
    def _any(e: Exception):
        tb = traceback.format_exc()
        app.logger.error("UNHANDLED %s at %s %s\n%s", type(e).__name__, request.method, request.path, tb)
        return jsonify(
            ok=False,
            error="internal_error",
            type=type(e).__name__,
            message=str(e),
            path=request.path,
        ), 500

# ───────────────────────── health & metrics ─────────────────────────
def _register_health(app: Flask) -> None:
    @app.route("/", methods=["GET"])
    def root():
        return jsonify(ok=True, service="astromap-backend", health="/health"), 200

    @app.route("/health", methods=["GET"])
    @app.route("/healthz", methods=["GET"])
    def health():
        return jsonify(ok=True, status="ok", version=VERSION), 200

def _metrics_auth_ok() -> bool:
    auth = request.authorization
    user = os.getenv("METRICS_USER", "")
    pw = os.getenv("METRICS_PASS", "")
    return bool(
        auth and auth.type == "basic" and auth.username == user and auth.password == pw and user and pw
    )

def _register_metrics(app: Flask) -> None:
    for route in _SEEDED_ROUTES:
        MET_REQUESTS.labels(route=route).inc(0)
        REQ_LATENCY.labels(route=route).observe(0.0)
    GAUGE_APP_UP.set(1.0)

    @app.before_request
    def _before():
        p = request.path or ""
        if p.startswith("/api/") or p in ("/", "/health", "/healthz"):
            MET_REQUESTS.labels(route=p).inc()
            request.environ["astromap.t0"] = perf_counter()

    @app.after_request
    def _after(resp):
        t0 = request.environ.get("astromap.t0")
        if t0 is not None:
            REQ_LATENCY.labels(route=request.path).observe(perf_counter() - t0)
        return resp

    @app.route("/metrics", methods=["GET"])
    def metrics_endpoint():
        if not _metrics_auth_ok():
            return Response("Unauthorized", 401, {"WWW-Authenticate": 'Basic realm="metrics"'})
        GAUGE_APP_UP.set(1.0)
        return Response(generate_latest(REGISTRY), mimetype=CONTENT_TYPE_LATEST)

# ───────────────────────── app factory ─────────────────────────
def create_app(config_path: Optional[str] = None, ephemeris: Optional[EphemerisProvider] = None) -> Flask:
    app = Flask(__name__)
    app.json.sort_keys = False  # type: ignore[attr-defined]
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore

    _configure_logging(app)

    cfg_path = config_path or os.environ.get("ASTRO_CONFIG", "config/defaults.yaml")
    app.cfg = load_config(cfg_path)  # type: ignore[attr-defined]
    if ephemeris is not None:
        app.extensions["astromap.ephemeris"] = ephemeris

    _register_health(app)
    _register_errors(app)
    _register_metrics(app)
    app.register_blueprint(api_bp)

    app.logger.info(
        "App initialized; version=%s workers=%s kernel=%s",
        VERSION, app.cfg.engine.workers, app.cfg.ephemeris.kernel,  # type: ignore[attr-defined]
    )
    return app

# ───────────────────────── app instance ─────────────────────────
app = create_app()

# CORS for browser UIs
_allowed_origin = os.environ.get("CORS_ALLOW_ORIGIN") or "*"
CORS(
    app,
    resources={r"/.*": {"origins": _allowed_origin}},
    supports_credentials=False,
    methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=600,
)

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
