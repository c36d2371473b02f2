# astrocusp/main.py
from __future__ import annotations

import logging
import os
import traceback
from time import perf_counter
from typing import Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from astrocusp.api.routes import ENGINE_EXT_KEY, api
from astrocusp.core.chart import ChartEngine
from astrocusp.core.errors import CuspEngineError, InvalidInputError
from astrocusp.utils.config import EngineConfig, load_config
from astrocusp.utils.metrics import GAUGE_APP_UP, MET_ERRORS, MET_REQUESTS, REQ_LATENCY, seed
from astrocusp.utils.validators import ValidationError
from astrocusp.version import VERSION

# ───────────────────────── helpers: logging & errors ─────────────────────────
def _configure_logging(app: Flask) -> None:
    gerr = logging.getLogger("gunicorn.error")
    if gerr.handlers:
        app.logger.handlers = gerr.handlers
        app.logger.setLevel(gerr.level)
        pkg = logging.getLogger("astrocusp")
        pkg.handlers = gerr.handlers
        pkg.setLevel(gerr.level)
    else:
        logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))


def _status_for(e: CuspEngineError) -> int:
    return 400 if isinstance(e, InvalidInputError) else 422


def _register_errors(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        MET_ERRORS.labels(code="validation_error").inc()
        return jsonify(ok=False, error="validation_error", details=e.errors(), path=request.path), 400

    @app.errorhandler(CuspEngineError)
    def _engine(e: CuspEngineError):
        MET_ERRORS.labels(code=e.code).inc()
        status = _status_for(e)
        app.logger.warning("%s at %s %s: %s", e.code, request.method, request.path, e.message)
        body = dict(ok=False, error=e.code, message=e.message, path=request.path)
        iterations = getattr(e, "iterations", None)
        if iterations is not None:
            body["iterations"] = iterations
            body["last_step"] = e.last_step  # type: ignore[attr-defined]
        return jsonify(body), status

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
        MET_ERRORS.labels(code="internal_error").inc()
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
        return jsonify(ok=True, service="astrocusp", health="/health"), 200

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify(ok=True, status="ok", version=VERSION), 200


def _metrics_auth_ok() -> bool:
    user = os.getenv("METRICS_USER", "")
    pw = os.getenv("METRICS_PASS", "")
    if not (user and pw):
        return True
    auth = request.authorization
    return bool(auth and auth.type == "basic" and auth.username == user and auth.password == pw)


def _register_metrics(app: Flask) -> None:
    @app.before_request
    def _before():
        p = request.path or ""
        if p.startswith("/api/") or p == "/health":
            MET_REQUESTS.labels(route=p).inc()
            request.environ["astrocusp.t0"] = perf_counter()

    @app.after_request
    def _after(resp):
        t0 = request.environ.get("astrocusp.t0")
        if t0 is not None:
            REQ_LATENCY.labels(route=request.path).observe(perf_counter() - t0)
        return resp

    # /metrics (Basic Auth when METRICS_USER/METRICS_PASS are set)
    @app.route("/metrics", methods=["GET"])
    def metrics_endpoint():
        if not _metrics_auth_ok():
            return Response("Unauthorized", 401, {"WWW-Authenticate": 'Basic realm="metrics"'})
        GAUGE_APP_UP.set(1.0)
        return Response(generate_latest(REGISTRY), mimetype=CONTENT_TYPE_LATEST)


# ───────────────────────── app factory ─────────────────────────
def create_app(config: Optional[EngineConfig] = None, engine: Optional[ChartEngine] = None) -> Flask:
    app = Flask(__name__)
    app.json.sort_keys = False  # type: ignore[attr-defined]
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore

    _configure_logging(app)

    if engine is None:
        engine = ChartEngine(config or load_config())
    app.extensions[ENGINE_EXT_KEY] = engine

    seed()
    _register_health(app)
    _register_errors(app)
    _register_metrics(app)
    app.register_blueprint(api)

    # CORS for browser UIs
    allowed_origin = os.environ.get("CORS_ALLOW_ORIGIN") or "*"
    CORS(
        app,
        resources={r"/.*": {"origins": allowed_origin}},
        supports_credentials=False,
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=600,
    )

    app.logger.info(
        "astrocusp %s initialized; house_mode=%s obliquity_mode=%s",
        VERSION, engine.config.house_mode, engine.config.obliquity_mode,
    )
    return app


# ───────────────────────── app instance ─────────────────────────
app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
