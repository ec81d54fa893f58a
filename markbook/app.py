# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from typing import Mapping, Optional

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Settings
from .errors import StoreError
from .routes import RENDERERS_KEY, SETTINGS_KEY, STORE_KEY, json_err
from .routes.health import bp as health_bp
from .routes.manuscripts import bp as manuscripts_bp
from .services.export import default_renderers
from .services.storage import JsonManuscriptStore, ManuscriptStore


def _configure_logging(level: str | int) -> None:
    numeric = (
        level
        if isinstance(level, int)
        else getattr(logging, str(level).upper(), logging.INFO)
    )
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _apply_security_headers(resp):
    resp.headers.setdefault("X-Content-Type-Options", "nosniff")
    resp.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    resp.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
    return resp


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ManuscriptStore] = None,
    renderers: Optional[Mapping] = None,
) -> Flask:
    """
    Application factory used by WSGI servers and `python -m flask`.

    - Registers /api/health and /api/manuscripts
    - Wires the manuscript store and PDF renderers (injectable for tests)
    - Adds production middleware & headers
    """
    cfg = settings or Settings()  # pydantic-settings loads .env
    _configure_logging(cfg.LOG_LEVEL)
    app = Flask(__name__)

    # Honor reverse proxy headers (TLS offloading, load balancers)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    if cfg.CORS_ENABLE:
        CORS(
            app,
            resources={r"/api/*": {"origins": cfg.CORS_ALLOW_ORIGINS}},
            supports_credentials=cfg.CORS_ALLOW_CREDENTIALS,
            methods=cfg.CORS_ALLOW_METHODS,
            allow_headers=cfg.CORS_ALLOW_HEADERS,
            expose_headers=["Content-Disposition"],
        )

    app.extensions[SETTINGS_KEY] = cfg
    app.extensions[STORE_KEY] = store if store is not None else JsonManuscriptStore(cfg.manuscripts_dir)
    app.extensions[RENDERERS_KEY] = renderers if renderers is not None else default_renderers(cfg)

    app.register_blueprint(health_bp, url_prefix="/api/health")
    app.register_blueprint(manuscripts_bp, url_prefix="/api/manuscripts")

    # ----------------------
    # JSON error handlers
    # ----------------------
    @app.errorhandler(400)
    def bad_request(e):
        return _apply_security_headers(
            (jsonify({"ok": False, "error": {"message": "Bad Request"}}), 400)
        )

    @app.errorhandler(404)
    def not_found(e):
        return _apply_security_headers(
            (jsonify({"ok": False, "error": {"message": "Not Found"}}), 404)
        )

    @app.errorhandler(405)
    def method_not_allowed(e):
        return _apply_security_headers(
            (jsonify({"ok": False, "error": {"message": "Method Not Allowed"}}), 405)
        )

    @app.errorhandler(500)
    def server_error(e):
        logging.getLogger(__name__).exception("Unhandled error")
        return _apply_security_headers(
            (jsonify({"ok": False, "error": {"message": "Internal Server Error"}}), 500)
        )

    @app.errorhandler(StoreError)
    def store_error(e: StoreError):
        app.logger.error("Store failure: %s", e)
        return json_err("store_error", "Manuscript could not be loaded", status=500)

    @app.after_request
    def add_headers(resp):
        return _apply_security_headers(resp)

    app.logger.info(
        "App ready. data=%s, renderer=%s, engine=%s",
        str(cfg.DATA_DIR),
        cfg.DEFAULT_RENDERER,
        cfg.DEFAULT_PDF_ENGINE,
    )
    return app
