# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import secrets
import time
from typing import Any, Dict

from flask import current_app, jsonify, make_response, request

STORE_KEY = "markbook.store"
RENDERERS_KEY = "markbook.renderers"
SETTINGS_KEY = "markbook.settings"


def request_id() -> str:
    rid = request.headers.get("X-Request-ID")
    return rid or f"req_{int(time.time()*1000)}_{secrets.token_hex(6)}"


def _harden(resp):
    resp.headers.setdefault("X-Request-ID", request_id())
    resp.headers.setdefault("Cache-Control", "no-store")
    resp.headers.setdefault("X-Content-Type-Options", "nosniff")
    return resp


def json_ok(payload: Dict[str, Any], status: int = 200):
    return _harden(make_response(jsonify({"ok": True, **payload}), status))


def json_err(code: str, message: str, details: Any | None = None, status: int = 400):
    return _harden(
        make_response(
            jsonify({"ok": False, "error": {"code": code, "message": message, "details": details}}),
            status,
        )
    )


def get_store():
    return current_app.extensions[STORE_KEY]


def get_renderers():
    return current_app.extensions.get(RENDERERS_KEY)


def get_settings():
    return current_app.extensions[SETTINGS_KEY]
