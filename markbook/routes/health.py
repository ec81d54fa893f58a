# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import platform
import shutil
import sys
from typing import Any, Dict

from flask import Blueprint

from . import get_settings, json_ok

bp = Blueprint("health", __name__)


@bp.get("")
def health() -> Any:
    cfg = get_settings()
    info: Dict[str, Any] = {
        "service": "markbook-api",
        "python": sys.version.split()[0],
        "platform": platform.platform(terse=True),
        "default_renderer": cfg.DEFAULT_RENDERER,
        "default_pdf_engine": cfg.DEFAULT_PDF_ENGINE,
        "pandoc_available": shutil.which(cfg.PANDOC_BIN) is not None,
    }
    return json_ok({"status": "ok", "info": info})
