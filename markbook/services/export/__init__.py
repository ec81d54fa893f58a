# SPDX-License-Identifier: Apache-2.0
"""
Export services for manuscripts.

This package provides:
- Browser rendering (assembled HTML -> headless Chromium -> PDF)
- Pandoc typesetting (transformed markdown -> LaTeX engine -> PDF)
- The orchestrator choosing between them, or returning HTML directly

Public entry points:
- export_manuscript(manuscript, options?, renderers?)
- export_by_id(store, manuscript_id, options?, renderers?)
- default_renderers(settings?)
"""
from __future__ import annotations

from .orchestrator import (
    Renderer,
    default_renderers,
    effective_options,
    export_by_id,
    export_manuscript,
)

__all__ = [
    "Renderer",
    "default_renderers",
    "effective_options",
    "export_by_id",
    "export_manuscript",
]
