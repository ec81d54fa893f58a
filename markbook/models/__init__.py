# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

# Re-export commonly used models for convenience
from .export import (
    ExportFormat,
    ExportOptions,
    ExportSettings,
    FontOverrides,
    PageSize,
    PdfEngine,
    RenderedArtifact,
    RenderStrategy,
)
from .manuscript import Chapter, ColumnLayout, CoverConfig, Manuscript, Theme

__all__ = [
    "ExportFormat",
    "ExportOptions",
    "ExportSettings",
    "FontOverrides",
    "PageSize",
    "PdfEngine",
    "RenderedArtifact",
    "RenderStrategy",
    "Chapter",
    "ColumnLayout",
    "CoverConfig",
    "Manuscript",
    "Theme",
]
