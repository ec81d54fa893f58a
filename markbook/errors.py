# SPDX-License-Identifier: Apache-2.0
"""
Error types raised by the rendering/export pipeline.

Routes translate these into HTTP responses:
- ManuscriptNotFound -> 404
- StoreError -> 500; the stored file is left untouched
- ExportError (and subclasses) -> 500 with a generic message; root cause logged
"""
from __future__ import annotations


class MarkbookError(Exception):
    """Base class for all markbook errors."""


class ManuscriptNotFound(MarkbookError):
    def __init__(self, manuscript_id: str):
        super().__init__(f"manuscript not found: {manuscript_id}")
        self.manuscript_id = manuscript_id


class ExportError(MarkbookError):
    """An export invocation failed; nothing was produced."""


class RenderTimeout(ExportError):
    """The browser rendering session did not finish loading in time."""


class ExternalToolFailure(ExportError):
    """The typesetting command is unavailable, rejected its input, or exited non-zero."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class TemporaryIOFailure(ExportError):
    """A temporary file could not be written or read."""


class StoreError(MarkbookError):
    """A stored manuscript exists but could not be read or parsed."""

    def __init__(self, manuscript_id: str, reason: str):
        super().__init__(f"manuscript {manuscript_id} is unreadable: {reason}")
        self.manuscript_id = manuscript_id
