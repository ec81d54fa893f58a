# SPDX-License-Identifier: Apache-2.0
"""
markbook

Manuscript rendering & export service.
Exposes nothing at import-time beyond package markers to keep startup fast.
"""
from __future__ import annotations

__all__ = []
