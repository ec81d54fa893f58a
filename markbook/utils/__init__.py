# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations
"""
Utility package for markbook.
Exports:
- fs: filesystem helpers (slugs, unique temp names, scoped temp files)
"""
from . import fs as fs  # re-export
__all__ = ["fs"]
