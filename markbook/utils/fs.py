# SPDX-License-Identifier: Apache-2.0
"""
Filesystem utilities: download-safe slugs, unique temp names and scoped
temp-file lifetimes for export invocations.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

log = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


# -------------------------- Names & directories --------------------------


def slugify(name: str, default: str = "book") -> str:
    """Lowercase, collapse every run of non-alphanumerics into one hyphen."""
    s = _NON_ALNUM.sub("-", (name or "").strip().lower()).strip("-")
    return s or default


def ensure_dir(path: Path) -> Path:
    p = Path(path).expanduser().resolve()
    p.mkdir(parents=True, exist_ok=True)
    return p


def unique_name(prefix: str, suffix: str = "") -> str:
    """Millisecond timestamp plus random hex; safe across concurrent exports."""
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(6)}{suffix}"


# ------------------------------ Temp lifetimes ----------------------------


def remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        log.warning("Could not remove temporary file %s: %s", path, e)


@contextmanager
def scoped_temp_paths(root: Path, prefix: str, *suffixes: str) -> Iterator[List[Path]]:
    """
    Reserve one unique path per suffix under `root` and delete whatever exists
    at those paths when the block exits, however it exits.

    Paths are only reserved, not created; callers write them. Cleanup errors
    are logged and never replace the exception propagating out of the block.
    """
    base = ensure_dir(root)
    stem = unique_name(prefix)
    paths = [base / f"{stem}{sfx}" for sfx in suffixes]
    try:
        yield paths
    finally:
        for p in paths:
            remove_quietly(p)
