# SPDX-License-Identifier: Apache-2.0
"""
Manuscript storage boundary.

The export pipeline only needs read access; the write operations exist so the
preview/export endpoints have something real to read and so chapter ordering
stays dense after a reorder.

- MemoryManuscriptStore: process-local, used by tests and single-run tools
- JsonManuscriptStore: one <id>.json per manuscript under DATA_DIR/manuscripts
"""
from __future__ import annotations

import json
import os
import re
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..errors import ManuscriptNotFound, StoreError
from ..models.manuscript import Chapter, Manuscript
from . import log

_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,127}$")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ManuscriptStore(ABC):
    """
    Every read returns an independent copy: an export works on the state it
    read at its start and never observes later edits.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()

    # -- backend hooks ------------------------------------------------------

    @abstractmethod
    def _load(self, manuscript_id: str) -> Optional[Manuscript]: ...

    @abstractmethod
    def _store(self, manuscript: Manuscript) -> None: ...

    @abstractmethod
    def _ids(self) -> List[str]: ...

    @abstractmethod
    def _exists(self, manuscript_id: str) -> bool: ...

    # -- public API ---------------------------------------------------------

    def get(self, manuscript_id: str) -> Manuscript:
        found = self._load(manuscript_id)
        if found is None:
            raise ManuscriptNotFound(manuscript_id)
        return found

    def get_or_create(self, manuscript_id: str) -> Manuscript:
        with self._lock:
            found = self._load(manuscript_id)
            if found is not None:
                return found
            # never write defaults over something already on disk
            if self._exists(manuscript_id):
                raise StoreError(manuscript_id, "stored record could not be loaded")
            created = Manuscript(id=manuscript_id)
            self._store(created)
            log.info("Created manuscript %s with defaults", manuscript_id)
            return created.model_copy(deep=True)

    def save(self, manuscript: Manuscript) -> Manuscript:
        with self._lock:
            stamped = manuscript.model_copy(update={"updated_at": _now()}, deep=True)
            self._store(stamped)
            return stamped.model_copy(deep=True)

    def update(self, manuscript_id: str, changes: Dict[str, Any]) -> Manuscript:
        """Apply a partial update; nested settings objects are replaced whole."""
        with self._lock:
            current = self.get(manuscript_id)
            merged = {**current.model_dump(), **_by_field_name(changes), "id": current.id}
            return self.save(Manuscript.model_validate(merged))

    def add_chapter(self, manuscript_id: str, title: str, content: str = "") -> Chapter:
        with self._lock:
            current = self.get(manuscript_id)
            chapter = Chapter(title=title, content=content, order_index=len(current.chapters))
            current.chapters = _renumber(current.ordered_chapters() + [chapter])
            self.save(current)
            return chapter

    def reorder_chapters(self, manuscript_id: str, chapter_ids: Sequence[str]) -> List[Chapter]:
        """
        Put chapters in the given order. `chapter_ids` must name every chapter
        exactly once; indices come back dense and zero-based.
        """
        with self._lock:
            current = self.get(manuscript_id)
            by_id = {c.id: c for c in current.chapters}
            if len(chapter_ids) != len(by_id) or set(chapter_ids) != set(by_id):
                raise ValueError("chapter_ids must list every chapter of the manuscript exactly once")
            current.chapters = _renumber([by_id[cid] for cid in chapter_ids])
            return self.save(current).chapters

    def list(self) -> List[Manuscript]:
        out = []
        for mid in self._ids():
            try:
                found = self._load(mid)
            except StoreError as e:
                log.error("Skipping %s", e)
                continue
            if found is not None:
                out.append(found)
        return out


def _by_field_name(changes: Dict[str, Any]) -> Dict[str, Any]:
    aliases = {f.alias: name for name, f in Manuscript.model_fields.items() if f.alias}
    return {aliases.get(k, k): v for k, v in changes.items()}


def _renumber(chapters: Sequence[Chapter]) -> List[Chapter]:
    return [c.model_copy(update={"order_index": i}) for i, c in enumerate(chapters)]


class MemoryManuscriptStore(ManuscriptStore):
    def __init__(self) -> None:
        super().__init__()
        self._items: Dict[str, Manuscript] = {}

    def _load(self, manuscript_id: str) -> Optional[Manuscript]:
        found = self._items.get(manuscript_id)
        return found.model_copy(deep=True) if found is not None else None

    def _store(self, manuscript: Manuscript) -> None:
        self._items[manuscript.id] = manuscript.model_copy(deep=True)

    def _ids(self) -> List[str]:
        return sorted(self._items)

    def _exists(self, manuscript_id: str) -> bool:
        return manuscript_id in self._items


class JsonManuscriptStore(ManuscriptStore):
    def __init__(self, root: Path) -> None:
        super().__init__()
        self.root = Path(root).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, manuscript_id: str) -> Optional[Path]:
        if not _ID_RE.match(manuscript_id or ""):
            return None
        return self.root / f"{manuscript_id}.json"

    def _load(self, manuscript_id: str) -> Optional[Manuscript]:
        fp = self._path(manuscript_id)
        if fp is None or not fp.exists():
            return None
        try:
            raw = json.loads(fp.read_text(encoding="utf-8"))
            return Manuscript.model_validate(raw)
        except (OSError, ValueError) as e:
            # pydantic's ValidationError is a ValueError
            log.error("Unreadable manuscript file %s: %s", fp, e)
            raise StoreError(manuscript_id, type(e).__name__) from e

    def _exists(self, manuscript_id: str) -> bool:
        fp = self._path(manuscript_id)
        return fp is not None and fp.exists()

    def _store(self, manuscript: Manuscript) -> None:
        fp = self._path(manuscript.id)
        if fp is None:
            raise ValueError(f"invalid manuscript id: {manuscript.id!r}")
        tmp = fp.parent / f"{fp.name}.{os.getpid()}.{threading.get_ident()}.tmp"
        tmp.write_text(manuscript.model_dump_json(indent=2, by_alias=False), encoding="utf-8")
        os.replace(tmp, fp)

    def _ids(self) -> List[str]:
        return sorted(p.stem for p in self.root.glob("*.json"))
