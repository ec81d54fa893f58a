# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .export import ExportSettings


DEFAULT_CONTENT = "# Chapter 1: Introduction\n\nWelcome to your book..."


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Theme(str, Enum):
    modern = "modern"
    bible = "bible"
    science = "science"


class ColumnLayout(str, Enum):
    single = "single"
    double = "double"


class CoverConfig(BaseModel):
    """
    Cover overrides; any unset field falls back to the manuscript's own value.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    subtitle: Optional[str] = None
    author: Optional[str] = None
    background_image: Optional[str] = Field(default=None, alias="backgroundImage")


class Chapter(BaseModel):
    """
    One titled section of a chapter-structured manuscript.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: f"ch-{uuid.uuid4().hex[:12]}")
    title: str
    content: str = ""
    order_index: int = Field(default=0, ge=0, alias="orderIndex")

    @computed_field  # type: ignore[misc]
    @property
    def page_number(self) -> int:
        return self.order_index + 1

    @field_validator("content", mode="before")
    @classmethod
    def _content_defined(cls, v):
        return "" if v is None else v


class Manuscript(BaseModel):
    """
    The persisted writable document: metadata, markdown body and presentation settings.

    Theme and layout are kept as plain strings; resolution degrades unknown
    values to defaults instead of rejecting them at load time.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = "My Book"
    author: str = "Author Name"
    content: str = DEFAULT_CONTENT
    theme: str = Theme.modern.value
    column_layout: str = Field(default=ColumnLayout.single.value, alias="columnLayout")
    cover: CoverConfig = Field(default_factory=CoverConfig, alias="coverConfig")
    export_settings: ExportSettings = Field(default_factory=ExportSettings, alias="exportSettings")
    chapters: List[Chapter] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @field_validator("content", mode="before")
    @classmethod
    def _content_defined(cls, v):
        return "" if v is None else v

    @field_validator("theme", "column_layout", mode="before")
    @classmethod
    def _normalize_ids(cls, v):
        if isinstance(v, Enum):
            v = v.value
        return str(v or "").strip().lower()

    def ordered_chapters(self) -> List[Chapter]:
        return sorted(self.chapters, key=lambda c: c.order_index)

    def body_text(self) -> str:
        """
        The single markdown stream that gets rendered.

        Chapter-structured manuscripts are concatenated in order, each chapter
        introduced by a level-1 heading carrying its title.
        """
        if not self.chapters:
            return self.content
        parts: List[str] = []
        for ch in self.ordered_chapters():
            parts.append(f"# {ch.title.strip()}")
            parts.append("")
            if ch.content.strip():
                parts.append(ch.content.strip("\n"))
                parts.append("")
        return "\n".join(parts).rstrip("\n") + "\n"
