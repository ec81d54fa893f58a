# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import Settings, settings

# Server-side paths and page geometry; never taken from a per-call request
STORED_ONLY_FIELDS = ("header_path", "margin")


class ExportFormat(str, Enum):
    pdf = "pdf"
    html = "html"


class PageSize(str, Enum):
    a4 = "a4"
    letter = "letter"
    a5 = "a5"


class RenderStrategy(str, Enum):
    pandoc = "pandoc"    # markdown -> pandoc -> LaTeX engine
    browser = "browser"  # assembled HTML -> headless Chromium


class PdfEngine(str, Enum):
    pdflatex = "pdflatex"
    xelatex = "xelatex"
    lualatex = "lualatex"


class FontOverrides(BaseModel):
    """
    Optional font families written into the typesetting metadata header.
    Only honored by engines that can load system fonts (xelatex, lualatex).
    """
    model_config = ConfigDict(populate_by_name=True)

    main_font: Optional[str] = Field(default=None, alias="mainFont")
    sans_font: Optional[str] = Field(default=None, alias="sansFont")
    mono_font: Optional[str] = Field(default=None, alias="monoFont")

    def is_empty(self) -> bool:
        return not (self.main_font or self.sans_font or self.mono_font)


class ExportSettings(BaseModel):
    """
    Export configuration stored with a manuscript.

    Field names are snake_case; the camelCase aliases match what the editor
    client sends.
    """
    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    # None means "whatever the server is configured with at export time"
    renderer: Optional[RenderStrategy] = None
    # Kept as a plain string: the typesetting strategy rejects unknown engines itself.
    pdf_engine: Optional[str] = Field(default=None, alias="pdfEngine")
    header_path: Optional[str] = Field(default=None, alias="headerPath")
    page_size: PageSize = Field(default=PageSize.a4, alias="pageSize")
    margin: str = "1in"
    include_toc: bool = Field(default=True, alias="includeTOC")
    include_cover: bool = Field(default=True, alias="includeCover")
    include_page_numbers: bool = Field(default=True, alias="includePageNumbers")
    include_headers: bool = Field(default=False, alias="includeHeaders")
    font_overrides: Optional[FontOverrides] = Field(default=None, alias="fontOverrides")

    @field_validator("pdf_engine", mode="before")
    @classmethod
    def _engine_str(cls, v):
        if v is None:
            return None
        if isinstance(v, Enum):
            v = v.value
        return str(v).strip().lower()


class ExportOptions(ExportSettings):
    """
    Effective options for one export call: stored settings plus the
    per-call overrides and the output format.
    """
    renderer: RenderStrategy = Field(default_factory=lambda: RenderStrategy(settings.DEFAULT_RENDERER))
    pdf_engine: str = Field(default_factory=lambda: settings.DEFAULT_PDF_ENGINE, alias="pdfEngine")
    format: ExportFormat = ExportFormat.pdf

    @classmethod
    def resolve(
        cls,
        stored: Optional[ExportSettings] = None,
        overrides: Union[Mapping[str, Any], "ExportOptions", None] = None,
        defaults: Optional[Settings] = None,
    ) -> "ExportOptions":
        """
        Merge per-call overrides onto stored settings field by field.

        Only fields the caller actually provided replace stored values, and
        never the server-side paths and page geometry in STORED_ONLY_FIELDS.
        Renderer and engine left unset on both sides come from `defaults`.
        """
        base = stored.model_dump(exclude_none=True) if stored is not None else {}
        if overrides is None:
            update = {}
        elif isinstance(overrides, ExportOptions):
            update = overrides.model_dump(exclude_unset=True)
        else:
            update = cls.model_validate(dict(overrides)).model_dump(exclude_unset=True)
        for name in STORED_ONLY_FIELDS:
            update.pop(name, None)
        merged = {**base, **update}
        cfg = defaults or settings
        merged.setdefault("renderer", cfg.DEFAULT_RENDERER)
        merged.setdefault("pdf_engine", cfg.DEFAULT_PDF_ENGINE)
        return cls.model_validate(merged)


class RenderedArtifact(BaseModel):
    """
    Output of a single export: bytes for PDF, text for HTML. Never persisted.
    """
    content: Union[bytes, str]
    media_type: str
    filename: str

    @property
    def size(self) -> int:
        data = self.content.encode("utf-8") if isinstance(self.content, str) else self.content
        return len(data)
