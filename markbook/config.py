# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_RESOURCES = Path(__file__).resolve().parent / "resources"


class Settings(BaseSettings):
    """
    Central configuration.

    - Loads .env automatically (non-fatal if missing).
    - Tolerates a few legacy env keys via AliasChoices.
    - Creates working directories on first use.
    """

    # Flask
    FLASK_HOST: str = "0.0.0.0"
    FLASK_PORT: int = 5000
    FLASK_DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ENABLE: bool = True
    CORS_ALLOW_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_CREDENTIALS: bool = False

    # Paths
    DATA_DIR: Path = Field(default_factory=lambda: Path.cwd() / "data")
    TEMP_DIR: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        validation_alias=AliasChoices("TEMP_DIR", "MARKBOOK_TMP"),
    )

    # Typesetting (pandoc) strategy
    PANDOC_BIN: str = "pandoc"
    PANDOC_TIMEOUT_S: int = 180
    DEFAULT_RENDERER: str = Field(default="pandoc", description="pandoc | browser")
    DEFAULT_PDF_ENGINE: str = Field(default="pdflatex", description="pdflatex | xelatex | lualatex")
    LATEX_HEADER_PATH: Optional[Path] = Field(default_factory=lambda: _RESOURCES / "latex-header.tex")

    # Browser (Playwright) strategy
    RENDER_TIMEOUT_MS: int = 30_000
    RENDER_SETTLE_MS: int = 1_000
    RENDER_VIEWPORT_WIDTH: int = 1200
    RENDER_VIEWPORT_HEIGHT: int = 1600
    RENDER_MARGIN: str = "20mm"

    # Settings behavior
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Validators ----------------------------------------------------------

    @field_validator("DATA_DIR", "TEMP_DIR", mode="after")
    @classmethod
    def _ensure_dirs(cls, v: Path) -> Path:
        v.mkdir(parents=True, exist_ok=True)
        return v

    @field_validator("DEFAULT_RENDERER", "DEFAULT_PDF_ENGINE", mode="after")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def manuscripts_dir(self) -> Path:
        p = self.DATA_DIR / "manuscripts"
        p.mkdir(parents=True, exist_ok=True)
        return p


settings = Settings()
