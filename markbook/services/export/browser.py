# SPDX-License-Identifier: Apache-2.0
"""
Browser strategy: assembled HTML -> headless Chromium (Playwright) -> PDF.

One isolated browser per export; it is closed on success, timeout and error.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator

from markupsafe import escape
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from ...config import Settings
from ...errors import ExportError, RenderTimeout
from ...models.export import ExportOptions, PageSize
from ...models.manuscript import Manuscript
from ..assembler import assemble_document

log = logging.getLogger(__name__)

PAGE_FORMATS = {
    PageSize.a4: "A4",
    PageSize.letter: "Letter",
    PageSize.a5: "A5",
}

_FOOTER = (
    '<div style="font-size: 9px; width: 100%; text-align: center;">'
    '<span class="pageNumber"></span></div>'
)
_EMPTY = "<span></span>"


@dataclass
class BrowserRenderer:
    timeout_ms: int = 30_000
    settle_ms: int = 1_000
    viewport_width: int = 1200
    viewport_height: int = 1600
    margin: str = "20mm"

    @classmethod
    def from_settings(cls, cfg: Settings) -> "BrowserRenderer":
        return cls(
            timeout_ms=cfg.RENDER_TIMEOUT_MS,
            settle_ms=cfg.RENDER_SETTLE_MS,
            viewport_width=cfg.RENDER_VIEWPORT_WIDTH,
            viewport_height=cfg.RENDER_VIEWPORT_HEIGHT,
            margin=cfg.RENDER_MARGIN,
        )

    def pdf_options(self, manuscript: Manuscript, options: ExportOptions) -> Dict[str, Any]:
        opts: Dict[str, Any] = {
            "format": PAGE_FORMATS.get(options.page_size, "A4"),
            "margin": {side: self.margin for side in ("top", "right", "bottom", "left")},
            "print_background": True,
        }
        if options.include_page_numbers or options.include_headers:
            header = _EMPTY
            if options.include_headers:
                header = (
                    '<div style="font-size: 9px; width: 100%; text-align: center;">'
                    f"{escape(manuscript.title)}</div>"
                )
            opts.update(
                display_header_footer=True,
                header_template=header,
                footer_template=_FOOTER if options.include_page_numbers else _EMPTY,
            )
        return opts

    @contextmanager
    def session(self) -> Iterator[Page]:
        """A fresh browser + page; the browser is torn down however the block exits."""
        with sync_playwright() as pw:
            browser = pw.chromium.launch(headless=True)
            try:
                yield browser.new_page(
                    viewport={"width": self.viewport_width, "height": self.viewport_height}
                )
            finally:
                try:
                    browser.close()
                except PlaywrightError as e:
                    log.warning("Browser teardown failed: %s", e)

    def render(self, manuscript: Manuscript, options: ExportOptions) -> bytes:
        html = assemble_document(
            manuscript,
            include_cover=options.include_cover,
            include_toc=options.include_toc,
        )
        try:
            with self.session() as page:
                page.set_content(html, wait_until="load", timeout=self.timeout_ms)
                # webfonts and late stylesheets
                page.wait_for_timeout(self.settle_ms)
                return page.pdf(**self.pdf_options(manuscript, options))
        except PlaywrightTimeoutError as e:
            raise RenderTimeout(f"page did not load within {self.timeout_ms}ms") from e
        except PlaywrightError as e:
            raise ExportError(f"browser rendering failed: {e}") from e
