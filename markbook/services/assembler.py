# SPDX-License-Identifier: Apache-2.0
"""
Compose the styled, self-contained HTML document for a manuscript:

  [cover page] -> [table of contents] -> body

Used for the HTML export, the live preview and the browser PDF strategy.
Pure: the same manuscript and flags always give the same text.
"""
from __future__ import annotations

from typing import List, Optional

from markdown_it import MarkdownIt
from markupsafe import escape

from ..models.manuscript import Manuscript
from .outline import HeadingNode, iter_headings, toc_entries
from .themes import resolve_layout, resolve_theme

# Print rules shared by every theme
BASE_STYLES = """
    .cover-page { page-break-after: always; text-align: center; padding: 2in 1in; }
    .cover-page .cover-title { font-size: 36pt; margin: 0 0 0.5em; page-break-before: avoid; }
    .cover-page .cover-subtitle { font-size: 20pt; font-weight: normal; margin: 0 0 2em; }
    .cover-page .cover-author { font-size: 16pt; }
    .toc-page { page-break-after: always; }
    .toc-page ul { list-style: none; padding-left: 0; }
    .content { page-break-before: always; }
    .content h1 { page-break-before: always; }
    .content h1:first-child { page-break-before: avoid; }
    img { max-width: 100%; height: auto; }
    table { width: 100%; border-collapse: collapse; break-inside: auto; page-break-inside: auto; }
    tr { break-inside: avoid; page-break-inside: avoid; }
    td, th { border: 1px solid #000; padding: 8px; }
"""

_MD: Optional[MarkdownIt] = None


def _markdown() -> MarkdownIt:
    global _MD
    if _MD is None:
        _MD = MarkdownIt("commonmark", {"html": True}).enable("table")
    return _MD


def render_markdown(text: str) -> str:
    return _markdown().render(text or "")


def render_cover(manuscript: Manuscript) -> str:
    cover = manuscript.cover
    title = cover.title or manuscript.title
    author = cover.author or manuscript.author
    parts = ['<section class="cover-page">']
    if cover.background_image:
        parts.append(
            f'<div class="cover-image" style="background-image: url(\'{escape(cover.background_image)}\');"></div>'
        )
    parts.append(f'<h1 class="cover-title">{escape(title)}</h1>')
    if cover.subtitle:
        parts.append(f'<h2 class="cover-subtitle">{escape(cover.subtitle)}</h2>')
    if author:
        parts.append(f'<p class="cover-author">{escape(author)}</p>')
    parts.append("</section>")
    return "\n".join(parts)


def render_toc(headings: List[HeadingNode]) -> str:
    items = [
        f'<li class="toc-level-{row["level"]}" style="margin-left: {row["indent_px"]}px;">{escape(row["title"])}</li>'
        for row in toc_entries(headings)
    ]
    return "\n".join(
        [
            '<section class="toc-page">',
            "<h2>Table of Contents</h2>",
            "<ul>",
            *items,
            "</ul>",
            "</section>",
        ]
    )


def assemble_document(
    manuscript: Manuscript,
    include_cover: bool = True,
    include_toc: bool = True,
) -> str:
    body_md = manuscript.body_text()
    theme_css = resolve_theme(manuscript.theme)
    layout_css = resolve_layout(manuscript.column_layout)

    sections: List[str] = []
    if include_cover:
        sections.append(render_cover(manuscript))
    if include_toc:
        sections.append(render_toc(list(iter_headings(body_md))))
    sections.append(f'<main class="content">\n{render_markdown(body_md)}</main>')

    return "\n".join(
        [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '<meta charset="UTF-8">',
            f"<title>{escape(manuscript.title)}</title>",
            "<style>",
            theme_css,
            f"    .content {{ {layout_css} }}" if layout_css else "",
            BASE_STYLES,
            "</style>",
            "</head>",
            "<body>",
            *sections,
            "</body>",
            "</html>",
            "",
        ]
    )
