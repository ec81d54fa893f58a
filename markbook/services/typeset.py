# SPDX-License-Identifier: Apache-2.0
"""
Markdown -> pandoc-ready markdown for the LaTeX typesetting path.

Output layout:
  1. YAML metadata block (title/author/subtitle, document class, geometry,
     fonts, page style, optional table of contents)
  2. The body, rewritten in a single pass over its lines:
     - `\\newpage` before every level-1 heading except the first one
     - `\\lettrine{X}{yz}` on the first paragraph line after a heading

The line pass is a fold: `step(state, line) -> (state, emitted)`, so it can be
exercised without any file or process I/O.
"""
from __future__ import annotations

import json
from typing import Iterable, List, NamedTuple, Optional, Tuple, Union

from ..models.export import ExportOptions, ExportSettings
from ..models.manuscript import Manuscript
from .outline import match_heading

PAGE_BREAK = r"\newpage"
DOCUMENT_CLASS = "book"
CLASS_OPTIONS = "openany"
FONT_SIZE = "12pt"
TOC_DEPTH = 2
LIST_MARKERS = ("-", "*")
FENCE_MARKERS = ("```", "~~~")
# blockquote, table row, image, raw html
BLOCK_MARKERS = (">", "|", "![", "<")

_LATEX_SPECIALS = {
    "\\": r"\textbackslash{}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
    "%": r"\%",
    "&": r"\&",
    "_": r"\_",
    "#": r"\#",
    "$": r"\$",
    "{": r"\{",
    "}": r"\}",
}


class FoldState(NamedTuple):
    drop_cap_armed: bool = False  # after a heading, drop cap not yet applied
    seen_top_heading: bool = False
    in_fence: bool = False


def latex_escape(text: str) -> str:
    return "".join(_LATEX_SPECIALS.get(ch, ch) for ch in text)


def drop_cap(line: str) -> str:
    """Wrap the first character and the next two in a lettrine directive."""
    return f"\\lettrine{{{latex_escape(line[:1])}}}{{{latex_escape(line[1:3])}}}{line[3:]}"


def _is_list_line(line: str) -> bool:
    return line.lstrip().startswith(LIST_MARKERS)


def _is_fence(line: str) -> bool:
    return line.lstrip().startswith(FENCE_MARKERS)


def _is_block_line(line: str) -> bool:
    """Non-paragraph lines: quotes, tables, images, raw html, indented code."""
    return line.startswith(("    ", "\t")) or line.lstrip().startswith(BLOCK_MARKERS)


def step(state: FoldState, line: str) -> Tuple[FoldState, List[str]]:
    # fenced code passes through verbatim, headings-looking comments included
    if state.in_fence:
        if _is_fence(line):
            return state._replace(in_fence=False), [line]
        return state, [line]
    if _is_fence(line):
        return state._replace(in_fence=True, drop_cap_armed=False), [line]

    heading = match_heading(line)
    if heading is not None:
        level, _ = heading
        if level == 1:
            emitted = [PAGE_BREAK, "", line] if state.seen_top_heading else [line]
            return state._replace(drop_cap_armed=True, seen_top_heading=True), emitted
        return state._replace(drop_cap_armed=True), [line]

    if not line.strip():
        return state, [""]

    if _is_list_line(line):
        return state, [line]

    if _is_block_line(line):
        return state._replace(drop_cap_armed=False), [line]

    if state.drop_cap_armed:
        return state._replace(drop_cap_armed=False), [drop_cap(line)]
    return state, [line]


def transform_lines(lines: Iterable[str]) -> List[str]:
    state = FoldState()
    out: List[str] = []
    for line in lines:
        state, emitted = step(state, line)
        out.extend(emitted)
    return out


# ------------------------------ Metadata header ---------------------------


def _yaml_str(value: str) -> str:
    # JSON strings are valid YAML double-quoted scalars
    return json.dumps(value, ensure_ascii=False)


def _page_style(options: ExportSettings) -> str:
    if options.include_headers:
        return "headings"
    if options.include_page_numbers:
        return "plain"
    return "empty"


def metadata_header(
    title: str,
    options: ExportSettings,
    author: Optional[str] = None,
    subtitle: Optional[str] = None,
) -> List[str]:
    meta = ["---", f"title: {_yaml_str(title)}"]
    if author:
        meta.append(f"author: {_yaml_str(author)}")
    if subtitle:
        meta.append(f"subtitle: {_yaml_str(subtitle)}")
    meta.extend(
        [
            f"documentclass: {DOCUMENT_CLASS}",
            f"classoption: {CLASS_OPTIONS}",
            f"fontsize: {FONT_SIZE}",
            f"papersize: {options.page_size.value}",
            "geometry:",
            f"  - margin={options.margin}",
            f"pagestyle: {_page_style(options)}",
        ]
    )
    fonts = options.font_overrides
    if fonts is not None and not fonts.is_empty():
        if fonts.main_font:
            meta.append(f"mainfont: {_yaml_str(fonts.main_font)}")
        if fonts.sans_font:
            meta.append(f"sansfont: {_yaml_str(fonts.sans_font)}")
        if fonts.mono_font:
            meta.append(f"monofont: {_yaml_str(fonts.mono_font)}")
    if options.include_toc:
        meta.append("toc: true")
        meta.append(f"toc-depth: {TOC_DEPTH}")
    meta.append("---")
    return meta


def transform_for_typesetting(
    source: Union[Manuscript, str],
    options: Optional[ExportSettings] = None,
    title: Optional[str] = None,
    author: Optional[str] = None,
    subtitle: Optional[str] = None,
) -> str:
    """
    Build the annotated text handed to the typesetting command.

    `source` is either a manuscript (metadata taken from it and its cover
    overrides) or raw markdown plus explicit metadata.
    """
    opts = options or ExportOptions()
    if isinstance(source, Manuscript):
        text = source.body_text()
        title = title or source.cover.title or source.title
        author = author or source.cover.author or source.author
        subtitle = subtitle or source.cover.subtitle
    else:
        text = source or ""

    header = metadata_header(title or "Untitled", opts, author=author, subtitle=subtitle)
    body = transform_lines(text.replace("\r\n", "\n").split("\n"))
    return "\n".join(header + [""] + body).rstrip("\n") + "\n"
