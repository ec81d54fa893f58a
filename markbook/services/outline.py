# SPDX-License-Identifier: Apache-2.0
"""
Structural analysis of markdown text.

- iter_headings(): lazy, ordered heading scan (ATX headings, levels 1-6)
- toc_entries(): rows for the on-screen table of contents
- word_count(), reading_minutes(), estimate_pages(): preview statistics

Everything here is a pure function of the text; nothing is cached.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List

HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")

TOC_INDENT_PX = 20
WORDS_PER_MINUTE = 225
WORDS_PER_PAGE = 250


@dataclass(frozen=True)
class HeadingNode:
    level: int
    title: str
    order: int
    line: int


def match_heading(line: str):
    """Return (level, title) when `line` is a heading, else None."""
    m = HEADING_RE.match(line)
    if not m:
        return None
    title = m.group(2).strip()
    if not title:
        return None
    return len(m.group(1)), title


def iter_headings(text: str) -> Iterator[HeadingNode]:
    order = 0
    for lineno, line in enumerate((text or "").split("\n")):
        found = match_heading(line.rstrip("\r"))
        if found is None:
            continue
        level, title = found
        yield HeadingNode(level=level, title=title, order=order, line=lineno)
        order += 1


def extract_headings(text: str) -> List[HeadingNode]:
    return list(iter_headings(text))


def toc_entries(headings: Iterable[HeadingNode]) -> List[Dict[str, object]]:
    """Flat TOC rows, indented exactly like the assembled document's TOC."""
    return [
        {
            "title": h.title,
            "level": h.level,
            "indent_px": h.level * TOC_INDENT_PX,
        }
        for h in headings
    ]


def word_count(text: str) -> int:
    return len((text or "").split())


def reading_minutes(words: int) -> int:
    return math.ceil(max(0, words) / WORDS_PER_MINUTE)


def estimate_pages(words: int) -> int:
    return max(1, math.ceil(max(0, words) / WORDS_PER_PAGE))
