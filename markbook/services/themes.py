# SPDX-License-Identifier: Apache-2.0
"""
Theme & column-layout resolution for the HTML document.

Themes are a closed table keyed by identifier. Anything unrecognized resolves
to DEFAULT_THEME, so resolution never fails and never returns an empty block.
"""
from __future__ import annotations

from typing import Dict, Optional

DEFAULT_THEME = "modern"

_MODERN = """
    body {
      margin: 0;
      padding: 0;
      line-height: 1.6;
      color: #000;
      background: #fff;
      font-family: 'Georgia', serif;
      font-size: 12pt;
    }
    h1, h2, h3, h4, h5, h6 {
      margin: 1.5em 0 0.5em;
      font-weight: bold;
      color: #333;
    }
    h1 { font-size: 24pt; text-align: center; }
    h2 { font-size: 18pt; margin-top: 2em; }
    h3 { font-size: 16pt; }
    h4 { font-size: 14pt; }
    p { margin: 0.75em 0; text-align: justify; }
    ul, ol { margin: 0.75em 0; padding-left: 2em; }
    .drop-cap {
      float: left;
      font-size: 48pt;
      line-height: 40pt;
      padding-right: 8pt;
      margin-top: 4pt;
      font-weight: bold;
    }
"""

_BIBLE = """
    body {
      margin: 0;
      padding: 0;
      line-height: 1.45;
      color: #1a1a1a;
      background: #fffdf7;
      font-family: 'Palatino Linotype', 'Book Antiqua', Palatino, serif;
      font-size: 11pt;
    }
    h1, h2, h3, h4, h5, h6 {
      margin: 1.2em 0 0.4em;
      font-weight: normal;
      font-variant: small-caps;
      letter-spacing: 0.05em;
      color: #5a1a1a;
    }
    h1 { font-size: 26pt; text-align: center; border-bottom: 1px solid #5a1a1a; }
    h2 { font-size: 17pt; text-align: center; }
    h3 { font-size: 14pt; }
    h4 { font-size: 12pt; }
    p { margin: 0.4em 0; text-align: justify; text-indent: 1.5em; }
    ul, ol { margin: 0.5em 0; padding-left: 2em; }
    .drop-cap {
      float: left;
      font-size: 54pt;
      line-height: 44pt;
      padding-right: 6pt;
      color: #5a1a1a;
    }
"""

_SCIENCE = """
    body {
      margin: 0;
      padding: 0;
      line-height: 1.5;
      color: #111;
      background: #fff;
      font-family: 'Times New Roman', Times, serif;
      font-size: 10.5pt;
    }
    h1, h2, h3, h4, h5, h6 {
      margin: 1.2em 0 0.4em;
      font-family: 'Helvetica Neue', Arial, sans-serif;
      font-weight: bold;
      color: #000;
    }
    h1 { font-size: 20pt; text-align: left; }
    h2 { font-size: 14pt; }
    h3 { font-size: 12pt; }
    h4 { font-size: 11pt; font-style: italic; }
    p { margin: 0.5em 0; text-align: justify; }
    ul, ol { margin: 0.5em 0; padding-left: 1.5em; }
    code, pre { font-family: 'Courier New', monospace; font-size: 9pt; }
    .drop-cap { font-weight: bold; }
"""

THEMES: Dict[str, str] = {
    "modern": _MODERN,
    "bible": _BIBLE,
    "science": _SCIENCE,
}

LAYOUTS: Dict[str, str] = {
    "double": "columns: 2; column-gap: 2rem;",
}


def resolve_theme(theme_id: Optional[str]) -> str:
    key = str(theme_id or "").strip().lower()
    return THEMES.get(key, THEMES[DEFAULT_THEME])


def resolve_layout(layout_id: Optional[str]) -> str:
    """Content-flow directive for the body section; single column is no directive."""
    key = str(layout_id or "").strip().lower()
    return LAYOUTS.get(key, "")
