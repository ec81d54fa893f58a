# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .config import settings
from .errors import ExportError, ManuscriptNotFound, StoreError
from .models.manuscript import Manuscript
from .services.export import export_manuscript
from .services.storage import JsonManuscriptStore


def _load(a: argparse.Namespace) -> Manuscript:
    if a.file:
        src = Path(a.file).expanduser().resolve()
        return Manuscript(
            id=src.stem,
            title=a.title or src.stem.replace("-", " ").replace("_", " ").strip() or "Untitled",
            author=a.author or "",
            content=src.read_text(encoding="utf-8"),
            theme=a.theme,
            column_layout=a.layout,
        )
    store = JsonManuscriptStore(Path(a.data_dir) if a.data_dir else settings.manuscripts_dir)
    return store.get(a.manuscript_id)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser("markbook-export", description="Export a manuscript to PDF or HTML")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--file", help="Markdown file to export")
    src.add_argument("--manuscript-id", help="Stored manuscript id")
    ap.add_argument("--data-dir", default=None, help="Manuscript store directory (default: DATA_DIR/manuscripts)")
    ap.add_argument("--format", choices=["pdf", "html"], default="pdf")
    ap.add_argument("--renderer", choices=["pandoc", "browser"], default=None)
    ap.add_argument("--pdf-engine", default=None)
    ap.add_argument("--page-size", choices=["a4", "letter", "a5"], default=None)
    ap.add_argument("--no-toc", action="store_true")
    ap.add_argument("--no-cover", action="store_true")
    ap.add_argument("--title", default=None)
    ap.add_argument("--author", default=None)
    ap.add_argument("--theme", default="modern")
    ap.add_argument("--layout", default="single")
    ap.add_argument("-o", "--out-dir", default=".")
    a = ap.parse_args(argv)

    try:
        manuscript = _load(a)
    except (ManuscriptNotFound, StoreError) as e:
        print(f"❌ {e}")
        return 2
    except OSError as e:
        print(f"❌ Cannot read input: {e}")
        return 2

    overrides = {"format": a.format}
    if a.renderer:
        overrides["renderer"] = a.renderer
    if a.pdf_engine:
        overrides["pdf_engine"] = a.pdf_engine
    if a.page_size:
        overrides["page_size"] = a.page_size
    if a.no_toc:
        overrides["include_toc"] = False
    if a.no_cover:
        overrides["include_cover"] = False

    try:
        artifact = export_manuscript(manuscript, overrides)
    except ExportError as e:
        print(f"❌ Export failed: {e}")
        output = getattr(e, "output", "")
        if output:
            print(output)
        return 5
    except ValidationError as e:
        print(f"❌ Invalid export options:\n{e}")
        return 3

    out_dir = Path(a.out_dir).expanduser().resolve()
    out_dir.mkdir(parents=True, exist_ok=True)
    target = out_dir / artifact.filename
    if isinstance(artifact.content, str):
        target.write_text(artifact.content, encoding="utf-8")
    else:
        target.write_bytes(artifact.content)
    print(f"✅ Wrote {target} ({artifact.size} bytes)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
