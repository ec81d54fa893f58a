# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from flask import Blueprint, Response, request
from pydantic import ValidationError

from ..errors import ExportError, ManuscriptNotFound
from ..services.assembler import assemble_document
from ..services.export import export_by_id
from ..services.outline import (
    estimate_pages,
    extract_headings,
    reading_minutes,
    toc_entries,
    word_count,
)
from . import get_renderers, get_settings, get_store, json_err, json_ok

log = logging.getLogger(__name__)

bp = Blueprint("manuscripts", __name__)


@bp.get("/<manuscript_id>")
def get_manuscript(manuscript_id: str) -> Any:
    """Fetch a manuscript; the first access creates it with defaults."""
    try:
        manuscript = get_store().get_or_create(manuscript_id)
    except ValueError as e:
        return json_err("invalid_id", str(e), status=400)
    return json_ok({"manuscript": manuscript.model_dump(mode="json", by_alias=True)})


@bp.get("/<manuscript_id>/outline")
def outline(manuscript_id: str) -> Any:
    """
    Headings and reading statistics for the editor's live preview.
    Returns:
      {
        "headings": [{"level": 1, "title": "...", "order": 0, "line": 0}, ...],
        "toc": [{"title": "...", "level": 1, "indent_px": 20}, ...],
        "stats": {"words": 120, "reading_minutes": 1, "estimated_pages": 1}
      }
    """
    try:
        manuscript = get_store().get(manuscript_id)
    except ManuscriptNotFound as e:
        return json_err("not_found", str(e), status=404)
    text = manuscript.body_text()
    headings = extract_headings(text)
    words = word_count(text)
    return json_ok(
        {
            "headings": [asdict(h) for h in headings],
            "toc": toc_entries(headings),
            "stats": {
                "words": words,
                "reading_minutes": reading_minutes(words),
                "estimated_pages": estimate_pages(words),
            },
        }
    )


@bp.get("/<manuscript_id>/preview")
def preview(manuscript_id: str) -> Any:
    """
    Render the styled HTML document using the manuscript's stored settings.
    Query params `cover` / `toc` ("0"/"1") override the stored toggles.
    """
    try:
        manuscript = get_store().get(manuscript_id)
    except ManuscriptNotFound as e:
        return json_err("not_found", str(e), status=404)
    stored = manuscript.export_settings
    include_cover = request.args.get("cover", default=stored.include_cover, type=_flag)
    include_toc = request.args.get("toc", default=stored.include_toc, type=_flag)
    html = assemble_document(manuscript, include_cover=include_cover, include_toc=include_toc)
    return Response(html, mimetype="text/html")


@bp.post("/<manuscript_id>/export")
def export(manuscript_id: str) -> Any:
    """
    Export a manuscript as PDF or HTML.
    Body (all optional; unset fields fall back to the stored export settings):
      {
        "format": "pdf" | "html",
        "pageSize": "a4" | "letter" | "a5",
        "includeTOC": true, "includeCover": true,
        "includePageNumbers": true, "includeHeaders": false,
        "renderer": "pandoc" | "browser", "pdfEngine": "pdflatex" | "xelatex" | "lualatex"
      }
    The editor client nests overrides under "exportSettings"; both shapes are accepted.
    """
    data = request.get_json(force=True, silent=True) or {}
    if not isinstance(data, dict):
        return json_err("bad_request", "export options must be a JSON object", status=400)
    overrides = data
    nested = data.get("exportSettings")
    if isinstance(nested, dict):
        overrides = {**nested, **({"format": data["format"]} if "format" in data else {})}

    try:
        artifact = export_by_id(
            get_store(), manuscript_id, overrides, renderers=get_renderers(), cfg=get_settings()
        )
    except ManuscriptNotFound as e:
        return json_err("not_found", str(e), status=404)
    except ValidationError as e:
        details = e.errors(include_url=False, include_context=False)
        return json_err("invalid_options", "Invalid export options", details, status=400)
    except ExportError:
        log.exception("Export of manuscript %s failed", manuscript_id)
        return json_err("export_failed", "Failed to export manuscript", status=500)

    resp = Response(artifact.content, content_type=artifact.media_type)
    resp.headers["Content-Disposition"] = f'attachment; filename="{artifact.filename}"'
    return resp


def _flag(value: str) -> bool:
    return str(value).strip().lower() in {"1", "true", "yes", "on"}
