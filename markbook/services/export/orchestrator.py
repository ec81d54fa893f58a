# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional, Protocol, Union

from ...config import Settings, settings
from ...errors import ExportError
from ...models.export import ExportFormat, ExportOptions, RenderedArtifact, RenderStrategy
from ...models.manuscript import Manuscript
from ...utils.fs import slugify
from ..assembler import assemble_document
from ..storage import ManuscriptStore
from .browser import BrowserRenderer
from .pandoc import PandocRenderer

log = logging.getLogger(__name__)

HTML_MEDIA_TYPE = "text/html; charset=utf-8"
PDF_MEDIA_TYPE = "application/pdf"

OptionsLike = Union[ExportOptions, Mapping[str, Any], None]


class Renderer(Protocol):
    def render(self, manuscript: Manuscript, options: ExportOptions) -> bytes: ...


RendererMap = Mapping[RenderStrategy, Renderer]


def default_renderers(cfg: Optional[Settings] = None) -> RendererMap:
    cfg = cfg or settings
    return {
        RenderStrategy.pandoc: PandocRenderer.from_settings(cfg),
        RenderStrategy.browser: BrowserRenderer.from_settings(cfg),
    }


def effective_options(
    manuscript: Manuscript,
    options: OptionsLike,
    cfg: Optional[Settings] = None,
) -> ExportOptions:
    """Per-call options (a mapping or an ExportOptions) applied field by field over the stored settings."""
    return ExportOptions.resolve(manuscript.export_settings, options, defaults=cfg)


def export_manuscript(
    manuscript: Manuscript,
    options: OptionsLike = None,
    renderers: Optional[RendererMap] = None,
    cfg: Optional[Settings] = None,
) -> RenderedArtifact:
    """
    Produce the export artifact for `manuscript`, or raise an ExportError.

    html -> the assembled document text, no renderer involved
    pdf  -> bytes from the renderer selected by `options.renderer`

    `cfg` supplies the default renderer and engine; the module settings
    are used when it is omitted.
    """
    opts = effective_options(manuscript, options, cfg)
    slug = slugify(manuscript.title)

    if opts.format == ExportFormat.html:
        html = assemble_document(
            manuscript,
            include_cover=opts.include_cover,
            include_toc=opts.include_toc,
        )
        return RenderedArtifact(content=html, media_type=HTML_MEDIA_TYPE, filename=f"{slug}.html")

    table = renderers if renderers is not None else default_renderers(cfg)
    renderer = table.get(opts.renderer)
    if renderer is None:
        raise ExportError(f"no renderer configured for strategy {opts.renderer.value!r}")

    started = time.monotonic()
    data = renderer.render(manuscript, opts)
    if not data:
        raise ExportError("renderer returned an empty document")
    log.info(
        "Exported manuscript %s via %s (%d bytes, %.2fs)",
        manuscript.id,
        opts.renderer.value,
        len(data),
        time.monotonic() - started,
    )
    return RenderedArtifact(content=bytes(data), media_type=PDF_MEDIA_TYPE, filename=f"{slug}.pdf")


def export_by_id(
    store: ManuscriptStore,
    manuscript_id: str,
    options: OptionsLike = None,
    renderers: Optional[RendererMap] = None,
    cfg: Optional[Settings] = None,
) -> RenderedArtifact:
    """Read the manuscript once, then export that snapshot."""
    manuscript = store.get(manuscript_id)
    return export_manuscript(manuscript, options, renderers=renderers, cfg=cfg)
