from __future__ import annotations

import subprocess
from contextlib import contextmanager
from pathlib import Path

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from conftest import FAKE_PDF, FakePandoc, FakeRenderer
from markbook.config import Settings
from markbook.errors import ExportError, ExternalToolFailure, RenderTimeout
from markbook.models import ExportOptions, ExportSettings, Manuscript, RenderStrategy
from markbook.services.export import effective_options, export_by_id, export_manuscript
from markbook.services.export.browser import BrowserRenderer
from markbook.services.export.pandoc import PandocRenderer
from markbook.utils.fs import scoped_temp_paths, slugify


# ------------------------------- options ----------------------------------


def test_overrides_apply_field_by_field():
    stored = ExportSettings(include_toc=False, page_size="a5", pdf_engine="xelatex")
    opts = ExportOptions.resolve(stored, {"includeCover": False, "format": "html"})
    assert opts.include_toc is False
    assert opts.include_cover is False
    assert opts.page_size.value == "a5"
    assert opts.pdf_engine == "xelatex"
    assert opts.format.value == "html"


def test_defaults_when_nothing_is_set():
    opts = ExportOptions.resolve(None, {})
    assert opts.format.value == "pdf"
    assert opts.page_size.value == "a4"
    assert opts.include_toc and opts.include_cover and opts.include_page_numbers
    assert not opts.include_headers


def test_options_object_applies_only_its_set_fields(manuscript: Manuscript):
    stored = manuscript.model_copy(
        update={"export_settings": ExportSettings(page_size="a5", include_headers=True, pdf_engine="lualatex")}
    )
    opts = effective_options(stored, ExportOptions(include_toc=False))
    assert opts.include_toc is False
    assert opts.page_size.value == "a5"
    assert opts.include_headers is True
    assert opts.pdf_engine == "lualatex"


def test_unset_renderer_and_engine_come_from_given_settings(manuscript: Manuscript, tmp_path: Path):
    cfg = Settings(DATA_DIR=tmp_path, TEMP_DIR=tmp_path, DEFAULT_RENDERER="browser", DEFAULT_PDF_ENGINE="xelatex")
    opts = effective_options(manuscript, {}, cfg)
    assert opts.renderer is RenderStrategy.browser
    assert opts.pdf_engine == "xelatex"


def test_per_call_overrides_never_set_header_or_margin():
    stored = ExportSettings(margin="2cm")
    opts = ExportOptions.resolve(stored, {"headerPath": "/etc/passwd", "margin": "0in", "includeTOC": False})
    assert opts.header_path is None
    assert opts.margin == "2cm"
    assert opts.include_toc is False


# ------------------------------ orchestrator ------------------------------


def test_html_export_short_circuits_renderers(manuscript: Manuscript):
    pdf = FakeRenderer()
    art = export_manuscript(manuscript, {"format": "html"}, renderers={RenderStrategy.pandoc: pdf})
    assert pdf.calls == []
    assert art.media_type.startswith("text/html")
    assert art.filename == "field-notes-volume-1.html"
    assert isinstance(art.content, str)
    assert 'style="margin-left: 20px;">Intro</li>' in art.content
    assert 'style="margin-left: 40px;">Details</li>' in art.content
    assert "<h1>Intro</h1>" in art.content and "<h2>Details</h2>" in art.content


def test_html_export_without_cover_or_toc(manuscript: Manuscript):
    art = export_manuscript(manuscript, {"format": "html", "includeCover": False, "includeTOC": False})
    assert '<section class="cover-page">' not in art.content
    assert '<section class="toc-page">' not in art.content


def test_pdf_export_uses_selected_renderer(manuscript: Manuscript, renderers):
    art = export_manuscript(manuscript, {"renderer": "browser"}, renderers=renderers)
    assert art.content == FAKE_PDF
    assert art.media_type == "application/pdf"
    assert art.filename == "field-notes-volume-1.pdf"
    assert len(renderers[RenderStrategy.browser].calls) == 1
    assert renderers[RenderStrategy.pandoc].calls == []


def test_empty_pdf_is_a_failure(manuscript: Manuscript):
    with pytest.raises(ExportError):
        export_manuscript(manuscript, {"renderer": "pandoc"}, renderers={RenderStrategy.pandoc: FakeRenderer(b"")})


def test_missing_renderer_is_a_failure(manuscript: Manuscript):
    with pytest.raises(ExportError):
        export_manuscript(manuscript, {"renderer": "browser"}, renderers={})


def test_export_reads_a_snapshot(store, renderers):
    art = export_by_id(store, "field-notes", {"renderer": "pandoc"}, renderers=renderers)
    seen, _ = renderers[RenderStrategy.pandoc].calls[0]
    store.update("field-notes", {"content": "# Changed"})
    assert "Hello world" in seen.content
    assert art.content == FAKE_PDF


# ------------------------------ pandoc path -------------------------------


def _pandoc(temp_root: Path, runner, header: Path | None = None) -> PandocRenderer:
    return PandocRenderer(temp_dir=temp_root, header_path=header, runner=runner)


def test_pandoc_success_cleans_up(manuscript: Manuscript, temp_root: Path, tmp_path: Path):
    header = tmp_path / "header.tex"
    header.write_text("\\usepackage{lettrine}\n", encoding="utf-8")
    runner = FakePandoc()
    opts = ExportOptions(pdf_engine="xelatex")

    art = export_manuscript(manuscript, opts, renderers={RenderStrategy.pandoc: _pandoc(temp_root, runner, header)})

    assert art.content == FAKE_PDF
    cmd = runner.commands[0]
    assert cmd[0] == "pandoc"
    assert "--pdf-engine=xelatex" in cmd
    assert cmd[cmd.index("-H") + 1] == str(header.resolve())
    assert "\\lettrine{H}{el}lo world" in runner.inputs[0]
    assert list(temp_root.iterdir()) == []


def test_pandoc_non_zero_exit_cleans_up(manuscript: Manuscript, temp_root: Path):
    runner = FakePandoc(returncode=43)
    with pytest.raises(ExternalToolFailure) as exc:
        _pandoc(temp_root, runner).render(manuscript, ExportOptions())
    assert "LaTeX Error" in exc.value.output
    assert list(temp_root.iterdir()) == []


def test_invalid_engine_fails_before_running(manuscript: Manuscript, temp_root: Path):
    runner = FakePandoc()
    with pytest.raises(ExternalToolFailure):
        export_manuscript(
            manuscript,
            ExportOptions(pdf_engine="wordperfect"),
            renderers={RenderStrategy.pandoc: _pandoc(temp_root, runner)},
        )
    assert runner.commands == []
    assert list(temp_root.iterdir()) == []


def test_missing_pandoc_binary(manuscript: Manuscript, temp_root: Path):
    def runner(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    with pytest.raises(ExternalToolFailure):
        _pandoc(temp_root, runner).render(manuscript, ExportOptions())
    assert list(temp_root.iterdir()) == []


def test_pandoc_timeout(manuscript: Manuscript, temp_root: Path):
    def runner(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    with pytest.raises(ExternalToolFailure):
        _pandoc(temp_root, runner).render(manuscript, ExportOptions())
    assert list(temp_root.iterdir()) == []


def test_clean_exit_without_output(manuscript: Manuscript, temp_root: Path):
    with pytest.raises(ExternalToolFailure):
        _pandoc(temp_root, FakePandoc(write_output=False)).render(manuscript, ExportOptions())
    assert list(temp_root.iterdir()) == []


def test_missing_header_is_skipped(manuscript: Manuscript, temp_root: Path, tmp_path: Path):
    runner = FakePandoc()
    _pandoc(temp_root, runner, tmp_path / "nope.tex").render(manuscript, ExportOptions())
    assert "-H" not in runner.commands[0]


def test_request_header_path_never_reaches_pandoc(manuscript: Manuscript, temp_root: Path):
    runner = FakePandoc()
    export_manuscript(
        manuscript,
        {"renderer": "pandoc", "headerPath": "/etc/passwd"},
        renderers={RenderStrategy.pandoc: _pandoc(temp_root, runner)},
    )
    assert "/etc/passwd" not in runner.commands[0]
    assert "-H" not in runner.commands[0]


# ------------------------------ browser path ------------------------------


class _FakePage:
    def __init__(self, fail_load: bool = False, fail_print: bool = False):
        self.fail_load = fail_load
        self.fail_print = fail_print
        self.pdf_kwargs = None

    def set_content(self, html, wait_until=None, timeout=None):
        if self.fail_load:
            raise PlaywrightTimeoutError("Timeout 10ms exceeded.")
        self.html = html

    def wait_for_timeout(self, ms):
        self.waited = ms

    def pdf(self, **kwargs):
        if self.fail_print:
            raise PlaywrightError("Target page, context or browser has been closed")
        self.pdf_kwargs = kwargs
        return FAKE_PDF


def _browser_with(page: _FakePage):
    renderer = BrowserRenderer(timeout_ms=10, settle_ms=5)
    torn_down = []

    @contextmanager
    def session():
        try:
            yield page
        finally:
            torn_down.append(True)

    renderer.session = session
    return renderer, torn_down


def test_browser_render_success(manuscript: Manuscript):
    page = _FakePage()
    renderer, torn_down = _browser_with(page)
    data = renderer.render(manuscript, ExportOptions(include_cover=False, page_size="letter"))
    assert data == FAKE_PDF
    assert page.waited == 5
    assert page.pdf_kwargs["format"] == "Letter"
    assert page.pdf_kwargs["print_background"] is True
    assert '<section class="cover-page">' not in page.html
    assert torn_down == [True]


def test_browser_timeout_tears_down(manuscript: Manuscript):
    renderer, torn_down = _browser_with(_FakePage(fail_load=True))
    with pytest.raises(RenderTimeout):
        renderer.render(manuscript, ExportOptions())
    assert torn_down == [True]


def test_browser_failure_is_export_error_and_tears_down(manuscript: Manuscript):
    renderer, torn_down = _browser_with(_FakePage(fail_print=True))
    with pytest.raises(ExportError) as exc:
        renderer.render(manuscript, ExportOptions())
    assert not isinstance(exc.value, RenderTimeout)
    assert torn_down == [True]


def test_browser_header_footer_options(manuscript: Manuscript):
    renderer = BrowserRenderer(margin="15mm")
    plain = renderer.pdf_options(manuscript, ExportOptions(include_page_numbers=False, include_headers=False))
    assert "display_header_footer" not in plain
    assert plain["margin"] == {"top": "15mm", "right": "15mm", "bottom": "15mm", "left": "15mm"}
    numbered = renderer.pdf_options(manuscript, ExportOptions(include_page_numbers=True))
    assert numbered["display_header_footer"] is True
    assert "pageNumber" in numbered["footer_template"]
    headed = renderer.pdf_options(manuscript, ExportOptions(include_page_numbers=False, include_headers=True))
    assert "Field Notes" in headed["header_template"]


# ------------------------------- fs helpers --------------------------------


def test_slugify():
    assert slugify("Field Notes: Volume 1") == "field-notes-volume-1"
    assert slugify("  --Hello,   World!--  ") == "hello-world"
    assert slugify("???") == "book"


def test_scoped_temp_paths_remove_on_error(temp_root: Path):
    with pytest.raises(RuntimeError):
        with scoped_temp_paths(temp_root, "book", ".md", ".pdf") as (a, b):
            a.write_text("x")
            b.write_text("y")
            assert a.name != b.name and a.stem == b.stem
            raise RuntimeError("boom")
    assert list(temp_root.iterdir()) == []


def test_scoped_temp_names_are_unique(temp_root: Path):
    with scoped_temp_paths(temp_root, "book", ".md") as (a,):
        with scoped_temp_paths(temp_root, "book", ".md") as (b,):
            assert a != b
