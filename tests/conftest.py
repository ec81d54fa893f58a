from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List

import pytest

from markbook.app import create_app
from markbook.config import Settings
from markbook.models import ExportOptions, Manuscript, RenderStrategy
from markbook.services.storage import MemoryManuscriptStore

FAKE_PDF = b"%PDF-1.4\n% fake\n%%EOF\n"


class FakeRenderer:
    """Stands in for a PDF strategy; records what it was asked to render."""

    def __init__(self, payload: bytes = FAKE_PDF, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.calls: List[tuple[Manuscript, ExportOptions]] = []

    def render(self, manuscript: Manuscript, options: ExportOptions) -> bytes:
        self.calls.append((manuscript, options))
        if self.error is not None:
            raise self.error
        return self.payload


class FakePandoc:
    """subprocess.run replacement that 'typesets' by writing a PDF to the -o path."""

    def __init__(self, returncode: int = 0, write_output: bool = True):
        self.returncode = returncode
        self.write_output = write_output
        self.commands: List[List[str]] = []
        self.inputs: List[str] = []

    def __call__(self, cmd, **kwargs):
        self.commands.append(list(cmd))
        self.inputs.append(Path(cmd[1]).read_text(encoding="utf-8"))
        if self.write_output:
            Path(cmd[cmd.index("-o") + 1]).write_bytes(FAKE_PDF)
        return subprocess.CompletedProcess(cmd, self.returncode, stdout="! LaTeX Error" if self.returncode else "")


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    root = tmp_path / "tmp"
    root.mkdir(exist_ok=True)
    return root


@pytest.fixture
def manuscript() -> Manuscript:
    return Manuscript(
        id="field-notes",
        title="Field Notes: Volume 1",
        author="R. Vale",
        content="# Intro\n\nHello world\n\n## Details\n\nMore text here.\n",
    )


@pytest.fixture
def store(manuscript: Manuscript) -> MemoryManuscriptStore:
    s = MemoryManuscriptStore()
    s.save(manuscript)
    return s


@pytest.fixture
def renderers():
    return {
        RenderStrategy.pandoc: FakeRenderer(),
        RenderStrategy.browser: FakeRenderer(),
    }


@pytest.fixture
def client(tmp_path: Path, store, renderers):
    cfg = Settings(DATA_DIR=tmp_path / "data", TEMP_DIR=tmp_path / "tmp", CORS_ENABLE=False)
    app = create_app(settings=cfg, store=store, renderers=renderers)
    app.config.update(TESTING=True)
    return app.test_client()
