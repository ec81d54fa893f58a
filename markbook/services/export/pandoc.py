# SPDX-License-Identifier: Apache-2.0
"""
Typesetting strategy: transformed markdown -> pandoc -> LaTeX engine -> PDF.

Input and output live in uniquely named temp files that are removed on every
exit path, including failures.
"""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from ...config import Settings
from ...errors import ExternalToolFailure, TemporaryIOFailure
from ...models.export import ExportOptions, PdfEngine
from ...models.manuscript import Manuscript
from ...utils.fs import scoped_temp_paths
from ..typeset import transform_for_typesetting

log = logging.getLogger(__name__)

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


def check_engine(name: str) -> PdfEngine:
    try:
        return PdfEngine(name)
    except ValueError:
        allowed = ", ".join(e.value for e in PdfEngine)
        raise ExternalToolFailure(f"unsupported PDF engine {name!r} (expected one of: {allowed})") from None


@dataclass
class PandocRenderer:
    temp_dir: Path
    pandoc_bin: str = "pandoc"
    header_path: Optional[Path] = None
    timeout_s: int = 180
    runner: Runner = field(default=subprocess.run)

    @classmethod
    def from_settings(cls, cfg: Settings) -> "PandocRenderer":
        return cls(
            temp_dir=cfg.TEMP_DIR,
            pandoc_bin=cfg.PANDOC_BIN,
            header_path=cfg.LATEX_HEADER_PATH,
            timeout_s=cfg.PANDOC_TIMEOUT_S,
        )

    def _header_for(self, options: ExportOptions) -> Optional[Path]:
        candidate = Path(options.header_path).expanduser() if options.header_path else self.header_path
        if candidate is None:
            return None
        if not candidate.exists():
            log.warning("LaTeX header %s not found; rendering without it", candidate)
            return None
        return candidate.resolve()

    def command(self, source: Path, output: Path, engine: PdfEngine, header: Optional[Path]) -> List[str]:
        cmd = [self.pandoc_bin, str(source), "--from=markdown+yaml_metadata_block+raw_tex"]
        if header is not None:
            cmd += ["-H", str(header)]
        cmd += ["-o", str(output), f"--pdf-engine={engine.value}"]
        return cmd

    def _run(self, cmd: List[str]) -> None:
        try:
            proc = self.runner(
                cmd,
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout_s,
            )
        except FileNotFoundError as e:
            raise ExternalToolFailure(
                f"Required tool '{self.pandoc_bin}' was not found on PATH. Install it and try again."
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolFailure(f"pandoc did not finish within {self.timeout_s}s") from e
        except OSError as e:
            raise ExternalToolFailure(f"could not start pandoc: {e}") from e
        if proc.returncode != 0:
            raise ExternalToolFailure(
                f"Command failed ({proc.returncode}):\n$ {' '.join(cmd)}",
                output=proc.stdout or "",
            )

    def render(self, manuscript: Manuscript, options: ExportOptions) -> bytes:
        text = transform_for_typesetting(manuscript, options)
        with scoped_temp_paths(self.temp_dir, "book", ".md", ".pdf") as (source, output):
            try:
                source.write_text(text, encoding="utf-8")
            except OSError as e:
                raise TemporaryIOFailure(f"could not write {source}: {e}") from e

            engine = check_engine(options.pdf_engine)
            cmd = self.command(source, output, engine, self._header_for(options))
            log.info("Running %s", " ".join(cmd))
            self._run(cmd)

            if not output.exists():
                raise ExternalToolFailure("pandoc exited cleanly but produced no PDF")
            try:
                return output.read_bytes()
            except OSError as e:
                raise TemporaryIOFailure(f"could not read {output}: {e}") from e
