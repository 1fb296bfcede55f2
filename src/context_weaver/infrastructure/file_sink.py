"""File output sink — implements the OutputSink port."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from context_weaver.domain.exceptions import OutputPathError

logger = logging.getLogger(__name__)


def chunk_path(path: Path, number: int) -> Path:
    """``context.md`` → ``context.2.md``; ``context`` → ``context.2``."""
    return path.with_name(f"{path.stem}.{number}{path.suffix}")


def resolve_output_path(path: Path | str, base_dir: Path | str) -> Path:
    """Resolve *path* against *base_dir*; raises if it escapes that directory."""
    base = Path(base_dir).resolve()
    target = (base / path).resolve()
    if target == base or not target.is_relative_to(base):
        raise OutputPathError(f"Output file must be inside '{base}': '{path}'")
    return target


class FileOutputSink:
    """Concrete OutputSink writing UTF-8 renders under an output directory.

    Parameters
    ----------
    path:
        Target file, relative to *base_dir* or absolute inside it.
    base_dir:
        Directory every written file must stay inside.
    """

    def __init__(self, path: Path | str, base_dir: Path | str = ".") -> None:
        self._path = resolve_output_path(path, base_dir)

    def write(self, content: str) -> str:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(content, encoding="utf-8")
        logger.info("Written to %s", self._path)
        return str(self._path)

    def write_chunks(self, outputs: Sequence[str]) -> list[str]:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        written: list[str] = []
        for number, content in enumerate(outputs, start=1):
            target = chunk_path(self._path, number)
            target.write_text(content, encoding="utf-8")
            logger.info("Chunk %d/%d written to %s", number, len(outputs), target)
            written.append(str(target))
        return written
