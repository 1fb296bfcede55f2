"""Local file-system scanner — implements the FileScanner port."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Sequence

import pathspec

from context_weaver.domain.entities import ScannedFile
from context_weaver.domain.exceptions import ScanError
from context_weaver.services.token_accountant import count_tokens

logger = logging.getLogger(__name__)

DEFAULT_IGNORE: tuple[str, ...] = (
    "node_modules/",
    ".git/",
    "dist/",
    "build/",
    "*.lock",
    "package-lock.json",
    ".DS_Store",
)

EXTENSION_LANGUAGES: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "jsx",
    ".py": "python",
    ".rs": "rust",
    ".go": "go",
    ".java": "java",
    ".c": "c",
    ".cpp": "cpp",
    ".h": "c",
    ".hpp": "cpp",
    ".css": "css",
    ".scss": "scss",
    ".html": "html",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".md": "markdown",
    ".sh": "bash",
    ".sql": "sql",
    ".vue": "vue",
    ".svelte": "svelte",
}

_BINARY_SNIFF_BYTES = 1024


def detect_language(path: str) -> str:
    """Language tag for *path* from its extension, ``text`` when unknown."""
    dot = path.rfind(".")
    if dot == -1 or "/" in path[dot:]:
        return "text"
    return EXTENSION_LANGUAGES.get(path[dot:].lower(), "text")


def _read_gitignore(root: Path) -> list[str]:
    gitignore = root / ".gitignore"
    if not gitignore.is_file():
        return []
    try:
        return gitignore.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError):
        logger.warning("Could not read %s — ignoring it", gitignore)
        return []


def _is_binary(path: Path) -> bool:
    """True if the first KiB holds a NUL byte (or the file cannot be opened)."""
    try:
        with path.open("rb") as fh:
            return b"\0" in fh.read(_BINARY_SNIFF_BYTES)
    except OSError:
        return True


class FileSystemScanner:
    """Concrete FileScanner walking a local directory tree.

    Parameters
    ----------
    max_file_size_kb:
        Files larger than this are skipped before they are read.
    """

    def __init__(self, max_file_size_kb: int = 1_024) -> None:
        self._max_bytes = max_file_size_kb * 1024

    def scan(
        self,
        root: Path,
        patterns: Sequence[str],
        ignore: Sequence[str] = (),
    ) -> list[ScannedFile]:
        root = Path(root).resolve()
        if not root.is_dir():
            raise ScanError(f"Not a directory: '{root}'")

        include_spec = pathspec.PathSpec.from_lines("gitwildmatch", patterns)
        ignore_spec = pathspec.PathSpec.from_lines(
            "gitwildmatch",
            [*DEFAULT_IGNORE, *_read_gitignore(root), *ignore],
        )

        results: list[ScannedFile] = []
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)

            # Prune ignored and hidden directories in place so os.walk skips them
            for name in list(dirnames):
                rel_dir = (current / name).relative_to(root).as_posix()
                if name.startswith(".") or ignore_spec.match_file(rel_dir + "/"):
                    dirnames.remove(name)

            for name in filenames:
                abs_path = current / name
                rel_path = abs_path.relative_to(root).as_posix()

                if name.startswith("."):
                    continue
                if not include_spec.match_file(rel_path) or ignore_spec.match_file(rel_path):
                    continue

                scanned = self._read(abs_path, rel_path)
                if scanned is not None:
                    results.append(scanned)

        results.sort(key=lambda f: f.path)
        logger.info("Scanned %d files under %s", len(results), root)
        return results

    def _read(self, abs_path: Path, rel_path: str) -> ScannedFile | None:
        try:
            if abs_path.stat().st_size > self._max_bytes:
                logger.debug("Skipping %s — larger than %d bytes", rel_path, self._max_bytes)
                return None
            if _is_binary(abs_path):
                logger.debug("Skipping %s — binary content", rel_path)
                return None
            content = abs_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read file %s: %s", rel_path, exc)
            return None

        return ScannedFile(
            path=rel_path,
            content=content,
            language=detect_language(rel_path),
            token_info=count_tokens(content),
        )
