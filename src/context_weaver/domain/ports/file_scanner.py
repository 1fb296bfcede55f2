"""Port: file scanner — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

from context_weaver.domain.entities import ScannedFile


class FileScanner(Protocol):
    """Abstract contract for producing the scanned file set of a source tree."""

    def scan(
        self,
        root: Path,
        patterns: Sequence[str],
        ignore: Sequence[str] = (),
    ) -> list[ScannedFile]:
        """Return every file under *root* matching *patterns* and not *ignore*, sorted by path."""
        ...
