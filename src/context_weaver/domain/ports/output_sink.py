"""Port: output sink — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol, Sequence


class OutputSink(Protocol):
    """Abstract contract for delivering a finished render."""

    def write(self, content: str) -> str:
        """Deliver a single render and return where it went."""
        ...

    def write_chunks(self, outputs: Sequence[str]) -> list[str]:
        """Deliver one render per chunk (header included) and return where each went."""
        ...
