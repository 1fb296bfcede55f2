"""Chunker — split a file list into sequential groups under a token ceiling."""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from context_weaver.domain.entities import Chunk, ScannedFile
from context_weaver.services.token_accountant import format_tokens


def _seed_with_overlap(
    previous: Sequence[ScannedFile], overlap: int, incoming: ScannedFile, max_tokens: int
) -> list[ScannedFile]:
    """Trailing *overlap* files of *previous*, trimmed from the front until *incoming* fits."""
    seed = list(previous[-overlap:]) if overlap > 0 else []
    while seed and sum(f.tokens for f in seed) + incoming.tokens > max_tokens:
        seed.pop(0)
    return seed


def split_to_chunks(
    files: Sequence[ScannedFile],
    max_tokens_per_chunk: int,
    overlap: int = 0,
) -> list[Chunk]:
    """Partition *files* in order into chunks of at most *max_tokens_per_chunk*.

    A file larger than the ceiling always gets a chunk of its own.  When a
    chunk fills up, the next one starts with the last *overlap* files of the
    chunk just closed.
    """
    chunks: list[Chunk] = []
    current: list[ScannedFile] = []
    current_tokens = 0

    def flush() -> None:
        nonlocal current, current_tokens
        if current:
            chunks.append(Chunk(index=len(chunks), total=0, files=current, tokens=current_tokens))
        current = []
        current_tokens = 0

    for f in files:
        if f.tokens > max_tokens_per_chunk:
            flush()
            chunks.append(Chunk(index=len(chunks), total=0, files=[f], tokens=f.tokens))
            continue

        if current_tokens + f.tokens <= max_tokens_per_chunk:
            current.append(f)
            current_tokens += f.tokens
            continue

        closed = current
        flush()
        current = [*_seed_with_overlap(closed, overlap, f, max_tokens_per_chunk), f]
        current_tokens = sum(c.tokens for c in current)

    flush()

    total = len(chunks)
    return [replace(chunk, total=total) for chunk in chunks]


def chunk_header(chunk: Chunk) -> str:
    """Header line that precedes a chunk's render."""
    return (
        f"<!-- Chunk {chunk.index + 1}/{chunk.total} | {len(chunk.files)} files | "
        f"{format_tokens(chunk.tokens)} tokens -->"
    )
