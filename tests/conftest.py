"""Shared fixtures: hand-built scanned files and an in-memory scanner."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pytest

from context_weaver.domain.entities import ScannedFile, TokenInfo


def _make_file(
    path: str,
    tokens: int = 1,
    content: str | None = None,
    language: str = "typescript",
) -> ScannedFile:
    """A scanned file whose token count is fixed rather than tokenized."""
    text = content if content is not None else f"// {path}\n"
    return ScannedFile(
        path=path,
        content=text,
        language=language,
        token_info=TokenInfo(chars=len(text), lines=text.count("\n") + 1, tokens=tokens),
    )


class FakeScanner:
    """FileScanner returning a fixed file list and recording each call."""

    def __init__(self, files: Sequence[ScannedFile]) -> None:
        self.files = list(files)
        self.calls: list[tuple[Path, list[str], list[str]]] = []

    def scan(
        self,
        root: Path,
        patterns: Sequence[str],
        ignore: Sequence[str] = (),
    ) -> list[ScannedFile]:
        self.calls.append((root, list(patterns), list(ignore)))
        return list(self.files)


@pytest.fixture
def make_file():
    return _make_file


@pytest.fixture
def fake_scanner():
    return FakeScanner


SAMPLE_TS = """
export function add(a: number, b: number): number {
  return a + b;
}

const subtract = (a: number, b: number) => a - b;

export class Calculator {
  multiply(a: number, b: number): number {
    return a * b;
  }
}

interface Operation {
  name: string;
  execute: (a: number, b: number) => number;
}

type NumberPair = [number, number];
"""


@pytest.fixture
def sample_ts() -> str:
    return SAMPLE_TS
