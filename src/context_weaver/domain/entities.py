"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class SymbolKind(str, Enum):
    """Kind of named code construct produced by symbol extraction."""

    FUNCTION = "function"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE = "type"
    METHOD = "method"
    VARIABLE = "variable"
    EXPORT = "export"


@dataclass(frozen=True, slots=True)
class TokenInfo:
    """Size figures for a text blob."""

    chars: int
    lines: int
    tokens: int


@dataclass(frozen=True, slots=True)
class ScannedFile:
    """A scanned file with its decoded content and cached token figures."""

    path: str
    content: str
    language: str
    token_info: TokenInfo

    @property
    def tokens(self) -> int:
        return self.token_info.tokens


@dataclass(frozen=True, slots=True)
class CodeSymbol:
    """A named declaration located in a source file (lines are 1-based, inclusive)."""

    name: str
    kind: SymbolKind
    start_line: int
    end_line: int
    signature: str
    content: str
    tokens: int


@dataclass(frozen=True, slots=True)
class BudgetResult:
    """Partition of a file list into what fits a token ceiling and what does not."""

    included: list[ScannedFile] = field(default_factory=list)
    excluded: list[ScannedFile] = field(default_factory=list)
    total_tokens: int = 0
    budget_used: int = 0
    budget_remaining: int = 0


@dataclass(frozen=True, slots=True)
class Chunk:
    """One sequential group of files sized under a per-chunk ceiling."""

    index: int
    total: int
    files: list[ScannedFile]
    tokens: int


@dataclass(frozen=True, slots=True)
class FileNode:
    """A node of the selection tree.

    Directories carry ``children``; leaves carry ``file``.  A directory's
    ``selected`` flag is derived from its leaves and only kept for display.
    """

    name: str
    path: str
    is_dir: bool
    children: tuple[FileNode, ...] | None = None
    file: ScannedFile | None = None
    tokens: int | None = None
    selected: bool = False
    expanded: bool = False


@dataclass(frozen=True, slots=True)
class FileStats:
    """File count and token total over a group of leaves."""

    file_count: int = 0
    total_tokens: int = 0


@dataclass(frozen=True, slots=True)
class LanguageStats:
    """Per-language breakdown of a scanned file set."""

    language: str
    files: int
    tokens: int
