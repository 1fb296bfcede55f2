"""Assemble-context use case — the main orchestration pipeline.

This is the single entry point for the business logic.  It depends only on
the :class:`FileScanner` port and the pure service modules.  The interface
layer injects the concrete scanner at runtime.

Pipeline: scan → (replay selection edits) → budget → symbols → chunk → render.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from context_weaver.domain.entities import (
    BudgetResult,
    Chunk,
    CodeSymbol,
    FileNode,
    FileStats,
    LanguageStats,
    ScannedFile,
)
from context_weaver.domain.ports.file_scanner import FileScanner
from context_weaver.domain.value_objects import ColorTier, OutputFormat
from context_weaver.services import selection_state
from context_weaver.services.budget_fitter import budget_summary, fit_to_budget
from context_weaver.services.chunker import chunk_header, split_to_chunks
from context_weaver.services.formatter import FormatOptions, render
from context_weaver.services.symbol_extractor import extract_file_symbols, symbol_summary
from context_weaver.services.token_accountant import (
    DEFAULT_MODEL,
    color_tier,
    format_tokens,
    model_limit,
    parse_budget,
)

logger = logging.getLogger(__name__)

TEST_IGNORE_PATTERNS: tuple[str, ...] = ("*.test.*", "*.spec.*", "__tests__/")


def extension_patterns(extensions: Sequence[str]) -> list[str]:
    """``["ts", ".py"]`` → ``["**/*.ts", "**/*.py"]``."""
    return [f"**/*.{ext.strip().lstrip('.')}" for ext in extensions if ext.strip()]


# ── Request / result objects ────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class SelectionEdit:
    """One recorded user action on the selection tree."""

    action: str
    path: str | None = None


@dataclass(frozen=True, slots=True)
class AssemblyOptions:
    """Everything one assembly run needs.

    ``edits=None`` renders every scanned file; otherwise the edits are
    replayed on a fresh (all-unselected) tree and only the selected files
    are rendered.
    """

    root: Path
    extensions: Sequence[str]
    ignore: Sequence[str] = ()
    exclude_tests: bool = False
    format: str = OutputFormat.MARKDOWN.value
    include_tree: bool = True
    budget: str | None = None
    reserve_tokens: int | None = None
    priority_patterns: Sequence[str] = ()
    chunk: str | None = None
    overlap: int = 0
    symbols: bool = False
    signatures_only: bool = False
    compact: bool = False
    model: str | None = None
    edits: Sequence[SelectionEdit] | None = None


@dataclass
class AssemblyResult:
    """Rendered outputs plus the figures reported alongside them."""

    outputs: list[str]
    files: list[ScannedFile]
    scanned_count: int
    total_tokens: int
    usage_tier: ColorTier
    languages: list[LanguageStats] = field(default_factory=list)
    budget: BudgetResult | None = None
    budget_summary: str | None = None
    chunks: list[Chunk] = field(default_factory=list)
    symbol_summaries: dict[str, str] = field(default_factory=dict)


@dataclass
class TreeView:
    """Visible rows of the selection tree after replaying edits."""

    rows: list[tuple[FileNode, int]]
    selected: FileStats
    total: FileStats


# ── Use case ────────────────────────────────────────────────────────────────


class AssembleContextUseCase:
    """Orchestrates the full scan → context pipeline.

    Parameters
    ----------
    scanner:
        Adapter that produces the scanned file set.
    reserve_tokens:
        Head-room subtracted from every budget unless a run overrides it.
    default_model:
        Model whose context window classifies the usage tier.
    """

    def __init__(
        self,
        scanner: FileScanner,
        reserve_tokens: int = 1_000,
        default_model: str = DEFAULT_MODEL,
    ) -> None:
        self._scanner = scanner
        self._reserve = reserve_tokens
        self._model = default_model

    # ── Public entry points ─────────────────────────────────────────────

    def execute(self, options: AssemblyOptions) -> AssemblyResult:
        """Run the full pipeline and return the rendered context."""
        # 1. Validate every user-supplied string before doing any work
        output_format = OutputFormat.parse(options.format)
        max_tokens = parse_budget(options.budget) if options.budget else None
        chunk_tokens = parse_budget(options.chunk) if options.chunk else None

        # 2. Scan and narrow to the interactive selection
        scanned = self._scan(options)
        files = self._apply_selection(scanned, options.edits)
        total_tokens = sum(f.tokens for f in files)
        logger.info(
            "Assembling %d of %d files (%s tokens)",
            len(files),
            len(scanned),
            format_tokens(total_tokens),
        )

        result = AssemblyResult(
            outputs=[],
            files=files,
            scanned_count=len(scanned),
            total_tokens=total_tokens,
            usage_tier=color_tier(total_tokens, model_limit(options.model or self._model)),
            languages=self._language_stats(files),
        )

        # 3. Budget fitting
        if max_tokens is not None:
            reserve = self._reserve if options.reserve_tokens is None else options.reserve_tokens
            budget = fit_to_budget(
                files,
                max_tokens,
                reserve_tokens=reserve,
                priority_patterns=options.priority_patterns,
            )
            result.budget = budget
            result.budget_summary = budget_summary(budget, max_tokens)
            files = budget.included
            logger.info("Budget: %s", result.budget_summary)

        # 4. Symbol extraction
        symbols: dict[str, list[CodeSymbol]] = {}
        if options.symbols or options.signatures_only:
            symbols = extract_file_symbols(files)
            result.symbol_summaries = {
                path: symbol_summary(syms) for path, syms in symbols.items()
            }

        format_options = FormatOptions(
            format=output_format,
            include_tree=options.include_tree,
            signatures_only=options.signatures_only,
            symbols_by_path=symbols,
            compact=options.compact,
        )
        result.files = files

        # 5. Chunked or single render
        if chunk_tokens is not None:
            result.chunks = split_to_chunks(files, chunk_tokens, overlap=options.overlap)
            result.outputs = [
                f"{chunk_header(chunk)}\n\n{render(chunk.files, format_options)}"
                for chunk in result.chunks
            ]
            if not result.outputs:
                # No files selected: still emit the empty context once
                result.outputs = [render(files, format_options)]
            logger.info("Split into %d chunks", len(result.chunks))
        else:
            result.outputs = [render(files, format_options)]

        return result

    def tree_view(self, options: AssemblyOptions, query: str = "") -> TreeView:
        """Scan, replay edits, and project the tree the way a viewport shows it."""
        forest = self._replay(selection_state.build_file_tree(self._scan(options)), options.edits)
        rows = selection_state.filter_rows(selection_state.flatten(forest), query)
        all_leaves = list(selection_state.iter_leaves(forest))
        return TreeView(
            rows=rows,
            selected=selection_state.selected_stats(forest),
            total=FileStats(
                file_count=len(all_leaves),
                total_tokens=sum(leaf.tokens or 0 for leaf in all_leaves),
            ),
        )

    # ── Helpers ─────────────────────────────────────────────────────────

    def _scan(self, options: AssemblyOptions) -> list[ScannedFile]:
        ignore = list(options.ignore)
        if options.exclude_tests:
            ignore.extend(TEST_IGNORE_PATTERNS)
        return self._scanner.scan(options.root, extension_patterns(options.extensions), ignore)

    @staticmethod
    def _replay(
        forest: selection_state.Forest, edits: Sequence[SelectionEdit] | None
    ) -> selection_state.Forest:
        for edit in edits or ():
            forest = selection_state.apply_edit(forest, edit.action, edit.path)
        return forest

    def _apply_selection(
        self, scanned: list[ScannedFile], edits: Sequence[SelectionEdit] | None
    ) -> list[ScannedFile]:
        if edits is None:
            return scanned
        forest = self._replay(selection_state.build_file_tree(scanned), edits)
        return selection_state.selected_files(forest, scanned)

    @staticmethod
    def _language_stats(files: Sequence[ScannedFile]) -> list[LanguageStats]:
        by_language: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        for f in files:
            by_language[f.language][0] += 1
            by_language[f.language][1] += f.tokens
        stats = [
            LanguageStats(language=lang, files=count, tokens=tokens)
            for lang, (count, tokens) in by_language.items()
        ]
        stats.sort(key=lambda s: (-s.tokens, s.language))
        return stats
