"""Greedy token-budget fitting.

Favours breadth: priority-matched files first, then smaller files before
larger ones, so the most distinct files fit a fixed context window.  The
scan never backtracks, and ties keep their input order.
"""

from __future__ import annotations

from typing import Sequence

from context_weaver.domain.entities import BudgetResult, ScannedFile
from context_weaver.services.token_accountant import format_tokens


def _matches_priority(path: str, priority_patterns: Sequence[str]) -> bool:
    return any(pattern in path for pattern in priority_patterns)


def sort_by_priority(
    files: Sequence[ScannedFile],
    priority_patterns: Sequence[str] = (),
) -> list[ScannedFile]:
    """Priority matches first, then ascending token count (stable)."""
    return sorted(
        files,
        key=lambda f: (not _matches_priority(f.path, priority_patterns), f.tokens),
    )


def fit_to_budget(
    files: Sequence[ScannedFile],
    max_tokens: int,
    reserve_tokens: int = 0,
    priority_patterns: Sequence[str] = (),
) -> BudgetResult:
    """Split *files* into what fits ``max_tokens - reserve_tokens`` and the rest.

    Parameters
    ----------
    files:
        Scanned files; their cached token counts are used as-is.
    max_tokens:
        Token ceiling of the target context window.
    reserve_tokens:
        Head-room kept free for prompts and headers.
    priority_patterns:
        Path substrings whose files are considered before all others.
    """
    effective_budget = max_tokens - reserve_tokens

    included: list[ScannedFile] = []
    excluded: list[ScannedFile] = []
    total = 0

    for f in sort_by_priority(files, priority_patterns):
        if total + f.tokens <= effective_budget:
            included.append(f)
            total += f.tokens
        else:
            excluded.append(f)

    return BudgetResult(
        included=included,
        excluded=excluded,
        total_tokens=total,
        budget_used=total,
        budget_remaining=effective_budget - total,
    )


def budget_summary(result: BudgetResult, max_tokens: int) -> str:
    """Human-readable usage line, e.g. ``"24/30 (80.0%) | 2 included, 1 excluded"``."""
    pct = result.budget_used / max_tokens * 100 if max_tokens else 0.0
    return (
        f"{format_tokens(result.budget_used)}/{format_tokens(max_tokens)} ({pct:.1f}%) | "
        f"{len(result.included)} included, {len(result.excluded)} excluded"
    )
