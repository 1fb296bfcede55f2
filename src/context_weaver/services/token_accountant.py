"""Deterministic token accounting.

Uses ``tiktoken`` for exact token counting, plus a cheap character-class
estimate for previews, display formatting and budget-string parsing.
"""

from __future__ import annotations

import math
import re

import tiktoken

from context_weaver.domain.entities import TokenInfo
from context_weaver.domain.value_objects import ColorTier, TokenBudget

# ── Constants ───────────────────────────────────────────────────────────────

_ENCODING_NAME = "cl100k_base"  # GPT-4 family

DEFAULT_MODEL = "gpt-4o"

MODEL_LIMITS: dict[str, int] = {
    "gpt-4o": 128_000,
    "gpt-4-turbo": 128_000,
    "gpt-4": 8_192,
    "gpt-3.5-turbo": 16_385,
    "claude-3-opus": 200_000,
    "claude-3-sonnet": 200_000,
    "claude-3-haiku": 200_000,
}

# Chars per token used by the estimator
_CJK_CHARS_PER_TOKEN = 1.5
_OTHER_CHARS_PER_TOKEN = 4

# Kana, CJK extension A, CJK unified ideographs, Hangul syllables
_CJK_RE = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af]")


# ── Encoder ─────────────────────────────────────────────────────────────────

_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    global _encoder  # noqa: PLW0603
    if _encoder is None:
        _encoder = tiktoken.get_encoding(_ENCODING_NAME)
    return _encoder


# ── Public helpers ──────────────────────────────────────────────────────────


def count_tokens(text: str) -> TokenInfo:
    """Return chars, lines and the exact token count for *text* under cl100k_base."""
    # Special-token markers inside source files are plain text here
    tokens = len(_get_encoder().encode(text, disallowed_special=()))
    return TokenInfo(chars=len(text), lines=text.count("\n") + 1, tokens=tokens)


def estimate_tokens(text: str) -> int:
    """Fast approximation: CJK ≈ 1.5 chars per token, everything else ≈ 4."""
    cjk = len(_CJK_RE.findall(text))
    other = len(text) - cjk
    return math.ceil(cjk / _CJK_CHARS_PER_TOKEN + other / _OTHER_CHARS_PER_TOKEN)


def format_tokens(tokens: int) -> str:
    if tokens < 1000:
        return str(tokens)
    return f"{tokens / 1000:.1f}k"


def parse_budget(budget: str) -> int:
    """Parse a budget string such as ``"32k"``, ``"1.5K"`` or ``"128000"``."""
    return TokenBudget.from_string(budget).tokens


def color_tier(tokens: int, limit: int = MODEL_LIMITS[DEFAULT_MODEL]) -> ColorTier:
    """Classify usage of *limit* for display: <50 % low, <80 % mid, else high."""
    ratio = tokens / limit if limit > 0 else 1.0
    if ratio < 0.5:
        return ColorTier.LOW
    if ratio < 0.8:
        return ColorTier.MID
    return ColorTier.HIGH


def model_limit(model: str) -> int:
    """Context window of *model*; unknown names get the default model's window."""
    return MODEL_LIMITS.get(model, MODEL_LIMITS[DEFAULT_MODEL])
