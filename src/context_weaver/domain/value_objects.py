"""Value objects — self-validating domain primitives."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum

from context_weaver.domain.exceptions import InvalidBudgetError, UnknownFormatError

_BUDGET_RE = re.compile(r"^(?P<value>[0-9]+(?:\.[0-9]+)?)(?P<suffix>k)?$")


@dataclass(frozen=True, slots=True)
class TokenBudget:
    """Validated token budget.

    Accepts plain integers (``"128000"``) and a decimal mantissa with a
    ``k``/``K`` suffix (``"32k"``, ``"1.5K"``).  Rejects anything else.
    """

    tokens: int
    raw: str

    @classmethod
    def from_string(cls, value: str) -> TokenBudget:
        """Parse and validate a human-entered budget string."""
        raw = value.strip()
        match = _BUDGET_RE.match(raw.lower())
        if not match:
            raise InvalidBudgetError(
                f"Invalid budget format: '{value}'. "
                "Expected an integer or a number with a 'k' suffix, e.g. 32k"
            )
        number = float(match["value"])
        if match["suffix"]:
            number *= 1000
        return cls(tokens=math.floor(number), raw=raw)


class OutputFormat(str, Enum):
    """Wire format produced by the formatter."""

    MARKDOWN = "markdown"
    XML = "xml"

    @classmethod
    def parse(cls, value: str | OutputFormat) -> OutputFormat:
        if isinstance(value, OutputFormat):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            supported = ", ".join(f.value for f in cls)
            raise UnknownFormatError(
                f"Unknown output format: '{value}'. Supported formats: {supported}"
            ) from None


class ColorTier(str, Enum):
    """Display classification of token usage against a limit."""

    LOW = "low"
    MID = "mid"
    HIGH = "high"
