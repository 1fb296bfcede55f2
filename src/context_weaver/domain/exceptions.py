"""Domain exception hierarchy.

Each exception maps to a specific HTTP status code at the interface layer.
Inner layers raise these; the outermost error-handler translates them.
"""

from __future__ import annotations


class ContextWeaverError(Exception):
    """Base exception for the entire application."""


# ── Input validation ────────────────────────────────────────────────────────


class InvalidBudgetError(ContextWeaverError):
    """A token budget string is not an integer or a ``<number>k`` value."""


class UnknownFormatError(ContextWeaverError):
    """The requested output format is not one of the supported formats."""


# ── Selection state ─────────────────────────────────────────────────────────


class NodeNotFoundError(ContextWeaverError):
    """A path does not exist in the selection tree."""


class UnknownActionError(ContextWeaverError):
    """A selection edit names an unknown action or lacks its target path."""


# ── Scanning ────────────────────────────────────────────────────────────────


class ScanError(ContextWeaverError):
    """The scan root is missing or is not a directory."""


# ── Output ──────────────────────────────────────────────────────────────────


class OutputPathError(ContextWeaverError):
    """An output file would land outside the configured output directory."""
