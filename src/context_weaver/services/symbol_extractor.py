"""Symbol extraction — named declarations and their signatures per source file.

Two tiers share one output shape:

* :class:`StructuralExtractor` walks a tree-sitter syntax tree.  It is only
  available when the optional ``tree_sitter_languages`` package is installed.
* :class:`PatternExtractor` matches declaration patterns line by line and
  finds each block's end by brace balancing.  It is always available.

The tier is resolved once per process by :func:`get_extractor`.  A structural
failure on a single input falls back to the pattern tier for that input only.
"""

from __future__ import annotations

import importlib
import logging
import re
from collections import Counter
from functools import lru_cache
from typing import Any, Callable, Sequence, Union

from context_weaver.domain.entities import CodeSymbol, ScannedFile, SymbolKind
from context_weaver.services.token_accountant import count_tokens

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = frozenset({"typescript", "tsx", "javascript", "jsx"})

# ── Line patterns ───────────────────────────────────────────────────────────

_JS_PATTERNS: list[tuple[re.Pattern[str], SymbolKind]] = [
    # function foo(), export default async function bar(), function* gen()
    (
        re.compile(r"^(?:export\s+(?:default\s+)?)?(?:async\s+)?function(?:\s*\*\s*|\s+)(\w+)"),
        SymbolKind.FUNCTION,
    ),
    # const foo = () => ..., export const bar = async (x: T): R => ...
    (
        re.compile(
            r"^(?:export\s+)?(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s+)?"
            r"(?:\([^)]*\)|[a-zA-Z_]\w*)\s*(?::\s*[^=]+)?\s*=>"
        ),
        SymbolKind.FUNCTION,
    ),
    # const foo = function () {}
    (
        re.compile(r"^(?:export\s+)?(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s+)?function\b"),
        SymbolKind.FUNCTION,
    ),
    (
        re.compile(r"^(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+(?!extends\b)(\w+)"),
        SymbolKind.CLASS,
    ),
    (re.compile(r"^(?:export\s+)?(?:declare\s+)?interface\s+(\w+)"), SymbolKind.INTERFACE),
    (re.compile(r"^(?:export\s+)?(?:declare\s+)?type\s+(\w+)"), SymbolKind.TYPE),
]

LANGUAGE_PATTERNS: dict[str, list[tuple[re.Pattern[str], SymbolKind]]] = {
    "typescript": _JS_PATTERNS,
    "tsx": _JS_PATTERNS,
    "javascript": _JS_PATTERNS,
    "jsx": _JS_PATTERNS,
}

# ── Syntax-tree node types ──────────────────────────────────────────────────

_GRAMMARS: dict[str, str] = {
    "typescript": "typescript",
    "tsx": "tsx",
    "javascript": "javascript",
    "jsx": "javascript",
}

_DECLARATION_NODES: dict[str, SymbolKind] = {
    "function_declaration": SymbolKind.FUNCTION,
    "generator_function_declaration": SymbolKind.FUNCTION,
    "class_declaration": SymbolKind.CLASS,
    "abstract_class_declaration": SymbolKind.CLASS,
    "interface_declaration": SymbolKind.INTERFACE,
    "type_alias_declaration": SymbolKind.TYPE,
    "method_definition": SymbolKind.METHOD,
}

_VARIABLE_NODES = frozenset({"lexical_declaration", "variable_declaration"})
_FUNCTION_VALUES = frozenset({"arrow_function", "function_expression", "function"})


# ── Shared helpers ──────────────────────────────────────────────────────────


def extract_signature(block: str) -> str:
    """Return the declaration part of *block* with its body elided."""
    lines = block.split("\n")
    brace = lines[0].find("{")
    if brace > 0:
        return lines[0][:brace].strip()

    parts: list[str] = []
    for line in lines:
        parts.append(line.strip())
        if "{" in line or "=>" in line:
            break

    signature = " ".join(parts)
    signature = re.sub(r"\s*\{.*$", "", signature)
    signature = re.sub(r"\s*=>.*$", " =>", signature)
    return signature.strip()


def _make_symbol(
    name: str, kind: SymbolKind, lines: Sequence[str], start: int, end: int
) -> CodeSymbol:
    """Build a symbol from the 0-based inclusive line range ``start..end``."""
    block = "\n".join(lines[start : end + 1])
    return CodeSymbol(
        name=name,
        kind=kind,
        start_line=start + 1,
        end_line=end + 1,
        signature=extract_signature(block),
        content=block,
        tokens=count_tokens(block).tokens,
    )


# ── Pattern tier ────────────────────────────────────────────────────────────


def _match_declaration(
    line: str, patterns: Sequence[tuple[re.Pattern[str], SymbolKind]]
) -> tuple[str, SymbolKind] | None:
    for regex, kind in patterns:
        match = regex.match(line)
        if match:
            return match.group(1), kind
    return None


class PatternExtractor:
    """Line-oriented extractor driven by :data:`LANGUAGE_PATTERNS`."""

    tier = "pattern"

    def extract(self, content: str, language: str) -> list[CodeSymbol]:
        patterns = LANGUAGE_PATTERNS.get(language, [])
        if not patterns:
            return []

        lines = content.split("\n")
        symbols: list[CodeSymbol] = []
        i = 0
        while i < len(lines):
            line = lines[i].strip()
            found = None
            if line and not line.startswith("//"):
                found = _match_declaration(line, patterns)
            if found is None:
                i += 1
                continue

            name, kind = found
            end = self._block_end(lines, i, patterns)
            symbols.append(_make_symbol(name, kind, lines, i, end))
            # Lines inside the block are never matched again
            i = end + 1

        return symbols

    @staticmethod
    def _block_end(
        lines: Sequence[str],
        start: int,
        patterns: Sequence[tuple[re.Pattern[str], SymbolKind]],
    ) -> int:
        """Index of the last line of the block starting at *start*."""
        depth = 0
        started = False
        for j in range(start, len(lines)):
            if not started and j > start and _match_declaration(lines[j].strip(), patterns):
                # Braceless statement without ';' ends where the next declaration begins
                return j - 1
            for char in lines[j]:
                if char == "{":
                    depth += 1
                    started = True
                elif char == "}":
                    depth -= 1
            if started and depth == 0:
                return j
            if not started and ";" in lines[j]:
                return j
        return start


# ── Structural tier ─────────────────────────────────────────────────────────


def _node_text(node: Any) -> str:
    text = node.text
    return text.decode("utf-8") if isinstance(text, bytes) else str(text)


class StructuralExtractor:
    """Syntax-tree extractor backed by a tree-sitter ``get_parser`` factory."""

    tier = "structural"

    def __init__(self, get_parser: Callable[[str], Any]) -> None:
        self._get_parser = get_parser

    def extract(self, content: str, language: str) -> list[CodeSymbol]:
        grammar = _GRAMMARS.get(language)
        if grammar is None:
            return []

        parser = self._get_parser(grammar)
        tree = parser.parse(content.encode("utf-8"))
        lines = content.split("\n")

        found: list[CodeSymbol] = []
        self._visit(tree.root_node, lines, found)
        found.sort(key=lambda s: s.start_line)
        return _drop_nested(found)

    def _visit(self, node: Any, lines: Sequence[str], found: list[CodeSymbol]) -> None:
        declaration = self._declaration(node)
        if declaration is not None:
            name, kind, span = declaration
            found.append(_make_symbol(name, kind, lines, span.start_point[0], span.end_point[0]))

        for child in node.children:
            self._visit(child, lines, found)

    @staticmethod
    def _declaration(node: Any) -> tuple[str, SymbolKind, Any] | None:
        kind = _DECLARATION_NODES.get(node.type)
        name_node = None

        if kind is not None:
            name_node = node.child_by_field_name("name")
        elif node.type in _VARIABLE_NODES:
            for declarator in node.named_children:
                if declarator.type != "variable_declarator":
                    continue
                value = declarator.child_by_field_name("value")
                if value is not None and value.type in _FUNCTION_VALUES:
                    kind = SymbolKind.FUNCTION
                    name_node = declarator.child_by_field_name("name")
                    break

        if kind is None or name_node is None:
            return None

        span = node.parent if node.parent is not None and node.parent.type == "export_statement" else node
        return _node_text(name_node), kind, span


def _drop_nested(symbols: Sequence[CodeSymbol]) -> list[CodeSymbol]:
    """Keep only symbols that start after the previous kept symbol ends."""
    kept: list[CodeSymbol] = []
    for sym in symbols:
        if kept and sym.start_line <= kept[-1].end_line:
            continue
        kept.append(sym)
    return kept


# ── Tier selection ──────────────────────────────────────────────────────────

Extractor = Union[StructuralExtractor, PatternExtractor]

_PATTERN_EXTRACTOR = PatternExtractor()


@lru_cache(maxsize=1)
def get_extractor() -> Extractor:
    """Resolve the extraction tier once: structural when tree-sitter is usable."""
    try:
        backend = importlib.import_module("tree_sitter_languages")
    except ImportError:
        logger.debug("tree_sitter_languages not installed — using pattern extraction")
        return _PATTERN_EXTRACTOR

    get_parser = getattr(backend, "get_parser", None)
    if not callable(get_parser):
        return _PATTERN_EXTRACTOR

    try:
        get_parser("javascript")
    except Exception:
        logger.debug("tree_sitter_languages unusable — using pattern extraction", exc_info=True)
        return _PATTERN_EXTRACTOR

    logger.debug("Using structural symbol extraction")
    return StructuralExtractor(get_parser)


# ── Public API ──────────────────────────────────────────────────────────────


def extract_symbols(content: str, language: str) -> list[CodeSymbol]:
    """Extract declarations from *content*; unsupported languages yield ``[]``."""
    if language not in SUPPORTED_LANGUAGES or not content.strip():
        return []

    extractor = get_extractor()
    if isinstance(extractor, StructuralExtractor):
        try:
            return extractor.extract(content, language)
        except Exception:
            logger.debug("Structural parse failed (%s) — falling back", language, exc_info=True)
    return _PATTERN_EXTRACTOR.extract(content, language)


def extract_file_symbols(files: Sequence[ScannedFile]) -> dict[str, list[CodeSymbol]]:
    """Batch extraction keyed by path, for files in a supported language."""
    return {
        f.path: extract_symbols(f.content, f.language)
        for f in files
        if f.language in SUPPORTED_LANGUAGES
    }


_SUMMARY_LABELS: list[tuple[SymbolKind, str]] = [
    (SymbolKind.FUNCTION, "fn"),
    (SymbolKind.CLASS, "class"),
    (SymbolKind.INTERFACE, "iface"),
    (SymbolKind.TYPE, "type"),
]


def symbol_summary(symbols: Sequence[CodeSymbol]) -> str:
    """One-line digest such as ``"2 fn, 1 class | 84 tok"``."""
    counts = Counter(sym.kind for sym in symbols)
    total = sum(sym.tokens for sym in symbols)
    parts = [f"{counts[kind]} {label}" for kind, label in _SUMMARY_LABELS if counts[kind]]
    if parts:
        return f"{', '.join(parts)} | {total} tok"
    return f"{total} tok"
