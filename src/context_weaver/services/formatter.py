"""Formatter — renders the selected files as Markdown-hybrid or XML context.

This is the final transformation before text reaches the output sink.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from context_weaver.domain.entities import CodeSymbol, ScannedFile
from context_weaver.domain.value_objects import OutputFormat

_SIGNATURES_NOTE = "Signatures only mode - implementations omitted"

# Comment-only line markers per language family: (prefix, kept prefixes)
_C_LIKE_COMMENTS = ("//", ("///",))
_HASH_COMMENTS = ("#", ("#!",))
_DASH_COMMENTS = ("--", ())

_COMMENT_STYLES: dict[str, tuple[str, tuple[str, ...]]] = {
    **dict.fromkeys(
        (
            "typescript", "tsx", "javascript", "jsx", "c", "cpp", "java",
            "rust", "go", "scss", "vue", "svelte",
        ),
        _C_LIKE_COMMENTS,
    ),
    **dict.fromkeys(("python", "bash", "yaml"), _HASH_COMMENTS),
    "sql": _DASH_COMMENTS,
}


@dataclass(frozen=True, slots=True)
class FormatOptions:
    """Rendering switches shared by both output families."""

    format: OutputFormat = OutputFormat.MARKDOWN
    include_tree: bool = True
    signatures_only: bool = False
    symbols_by_path: Mapping[str, Sequence[CodeSymbol]] = field(default_factory=dict)
    compact: bool = False


# ── Directory tree ──────────────────────────────────────────────────────────


def build_tree(paths: Sequence[str]) -> str:
    """Render *paths* as an indented listing, directories before files."""
    tree: dict[str, dict | None] = {}
    for path in paths:
        parts = path.split("/")
        level = tree
        for part in parts[:-1]:
            child = level.get(part)
            if child is None:
                child = {}
                level[part] = child
            level = child
        level.setdefault(parts[-1], None)

    def render(node: dict[str, dict | None], prefix: str) -> list[str]:
        entries = sorted(
            node.items(),
            key=lambda item: (item[1] is None, item[0].lower(), item[0]),
        )
        lines: list[str] = []
        for name, children in entries:
            if children is None:
                lines.append(f"{prefix}- {name}")
            else:
                lines.append(f"{prefix}- {name}/")
                lines.extend(render(children, prefix + "  "))
        return lines

    return "\n".join(render(tree, ""))


# ── Body selection ──────────────────────────────────────────────────────────


def compact_content(content: str, language: str) -> str:
    """Drop comment-only lines and collapse runs of blank lines to one."""
    style = _COMMENT_STYLES.get(language)
    result: list[str] = []
    prev_empty = False

    for line in content.split("\n"):
        stripped = line.strip()
        if style is not None and stripped:
            marker, kept = style
            if stripped.startswith(marker) and not stripped.startswith(kept):
                continue

        if not stripped:
            if not prev_empty:
                result.append("")
            prev_empty = True
            continue

        prev_empty = False
        result.append(line)

    return "\n".join(result)


def _signature_body(symbols: Sequence[CodeSymbol]) -> str:
    return "\n\n".join(f"// {sym.kind.value}: {sym.name}\n{sym.signature}" for sym in symbols)


def file_body(f: ScannedFile, options: FormatOptions) -> str:
    """Signature digest, compacted content or full content for one file."""
    if options.signatures_only:
        symbols = options.symbols_by_path.get(f.path)
        if symbols:
            return _signature_body(symbols)

    if options.compact:
        return compact_content(f.content, f.language)
    return f.content


def escape_xml(text: str) -> str:
    # Ampersand first so entities introduced below are not escaped twice
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _escape_attr(text: str) -> str:
    return escape_xml(text).replace('"', "&quot;")


# ── Output families ─────────────────────────────────────────────────────────


def _format_markdown(files: Sequence[ScannedFile], options: FormatOptions) -> str:
    lines = ["# Project Context", ""]

    if options.signatures_only:
        lines.append(f"> **Note**: {_SIGNATURES_NOTE}")
        lines.append("")

    if options.include_tree and files:
        lines.append("## Structure")
        lines.append(build_tree([f.path for f in files]))
        lines.extend(["", "---", ""])

    for f in files:
        lines.append(f'<file path="{f.path}" language="{f.language}">')
        lines.append(file_body(f, options))
        lines.append("</file>")
        lines.append("")

    return "\n".join(lines)


def _format_xml(files: Sequence[ScannedFile], options: FormatOptions) -> str:
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', "<context>"]

    if options.signatures_only:
        lines.append(f"  <note>{_SIGNATURES_NOTE}</note>")

    if options.include_tree and files:
        lines.append("  <structure>")
        for tree_line in build_tree([f.path for f in files]).split("\n"):
            lines.append(f"    {escape_xml(tree_line)}")
        lines.append("  </structure>")

    lines.append("  <files>")
    for f in files:
        lines.append(f'    <file path="{_escape_attr(f.path)}" language="{_escape_attr(f.language)}">')
        lines.append(escape_xml(file_body(f, options)))
        lines.append("    </file>")
    lines.append("  </files>")
    lines.append("</context>")

    return "\n".join(lines)


def render(files: Sequence[ScannedFile], options: FormatOptions | None = None) -> str:
    """Render *files* in the family selected by ``options.format``."""
    options = options or FormatOptions()
    if OutputFormat.parse(options.format) is OutputFormat.XML:
        return _format_xml(files, options)
    return _format_markdown(files, options)
