"""Selection-state engine — the interactive file tree feeding the pipeline.

The forest is a tuple of frozen :class:`FileNode` objects.  Every operation
returns a new forest; only the nodes on the path to an edit are rebuilt and
untouched subtrees are shared, so any forest a caller still holds stays valid.

Leaf ``selected`` flags are authoritative.  A directory's flag is re-derived
(all descendant leaves selected) whenever the directory is rebuilt.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterator, Sequence

from context_weaver.domain.entities import FileNode, FileStats, ScannedFile
from context_weaver.domain.exceptions import NodeNotFoundError, UnknownActionError

Forest = tuple[FileNode, ...]
Row = tuple[FileNode, int]

TEST_FILE_MARKERS: tuple[str, ...] = (".test.", ".spec.", "__tests__")


# ── Construction ────────────────────────────────────────────────────────────


def _sort_key(node: FileNode) -> tuple[bool, str, str]:
    return (not node.is_dir, node.name.lower(), node.name)


def _directory(name: str, path: str, children: Sequence[FileNode], expanded: bool) -> FileNode:
    kids = tuple(children)
    return FileNode(
        name=name,
        path=path,
        is_dir=True,
        children=kids,
        selected=bool(kids) and all(c.selected for c in kids),
        expanded=expanded,
    )


def build_file_tree(files: Sequence[ScannedFile]) -> Forest:
    """Build the forest for *files*; directories start expanded, leaves unselected."""
    nested: dict = {}
    for f in files:
        parts = f.path.split("/")
        level = nested
        for part in parts[:-1]:
            child = level.get(part)
            if not isinstance(child, dict):
                child = {}
                level[part] = child
            level = child
        level[parts[-1]] = f

    def to_nodes(level: dict, parent: str) -> Forest:
        nodes: list[FileNode] = []
        for name, value in level.items():
            path = f"{parent}/{name}" if parent else name
            if isinstance(value, dict):
                nodes.append(_directory(name, path, to_nodes(value, path), expanded=True))
            else:
                nodes.append(
                    FileNode(name=name, path=path, is_dir=False, file=value, tokens=value.tokens)
                )
        return tuple(sorted(nodes, key=_sort_key))

    return to_nodes(nested, "")


# ── Traversal ───────────────────────────────────────────────────────────────


def iter_nodes(forest: Sequence[FileNode]) -> Iterator[FileNode]:
    """Depth-first, pre-order walk over every node regardless of expansion."""
    for node in forest:
        yield node
        if node.children:
            yield from iter_nodes(node.children)


def iter_leaves(forest: Sequence[FileNode]) -> Iterator[FileNode]:
    return (node for node in iter_nodes(forest) if not node.is_dir)


def find_node(forest: Sequence[FileNode], path: str) -> FileNode:
    """Return the node at *path*; raises :class:`NodeNotFoundError` when absent."""
    for node in forest:
        if node.path == path:
            return node
        if node.children and path.startswith(node.path + "/"):
            return find_node(node.children, path)
    raise NodeNotFoundError(f"No such path in the file tree: '{path}'")


def flatten(forest: Sequence[FileNode], depth: int = 0) -> list[Row]:
    """Visible rows as ``(node, depth)``; collapsed directories hide their children."""
    rows: list[Row] = []
    for node in forest:
        rows.append((node, depth))
        if node.is_dir and node.expanded and node.children:
            rows.extend(flatten(node.children, depth + 1))
    return rows


def filter_rows(rows: Sequence[Row], query: str) -> list[Row]:
    """Rows whose path contains *query* (case-insensitive); empty query keeps all."""
    if not query:
        return list(rows)
    needle = query.lower()
    return [row for row in rows if needle in row[0].path.lower()]


# ── Rebuild helpers ─────────────────────────────────────────────────────────


def _update_at(
    forest: Forest, path: str, apply: Callable[[FileNode], FileNode]
) -> Forest:
    """Path-copy: rebuild only the ancestors of *path*, re-deriving their flags."""
    for i, node in enumerate(forest):
        if node.path == path:
            updated = apply(node)
        elif node.children and path.startswith(node.path + "/"):
            children = _update_at(node.children, path, apply)
            updated = _directory(node.name, node.path, children, node.expanded)
        else:
            continue
        return (*forest[:i], updated, *forest[i + 1 :])
    raise NodeNotFoundError(f"No such path in the file tree: '{path}'")


def _set_subtree_selected(node: FileNode, selected: bool) -> FileNode:
    if not node.is_dir:
        return replace(node, selected=selected)
    children = tuple(_set_subtree_selected(c, selected) for c in node.children or ())
    return _directory(node.name, node.path, children, node.expanded)


def _map_leaves(forest: Forest, apply: Callable[[FileNode], FileNode]) -> Forest:
    rebuilt: list[FileNode] = []
    for node in forest:
        if node.is_dir:
            children = _map_leaves(node.children or (), apply)
            rebuilt.append(_directory(node.name, node.path, children, node.expanded))
        else:
            rebuilt.append(apply(node))
    return tuple(rebuilt)


def _map_dirs(forest: Forest, apply: Callable[[FileNode], FileNode]) -> Forest:
    rebuilt: list[FileNode] = []
    for node in forest:
        if node.is_dir:
            node = apply(replace(node, children=_map_dirs(node.children or (), apply)))
        rebuilt.append(node)
    return tuple(rebuilt)


def _all_leaves_selected(node: FileNode) -> bool:
    leaves = list(iter_leaves(node.children or ()))
    return bool(leaves) and all(leaf.selected for leaf in leaves)


# ── Selection ───────────────────────────────────────────────────────────────


def toggle_selection(forest: Forest, path: str) -> Forest:
    """Flip a leaf; on a directory, select every leaf unless all already are."""

    def toggle(node: FileNode) -> FileNode:
        if node.is_dir:
            return _set_subtree_selected(node, not _all_leaves_selected(node))
        return replace(node, selected=not node.selected)

    return _update_at(forest, path, toggle)


def select_all(forest: Forest) -> Forest:
    return _map_leaves(forest, lambda leaf: replace(leaf, selected=True))


def deselect_all(forest: Forest) -> Forest:
    return _map_leaves(forest, lambda leaf: replace(leaf, selected=False))


def invert_selection(forest: Forest) -> Forest:
    return _map_leaves(forest, lambda leaf: replace(leaf, selected=not leaf.selected))


def toggle_current_directory(forest: Forest, path: str) -> Forest:
    """Folder shortcut: deselect everything if any direct child is selected, else select all.

    A leaf path targets its parent directory; a top-level leaf has none and
    leaves the forest unchanged.
    """
    node = find_node(forest, path)
    if not node.is_dir:
        parent, _, _ = path.rpartition("/")
        if not parent:
            return forest
        path = parent

    def toggle(directory: FileNode) -> FileNode:
        any_selected = any(c.selected for c in directory.children or ())
        return _set_subtree_selected(directory, not any_selected)

    return _update_at(forest, path, toggle)


def toggle_test_files(forest: Forest) -> Forest:
    """Flip every leaf whose path carries a test-file marker."""

    def toggle(leaf: FileNode) -> FileNode:
        if any(marker in leaf.path for marker in TEST_FILE_MARKERS):
            return replace(leaf, selected=not leaf.selected)
        return leaf

    return _map_leaves(forest, toggle)


def is_selected(forest: Sequence[FileNode], path: str) -> bool:
    return find_node(forest, path).selected


# ── Expansion ───────────────────────────────────────────────────────────────


def toggle_expand(forest: Forest, path: str) -> Forest:
    """Flip ``expanded`` on a directory; leaves are left as they are."""

    def toggle(node: FileNode) -> FileNode:
        return replace(node, expanded=not node.expanded) if node.is_dir else node

    return _update_at(forest, path, toggle)


def expand_all(forest: Forest) -> Forest:
    return _map_dirs(forest, lambda d: replace(d, expanded=True))


def collapse_all(forest: Forest) -> Forest:
    return _map_dirs(forest, lambda d: replace(d, expanded=False))


# ── Statistics ──────────────────────────────────────────────────────────────


def dir_stats(node: FileNode) -> FileStats:
    """File count and token total under *node* (recomputed on every call)."""
    leaves = list(iter_leaves(node.children or ()))
    return FileStats(
        file_count=len(leaves),
        total_tokens=sum(leaf.tokens or 0 for leaf in leaves),
    )


def selected_stats(forest: Sequence[FileNode]) -> FileStats:
    leaves = [leaf for leaf in iter_leaves(forest) if leaf.selected]
    return FileStats(
        file_count=len(leaves),
        total_tokens=sum(leaf.tokens or 0 for leaf in leaves),
    )


def selected_files(forest: Sequence[FileNode], files: Sequence[ScannedFile]) -> list[ScannedFile]:
    """The selected subset of *files*, in their original order."""
    chosen = {leaf.path for leaf in iter_leaves(forest) if leaf.selected}
    return [f for f in files if f.path in chosen]


# ── Edit replay ─────────────────────────────────────────────────────────────

_PATH_EDITS: dict[str, Callable[[Forest, str], Forest]] = {
    "toggle": toggle_selection,
    "toggle_dir": toggle_current_directory,
    "toggle_expand": toggle_expand,
}

_GLOBAL_EDITS: dict[str, Callable[[Forest], Forest]] = {
    "select_all": select_all,
    "deselect_all": deselect_all,
    "invert": invert_selection,
    "expand_all": expand_all,
    "collapse_all": collapse_all,
    "toggle_tests": toggle_test_files,
}

EDIT_ACTIONS = frozenset(_PATH_EDITS) | frozenset(_GLOBAL_EDITS)


def apply_edit(forest: Forest, action: str, path: str | None = None) -> Forest:
    """Apply one named user action; path-based actions require *path*."""
    if action in _GLOBAL_EDITS:
        return _GLOBAL_EDITS[action](forest)
    if action in _PATH_EDITS:
        if path is None:
            raise UnknownActionError(f"Action '{action}' requires a path")
        return _PATH_EDITS[action](forest, path)
    raise UnknownActionError(f"Unknown selection action: '{action}'")
