import pytest

from context_weaver.domain.exceptions import NodeNotFoundError, UnknownActionError
from context_weaver.services import selection_state as ss


@pytest.fixture
def files(make_file):
    return [
        make_file("src/app.ts", 100),
        make_file("src/app.test.ts", 40),
        make_file("src/lib/util.ts", 20),
        make_file("lib/helpers.js", 10, language="javascript"),
        make_file("README.md", 5, language="markdown"),
    ]


@pytest.fixture
def forest(files):
    return ss.build_file_tree(files)


def _selected_paths(forest):
    return sorted(leaf.path for leaf in ss.iter_leaves(forest) if leaf.selected)


# --- construction / traversal ---


def test_tree_shape_and_order(forest):
    assert [n.name for n in forest] == ["lib", "src", "README.md"]
    src = ss.find_node(forest, "src")
    assert [n.name for n in src.children] == ["lib", "app.test.ts", "app.ts"]


def test_new_tree_is_expanded_and_unselected(forest):
    assert all(n.expanded for n in ss.iter_nodes(forest) if n.is_dir)
    assert not any(n.selected for n in ss.iter_nodes(forest))


def test_leaves_carry_file_and_tokens(forest, files):
    leaf = ss.find_node(forest, "src/lib/util.ts")
    assert leaf.file is files[2]
    assert leaf.tokens == 20
    assert not leaf.is_dir


def test_find_missing_node_raises(forest):
    with pytest.raises(NodeNotFoundError, match="src/nope.ts"):
        ss.find_node(forest, "src/nope.ts")


def test_empty_tree():
    assert ss.build_file_tree([]) == ()
    assert ss.flatten(()) == []


# --- selection ---


def test_toggle_leaf_returns_new_snapshot(forest):
    after = ss.toggle_selection(forest, "src/app.ts")

    assert ss.is_selected(after, "src/app.ts")
    assert not ss.is_selected(forest, "src/app.ts")


def test_toggle_shares_untouched_subtrees(forest):
    after = ss.toggle_selection(forest, "src/app.ts")

    assert after[0] is forest[0]
    assert after[2] is forest[2]
    assert ss.find_node(after, "src/lib") is ss.find_node(forest, "src/lib")
    assert after[1] is not forest[1]


def test_toggle_directory_selects_all_leaves(forest):
    after = ss.toggle_selection(forest, "src")

    assert _selected_paths(after) == ["src/app.test.ts", "src/app.ts", "src/lib/util.ts"]
    assert ss.is_selected(after, "src")
    assert ss.is_selected(after, "src/lib")


def test_toggle_fully_selected_directory_clears_it(forest):
    once = ss.toggle_selection(forest, "src")
    assert _selected_paths(ss.toggle_selection(once, "src")) == []


def test_toggle_partially_selected_directory_selects_rest(forest):
    partial = ss.toggle_selection(forest, "src/app.ts")
    after = ss.toggle_selection(partial, "src")
    assert _selected_paths(after) == ["src/app.test.ts", "src/app.ts", "src/lib/util.ts"]


def test_directory_flag_follows_leaves(forest):
    after = ss.toggle_selection(forest, "lib/helpers.js")
    assert ss.is_selected(after, "lib")

    after = ss.toggle_selection(after, "lib/helpers.js")
    assert not ss.is_selected(after, "lib")


def test_select_deselect_invert(forest):
    every = ss.select_all(forest)
    assert len(_selected_paths(every)) == 5
    assert all(n.selected for n in ss.iter_nodes(every))

    assert _selected_paths(ss.deselect_all(every)) == []

    one = ss.toggle_selection(forest, "README.md")
    inverted = ss.invert_selection(one)
    assert "README.md" not in _selected_paths(inverted)
    assert len(_selected_paths(inverted)) == 4
    assert _selected_paths(ss.invert_selection(inverted)) == ["README.md"]


def test_toggle_current_directory_any_selected_clears(make_file):
    forest = ss.build_file_tree([make_file("pkg/a.ts", 1), make_file("pkg/b.ts", 1)])
    forest = ss.toggle_selection(forest, "pkg/a.ts")

    cleared = ss.toggle_current_directory(forest, "pkg")
    assert _selected_paths(cleared) == []

    filled = ss.toggle_current_directory(cleared, "pkg")
    assert _selected_paths(filled) == ["pkg/a.ts", "pkg/b.ts"]


def test_toggle_current_directory_from_a_leaf_targets_parent(forest):
    after = ss.toggle_current_directory(forest, "src/lib/util.ts")
    assert _selected_paths(after) == ["src/lib/util.ts"]


def test_toggle_current_directory_on_top_level_leaf_is_noop(forest):
    assert ss.toggle_current_directory(forest, "README.md") is forest


def test_toggle_test_files(forest):
    after = ss.toggle_test_files(forest)
    assert _selected_paths(after) == ["src/app.test.ts"]
    assert _selected_paths(ss.toggle_test_files(after)) == []


def test_toggle_test_files_matches_test_directories(make_file):
    forest = ss.build_file_tree(
        [make_file("__tests__/a.ts"), make_file("b.spec.js"), make_file("c.ts")]
    )
    assert _selected_paths(ss.toggle_test_files(forest)) == ["__tests__/a.ts", "b.spec.js"]


# --- expansion / visible rows ---


def test_flatten_respects_expansion(forest):
    rows = ss.flatten(forest)
    assert [(n.path, d) for n, d in rows] == [
        ("lib", 0),
        ("lib/helpers.js", 1),
        ("src", 0),
        ("src/lib", 1),
        ("src/lib/util.ts", 2),
        ("src/app.test.ts", 1),
        ("src/app.ts", 1),
        ("README.md", 0),
    ]

    collapsed = ss.toggle_expand(forest, "src")
    assert [n.path for n, _ in ss.flatten(collapsed)] == ["lib", "lib/helpers.js", "src", "README.md"]


def test_toggle_expand_on_leaf_is_noop(forest):
    after = ss.toggle_expand(forest, "README.md")
    assert ss.find_node(after, "README.md") == ss.find_node(forest, "README.md")


def test_collapse_and_expand_all(forest):
    collapsed = ss.collapse_all(forest)
    assert [n.path for n, _ in ss.flatten(collapsed)] == ["lib", "src", "README.md"]
    assert len(ss.flatten(ss.expand_all(collapsed))) == 8


def test_expansion_keeps_selection(forest):
    selected = ss.toggle_selection(forest, "src")
    assert ss.is_selected(ss.collapse_all(selected), "src")


def test_filter_rows_is_case_insensitive(forest):
    rows = ss.filter_rows(ss.flatten(forest), "UTIL")
    assert [n.path for n, _ in rows] == ["src/lib/util.ts"]
    assert ss.filter_rows(ss.flatten(forest), "") == ss.flatten(forest)


# --- statistics ---


def test_dir_stats(forest):
    stats = ss.dir_stats(ss.find_node(forest, "src"))
    assert (stats.file_count, stats.total_tokens) == (3, 160)


def test_selected_stats_counts_zero_token_files(make_file):
    forest = ss.select_all(ss.build_file_tree([make_file("a.ts", 0), make_file("b.ts", 7)]))
    stats = ss.selected_stats(forest)
    assert (stats.file_count, stats.total_tokens) == (2, 7)


def test_selected_files_keep_input_order(forest, files):
    after = ss.toggle_selection(forest, "README.md")
    after = ss.toggle_selection(after, "src/app.ts")
    assert [f.path for f in ss.selected_files(after, files)] == ["src/app.ts", "README.md"]


# --- edit replay ---


def test_apply_edit_dispatches(forest):
    after = ss.apply_edit(forest, "toggle", "src/app.ts")
    after = ss.apply_edit(after, "invert")
    assert "src/app.ts" not in _selected_paths(after)
    assert len(_selected_paths(after)) == 4


def test_apply_edit_unknown_action(forest):
    with pytest.raises(UnknownActionError, match="explode"):
        ss.apply_edit(forest, "explode")


def test_apply_edit_path_action_needs_path(forest):
    with pytest.raises(UnknownActionError):
        ss.apply_edit(forest, "toggle")


def test_apply_edit_unknown_path(forest):
    with pytest.raises(NodeNotFoundError):
        ss.apply_edit(forest, "toggle", "missing.ts")


def test_edit_actions_are_complete():
    assert ss.EDIT_ACTIONS == {
        "toggle", "toggle_dir", "toggle_expand",
        "select_all", "deselect_all", "invert", "expand_all", "collapse_all", "toggle_tests",
    }
