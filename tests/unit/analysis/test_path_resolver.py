"""Unit tests for path repair and path-to-configuration folding."""

import logging

import pytest

from dsmkit.analysis.matrix import MatrixBuilder
from dsmkit.analysis.path import PathResolver
from dsmkit.core.graph import OptimizedGraph
from dsmkit.core.types import Expand, Focus, FocusKind


@pytest.fixture
def gopti(project_graph):
    return OptimizedGraph.from_reference(project_graph)


@pytest.fixture
def resolver(project_graph):
    return PathResolver(MatrixBuilder(project_graph))


class TestFixPath:
    def test_stale_expand_relocated_before_focus(self, resolver, gopti):
        path = [Expand(node="src"), Focus(node="lib"), Expand(node="src")]
        assert resolver.fix_path(path, gopti) == [
            Expand(node="src"),
            Expand(node="src"),
            Focus(node="lib"),
        ]

    def test_valid_expand_stays_after_focus(self, resolver, gopti):
        path = [Focus(node="src"), Expand(node="src/core")]
        assert resolver.fix_path(path, gopti) == path

    def test_expand_of_focus_target_stays_after_focus(self, resolver, gopti):
        path = [Focus(node="src"), Expand(node="src")]
        assert resolver.fix_path(path, gopti) == path

    def test_expand_before_any_focus_is_appended(self, resolver, gopti):
        path = [Expand(node="src"), Expand(node="lib")]
        assert resolver.fix_path(path, gopti) == path

    def test_stale_expands_keep_their_order(self, resolver, gopti):
        path = [Focus(node="lib"), Expand(node="src"), Expand(node="tests")]
        assert resolver.fix_path(path, gopti) == [
            Expand(node="src"),
            Expand(node="tests"),
            Focus(node="lib"),
        ]

    def test_stops_at_first_focus_not_covering_node(self, resolver, gopti):
        path = [Focus(node="src"), Focus(node="lib"), Expand(node="src/core")]
        assert resolver.fix_path(path, gopti) == [
            Focus(node="src"),
            Expand(node="src/core"),
            Focus(node="lib"),
        ]

    @pytest.mark.parametrize("path", [
        [Expand(node="src"), Focus(node="lib"), Expand(node="src")],
        [Focus(node="lib"), Expand(node="src"), Expand(node="tests")],
        [Focus(node="src"), Focus(node="lib"), Expand(node="src/core"), Expand(node="lib")],
        [Focus(node="lib"), Focus(node="src"), Expand(node="src/core"), Focus(node="tests")],
        [],
    ])
    def test_fixing_is_idempotent(self, resolver, gopti, path):
        once = resolver.fix_path(path, gopti)
        assert resolver.fix_path(once, gopti) == once

    def test_unknown_nodes_dropped(self, resolver, gopti, caplog):
        path = [Expand(node="ghost"), Focus(node="phantom"), Focus(node="src")]
        with caplog.at_level(logging.WARNING):
            fixed = resolver.fix_path(path, gopti)
        assert fixed == [Focus(node="src")]
        assert "ghost" in caplog.text

    def test_focus_on_synthetic_dropped(self, wide_graph):
        gopti = OptimizedGraph.from_reference(wide_graph)
        gopti.insert_synthetic_group("pkg", "a")
        resolver = PathResolver(MatrixBuilder(wide_graph))
        path = [Focus(node="pkg/a..."), Expand(node="pkg/a...")]
        assert resolver.fix_path(path, gopti) == [Expand(node="pkg/a...")]

    def test_expand_on_group_created_later_is_kept(self, wide_graph):
        gopti = OptimizedGraph.from_reference(wide_graph)
        resolver = PathResolver(MatrixBuilder(wide_graph, branching_threshold=3))
        path = [Expand(node="pkg"), Expand(node="pkg/a...")]
        assert resolver.fix_path(path, gopti) == path

    def test_group_created_later_placed_by_parent(self, wide_graph):
        gopti = OptimizedGraph.from_reference(wide_graph)
        resolver = PathResolver(MatrixBuilder(wide_graph, branching_threshold=3))
        path = [Expand(node="pkg"), Focus(node="pkg/beta.py"), Expand(node="pkg/sub/...")]
        fixed = resolver.fix_path(path, gopti)
        assert fixed == [Expand(node="pkg"), Expand(node="pkg/sub/..."), Focus(node="pkg/beta.py")]
        assert resolver.fix_path(fixed, gopti) == fixed


class TestConfigOfPath:
    def test_empty_path_is_basic_config(self, resolver, gopti):
        config, _ = resolver.config_of_path([], gopti)
        assert config.visible == ("lib", "src", "tests")
        assert config.focus is None

    def test_stale_expand_has_no_dangling_expansion(self, resolver, gopti):
        path = [Expand(node="src"), Focus(node="lib"), Expand(node="src")]
        config, gopti = resolver.config_of_path(path, gopti)

        assert config.focus.node == "lib"
        assert config.visible == ("lib", "src/core", "src/util.py")
        assert config.expanded == frozenset({".", "src"})
        resolver.builder.check_configuration(config, gopti)

    def test_expand_inside_focus(self, resolver, gopti):
        path = [Expand(node="src"), Focus(node="src"), Expand(node="src/core")]
        config, gopti = resolver.config_of_path(path, gopti)
        dm, _ = resolver.builder.build(config, None, gopti)

        assert dm.nodes == [
            "lib", "src/cli", "src/core/graph.py", "src/core/types.py", "src/util.py", "tests",
        ]
        assert dm.weight("src/core/graph.py", "src/core/types.py") == 2

    def test_focus_direction(self, resolver, gopti):
        path = [Expand(node="src"), Focus(node="src/core", kind=FocusKind.IN)]
        config, _ = resolver.config_of_path(path, gopti)
        assert config.visible == ("src/cli", "src/core", "tests")

    def test_hidden_target_skipped(self, resolver, gopti, caplog):
        """Expanding a node inside a collapsed parent is logged, not fatal."""
        with caplog.at_level(logging.WARNING):
            config, _ = resolver.config_of_path([Expand(node="src/core")], gopti)
        assert config.visible == ("lib", "src", "tests")
        assert "src/core" in caplog.text

    def test_unknown_action_skipped(self, resolver, gopti):
        path = [Expand(node="ghost"), Expand(node="src")]
        config, _ = resolver.config_of_path(path, gopti)
        assert "src" in config.expanded

    def test_repeated_expands_are_canonical(self, resolver, gopti):
        single, _ = resolver.config_of_path([Expand(node="src")], gopti)
        repeated, _ = resolver.config_of_path([Expand(node="src")] * 3, gopti)
        assert single == repeated

    def test_end_to_end_scenario(self, scenario_graph):
        resolver = PathResolver(MatrixBuilder(scenario_graph))
        gopti = OptimizedGraph.from_reference(scenario_graph)
        path = [Focus(node="root", kind=FocusKind.BOTH), Expand(node="a")]

        config, gopti = resolver.config_of_path(path, gopti)
        dm, _ = resolver.builder.build(config, None, gopti)

        assert dm.nodes == ["a/x", "a/y", "b"]
        assert dm.weight("a/x", "b") == 3
        assert dm.weight("a/y", "b") == 2
        assert dm.index_of("a") is None

    def test_synthetic_groups_threaded_through(self, wide_graph):
        resolver = PathResolver(MatrixBuilder(wide_graph, branching_threshold=3))
        gopti = OptimizedGraph.from_reference(wide_graph)
        config, updated = resolver.config_of_path([Expand(node="pkg")], gopti)

        assert updated.has_node("pkg/sub/...")
        assert not gopti.has_node("pkg/sub/...")
        assert "pkg/sub/..." in config.visible

    def test_group_created_during_fold_can_be_expanded(self, wide_graph):
        resolver = PathResolver(MatrixBuilder(wide_graph, branching_threshold=3))
        gopti = OptimizedGraph.from_reference(wide_graph)
        path = [Expand(node="pkg"), Expand(node="pkg/sub/...")]

        config, updated = resolver.config_of_path(path, gopti)

        assert not gopti.has_node("pkg/sub/...")
        assert "pkg/sub/..." in config.expanded
        assert config.visible == ("pkg/a...", "pkg/beta.py", "pkg/sub/one.py", "pkg/sub/two.py", "pkg/zeta.py")

    def test_group_never_created_is_skipped(self, resolver, gopti, caplog):
        with caplog.at_level(logging.WARNING):
            config, _ = resolver.config_of_path([Expand(node="src/zz...")], gopti)
        assert config.visible == ("lib", "src", "tests")
        assert "src/zz..." in caplog.text
