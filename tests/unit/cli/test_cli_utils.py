"""Unit tests for CLI utilities."""

import json

from dsmkit.cli.utils import load_constraints, load_graph


class TestLoadGraph:
    def test_load_graph_from_json(self, tmp_path):
        f = tmp_path / "graph.json"
        f.write_text(json.dumps({"nodes": [], "edges": []}))

        graph = load_graph(str(f))
        assert graph is not None
        assert graph.node_count == 1

    def test_load_graph_from_directory(self, tmp_path):
        f = tmp_path / "graph.json"
        f.write_text(json.dumps({"nodes": [{"id": "a", "name": "a"}], "edges": []}))

        graph = load_graph(str(tmp_path))
        assert graph is not None
        assert graph.has_node("a")

    def test_load_graph_missing(self, tmp_path, capsys):
        graph = load_graph(str(tmp_path / "missing.json"))
        assert graph is None
        captured = capsys.readouterr()
        assert "Graph file not found" in captured.err

    def test_load_graph_empty_directory(self, tmp_path, capsys):
        assert load_graph(str(tmp_path)) is None
        assert "No graph found" in capsys.readouterr().err

    def test_load_graph_invalid_json(self, tmp_path, capsys):
        f = tmp_path / "graph.json"
        f.write_text("{not json")
        assert load_graph(str(f)) is None
        assert "Failed to load graph" in capsys.readouterr().err

    def test_load_graph_malformed_edges(self, tmp_path, capsys):
        f = tmp_path / "graph.json"
        f.write_text(json.dumps({"nodes": [{"id": "a", "name": "a"}], "edges": [1]}))
        assert load_graph(str(f)) is None
        assert "Edge entry must be an object" in capsys.readouterr().err


class TestLoadConstraints:
    def test_no_file(self):
        assert load_constraints(None) == {}

    def test_valid(self, tmp_path):
        f = tmp_path / "order.json"
        f.write_text(json.dumps({"src": ["src/b", "src/a"]}))
        assert load_constraints(str(f)) == {"src": ["src/b", "src/a"]}

    def test_wrong_shape(self, tmp_path, capsys):
        f = tmp_path / "order.json"
        f.write_text(json.dumps({"src": "src/a"}))
        assert load_constraints(str(f)) is None
        assert "Constraints must map" in capsys.readouterr().err
