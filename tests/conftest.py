"""Shared fixtures: small, hand-checkable dependency graphs."""

import pytest

from dsmkit.core.graph import DependencyGraph, GraphStore
from dsmkit.core.types import Node, NodeType


def _dir(node_id: str) -> Node:
    return Node(id=node_id, name=node_id.rsplit("/", 1)[-1], type=NodeType.DIRECTORY)


def _file(node_id: str) -> Node:
    return Node(id=node_id, name=node_id.rsplit("/", 1)[-1], type=NodeType.FILE)


@pytest.fixture
def scenario_graph() -> DependencyGraph:
    """
    root
    ├── a
    │   ├── a/x  --3--> b
    │   └── a/y  --2--> b
    └── b
    """
    g = DependencyGraph(root=Node(id="root", name="root", type=NodeType.ROOT))
    g.add_node(_dir("a"))
    g.add_node(_file("b"))
    g.add_node(_file("a/x"), "a")
    g.add_node(_file("a/y"), "a")
    g.add_edge("a/x", "b", 3)
    g.add_edge("a/y", "b", 2)
    return g


@pytest.fixture
def project_graph() -> DependencyGraph:
    """
    .
    ├── lib/log.py
    ├── src
    │   ├── cli/main.py
    │   ├── core/graph.py, core/types.py
    │   └── util.py
    └── tests/test_graph.py
    """
    g = DependencyGraph()
    for d in ("lib", "src", "tests"):
        g.add_node(_dir(d))
    g.add_node(_dir("src/cli"), "src")
    g.add_node(_dir("src/core"), "src")
    g.add_node(_file("src/util.py"), "src")
    g.add_node(_file("src/cli/main.py"), "src/cli")
    g.add_node(_file("src/core/graph.py"), "src/core")
    g.add_node(_file("src/core/types.py"), "src/core")
    g.add_node(_file("lib/log.py"), "lib")
    g.add_node(_file("tests/test_graph.py"), "tests")

    g.add_edge("src/cli/main.py", "src/core/graph.py", 4)
    g.add_edge("src/core/graph.py", "src/core/types.py", 2)
    g.add_edge("src/core/graph.py", "lib/log.py", 1)
    g.add_edge("tests/test_graph.py", "src/core/graph.py", 5)
    g.add_edge("src/util.py", "lib/log.py", 1)
    g.add_edge("src/core/types.py", "src/util.py", 1)
    return g


@pytest.fixture
def wide_graph() -> DependencyGraph:
    """
    A 'pkg' directory whose children come partly flattened ('pkg/sub/one.py'
    sits directly under 'pkg'), so grouping has both segment and letter keys.
    """
    g = DependencyGraph()
    g.add_node(_dir("pkg"))
    for name in ("alpha.py", "apple.py", "beta.py", "sub/one.py", "sub/two.py", "zeta.py"):
        g.add_node(_file(f"pkg/{name}"), "pkg")

    g.add_edge("pkg/sub/one.py", "pkg/alpha.py", 2)
    g.add_edge("pkg/beta.py", "pkg/apple.py", 1)
    g.add_edge("pkg/zeta.py", "pkg/sub/two.py", 4)
    return g


@pytest.fixture
def project_store(project_graph) -> GraphStore:
    return GraphStore(project_graph)
