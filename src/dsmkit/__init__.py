"""
dsmkit - Dependency Structure Matrix engine.

dsmkit turns a code dependency graph into a navigable matrix: rows and
columns are code entities, cells are dependency weights. Users drill into
the graph by focusing on a node or expanding a node into its children.

Key Components:
- core: Data types, errors and the graph store (reference + optimized views)
- analysis: Matrix building and path-to-configuration resolution
- view: Fixed-ratio layout geometry and the view model used for hit testing

Usage:
    from dsmkit.core.graph import DependencyGraph, GraphStore
    from dsmkit.core.types import Expand, Focus
    from dsmkit.view.model import MatrixViewModel

    store = GraphStore(DependencyGraph.from_dict(data))
    vm = MatrixViewModel(store)
    vm.update(Expand(node="src"))
    print(vm.matrix.nodes)
"""

__version__ = "0.3.0"
