"""
Dependency graph storage backed by rustworkx.

Two representations coexist:
- DependencyGraph: the reference graph (hierarchy + weighted dependencies),
  built once at session start and never mutated by the matrix engine.
- OptimizedGraph: a mirror of the reference hierarchy that can gain
  synthetic grouping nodes (e.g. an implicit 'a/b/...' directory) to bound
  the number of children shown when a node with many children is expanded.

Both manage a bimap between string node ids and rustworkx integer indices.
"""

import logging
from collections import defaultdict, deque
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

import rustworkx as rx
from pydantic import ValidationError

from .exceptions import GraphLoadError, UnknownNodeError
from .types import Edge, Node, NodeType, RelationshipType

logger = logging.getLogger(__name__)

DEFAULT_ROOT_ID = "."

SYNTHETIC_SUFFIX = "..."


class DependencyGraph:
    """
    Reference dependency graph.

    Features:
    - Tree-shaped hierarchy (each node has exactly one parent, except root)
    - Weighted USES edges, aggregated per (source, target) pair
    - O(1) node lookup via ID-to-Index bimap
    """

    def __init__(self, root: Optional[Node] = None):
        # Node indices are shared by both graphs: every node is added to both.
        self._tree = rx.PyDiGraph(multigraph=False)
        self._deps = rx.PyDiGraph(multigraph=False)
        self._id_to_idx: Dict[str, int] = {}
        self._idx_to_id: Dict[int, str] = {}

        root = root or Node(id=DEFAULT_ROOT_ID, name=DEFAULT_ROOT_ID, type=NodeType.ROOT)
        self._root_id = root.id
        self._insert(root)

    def _insert(self, node: Node) -> int:
        idx = self._tree.add_node(node)
        dep_idx = self._deps.add_node(node.id)
        if idx != dep_idx:
            raise RuntimeError(f"Index drift between hierarchy and dependency graphs at {node.id}")
        self._id_to_idx[node.id] = idx
        self._idx_to_id[idx] = node.id
        return idx

    def _index(self, node_id: str) -> int:
        idx = self._id_to_idx.get(node_id)
        if idx is None:
            raise UnknownNodeError(node_id)
        return idx

    @property
    def root_id(self) -> str:
        return self._root_id

    def add_node(self, node: Node, parent_id: Optional[str] = None) -> None:
        """
        Add or update a node under `parent_id` (the root when None).

        A node keeps the parent it was first added with.
        """
        if node.type == NodeType.SYNTHETIC:
            raise GraphLoadError(f"Synthetic nodes cannot be part of the reference graph: {node.id}")

        if node.id in self._id_to_idx:
            current_parent = self.parent(node.id)
            if parent_id is not None and parent_id != current_parent:
                raise GraphLoadError(
                    f"Node {node.id} already belongs to {current_parent}, cannot move it to {parent_id}"
                )
            self._tree[self._id_to_idx[node.id]] = node
            return

        parent = parent_id if parent_id is not None else self._root_id
        parent_idx = self._index(parent)
        idx = self._insert(node)
        self._tree.add_edge(
            parent_idx, idx,
            Edge(source_id=parent, target_id=node.id, type=RelationshipType.CONTAINS),
        )

    def add_edge(self, source_id: str, target_id: str, weight: int = 1) -> None:
        """Add a dependency, summing weights of repeated (source, target) pairs."""
        if weight < 0:
            raise ValueError(f"Negative weight for {source_id} -> {target_id}: {weight}")
        if source_id not in self._id_to_idx or target_id not in self._id_to_idx:
            logger.debug(f"Ignoring edge with unknown endpoint: {source_id} -> {target_id}")
            return

        u = self._id_to_idx[source_id]
        v = self._id_to_idx[target_id]
        if self._deps.has_edge(u, v):
            existing: Edge = self._deps.get_edge_data(u, v)
            self._deps.update_edge(u, v, existing.model_copy(update={"weight": existing.weight + weight}))
        else:
            self._deps.add_edge(u, v, Edge(source_id=source_id, target_id=target_id, weight=weight))

    def get_node(self, node_id: str) -> Optional[Node]:
        idx = self._id_to_idx.get(node_id)
        if idx is None:
            return None
        return self._tree[idx]

    def has_node(self, node_id: str) -> bool:
        return node_id in self._id_to_idx

    def children(self, node_id: str) -> List[str]:
        """Direct children of a node, sorted by id."""
        idx = self._index(node_id)
        return sorted(self._idx_to_id[c] for c in self._tree.successor_indices(idx))

    def parent(self, node_id: str) -> Optional[str]:
        idx = self._index(node_id)
        preds = self._tree.predecessor_indices(idx)
        return self._idx_to_id[preds[0]] if preds else None

    def descendants(self, node_id: str) -> Set[str]:
        """All node ids strictly below node_id in the hierarchy."""
        idx = self._index(node_id)
        return {self._idx_to_id[i] for i in rx.descendants(self._tree, idx)}

    def edge_weight(self, source_id: str, target_id: str) -> int:
        """Aggregated dependency weight, 0 when there is no such edge."""
        u = self._id_to_idx.get(source_id)
        v = self._id_to_idx.get(target_id)
        if u is None or v is None or not self._deps.has_edge(u, v):
            return 0
        return self._deps.get_edge_data(u, v).weight

    def iter_nodes(self) -> Iterator[Node]:
        return iter(self._tree.nodes())

    def iter_edges(self) -> Iterator[Edge]:
        return iter(self._deps.edges())

    def iter_weighted_edges(self) -> Iterator[Tuple[str, str, int]]:
        for u, v, edge in self._deps.weighted_edge_list():
            yield self._idx_to_id[u], self._idx_to_id[v], edge.weight

    @property
    def node_count(self) -> int:
        return self._tree.num_nodes()

    @property
    def edge_count(self) -> int:
        return self._deps.num_edges()

    def get_stats(self) -> Dict[str, Any]:
        node_counts: Dict[str, int] = defaultdict(int)
        for node in self.iter_nodes():
            node_counts[node.type.value] += 1

        return {
            "total_nodes": self.node_count,
            "total_edges": self.edge_count,
            "total_weight": sum(e.weight for e in self.iter_edges()),
            "nodes_by_type": dict(node_counts),
            "backend": "rustworkx",
        }

    def to_dict(self) -> Dict[str, Any]:
        nodes = []
        for node in self.iter_nodes():
            if node.id == self._root_id:
                continue
            data = node.model_dump(mode="json")
            data["parent"] = self.parent(node.id)
            nodes.append(data)
        return {
            "root": self._root_id,
            "nodes": nodes,
            "edges": [edge.model_dump(mode="json") for edge in self.iter_edges()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DependencyGraph":
        """
        Build a graph from its dict form.

        Nodes may be listed in any order; each one without a `parent`
        hangs off the root. Unreachable nodes (missing parent or a
        hierarchy cycle) and edges to unknown nodes are rejected.
        """
        root_id = data.get("root", DEFAULT_ROOT_ID)
        root: Optional[Node] = None
        by_parent: Dict[str, List[Node]] = defaultdict(list)

        try:
            for raw in data.get("nodes", []):
                node = Node.model_validate(raw)
                if node.id == root_id:
                    root = node.model_copy(update={"type": NodeType.ROOT})
                    continue
                by_parent[raw.get("parent") or root_id].append(node)
        except ValidationError as e:
            raise GraphLoadError(f"Invalid node entry: {e}") from e

        graph = cls(root=root or Node(id=root_id, name=root_id, type=NodeType.ROOT))

        queue = deque([root_id])
        while queue:
            parent = queue.popleft()
            for node in by_parent.pop(parent, []):
                if graph.has_node(node.id):
                    raise GraphLoadError(f"Duplicate node id: {node.id}")
                graph.add_node(node, parent)
                queue.append(node.id)

        if by_parent:
            orphans = sorted(n.id for nodes in by_parent.values() for n in nodes)
            raise GraphLoadError(f"Nodes unreachable from root {root_id!r}: {', '.join(orphans[:10])}")

        for raw in data.get("edges", []):
            if not isinstance(raw, dict):
                raise GraphLoadError(f"Edge entry must be an object, got: {raw!r}")
            source = raw.get("source_id")
            target = raw.get("target_id")
            if not graph.has_node(source) or not graph.has_node(target):
                raise GraphLoadError(f"Edge references unknown node: {source} -> {target}")
            try:
                graph.add_edge(source, target, int(raw.get("weight", 1)))
            except (TypeError, ValueError) as e:
                raise GraphLoadError(f"Invalid edge weight for {source} -> {target}: {e}") from e

        return graph


class OptimizedGraph:
    """
    Mutable mirror of the reference hierarchy.

    Real nodes keep their reference ids. Synthetic grouping nodes are
    inserted between a parent and some of its children; they are only
    ever created by insert_synthetic_group and are never focus targets.
    """

    def __init__(self, root: Node):
        self._tree = rx.PyDiGraph(multigraph=False)
        self._id_to_idx: Dict[str, int] = {}
        self._idx_to_id: Dict[int, str] = {}
        self._groups: Dict[Tuple[str, str], str] = {}
        self._root_id = root.id
        self._add(root)

    @classmethod
    def from_reference(cls, reference: DependencyGraph) -> "OptimizedGraph":
        graph = cls.__new__(cls)
        graph._tree = reference._tree.copy()
        graph._id_to_idx = dict(reference._id_to_idx)
        graph._idx_to_id = dict(reference._idx_to_id)
        graph._groups = {}
        graph._root_id = reference.root_id
        return graph

    def copy(self) -> "OptimizedGraph":
        graph = OptimizedGraph.__new__(OptimizedGraph)
        graph._tree = self._tree.copy()
        graph._id_to_idx = dict(self._id_to_idx)
        graph._idx_to_id = dict(self._idx_to_id)
        graph._groups = dict(self._groups)
        graph._root_id = self._root_id
        return graph

    def _add(self, node: Node) -> int:
        idx = self._tree.add_node(node)
        self._id_to_idx[node.id] = idx
        self._idx_to_id[idx] = node.id
        return idx

    def _index(self, node_id: str) -> int:
        idx = self._id_to_idx.get(node_id)
        if idx is None:
            raise UnknownNodeError(node_id)
        return idx

    @property
    def root_id(self) -> str:
        return self._root_id

    @property
    def node_count(self) -> int:
        return self._tree.num_nodes()

    def has_node(self, node_id: str) -> bool:
        return node_id in self._id_to_idx

    def get_node(self, node_id: str) -> Optional[Node]:
        idx = self._id_to_idx.get(node_id)
        if idx is None:
            return None
        return self._tree[idx]

    def is_synthetic(self, node_id: str) -> bool:
        node = self.get_node(node_id)
        return node is not None and node.is_synthetic

    def children(self, node_id: str) -> List[str]:
        """Direct children, sorted by id so every traversal is deterministic."""
        idx = self._index(node_id)
        return sorted(self._idx_to_id[c] for c in self._tree.successor_indices(idx))

    def parent(self, node_id: str) -> Optional[str]:
        idx = self._index(node_id)
        preds = self._tree.predecessor_indices(idx)
        return self._idx_to_id[preds[0]] if preds else None

    def ancestors(self, node_id: str) -> List[str]:
        """Strict ancestors, nearest first."""
        chain = []
        current = self.parent(node_id)
        while current is not None:
            chain.append(current)
            current = self.parent(current)
        return chain

    def descendants(self, node_id: str) -> Set[str]:
        idx = self._index(node_id)
        return {self._idx_to_id[i] for i in rx.descendants(self._tree, idx)}

    def in_subtree(self, node_id: str, subtree_root: str) -> bool:
        """True if node_id is subtree_root or one of its descendants."""
        if not self.has_node(node_id) or not self.has_node(subtree_root):
            return False
        return node_id == subtree_root or subtree_root in self.ancestors(node_id)

    # --- Synthetic grouping ---

    def relative_id(self, parent_id: str, child_id: str) -> str:
        if parent_id == self._root_id:
            return child_id
        prefix = parent_id + "/"
        return child_id[len(prefix):] if child_id.startswith(prefix) else child_id

    @staticmethod
    def group_key(relative: str) -> str:
        """'b/c/x.py' groups under 'b/', a single segment 'foo.py' under 'f'."""
        head, sep, _ = relative.partition("/")
        if sep:
            return head + "/"
        return relative[:1]

    @staticmethod
    def _matches(relative: str, prefix: str) -> bool:
        # Letter prefixes only cover single-segment names; 'f' must not
        # swallow a 'foo/...' child that belongs to the 'foo/' group.
        if prefix.endswith("/"):
            return relative.startswith(prefix)
        return "/" not in relative and relative.startswith(prefix)

    def group_prefixes(self, parent_id: str) -> List[str]:
        """Grouping keys shared by at least two real children of parent_id."""
        counts: Dict[str, int] = defaultdict(int)
        for child in self.children(parent_id):
            if self.is_synthetic(child):
                continue
            counts[self.group_key(self.relative_id(parent_id, child))] += 1
        return sorted(key for key, count in counts.items() if count >= 2)

    def has_group(self, parent_id: str, prefix: str) -> bool:
        return (parent_id, prefix) in self._groups

    def group_id(self, parent_id: str, prefix: str) -> str:
        """`<parent>/<prefix>...`, or `<prefix>...` under the root."""
        base = "" if parent_id == self._root_id else parent_id + "/"
        return f"{base}{prefix}{SYNTHETIC_SUFFIX}"

    def insert_synthetic_group(self, parent_id: str, prefix: str) -> Node:
        """
        Create (or reuse) a synthetic node under parent_id holding the
        parent's real children whose relative id starts with prefix.

        Idempotent: repeated calls return the same node and add nothing.
        """
        existing = self._groups.get((parent_id, prefix))
        if existing is not None:
            return self._tree[self._id_to_idx[existing]]

        parent_idx = self._index(parent_id)
        if self.is_synthetic(parent_id):
            raise ValueError(f"Cannot nest a synthetic group under synthetic node {parent_id}")
        if not prefix:
            raise ValueError("Synthetic group prefix must not be empty")

        group_id = self.group_id(parent_id, prefix)
        if group_id in self._id_to_idx:
            raise ValueError(f"Synthetic group id collides with an existing node: {group_id}")

        members = [
            child for child in self.children(parent_id)
            if not self.is_synthetic(child)
            and self._matches(self.relative_id(parent_id, child), prefix)
        ]

        group = Node(
            id=group_id,
            name=f"{prefix}{SYNTHETIC_SUFFIX}",
            type=NodeType.SYNTHETIC,
            metadata={"parent": parent_id, "prefix": prefix},
        )
        group_idx = self._add(group)
        self._tree.add_edge(
            parent_idx, group_idx,
            Edge(source_id=parent_id, target_id=group_id, type=RelationshipType.CONTAINS),
        )
        for member in members:
            member_idx = self._id_to_idx[member]
            self._tree.remove_edge(parent_idx, member_idx)
            self._tree.add_edge(
                group_idx, member_idx,
                Edge(source_id=group_id, target_id=member, type=RelationshipType.CONTAINS),
            )

        self._groups[(parent_id, prefix)] = group_id
        logger.debug(f"Inserted synthetic group {group_id} ({len(members)} members)")
        return group


class GraphStore:
    """
    Owner of both graph representations for a session.

    The optimized graph is replaced wholesale through commit(); the only
    producer of new optimized graphs is the matrix builder.
    """

    def __init__(self, reference: DependencyGraph):
        self._reference = reference
        self._optimized = OptimizedGraph.from_reference(reference)

    @property
    def reference(self) -> DependencyGraph:
        return self._reference

    @property
    def optimized(self) -> OptimizedGraph:
        return self._optimized

    def commit(self, optimized: OptimizedGraph) -> None:
        self._optimized = optimized

    def children(self, node_id: str) -> List[str]:
        return self._optimized.children(node_id)

    def parent(self, node_id: str) -> Optional[str]:
        return self._optimized.parent(node_id)

    def edge_weight(self, source_id: str, target_id: str) -> int:
        return self._reference.edge_weight(source_id, target_id)

    def is_focusable(self, node_id: str) -> bool:
        """Only real (reference) nodes can be focus anchors."""
        return self._reference.has_node(node_id)

    def insert_synthetic_group(self, parent_id: str, prefix: str) -> Node:
        """Copy-on-write insertion: the committed graph is never edited in place."""
        if self._optimized.has_group(parent_id, prefix):
            return self._optimized.insert_synthetic_group(parent_id, prefix)
        updated = self._optimized.copy()
        group = updated.insert_synthetic_group(parent_id, prefix)
        self.commit(updated)
        return group
