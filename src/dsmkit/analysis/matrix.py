"""
Dependency matrix construction.

MatrixBuilder is the only producer of optimized graphs: when an expansion
needs synthetic grouping nodes it inserts them into a copy of the graph it
was given and returns that copy, so callers thread the graph explicitly
instead of sharing a mutable one.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from ..config import DEFAULT_BRANCHING_THRESHOLD
from ..core.exceptions import InvalidConfigurationError, NodeNotVisibleError, UnknownNodeError
from ..core.graph import DependencyGraph, OptimizedGraph
from ..core.profiling import profile_code
from ..core.types import Configuration, FocusAnchor, FocusKind, Matrix, PartitionConstraints

logger = logging.getLogger(__name__)


class MatrixBuilder:
    """
    Builds configurations and matrices over an optimized graph.

    The reference graph supplies the dependency weights; the optimized
    graph supplies the hierarchy (including synthetic groups).
    """

    def __init__(
        self,
        reference: DependencyGraph,
        branching_threshold: int = DEFAULT_BRANCHING_THRESHOLD,
    ):
        self.reference = reference
        self.branching_threshold = branching_threshold

    # --- Configuration transitions ---

    def basic_config(self, gopti: OptimizedGraph) -> Tuple[Configuration, OptimizedGraph]:
        """No focus, only the root's immediate children visible."""
        root_only = Configuration(visible=(gopti.root_id,))
        return self.expand_node(gopti.root_id, root_only, gopti)

    def expand_node(
        self,
        node_id: str,
        config: Configuration,
        gopti: OptimizedGraph,
    ) -> Tuple[Configuration, OptimizedGraph]:
        """
        Replace a visible node by its children.

        Expanding an already expanded node or a leaf is a no-op.
        """
        if not gopti.has_node(node_id):
            raise UnknownNodeError(node_id)
        if config.is_expanded(node_id):
            return config, gopti
        if not config.is_visible(node_id):
            raise NodeNotVisibleError(node_id)

        children = gopti.children(node_id)
        if not children:
            return config, gopti

        if len(children) > self.branching_threshold and not gopti.is_synthetic(node_id):
            gopti = self._group_children(node_id, gopti)
            children = gopti.children(node_id)

        pos = config.visible.index(node_id)
        visible = config.visible[:pos] + tuple(children) + config.visible[pos + 1:]
        updated = config.model_copy(update={
            "visible": visible,
            "expanded": config.expanded | {node_id},
        })
        return updated, gopti

    def _group_children(self, node_id: str, gopti: OptimizedGraph) -> OptimizedGraph:
        prefixes = []
        for prefix in gopti.group_prefixes(node_id):
            if gopti.has_group(node_id, prefix):
                continue
            group_id = gopti.group_id(node_id, prefix)
            if gopti.has_node(group_id):
                logger.warning(f"Not grouping {node_id} by {prefix!r}: {group_id} is a real node")
                continue
            prefixes.append(prefix)
        if not prefixes:
            return gopti

        updated = gopti.copy()
        for prefix in prefixes:
            updated.insert_synthetic_group(node_id, prefix)
        logger.debug(f"Grouped children of {node_id} into {len(prefixes)} synthetic nodes")
        return updated

    def focus_on_node(
        self,
        node_id: str,
        kind: FocusKind,
        config: Configuration,
        dm: Matrix,
        gopti: OptimizedGraph,
    ) -> Configuration:
        """
        Narrow a configuration to the dependency neighborhood of node_id.

        The anchor set is every visible node inside node_id's subtree. Other
        visible nodes survive if they use the anchor set (IN), are used by it
        (OUT), or either (BOTH). Expanded nodes left without any visible
        descendant are dropped.
        """
        if not gopti.has_node(node_id) or gopti.is_synthetic(node_id):
            raise UnknownNodeError(node_id)

        anchors = [
            i for i, visible_id in enumerate(dm.nodes)
            if gopti.in_subtree(visible_id, node_id)
        ]
        if not anchors:
            raise NodeNotVisibleError(node_id)

        anchor_set = set(anchors)
        keep: Set[str] = {dm.nodes[i] for i in anchors}
        for j in range(dm.size):
            if j in anchor_set:
                continue
            uses_anchor = any(dm.cells[j][i] > 0 for i in anchors)
            used_by_anchor = any(dm.cells[i][j] > 0 for i in anchors)
            if kind == FocusKind.IN:
                related = uses_anchor
            elif kind == FocusKind.OUT:
                related = used_by_anchor
            else:
                related = uses_anchor or used_by_anchor
            if related:
                keep.add(dm.nodes[j])

        visible = tuple(v for v in config.visible if v in keep)
        still_needed: Set[str] = set()
        for v in visible:
            still_needed.update(gopti.ancestors(v))

        return Configuration(
            visible=visible,
            expanded=frozenset(e for e in config.expanded if e in still_needed),
            focus=FocusAnchor(node=node_id, kind=kind),
        )

    # --- Matrix ---

    def build(
        self,
        config: Configuration,
        constraints: Optional[PartitionConstraints],
        gopti: OptimizedGraph,
    ) -> Tuple[Matrix, OptimizedGraph]:
        """
        Compute the matrix for a configuration.

        Cell (i, j) sums the reference edge weights from every node in the
        subtree of row i to every node in the subtree of column j, in a
        single pass over the edges.
        """
        with profile_code("MatrixBuilder.build", logger):
            self.check_configuration(config, gopti)
            if config.is_empty:
                return Matrix(constraints=dict(constraints or {})), gopti

            order = self._ordered_visible(config, constraints or {}, gopti)
            index = {node_id: i for i, node_id in enumerate(order)}
            owner_of: Dict[str, Optional[int]] = {}

            size = len(order)
            cells = [[0] * size for _ in range(size)]
            for source, target, weight in self.reference.iter_weighted_edges():
                i = self._owner(source, index, owner_of, gopti)
                if i is None:
                    continue
                j = self._owner(target, index, owner_of, gopti)
                if j is None:
                    continue
                cells[i][j] += weight

            return Matrix(nodes=order, cells=cells, constraints=dict(constraints or {})), gopti

    @staticmethod
    def _owner(
        node_id: str,
        index: Dict[str, int],
        owner_of: Dict[str, Optional[int]],
        gopti: OptimizedGraph,
    ) -> Optional[int]:
        """Row of the nearest visible ancestor-or-self, memoized along the chain."""
        chain: List[str] = []
        current: Optional[str] = node_id
        result: Optional[int] = None
        while current is not None:
            if current in owner_of:
                result = owner_of[current]
                break
            if current in index:
                result = index[current]
                break
            chain.append(current)
            current = gopti.parent(current)
        for seen in chain:
            owner_of[seen] = result
        return result

    @staticmethod
    def _ordered_visible(
        config: Configuration,
        constraints: PartitionConstraints,
        gopti: OptimizedGraph,
    ) -> List[str]:
        """Depth-first pre-order over the hierarchy, restricted to visible nodes."""
        visible = set(config.visible)
        order: List[str] = []
        stack = [gopti.root_id]
        while stack:
            node_id = stack.pop()
            if node_id in visible:
                order.append(node_id)
                continue
            if node_id not in config.expanded:
                continue
            children = MatrixBuilder._sort_children(node_id, gopti.children(node_id), constraints)
            stack.extend(reversed(children))
        return order

    @staticmethod
    def _sort_children(
        parent_id: str,
        children: List[str],
        constraints: PartitionConstraints,
    ) -> List[str]:
        preferred = constraints.get(parent_id)
        if not preferred:
            return children
        rank = {child: pos for pos, child in enumerate(preferred)}
        # sorted() is stable: unlisted children keep their id order, after listed ones
        return sorted(children, key=lambda c: rank.get(c, len(rank)))

    @staticmethod
    def check_configuration(config: Configuration, gopti: OptimizedGraph) -> None:
        """Raise InvalidConfigurationError if the ancestry invariant is broken."""
        visible = set(config.visible)
        if len(visible) != len(config.visible):
            raise InvalidConfigurationError("Duplicate entries in visible nodes")

        needed: Set[str] = set()
        for node_id in config.visible:
            if not gopti.has_node(node_id):
                raise InvalidConfigurationError(f"Visible node not in graph: {node_id}")
            for ancestor in gopti.ancestors(node_id):
                if ancestor in visible:
                    raise InvalidConfigurationError(
                        f"Visible node {node_id} is nested in visible node {ancestor}"
                    )
                if ancestor not in config.expanded:
                    raise InvalidConfigurationError(
                        f"Visible node {node_id} has collapsed ancestor {ancestor}"
                    )
                needed.add(ancestor)

        stale = config.expanded - needed
        if stale:
            raise InvalidConfigurationError(
                f"Expanded nodes without visible descendants: {', '.join(sorted(stale))}"
            )
