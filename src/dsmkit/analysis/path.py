"""
Path-to-configuration resolution.

A path is the session's ordered list of Focus/Expand actions. Before it is
folded into a Configuration it is repaired so that every Expand applies
against a focus state in which the expanded node is reachable:

    [Expand(n), Focus(a), Expand(n)]   with n outside a's subtree
 -> [Expand(n), Expand(n), Focus(a)]

A stale Expand is relocated, never dropped, so the history stays
replayable. An Expand on a synthetic group that an earlier Expand will only
create during the fold is kept too, placed by the closest known ancestor of
its id. Repairing a repaired path is a no-op.
"""

import logging
from typing import List, Sequence, Tuple, assert_never

from ..core.exceptions import NodeNotVisibleError, UnknownNodeError
from ..core.graph import SYNTHETIC_SUFFIX, OptimizedGraph
from ..core.profiling import profile_code
from ..core.types import Action, Configuration, Expand, Focus
from .matrix import MatrixBuilder

logger = logging.getLogger(__name__)


class PathResolver:
    """
    Repairs a raw path and folds it into a canonical Configuration.
    """

    def __init__(self, builder: MatrixBuilder):
        self.builder = builder

    def fix_path(self, path: Sequence[Action], gopti: OptimizedGraph) -> List[Action]:
        """
        Reposition every Expand relative to the Focus entries before it.

        Entries naming nodes absent from the graph (or focusing a synthetic
        node) are dropped with a warning, except an Expand on a synthetic id
        not created yet: the fold resolves or skips it.
        """
        fixed: List[Action] = []
        for action in path:
            try:
                self._check_known(action, gopti)
            except UnknownNodeError as e:
                if not self._is_pending_group(action, gopti):
                    logger.warning(f"Skipping {action}: {e}")
                    continue

            if isinstance(action, Focus):
                fixed.append(action)
            elif isinstance(action, Expand):
                fixed.insert(self._insertion_point(action.node, fixed, gopti), action)
            else:
                assert_never(action)
        return fixed

    @staticmethod
    def _insertion_point(node_id: str, fixed: Sequence[Action], gopti: OptimizedGraph) -> int:
        """
        Index just before the first Focus whose subtree does not contain
        node_id; the end of the path when every Focus contains it.
        """
        anchor = PathResolver._known_ancestor(node_id, gopti)
        for pos, entry in enumerate(fixed):
            if isinstance(entry, Expand):
                continue
            if isinstance(entry, Focus):
                if not gopti.in_subtree(anchor, entry.node):
                    return pos
            else:
                assert_never(entry)
        return len(fixed)

    @staticmethod
    def _known_ancestor(node_id: str, gopti: OptimizedGraph) -> str:
        """node_id when known, else the longest id prefix present in the graph."""
        current = node_id
        while not gopti.has_node(current):
            if "/" not in current:
                return gopti.root_id
            current = current.rsplit("/", 1)[0]
        return current

    @staticmethod
    def _is_pending_group(action: Action, gopti: OptimizedGraph) -> bool:
        return (
            isinstance(action, Expand)
            and action.node.endswith(SYNTHETIC_SUFFIX)
            and not gopti.has_node(action.node)
        )

    @staticmethod
    def _check_known(action: Action, gopti: OptimizedGraph) -> None:
        if not gopti.has_node(action.node):
            raise UnknownNodeError(action.node)
        if isinstance(action, Focus) and gopti.is_synthetic(action.node):
            raise UnknownNodeError(action.node)

    def config_of_path(
        self,
        path: Sequence[Action],
        gopti: OptimizedGraph,
    ) -> Tuple[Configuration, OptimizedGraph]:
        """
        Fold a repaired path into a Configuration, starting from the basic
        configuration. Returns the optimized graph as updated by expansions.
        """
        with profile_code("PathResolver.config_of_path", logger):
            fixed = self.fix_path(path, gopti)
            config, gopti = self.builder.basic_config(gopti)
            for action in fixed:
                try:
                    config, gopti = self._apply(action, config, gopti)
                except (UnknownNodeError, NodeNotVisibleError) as e:
                    logger.warning(f"Skipping {action}: {e}")
            return config, gopti

    def _apply(
        self,
        action: Action,
        config: Configuration,
        gopti: OptimizedGraph,
    ) -> Tuple[Configuration, OptimizedGraph]:
        if isinstance(action, Expand):
            return self.builder.expand_node(action.node, config, gopti)
        if isinstance(action, Focus):
            # focus needs the weights of the configuration built so far
            dm, gopti = self.builder.build(config, None, gopti)
            return self.builder.focus_on_node(action.node, action.kind, config, dm, gopti), gopti
        assert_never(action)

