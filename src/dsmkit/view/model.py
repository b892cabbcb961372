"""
Matrix ViewModel.

Manages:
- The session path (ordered Focus/Expand actions)
- The cached Configuration and Matrix derived from it
- The hit-test regions registered by the renderer for the current matrix

All three are held in one immutable ViewState that is replaced wholesale
on every change, so a reader never observes a half-updated state. The
renderer only consumes state from this ViewModel and feeds regions back.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple, assert_never

from ..config import Settings
from ..core.graph import GraphStore
from ..core.types import (
    Action,
    Cell,
    Column,
    Configuration,
    ConfigPath,
    Expand,
    Focus,
    Matrix,
    PartitionConstraints,
    Region,
    RegionEntry,
    Row,
)
from ..analysis.matrix import MatrixBuilder
from ..analysis.path import PathResolver
from .layout import Layout, geometry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewState:
    """Snapshot of everything derived from the path."""
    path: Tuple[Action, ...]
    config: Configuration
    matrix: Matrix
    regions: Tuple[RegionEntry, ...] = field(default_factory=tuple)


class MatrixViewModel:
    """
    ViewModel for the dependency matrix.

    Pattern:
    - Properties expose the current ViewState
    - Commands (update, resize, set_regions) as methods
    - No drawing code: the renderer reads layout() and calls set_regions()

    Callers must serialize update() calls (single dispatch queue).
    """

    def __init__(
        self,
        store: GraphStore,
        path: Optional[Sequence[Action]] = None,
        constraints: Optional[PartitionConstraints] = None,
        settings: Optional[Settings] = None,
    ):
        self._store = store
        self._constraints = dict(constraints or {})
        self._settings = settings or Settings()
        self._builder = MatrixBuilder(store.reference, self._settings.branching_threshold)
        self._resolver = PathResolver(self._builder)

        self._width = self._settings.viewport_width
        self._height = self._settings.viewport_height

        self._state = self._derive(tuple(path or ()))

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def path(self) -> ConfigPath:
        return list(self._state.path)

    @property
    def config(self) -> Configuration:
        return self._state.config

    @property
    def matrix(self) -> Matrix:
        return self._state.matrix

    @property
    def regions(self) -> List[RegionEntry]:
        return list(self._state.regions)

    @property
    def viewport(self) -> Tuple[int, int]:
        return self._width, self._height

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def update(self, action: Action) -> None:
        """
        Append an action and rebuild configuration and matrix.

        An action on an unknown node is logged and ignored; the previous
        state stays in place. An action that leaves configuration and matrix
        unchanged is recorded in the path, but the cached matrix and its
        regions are kept.
        """
        if not self._is_valid_target(action):
            logger.warning(f"Ignoring {action}: unknown node {action.node}")
            return

        previous = self._state
        derived = self._derive(previous.path + (action,))
        if derived.config == previous.config and derived.matrix == previous.matrix:
            derived = ViewState(
                path=derived.path,
                config=previous.config,
                matrix=previous.matrix,
                regions=previous.regions,
            )
        self._state = derived

    def _is_valid_target(self, action: Action) -> bool:
        if isinstance(action, Focus):
            return self._store.is_focusable(action.node)
        if isinstance(action, Expand):
            return self._store.optimized.has_node(action.node)
        assert_never(action)

    def _derive(self, path: Tuple[Action, ...]) -> ViewState:
        config, gopti = self._resolver.config_of_path(path, self._store.optimized)
        matrix, gopti = self._builder.build(config, self._constraints, gopti)
        self._store.commit(gopti)
        logger.debug(f"Matrix rebuilt: {matrix.size} nodes for {len(path)} actions")
        return ViewState(path=path, config=config, matrix=matrix)

    def resize(self, width: int, height: int) -> Layout:
        """Change the viewport; the cached matrix and regions are kept."""
        self._width = width
        self._height = height
        return self.layout()

    def layout(self) -> Layout:
        return geometry(self._state.matrix.size, self._width, self._height)

    def set_regions(self, entries: Iterable[RegionEntry]) -> None:
        """Install the regions produced by the latest render pass."""
        state = self._state
        self._state = ViewState(
            path=state.path,
            config=state.config,
            matrix=state.matrix,
            regions=tuple(entries),
        )

    def refresh_regions(self) -> None:
        """Register the default grid regions for the current layout."""
        self.set_regions(self.layout().regions())

    # -------------------------------------------------------------------------
    # Hit testing
    # -------------------------------------------------------------------------

    def resolve_point(self, x: float, y: float) -> Optional[Region]:
        """First registered region containing the user-space point."""
        for region, rect in self._state.regions:
            if rect.contains(x, y):
                return region
        return None

    def resolve_device_point(self, px: float, py: float) -> Optional[Region]:
        x, y = self.layout().device_to_user(px, py)
        return self.resolve_point(x, y)

    def nodes_at(self, region: Region) -> Tuple[str, ...]:
        """Node ids a region refers to: (row, column) for a cell."""
        nodes = self._state.matrix.nodes
        if isinstance(region, Cell):
            return nodes[region.i], nodes[region.j]
        if isinstance(region, Row):
            return (nodes[region.i],)
        if isinstance(region, Column):
            return (nodes[region.j],)
        assert_never(region)
