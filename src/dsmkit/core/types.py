"""
Core type definitions for dsmkit.

Actions and regions are closed sum types (pydantic discriminated unions),
so every consumer can match them exhaustively.
"""

from enum import StrEnum
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class NodeType(StrEnum):
    """Categories of code entities in the hierarchy."""
    ROOT = "root"
    DIRECTORY = "directory"
    FILE = "file"
    NAMESPACE = "namespace"
    ENTITY = "entity"
    SYNTHETIC = "synthetic"


class RelationshipType(StrEnum):
    """Types of relationships between nodes."""
    CONTAINS = "contains"
    USES = "uses"


class FocusKind(StrEnum):
    """Dependency direction of interest around a focus anchor."""
    IN = "in"  # users of the anchor
    OUT = "out"  # what the anchor uses
    BOTH = "both"


class Node(BaseModel):
    """
    A code entity: a file, a directory, a namespace, or a synthetic group
    inserted in the optimized graph.
    """
    id: str
    name: str
    type: NodeType = NodeType.FILE
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="ignore")

    @property
    def is_synthetic(self) -> bool:
        return self.type == NodeType.SYNTHETIC

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if isinstance(other, Node):
            return self.id == other.id
        return False


class Edge(BaseModel):
    """
    Directed, weighted relationship between two Nodes.

    For USES edges the weight is the aggregated use-count.
    """
    source_id: str
    target_id: str
    type: RelationshipType = RelationshipType.USES
    weight: int = Field(default=1, ge=0)

    model_config = ConfigDict(frozen=True)


# --- Actions ---

class Focus(BaseModel):
    """Pin `node` as the anchor, keeping its dependency neighborhood."""
    type: Literal["focus"] = "focus"
    node: str
    kind: FocusKind = FocusKind.BOTH

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"focus:{self.node}:{self.kind.value}"


class Expand(BaseModel):
    """Replace `node` with its children in the matrix."""
    type: Literal["expand"] = "expand"
    node: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"expand:{self.node}"


Action = Annotated[Union[Focus, Expand], Field(discriminator="type")]

# Ordered session history of actions
ConfigPath = List[Action]

# parent id -> preferred order of its children ids
PartitionConstraints = Dict[str, List[str]]


def parse_action(text: str) -> Action:
    """
    Parse the textual form of an action.

    Accepted forms: ``expand:<node>``, ``focus:<node>`` and
    ``focus:<node>:<in|out|both>``. Node ids may themselves contain colons.
    """
    verb, sep, rest = text.partition(":")
    if not sep or not rest:
        raise ValueError(f"Malformed action: {text!r}")

    verb = verb.strip().lower()
    if verb == "expand":
        return Expand(node=rest)
    if verb == "focus":
        node, _, kind = rest.rpartition(":")
        if node and kind in {k.value for k in FocusKind}:
            return Focus(node=node, kind=FocusKind(kind))
        return Focus(node=rest)
    raise ValueError(f"Unknown action verb {verb!r} in {text!r}")


# --- Configuration ---

class FocusAnchor(BaseModel):
    """The active focus: anchor node and direction."""
    node: str
    kind: FocusKind

    model_config = ConfigDict(frozen=True)


class Configuration(BaseModel):
    """
    Canonical navigation state derived from a path.

    `visible` lists the matrix rows in display order; `expanded` holds the
    nodes replaced by their children. Every strict ancestor of a visible
    node is expanded, and no expanded node is visible.
    """
    visible: Tuple[str, ...] = ()
    expanded: FrozenSet[str] = frozenset()
    focus: Optional[FocusAnchor] = None

    model_config = ConfigDict(frozen=True)

    def is_visible(self, node_id: str) -> bool:
        return node_id in self.visible

    def is_expanded(self, node_id: str) -> bool:
        return node_id in self.expanded

    @property
    def is_empty(self) -> bool:
        return not self.visible


# --- Matrix ---

class Matrix(BaseModel):
    """
    NxN dependency matrix over the visible nodes.

    cells[i][j] is the total weight of dependencies from the subtree of
    nodes[i] to the subtree of nodes[j].
    """
    nodes: List[str] = Field(default_factory=list)
    cells: List[List[int]] = Field(default_factory=list)
    constraints: PartitionConstraints = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    _index: Dict[str, int] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context) -> None:
        self._index = {node_id: i for i, node_id in enumerate(self.nodes)}

    @classmethod
    def empty(cls) -> "Matrix":
        return cls()

    @property
    def size(self) -> int:
        return len(self.nodes)

    def index_of(self, node_id: str) -> Optional[int]:
        return self._index.get(node_id)

    def weight(self, row_id: str, col_id: str) -> int:
        """Weight from row_id to col_id, 0 if either is not a row."""
        i = self._index.get(row_id)
        j = self._index.get(col_id)
        if i is None or j is None:
            return 0
        return self.cells[i][j]

    def total_weight(self) -> int:
        return sum(sum(row) for row in self.cells)


# --- Regions ---

class Rectangle(BaseModel):
    """Axis-aligned rectangle in normalized (user) coordinates."""
    x0: float
    y0: float
    x1: float
    y1: float

    model_config = ConfigDict(frozen=True)

    def contains(self, x: float, y: float) -> bool:
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0


class Cell(BaseModel):
    kind: Literal["cell"] = "cell"
    i: int
    j: int

    model_config = ConfigDict(frozen=True)


class Row(BaseModel):
    kind: Literal["row"] = "row"
    i: int

    model_config = ConfigDict(frozen=True)


class Column(BaseModel):
    kind: Literal["column"] = "column"
    j: int

    model_config = ConfigDict(frozen=True)


Region = Annotated[Union[Cell, Row, Column], Field(discriminator="kind")]

RegionEntry = Tuple[Region, Rectangle]
