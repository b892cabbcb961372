"""
Error taxonomy for dsmkit.

Per-action errors (UnknownNodeError, NodeNotVisibleError) are contained by
the path resolver and the view model: the offending action is skipped and
the previous state stays visible. InvalidConfigurationError signals a bug
in configuration derivation and is always propagated.
"""


class DSMError(Exception):
    """Base class for all dsmkit errors."""


class UnknownNodeError(DSMError):
    """An action or query referenced a node absent from the graph."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Unknown node: {node_id}")


class NodeNotVisibleError(DSMError):
    """
    An action targeted a node that exists but is hidden in the current
    configuration (inside a collapsed node, or pruned by a focus).
    """

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node is not visible in the current configuration: {node_id}")


class InvalidConfigurationError(DSMError):
    """A derived configuration violates the visibility/ancestry invariant."""


class GraphLoadError(DSMError):
    """The supplied graph data is malformed."""


class ConfigError(DSMError):
    """The settings file could not be validated."""
