"""
Core data types, errors and graph structures for dsmkit.
"""

from .exceptions import (
    ConfigError,
    DSMError,
    GraphLoadError,
    InvalidConfigurationError,
    NodeNotVisibleError,
    UnknownNodeError,
)
from .graph import DependencyGraph, GraphStore, OptimizedGraph

__all__ = [
    "ConfigError",
    "DSMError",
    "DependencyGraph",
    "GraphLoadError",
    "GraphStore",
    "InvalidConfigurationError",
    "NodeNotVisibleError",
    "OptimizedGraph",
    "UnknownNodeError",
]
