"""
CLI Utilities - Shared helper functions for command line operations.

This module provides formatted printing and graph/constraint loading used
across CLI commands.
"""

import json
from pathlib import Path
from typing import Optional

import click

from ..core.exceptions import GraphLoadError
from ..core.graph import DependencyGraph
from ..core.types import PartitionConstraints

DEFAULT_GRAPH_LOCATIONS = (".dsmkit/graph.json", "graph.json")


def echo_error(message: str) -> None:
    """
    Print an error message with a red cross.

    Args:
        message (str): The error message to display.
    """
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def load_graph(graph_file: str) -> Optional[DependencyGraph]:
    """
    Load a DependencyGraph from a JSON file or a directory holding one.

    Args:
        graph_file (str): Path to a graph JSON file, or a directory containing
            .dsmkit/graph.json or graph.json.

    Returns:
        Optional[DependencyGraph]: The loaded graph, or None if loading failed.
    """
    graph_path = Path(graph_file)

    if graph_path.is_dir():
        candidates = [graph_path / name for name in DEFAULT_GRAPH_LOCATIONS]
        found = next((p for p in candidates if p.exists()), None)
        if found is None:
            echo_error(f"No graph found in directory: {graph_file}")
            click.echo("Expected .dsmkit/graph.json or graph.json.", err=True)
            return None
        graph_path = found

    if not graph_path.exists():
        echo_error(f"Graph file not found: {graph_file}")
        return None

    try:
        data = json.loads(graph_path.read_text())
        return DependencyGraph.from_dict(data)
    except (json.JSONDecodeError, GraphLoadError) as e:
        echo_error(f"Failed to load graph: {e}")
        return None


def load_constraints(constraints_file: Optional[str]) -> Optional[PartitionConstraints]:
    """
    Load partition constraints: a JSON object mapping a parent id to the
    preferred order of its children.
    """
    if not constraints_file:
        return {}

    try:
        data = json.loads(Path(constraints_file).read_text())
    except (OSError, json.JSONDecodeError) as e:
        echo_error(f"Failed to load constraints: {e}")
        return None

    if not isinstance(data, dict) or not all(isinstance(v, list) for v in data.values()):
        echo_error("Constraints must map each parent id to a list of child ids")
        return None
    return {str(k): [str(c) for c in v] for k, v in data.items()}
