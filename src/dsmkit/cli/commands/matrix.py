"""
Matrix Command - Print the dependency structure matrix.

Replays a sequence of focus/expand actions against a graph and prints the
resulting matrix as a table, or as JSON for tooling.
"""

import json
import sys
from pathlib import Path
from typing import List, Optional

import click
from pydantic import BaseModel, Field
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...config import load_settings
from ...core.exceptions import ConfigError
from ...core.graph import GraphStore
from ...core.types import Action, parse_action
from ...view.model import MatrixViewModel
from ..utils import echo_error, load_constraints, load_graph

console = Console()


# --- API Models ---
class MatrixResponse(BaseModel):
    path: List[str]
    focus: Optional[str] = None
    nodes: List[str]
    cells: List[List[int]]
    expanded: List[str] = Field(default_factory=list)


@click.command()
@click.argument("graph_file", default=".")
@click.option("-a", "--action", "actions", multiple=True,
              help="expand:<node> or focus:<node>[:in|out|both], applied in order")
@click.option("-c", "--constraints", "constraints_file", default=None,
              help="JSON file mapping a parent id to the preferred order of its children")
@click.option("--config", "config_file", default=None,
              help="Settings file (defaults to .dsmkit/config.yaml)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def matrix(
    graph_file: str,
    actions: tuple,
    constraints_file: Optional[str],
    config_file: Optional[str],
    as_json: bool,
) -> None:
    """
    Show the dependency matrix after applying ACTIONS to GRAPH_FILE.
    """
    graph = load_graph(graph_file)
    if graph is None:
        sys.exit(1)

    constraints = load_constraints(constraints_file)
    if constraints is None:
        sys.exit(1)

    try:
        parsed: List[Action] = [parse_action(a) for a in actions]
    except ValueError as e:
        echo_error(str(e))
        sys.exit(1)

    try:
        settings = load_settings(Path(config_file) if config_file else None)
    except ConfigError as e:
        echo_error(str(e))
        sys.exit(1)

    vm = MatrixViewModel(GraphStore(graph), constraints=constraints, settings=settings)
    for action in parsed:
        vm.update(action)

    dm = vm.matrix
    if as_json:
        response = MatrixResponse(
            path=[str(a) for a in vm.path],
            focus=vm.config.focus.node if vm.config.focus else None,
            nodes=dm.nodes,
            cells=dm.cells,
            expanded=sorted(vm.config.expanded),
        )
        click.echo(json.dumps(response.model_dump(), indent=2))
        return

    if dm.size == 0:
        click.echo("Empty matrix (no visible nodes).")
        return

    table = Table(title=f"Dependency matrix ({dm.size} nodes)", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("node", style="cyan")
    for j in range(dm.size):
        table.add_column(str(j), justify="right")

    for i, node_id in enumerate(dm.nodes):
        row = []
        for j in range(dm.size):
            weight = dm.cells[i][j]
            if i == j:
                row.append(f"[dim]{weight or '-'}[/dim]")
            else:
                row.append(str(weight) if weight else "")
        table.add_row(str(i), escape(node_id), *row)

    console.print(table)
