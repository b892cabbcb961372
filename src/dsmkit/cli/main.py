"""
dsmkit CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import logging

import click

from .commands import matrix


@click.group()
@click.version_option(package_name="dsmkit")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """dsmkit: Dependency Structure Matrix explorer.

    Navigates a code dependency graph by focusing on nodes and
    expanding them into their children.

    \b
    Quick Start:
      dsmkit matrix graph.json
      dsmkit matrix graph.json -a expand:src -a focus:src/core
      dsmkit matrix graph.json -a focus:src:in --json
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register commands
main.add_command(matrix.matrix)

if __name__ == "__main__":
    main()
