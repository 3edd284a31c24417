"""Graph assembly command."""

import dataclasses
import json
from typing import Annotated

import typer
from rich.table import Table
from rich.tree import Tree

from caselink.api_client import CaseLinkClient
from caselink.commands.database import open_db
from caselink.console import console, err_console
from caselink.errors import EntityNotFoundError, FetchError
from caselink.graph import (
    ROOT_TYPES,
    ApiSource,
    DatabaseSource,
    Graph,
    assemble_graph,
    get_preset,
)
from caselink.graph.presets import DEFAULT_PRESET
from caselink.state import configure_logging


def _print_graph(graph: Graph) -> None:
    center = graph.center
    tree = Tree(f"[bold]{center.label}[/] [dim]({center.type})[/]")
    branches = {center.id: tree}
    nodes = {node.id: node for node in graph.nodes}
    for edge in graph.edges:
        parent = branches.get(edge.source)
        child = nodes.get(edge.target)
        if parent is None or child is None or child.id in branches:
            continue
        label = f" [cyan]{edge.label}[/]" if edge.label else ""
        branches[child.id] = parent.add(
            f"{child.label} [dim]({child.type}, level {child.level})[/]{label}"
        )
    console.print(tree)

    table = Table(title="Graph stats")
    table.add_column("Stat")
    table.add_column("Value", justify="right")
    for key, value in graph.stats.items():
        if not isinstance(value, dict):
            table.add_row(key, str(value))
    console.print(table)


def graph(
    root_type: Annotated[str, typer.Argument(help="Root entity type: case or person")],
    root_id: Annotated[str, typer.Argument(help="Case ID/number or person ID/ID number")],
    preset: Annotated[str, typer.Option(help="Traversal preset")] = DEFAULT_PRESET,
    levels: Annotated[int | None, typer.Option(help="Override the level limit")] = None,
    max_nodes: Annotated[int | None, typer.Option(help="Override the node budget")] = None,
    fanout: Annotated[int | None, typer.Option(help="Override the per-relation fan-out")] = None,
    api_url: Annotated[str | None, typer.Option(help="Read through a running API instead of the database")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the graph as JSON")] = False,
) -> None:
    """Assemble the graph around one case or person."""
    configure_logging()
    if root_type not in ROOT_TYPES:
        err_console.print(f"[bold red]Error:[/] Root type must be one of {', '.join(ROOT_TYPES)}.")
        raise typer.Exit(1)
    try:
        config = get_preset(preset)
    except ValueError as e:
        err_console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1)

    changes = {}
    if levels is not None:
        changes["max_levels"] = levels
    if max_nodes is not None:
        changes["max_nodes"] = max_nodes
    if fanout is not None:
        changes["fanout"] = fanout or None
        changes["level_fanout"] = {}
    config = dataclasses.replace(config, **changes)

    try:
        if api_url:
            with CaseLinkClient(api_url) as client:
                result = assemble_graph(ApiSource(client), root_type, root_id, config)
        else:
            db = open_db()
            try:
                result = assemble_graph(DatabaseSource(db), root_type, root_id, config)
            finally:
                db.close()
    except (EntityNotFoundError, FetchError) as e:
        err_console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        _print_graph(result)
