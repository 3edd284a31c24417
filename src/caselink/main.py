"""Root CLI application."""

import typer

from caselink.commands import database, graph, imports
from caselink.dashboard.server import serve

app = typer.Typer(
    name="caselink",
    help="Forensic case linkage: cases, DNA matches and link graphs.",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

app.command(name="init", rich_help_panel="Database")(database.init)
app.command(name="stats", rich_help_panel="Database")(database.stats)
app.command(name="serve", rich_help_panel="API")(serve)
app.command(name="graph", rich_help_panel="Analysis")(graph.graph)
app.command(name="import-nddb", rich_help_panel="Data Import")(imports.import_nddb)
app.command(name="rebuild-links", rich_help_panel="Data Import")(imports.rebuild_links_command)
