"""Database setup and summary commands."""

import typer
from rich.table import Table

import caselink.state as _state
from caselink import queries
from caselink.console import console, err_console
from caselink.db import LinkDatabase
from caselink.state import AppState


def open_db() -> LinkDatabase:
    """Open the configured database or exit with an error."""
    try:
        return AppState(db_path=_state.DB_PATH).open_db()
    except FileNotFoundError as e:
        err_console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1)


def init() -> None:
    """Create the database and its schema (safe to re-run)."""
    state = AppState(db_path=_state.DB_PATH)
    existed = state.database_exists()
    path = state.create_database()
    if existed:
        console.print(f"Database schema up to date at [bold]{path}[/]")
    else:
        console.print(f"Created database at [bold green]{path}[/]")


def stats() -> None:
    """Print record counts and the most linked cases."""
    db = open_db()
    try:
        summary = queries.overview(db)
        top = queries.top_linked_cases(db, 5)
    finally:
        db.close()

    table = Table(title="caselink database")
    table.add_column("Metric")
    table.add_column("Count", justify="right")
    for key, value in summary.items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))
    console.print(table)

    if top:
        linked = Table(title="Most linked cases")
        linked.add_column("Case number")
        linked.add_column("Type")
        linked.add_column("Province")
        linked.add_column("Links", justify="right")
        for row in top:
            linked.add_row(row["case_number"], row["case_type"] or "",
                           row["province"] or "", str(row["link_count"]))
        console.print(linked)
