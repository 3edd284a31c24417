"""API server launch, registered as a CLI command."""

from typing import Annotated

import typer

import caselink.state as _state
from caselink.console import console, err_console
from caselink.dashboard import create_app
from caselink.state import AppState, configure_logging


def serve(
    host: Annotated[str, typer.Option(help="Interface to bind")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port number")] = 8080,
    debug: Annotated[bool, typer.Option("--debug", help="Enable the Flask debugger")] = False,
) -> None:
    """Serve the REST API with the Flask development server.

    For production, run ``gunicorn caselink.dashboard.wsgi:app`` instead.
    """
    configure_logging()
    state = AppState(db_path=_state.DB_PATH)
    if not state.database_exists():
        err_console.print(f"[bold red]Error:[/] Database '{state.db_path}' not found. "
                          "Run 'caselink init' first.")
        raise typer.Exit(1)

    app = create_app(state.db_path)
    console.print(f"Serving caselink API on [bold]http://{host}:{port}"
                  f"{app.config['API_PREFIX']}[/bold]")
    app.run(host=host, port=port, debug=debug)
