"""NDDB import and link engine commands."""

from typing import Annotated

import typer
from rich.progress import Progress

from caselink.commands.database import open_db
from caselink.console import console, err_console
from caselink.errors import FetchError
from caselink.importer import DEFAULT_DELAY, NddbClient, import_cases, rebuild_links
from caselink.state import NDDB_SITE, NDDB_URL, configure_logging


def import_nddb(
    from_date: Annotated[str, typer.Argument(help="First case date (YYYY-MM-DD)")],
    to_date: Annotated[str, typer.Argument(help="Last case date (YYYY-MM-DD)")],
    nddb_url: Annotated[str, typer.Option(help="NDDB web service URL")] = NDDB_URL,
    site: Annotated[str, typer.Option(help="NDDB site code")] = NDDB_SITE,
    delay: Annotated[float, typer.Option(help="Seconds to wait between cases")] = DEFAULT_DELAY,
    link: Annotated[bool, typer.Option("--link/--no-link", help="Rebuild case links afterwards")] = True,
) -> None:
    """Import cases, samples, persons and DNA matches from NDDB."""
    configure_logging()
    db = open_db()
    try:
        with NddbClient(nddb_url, site) as client, Progress(console=console) as progress:
            task = progress.add_task("Importing cases", total=None)

            def advance(done: int, total: int) -> None:
                progress.update(task, completed=done, total=total)

            stats = import_cases(db, client, from_date, to_date, delay, progress=advance)
        if link:
            links = rebuild_links(db)
    except FetchError as e:
        err_console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1)
    finally:
        db.close()

    console.print(
        f"Processed [bold green]{stats.cases_processed}[/] of {stats.cases_found} cases: "
        f"{stats.samples_imported} samples, {stats.persons_imported} persons, "
        f"{stats.matches_imported} matches"
    )
    if link:
        console.print(f"Case links: {links['dnaLinks']} DNA, {links['idLinks']} ID number")
    if stats.errors:
        err_console.print(f"[yellow]{len(stats.errors)} errors:[/]")
        for error in stats.errors[:10]:
            err_console.print(f"  - {error}")


def rebuild_links_command() -> None:
    """Rebuild case links from DNA matches and shared persons."""
    db = open_db()
    try:
        links = rebuild_links(db)
    finally:
        db.close()
    console.print(f"Case links: [bold green]{links['dnaLinks']}[/] DNA, "
                  f"[bold green]{links['idLinks']}[/] ID number")
