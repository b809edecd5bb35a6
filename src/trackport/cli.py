"""
Trackport CLI - command-line interface for Trackport.

Minimal CLI for importing exported conversations, inspecting watermarks and
running the API server.
"""

import json
from pathlib import Path

import typer
from rich.console import Console

from trackport.config import settings
from trackport.logging_config import setup_logging

app = typer.Typer(
    name="trackport",
    help="Trackport - conversation tracker import and NLU activity back-fill",
    no_args_is_help=True,
)

console = Console()


def _init_logging() -> None:
    # Fall back to console logging if file logging is not permitted
    try:
        setup_logging(context="cli")
    except PermissionError:
        import logging

        logging.basicConfig(level=logging.INFO)


def load_batch(path: Path, process_nlu: bool) -> tuple[list, bool]:
    """
    Read an import batch from a JSON file.

    The file holds either a list of conversations or an import request body
    ``{"conversations": [...], "processNlu": bool}``; in the latter case the
    file's ``processNlu`` wins over the command-line flag.
    """
    from trackport.api.routes.conversations import parse_import_body

    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, list):
        return data, process_nlu
    return parse_import_body(data)


@app.command("import")
def import_conversations(
    path: str = typer.Argument(..., help="Path to a JSON export of conversations"),
    env: str = typer.Option(..., "--env", help="production, staging or development"),
    process_nlu: bool = typer.Option(
        False, "--process-nlu", help="Back-fill NLU activity from parse data"
    ),
) -> None:
    """
    Import exported conversations into an environment.
    """
    from trackport.api.routes.conversations import validate_environment
    from trackport.db.connection import db_session
    from trackport.exceptions import ImportRequestError
    from trackport.pipeline import ImportCoordinator, ImportStatus

    _init_logging()

    batch_path = Path(path)
    if not batch_path.is_file():
        console.print(f"[bold red]Error:[/bold red] File not found: {path}")
        raise typer.Exit(1)

    try:
        validate_environment(env)
        conversations, process_nlu = load_batch(batch_path, process_nlu)
    except ImportRequestError as e:
        console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        console.print(f"[bold red]Error:[/bold red] Invalid JSON: {e}")
        raise typer.Exit(1)

    console.print(f"[bold blue]Importing:[/bold blue] {batch_path.name}")
    console.print(f"  Environment: {env}")
    console.print(f"  Conversations: {len(conversations)}")
    console.print(f"  Process NLU: {process_nlu}")
    console.print()

    report = ImportCoordinator(db_session).import_batch(conversations, env, process_nlu)

    console.print("[bold]Summary:[/bold]")
    console.print(f"  Stored: {report.imported}")
    console.print(f"  Rejected: {len(report.rejected)}")
    console.print(f"  Activity rows: {report.activities_written}")
    console.print(f"  Unresolved parse data: {sum(len(g) for g in report.unresolved)}")
    console.print(f"  Write failures: {len(report.failures)}")

    if report.status is ImportStatus.FAILURE:
        for failure in report.failures:
            console.print(
                f"  [red]✗ {failure.operation}[/red] "
                f"{failure.conversation_id}: {failure.error}"
            )
        raise typer.Exit(1)
    if report.status is ImportStatus.PARTIAL:
        console.print("[yellow]⚠ Partially imported[/yellow]")
    else:
        console.print("[green]✓ Imported all conversations[/green]")


@app.command()
def watermark(
    env: str = typer.Argument(..., help="production, staging or development"),
) -> None:
    """
    Print the latest imported event time (epoch seconds) of an environment.
    """
    from trackport.api.routes.conversations import validate_environment
    from trackport.db.connection import db_session
    from trackport.exceptions import ImportRequestError
    from trackport.pipeline import latest_watermark

    try:
        validate_environment(env)
    except ImportRequestError as e:
        console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(1)

    with db_session() as session:
        console.print(latest_watermark(session, env))


@app.command("init-db")
def init_db() -> None:
    """
    Create database tables that do not exist yet.
    """
    from trackport.db.connection import init_db as create_tables

    create_tables()
    console.print("[green]✓ Database tables created[/green]")


@app.command()
def serve(
    host: str = typer.Option(settings.api_host, help="Host to bind to"),
    port: int = typer.Option(settings.api_port, help="Port to bind to"),
    reload: bool = typer.Option(settings.api_reload, help="Enable auto-reload"),
) -> None:
    """
    Start the FastAPI server.
    """
    import uvicorn

    console.print("[bold green]Starting Trackport API server...[/bold green]")
    console.print(f"  Host: {host}")
    console.print(f"  Port: {port}")
    console.print(f"  Reload: {reload}")
    console.print(f"\n  API docs: http://{host}:{port}/docs")

    uvicorn.run(
        "trackport.api.app:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    app()
