"""Command line interface for sdkdocs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from sdkdocs.config import AppConfig
from sdkdocs.index.search import QueryService
from sdkdocs.index.state import IndexState
from sdkdocs.ingestion.fetch import SourceUnavailableError
from sdkdocs.tools import call_tool
from sdkdocs.web.app import build_state, create_app

console = Console()
app = typer.Typer(help="sdkdocs - local search over SDK documentation")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _config(db: Optional[Path], repo_url: Optional[str] = None, repo_dir: Optional[Path] = None) -> AppConfig:
    defaults = AppConfig()
    return AppConfig(
        db_path=db if db is not None else defaults.db_path,
        repo_url=repo_url or defaults.repo_url,
        repo_dir=repo_dir if repo_dir is not None else defaults.repo_dir,
    )


def _open_queries(db: Optional[Path]) -> tuple[IndexState, QueryService]:
    state = build_state(_config(db), Path.cwd())
    if not state.db_path.exists():
        raise typer.BadParameter(
            f"Database not found: {state.db_path}. Run 'sdkdocs index' first."
        )
    if not state.open_existing():
        raise typer.BadParameter(f"Unable to open database: {state.status().error}")
    return state, state.queries()  # type: ignore[return-value]


def _rebuild(state: IndexState) -> None:
    console.print(f"Indexing into [bold]{state.db_path}[/bold]...")
    try:
        stats = state.rebuild()
    except SourceUnavailableError as exc:
        console.print(f"[red]Source unavailable:[/red] {exc}")
        raise typer.Exit(code=1)
    except Exception as exc:
        console.print(f"[red]Index build failed:[/red] {exc}")
        raise typer.Exit(code=1)
    console.print(
        f"Docs: {stats.doc_count}, classes: {stats.class_count}, "
        f"members: {stats.member_count}, failed files: {stats.failed}"
    )


@app.command()
def index(
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    repo_url: str = typer.Option(AppConfig().repo_url, help="Documentation repository URL"),
    repo_dir: Path = typer.Option(None, "--repo-dir", help="Local checkout directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Rebuild the whole index from the documentation repository."""
    _setup_logging(verbose)
    state = build_state(_config(db, repo_url, repo_dir), Path.cwd())
    try:
        _rebuild(state)
    finally:
        state.close()


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    package: str = typer.Option("all", help="Package filter"),
    type_filter: str = typer.Option("all", "--type", help="all, guide, class, interface or method"),
    limit: int = typer.Option(AppConfig().default_limit, help="Number of results to display"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Search guides, declarations and members."""
    state, queries = _open_queries(db)
    try:
        results = queries.search(
            query, package=package, type_filter=type_filter, limit=limit
        )
    finally:
        state.close()

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Rank")
    table.add_column("Title")
    table.add_column("Package")
    table.add_column("Type")
    table.add_column("Snippet")

    for result in results:
        snippet = result.snippet.replace("\n", " ")
        table.add_row(str(result.rank), result.title, result.package, result.type, snippet[:180])

    console.print(table)


@app.command("show-class")
def show_class(
    name: str = typer.Argument(..., help="Class, interface, type or enum name"),
    package: Optional[str] = typer.Option(None, help="Package filter"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Show the reference page of one declaration."""
    state, _queries = _open_queries(db)
    try:
        text = call_tool(state, "get_class", {"name": name, "package": package})
    finally:
        state.close()
    console.print(Markdown(text))


@app.command("show-method")
def show_method(
    name: str = typer.Argument(..., help="Method name, optionally 'Class.method'"),
    package: Optional[str] = typer.Option(None, help="Package filter"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Show every member matching a name."""
    state, _queries = _open_queries(db)
    try:
        text = call_tool(state, "get_method", {"method_name": name, "package": package})
    finally:
        state.close()
    console.print(Markdown(text))


@app.command()
def modules(
    package: str = typer.Option("all", help="Package filter"),
    type_filter: str = typer.Option("all", "--type", help="class, interface, type, enum or function"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """List indexed declarations."""
    state, queries = _open_queries(db)
    try:
        summaries = queries.list_declarations(package, type_filter)
    finally:
        state.close()

    if not summaries:
        console.print("[yellow]No modules found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Package")
    table.add_column("Type")
    table.add_column("Name")
    table.add_column("Description")
    for summary in summaries:
        table.add_row(summary.package, summary.kind, summary.name, summary.description[:80])
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    rebuild: bool = typer.Option(False, "--rebuild", help="Rebuild the index before serving"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Start the HTTP tool server."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    _setup_logging(verbose)
    config = _config(db)
    state = build_state(config, Path.cwd())
    if rebuild:
        _rebuild(state)
    elif not state.db_path.exists():
        console.print("[yellow]Index not found, it will be built in the background.[/yellow]")

    console.print(f"Starting tool server on http://{host}:{port} (database: {state.db_path})")
    uvicorn.run(
        create_app(config, state=state),
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
