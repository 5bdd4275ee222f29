"""Command line interface for Librarian."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from librarian.config import AppConfig
from librarian.remote.client import RemoteIndexError
from librarian.service import install, run_periodic
from librarian.session import Session
from librarian.web.app import app as web_app


console = Console()
app = typer.Typer(help="Librarian - semantic search over your browser bookmarks")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_config(
    bookmarks: Optional[Path] = None,
    db: Optional[Path] = None,
    backend: Optional[str] = None,
    concurrency: Optional[int] = None,
) -> AppConfig:
    try:
        return AppConfig.from_env(
            bookmarks_path=bookmarks, db_path=db, backend=backend, concurrency=concurrency
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def index(
    bookmarks: Path = typer.Option(None, "--bookmarks", help="Chrome Bookmarks file"),
    db: Path = typer.Option(None, "--db", help="SQLite state database path"),
    backend: str = typer.Option(None, help="Index backend: remote or local"),
    concurrency: int = typer.Option(None, help="Bookmarks indexed at the same time"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index every bookmark that is not in the index yet."""
    _setup_logging(verbose)
    config = _build_config(bookmarks, db, backend, concurrency)

    console.print(f"Indexing bookmarks from [bold]{config.bookmarks_path}[/bold]...")

    async def _run():
        async with Session(config) as session:
            return await session.sync_all_bookmarks()

    stats = asyncio.run(_run())
    if stats is None:
        console.print("[yellow]Indexing already in progress.[/yellow]")
        return
    console.print(
        f"Indexed: {stats.indexed}, partial: {stats.partial}, "
        f"skipped: {stats.skipped}, failed: {stats.failed}"
    )


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    bookmarks: Path = typer.Option(None, "--bookmarks", help="Chrome Bookmarks file"),
    db: Path = typer.Option(None, "--db", help="SQLite state database path"),
    backend: str = typer.Option(None, help="Index backend: remote or local"),
    limit: int = typer.Option(10, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search the bookmark index."""
    _setup_logging(verbose)
    config = _build_config(bookmarks, db, backend)

    async def _run():
        async with Session(config) as session:
            return await session.search(query)

    try:
        results = asyncio.run(_run())
    except RemoteIndexError as exc:
        console.print(f"[red]Search failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Title")
    table.add_column("URL")
    table.add_column("Flavor")

    for result in results[:limit]:
        table.add_row(result.title, result.url, result.flavor_html[:180])

    console.print(table)


@app.command()
def status(
    db: Path = typer.Option(None, "--db", help="SQLite state database path"),
    backend: str = typer.Option(None, help="Index backend: remote or local"),
) -> None:
    """Show progress of the current or last indexing run."""
    config = _build_config(db=db, backend=backend)

    async def _run():
        async with Session(config) as session:
            run = session.run_state()
            try:
                count = await session.count()
            except RemoteIndexError:
                count = None
            return run, count

    run, count = asyncio.run(_run())
    state = "running" if run.in_progress else "idle"
    console.print(f"Indexing: {state} ({run.completed}/{run.total})")
    console.print(f"Indexed chunks: {count if count is not None else 'unknown'}")


@app.command()
def watch(
    interval: int = typer.Option(None, help="Minutes between indexing runs"),
    bookmarks: Path = typer.Option(None, "--bookmarks", help="Chrome Bookmarks file"),
    db: Path = typer.Option(None, "--db", help="SQLite state database path"),
    backend: str = typer.Option(None, help="Index backend: remote or local"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index now, then keep re-indexing on a schedule."""
    _setup_logging(verbose)
    config = _build_config(bookmarks, db, backend)
    minutes = interval or config.interval_minutes
    console.print(f"Re-indexing every {minutes} minutes. Press Ctrl+C to stop.")

    async def _run() -> None:
        async with Session(config) as session:
            await run_periodic(session, interval_minutes=minutes)

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("Stopped.")


@app.command()
def reset(
    db: Path = typer.Option(None, "--db", help="SQLite state database path"),
    reindex: bool = typer.Option(False, help="Run a full index after resetting"),
) -> None:
    """Clear persisted indexing progress."""
    config = _build_config(db=db)

    async def _run():
        async with Session(config) as session:
            if reindex:
                return await install(session)
            session.reset_state()
            return None

    stats = asyncio.run(_run())
    console.print("Indexing state cleared.")
    if stats is not None:
        console.print(f"Indexed: {stats.indexed}, skipped: {stats.skipped}, failed: {stats.failed}")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    console.print(f"Starting web interface on http://{host}:{port}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
