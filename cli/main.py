"""Crawl dashboard CLI: entry-point for all client operations.

Usage:
    dashboard --help

One-shot commands talk to the backend once and exit; ``watch`` opens an
interactive shell backed by a polling session.
"""

from __future__ import annotations

import asyncio
import logging
from functools import wraps
from typing import Callable, List, Optional

import typer
from rich.console import Console
from rich.live import Live

from dashboard.api.client import CrawlerClient
from dashboard.config import settings
from dashboard.errors import (
    DashboardError,
    EmptySelection,
    MutationRejected,
    PartialBulkFailure,
    RecordNotFound,
    TransientFetchError,
)
from dashboard.models import SORTABLE_FIELDS
from dashboard.session import DashboardSession
from dashboard.view import SortDirection

from cli.rendering import render_details, render_page

app = typer.Typer(
    name="dashboard",
    help="Submit URLs to the crawl backend and browse the results.",
    no_args_is_help=True,
)


def _console() -> Console:
    return Console(soft_wrap=False)


def _handle_errors(func: Callable) -> Callable:
    """Turn engine errors into a one-line message and exit code 1."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except EmptySelection as exc:
            typer.echo(f"⚠️ {exc}")
            raise typer.Exit(code=1) from exc
        except RecordNotFound as exc:
            typer.echo(f"❌ {exc}")
            raise typer.Exit(code=1) from exc
        except (MutationRejected, PartialBulkFailure) as exc:
            typer.echo(f"❌ Error: {exc}")
            raise typer.Exit(code=1) from exc
        except TransientFetchError as exc:
            typer.echo(f"❌ Backend unavailable at {settings.api_base_url}: {exc}")
            raise typer.Exit(code=1) from exc
        except DashboardError as exc:
            typer.echo(f"❌ Unexpected error: {exc}")
            raise typer.Exit(code=1) from exc

    return wrapper


def _confirm(action: str, assume_yes: bool) -> Callable[[int], bool]:
    def confirm(count: int) -> bool:
        if assume_yes:
            return True
        return typer.confirm(f"Are you sure you want to {action} {count} selected URL(s)?")

    return confirm


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log HTTP and polling activity."),
) -> None:
    """Crawl dashboard client."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Table view
# ---------------------------------------------------------------------------
@app.command("list")
@_handle_errors
def list_urls(
    search: str = typer.Option("", "--search", "-s", help="Filter on URL or title (case-insensitive)."),
    sort: Optional[str] = typer.Option(None, "--sort", help=f"Sort column: {' | '.join(SORTABLE_FIELDS)}."),
    desc: bool = typer.Option(False, "--desc", help="Sort descending."),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page to show (1-based)."),
    rows: int = typer.Option(settings.rows_per_page, "--rows", "-r", min=1, help="Rows per page."),
    follow: bool = typer.Option(False, "--follow", "-f", help="Keep the table live until Ctrl-C."),
) -> None:
    """Show the crawl results table."""
    if sort is not None and sort not in SORTABLE_FIELDS:
        typer.echo(f"❌ Unknown sort column {sort!r}. Use: {' | '.join(SORTABLE_FIELDS)}")
        raise typer.Exit(code=1)

    async def _run() -> None:
        async with CrawlerClient(settings) as client:
            session = DashboardSession(client, settings)
            session.search(search)
            session.set_sort(sort, SortDirection.DESC if desc else SortDirection.ASC)
            session.set_rows_per_page(rows)
            if not await session.refresh():
                raise TransientFetchError("could not fetch /urls")
            session.go_to_page(page)
            console = _console()

            if not follow:
                console.print(render_page(session.page(), session.view))
                return

            async with session:
                with Live(render_page(session.page(), session.view), console=console) as live:
                    seen = session.store.version
                    while True:
                        await asyncio.sleep(min(0.25, settings.poll_interval))
                        if session.store.version != seen:
                            seen = session.store.version
                            live.update(render_page(session.page(), session.view))

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        pass


@app.command("show")
@_handle_errors
def show(record_id: str = typer.Argument(..., help="Record id.")) -> None:
    """Show link distribution and broken links for one record."""

    async def _run():
        async with CrawlerClient(settings) as client:
            return await client.get_url(record_id)

    record = asyncio.run(_run())
    _console().print(render_details(record))


# ---------------------------------------------------------------------------
# Single-record mutations
# ---------------------------------------------------------------------------
@app.command("add")
@_handle_errors
def add(
    url: str = typer.Argument(..., help="URL to crawl."),
    wait: bool = typer.Option(False, "--wait", "-w", help="Poll until the analysis settles."),
) -> None:
    """Submit a URL to the crawl backend."""

    async def _run():
        async with CrawlerClient(settings) as client:
            session = DashboardSession(client, settings)
            try:
                record = await session.add(url)
                typer.echo(f"✅ Queued {record.url} [{record.id}]")
                if wait and not record.is_terminal:
                    typer.echo("⏳ Waiting for analysis …")
                    final = await session.watch(record.id).wait()
                    if final is not None:
                        record = final
                return record
            finally:
                await session.close()

    record = asyncio.run(_run())
    if wait:
        typer.echo(f"Status: {record.status.value}")


@app.command("start")
@_handle_errors
def start(record_id: str = typer.Argument(..., help="Record id.")) -> None:
    """Request (re)analysis of a record."""

    async def _run():
        async with CrawlerClient(settings) as client:
            return await client.reanalyze_url(record_id)

    record = asyncio.run(_run())
    typer.echo(f"✅ {record.url} is {record.status.value}")


@app.command("stop")
@_handle_errors
def stop(record_id: str = typer.Argument(..., help="Record id.")) -> None:
    """Cancel the running analysis of a record."""

    async def _run():
        async with CrawlerClient(settings) as client:
            return await client.stop_url(record_id)

    record = asyncio.run(_run())
    status = record.status.value if record is not None else "stopping"
    typer.echo(f"✅ {record_id} is {status}")


@app.command("delete")
@_handle_errors
def delete(record_id: str = typer.Argument(..., help="Record id.")) -> None:
    """Delete a record."""

    async def _run():
        async with CrawlerClient(settings) as client:
            await client.delete_url(record_id)

    asyncio.run(_run())
    typer.echo(f"🗑️ Deleted {record_id}")


# ---------------------------------------------------------------------------
# Bulk mutations
# ---------------------------------------------------------------------------
@app.command("bulk-delete")
@_handle_errors
def bulk_delete(
    ids: List[str] = typer.Argument(None, help="Record ids to delete."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete several records, one request at a time."""

    async def _run():
        async with CrawlerClient(settings) as client:
            session = DashboardSession(client, settings)
            for record_id in ids or []:
                if record_id not in session.selection:
                    session.toggle(record_id)
            return await session.bulk_delete(_confirm("delete", yes))

    result = asyncio.run(_run())
    if result is None:
        typer.echo("Cancelled.")
        return
    typer.echo(f"🗑️ Deleted {len(result.succeeded)} URL(s)")
    result.raise_for_failures()


@app.command("bulk-reanalyze")
@_handle_errors
def bulk_reanalyze(
    ids: List[str] = typer.Argument(None, help="Record ids to reanalyze."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Request reanalysis of several records at once."""

    async def _run():
        async with CrawlerClient(settings) as client:
            session = DashboardSession(client, settings)
            for record_id in ids or []:
                if record_id not in session.selection:
                    session.toggle(record_id)
            tasks = session.bulk_reanalyze(_confirm("reanalyze", yes))
            if tasks is None:
                return None
            # The CLI exits right after, so let the dispatched calls finish.
            return await asyncio.gather(*tasks, return_exceptions=True)

    outcomes = asyncio.run(_run())
    if outcomes is None:
        typer.echo("Cancelled.")
        return
    failed = [o for o in outcomes if isinstance(o, Exception)]
    typer.echo(f"🔁 Reanalyze requested for {len(outcomes) - len(failed)} URL(s)")
    for exc in failed:
        typer.echo(f"❌ Error: {exc}")
    if failed:
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Interactive shell
# ---------------------------------------------------------------------------
@app.command("watch")
@_handle_errors
def watch(
    rows: int = typer.Option(settings.rows_per_page, "--rows", "-r", min=1, help="Rows per page."),
) -> None:
    """Open an interactive, auto-refreshing results table."""
    from cli.shell import run_shell

    try:
        asyncio.run(run_shell(settings, _console(), rows_per_page=rows))
    except KeyboardInterrupt:
        pass


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
