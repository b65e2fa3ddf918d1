"""
main.py - Typer commands for tracking applications and syncing them.

Commands other than serve work on the local database named by
--db (or JOBTRACK_DB_PATH). Only sync talks to the remote.
"""

import asyncio
import os
from contextlib import aclosing
from dataclasses import replace
from datetime import datetime
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from jobtrack_sync.auth import HTTPAuthProvider, InMemoryAuthProvider
from jobtrack_sync.config import load_settings
from jobtrack_sync.container import AppContainer
from jobtrack_sync.db.connection import LocalDatabase, verify_integrity
from jobtrack_sync.errors import SyncError
from jobtrack_sync.metrics import configure_logging
from jobtrack_sync.models import ApplicationStatus
from jobtrack_sync.remote import HTTPRemoteStore, InMemoryRemoteStore
from jobtrack_sync.sync.engine import SyncReport

app = typer.Typer(help="Local-first job application tracker")
console = Console()
settings = load_settings()

DB_OPTION = typer.Option(None, "--db", help="Path to local SQLite database")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    configure_logging("DEBUG" if verbose else settings.log_level, json_format=settings.log_json)


def _open(db_path: Optional[str]) -> AppContainer:
    """Container for offline commands: nothing is signed in, nothing syncs."""
    return AppContainer.create(db_path or settings.db_path, InMemoryRemoteStore(), InMemoryAuthProvider())


def _run(coro):
    try:
        return asyncio.run(coro)
    except SyncError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)


def _fmt_ms(epoch_ms: Optional[int]) -> str:
    if epoch_ms is None:
        return "-"
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%Y-%m-%d %H:%M")


@app.command()
def init(db_path: Optional[str] = DB_OPTION):
    """Create or migrate the local database."""
    path = db_path or settings.db_path
    with LocalDatabase(path) as database:
        migrated = database.open()
        healthy = verify_integrity(database.connection)
    if not healthy:
        console.print(f"[red]Integrity check failed for {path}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Initialized {path}[/green]")
    if migrated:
        console.print(f"Added needsSync to: {', '.join(migrated)}")


@app.command("add-application")
def add_application(
    company: str = typer.Argument(..., help="Company name"),
    role: str = typer.Argument(..., help="Role title"),
    status: ApplicationStatus = typer.Option(ApplicationStatus.APPLIED, case_sensitive=False),
    location: Optional[str] = typer.Option(None),
    url: Optional[str] = typer.Option(None, help="Job posting URL"),
    source: Optional[str] = typer.Option(None, help="Where the job was found"),
    notes: str = typer.Option(""),
    db_path: Optional[str] = DB_OPTION,
):
    """Record a new application."""
    async def run():
        container = _open(db_path)
        try:
            return await container.add_application(
                company=company,
                role=role,
                status=status,
                applied_date_epoch_ms=container.clock.now_ms(),
                location=location,
                job_url=url,
                source=source,
                notes=notes,
            )
        finally:
            await container.close()

    application = _run(run())
    console.print(f"[green]Added {application.company} / {application.role}[/green]")
    console.print(f"ID: {application.id}")


@app.command("list")
def list_applications(
    status: Optional[ApplicationStatus] = typer.Option(None, case_sensitive=False),
    search: Optional[str] = typer.Option(None, help="Match company or role"),
    db_path: Optional[str] = DB_OPTION,
):
    """Show applications that are not deleted."""
    async def run():
        container = _open(db_path)
        try:
            async with aclosing(container.observe_applications(status=status, keyword=search)) as stream:
                async for applications in stream:
                    return applications
        finally:
            await container.close()

    applications = _run(run())

    table = Table(title="Applications")
    table.add_column("ID", style="cyan")
    table.add_column("Company")
    table.add_column("Role")
    table.add_column("Status", style="magenta")
    table.add_column("Updated")
    table.add_column("Sync")
    for application in applications:
        table.add_row(
            application.id,
            application.company,
            application.role,
            application.status.name,
            _fmt_ms(application.updated_at_epoch_ms),
            "pending" if application.needs_sync else "synced",
        )
    console.print(table)


@app.command("set-status")
def set_status(
    application_id: str = typer.Argument(..., help="Application ID"),
    status: ApplicationStatus = typer.Argument(..., case_sensitive=False),
    db_path: Optional[str] = DB_OPTION,
):
    """Move an application to a new status."""
    async def run():
        container = _open(db_path)
        try:
            current = await container.applications.get_by_id(application_id)
            if current is None or current.is_deleted:
                return None
            return await container.update_application(
                replace(current, status=status)
            )
        finally:
            await container.close()

    updated = _run(run())
    if updated is None:
        console.print(f"[red]Application {application_id} not found.[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]{updated.company} is now {updated.status.name}[/green]")


@app.command()
def history(
    application_id: str = typer.Argument(..., help="Application ID"),
    db_path: Optional[str] = DB_OPTION,
):
    """Show the status timeline of an application."""
    async def run():
        container = _open(db_path)
        try:
            return await container.history.get_by_application_id(application_id)
        finally:
            await container.close()

    entries = _run(run())
    if not entries:
        console.print(f"[yellow]No history for {application_id}.[/yellow]")
        return

    table = Table(title="Status History")
    table.add_column("When")
    table.add_column("From")
    table.add_column("To", style="magenta")
    table.add_column("Note")
    for entry in entries:
        table.add_row(
            _fmt_ms(entry.changed_at_epoch_ms),
            entry.from_status.name if entry.from_status else "-",
            entry.to_status.name,
            entry.note or "",
        )
    console.print(table)


@app.command()
def delete(
    application_id: str = typer.Argument(..., help="Application ID"),
    db_path: Optional[str] = DB_OPTION,
):
    """Delete an application (kept as a tombstone until synced)."""
    async def run():
        container = _open(db_path)
        try:
            return await container.delete_application(application_id)
        finally:
            await container.close()

    if not _run(run()):
        console.print(f"[red]Application {application_id} not found.[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Deleted {application_id}[/green]")


@app.command()
def status(db_path: Optional[str] = DB_OPTION):
    """Show rows waiting to be synced."""
    async def run():
        container = _open(db_path)
        try:
            return await container.coordinator.refresh_pending()
        finally:
            await container.close()

    counts = _run(run())

    table = Table(title="Pending Sync")
    table.add_column("Kind", style="cyan")
    table.add_column("Pending", style="magenta")
    for kind, count in counts.items():
        table.add_row(kind, str(count))
    console.print(table)


@app.command()
def sync(
    email: str = typer.Option(..., prompt=True, help="Account email"),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Account password"),
    signup: bool = typer.Option(False, "--signup", help="Create the account first"),
    remote: Optional[str] = typer.Option(None, "--remote", help="Document server URL"),
    since: int = typer.Option(0, "--since", help="Watermark from the previous sync (ms)"),
    db_path: Optional[str] = DB_OPTION,
):
    """Sign in and run one full sync."""
    url = remote or settings.remote_url
    if not url:
        console.print("[red]No remote configured. Pass --remote or set JOBTRACK_REMOTE_URL.[/red]")
        raise typer.Exit(code=1)

    async def run():
        auth = HTTPAuthProvider(url, timeout=settings.http_timeout)
        store = HTTPRemoteStore(url, token_provider=auth.token, timeout=settings.http_timeout)
        container = AppContainer.create(
            db_path or settings.db_path, store, auth, last_synced_at_epoch_ms=since or None
        )
        try:
            authenticate = auth.sign_up if signup else auth.sign_in
            signed_in = await authenticate(email, password)
            if not signed_in.is_ok:
                return signed_in, None
            result = await container.coordinator.sync_now(signed_in.value)
            return result, container.coordinator.state
        finally:
            await container.close()
            await store.close()
            await auth.close()

    console.print(f"Syncing with {url}...")
    result, state = _run(run())
    if not result.is_ok:
        console.print(f"[red]Sync failed: {result.error}[/red]")
        raise typer.Exit(code=1)

    _print_report(result.value)
    console.print(f"[green]Sync completed.[/green] Next watermark: {state.last_synced_at_epoch_ms}")


def _print_report(report: SyncReport) -> None:
    table = Table(title="Sync Report")
    table.add_column("Kind", style="cyan")
    table.add_column("Pushed")
    table.add_column("Deleted")
    table.add_column("Pulled")
    table.add_column("Skipped")
    kinds = sorted(set(report.pushed) | set(report.deleted) | set(report.pulled) | set(report.skipped))
    for kind in kinds:
        table.add_row(
            kind,
            str(report.pushed[kind]),
            str(report.deleted[kind]),
            str(report.pulled[kind]),
            str(report.skipped[kind]),
        )
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host to bind to"),
    port: int = typer.Option(8000, help="Port to bind to"),
    server_db: Optional[str] = typer.Option(None, "--server-db", help="Server SQLite database"),
):
    """Start the HTTP document server."""
    if server_db:
        os.environ["JOBTRACK_SERVER_DB_PATH"] = server_db
    console.print(f"[bold green]Starting document server on http://{host}:{port}[/bold green]")
    uvicorn.run("jobtrack_sync.remote.server:create_app", factory=True, host=host, port=port)


if __name__ == "__main__":
    app()
