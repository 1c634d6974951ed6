"""Taskdesk CLI - serve the API and run maintenance jobs."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from .config import settings

app = typer.Typer(
    name="taskdesk",
    help="Taskdesk - role-scoped task and CRM backend",
    no_args_is_help=True,
)
console = Console()


@app.command("serve")
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Launch the Taskdesk API."""
    import uvicorn

    console.print(f"[bold cyan]Starting Taskdesk API at http://{host}:{port}[/bold cyan]")
    uvicorn.run("taskdesk.app:app", host=host, port=port, reload=reload)


async def _create_tables() -> None:
    from .database import engine
    from .models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@app.command("bootstrap-admin")
def bootstrap_admin(
    name: str = typer.Option(None, "--name", help="Admin display name"),
    email: str = typer.Option(None, "--email", help="Admin email"),
    password: str = typer.Option(None, "--password", help="Admin password"),
):
    """Create the first admin account if none exists."""
    from .database import async_session_factory
    from .errors import TaskdeskError
    from .services import auth_svc

    name = name or settings.auth_bootstrap_name
    email = email or settings.auth_bootstrap_email
    password = password or settings.auth_bootstrap_password
    if not email or not password:
        console.print("[red]Email and password are required (flags or TASKDESK_AUTH_BOOTSTRAP_*).[/red]")
        raise typer.Exit(1)

    async def _run():
        if "sqlite" in settings.database_url:
            await _create_tables()
        async with async_session_factory() as db:
            return await auth_svc.bootstrap_admin(db, name=name, email=email, password=password)

    try:
        principal = asyncio.run(_run())
    except TaskdeskError as exc:
        console.print(f"[red]{exc.message}[/red]")
        raise typer.Exit(1)

    if principal is None:
        console.print("[yellow]An admin account already exists; nothing to do.[/yellow]")
    else:
        console.print(f"[green]Created admin {principal.email}[/green]")


@app.command("send-reminders")
def send_reminders():
    """Run the task reminder scan once."""
    from .database import async_session_factory
    from .dispatcher import dispatcher
    from .jobs.reminders import ReminderScheduler

    async def _run() -> tuple[int, int]:
        dispatcher.bind(async_session_factory)
        queued = await ReminderScheduler(async_session_factory).run_once()
        abandoned = await dispatcher.drain(settings.side_effect_drain_seconds)
        return queued, abandoned

    queued, abandoned = asyncio.run(_run())
    console.print(f"[green]Queued {queued} reminder(s)[/green]")
    if abandoned:
        console.print(f"[yellow]{abandoned} reminder(s) abandoned before they were written[/yellow]")


if __name__ == "__main__":
    app()
