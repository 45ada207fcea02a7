"""Typer CLI for the staff directory."""

import asyncio

import typer
from rich.console import Console

app = typer.Typer(name="staffdir", help="University staff directory: identity, approvals and audit")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the staff directory API server."""
    import uvicorn
    from staffdir.app import create_app
    from staffdir.common.config import get_settings
    from staffdir.common.logging import setup_logging

    setup_logging(get_settings().log_level)
    console.print(f"[bold green]Starting staff directory on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


async def _create_admin(username: str, email: str, password: str, role: str | None, full_name: str | None):
    from staffdir.deps import get_context

    ctx = get_context()
    await ctx.db.init()
    await ctx.db.create_all()
    try:
        async with ctx.db.get_session() as session:
            # The first admin on an empty database is always a super-admin.
            if role is None:
                role = "super-admin" if await ctx.repository.count_admins(session) == 0 else "admin"
            return await ctx.auth.provision_admin(
                session, username, email, password, role=role, full_name=full_name,
            )
    finally:
        await ctx.db.close()


@app.command("create-admin")
def create_admin(
    username: str = typer.Option(..., prompt=True, help="Admin username"),
    email: str = typer.Option(..., prompt=True, help="Admin email"),
    password: str = typer.Option(
        ..., prompt=True, hide_input=True, confirmation_prompt=True, help="Admin password",
    ),
    role: str = typer.Option(
        None, help="admin or super-admin (default: super-admin for the first admin)",
    ),
    full_name: str = typer.Option(None, help="Display name"),
):
    """Provision an administrator account."""
    from staffdir.common.exceptions import StaffDirError, ValidationError

    try:
        admin = asyncio.run(_create_admin(username, email, password, role, full_name))
    except ValidationError as e:
        console.print(f"[bold red]{e.message}[/bold red]")
        for errors in (e.details or {}).values():
            for error in errors:
                console.print(f"  - {error}")
        raise typer.Exit(1)
    except (StaffDirError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    console.print(f"[bold green]Created {admin.role.value}[/bold green] {admin.username} ({admin.id})")


async def _sweep(days: int | None) -> int:
    from staffdir.deps import get_context

    ctx = get_context()
    await ctx.db.init()
    await ctx.db.create_all()
    try:
        async with ctx.db.get_session() as session:
            return await ctx.audit.sweep_expired(session, days)
    finally:
        await ctx.db.close()


@app.command("sweep-audit")
def sweep_audit(
    days: int = typer.Option(None, "--days", min=0, help="Days of audit history to keep (default: configured retention)"),
):
    """Delete audit entries older than the retention window."""
    removed = asyncio.run(_sweep(days))
    console.print(f"[bold]Removed {removed} audit entries[/bold]")


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check staff directory server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] v{data['version']}")
    except (httpx.HTTPError, ValueError, KeyError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
