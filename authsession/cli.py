"""Command line entry point: ``authsession login | whoami | settings``.

Nothing is persisted between invocations except settings; tokens only live
for the duration of one command.
"""

from __future__ import annotations

import asyncio
import json
from datetime import timedelta
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .api.backend import HttpAuthBackend
from .api.client import ApiClient
from .log import configure_logging
from .models.session import SessionState
from .models.tokens import TokenPair
from .models.user import Credentials
from .session.errors import AuthError
from .session.manager import SessionManager
from .storage.config import AppSettings

app = typer.Typer(help="Log in against the auth API and inspect the session.")
console = Console()


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    configure_logging(True if debug else None)


def _session_table(state: SessionState) -> Table:
    table = Table(show_header=False)
    table.add_column("field", style="bold cyan")
    table.add_column("value")
    table.add_row("status", state.status.value)
    if state.user is not None:
        table.add_row("user id", state.user.user_id)
        table.add_row("name", state.user.display_name)
        table.add_row("email", state.user.email or "-")
    if state.tokens is not None:
        deadline = state.tokens.access_deadline()
        table.add_row("access expires", deadline.isoformat() if deadline else "unknown")
        refresh_deadline = state.tokens.refresh_deadline()
        table.add_row("refresh expires", refresh_deadline.isoformat() if refresh_deadline else "unknown")
    return table


def _manager(client: ApiClient, tokens: TokenPair | None = None) -> SessionManager:
    threshold = timedelta(seconds=float(AppSettings.get("refresh_threshold_seconds", 300)))
    return SessionManager(HttpAuthBackend(client), initial_tokens=tokens, refresh_threshold=threshold)


async def _login(credentials: Credentials, base_url: str | None) -> SessionState:
    async with ApiClient(base_url=base_url) as client:
        async with _manager(client) as session:
            await session.ready()
            await session.login(credentials)
            state = session.get_state()
            await session.logout()
            return state


async def _whoami(tokens: TokenPair, base_url: str | None) -> SessionState:
    async with ApiClient(base_url=base_url) as client:
        async with _manager(client, tokens) as session:
            return await session.ready()


@app.command()
def login(
    email: str = typer.Option(..., "--email", "-e", help="Account email"),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Account password"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the configured API base URL"),
):
    """Log in, show who the tokens belong to, then log out again."""
    try:
        state = asyncio.run(_login(Credentials(email=email, password=password), base_url))
    except AuthError as exc:
        console.print(f"[bold red]Login failed:[/bold red] {exc.message}")
        raise typer.Exit(code=1)
    console.print(_session_table(state))


@app.command()
def whoami(
    access_token: str = typer.Option(..., "--access-token", help="Existing access token"),
    refresh_token: str = typer.Option("", "--refresh-token", help="Matching refresh token"),
    expires_at: Optional[str] = typer.Option(None, "--expires-at", help="Access token expiry (ISO-8601)"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the configured API base URL"),
):
    """Resolve an existing access token to the user it belongs to."""
    tokens = TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
        access_expires_at=expires_at,
    )
    state = asyncio.run(_whoami(tokens, base_url))
    if not state.is_authenticated:
        console.print("[bold red]Token was not accepted.[/bold red]")
        raise typer.Exit(code=1)
    console.print(_session_table(state))


@app.command()
def settings(
    key: Optional[str] = typer.Argument(None, help="Setting to show or change"),
    value: Optional[str] = typer.Argument(None, help="New value (parsed as JSON when possible)"),
):
    """Show all settings, one setting, or update one."""
    if key is None:
        for name, current in sorted(AppSettings.load().items()):
            console.print(f"[bold cyan]{name}[/bold cyan] = {current!r}")
        return
    if value is None:
        console.print(f"[bold cyan]{key}[/bold cyan] = {AppSettings.get(key)!r}")
        return
    try:
        parsed = json.loads(value)
    except ValueError:
        parsed = value
    AppSettings.set(key, parsed)
    console.print(f"[bold green]Saved[/bold green] {key} = {parsed!r}")


if __name__ == "__main__":
    app()
