"""Authentication commands for the pyicnotes CLI."""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from pyicnotes.cli.utils import auth
from pyicnotes.config import load_config, save_config
from pyicnotes.exceptions import PyiCNotesException, PyiCNotesLoginCancelled

app = typer.Typer(help="Authentication commands")
console = Console()


@app.command("login")
def login(
    network: Optional[str] = typer.Option(None, help="Network: 'ic' or 'local'"),
    delegation_file: Optional[str] = typer.Option(
        None, help="Use a delegation saved to this file instead of a browser"
    ),
    save: bool = typer.Option(
        False, "--save-config", help="Save the network setting to the config file"
    ),
):
    """Login through the identity provider."""
    settings = auth.load_settings(network)
    service = auth.build_service(
        settings, auth.build_provider(settings, delegation_file)
    )

    async def _login():
        await service.initialize()
        if service.context.is_authenticated:
            console.print(
                f"Already logged in as [bold]{service.account_name}[/bold]"
            )
            return True
        return await service.context.login()

    if not auth.run(_login()):
        error = service.context.last_error
        if isinstance(error, PyiCNotesLoginCancelled):
            console.print("Login cancelled")
            raise typer.Exit(1)
        console.print(f"[bold red]Error:[/bold red] {error}")
        console.print(
            Panel(
                "The identity provider did not return a usable delegation.\n"
                f"Provider: {settings.identity_provider_url}\n"
                "Complete the login in the browser and paste the full\n"
                "delegation JSON when prompted.",
                title="Authentication Help",
                border_style="red",
            )
        )
        raise typer.Exit(1)

    if save and network:
        config = load_config(settings.config_dir)
        config["network"] = network
        save_config(config, settings.config_dir)

    console.print(f"Successfully logged in as [bold]{service.account_name}[/bold]")


@app.command("logout")
def logout(
    network: Optional[str] = typer.Option(None, help="Network: 'ic' or 'local'"),
):
    """Forget the stored delegation."""
    service = auth.build_service(auth.load_settings(network))

    async def _logout():
        await service.initialize()
        was_authenticated = service.context.is_authenticated
        return was_authenticated, await service.context.logout()

    was_authenticated, ok = auth.run(_logout())
    if not ok:
        console.print(
            "[bold red]Error:[/bold red] Could not completely remove session data: "
            f"{service.context.last_error}"
        )
        raise typer.Exit(1)
    if was_authenticated:
        console.print("[green]Logged out successfully[/green]")
    else:
        console.print("No active session found or already logged out")


@app.command("status")
def status(
    network: Optional[str] = typer.Option(None, help="Network: 'ic' or 'local'"),
):
    """Check authentication status."""
    service = auth.build_service(auth.load_settings(network))

    async def _status():
        await service.initialize()
        actor = service.context.authenticated_actor
        if actor is None:
            return None
        return await actor.is_user_authenticated()

    try:
        accepted = auth.run(_status())
    except PyiCNotesException as exc:
        console.print(f"[yellow]Session exists but the service check failed:[/yellow] {exc}")
        return

    if accepted is None:
        console.print("[yellow]Not logged in[/yellow]")
    elif accepted:
        console.print(f"[green]Logged in as:[/green] [bold]{service.account_name}[/bold]")
    else:
        console.print("[yellow]Session exists but requires re-authentication[/yellow]")
