"""Utility functions for the pyicnotes CLI."""

import asyncio
from typing import Any, Coroutine, Optional, TypeVar

import typer
from rich.console import Console
from rich.panel import Panel

from pyicnotes import PyiCNotesService
from pyicnotes.auth.provider import (
    BrowserIdentityProvider,
    IdentityProvider,
    StaticIdentityProvider,
    parse_delegation,
)
from pyicnotes.config import Settings
from pyicnotes.exceptions import PyiCNotesException

console = Console()

T = TypeVar("T")


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion from a synchronous command."""
    return asyncio.run(coro)


def load_settings(network: Optional[str] = None) -> Settings:
    try:
        return Settings.load(network=network)
    except ValueError as exc:
        console.print(f"[bold red]Error:[/bold red] Invalid configuration: {exc}")
        raise typer.Exit(1) from exc


def _prompt(message: str) -> str:
    return typer.prompt(message, default="", show_default=False)


def build_provider(
    settings: Settings, delegation_file: Optional[str] = None
) -> IdentityProvider:
    """Browser flow by default, or a delegation saved to a file."""
    if delegation_file:
        try:
            with open(delegation_file, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            raise typer.Exit(1) from exc
        try:
            delegation = parse_delegation(raw)
        except PyiCNotesException as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            raise typer.Exit(1) from exc
        return StaticIdentityProvider(delegation, url=delegation_file)
    return BrowserIdentityProvider(settings.identity_provider_url, prompt=_prompt)


def build_service(
    settings: Settings, provider: Optional[IdentityProvider] = None
) -> PyiCNotesService:
    try:
        return PyiCNotesService(settings, provider or build_provider(settings))
    except PyiCNotesException as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        console.print(
            Panel(
                "Tell the client which note service to use, either with\n"
                "  export PYICNOTES_CANISTER_ID=<canister id>\n"
                "or by adding \"canister_id\" to config.json in\n"
                f"  {settings.config_dir}",
                title="Configuration Required",
                border_style="red",
            )
        )
        raise typer.Exit(1) from exc


async def get_service(network: Optional[str] = None) -> PyiCNotesService:
    """Return an initialized, authenticated service or exit."""
    service = build_service(load_settings(network))
    await service.initialize()
    if not service.context.is_authenticated:
        console.print("[yellow]Not logged in[/yellow]")
        console.print("Run [bold]pyicnotes auth login[/bold] first")
        raise typer.Exit(1)
    return service
