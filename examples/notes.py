"""Example of how to use the notes client.

Run: python examples/notes.py --canister-id <id> [--network ic] [--create "Title" "Body"]
"""

import argparse
import asyncio
import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pyicnotes import PyiCNotesService, Settings
from pyicnotes.auth import BrowserIdentityProvider

console = Console()

logger = logging.getLogger("notes.example")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Notes client example.")
    p.add_argument("--canister-id", dest="canister_id", help="Note service canister id")
    p.add_argument("--network", dest="network", choices=["ic", "local"], default=None)
    p.add_argument(
        "--create",
        dest="create",
        nargs=2,
        metavar=("TITLE", "CONTENT"),
        help="Create a note before listing",
    )
    p.add_argument(
        "--verbose",
        dest="verbose",
        action="store_true",
        default=False,
        help="Enable verbose logs",
    )
    return p.parse_args()


def print_notes(service: PyiCNotesService) -> None:
    table = Table("ID", "Title", "Content", title=f"Notes of {service.account_name}")
    for note in service.notes.notes:
        table.add_row(str(note.id), note.title, note.content)
    console.print(table)


async def run(args: argparse.Namespace) -> None:
    settings = Settings.load(network=args.network, canister_id=args.canister_id)
    provider = BrowserIdentityProvider(settings.identity_provider_url, prompt=input)
    service = PyiCNotesService(settings, provider)

    await service.initialize()
    if not service.context.is_authenticated:
        logger.info("No stored session, starting login")
        if not await service.context.login():
            logger.error("Login failed: %s", service.context.last_error)
            return

    if args.create:
        outcome = await service.notes.create(*args.create)
        if not outcome.ok:
            logger.error("Could not create note: %s", outcome.message)
    else:
        outcome = await service.notes.load()
        if not outcome.ok:
            logger.error("Could not load notes: %s", outcome.message)
            return

    print_notes(service)


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_time=True, log_time_format="%H:%M:%S")],
    )
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
