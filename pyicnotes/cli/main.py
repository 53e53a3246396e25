#!/usr/bin/env python
"""Command line interface for pyicnotes."""

import logging

import typer
from rich.logging import RichHandler

from pyicnotes.cli.commands import auth, notes

app = typer.Typer(help="Command Line Interface for pyicnotes")

# Add command groups
app.add_typer(auth.app, name="auth")
app.add_typer(notes.app, name="notes")


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs"),
):
    """Manage your notes on the note service."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=verbose)],
    )


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
