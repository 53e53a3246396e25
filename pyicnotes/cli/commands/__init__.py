"""Command modules for the pyicnotes CLI."""

from pyicnotes.cli.commands import auth, notes

__all__ = ["auth", "notes"]
