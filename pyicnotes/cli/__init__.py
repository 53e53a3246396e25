"""Command line interface for pyicnotes."""
