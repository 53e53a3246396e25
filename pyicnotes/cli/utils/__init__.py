"""Shared helpers for the pyicnotes CLI."""
