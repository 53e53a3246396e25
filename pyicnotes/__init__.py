"""The pyicnotes library."""

import logging

from pyicnotes.config import Settings
from pyicnotes.context import SessionContext, SessionState
from pyicnotes.models import ActionOutcome, Note
from pyicnotes.service import PyiCNotesService
from pyicnotes.store import NoteStore

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ActionOutcome",
    "Note",
    "NoteStore",
    "PyiCNotesService",
    "SessionContext",
    "SessionState",
    "Settings",
]
