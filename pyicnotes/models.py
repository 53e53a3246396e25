"""Note models and result decoding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from pyicnotes.exceptions import NoteOperationFailed, UnexpectedResponseError


class Note(BaseModel):
    """A note as the service reports it. ``owner`` is ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(..., ge=0)
    title: str
    content: str

    def patched(self, title: str, content: str) -> "Note":
        return self.model_copy(update={"title": title, "content": content})


_NOTE_LIST = TypeAdapter(List[Note])


def parse_notes(payload: Any) -> List[Note]:
    try:
        return _NOTE_LIST.validate_python(payload)
    except ValidationError as exc:
        raise UnexpectedResponseError(
            "Unexpected note list format", payload=payload
        ) from exc


def unwrap_result(payload: Any) -> str:
    """
    Decode a ``{"Ok": ...} | {"Err": ...}`` result.

    Returns the ``Ok`` value, raises :class:`NoteOperationFailed` with the
    ``Err`` message, and :class:`UnexpectedResponseError` for any other shape.
    """
    if isinstance(payload, dict) and len(payload) == 1:
        if "Ok" in payload:
            return str(payload["Ok"])
        if "Err" in payload:
            raise NoteOperationFailed(str(payload["Err"]))
    raise UnexpectedResponseError(payload=payload)


@dataclass(frozen=True)
class ActionOutcome:
    """What a NoteStore action reports back to its caller."""

    action: str
    ok: bool
    message: Optional[str] = None
    error: Optional[Exception] = None
    stale: bool = False
    cancelled: bool = False
    reload_error: Optional[str] = None
