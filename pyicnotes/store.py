"""
NoteStore: local note list kept in step with the service.

The service owns note ids. It assigns them on create and renumbers the
remaining notes on delete, so both of those are followed by a full reload.
A successful edit keeps ids stable and is applied to the local list in place.
Any failed change is followed by a reload as well.

Every action returns an :class:`ActionOutcome` and records a readable
message in ``error`` when it fails; nothing is raised to the caller. Results
that arrive after the session they were issued under has ended are dropped.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional

from pyicnotes.actor import AuthenticatedActor
from pyicnotes.context import Session, SessionContext
from pyicnotes.exceptions import (
    NoteValidationError,
    PyiCNotesException,
    PyiCNotesNotAuthenticated,
    StoreBusyError,
)
from pyicnotes.models import ActionOutcome, Note, unwrap_result

LOGGER = logging.getLogger(__name__)

RemoteCall = Callable[[AuthenticatedActor], Awaitable[Any]]
SuccessHandler = Callable[[Session], Awaitable[Optional[Exception]]]


def validate_note(title: str, content: str) -> None:
    if not title or not title.strip() or not content or not content.strip():
        raise NoteValidationError("Please fill in both title and content")


class NoteStore:
    def __init__(self, context: SessionContext):
        self._context = context
        self.notes: List[Note] = []
        self.is_loading = False
        self.submitting = False
        self.error: Optional[str] = None
        context.add_listener(self._on_session_change)

    def _on_session_change(self, previous: Session, current: Session) -> None:
        if previous.actor is not None and previous.actor is not current.actor:
            LOGGER.debug("Session ended, dropping %d cached notes", len(self.notes))
            self.notes = []
            self.error = None

    def get(self, note_id: int) -> Optional[Note]:
        return next((n for n in self.notes if n.id == note_id), None)

    # ------------------------------ Helpers --------------------------------

    def _is_current(self, session: Session) -> bool:
        return self._context.session is session

    def _fail(self, action: str, exc: Exception) -> ActionOutcome:
        self.error = str(exc)
        return ActionOutcome(action, ok=False, message=str(exc), error=exc)

    @staticmethod
    def _stale(action: str) -> ActionOutcome:
        LOGGER.info("Discarding %s result from an ended session", action)
        return ActionOutcome(action, ok=False, message="Session changed", stale=True)

    async def _reload(self, session: Session) -> Optional[Exception]:
        """Replace the local list from the service; returns the failure, if any."""
        if session.actor is None:
            return PyiCNotesNotAuthenticated()
        self.is_loading = True
        try:
            notes = await session.actor.get_notes()
        except PyiCNotesException as exc:
            if self._is_current(session):
                LOGGER.error("Error loading notes: %s", exc)
            return exc
        finally:
            self.is_loading = False

        if not self._is_current(session):
            LOGGER.info("Discarding note list from an ended session")
            return None
        self.notes = notes
        LOGGER.debug("Loaded %d notes", len(notes))
        return None

    async def _reload_after_change(self, session: Session) -> Optional[Exception]:
        reload_error = await self._reload(session)
        if reload_error is not None:
            LOGGER.error("Error reloading notes: %s", reload_error)
        return reload_error

    async def _submit(
        self,
        action: str,
        remote: RemoteCall,
        on_success: SuccessHandler,
    ) -> ActionOutcome:
        session = self._context.session
        if session.actor is None:
            return self._fail(action, PyiCNotesNotAuthenticated())

        self.submitting = True
        try:
            try:
                message = unwrap_result(await remote(session.actor))
            except PyiCNotesException as exc:
                if not self._is_current(session):
                    return self._stale(action)
                LOGGER.error("Error during %s: %s", action, exc)
                await self._reload_after_change(session)
                return self._fail(action, exc)

            if not self._is_current(session):
                return self._stale(action)
            reload_error = await on_success(session)
            if reload_error is not None and self._is_current(session):
                # The change itself went through; the local list is now behind.
                self.error = f"Could not reload notes: {reload_error}"
                return ActionOutcome(
                    action, ok=True, message=message, reload_error=str(reload_error)
                )
            self.error = None
            return ActionOutcome(action, ok=True, message=message)
        finally:
            self.submitting = False

    def _precheck(self, action: str) -> Optional[ActionOutcome]:
        if self.submitting:
            LOGGER.debug("Ignoring %s while another change is in flight", action)
            # The in-flight change owns ``error``.
            exc = StoreBusyError()
            return ActionOutcome(action, ok=False, message=str(exc), error=exc)
        return None

    # ------------------------------ Actions --------------------------------

    async def load(self) -> ActionOutcome:
        """Fetch the full list. On failure the previous list is kept."""
        session = self._context.session
        error = await self._reload(session)
        if not self._is_current(session):
            return self._stale("load")
        if error is not None:
            return self._fail("load", error)
        self.error = None
        return ActionOutcome("load", ok=True)

    async def create(self, title: str, content: str) -> ActionOutcome:
        busy = self._precheck("create")
        if busy:
            return busy
        try:
            validate_note(title, content)
        except NoteValidationError as exc:
            return self._fail("create", exc)

        # The service does not return the new note; its id is only learned by
        # reloading.
        return await self._submit(
            "create",
            lambda actor: actor.create(title, content),
            self._reload_after_change,
        )

    async def edit(self, note_id: int, title: str, content: str) -> ActionOutcome:
        busy = self._precheck("edit")
        if busy:
            return busy
        try:
            validate_note(title, content)
        except NoteValidationError as exc:
            return self._fail("edit", exc)

        async def patch_in_place(session: Session) -> None:
            self.notes = [
                n.patched(title, content) if n.id == note_id else n for n in self.notes
            ]

        return await self._submit(
            "edit",
            lambda actor: actor.edit(note_id, title, content),
            patch_in_place,
        )

    async def delete(
        self,
        note_id: int,
        confirm: Optional[Callable[[int], bool]] = None,
    ) -> ActionOutcome:
        busy = self._precheck("delete")
        if busy:
            return busy
        if confirm is not None and not confirm(note_id):
            return ActionOutcome("delete", ok=False, cancelled=True)

        # Deleting renumbers the remaining notes on the service.
        return await self._submit(
            "delete",
            lambda actor: actor.delete(note_id),
            self._reload_after_change,
        )
