"""Tests for NoteStore reconciliation."""

import asyncio
import unittest

from fakes import wait_for_call
from helpers import ContextBuilder

from pyicnotes.exceptions import (
    NoteValidationError,
    NotesApiError,
    PyiCNotesNotAuthenticated,
    StoreBusyError,
    UnexpectedResponseError,
)
from pyicnotes.store import NoteStore


class NoteStoreTest(unittest.IsolatedAsyncioTestCase):
    """Tests for the note store."""

    async def asyncSetUp(self):
        self.builder = ContextBuilder(self)
        self.service = self.builder.service
        self.service.seed(
            "alice", ("Groceries", "milk, eggs"), ("Ideas", "a note app"), ("Todo", "ship")
        )
        self.context = await self.builder.authenticated("alice")
        self.store = NoteStore(self.context)
        outcome = await self.store.load()
        self.assertTrue(outcome.ok)
        self.service.calls.clear()

    def _snapshot(self):
        return [(n.id, n.title, n.content) for n in self.store.notes]

    async def test_load_replaces_list(self):
        """Loading returns only the caller's notes, in service order."""
        self.service.seed("bob", ("Secret", "not yours"))
        await self.store.load()
        self.assertEqual(
            self._snapshot(),
            [(1, "Groceries", "milk, eggs"), (2, "Ideas", "a note app"), (3, "Todo", "ship")],
        )

    async def test_load_failure_keeps_previous_list(self):
        """A failed load keeps the old list and surfaces the error."""
        before = self._snapshot()
        self.service.overrides["get_notes"] = NotesApiError("HTTP 500")
        outcome = await self.store.load()
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.message, "HTTP 500")
        self.assertEqual(self.store.error, "HTTP 500")
        self.assertEqual(self._snapshot(), before)
        self.assertFalse(self.store.is_loading)

    async def test_load_malformed_list_is_unexpected(self):
        self.service.overrides["get_notes"] = [{"title": "no id"}]
        outcome = await self.store.load()
        self.assertFalse(outcome.ok)
        self.assertIsInstance(outcome.error, UnexpectedResponseError)
        self.assertEqual(len(self.store.notes), 3)

    async def test_create_reloads_to_learn_id(self):
        """Create followed by load yields exactly one new note with a fresh id."""
        old_ids = {n.id for n in self.store.notes}
        outcome = await self.store.create("Books", "read more")
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.message, "Note created successfully")
        self.assertEqual(self.service.calls, ["create", "get_notes"])

        new = [n for n in self.store.notes if n.id not in old_ids]
        self.assertEqual(len(new), 1)
        self.assertEqual((new[0].title, new[0].content), ("Books", "read more"))
        self.assertIsNone(self.store.error)
        self.assertFalse(self.store.submitting)

    async def test_create_rejects_blank_fields_without_calling(self):
        """An empty title is rejected locally and no remote call happens."""
        for title, content in (("", "content"), ("   ", "content"), ("title", " \n")):
            outcome = await self.store.create(title, content)
            self.assertFalse(outcome.ok)
            self.assertIsInstance(outcome.error, NoteValidationError)
        self.assertEqual(self.service.calls, [])
        self.assertEqual(self.store.error, "Please fill in both title and content")

    async def test_create_reload_failure_is_reported(self):
        """The note was created, but the list could not be refreshed."""
        self.service.overrides["get_notes"] = NotesApiError("HTTP 503")
        outcome = await self.store.create("Books", "read more")
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.reload_error, "HTTP 503")
        self.assertEqual(self.store.error, "Could not reload notes: HTTP 503")
        self.assertEqual(self.service.calls, ["create", "get_notes"])
        self.assertEqual(len(self.store.notes), 3)
        self.assertEqual(len(self.service.notes_for("alice")), 4)

        self.assertTrue((await self.store.load()).ok)
        self.assertIsNone(self.store.error)
        self.assertEqual(len(self.store.notes), 4)

    async def test_create_failure_reloads(self):
        self.service.overrides["create"] = {"Err": "quota exceeded"}
        outcome = await self.store.create("Books", "read more")
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.message, "quota exceeded")
        self.assertEqual(self.service.calls, ["create", "get_notes"])

    async def test_edit_patches_in_place(self):
        """A successful edit updates locally without a reload and converges."""
        outcome = await self.store.edit(2, "Ideas v2", "a better note app")
        self.assertTrue(outcome.ok)
        self.assertEqual(self.service.calls, ["edit"])
        self.assertEqual(self.store.get(2).title, "Ideas v2")
        self.assertEqual(self.store.get(2).content, "a better note app")

        local = self._snapshot()
        await self.store.load()
        self.assertEqual(self._snapshot(), local)

    async def test_edit_err_reloads_and_reports_message(self):
        """edit against {"Err": "not found"} leaves the list alone and reloads."""
        before = self._snapshot()
        self.service.overrides["edit"] = {"Err": "not found"}
        outcome = await self.store.edit(1, "T", "C")
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.message, "not found")
        self.assertEqual(self.store.error, "not found")
        self.assertEqual(self.service.calls, ["edit", "get_notes"])
        self.assertEqual(self._snapshot(), before)

    async def test_edit_unknown_id(self):
        outcome = await self.store.edit(42, "T", "C")
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.message, "Note not found")

    async def test_unexpected_result_shape(self):
        """Anything other than Ok/Err is a protocol violation."""
        for response in ({"ok": "lowercase"}, "done", None, {"Ok": "a", "Err": "b"}):
            self.service.calls.clear()
            self.service.overrides["edit"] = response
            outcome = await self.store.edit(1, "T", "C")
            self.assertFalse(outcome.ok)
            self.assertIsInstance(outcome.error, UnexpectedResponseError)
            self.assertEqual(outcome.message, "Unexpected response format")
            self.assertEqual(self.service.calls, ["edit", "get_notes"])

    async def test_transport_failure_reloads(self):
        self.service.overrides["delete"] = NotesApiError("Could not reach the note service")
        outcome = await self.store.delete(1)
        self.assertFalse(outcome.ok)
        self.assertEqual(self.service.calls, ["delete", "get_notes"])
        self.assertEqual(len(self.store.notes), 3)

    async def test_delete_reloads_and_renumbers(self):
        """Deleting renumbers the remaining notes contiguously."""
        outcome = await self.store.delete(1)
        self.assertTrue(outcome.ok)
        self.assertEqual(self.service.calls, ["delete", "get_notes"])
        self.assertEqual(
            self._snapshot(), [(1, "Ideas", "a note app"), (2, "Todo", "ship")]
        )

    async def test_delete_reload_failure_is_reported(self):
        """Stale ids are kept after a failed reload, so the caller is told."""
        self.service.overrides["get_notes"] = NotesApiError("HTTP 503")
        outcome = await self.store.delete(1)
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.message, "Note deleted successfully")
        self.assertEqual(outcome.reload_error, "HTTP 503")
        self.assertEqual(self.store.error, "Could not reload notes: HTTP 503")
        self.assertEqual(self.service.calls, ["delete", "get_notes"])
        self.assertEqual(len(self.store.notes), 3)

    async def test_delete_requires_confirmation(self):
        asked = []

        def deny(note_id):
            asked.append(note_id)
            return False

        outcome = await self.store.delete(2, confirm=deny)
        self.assertTrue(outcome.cancelled)
        self.assertFalse(outcome.ok)
        self.assertEqual(asked, [2])
        self.assertEqual(self.service.calls, [])

        outcome = await self.store.delete(2, confirm=lambda _: True)
        self.assertTrue(outcome.ok)

    async def test_double_submit_is_rejected(self):
        """A second change while one is in flight is refused without a call."""
        gate = self.service.gates["create"] = asyncio.Event()
        first = asyncio.create_task(self.store.create("One", "first"))
        await wait_for_call(self.service, "create")
        self.assertTrue(self.store.submitting)

        self.store.error = "earlier failure"
        second = await self.store.edit(1, "Two", "second")
        self.assertFalse(second.ok)
        self.assertIsInstance(second.error, StoreBusyError)
        self.assertEqual(self.store.error, "earlier failure")

        gate.set()
        self.assertTrue((await first).ok)
        self.assertEqual(self.service.calls, ["create", "get_notes"])
        self.assertFalse(self.store.submitting)

    async def test_result_after_logout_is_discarded(self):
        """A response that lands after logout is not applied."""
        gate = self.service.gates["edit"] = asyncio.Event()
        pending = asyncio.create_task(self.store.edit(1, "Late", "late"))
        await wait_for_call(self.service, "edit")

        await self.context.logout()
        self.assertEqual(self.store.notes, [])
        gate.set()

        outcome = await pending
        self.assertTrue(outcome.stale)
        self.assertFalse(outcome.ok)
        self.assertEqual(self.store.notes, [])
        self.assertNotIn("get_notes", self.service.calls)

    async def test_load_completing_after_logout_is_discarded(self):
        gate = self.service.gates["get_notes"] = asyncio.Event()
        pending = asyncio.create_task(self.store.load())
        await wait_for_call(self.service, "get_notes")
        await self.context.logout()
        gate.set()
        outcome = await pending
        self.assertTrue(outcome.stale)
        self.assertEqual(self.store.notes, [])

    async def test_actions_need_a_session(self):
        await self.context.logout()
        self.service.calls.clear()
        for outcome in (
            await self.store.load(),
            await self.store.create("T", "C"),
            await self.store.delete(1),
        ):
            self.assertFalse(outcome.ok)
            self.assertIsInstance(outcome.error, PyiCNotesNotAuthenticated)
        self.assertEqual(self.service.calls, [])


if __name__ == "__main__":
    unittest.main()
