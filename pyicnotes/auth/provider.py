"""
Identity provider flows.

A provider takes the session public key and a maximum lifetime and resolves
to a :class:`Delegation`, or raises a login exception.
"""

from __future__ import annotations

import asyncio
import json
import logging
import webbrowser
from datetime import timedelta
from typing import Callable, Optional
from urllib.parse import urlencode

import click
from pydantic import ValidationError

from pyicnotes.exceptions import PyiCNotesLoginCancelled, PyiCNotesLoginException

from .identity import Delegation

LOGGER = logging.getLogger(__name__)


class IdentityProvider:
    """Interface for an interactive identity-provider round trip."""

    url: str = ""

    async def request_delegation(
        self, session_public_key: str, max_time_to_live: timedelta
    ) -> Delegation:
        raise NotImplementedError


class BrowserIdentityProvider(IdentityProvider):
    """
    Opens the provider's authorize page in a browser and waits for the user
    to paste back the delegation JSON the page shows on success.

    ``prompt`` is called with a message and must return the pasted text; an
    empty answer, EOF, Ctrl-C or an aborted prompt counts as a cancellation.
    It runs in a worker thread so the event loop keeps serving other tasks
    while the user is away.
    """

    def __init__(
        self,
        url: str,
        prompt: Callable[[str], str],
        open_browser: Callable[[str], bool] = webbrowser.open,
    ):
        self.url = url.rstrip("/")
        self._prompt = prompt
        self._open_browser = open_browser

    def authorize_url(self, session_public_key: str, max_time_to_live: timedelta) -> str:
        query = urlencode(
            {
                "sessionPublicKey": session_public_key,
                "maxTimeToLive": int(max_time_to_live.total_seconds() * 1_000_000_000),
            }
        )
        return f"{self.url}/#authorize?{query}"

    async def request_delegation(
        self, session_public_key: str, max_time_to_live: timedelta
    ) -> Delegation:
        url = self.authorize_url(session_public_key, max_time_to_live)
        LOGGER.info("Opening identity provider at %s", self.url)
        if not self._open_browser(url):
            LOGGER.warning("Could not open a browser, visit %s manually", url)

        try:
            answer = await asyncio.to_thread(
                self._prompt, "Paste the delegation shown by the identity provider"
            )
        except (EOFError, KeyboardInterrupt, click.exceptions.Abort) as exc:
            raise PyiCNotesLoginCancelled("Login cancelled") from exc
        if not answer or not answer.strip():
            raise PyiCNotesLoginCancelled("Login cancelled")
        return parse_delegation(answer)


def parse_delegation(raw: str) -> Delegation:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise PyiCNotesLoginException("Identity provider returned invalid JSON") from exc

    if isinstance(data, dict) and "error" in data:
        raise PyiCNotesLoginException(f"Identity provider error: {data['error']}")
    try:
        return Delegation.model_validate(data)
    except ValidationError as exc:
        LOGGER.debug("Delegation validation failed: %s", exc)
        raise PyiCNotesLoginException("Identity provider returned a malformed delegation") from exc


class StaticIdentityProvider(IdentityProvider):
    """Resolves with a fixed delegation (or error) without any interaction."""

    def __init__(
        self,
        delegation: Optional[Delegation] = None,
        error: Optional[Exception] = None,
        url: str = "static://",
    ):
        self.url = url
        self._delegation = delegation
        self._error = error
        self.requests = 0

    async def request_delegation(
        self, session_public_key: str, max_time_to_live: timedelta
    ) -> Delegation:
        self.requests += 1
        if self._error is not None:
            raise self._error
        if self._delegation is None:
            raise PyiCNotesLoginCancelled("Login cancelled")
        return self._delegation
