"""IdentitySession: owns the current identity and its lifecycle."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Callable, Optional

from pyicnotes.exceptions import (
    PyiCNotesException,
    PyiCNotesLoginCancelled,
    PyiCNotesLoginException,
)

from .client import AuthClient
from .identity import Identity, Principal
from .provider import IdentityProvider

LOGGER = logging.getLogger(__name__)


class IdentitySession:
    """
    Wraps the local :class:`AuthClient`.

    ``initialize`` only reads local storage and never raises. ``login`` runs
    the provider flow and raises a login exception on failure, leaving the
    session unauthenticated. ``logout`` is idempotent.
    """

    def __init__(
        self,
        client_factory: Callable[[], AuthClient],
        provider: IdentityProvider,
        max_time_to_live: timedelta,
    ):
        self._client_factory = client_factory
        self._provider = provider
        self._max_time_to_live = max_time_to_live
        self._client: Optional[AuthClient] = None
        self.identity: Optional[Identity] = None
        self.initializing = False

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def principal(self) -> Optional[Principal]:
        return self.identity.principal if self.identity else None

    async def initialize(self) -> Optional[Identity]:
        self.initializing = True
        try:
            # Reading the session file is blocking disk I/O.
            self._client = await asyncio.to_thread(self._client_factory)
            self.identity = self._client.get_identity()
        except Exception:
            LOGGER.exception("Error initializing authentication")
            self.identity = None
        finally:
            self.initializing = False

        if self.identity:
            LOGGER.info("Restored session for %s", self.identity.principal)
        else:
            LOGGER.info("No valid stored session")
        return self.identity

    async def login(self) -> Identity:
        if self._client is None:
            raise PyiCNotesLoginException("Authentication client is not initialized")
        try:
            identity = await self._client.login(self._provider, self._max_time_to_live)
        except PyiCNotesLoginCancelled:
            LOGGER.info("Login cancelled by user")
            raise
        except PyiCNotesLoginException as exc:
            LOGGER.error("Login failed: %s", exc)
            raise
        except (PyiCNotesException, OSError) as exc:
            LOGGER.error("Error during login: %s", exc)
            raise PyiCNotesLoginException(f"Login failed: {exc}") from exc

        self.identity = identity
        LOGGER.info("Logged in as %s", identity.principal)
        return identity

    async def logout(self) -> None:
        self.identity = None
        if self._client is None:
            return
        await asyncio.to_thread(self._client.logout)
        LOGGER.info("Logged out")
