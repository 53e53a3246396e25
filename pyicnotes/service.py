"""Wires settings, authentication, the actor factory and the note store."""

from __future__ import annotations

import logging
from typing import Optional

from pyicnotes.actor import ActorFactory, ServiceAddress
from pyicnotes.auth.client import AuthClient, SessionStorage
from pyicnotes.auth.provider import IdentityProvider
from pyicnotes.auth.session import IdentitySession
from pyicnotes.config import Settings
from pyicnotes.context import SessionContext
from pyicnotes.exceptions import PyiCNotesException
from pyicnotes.store import NoteStore

LOGGER = logging.getLogger(__name__)


class PyiCNotesService:
    """
    Entry point for the notes client.

    One instance owns one :class:`SessionContext` for its whole lifetime;
    pass ``service.context`` to anything that needs the session.

    Usage:
        service = PyiCNotesService(Settings.load(), provider)
        await service.initialize()
        if not service.context.is_authenticated:
            await service.context.login()
        await service.notes.load()
    """

    def __init__(
        self,
        settings: Settings,
        provider: IdentityProvider,
        actor_factory: Optional[ActorFactory] = None,
    ):
        if not settings.canister_id:
            raise PyiCNotesException(
                "No canister id configured; set PYICNOTES_CANISTER_ID"
            )
        self.settings = settings
        storage = SessionStorage(settings.session_path)
        identity_session = IdentitySession(
            lambda: AuthClient.create(storage),
            provider,
            settings.max_time_to_live,
        )
        self.context = SessionContext(
            identity_session,
            actor_factory or ActorFactory(timeout=settings.request_timeout),
            ServiceAddress(settings.service_host, settings.canister_id),
        )
        self.notes = NoteStore(self.context)
        LOGGER.debug(
            "Service configured for %s (%s)", settings.service_host, settings.network
        )

    async def initialize(self) -> None:
        await self.context.initialize()

    @property
    def account_name(self) -> str:
        principal = self.context.principal
        return str(principal) if principal else ""
