"""
SessionContext: the process-wide session state machine.

    UNINITIALIZED -> INITIALIZING -> AUTHENTICATED | UNAUTHENTICATED

``login()`` moves UNAUTHENTICATED to AUTHENTICATED and is a no-op when already
authenticated; ``logout()`` moves AUTHENTICATED to UNAUTHENTICATED and is a
no-op otherwise. A failed login stays UNAUTHENTICATED.

The current state is published as an immutable :class:`Session` snapshot that
is replaced on every transition. Consumers compare snapshots by identity to
tell whether a response still belongs to the session that issued the call.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from pyicnotes.actor import ActorFactory, AuthenticatedActor, ServiceAddress
from pyicnotes.auth.identity import Identity, Principal
from pyicnotes.auth.session import IdentitySession
from pyicnotes.exceptions import PyiCNotesException, PyiCNotesLoginException

LOGGER = logging.getLogger(__name__)


class SessionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True, eq=False)
class Session:
    state: SessionState
    identity: Optional[Identity] = None
    principal: Optional[Principal] = None
    actor: Optional[AuthenticatedActor] = None

    @property
    def authenticated(self) -> bool:
        return self.identity is not None and self.actor is not None

    @property
    def initializing(self) -> bool:
        return self.state is SessionState.INITIALIZING


SessionListener = Callable[[Session, Session], None]


class SessionContext:
    """Composes an :class:`IdentitySession` with an :class:`ActorFactory`."""

    def __init__(
        self,
        identity_session: IdentitySession,
        actor_factory: ActorFactory,
        service_address: ServiceAddress,
    ):
        self._identity_session = identity_session
        self._actor_factory = actor_factory
        self._service_address = service_address
        self._session = Session(SessionState.UNINITIALIZED)
        self._lock = asyncio.Lock()
        self._listeners: List[SessionListener] = []
        self.last_error: Optional[Exception] = None

    # ------------------------------ State ----------------------------------

    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def is_authenticated(self) -> bool:
        return self._session.authenticated

    @property
    def is_loading(self) -> bool:
        return self._session.state in (
            SessionState.UNINITIALIZED,
            SessionState.INITIALIZING,
        )

    @property
    def principal(self) -> Optional[Principal]:
        return self._session.principal

    @property
    def authenticated_actor(self) -> Optional[AuthenticatedActor]:
        return self._session.actor

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def _publish(self, session: Session) -> None:
        previous, self._session = self._session, session
        LOGGER.debug("Session %s -> %s", previous.state.value, session.state.value)
        for listener in list(self._listeners):
            try:
                listener(previous, session)
            except Exception:
                LOGGER.exception("Session listener failed")

    # --------------------------- Transitions -------------------------------

    async def _authenticated_session(self, identity: Identity) -> Session:
        actor = self._actor_factory.build(identity, self._service_address)
        principal = identity.principal
        try:
            principal = await actor.get_caller_principal()
        except Exception as exc:
            LOGGER.warning("Could not fetch caller principal: %s", exc)
        return Session(SessionState.AUTHENTICATED, identity, principal, actor)

    async def initialize(self) -> Session:
        """Look for a stored session. Runs once; never raises."""
        async with self._lock:
            if self._session.state is not SessionState.UNINITIALIZED:
                return self._session
            self._publish(Session(SessionState.INITIALIZING))
            identity = await self._identity_session.initialize()
            if identity is None:
                self._publish(Session(SessionState.UNAUTHENTICATED))
            else:
                self._publish(await self._authenticated_session(identity))
            return self._session

    async def login(self) -> bool:
        """Run the login flow. Failures are returned, and kept in ``last_error``."""
        if self._session.state is SessionState.UNINITIALIZED:
            await self.initialize()
        async with self._lock:
            if self._session.authenticated:
                return True
            self.last_error = None
            try:
                identity = await self._identity_session.login()
            except PyiCNotesException as exc:
                self.last_error = exc
                return False
            except Exception as exc:
                LOGGER.error("Unexpected error during login: %s", exc)
                self.last_error = PyiCNotesLoginException(f"Login failed: {exc}")
                return False
            self._publish(await self._authenticated_session(identity))
            return True

    async def logout(self) -> bool:
        """Drop the identity and its actor. Idempotent."""
        if self._session.state is SessionState.UNINITIALIZED:
            await self.initialize()
        async with self._lock:
            actor = self._session.actor
            self.last_error = None
            if self._session.state is not SessionState.UNAUTHENTICATED:
                self._publish(Session(SessionState.UNAUTHENTICATED))
            if actor is not None:
                actor.close()
            try:
                await self._identity_session.logout()
            except (PyiCNotesException, OSError) as exc:
                LOGGER.error("Error during logout: %s", exc)
                self.last_error = exc
                return False
            return True
