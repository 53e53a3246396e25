"""
Authenticated actor for the note service.

An actor is bound to exactly one :class:`Identity`. Every call it makes is
signed with that identity, so the service attributes it to the identity's
principal. Building an actor performs no I/O; the HTTP session is opened on
the first call.

Wire format: ``POST {host}/api/canister/{canister_id}/{query|call}/{method}``
with a JSON body ``{"args": [...]}``. The response body is the method's
return value encoded as JSON.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import requests

from pyicnotes.auth.identity import Identity, Principal
from pyicnotes.exceptions import (
    NotesApiError,
    NotesAuthError,
    NotesRateLimited,
    UnexpectedResponseError,
)
from pyicnotes.models import Note, parse_notes

LOGGER = logging.getLogger(__name__)

QUERY = "query"
CALL = "call"


@dataclass(frozen=True)
class ServiceAddress:
    host: str
    canister_id: str

    def endpoint(self, kind: str, method: str) -> str:
        return f"{self.host.rstrip('/')}/api/canister/{self.canister_id}/{kind}/{method}"


class _ServiceTransport:
    """Blocking JSON transport; status codes are mapped onto NotesError types."""

    def __init__(
        self,
        address: ServiceAddress,
        identity: Identity,
        session_factory: Callable[[], Any] = requests.Session,
        timeout: Optional[float] = None,
    ):
        self._address = address
        self._identity = identity
        self._session_factory = session_factory
        self._session: Optional[Any] = None
        self._timeout = timeout

    @property
    def session(self) -> Any:
        if self._session is None:
            self._session = self._session_factory()
            LOGGER.debug("Opened HTTP session for %s", self._address.host)
        return self._session

    def post(self, kind: str, method: str, args: List[Any]) -> Any:
        url = self._address.endpoint(kind, method)
        body = json.dumps({"args": args}).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        headers.update(self._identity.request_headers(body))

        LOGGER.debug("POST %s", url)
        try:
            resp = self.session.post(
                url, data=body, headers=headers, timeout=self._timeout
            )
        except requests.RequestException as exc:
            LOGGER.error("POST to %s failed: %s", url, exc)
            raise NotesApiError(f"Could not reach the note service: {exc}") from exc
        code = getattr(resp, "status_code", 0)
        LOGGER.debug("POST to %s returned status %d", url, code)
        if code >= 400:
            if code in (401, 403):
                LOGGER.error("%s rejected credentials: %d", method, code)
                raise NotesAuthError(f"HTTP {code}: unauthorized")
            if code == 429:
                retry_after = None
                hdr = resp.headers.get("Retry-After")
                if hdr:
                    try:
                        retry_after = float(hdr)
                    except ValueError:
                        retry_after = None
                LOGGER.warning("%s was rate-limited. Retry after: %s", method, retry_after)
                raise NotesRateLimited("HTTP 429: rate limited", retry_after=retry_after)
            try:
                payload = resp.json()
            except ValueError:
                payload = getattr(resp, "text", None)
            LOGGER.error("%s failed with code %d", method, code)
            raise NotesApiError(f"HTTP {code}", payload=payload)
        try:
            return resp.json()
        except ValueError as exc:
            LOGGER.error("Failed to parse JSON response from %s", url)
            raise NotesApiError(
                "Invalid JSON response", payload=getattr(resp, "text", None)
            ) from exc

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None


class AuthenticatedActor:
    """Remote-call capability for one identity against one service."""

    def __init__(self, identity: Identity, transport: _ServiceTransport):
        self.identity = identity
        self._transport = transport

    async def _query(self, method: str, *args: Any) -> Any:
        return await asyncio.to_thread(self._transport.post, QUERY, method, list(args))

    async def _call(self, method: str, *args: Any) -> Any:
        return await asyncio.to_thread(self._transport.post, CALL, method, list(args))

    async def get_notes(self) -> List[Note]:
        return parse_notes(await self._query("get_notes"))

    async def create(self, title: str, content: str) -> Any:
        return await self._call("create", title, content)

    async def edit(self, note_id: int, title: str, content: str) -> Any:
        return await self._call("edit", note_id, title, content)

    async def delete(self, note_id: int) -> Any:
        return await self._call("delete", note_id)

    async def get_caller_principal(self) -> Principal:
        payload = await self._query("get_caller_principal")
        if isinstance(payload, dict):
            payload = payload.get("principal")
        if not isinstance(payload, str) or not payload:
            raise UnexpectedResponseError("Unexpected principal format", payload=payload)
        return Principal(payload)

    async def is_user_authenticated(self) -> bool:
        payload = await self._query("is_user_authenticated")
        if not isinstance(payload, bool):
            raise UnexpectedResponseError(payload=payload)
        return payload

    def close(self) -> None:
        self._transport.close()


class ActorFactory:
    """Builds one actor per identity; pure construction."""

    def __init__(
        self,
        session_factory: Callable[[], Any] = requests.Session,
        timeout: Optional[float] = None,
    ):
        self._session_factory = session_factory
        self._timeout = timeout

    def build(self, identity: Identity, address: ServiceAddress) -> AuthenticatedActor:
        LOGGER.debug(
            "Building actor for %s against canister %s",
            identity.principal,
            address.canister_id,
        )
        transport = _ServiceTransport(
            address, identity, session_factory=self._session_factory, timeout=self._timeout
        )
        return AuthenticatedActor(identity, transport)
