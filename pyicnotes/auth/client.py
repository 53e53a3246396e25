"""
Local authentication client.

Keeps the session key and the delegation in a JSON file so a still-valid
login survives restarts. Nothing here talks to the note service.
"""

from __future__ import annotations

import json
import logging
import os
import secrets
from datetime import timedelta
from typing import Any, Dict, Optional

from pydantic import ValidationError

from pyicnotes.exceptions import PyiCNotesLoginException

from .identity import Delegation, Identity, public_key_for
from .provider import IdentityProvider

LOGGER = logging.getLogger(__name__)

KEY_STORAGE_KEY = "identity"
DELEGATION_STORAGE_KEY = "delegation"
SESSION_KEY_BYTES = 32


def is_session_key(value: Any) -> bool:
    if not isinstance(value, str) or len(value) != SESSION_KEY_BYTES * 2:
        return False
    try:
        bytes.fromhex(value)
    except ValueError:
        return False
    return True


class SessionStorage:
    """Tiny key/value store persisted as a single JSON file (mode 0600)."""

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.chmod(self.path, 0o600)

    def get(self, key: str) -> Optional[Any]:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class AuthClient:
    """Holds the session key and, once logged in, the delegation for it."""

    def __init__(self, storage: SessionStorage, session_key: str):
        self._storage = storage
        self._session_key = session_key
        self._identity: Optional[Identity] = None

    @classmethod
    def create(cls, storage: SessionStorage) -> "AuthClient":
        """Load the stored session key, generating one on first use."""
        key = storage.get(KEY_STORAGE_KEY)
        if not is_session_key(key):
            if key is not None:
                # A delegation is bound to the key it was issued for.
                LOGGER.warning("Discarding unreadable session key")
                storage.remove(DELEGATION_STORAGE_KEY)
            key = secrets.token_hex(SESSION_KEY_BYTES)
            storage.set(KEY_STORAGE_KEY, key)
            LOGGER.debug("Generated new session key")
        client = cls(storage, key)
        client._restore()
        return client

    @property
    def session_public_key(self) -> str:
        return public_key_for(self._session_key)

    def _restore(self) -> None:
        raw = self._storage.get(DELEGATION_STORAGE_KEY)
        if raw is None:
            return
        try:
            delegation = Delegation.model_validate(raw)
        except ValidationError:
            LOGGER.warning("Discarding unreadable stored delegation")
            self._storage.remove(DELEGATION_STORAGE_KEY)
            return
        if delegation.is_expired():
            LOGGER.info("Stored delegation for %s has expired", delegation.principal)
            self._storage.remove(DELEGATION_STORAGE_KEY)
            return
        self._identity = Identity(self._session_key, delegation)

    def is_authenticated(self) -> bool:
        return self._identity is not None and not self._identity.delegation.is_expired()

    def get_identity(self) -> Optional[Identity]:
        return self._identity if self.is_authenticated() else None

    async def login(
        self, provider: IdentityProvider, max_time_to_live: timedelta
    ) -> Identity:
        delegation = await provider.request_delegation(
            self.session_public_key, max_time_to_live
        )
        if delegation.is_expired():
            raise PyiCNotesLoginException("Identity provider returned an expired delegation")
        self._storage.set(
            DELEGATION_STORAGE_KEY, delegation.model_dump(mode="json", by_alias=True)
        )
        self._identity = Identity(self._session_key, delegation)
        return self._identity

    def logout(self) -> None:
        """Forget the delegation and rotate the session key."""
        if self._identity is None and self._storage.get(DELEGATION_STORAGE_KEY) is None:
            return
        self._identity = None
        self._storage.remove(DELEGATION_STORAGE_KEY)
        self._session_key = secrets.token_hex(32)
        self._storage.set(KEY_STORAGE_KEY, self._session_key)
