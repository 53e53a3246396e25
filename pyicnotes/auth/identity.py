"""Identity, principal and delegation types."""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ANONYMOUS_PRINCIPAL = "2vxsx-fae"


@dataclass(frozen=True)
class Principal:
    """Stable textual identifier the service attributes calls to."""

    text: str

    @property
    def is_anonymous(self) -> bool:
        return self.text == ANONYMOUS_PRINCIPAL

    def __str__(self) -> str:
        return self.text


class Delegation(BaseModel):
    """What the identity provider hands back after a successful login."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    principal: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1, alias="delegation")
    expiration: datetime

    @field_validator("expiration")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expiration


@dataclass(frozen=True)
class Identity:
    """
    Opaque credential able to sign remote calls.

    Pairs the locally generated session key with the delegation the provider
    issued for it. The delegation itself is never inspected beyond its
    principal and expiry.
    """

    session_key: str
    delegation: Delegation

    @property
    def principal(self) -> Principal:
        return Principal(self.delegation.principal)

    def sign(self, body: bytes) -> str:
        return hmac.new(
            bytes.fromhex(self.session_key), body, hashlib.sha256
        ).hexdigest()

    def request_headers(self, body: bytes) -> Dict[str, str]:
        return {
            "Authorization": f"Delegation {self.delegation.token}",
            "X-Session-Key": public_key_for(self.session_key),
            "X-Signature": self.sign(body),
        }


def public_key_for(session_key: str) -> str:
    """Derive the shareable key id the provider binds the delegation to."""
    return hashlib.sha256(bytes.fromhex(session_key)).hexdigest()
