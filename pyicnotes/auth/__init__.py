"""Authentication: local auth client, identity provider flows, session."""

from .client import AuthClient, SessionStorage
from .identity import ANONYMOUS_PRINCIPAL, Delegation, Identity, Principal
from .provider import BrowserIdentityProvider, IdentityProvider, StaticIdentityProvider
from .session import IdentitySession

__all__ = [
    "ANONYMOUS_PRINCIPAL",
    "AuthClient",
    "BrowserIdentityProvider",
    "Delegation",
    "Identity",
    "IdentityProvider",
    "IdentitySession",
    "Principal",
    "SessionStorage",
    "StaticIdentityProvider",
]
