"""Builders shared by the async test cases."""

import os
import tempfile
from datetime import timedelta

from fakes import FakeActorFactory, FakeNotesService, make_delegation

from pyicnotes.actor import ServiceAddress
from pyicnotes.auth.client import AuthClient, SessionStorage
from pyicnotes.auth.provider import StaticIdentityProvider
from pyicnotes.auth.session import IdentitySession
from pyicnotes.context import SessionContext


class ContextBuilder:
    """Temporary session storage plus a fake service, torn down by the test."""

    def __init__(self, testcase):
        tmp = tempfile.TemporaryDirectory()
        testcase.addCleanup(tmp.cleanup)
        self.session_path = os.path.join(tmp.name, "session.json")
        self.storage = SessionStorage(self.session_path)
        self.service = FakeNotesService()
        self.factory = FakeActorFactory(self.service)

    def context(self, provider=None, principal="alice") -> SessionContext:
        provider = provider or StaticIdentityProvider(make_delegation(principal))
        identity_session = IdentitySession(
            lambda: AuthClient.create(self.storage), provider, timedelta(hours=8)
        )
        return SessionContext(
            identity_session,
            self.factory,
            ServiceAddress("http://127.0.0.1:4943", "test-canister"),
        )

    async def authenticated(self, principal="alice") -> SessionContext:
        ctx = self.context(principal=principal)
        await ctx.initialize()
        assert await ctx.login(), ctx.last_error
        return ctx
