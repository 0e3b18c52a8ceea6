"""Tests for BearerAuthenticator."""

from __future__ import annotations

import logging

import pytest

from supabase_auth_proxy._types import Authenticated, Identity, Rejected, RejectReason
from supabase_auth_proxy.auth.bearer import BearerAuthenticator
from supabase_auth_proxy.auth.protocol import Authenticator
from supabase_auth_proxy.errors import ResolverUnavailableError
from tests.conftest import StubResolver


@pytest.fixture
def authenticator(resolver: StubResolver) -> BearerAuthenticator:
    return BearerAuthenticator(resolver)


class TestProtocol:
    def test_is_authenticator(self, authenticator: BearerAuthenticator) -> None:
        assert isinstance(authenticator, Authenticator)


class TestHeaderParsing:
    async def test_missing_header(self, authenticator: BearerAuthenticator, resolver: StubResolver) -> None:
        outcome = await authenticator.authenticate({})
        assert outcome == Rejected(RejectReason.MISSING_HEADER)
        assert resolver.calls == []

    async def test_non_bearer_scheme_is_malformed(
        self, authenticator: BearerAuthenticator, resolver: StubResolver
    ) -> None:
        outcome = await authenticator.authenticate({"authorization": "Basic dXNlcjpwYXNz"})
        assert outcome == Rejected(RejectReason.MALFORMED_HEADER)
        assert resolver.calls == []

    async def test_prefix_is_case_sensitive(self, authenticator: BearerAuthenticator) -> None:
        outcome = await authenticator.authenticate({"authorization": "bearer good-token"})
        assert outcome == Rejected(RejectReason.MALFORMED_HEADER)

    async def test_prefix_requires_single_space(self, authenticator: BearerAuthenticator) -> None:
        outcome = await authenticator.authenticate({"authorization": "Bearer"})
        assert outcome == Rejected(RejectReason.MALFORMED_HEADER)

    async def test_header_name_lookup_is_case_insensitive(self, authenticator: BearerAuthenticator) -> None:
        outcome = await authenticator.authenticate({"AUTHORIZATION": "Bearer good-token"})
        assert isinstance(outcome, Authenticated)

    async def test_empty_token_is_left_to_resolver(
        self, authenticator: BearerAuthenticator, resolver: StubResolver
    ) -> None:
        outcome = await authenticator.authenticate({"authorization": "Bearer "})
        assert resolver.calls == [""]
        assert outcome.reason is RejectReason.INVALID_OR_EXPIRED_TOKEN

    async def test_token_is_remainder_after_prefix(
        self, authenticator: BearerAuthenticator, resolver: StubResolver
    ) -> None:
        await authenticator.authenticate({"authorization": "Bearer a.b.c Bearer x"})
        assert resolver.calls == ["a.b.c Bearer x"]


class TestResolution:
    async def test_valid_token(self, authenticator: BearerAuthenticator, identity: Identity) -> None:
        outcome = await authenticator.authenticate({"authorization": "Bearer good-token"})
        assert outcome == Authenticated(identity)

    async def test_invalid_token(self, authenticator: BearerAuthenticator) -> None:
        outcome = await authenticator.authenticate({"authorization": "Bearer forged"})
        assert isinstance(outcome, Rejected)
        assert outcome.reason is RejectReason.INVALID_OR_EXPIRED_TOKEN

    async def test_no_user(self, authenticator: BearerAuthenticator) -> None:
        outcome = await authenticator.authenticate({"authorization": "Bearer orphan-token"})
        assert outcome == Rejected(RejectReason.USER_NOT_FOUND)

    async def test_resolver_unavailable(self, authenticator: BearerAuthenticator) -> None:
        outcome = await authenticator.authenticate({"authorization": "Bearer outage-token"})
        assert isinstance(outcome, Rejected)
        assert outcome.reason is RejectReason.RESOLVER_UNAVAILABLE

    async def test_unexpected_resolver_exception_is_unavailable(self, authenticator: BearerAuthenticator) -> None:
        outcome = await authenticator.authenticate({"authorization": "Bearer crash-token"})
        assert isinstance(outcome, Rejected)
        assert outcome.reason is RejectReason.RESOLVER_UNAVAILABLE
        assert "RuntimeError" in (outcome.detail or "")

    async def test_no_caching_between_calls(self, authenticator: BearerAuthenticator, resolver: StubResolver) -> None:
        headers = {"authorization": "Bearer good-token"}
        await authenticator.authenticate(headers)
        await authenticator.authenticate(headers)
        assert resolver.calls == ["good-token", "good-token"]


class TestLogging:
    async def test_success_logged_without_token(
        self, authenticator: BearerAuthenticator, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="supabase_auth_proxy.auth.bearer"):
            await authenticator.authenticate({"authorization": "Bearer good-token"})
        assert "a@b.com" in caplog.text
        assert "good-token" not in caplog.text

    async def test_outage_logged_as_error(self, caplog: pytest.LogCaptureFixture) -> None:
        auth = BearerAuthenticator(StubResolver({"t": ResolverUnavailableError("timed out")}))
        with caplog.at_level(logging.INFO, logger="supabase_auth_proxy.auth.bearer"):
            await auth.authenticate({"authorization": "Bearer t"})
        assert any(r.levelno == logging.ERROR for r in caplog.records)
