"""Resolver and authenticator protocols for pluggable identity backends."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from supabase_auth_proxy._types import AuthOutcome, Identity


@runtime_checkable
class UserResolver(Protocol):
    """Protocol for identity providers that resolve a bearer token to a user.

    Implementations raise ``InvalidTokenError`` when the provider explicitly
    rejects the token and ``ResolverUnavailableError`` when the provider
    cannot be reached. Returning ``None`` means the provider answered
    without error but had no user for the token.
    """

    async def resolve_user(self, token: str) -> Identity | None:
        """Resolve ``token`` to the user it belongs to."""
        ...


@runtime_checkable
class Authenticator(Protocol):
    """Protocol for request authenticators.

    Implementations inspect request headers and return a tagged
    ``AuthOutcome``; they never raise for credential problems.
    """

    async def authenticate(self, headers: Mapping[str, str]) -> AuthOutcome:
        """Authenticate a request from its headers.

        Args:
            headers: Request headers; lookups must be case-insensitive.

        Returns:
            ``Authenticated`` with the resolved identity, or ``Rejected``.
        """
        ...
