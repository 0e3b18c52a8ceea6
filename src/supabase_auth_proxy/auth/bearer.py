"""Bearer-token authenticator backed by a UserResolver."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from supabase_auth_proxy._types import Authenticated, AuthOutcome, Rejected, RejectReason
from supabase_auth_proxy.auth.protocol import Authenticator, UserResolver
from supabase_auth_proxy.constants import BEARER_PREFIX
from supabase_auth_proxy.errors import InvalidTokenError, ResolverUnavailableError

logger = logging.getLogger(__name__)


def _find_header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive lookup that also works on plain dicts."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


class BearerAuthenticator:
    """Extracts ``Authorization: Bearer <token>`` and resolves it to an Identity.

    Args:
        resolver: The identity provider used to resolve tokens.
    """

    def __init__(self, resolver: UserResolver) -> None:
        self._resolver = resolver

    async def authenticate(self, headers: Mapping[str, str]) -> AuthOutcome:
        auth_header = _find_header(headers, "authorization")
        if auth_header is None:
            logger.warning("Rejected request: missing Authorization header")
            return Rejected(RejectReason.MISSING_HEADER)

        if not auth_header.startswith(BEARER_PREFIX):
            logger.warning("Rejected request: Authorization header is not a Bearer credential")
            return Rejected(RejectReason.MALFORMED_HEADER)

        # An empty token is left for the provider to reject
        token = auth_header[len(BEARER_PREFIX) :]

        try:
            identity = await self._resolver.resolve_user(token)
        except InvalidTokenError as exc:
            logger.warning("Token validation failed: %s", exc)
            return Rejected(RejectReason.INVALID_OR_EXPIRED_TOKEN, str(exc))
        except ResolverUnavailableError as exc:
            logger.error("Identity provider unavailable: %s", exc)
            return Rejected(RejectReason.RESOLVER_UNAVAILABLE, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error while resolving token")
            return Rejected(RejectReason.RESOLVER_UNAVAILABLE, f"{type(exc).__name__}: {exc}")

        if identity is None:
            logger.warning("Rejected request: no user found for token")
            return Rejected(RejectReason.USER_NOT_FOUND)

        logger.info("Authenticated user: %s (%s)", identity.email, identity.id)
        return Authenticated(identity)


# Verify protocol compliance at import time
assert isinstance(BearerAuthenticator.__new__(BearerAuthenticator), Authenticator)
