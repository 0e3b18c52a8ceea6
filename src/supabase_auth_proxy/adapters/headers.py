"""Header and URL transforms for the proxy hop.

Pure functions over ordered ``(name, value)`` lists so duplicate header
names survive in both directions.
"""

from __future__ import annotations

from collections.abc import Iterable

from supabase_auth_proxy._types import HeaderList, Identity
from supabase_auth_proxy.constants import (
    BLOCKED_REQUEST_HEADERS,
    DEFAULT_CONTENT_TYPE,
    HEADER_INTERNAL_KEY,
    HEADER_USER_EMAIL,
    HEADER_USER_ID,
    HOP_BY_HOP_RESPONSE_HEADERS,
    IDENTITY_HEADERS,
)


def build_forward_headers(
    incoming: Iterable[tuple[str, str]],
    identity: Identity,
    internal_key: str = "",
) -> HeaderList:
    """Derive the downstream request headers from the caller's headers.

    Everything is copied except the blocked transport/credential headers and
    any caller-supplied identity headers; the resolved identity (and the
    shared secret, when configured) is then appended.

    Args:
        incoming: The caller's headers as ``(name, value)`` pairs.
        identity: The authenticated user.
        internal_key: Shared secret for ``X-Internal-Key``; empty means unset.

    Returns:
        New list of header pairs, in incoming order followed by the added ones.
    """
    result: HeaderList = []
    has_content_type = False
    for name, value in incoming:
        lowered = name.lower()
        if lowered in BLOCKED_REQUEST_HEADERS or lowered in IDENTITY_HEADERS:
            continue
        if lowered == "content-type":
            has_content_type = True
        result.append((name, value))

    if not has_content_type:
        result.append(("Content-Type", DEFAULT_CONTENT_TYPE))
    if internal_key:
        result.append((HEADER_INTERNAL_KEY, internal_key))
    result.append((HEADER_USER_ID, identity.id))
    if identity.email:
        result.append((HEADER_USER_EMAIL, identity.email))
    return result


def build_relay_headers(downstream: Iterable[tuple[str, str]]) -> HeaderList:
    """Copy downstream response headers, dropping only connection framing."""
    return [(name, value) for name, value in downstream if name.lower() not in HOP_BY_HOP_RESPONSE_HEADERS]


def build_target_url(base_url: str, suffix: str, query: str = "") -> str:
    """Join ``suffix`` onto ``base_url`` with exactly one slash.

    The suffix is used verbatim (already percent-encoded, never re-encoded)
    and ``query`` is appended unchanged when non-empty.
    """
    url = base_url.rstrip("/") + "/" + suffix.lstrip("/")
    if query:
        url = f"{url}?{query}"
    return url
