"""Request-scoped value types shared by the authenticator and the forwarder."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

# Ordered header pairs; names may repeat (e.g. several Set-Cookie lines)
HeaderList = list[tuple[str, str]]


@dataclass(frozen=True)
class Identity:
    """A user resolved from a bearer token.

    Attributes:
        id: Opaque unique identifier of the user.
        email: Email label, if the identity provider has one.
        attrs: Remaining fields of the provider's user record.
    """

    id: str
    email: str | None = None
    attrs: Mapping[str, Any] = field(default_factory=dict)


class RejectReason(str, enum.Enum):
    """Why a request failed authentication."""

    MISSING_HEADER = "missing_header"
    MALFORMED_HEADER = "malformed_header"
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"
    USER_NOT_FOUND = "user_not_found"
    RESOLVER_UNAVAILABLE = "resolver_unavailable"


class ForwardFailure(str, enum.Enum):
    """Why the downstream call produced no response at all."""

    CONNECTION_REFUSED = "connection_refused"
    TIMEOUT = "timeout"
    UNKNOWN_TRANSPORT_ERROR = "unknown_transport_error"


@dataclass(frozen=True)
class Authenticated:
    identity: Identity


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason
    detail: str | None = None


@dataclass(frozen=True)
class Relayed:
    """A downstream response to be copied back to the caller."""

    status: int
    headers: HeaderList
    body: bytes


@dataclass(frozen=True)
class Failed:
    reason: ForwardFailure
    detail: str | None = None


AuthOutcome = Union[Authenticated, Rejected]
ForwardOutcome = Union[Relayed, Failed]
