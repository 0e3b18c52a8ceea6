"""ErrorMapper: authentication and forwarding outcomes → JSON error responses."""

from __future__ import annotations

from typing import NamedTuple

from starlette.responses import JSONResponse

from supabase_auth_proxy._types import Failed, ForwardFailure, Rejected, RejectReason


class ErrorSpec(NamedTuple):
    status: int
    error: str
    message: str


_MISSING_OR_MALFORMED = ErrorSpec(
    401, "Unauthorized", "Missing or invalid Authorization header. Expected: Bearer <token>"
)

_REJECTIONS: dict[RejectReason, ErrorSpec] = {
    RejectReason.MISSING_HEADER: _MISSING_OR_MALFORMED,
    RejectReason.MALFORMED_HEADER: _MISSING_OR_MALFORMED,
    RejectReason.INVALID_OR_EXPIRED_TOKEN: ErrorSpec(401, "Unauthorized", "Invalid or expired token"),
    RejectReason.USER_NOT_FOUND: ErrorSpec(401, "Unauthorized", "User not found"),
    RejectReason.RESOLVER_UNAVAILABLE: ErrorSpec(500, "Authentication failed", "Internal authentication error"),
}

_FAILURES: dict[ForwardFailure, ErrorSpec] = {
    ForwardFailure.CONNECTION_REFUSED: ErrorSpec(503, "Service Unavailable", "Internal API is not reachable"),
    ForwardFailure.TIMEOUT: ErrorSpec(504, "Gateway Timeout", "Internal API request timed out"),
    ForwardFailure.UNKNOWN_TRANSPORT_ERROR: ErrorSpec(
        500, "Internal Server Error", "An error occurred while proxying the request"
    ),
}

NOT_FOUND = ErrorSpec(404, "Not Found", "Invalid endpoint. API routes should start with /api/")
INTERNAL_ERROR = ErrorSpec(500, "Internal Server Error", "An unexpected error occurred")

# Every enum member must map to a status code
assert set(_REJECTIONS) == set(RejectReason), "unmapped RejectReason"
assert set(_FAILURES) == set(ForwardFailure), "unmapped ForwardFailure"


class ErrorMapper:
    """Maps tagged failures to client-visible ``{error, message}`` responses.

    Provider and transport details carried on the outcomes are never copied
    into the response body.
    """

    def for_rejection(self, outcome: Rejected) -> JSONResponse:
        spec = _REJECTIONS[outcome.reason]
        headers = {"WWW-Authenticate": "Bearer"} if spec.status == 401 else None
        return self._respond(spec, headers)

    def for_failure(self, outcome: Failed) -> JSONResponse:
        return self._respond(_FAILURES[outcome.reason])

    def not_found(self) -> JSONResponse:
        return self._respond(NOT_FOUND)

    def internal_error(self) -> JSONResponse:
        return self._respond(INTERNAL_ERROR)

    @staticmethod
    def _respond(spec: ErrorSpec, headers: dict[str, str] | None = None) -> JSONResponse:
        return JSONResponse(
            {"error": spec.error, "message": spec.message},
            status_code=spec.status,
            headers=headers,
        )
