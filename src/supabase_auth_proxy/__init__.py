"""supabase-auth-proxy: bearer-token authentication gateway in front of an internal API."""

from __future__ import annotations

import logging

import uvicorn

from supabase_auth_proxy._types import (
    Authenticated,
    AuthOutcome,
    Failed,
    ForwardFailure,
    ForwardOutcome,
    Identity,
    Rejected,
    RejectReason,
    Relayed,
)
from supabase_auth_proxy.adapters.errors import ErrorMapper
from supabase_auth_proxy.auth import Authenticator, BearerAuthenticator, SupabaseUserResolver, UserResolver
from supabase_auth_proxy.config import ProxyConfig
from supabase_auth_proxy.constants import SERVICE_NAME
from supabase_auth_proxy.errors import ConfigError, InvalidTokenError, ProxyError, ResolverUnavailableError
from supabase_auth_proxy.server import Forwarder, create_app

__all__ = [
    # Public API
    "serve",
    "create_app",
    "ProxyConfig",
    # Pipeline building blocks
    "Authenticator",
    "UserResolver",
    "BearerAuthenticator",
    "SupabaseUserResolver",
    "Forwarder",
    "ErrorMapper",
    # Outcomes
    "Identity",
    "AuthOutcome",
    "Authenticated",
    "Rejected",
    "RejectReason",
    "ForwardOutcome",
    "Relayed",
    "Failed",
    "ForwardFailure",
    # Errors
    "ProxyError",
    "ConfigError",
    "InvalidTokenError",
    "ResolverUnavailableError",
]

__version__ = "1.0.0"

logger = logging.getLogger(__name__)

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def serve(config: ProxyConfig, *, log_level: str | None = None) -> None:
    """Run the proxy with uvicorn until the process is stopped.

    Args:
        config: Validated process configuration.
        log_level: Set the log level for the supabase_auth_proxy logger (e.g. "DEBUG").
    """
    if log_level is not None:
        if log_level.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(f"Unknown log level: {log_level!r}. Valid: {sorted(_VALID_LOG_LEVELS)}")
        logging.getLogger("supabase_auth_proxy").setLevel(getattr(logging, log_level.upper()))

    app = create_app(config)

    logger.info("Starting %s v%s on %s:%d", SERVICE_NAME, __version__, config.host, config.port)
    logger.info("Health check: http://%s:%d%s", config.host, config.port, config.health_paths[0])

    uvicorn.run(app, host=config.host, port=config.port, log_level=(log_level or "info").lower())
