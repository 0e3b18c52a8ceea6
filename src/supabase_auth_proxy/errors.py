"""Exception hierarchy for supabase-auth-proxy."""

from __future__ import annotations


class ProxyError(Exception):
    """Base class for all errors raised by supabase-auth-proxy."""


class ConfigError(ProxyError):
    """Startup configuration is missing or invalid.

    Attributes:
        problems: One human-readable line per offending setting.
    """

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))


class InvalidTokenError(ProxyError):
    """The identity provider explicitly rejected the token."""


class ResolverUnavailableError(ProxyError):
    """The identity provider could not be asked (network, timeout, 5xx)."""
