"""Immutable process configuration, read once at startup."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from supabase_auth_proxy.constants import HEALTH_PATH
from supabase_auth_proxy.errors import ConfigError

# Environment variable names, in the order they are reported when missing
ENV_SUPABASE_URL = "SUPABASE_URL"
ENV_SERVICE_ROLE_KEY = "SUPABASE_SERVICE_ROLE_KEY"
ENV_INTERNAL_API_URL = "INTERNAL_API_URL"
ENV_INTERNAL_API_KEY = "INTERNAL_API_KEY"
ENV_HOST = "HOST"
ENV_PORT = "PORT"
ENV_AUTH_TIMEOUT = "AUTH_TIMEOUT"
ENV_UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
ENV_HEALTH_PATHS = "HEALTH_PATHS"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_AUTH_TIMEOUT = 10.0
DEFAULT_UPSTREAM_TIMEOUT = 30.0


@dataclass(frozen=True)
class ProxyConfig:
    """Settings shared read-only by every request.

    Attributes:
        supabase_url: Base URL of the Supabase project (identity provider).
        supabase_service_role_key: Privileged key sent as ``apikey`` to Supabase Auth.
        internal_api_url: Base URL of the downstream service.
        internal_api_key: Optional shared secret sent as ``X-Internal-Key``.
        host: Listen address.
        port: Listen port.
        auth_timeout: Seconds allowed for the identity-provider call.
        upstream_timeout: Seconds allowed for the downstream call.
        health_paths: Paths that answer the unauthenticated liveness probe.
    """

    supabase_url: str
    supabase_service_role_key: str
    internal_api_url: str
    internal_api_key: str = ""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    auth_timeout: float = DEFAULT_AUTH_TIMEOUT
    upstream_timeout: float = DEFAULT_UPSTREAM_TIMEOUT
    health_paths: tuple[str, ...] = (HEALTH_PATH,)

    def __post_init__(self) -> None:
        problems = []
        if not self.supabase_url:
            problems.append(f"{ENV_SUPABASE_URL} is required")
        if not self.supabase_service_role_key:
            problems.append(f"{ENV_SERVICE_ROLE_KEY} is required")
        if not self.internal_api_url:
            problems.append(f"{ENV_INTERNAL_API_URL} is required")
        if not 1 <= self.port <= 65535:
            problems.append(f"port must be in range 1-65535, got {self.port}")
        if self.auth_timeout <= 0:
            problems.append(f"auth timeout must be positive, got {self.auth_timeout}")
        if self.upstream_timeout <= 0:
            problems.append(f"upstream timeout must be positive, got {self.upstream_timeout}")
        if not self.health_paths or any(not p.startswith("/") for p in self.health_paths):
            problems.append(f"health paths must start with '/', got {list(self.health_paths)}")
        if problems:
            raise ConfigError(problems)

        # Frozen: normalise through object.__setattr__
        object.__setattr__(self, "supabase_url", self.supabase_url.rstrip("/"))
        object.__setattr__(self, "internal_api_url", self.internal_api_url.rstrip("/"))
        object.__setattr__(self, "health_paths", tuple(self.health_paths))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> ProxyConfig:
        """Build a config from environment variables.

        Keyword overrides that are not ``None`` take precedence over the
        environment (the CLI passes its parsed flags this way).

        Raises:
            ConfigError: If a mandatory value is absent or a value is malformed.
        """
        env = os.environ if environ is None else environ
        problems: list[str] = []

        def _number(name: str, convert: Any, default: Any) -> Any:
            raw = env.get(name)
            if raw is None or raw == "":
                return default
            try:
                return convert(raw)
            except ValueError:
                problems.append(f"{name} must be a number, got {raw!r}")
                return default

        values: dict[str, Any] = {
            "supabase_url": env.get(ENV_SUPABASE_URL, ""),
            "supabase_service_role_key": env.get(ENV_SERVICE_ROLE_KEY, ""),
            "internal_api_url": env.get(ENV_INTERNAL_API_URL, ""),
            "internal_api_key": env.get(ENV_INTERNAL_API_KEY, ""),
            "host": env.get(ENV_HOST) or DEFAULT_HOST,
            "port": _number(ENV_PORT, int, DEFAULT_PORT),
            "auth_timeout": _number(ENV_AUTH_TIMEOUT, float, DEFAULT_AUTH_TIMEOUT),
            "upstream_timeout": _number(ENV_UPSTREAM_TIMEOUT, float, DEFAULT_UPSTREAM_TIMEOUT),
        }
        raw_paths = env.get(ENV_HEALTH_PATHS)
        if raw_paths:
            values["health_paths"] = tuple(p.strip() for p in raw_paths.split(",") if p.strip())

        values.update({k: v for k, v in overrides.items() if v is not None})

        try:
            config = cls(**values)
        except ConfigError as exc:
            raise ConfigError(problems + exc.problems) from None
        if problems:
            raise ConfigError(problems)
        return config

    def describe(self) -> dict[str, Any]:
        """Log-safe summary: URLs are shown, secrets only as set/unset."""
        return {
            "supabase_url": self.supabase_url,
            "internal_api_url": self.internal_api_url,
            "internal_api_key": "set" if self.internal_api_key else "not set",
            "host": self.host,
            "port": self.port,
            "auth_timeout": self.auth_timeout,
            "upstream_timeout": self.upstream_timeout,
            "health_paths": list(self.health_paths),
        }
