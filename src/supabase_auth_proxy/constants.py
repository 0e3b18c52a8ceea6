"""Route, header and message constants for supabase-auth-proxy."""

from __future__ import annotations

SERVICE_NAME = "Supabase Auth Proxy"

PROXY_PREFIX = "/api/"
HEALTH_PATH = "/health"

BEARER_PREFIX = "Bearer "

# Supabase Auth "get user by token" endpoint, relative to the project URL
SUPABASE_USER_ENDPOINT = "/auth/v1/user"

HEADER_USER_ID = "X-User-Id"
HEADER_USER_EMAIL = "X-User-Email"
HEADER_INTERNAL_KEY = "X-Internal-Key"

# Incoming headers never sent downstream (compared lowercase)
BLOCKED_REQUEST_HEADERS = frozenset({"authorization", "host", "content-length"})

# Headers only the proxy may set downstream; client-supplied copies are dropped
IDENTITY_HEADERS = frozenset(
    {HEADER_USER_ID.lower(), HEADER_USER_EMAIL.lower(), HEADER_INTERNAL_KEY.lower()}
)

# Connection framing owned by the serving hop, not relayed from downstream
HOP_BY_HOP_RESPONSE_HEADERS = frozenset({"transfer-encoding", "connection", "keep-alive"})

DEFAULT_CONTENT_TYPE = "application/json"
