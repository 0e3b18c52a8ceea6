"""Adapters between proxy outcomes and HTTP messages."""

from supabase_auth_proxy.adapters.errors import ErrorMapper
from supabase_auth_proxy.adapters.headers import build_forward_headers, build_relay_headers, build_target_url

__all__ = [
    "ErrorMapper",
    "build_forward_headers",
    "build_relay_headers",
    "build_target_url",
]
