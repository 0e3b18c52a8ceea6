"""ASGI server components: forwarder, routes and application factory."""

from supabase_auth_proxy.server.app import create_app
from supabase_auth_proxy.server.forwarder import Forwarder

__all__ = ["create_app", "Forwarder"]
