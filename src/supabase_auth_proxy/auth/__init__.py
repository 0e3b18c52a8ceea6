"""Authentication support for supabase-auth-proxy."""

from supabase_auth_proxy.auth.bearer import BearerAuthenticator
from supabase_auth_proxy.auth.protocol import Authenticator, UserResolver
from supabase_auth_proxy.auth.supabase import SupabaseUserResolver

__all__ = [
    "Authenticator",
    "UserResolver",
    "BearerAuthenticator",
    "SupabaseUserResolver",
]
