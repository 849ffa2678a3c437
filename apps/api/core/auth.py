"""Authentication dependencies.

Provides both user-scoped and service-role Supabase clients. Session
management itself belongs to Supabase; the gateway only forwards the
caller's JWT and reads the user id back from it.
"""

from fastapi import Depends, Header
from supabase import Client, create_client

from apps.api.core.config import Settings, get_settings
from apps.api.core.errors import AuthenticationError


async def get_user_token(authorization: str = Header(default="")) -> str:
    """Extract Bearer token from Authorization header.

    Returns the raw JWT string.
    """
    if not authorization.startswith("Bearer "):
        raise AuthenticationError(
            "Missing or invalid Authorization header. Expected: Bearer <token>"
        )

    token = authorization[7:].strip()
    if not token:
        raise AuthenticationError("Missing bearer token")
    return token


async def get_user_client(
    token: str = Depends(get_user_token),
    settings: Settings = Depends(get_settings),
) -> Client:
    """Provide a Supabase client authenticated with the user's JWT.

    RLS policies will be enforced for all queries.

    Note: We pass an empty string as the refresh token because the API
    gateway is stateless; each request carries a fresh token from the
    client. The backend never refreshes tokens.
    """
    client = create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
    client.auth.set_session(token, "")
    return client


async def get_current_user_id(client: Client = Depends(get_user_client)) -> str:
    """Resolve the owner id of the request from the user's JWT."""
    user_response = client.auth.get_user()
    if not user_response or not user_response.user:
        raise AuthenticationError("Invalid bearer token")
    return user_response.user.id


def get_service_client(settings: Settings) -> Client:
    """Provide a service-role Supabase client (bypasses RLS).

    Used by the import tool and the readiness probe.
    """
    if not settings.SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_KEY is not configured")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
