"""
Database client factory for Supabase.

Provides the service-role client (for webhook writes bypassing RLS) and the
async anon-key client that backs the live session and data gateway.
"""

from typing import Optional
from supabase import create_client, acreate_client, Client, AsyncClient

from .config import get_settings

# Module-level client cache
_service_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Get Supabase client with service role (bypasses RLS).

    Use this for backend operations that must update any user's profile,
    such as settling a Stripe webhook.

    Returns:
        Supabase client configured with service role key
    """
    global _service_client

    if _service_client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables."
            )
        _service_client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


async def create_async_supabase_client() -> AsyncClient:
    """
    Create an async Supabase client authenticated with the anon key.

    The client keeps its own session storage, auth listeners and realtime
    socket, so each gateway owns exactly one. Row Level Security applies.

    Returns:
        AsyncClient configured with the anon key
    """
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_anon_key:
        raise RuntimeError(
            "Supabase configuration missing. "
            "Set SUPABASE_URL and SUPABASE_ANON_KEY environment variables."
        )

    return await acreate_client(
        settings.supabase_url,
        settings.supabase_anon_key,
    )


def reset_client_cache() -> None:
    """
    Reset the cached database client.

    Useful for testing or when configuration changes.
    """
    global _service_client
    _service_client = None
