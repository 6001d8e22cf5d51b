"""
Shared infrastructure for the VegasVault backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factories
- exceptions: Base exception classes
- repository: Base class for service-role repositories

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import get_supabase_client, create_async_supabase_client, reset_client_cache
from .exceptions import (
    VaultError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
)

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "create_async_supabase_client",
    "reset_client_cache",
    "VaultError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "ExternalServiceError",
]
