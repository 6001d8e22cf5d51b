"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.
"""

from typing import TYPE_CHECKING

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.billing.interfaces import IBillingService
    from modules.billing.repository import ProfileRepository


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached as singletons
    within the container. Use reset() to clear them for testing.
    """

    def __init__(self) -> None:
        self._profile_repository: "ProfileRepository | None" = None
        self._billing_service: "IBillingService | None" = None

    @property
    def profile_repository(self) -> "ProfileRepository":
        """Get the service-role profile repository."""
        if self._profile_repository is None:
            from modules.billing.repository import ProfileRepository
            from shared.database import get_supabase_client
            self._profile_repository = ProfileRepository(get_supabase_client())
        return self._profile_repository

    @property
    def billing(self) -> "IBillingService":
        """Get the billing service instance."""
        if self._billing_service is None:
            from modules.billing.service import BillingService
            self._billing_service = BillingService(self.profile_repository)
        return self._billing_service

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._profile_repository = None
        self._billing_service = None


# Module-level container singleton
_container: "ServiceContainer | None" = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() creates a fresh container.
    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_billing_service() -> "IBillingService":
    """FastAPI dependency for billing service."""
    return get_container().billing
