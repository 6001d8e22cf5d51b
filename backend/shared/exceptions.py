"""
Error hierarchy for the VegasVault backend.

Module errors (bad credentials, Stripe failures) subclass one
of these bases. Routes turn any of them into an HTTP error body with
``to_dict()``; the sync components catch them by base class to decide
between degrading and propagating.
"""

from typing import Optional, Any


class VaultError(Exception):
    """
    Root of every error the backend raises on purpose.

    ``code`` is the stable identifier clients switch on; ``details`` carries
    the IDs involved for logs and error bodies.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Body for an HTTPException detail: error code, message and details."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(VaultError):
    """A pick or profile row that should exist does not."""

    pass


class ValidationError(VaultError):
    """Caller supplied something unusable, like a pending settlement or empty checkout."""

    pass


class AuthenticationError(VaultError):
    """Credentials were refused or the stored session is unusable."""

    pass


class AuthorizationError(VaultError):
    """Signed in, but not allowed (non-admin writing picks)."""

    pass


class ExternalServiceError(VaultError):
    """Supabase or Stripe failed or did not answer. ``service`` names which."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
