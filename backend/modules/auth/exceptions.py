"""
Authentication module exceptions.

Raised by the remote gateway and the session reconciler. User-initiated
operations (sign-in, sign-up) surface these to the caller; the background
bootstrap path handles them itself.
"""

from typing import Optional

from shared.exceptions import AuthenticationError, AuthorizationError


class InvalidCredentialsError(AuthenticationError):
    """Raised when the provider rejects an email/password pair."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class SignUpError(AuthenticationError):
    """Raised when the provider refuses to create an account."""

    def __init__(self, message: str = "Could not create account"):
        super().__init__(message, code="SIGN_UP_FAILED")


class CorruptSessionError(AuthenticationError):
    """
    Raised when the stored credential cannot be read or refreshed.

    The reconciler treats this as fatal to the session and signs out to
    clear storage, so the next start does not hit the same error again.
    """

    def __init__(self, message: str = "Stored session is invalid"):
        super().__init__(message, code="CORRUPT_SESSION")


class InsufficientPermissionsError(AuthorizationError):
    """Raised when a non-admin attempts an admin-only operation."""

    def __init__(self, action: str, user_id: Optional[str] = None):
        super().__init__(
            f"Admin privileges required to {action}",
            code="INSUFFICIENT_PERMISSIONS",
            details={"action": action, "user_id": user_id},
        )


class ReconcilerNotStartedError(RuntimeError):
    """Raised when the session reconciler is used before start() or after close()."""

    def __init__(self):
        super().__init__("SessionReconciler must be started before use")
