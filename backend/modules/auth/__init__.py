"""
Authentication module.

Client-side session state: the session/profile models, the auth event
stream vocabulary and the reconciler that keeps them consistent.

Public API:
- Session, SessionUser: Credential issued by the auth provider
- UserProfile, SubscriptionStatus: Profile row and paywall state
- AuthEvent, AuthEventType: Auth event stream deliveries
- AuthView, ReconcilerState: What consumers read
- Auth exceptions: InvalidCredentialsError, CorruptSessionError, etc.

The reconciler itself (reconciler.SessionReconciler) depends on the
gateway module and is imported from its submodule.
"""

from .models import (
    Session,
    SessionUser,
    UserProfile,
    SubscriptionStatus,
    AuthEvent,
    AuthEventType,
    AuthView,
    ReconcilerState,
)
from .exceptions import (
    InvalidCredentialsError,
    SignUpError,
    CorruptSessionError,
    InsufficientPermissionsError,
    ReconcilerNotStartedError,
)

__all__ = [
    # Models
    "Session",
    "SessionUser",
    "UserProfile",
    "SubscriptionStatus",
    "AuthEvent",
    "AuthEventType",
    "AuthView",
    "ReconcilerState",
    # Exceptions
    "InvalidCredentialsError",
    "SignUpError",
    "CorruptSessionError",
    "InsufficientPermissionsError",
    "ReconcilerNotStartedError",
]
