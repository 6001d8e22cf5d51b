"""
Authentication module data models.

These models define the session, profile and auth-event structures shared
between the remote gateway and the session reconciler.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class SubscriptionStatus(str, Enum):
    """Paywall subscription state stored on the profile."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    NONE = "none"


class SessionUser(BaseModel):
    """Identity carried by a session."""

    id: str = Field(..., description="Subject ID (UUID from Supabase Auth)")
    email: str = Field(default="", description="User's email, empty if unknown")

    model_config = {"frozen": True, "extra": "ignore"}


class Session(BaseModel):
    """
    Credential issued by the remote auth provider.

    Opaque to the rest of the system apart from its subject. The provider
    owns expiry and refresh; a new Session replaces the old one wholesale.
    """

    access_token: str = Field(..., description="Bearer token")
    refresh_token: str = Field(default="", description="Refresh token")
    expires_at: Optional[int] = Field(None, description="Expiry (epoch seconds)")
    user: SessionUser = Field(..., description="Subject of the session")

    model_config = {"frozen": True, "extra": "ignore"}

    @property
    def subject(self) -> str:
        return self.user.id


class UserProfile(BaseModel):
    """
    Profile row keyed by the session subject.

    subscription_status is written by the billing webhook; clients only
    ever read it.
    """

    id: str = Field(..., description="User ID (UUID)")
    email: str = Field(default="", description="Email address")
    is_admin: bool = Field(default=False, description="May publish and settle picks")
    subscription_status: SubscriptionStatus = Field(
        default=SubscriptionStatus.NONE,
        description="Paywall subscription state",
    )
    stripe_customer_id: Optional[str] = Field(None, description="Stripe customer reference")

    model_config = {"frozen": True, "extra": "ignore"}

    @property
    def is_subscribed(self) -> bool:
        return self.subscription_status == SubscriptionStatus.ACTIVE

    @classmethod
    def fallback(cls, session: Session) -> "UserProfile":
        """Minimal profile for a session whose profile row is missing or unreachable."""
        return cls(
            id=session.user.id,
            email=session.user.email,
            is_admin=False,
            subscription_status=SubscriptionStatus.NONE,
        )


class AuthEventType(str, Enum):
    """Auth state change events emitted by the provider."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


class AuthEvent(BaseModel):
    """A single delivery from the auth event stream."""

    type: AuthEventType
    session: Optional[Session] = None

    model_config = {"frozen": True}


class ReconcilerState(str, Enum):
    """Lifecycle of the session reconciler."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class AuthView(BaseModel):
    """Consumer-facing snapshot: who the user is and whether auth is still settling."""

    user: Optional[UserProfile] = None
    loading: bool = True

    model_config = {"frozen": True}
