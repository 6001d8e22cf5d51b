"""
Remote gateway interface.

The session reconciler and the live data synchronizer depend on
IRemoteGateway, never on Supabase directly. This lets tests substitute an
in-memory store and keeps the provider swappable.
"""

from typing import Callable, Optional, Protocol, runtime_checkable

from modules.auth.models import AuthEvent, Session, UserProfile
from modules.predictions.models import (
    DataChange,
    Prediction,
    PredictionCreate,
    PredictionStatus,
    PredictionUpdate,
)


AuthEventCallback = Callable[[AuthEvent], None]
DataChangeCallback = Callable[[DataChange], None]


@runtime_checkable
class Subscription(Protocol):
    """Handle returned by listener registration."""

    @property
    def active(self) -> bool:
        """Whether events are currently being delivered."""
        ...

    def unsubscribe(self) -> None:
        """Stop delivering events. Calling it twice is harmless."""
        ...


@runtime_checkable
class IRemoteGateway(Protocol):
    """
    Capability over the remote auth provider, table store and change feed.

    Every coroutine here may raise a transport error (GatewayError) or hang
    indefinitely. The gateway imposes no timeout; callers must.
    Callbacks are invoked on the event loop thread and must not block.
    """

    async def get_session(self) -> Optional[Session]:
        """
        Return the persisted session, if any.

        Raises:
            CorruptSessionError: If the stored credential is unreadable
            GatewayError: On transport failure
        """
        ...

    def on_auth_event(self, callback: AuthEventCallback) -> Subscription:
        """Register for auth state changes, delivered in provider order."""
        ...

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Sign in with email and password.

        Raises:
            InvalidCredentialsError: If the provider rejects the credentials
        """
        ...

    async def sign_up(self, email: str, password: str) -> Optional[Session]:
        """
        Create an account.

        Returns:
            The new session, or None when email confirmation is pending

        Raises:
            SignUpError: If the provider refuses the account
        """
        ...

    async def sign_out(self) -> None:
        """Revoke the session and clear stored credentials."""
        ...

    async def fetch_profile(self, user_id: str) -> Optional[UserProfile]:
        """Return the profile row for ``user_id`` or None if it doesn't exist."""
        ...

    async def list_predictions(self) -> list[Prediction]:
        """Return every prediction row."""
        ...

    async def create_prediction(self, data: PredictionCreate) -> Prediction:
        ...

    async def update_prediction(self, prediction_id: str, data: PredictionUpdate) -> Prediction:
        """
        Raises:
            PredictionNotFoundError: If no row has this ID
        """
        ...

    async def delete_prediction(self, prediction_id: str) -> None:
        ...

    async def settle_prediction(
        self,
        prediction_id: str,
        status: PredictionStatus,
        score: Optional[str] = None,
    ) -> Prediction:
        """
        Record the final outcome of a prediction.

        Raises:
            PredictionNotFoundError: If no row has this ID
        """
        ...

    async def on_data_change(self, callback: DataChangeCallback) -> Subscription:
        """
        Subscribe to change notifications on the predictions table.

        Subscribing is itself a remote call, hence async.
        """
        ...
