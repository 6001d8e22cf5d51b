"""
In-memory gateway implementation.

A self-contained store that honours the IRemoteGateway contract: it keeps
users, profiles, a stored session and the prediction table on the instance,
delivers auth events and change notifications synchronously to registered
listeners, and can inject latency. Used for demo mode and in tests.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from modules.auth.exceptions import CorruptSessionError, InvalidCredentialsError, SignUpError
from modules.auth.models import (
    AuthEvent,
    AuthEventType,
    Session,
    SessionUser,
    SubscriptionStatus,
    UserProfile,
)
from modules.predictions.exceptions import PredictionNotFoundError
from modules.predictions.models import (
    DataChange,
    Prediction,
    PredictionCreate,
    PredictionStatus,
    PredictionUpdate,
)

from .interfaces import AuthEventCallback, DataChangeCallback, IRemoteGateway


class ListenerHandle:
    """Subscription handle that removes one callback from a listener list."""

    def __init__(self, listeners: list, callback: Callable) -> None:
        self._listeners = listeners
        self._callback = callback

    @property
    def active(self) -> bool:
        return self._callback in self._listeners

    def unsubscribe(self) -> None:
        if self._callback in self._listeners:
            self._listeners.remove(self._callback)


class InMemoryGateway(IRemoteGateway):
    """
    In-memory implementation of the remote gateway.

    State lives on the instance only; two gateways never share data.
    """

    def __init__(
        self,
        predictions: Optional[Iterable[Prediction]] = None,
        profiles: Optional[Iterable[UserProfile]] = None,
        latency: float = 0.0,
    ) -> None:
        self.latency = latency
        self._predictions: dict[str, Prediction] = {p.id: p for p in predictions or []}
        self._profiles: dict[str, UserProfile] = {p.id: p for p in profiles or []}
        self._credentials: dict[str, tuple[str, str]] = {}  # email -> (password, user_id)
        self._session: Optional[Session] = None
        self._session_corrupt = False
        self._auth_listeners: list[AuthEventCallback] = []
        self._data_listeners: list[DataChangeCallback] = []

    # -------------------------------------------------------------------------
    # Test and demo helpers
    # -------------------------------------------------------------------------

    def register_user(
        self,
        email: str,
        password: str,
        profile: Optional[UserProfile] = None,
    ) -> str:
        """Create a user account, optionally with a profile row. Returns the user ID."""
        user_id = profile.id if profile else str(uuid.uuid4())
        self._credentials[email] = (password, user_id)
        if profile is not None:
            self._profiles[user_id] = profile
        return user_id

    def store_session(self, session: Optional[Session]) -> None:
        """Replace the persisted session without emitting an event."""
        self._session = session
        self._session_corrupt = False

    def corrupt_stored_session(self) -> None:
        """Make the next get_session() fail as if local storage were garbage."""
        self._session_corrupt = True

    @property
    def stored_session(self) -> Optional[Session]:
        return self._session

    def emit_auth_event(self, event: AuthEvent) -> None:
        for callback in list(self._auth_listeners):
            callback(event)

    def emit_data_change(self, change: Optional[DataChange] = None) -> None:
        change = change or DataChange()
        for callback in list(self._data_listeners):
            callback(change)

    def set_subscription_status(
        self,
        user_id: str,
        status: SubscriptionStatus,
        stripe_customer_id: Optional[str] = None,
    ) -> None:
        """Apply a billing outcome to a profile, as the payment webhook would."""
        profile = self._profiles[user_id]
        update: dict = {"subscription_status": status}
        if stripe_customer_id is not None:
            update["stripe_customer_id"] = stripe_customer_id
        self._profiles[user_id] = profile.model_copy(update=update)

    @property
    def auth_listener_count(self) -> int:
        return len(self._auth_listeners)

    @property
    def data_listener_count(self) -> int:
        return len(self._data_listeners)

    async def _delay(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    def _new_session(self, user_id: str, email: str) -> Session:
        return Session(
            access_token=uuid.uuid4().hex,
            refresh_token=uuid.uuid4().hex,
            expires_at=int(datetime.now(timezone.utc).timestamp()) + 3600,
            user=SessionUser(id=user_id, email=email),
        )

    def _require(self, prediction_id: str) -> Prediction:
        prediction = self._predictions.get(prediction_id)
        if prediction is None:
            raise PredictionNotFoundError(prediction_id)
        return prediction

    def _changed(self, event: str, record_id: str) -> None:
        self.emit_data_change(DataChange(event=event, record_id=record_id))

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    async def get_session(self) -> Optional[Session]:
        await self._delay()
        if self._session_corrupt:
            raise CorruptSessionError()
        return self._session

    def on_auth_event(self, callback: AuthEventCallback) -> ListenerHandle:
        self._auth_listeners.append(callback)
        return ListenerHandle(self._auth_listeners, callback)

    async def sign_in(self, email: str, password: str) -> Session:
        await self._delay()
        stored = self._credentials.get(email)
        if stored is None or stored[0] != password:
            raise InvalidCredentialsError()

        session = self._new_session(stored[1], email)
        self.store_session(session)
        self.emit_auth_event(AuthEvent(type=AuthEventType.SIGNED_IN, session=session))
        return session

    async def sign_up(self, email: str, password: str) -> Optional[Session]:
        await self._delay()
        if email in self._credentials:
            raise SignUpError("User already registered")
        if len(password) < 6:
            raise SignUpError("Password should be at least 6 characters")

        user_id = self.register_user(email, password)
        # Mirrors the on-signup trigger that creates the profile row.
        self._profiles[user_id] = UserProfile(id=user_id, email=email)

        session = self._new_session(user_id, email)
        self.store_session(session)
        self.emit_auth_event(AuthEvent(type=AuthEventType.SIGNED_IN, session=session))
        return session

    async def sign_out(self) -> None:
        await self._delay()
        self.store_session(None)
        self.emit_auth_event(AuthEvent(type=AuthEventType.SIGNED_OUT))

    async def fetch_profile(self, user_id: str) -> Optional[UserProfile]:
        await self._delay()
        return self._profiles.get(user_id)

    # -------------------------------------------------------------------------
    # Predictions
    # -------------------------------------------------------------------------

    async def list_predictions(self) -> list[Prediction]:
        await self._delay()
        return sorted(self._predictions.values(), key=lambda p: p.created_at, reverse=True)

    async def create_prediction(self, data: PredictionCreate) -> Prediction:
        await self._delay()
        prediction = Prediction(
            id=str(uuid.uuid4()),
            created_at=datetime.now(timezone.utc),
            status=PredictionStatus.PENDING,
            **data.model_dump(),
        )
        self._predictions[prediction.id] = prediction
        self._changed("INSERT", prediction.id)
        return prediction

    async def update_prediction(self, prediction_id: str, data: PredictionUpdate) -> Prediction:
        await self._delay()
        current = self._require(prediction_id)
        updated = current.model_copy(update=data.model_dump(exclude_unset=True))
        self._predictions[prediction_id] = updated
        self._changed("UPDATE", prediction_id)
        return updated

    async def delete_prediction(self, prediction_id: str) -> None:
        await self._delay()
        if self._predictions.pop(prediction_id, None) is not None:
            self._changed("DELETE", prediction_id)

    async def settle_prediction(
        self,
        prediction_id: str,
        status: PredictionStatus,
        score: Optional[str] = None,
    ) -> Prediction:
        await self._delay()
        current = self._require(prediction_id)
        settled = current.model_copy(update={"status": status, "result_score": score})
        self._predictions[prediction_id] = settled
        self._changed("UPDATE", prediction_id)
        return settled

    async def on_data_change(self, callback: DataChangeCallback) -> ListenerHandle:
        self._data_listeners.append(callback)
        return ListenerHandle(self._data_listeners, callback)
