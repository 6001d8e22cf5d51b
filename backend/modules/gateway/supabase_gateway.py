"""
Supabase implementation of the remote gateway.

Wraps the async Supabase client: GoTrue for sessions, PostgREST for the
profiles and predictions tables, and a Realtime channel for change
notifications. Provider errors are translated into the typed errors of
the auth, predictions and gateway modules.
"""

import asyncio
import logging
from typing import Any, Optional

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import AsyncClient, AuthApiError, AuthError

from modules.auth.exceptions import CorruptSessionError, InvalidCredentialsError, SignUpError
from modules.auth.models import AuthEvent, AuthEventType, Session, SessionUser, UserProfile
from modules.predictions.exceptions import PredictionNotFoundError
from modules.predictions.models import (
    DataChange,
    Prediction,
    PredictionCreate,
    PredictionStatus,
    PredictionUpdate,
)
from shared.database import create_async_supabase_client

from .exceptions import GatewayError, SubscriptionFailedError
from .interfaces import AuthEventCallback, DataChangeCallback, IRemoteGateway

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"
PREDICTIONS_TABLE = "predictions"
PREDICTIONS_CHANNEL = "public:predictions"
CHANNEL_SUBSCRIBED = "SUBSCRIBED"


def _to_session(raw: Any) -> Session:
    """Map a GoTrue session object to our Session model."""
    return Session(
        access_token=raw.access_token,
        refresh_token=raw.refresh_token or "",
        expires_at=raw.expires_at,
        user=SessionUser(id=raw.user.id, email=raw.user.email or ""),
    )


def _without_nulls(row: dict[str, Any]) -> dict[str, Any]:
    """Drop NULL columns so model defaults apply."""
    return {key: value for key, value in row.items() if value is not None}


def _map_profile(row: dict[str, Any]) -> UserProfile:
    return UserProfile.model_validate(_without_nulls(row))


def _map_prediction(row: dict[str, Any]) -> Prediction:
    return Prediction.model_validate(_without_nulls(row))


class _AuthSubscription:
    """Adapts a GoTrue subscription to the gateway Subscription protocol."""

    def __init__(self, subscription: Any) -> None:
        self._subscription = subscription
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    def unsubscribe(self) -> None:
        if not self._closed:
            self._closed = True
            self._subscription.unsubscribe()


class _ChannelSubscription:
    """
    Handle for a Realtime channel.

    Leaving a channel is a network round trip; unsubscribe() stops delivery
    at once and removes the channel in the background. ``active`` follows
    the join status Realtime reports: true only while SUBSCRIBED.
    """

    def __init__(self, gateway: "SupabaseGateway", channel: Any) -> None:
        self._gateway = gateway
        self._channel = channel
        self.closed = False
        self._joined = False

    @property
    def active(self) -> bool:
        return self._joined and not self.closed

    def on_status(self, status: Any, error: Optional[Exception] = None) -> None:
        state = str(getattr(status, "value", status))
        joined = state == CHANNEL_SUBSCRIBED
        if joined != self._joined:
            if joined:
                logger.info(f"Joined realtime channel {PREDICTIONS_CHANNEL}")
            else:
                logger.warning(
                    f"Realtime channel {PREDICTIONS_CHANNEL} is {state}: {error or 'no detail'}"
                )
        self._joined = joined

    def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._gateway._schedule(self._gateway._client.remove_channel(self._channel))


class SupabaseGateway(IRemoteGateway):
    """
    Remote gateway backed by a Supabase project.

    Owns one AsyncClient. Use SupabaseGateway.create() to build it from
    settings, or pass a client directly.
    """

    def __init__(self, client: AsyncClient) -> None:
        self._client = client
        self._background: set[asyncio.Task] = set()

    @classmethod
    async def create(cls) -> "SupabaseGateway":
        return cls(await create_async_supabase_client())

    def _schedule(self, coro: Any) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _execute(self, operation: str, query: Any) -> Any:
        try:
            return await query.execute()
        except (APIError, httpx.HTTPError) as e:
            raise GatewayError(f"{operation} failed: {e}", operation=operation) from e

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    async def get_session(self) -> Optional[Session]:
        try:
            raw = await self._client.auth.get_session()
        except AuthApiError as e:
            # Refresh rejected: the stored token pair is unusable.
            raise CorruptSessionError(e.message) from e
        except (AuthError, httpx.HTTPError) as e:
            raise GatewayError(f"get_session failed: {e}", operation="get_session") from e

        return _to_session(raw) if raw else None

    def on_auth_event(self, callback: AuthEventCallback) -> _AuthSubscription:
        def handler(event: str, raw_session: Any) -> None:
            try:
                event_type = AuthEventType(str(event))
            except ValueError:
                logger.debug(f"Ignoring unsupported auth event {event}")
                return
            session = _to_session(raw_session) if raw_session else None
            callback(AuthEvent(type=event_type, session=session))

        return _AuthSubscription(self._client.auth.on_auth_state_change(handler))

    async def sign_in(self, email: str, password: str) -> Session:
        try:
            response = await self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthApiError as e:
            raise InvalidCredentialsError(e.message) from e
        except (AuthError, httpx.HTTPError) as e:
            raise GatewayError(f"sign_in failed: {e}", operation="sign_in") from e

        if response.session is None:
            raise InvalidCredentialsError()
        return _to_session(response.session)

    async def sign_up(self, email: str, password: str) -> Optional[Session]:
        try:
            response = await self._client.auth.sign_up({"email": email, "password": password})
        except AuthApiError as e:
            raise SignUpError(e.message) from e
        except (AuthError, httpx.HTTPError) as e:
            raise GatewayError(f"sign_up failed: {e}", operation="sign_up") from e

        return _to_session(response.session) if response.session else None

    async def sign_out(self) -> None:
        try:
            await self._client.auth.sign_out()
        except (AuthError, httpx.HTTPError) as e:
            raise GatewayError(f"sign_out failed: {e}", operation="sign_out") from e

    async def fetch_profile(self, user_id: str) -> Optional[UserProfile]:
        query = self._client.table(PROFILES_TABLE).select("*").eq("id", user_id).limit(1)
        result = await self._execute("fetch_profile", query)
        if not result.data:
            return None
        return _map_profile(result.data[0])

    # -------------------------------------------------------------------------
    # Predictions
    # -------------------------------------------------------------------------

    async def list_predictions(self) -> list[Prediction]:
        query = self._client.table(PREDICTIONS_TABLE).select("*").order("created_at", desc=True)
        result = await self._execute("list_predictions", query)

        predictions = []
        for row in result.data or []:
            try:
                predictions.append(_map_prediction(row))
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed prediction row {row.get('id')}: {e.error_count()} errors"
                )
        return predictions

    async def create_prediction(self, data: PredictionCreate) -> Prediction:
        payload = data.model_dump(mode="json")
        payload["status"] = PredictionStatus.PENDING.value
        result = await self._execute(
            "create_prediction",
            self._client.table(PREDICTIONS_TABLE).insert(payload),
        )
        return _map_prediction(result.data[0])

    async def _update_row(self, operation: str, prediction_id: str, payload: dict) -> Prediction:
        query = self._client.table(PREDICTIONS_TABLE).update(payload).eq("id", prediction_id)
        result = await self._execute(operation, query)
        if not result.data:
            raise PredictionNotFoundError(prediction_id)
        return _map_prediction(result.data[0])

    async def update_prediction(self, prediction_id: str, data: PredictionUpdate) -> Prediction:
        payload = data.model_dump(mode="json", exclude_unset=True)
        return await self._update_row("update_prediction", prediction_id, payload)

    async def delete_prediction(self, prediction_id: str) -> None:
        await self._execute(
            "delete_prediction",
            self._client.table(PREDICTIONS_TABLE).delete().eq("id", prediction_id),
        )

    async def settle_prediction(
        self,
        prediction_id: str,
        status: PredictionStatus,
        score: Optional[str] = None,
    ) -> Prediction:
        payload = {"status": status.value, "result_score": score}
        return await self._update_row("settle_prediction", prediction_id, payload)

    async def on_data_change(self, callback: DataChangeCallback) -> _ChannelSubscription:
        channel = self._client.channel(PREDICTIONS_CHANNEL)
        handle = _ChannelSubscription(self, channel)

        def handler(payload: dict[str, Any]) -> None:
            if handle.closed:
                return
            data = payload.get("data", payload) if isinstance(payload, dict) else {}
            record = data.get("record") or data.get("old_record") or {}
            callback(
                DataChange(
                    event=str(data.get("type") or data.get("eventType") or "*"),
                    table=PREDICTIONS_TABLE,
                    record_id=str(record["id"]) if "id" in record else None,
                )
            )

        channel.on_postgres_changes(
            "*",
            schema="public",
            table=PREDICTIONS_TABLE,
            callback=handler,
        )
        try:
            await channel.subscribe(handle.on_status)
        except Exception as e:
            raise SubscriptionFailedError(PREDICTIONS_CHANNEL, str(e)) from e
        return handle
