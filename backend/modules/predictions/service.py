"""
Admin write path for predictions.

Publishing, editing, deleting and settling picks are user-initiated: every
failure (missing privileges, bad payload, remote error) is raised to the
caller. The live feed picks the change up through its change notification;
nothing here touches the client-side cache.
"""

import asyncio
import logging
from typing import Any, Coroutine, Iterable, Optional

from modules.auth.exceptions import InsufficientPermissionsError
from modules.auth.models import UserProfile
from modules.gateway.exceptions import GatewayTimeoutError
from modules.gateway.interfaces import IRemoteGateway

from .entitlements import can_manage
from .exceptions import InvalidSettlementError
from .models import Prediction, PredictionCreate, PredictionStatus, PredictionUpdate

logger = logging.getLogger(__name__)

DEFAULT_WRITE_TIMEOUT = 10.0


class PredictionService:
    """Admin-gated writes against the remote predictions table."""

    def __init__(self, gateway: IRemoteGateway, timeout: float = DEFAULT_WRITE_TIMEOUT) -> None:
        self._gateway = gateway
        self._timeout = timeout

    def _authorize(self, profile: Optional[UserProfile], action: str) -> None:
        if not can_manage(profile):
            raise InsufficientPermissionsError(action, profile.id if profile else None)

    async def _call(self, operation: str, coro: Coroutine[Any, Any, Any]) -> Any:
        try:
            return await asyncio.wait_for(coro, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{operation} timed out after {self._timeout}s")
            raise GatewayTimeoutError(operation, self._timeout)

    async def create(self, profile: Optional[UserProfile], data: PredictionCreate) -> Prediction:
        """
        Publish a new pick (status pending).

        Raises:
            InsufficientPermissionsError: If profile is not an admin
            GatewayTimeoutError: If the write does not complete in time
            GatewayError: On remote failure
        """
        self._authorize(profile, "create predictions")
        prediction = await self._call("create_prediction", self._gateway.create_prediction(data))
        logger.info(f"Prediction {prediction.id} published: {prediction.matchup}")
        return prediction

    async def update(
        self,
        profile: Optional[UserProfile],
        prediction_id: str,
        data: PredictionUpdate,
    ) -> Prediction:
        """
        Edit a pick.

        Raises:
            InsufficientPermissionsError: If profile is not an admin
            PredictionNotFoundError: If the pick doesn't exist
            GatewayTimeoutError: If the write does not complete in time
            GatewayError: On remote failure
        """
        self._authorize(profile, "edit predictions")
        return await self._call(
            "update_prediction", self._gateway.update_prediction(prediction_id, data)
        )

    async def delete(self, profile: Optional[UserProfile], prediction_id: str) -> None:
        self._authorize(profile, "delete predictions")
        await self._call("delete_prediction", self._gateway.delete_prediction(prediction_id))
        logger.info(f"Prediction {prediction_id} deleted")

    async def settle(
        self,
        profile: Optional[UserProfile],
        prediction_id: str,
        status: PredictionStatus,
        score: Optional[str] = None,
    ) -> Prediction:
        """
        Record the final outcome of a pick.

        An empty score is stored as no score.

        Raises:
            InsufficientPermissionsError: If profile is not an admin
            InvalidSettlementError: If status is pending
            PredictionNotFoundError: If the pick doesn't exist
            GatewayTimeoutError: If the write does not complete in time
            GatewayError: On remote failure
        """
        self._authorize(profile, "settle predictions")
        if not status.is_settled:
            raise InvalidSettlementError(prediction_id, status.value)

        score = (score or "").strip() or None
        prediction = await self._call(
            "settle_prediction", self._gateway.settle_prediction(prediction_id, status, score)
        )
        logger.info(f"Prediction {prediction_id} settled as {status.value}")
        return prediction

    @staticmethod
    def pending(predictions: Iterable[Prediction]) -> list[Prediction]:
        """Picks still awaiting a result."""
        return [p for p in predictions if p.status is PredictionStatus.PENDING]
