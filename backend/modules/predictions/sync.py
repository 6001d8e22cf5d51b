"""
Live prediction feed.

Holds the client-side copy of the predictions table. Every change
notification triggers a full reload; there is no diffing. Reloads may
overlap, so each one is tagged with a sequence number and a response older
than the last applied one is dropped.

Loads never raise: a timeout or transport error degrades to the fallback
dataset (empty, or the demo picks in demo mode).
"""

import asyncio
import itertools
import logging
from typing import Any, Callable, Iterable, Optional

from modules.gateway.exceptions import GatewayError
from modules.gateway.interfaces import IRemoteGateway, Subscription

from .models import AggregateStats, DataChange, Prediction, ProfitPoint
from .stats import compute_stats, profit_trend

logger = logging.getLogger(__name__)

DEFAULT_LOAD_TIMEOUT = 10.0

FeedListener = Callable[[list[Prediction]], None]


class LiveDataSynchronizer:
    """
    Owns the current prediction list and its derived stats.

        async with LiveDataSynchronizer(gateway) as feed:
            stats = feed.stats
    """

    def __init__(
        self,
        gateway: IRemoteGateway,
        load_timeout: float = DEFAULT_LOAD_TIMEOUT,
        fallback: Optional[Iterable[Prediction]] = None,
    ) -> None:
        self._gateway = gateway
        self._load_timeout = load_timeout
        self._fallback: list[Prediction] = list(fallback or [])

        self._predictions: list[Prediction] = []
        self._stats = AggregateStats()
        self._trend: list[ProfitPoint] = []

        self._started = False
        self._closed = False
        self._subscription: Optional[Subscription] = None
        self._sequence = itertools.count(1)
        self._applied_seq = 0
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[FeedListener] = []

    @property
    def predictions(self) -> list[Prediction]:
        return list(self._predictions)

    @property
    def stats(self) -> AggregateStats:
        return self._stats

    @property
    def trend(self) -> list[ProfitPoint]:
        return list(self._trend)

    @property
    def connected(self) -> bool:
        """Whether the change feed subscription is live (independent of load success)."""
        return self._subscription is not None and self._subscription.active

    @property
    def active(self) -> bool:
        return self._started and not self._closed

    def add_listener(self, callback: FeedListener) -> Callable[[], None]:
        """Call ``callback`` with the new list after every applied load."""
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    async def start(self) -> None:
        """Subscribe to the change feed, then do the initial load."""
        if self._started:
            raise RuntimeError("LiveDataSynchronizer can only be started once")
        self._started = True

        try:
            self._subscription = await asyncio.wait_for(
                self._gateway.on_data_change(self._on_change),
                timeout=self._load_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Timed out subscribing to prediction changes, feed will not be live")
        except GatewayError as e:
            logger.warning(f"Could not subscribe to prediction changes: {e.message}")

        if self._closed and self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
            return

        await self.load()

    def close(self) -> None:
        """Unsubscribe. Loads still in flight are discarded when they finish."""
        if self._closed:
            return
        self._closed = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._listeners.clear()
        logger.debug("Prediction feed closed")

    async def __aenter__(self) -> "LiveDataSynchronizer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    async def load(self) -> list[Prediction]:
        """
        Fetch the full list and apply it unless a newer load already landed.

        Returns:
            What this load fetched, or the fallback dataset on timeout/error
        """
        seq = next(self._sequence)
        try:
            predictions = await asyncio.wait_for(
                self._gateway.list_predictions(),
                timeout=self._load_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Loading predictions timed out after {self._load_timeout}s")
            predictions = list(self._fallback)
        except GatewayError as e:
            logger.warning(f"Error loading predictions: {e.message}")
            predictions = list(self._fallback)
        except Exception:
            logger.exception("Unexpected error loading predictions")
            predictions = list(self._fallback)

        predictions = sorted(predictions, key=lambda p: p.created_at, reverse=True)
        self._apply(seq, predictions)
        return predictions

    def _apply(self, seq: int, predictions: list[Prediction]) -> None:
        if self._closed:
            return
        if seq < self._applied_seq:
            logger.debug(f"Dropping stale prediction load #{seq} (have #{self._applied_seq})")
            return

        self._applied_seq = seq
        self._predictions = predictions
        self._stats = compute_stats(predictions)
        self._trend = profit_trend(predictions)
        for callback in list(self._listeners):
            callback(list(predictions))

    def _on_change(self, change: DataChange) -> None:
        if self._closed:
            return
        logger.debug(f"Prediction change ({change.event}), reloading")
        task = asyncio.ensure_future(self.load())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for reloads triggered by change notifications to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
