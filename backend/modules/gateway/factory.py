"""Factory functions wiring the gateway and its consumers from settings."""

import logging
from typing import Optional

from modules.auth.reconciler import SessionReconciler
from modules.predictions.demo import demo_predictions
from modules.predictions.service import PredictionService
from modules.predictions.sync import LiveDataSynchronizer
from shared.config import Settings, get_settings

from .interfaces import IRemoteGateway
from .memory import InMemoryGateway

logger = logging.getLogger(__name__)


async def create_gateway(settings: Optional[Settings] = None) -> IRemoteGateway:
    """Build the gateway for the configured mode.

    Demo mode gets an in-memory store seeded with the demo picks; otherwise
    a Supabase-backed gateway is created from the anon-key settings.

    Raises:
        RuntimeError: If Supabase is not configured outside demo mode
    """
    settings = settings or get_settings()
    if settings.demo_mode:
        logger.info("Demo mode enabled, using in-memory gateway")
        return InMemoryGateway(predictions=demo_predictions())

    from .supabase_gateway import SupabaseGateway

    return await SupabaseGateway.create()


def create_reconciler(
    gateway: IRemoteGateway,
    settings: Optional[Settings] = None,
) -> SessionReconciler:
    """Session reconciler with the configured timeouts."""
    settings = settings or get_settings()
    return SessionReconciler(
        gateway,
        init_timeout=settings.auth_init_timeout,
        profile_fetch_timeout=settings.profile_fetch_timeout,
        request_timeout=settings.request_timeout,
    )


def create_feed(
    gateway: IRemoteGateway,
    settings: Optional[Settings] = None,
) -> LiveDataSynchronizer:
    """Prediction feed with the configured timeout.

    In demo mode an unreachable backend shows the demo picks instead of an
    empty feed.
    """
    settings = settings or get_settings()
    return LiveDataSynchronizer(
        gateway,
        load_timeout=settings.predictions_load_timeout,
        fallback=demo_predictions() if settings.demo_mode else None,
    )


def create_prediction_service(
    gateway: IRemoteGateway,
    settings: Optional[Settings] = None,
) -> PredictionService:
    """Admin write service with the configured request timeout."""
    settings = settings or get_settings()
    return PredictionService(gateway, timeout=settings.request_timeout)
