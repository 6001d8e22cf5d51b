"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Callable

from api.dependencies import reset_container
from modules.auth.models import Session, SessionUser, SubscriptionStatus, UserProfile
from modules.billing.service import reset_billing_service
from modules.gateway.memory import InMemoryGateway
from modules.predictions.models import Prediction, PredictionStatus, Sport
from shared.config import get_settings
from shared.database import reset_client_cache


BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings, clients and services before and after each test."""
    get_settings.cache_clear()
    reset_client_cache()
    reset_billing_service()
    reset_container()
    yield
    get_settings.cache_clear()
    reset_client_cache()
    reset_billing_service()
    reset_container()


@pytest.fixture
def make_prediction() -> Callable[..., Prediction]:
    """
    Build predictions with sensible defaults.

    The ``n`` argument orders picks in time: a higher n was published later.
    """
    def _make(n: int = 1, **overrides) -> Prediction:
        data = {
            "id": f"pick-{n}",
            "created_at": BASE_TIME + timedelta(hours=n),
            "matchup_date": BASE_TIME + timedelta(days=1),
            "sport": Sport.NBA,
            "matchup": f"Matchup {n}",
            "wager_type": "Home -3.5",
            "odds": "1.91",
            "units": 1,
            "analysis": "Short write-up.",
            "is_premium": False,
            "status": PredictionStatus.PENDING,
        }
        data.update(overrides)
        return Prediction(**data)

    return _make


@pytest.fixture
def make_session() -> Callable[..., Session]:
    """Build a session for a given subject."""
    def _make(user_id: str = "user-1", email: str = "bettor@example.com", token: str = "token-1") -> Session:
        return Session(
            access_token=token,
            refresh_token=f"refresh-{token}",
            expires_at=int(BASE_TIME.timestamp()) + 3600,
            user=SessionUser(id=user_id, email=email),
        )

    return _make


@pytest.fixture
def subscriber_profile() -> UserProfile:
    """An active subscriber."""
    return UserProfile(
        id="user-1",
        email="bettor@example.com",
        subscription_status=SubscriptionStatus.ACTIVE,
        stripe_customer_id="cus_123",
    )


@pytest.fixture
def free_profile() -> UserProfile:
    """A signed-in user without a subscription."""
    return UserProfile(id="user-2", email="free@example.com")


@pytest.fixture
def admin_profile() -> UserProfile:
    """An admin who may publish and settle picks."""
    return UserProfile(id="admin-1", email="admin@example.com", is_admin=True)


@pytest.fixture
def gateway(subscriber_profile, free_profile, admin_profile) -> InMemoryGateway:
    """In-memory gateway with three known profiles and no predictions."""
    return InMemoryGateway(profiles=[subscriber_profile, free_profile, admin_profile])
