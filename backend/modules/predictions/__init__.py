"""
Predictions module.

Picks feed: data model, entitlement rules, performance stats, the live
synchronizer and the admin write service.

Public API:
- Prediction, PredictionStatus, Sport: Pick data model
- AggregateStats, ProfitPoint: Derived performance data
- is_visible, display_analysis, can_manage: Entitlement rules
- compute_stats, profit_trend: Stats over settled picks
- Predictions exceptions: PredictionNotFoundError, InvalidSettlementError

The synchronizer (sync.LiveDataSynchronizer) and the admin write service
(service.PredictionService) depend on the gateway and are imported from
their submodules.
"""

from .models import (
    Prediction,
    PredictionCreate,
    PredictionUpdate,
    PredictionStatus,
    Sport,
    AggregateStats,
    ProfitPoint,
    DataChange,
)
from .entitlements import is_visible, is_locked, display_analysis, display_wager, can_manage
from .stats import compute_stats, profit_trend, parse_decimal_odds
from .exceptions import PredictionNotFoundError, InvalidSettlementError

__all__ = [
    # Models
    "Prediction",
    "PredictionCreate",
    "PredictionUpdate",
    "PredictionStatus",
    "Sport",
    "AggregateStats",
    "ProfitPoint",
    "DataChange",
    # Entitlements
    "is_visible",
    "is_locked",
    "display_analysis",
    "display_wager",
    "can_manage",
    # Stats
    "compute_stats",
    "profit_trend",
    "parse_decimal_odds",
    # Exceptions
    "PredictionNotFoundError",
    "InvalidSettlementError",
]
