"""
Performance statistics over settled predictions.

Profit uses the decimal-odds convention: a win returns stake * (odds - 1),
a loss costs the stake, a push returns nothing and is not counted as a
result. Everything here is a pure function of its input.
"""

import logging
import math
from typing import Iterable

from .models import AggregateStats, Prediction, PredictionStatus, ProfitPoint

logger = logging.getLogger(__name__)

# Standard -110 line, used when the stored odds cannot be parsed.
FALLBACK_DECIMAL_ODDS = 1.91


def parse_decimal_odds(odds: str) -> float:
    """
    Parse stored odds text, falling back to FALLBACK_DECIMAL_ODDS.

    Non-numeric, NaN and infinite values all fall back.
    """
    try:
        value = float(odds)
    except (TypeError, ValueError):
        value = math.nan

    if not math.isfinite(value):
        logger.debug(f"Unparseable odds {odds!r}, using {FALLBACK_DECIMAL_ODDS}")
        return FALLBACK_DECIMAL_ODDS
    return value


def settlement_units(prediction: Prediction) -> float:
    """Net units won or lost by a single prediction (0 for pending/push)."""
    if prediction.status is PredictionStatus.WON:
        return prediction.units * (parse_decimal_odds(prediction.odds) - 1)
    if prediction.status is PredictionStatus.LOST:
        return -float(prediction.units)
    return 0.0


def compute_stats(predictions: Iterable[Prediction]) -> AggregateStats:
    """
    Compute aggregate performance over won and lost predictions.

    Sums are taken with math.fsum, which is exactly rounded, so the result
    does not depend on the order of the input.
    """
    settled = [
        p for p in predictions
        if p.status in (PredictionStatus.WON, PredictionStatus.LOST)
    ]
    total_wins = sum(1 for p in settled if p.status is PredictionStatus.WON)
    total_losses = len(settled) - total_wins

    net_units = math.fsum(settlement_units(p) for p in settled)
    total_risked = math.fsum(p.units for p in settled)

    win_rate = (total_wins / len(settled)) * 100 if settled else 0.0
    roi = (net_units / total_risked) * 100 if total_risked > 0 else 0.0

    return AggregateStats(
        win_rate=win_rate,
        net_units=net_units,
        roi=roi,
        total_wins=total_wins,
        total_losses=total_losses,
    )


def profit_trend(predictions: Iterable[Prediction]) -> list[ProfitPoint]:
    """Running net units over settled predictions, oldest first."""
    settled = sorted(
        (p for p in predictions if p.status in (PredictionStatus.WON, PredictionStatus.LOST)),
        key=lambda p: (p.created_at, p.id),
    )

    points: list[ProfitPoint] = []
    running = 0.0
    for index, prediction in enumerate(settled, start=1):
        running += settlement_units(prediction)
        points.append(ProfitPoint(index=index, units=running, label=prediction.matchup))
    return points
