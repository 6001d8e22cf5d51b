"""
Demo dataset.

Shown when the app runs in demo mode, both as the in-memory store contents
and as the fallback when the backend cannot be reached.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from .models import Prediction, PredictionStatus, Sport


def demo_predictions(now: Optional[datetime] = None) -> list[Prediction]:
    """A small, fixed set of picks covering every status, newest first."""
    now = now or datetime.now(timezone.utc)
    day = timedelta(days=1)

    return [
        Prediction(
            id="demo-5",
            created_at=now - timedelta(hours=2),
            matchup_date=now + timedelta(hours=6),
            sport=Sport.NBA,
            matchup="Lakers @ Celtics",
            wager_type="Celtics -4.5",
            odds="1.91",
            units=3,
            analysis=(
                "Boston has covered in six straight at home and the Lakers are on the "
                "second night of a back-to-back. Rotation minutes favour the Celtics "
                "bench, which has outscored opponents by 9.2 per 100 possessions."
            ),
            is_premium=True,
        ),
        Prediction(
            id="demo-4",
            created_at=now - day,
            matchup_date=now + timedelta(hours=20),
            sport=Sport.NFL,
            matchup="Chiefs @ Bills",
            wager_type="Under 47.5",
            odds="1.87",
            units=2,
            analysis="Wind forecast 20+ mph in Orchard Park.",
        ),
        Prediction(
            id="demo-3",
            created_at=now - 2 * day,
            matchup_date=now - 2 * day + timedelta(hours=5),
            sport=Sport.NHL,
            matchup="Oilers @ Flames",
            wager_type="Oilers ML",
            odds="2.10",
            units=2,
            analysis="Battle of Alberta, Oilers goaltending edge.",
            status=PredictionStatus.WON,
            result_score="4-2",
        ),
        Prediction(
            id="demo-2",
            created_at=now - 3 * day,
            matchup_date=now - 3 * day + timedelta(hours=5),
            sport=Sport.MLB,
            matchup="Yankees @ Red Sox",
            wager_type="Red Sox +1.5",
            odds="1.65",
            units=1,
            analysis="Fenway run line value.",
            is_premium=True,
            status=PredictionStatus.LOST,
            result_score="7-3",
        ),
        Prediction(
            id="demo-1",
            created_at=now - 4 * day,
            matchup_date=now - 4 * day + timedelta(hours=5),
            sport=Sport.SOCCER,
            matchup="Arsenal vs Chelsea",
            wager_type="Draw no bet Arsenal",
            odds="1.50",
            units=1,
            analysis="Home form.",
            status=PredictionStatus.PUSH,
            result_score="1-1",
        ),
    ]
