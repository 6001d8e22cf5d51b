"""
Predictions module data models.

A prediction is one published pick. The remote store owns every row;
clients hold a read-through cache that is replaced wholesale on change.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator


class Sport(str, Enum):
    """Sports a pick can be published under."""

    NBA = "NBA"
    NFL = "NFL"
    MLB = "MLB"
    NHL = "NHL"
    UFC = "UFC"
    SOCCER = "SOCCER"


class PredictionStatus(str, Enum):
    """Settlement state of a pick."""

    PENDING = "pending"
    WON = "won"
    LOST = "lost"
    PUSH = "push"

    @property
    def is_settled(self) -> bool:
        return self is not PredictionStatus.PENDING


SETTLED_STATUSES = frozenset(
    {PredictionStatus.WON, PredictionStatus.LOST, PredictionStatus.PUSH}
)

DEFAULT_ODDS = "1.91"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Prediction(BaseModel):
    """
    A published pick.

    odds is kept as entered (decimal odds as text) and parsed only when
    computing stats, so a malformed value never blocks display.
    """

    id: str = Field(..., description="Prediction ID")
    created_at: datetime = Field(..., description="Publish time")
    matchup_date: datetime = Field(..., description="Scheduled game time")
    sport: Sport = Field(..., description="Sport")
    matchup: str = Field(..., description="e.g. 'Lakers @ Celtics'")
    wager_type: str = Field(..., description="e.g. 'Lakers -4.5'")
    odds: str = Field(default=DEFAULT_ODDS, description="Decimal odds as text")
    units: int = Field(default=1, ge=1, le=5, description="Stake units (1-5)")
    analysis: str = Field(default="", description="Write-up")
    is_premium: bool = Field(default=False, description="Behind the paywall")
    status: PredictionStatus = Field(default=PredictionStatus.PENDING)
    result_score: Optional[str] = Field(None, description="Final score, settled picks only")

    model_config = {"frozen": True, "extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def _drop_score_while_pending(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("status", "pending") == "pending":
            data = {**data, "result_score": None}
        return data


class PredictionCreate(BaseModel):
    """Payload for publishing a new pick. Status always starts as pending."""

    sport: Sport = Sport.NBA
    matchup: str = Field(..., min_length=1)
    matchup_date: datetime = Field(default_factory=_utcnow)
    wager_type: str = Field(..., min_length=1)
    odds: str = DEFAULT_ODDS
    units: int = Field(default=1, ge=1, le=5)
    analysis: str = ""
    is_premium: bool = False


class PredictionUpdate(BaseModel):
    """Partial edit of a pick. Settlement goes through settle() instead."""

    sport: Optional[Sport] = None
    matchup: Optional[str] = Field(None, min_length=1)
    matchup_date: Optional[datetime] = None
    wager_type: Optional[str] = Field(None, min_length=1)
    odds: Optional[str] = None
    units: Optional[int] = Field(None, ge=1, le=5)
    analysis: Optional[str] = None
    is_premium: Optional[bool] = None


class AggregateStats(BaseModel):
    """Performance summary derived from the full prediction list."""

    win_rate: float = 0.0
    net_units: float = 0.0
    roi: float = 0.0
    total_wins: int = 0
    total_losses: int = 0

    model_config = {"frozen": True}


class ProfitPoint(BaseModel):
    """One point on the cumulative profit chart."""

    index: int
    units: float
    label: str

    model_config = {"frozen": True}


class DataChange(BaseModel):
    """
    Change notification from the predictions feed.

    Carries whatever the transport reported; consumers must not rely on
    anything beyond "something changed".
    """

    event: str = "*"
    table: str = "predictions"
    record_id: Optional[str] = None
