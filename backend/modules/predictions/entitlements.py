"""
Entitlement rules: who may see what of a prediction.

Pure functions, evaluated per render by the application shell. A premium
pick is visible in full only to an active subscriber; everyone else gets a
teaser with the wager withheld.
"""

from typing import Optional

from modules.auth.models import UserProfile
from .models import Prediction

# Unlocked write-ups longer than this show a preview with a "read more".
PREVIEW_CHARS = 150
# Locked write-ups are cut harder than the preview.
TEASER_CHARS = 100

ELLIPSIS = "..."


def is_visible(prediction: Prediction, profile: Optional[UserProfile]) -> bool:
    """
    Decide whether ``profile`` may see ``prediction`` in full.

    Free picks are visible to everyone, including guests (``profile=None``).
    Premium picks require an active subscription.
    """
    if not prediction.is_premium:
        return True
    return profile is not None and profile.is_subscribed


def is_locked(prediction: Prediction, profile: Optional[UserProfile]) -> bool:
    return not is_visible(prediction, profile)


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def teaser(prediction: Prediction) -> str:
    """Redacted write-up shown on a locked card."""
    return _truncate(prediction.analysis, TEASER_CHARS)


def display_analysis(prediction: Prediction, profile: Optional[UserProfile]) -> str:
    """Write-up as it should appear on the card for this viewer."""
    if is_locked(prediction, profile):
        return teaser(prediction)
    return _truncate(prediction.analysis, PREVIEW_CHARS)


def display_wager(prediction: Prediction, profile: Optional[UserProfile]) -> Optional[str]:
    """The wager line, or None when it is behind the paywall."""
    if is_locked(prediction, profile):
        return None
    return prediction.wager_type


def can_manage(profile: Optional[UserProfile]) -> bool:
    """Only admins may publish, edit, delete or settle picks."""
    return profile is not None and profile.is_admin
