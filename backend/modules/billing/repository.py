"""
Profile repository for billing writes.

The webhook runs with the service-role client, so these updates bypass
Row Level Security. Clients see the result on their next profile fetch.
"""

from typing import Any, Optional

from modules.auth.models import SubscriptionStatus, UserProfile
from shared.repository import BaseRepository

PROFILES_TABLE = "profiles"


class ProfileRepository(BaseRepository[UserProfile]):
    """Subscription status updates on the profiles table."""

    def activate(self, user_id: str, stripe_customer_id: Optional[str]) -> int:
        """
        Mark a profile as subscribed and remember its Stripe customer.

        Returns:
            Number of rows updated (0 if the profile doesn't exist).
        """
        data: dict[str, Any] = {"subscription_status": SubscriptionStatus.ACTIVE.value}
        if stripe_customer_id:
            data["stripe_customer_id"] = stripe_customer_id
        result = self._db.table(PROFILES_TABLE).update(data).eq("id", user_id).execute()
        return len(result.data or [])

    def deactivate_customer(self, stripe_customer_id: str) -> int:
        """
        Mark every profile linked to a Stripe customer as unsubscribed.

        Returns:
            Number of rows updated.
        """
        result = (
            self._db.table(PROFILES_TABLE)
            .update({"subscription_status": SubscriptionStatus.INACTIVE.value})
            .eq("stripe_customer_id", stripe_customer_id)
            .execute()
        )
        return len(result.data or [])
