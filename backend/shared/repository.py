"""
Base repository class for service-role database access.

Repositories wrap the synchronous Supabase client used by server-side
handlers (webhooks), keeping table names and row mapping in one place.
"""

from typing import TypeVar, Generic
from supabase import Client


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Subclasses implement table-specific queries through ``self._db`` and
    map rows to Pydantic models internally.

    Example:
        class ProfileRepository(BaseRepository[UserProfile]):
            def activate(self, user_id: str, customer_id: str) -> int:
                data = {"subscription_status": "active", "stripe_customer_id": customer_id}
                result = self._db.table("profiles").update(data).eq("id", user_id).execute()
                return len(result.data or [])
    """

    def __init__(self, db: Client) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
        """
        self._db = db
