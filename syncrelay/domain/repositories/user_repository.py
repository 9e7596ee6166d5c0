"""
User Repository Interface.
Single-statement writes used by the Clerk sync flows.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from syncrelay.domain.models.user import User
from syncrelay.domain.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Interface for User-specific operations."""

    def insert_if_absent(self, values: Dict[str, Any]) -> bool:
        """Insert a user row; False when the id already exists."""
        ...

    def update_fields(self, user_id: str, values: Dict[str, Any]) -> bool:
        """Update columns by id; False when no row matched."""
        ...

    def soft_delete(self, user_id: str) -> bool:
        """Flip is_active off, keeping the row."""
        ...

    def touch_last_login(self, user_id: str, at: Optional[datetime] = None) -> bool:
        """Record a login timestamp."""
        ...

    def update_email(self, user_id: str, email: str) -> bool:
        """Replace the stored email."""
        ...
