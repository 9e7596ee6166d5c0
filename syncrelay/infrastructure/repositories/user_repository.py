"""
SQLAlchemy Implementation of User Repository.

Each write is one UPDATE/INSERT statement followed by a commit; there is no
multi-statement transaction and no row locking (last write wins).
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from syncrelay.domain.models.user import User
from syncrelay.domain.repositories.user_repository import UserRepository
from syncrelay.infrastructure.repositories.base_repository import SQLAlchemyRepository

logger = structlog.get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """User repository implementation using SQLAlchemy."""

    def insert_if_absent(self, values: Dict[str, Any]) -> bool:
        if self.get_by_id(values["id"]) is not None:
            return False

        now = utcnow()
        values = {"created_at": now, **values, "updated_at": now}
        self.db.add(self.model(**values))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if self.get_by_id(values["id"]) is None:
                # Not a duplicate id, e.g. the email belongs to another active user
                raise
            # Concurrent delivery inserted the same id first
            logger.info("User inserted concurrently, treating as existing", user_id=values["id"])
            return False
        return True

    def update_fields(self, user_id: str, values: Dict[str, Any]) -> bool:
        stmt = (
            update(self.model)
            .where(self.model.id == user_id)
            .values(**values, updated_at=utcnow())
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        return result.rowcount > 0

    def soft_delete(self, user_id: str) -> bool:
        return self.update_fields(user_id, {"is_active": False})

    def touch_last_login(self, user_id: str, at: Optional[datetime] = None) -> bool:
        return self.update_fields(user_id, {"last_login_at": at or utcnow()})

    def update_email(self, user_id: str, email: str) -> bool:
        return self.update_fields(user_id, {"email": email})
