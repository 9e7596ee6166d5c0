"""
SQLAlchemy implementation of the Base Repository.
"""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from syncrelay.domain.repositories.base import BaseRepository
from syncrelay.infrastructure.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class SQLAlchemyRepository(BaseRepository[ModelType], Generic[ModelType]):
    """Generic repository implementation for SQLAlchemy models."""

    def __init__(self, db: Session, model: Type[ModelType]):
        self.db = db
        self.model = model

    def get_by_id(self, id: str) -> Optional[ModelType]:
        # Bypass the identity map so rows changed by bulk UPDATEs read fresh
        return self.db.get(self.model, id, populate_existing=True)

    def count(self) -> int:
        return self.db.scalar(select(func.count()).select_from(self.model)) or 0
