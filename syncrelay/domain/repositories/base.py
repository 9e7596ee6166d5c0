"""
Base Repository Interface.
Defines the standard contract for data access operations.
"""

from typing import Optional, Protocol, TypeVar

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    """Interface for generic read operations.

    There is no delete: records are retired with a flag.
    """

    def get_by_id(self, id: str) -> Optional[T]:
        """Get a single entity by ID."""
        ...

    def count(self) -> int:
        """Number of stored entities."""
        ...
