"""Abstract base class for short link store implementations."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional, Set, Tuple

from .models import OwnerStatistics, ShortLink


# Sortable fields for owner listings, mapped to storage column names
SORT_FIELDS = {
    "created_at": "created_at",
    "click_count": "click_count",
    "code": "code",
    "destination_url": "destination_url",
}

SORT_ORDERS = ("asc", "desc")


class UniqueConstraintError(Exception):
    """Raised by ``insert`` when the short code is already stored."""

    def __init__(self, code: str):
        super().__init__(f"Short code already stored: {code}")
        self.code = code


class MappingStoreBase(ABC):
    """Abstract base class for short link persistence.

    Implementations must enforce uniqueness of ``code`` themselves and must
    increment click counts atomically.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indexes if the backend needs them."""

    @abstractmethod
    async def exists_by_code(self, code: str) -> bool:
        """Check if a short code is already stored.

        Args:
            code: The short code to check

        Returns:
            True if exists, False otherwise
        """

    @abstractmethod
    async def find_code_by_destination(
        self,
        destination_url: str,
        owner_id: Optional[str],
    ) -> Optional[str]:
        """Find an existing code for a destination, scoped to an owner.

        Args:
            destination_url: The destination URL
            owner_id: Owner to match, or None to match anonymous links only

        Returns:
            The existing code or None
        """

    @abstractmethod
    async def insert(self, link: ShortLink) -> ShortLink:
        """Insert a new mapping in a single atomic write.

        Args:
            link: The link to store

        Returns:
            The stored link

        Raises:
            UniqueConstraintError: If ``link.code`` is already stored
        """

    @abstractmethod
    async def increment_click_count(self, code: str) -> None:
        """Atomically add one click to a short code.

        Args:
            code: The short code to update
        """

    @abstractmethod
    async def find_destination_by_code(self, code: str) -> Optional[str]:
        """Get the destination URL for a short code.

        Args:
            code: The short code to lookup

        Returns:
            The destination URL if found, None otherwise
        """

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[ShortLink]:
        """Get the complete mapping for a short code."""

    @abstractmethod
    async def find_owned_codes(self, codes: Iterable[str], owner_id: str) -> Set[str]:
        """Return the subset of ``codes`` stored and owned by ``owner_id``."""

    @abstractmethod
    async def delete_codes(self, codes: Iterable[str], owner_id: str) -> int:
        """Delete the given codes owned by ``owner_id``.

        Returns:
            Number of deleted mappings
        """

    @abstractmethod
    async def list_by_owner(
        self,
        owner_id: str,
        limit: int,
        skip: int,
        search: str = "",
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[ShortLink], int]:
        """List an owner's links.

        Args:
            owner_id: Owner to list
            limit: Page size
            skip: Number of links to skip
            search: Case-insensitive substring matched on destination or code
            sort_by: One of SORT_FIELDS
            sort_order: "asc" or "desc"

        Returns:
            Tuple of (page of links, total matching links)
        """

    @abstractmethod
    async def owner_statistics(
        self,
        owner_id: str,
        since: datetime,
        top_n: int = 5,
    ) -> OwnerStatistics:
        """Aggregate an owner's link and click counts.

        Args:
            owner_id: Owner to aggregate
            since: Start of the recent-activity window
            top_n: Number of most clicked links to include

        Returns:
            Owner statistics
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is healthy."""

    @abstractmethod
    async def close(self) -> None:
        """Close store connections."""
