"""Data models for the short link store."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ShortLink:
    """Represents a short code to destination mapping."""

    code: str
    destination_url: str
    owner_id: Optional[str] = None
    click_count: int = 0
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_anonymous(self) -> bool:
        return self.owner_id is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "code": self.code,
            "destination_url": self.destination_url,
            "owner_id": self.owner_id,
            "click_count": self.click_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_record(cls, data: Any) -> "ShortLink":
        """Create from a database row or mapping."""
        created_at = data["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        return cls(
            code=data["code"],
            destination_url=data["destination_url"],
            owner_id=data["owner_id"],
            click_count=data["click_count"] or 0,
            created_at=created_at,
        )


@dataclass
class LinkPage:
    """One page of an owner's links."""

    links: List[ShortLink]
    total_count: int
    limit: int
    skip: int

    @property
    def count(self) -> int:
        return len(self.links)

    @property
    def total_pages(self) -> int:
        return -(-self.total_count // self.limit)

    @property
    def current_page(self) -> int:
        return self.skip // self.limit + 1

    @property
    def has_more(self) -> bool:
        return self.skip + self.limit < self.total_count


@dataclass
class DailyActivity:
    """Links created on one UTC day, with their clicks."""

    date: str
    count: int
    clicks: int


@dataclass
class OwnerStatistics:
    """Aggregated click statistics for one owner."""

    total_urls: int
    total_clicks: int
    avg_clicks_per_url: float
    recent_activity: List[DailyActivity] = field(default_factory=list)
    top_urls: List[ShortLink] = field(default_factory=list)
