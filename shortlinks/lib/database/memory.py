"""In-memory short link store for development and tests."""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .base import MappingStoreBase, SORT_FIELDS, UniqueConstraintError
from .models import DailyActivity, OwnerStatistics, ShortLink


class InMemoryMappingStore(MappingStoreBase):
    """Process-local store keyed by short code.

    The dictionary key plays the role of the unique index on ``code``. All
    mutations run without suspending, so they are atomic with respect to
    other coroutines on the same event loop.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._links: Dict[str, ShortLink] = OrderedDict()
        self._insert_lock = asyncio.Lock()

    async def initialize(self) -> None:
        self.logger.debug("In-memory store ready")

    async def exists_by_code(self, code: str) -> bool:
        return code in self._links

    async def find_code_by_destination(
        self,
        destination_url: str,
        owner_id: Optional[str],
    ) -> Optional[str]:
        for link in self._links.values():
            if link.destination_url == destination_url and link.owner_id == owner_id:
                return link.code
        return None

    async def insert(self, link: ShortLink) -> ShortLink:
        async with self._insert_lock:
            if link.code in self._links:
                raise UniqueConstraintError(link.code)
            stored = replace(link)
            self._links[link.code] = stored

        self.logger.debug(f"Stored short link: {link.code} -> {link.destination_url}")
        return replace(stored)

    async def increment_click_count(self, code: str) -> None:
        link = self._links.get(code)
        if link is None:
            self.logger.warning(f"Cannot increment click count - short code not found: {code}")
            return
        link.click_count += 1

    async def find_destination_by_code(self, code: str) -> Optional[str]:
        link = self._links.get(code)
        return link.destination_url if link else None

    async def get_by_code(self, code: str) -> Optional[ShortLink]:
        link = self._links.get(code)
        return replace(link) if link else None

    async def find_owned_codes(self, codes: Iterable[str], owner_id: str) -> Set[str]:
        return {
            code for code in codes
            if code in self._links and self._links[code].owner_id == owner_id
        }

    async def delete_codes(self, codes: Iterable[str], owner_id: str) -> int:
        deleted = 0
        for code in set(codes):
            link = self._links.get(code)
            if link is not None and link.owner_id == owner_id:
                del self._links[code]
                deleted += 1
        return deleted

    async def list_by_owner(
        self,
        owner_id: str,
        limit: int,
        skip: int,
        search: str = "",
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[ShortLink], int]:
        attribute = SORT_FIELDS[sort_by]
        needle = search.strip().lower()

        matches = [
            link for link in self._links.values()
            if link.owner_id == owner_id
            and (
                not needle
                or needle in link.destination_url.lower()
                or needle in link.code.lower()
            )
        ]
        matches.sort(key=lambda link: getattr(link, attribute), reverse=sort_order == "desc")

        page = matches[skip:skip + limit]
        return [replace(link) for link in page], len(matches)

    async def owner_statistics(
        self,
        owner_id: str,
        since: datetime,
        top_n: int = 5,
    ) -> OwnerStatistics:
        owned = [link for link in self._links.values() if link.owner_id == owner_id]

        total_urls = len(owned)
        total_clicks = sum(link.click_count for link in owned)
        average = round(total_clicks / total_urls, 2) if total_urls else 0.0

        days: Dict[str, DailyActivity] = {}
        for link in owned:
            if link.created_at < since:
                continue
            day = link.created_at.strftime("%Y-%m-%d")
            activity = days.setdefault(day, DailyActivity(date=day, count=0, clicks=0))
            activity.count += 1
            activity.clicks += link.click_count

        top = sorted(owned, key=lambda link: link.click_count, reverse=True)[:top_n]

        return OwnerStatistics(
            total_urls=total_urls,
            total_clicks=total_clicks,
            avg_clicks_per_url=average,
            recent_activity=[days[day] for day in sorted(days)],
            top_urls=[replace(link) for link in top],
        )

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self.logger.debug(f"Closing in-memory store with {len(self._links)} links")
