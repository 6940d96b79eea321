"""Business logic service for short links."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from .allocator import UniqueCodeAllocator
from .clicks import ClickRecorder
from .common.validators import is_valid_url, is_valid_short_code
from .database.base import MappingStoreBase, SORT_FIELDS, SORT_ORDERS, UniqueConstraintError
from .database.cache import RedisCache
from .database.models import LinkPage, OwnerStatistics, ShortLink
from .errors import (
    AliasTakenError,
    InvalidAliasError,
    InvalidDestinationError,
    NotFoundError,
    PermissionDeniedError,
)
from .identity import ANONYMOUS, CallerIdentity, Owned
from .shortcode import ShortCodeGenerator

MAX_PAGE_SIZE = 100
MAX_SEARCH_LENGTH = 200
MAX_BULK_DELETE = 50
RECENT_ACTIVITY_DAYS = 7
TOP_URLS = 5


class ShortLinkService:
    """Allocation, redirect resolution and owner management of short links."""

    def __init__(
        self,
        store: MappingStoreBase,
        cache: Optional[RedisCache] = None,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        logger: Optional[logging.Logger] = None,
        enable_custom_codes: bool = True,
        max_collision_retries: int = 5,
        custom_code_min_length: int = 3,
        custom_code_max_length: int = 30,
    ):
        """Initialize short link service.

        Args:
            store: Mapping store
            cache: Optional cache instance
            short_code_generator: Optional short code generator
            logger: Optional logger
            enable_custom_codes: Whether to allow custom short codes
            max_collision_retries: Attempt budget for generated codes
            custom_code_min_length: Minimum custom code length
            custom_code_max_length: Maximum custom code length
        """
        self.store = store
        self.cache = cache
        self.generator = short_code_generator or ShortCodeGenerator()
        self.logger = logger or logging.getLogger(__name__)
        self.enable_custom_codes = enable_custom_codes
        self.custom_code_min_length = custom_code_min_length
        self.custom_code_max_length = custom_code_max_length
        self.allocator = UniqueCodeAllocator(
            store=store,
            generator=self.generator,
            max_attempts=max_collision_retries,
            logger=self.logger,
        )
        self.clicks = ClickRecorder(store, logger=self.logger)

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    async def create_short_link(
        self,
        destination_url: str,
        caller: CallerIdentity = ANONYMOUS,
        custom_code: Optional[str] = None,
    ) -> str:
        """Create a short link for whichever caller is making the request.

        Args:
            destination_url: The destination URL
            caller: Anonymous or owned caller identity
            custom_code: Optional custom short code

        Returns:
            The short code
        """
        if custom_code:
            return await self.create_custom(destination_url, custom_code, caller)
        if isinstance(caller, Owned):
            return await self.create_for_owner(destination_url, caller.owner_id)
        return await self.create_anonymous(destination_url)

    async def create_anonymous(self, destination_url: str) -> str:
        """Shorten a URL without an owner.

        Identical anonymous submissions collapse to one mapping.

        Raises:
            InvalidDestinationError: If the URL is malformed
            ExhaustedRetriesError: If no unique code could be generated
        """
        return await self._create_generated(destination_url, owner_id=None)

    async def create_for_owner(self, destination_url: str, owner_id: str) -> str:
        """Shorten a URL for an owner, reusing the owner's previous code for it.

        Raises:
            InvalidDestinationError: If the URL is malformed
            ExhaustedRetriesError: If no unique code could be generated
        """
        if not owner_id:
            raise ValueError("owner_id is required")
        return await self._create_generated(destination_url, owner_id=owner_id)

    async def create_custom(
        self,
        destination_url: str,
        requested_code: str,
        caller: CallerIdentity = ANONYMOUS,
    ) -> str:
        """Map a caller-chosen code to a URL.

        No dedup by destination is applied; a caller may hold several aliases
        for the same URL.

        Args:
            destination_url: The destination URL
            requested_code: The custom code
            caller: Caller identity that will own the link

        Returns:
            ``requested_code`` verbatim

        Raises:
            InvalidDestinationError: If the URL is malformed
            InvalidAliasError: If the code is malformed or custom codes are disabled
            AliasTakenError: If the code is already mapped
        """
        self._validate_destination(destination_url)

        if not self.enable_custom_codes:
            raise InvalidAliasError("Custom short codes are not enabled")

        is_valid, error = is_valid_short_code(
            requested_code,
            min_length=self.custom_code_min_length,
            max_length=self.custom_code_max_length,
        )
        if not is_valid:
            raise InvalidAliasError(f"Invalid short code: {error}")

        if await self.store.exists_by_code(requested_code):
            raise AliasTakenError(requested_code)

        link = ShortLink(
            code=requested_code,
            destination_url=destination_url,
            owner_id=caller.owner_id,
        )
        try:
            await self.store.insert(link)
        except UniqueConstraintError:
            # Lost the race against a concurrent insert of the same alias
            raise AliasTakenError(requested_code) from None

        await self._cache_destination(requested_code, destination_url)
        self.logger.info(f"Created custom short link: {requested_code} -> {destination_url}")
        return requested_code

    async def _create_generated(self, destination_url: str, owner_id: Optional[str]) -> str:
        self._validate_destination(destination_url)

        existing = await self.store.find_code_by_destination(destination_url, owner_id)
        if existing:
            self.logger.debug(f"Reusing existing short link {existing} for {destination_url}")
            return existing

        link = await self.allocator.insert_with_unique_code(
            lambda code: ShortLink(code=code, destination_url=destination_url, owner_id=owner_id)
        )

        await self._cache_destination(link.code, destination_url)
        self.logger.info(f"Created short link: {link.code} -> {destination_url}")
        return link.code

    @staticmethod
    def _validate_destination(destination_url: str) -> None:
        is_valid, error = is_valid_url(destination_url)
        if not is_valid:
            raise InvalidDestinationError(f"Invalid URL: {error}")

    # ------------------------------------------------------------------
    # Redirect resolution
    # ------------------------------------------------------------------

    async def resolve(self, code: str, count_click: bool = True) -> str:
        """Get the destination URL for a short code.

        The click increment is scheduled in the background; this call never
        waits for it and is never affected by its outcome.

        Args:
            code: The short code to lookup
            count_click: Whether to record a click

        Returns:
            The destination URL

        Raises:
            NotFoundError: If no mapping exists
        """
        destination_url = None
        if self.cache:
            destination_url = await self.cache.get(self.cache.get_cache_key(code))
            if destination_url:
                self.logger.debug(f"Cache hit for {code}")

        if not destination_url:
            destination_url = await self.store.find_destination_by_code(code)
            if not destination_url:
                self.logger.warning(f"Short code not found: {code}")
                raise NotFoundError(code)
            if self.cache:
                await self._cache_destination(code, destination_url)
                # A delete that ran between the lookup and the cache write has
                # already cleared the key, so the row must still exist here.
                if not await self.store.exists_by_code(code):
                    await self.cache.delete(self.cache.get_cache_key(code))
                    self.logger.warning(f"Short code deleted during resolve: {code}")
                    raise NotFoundError(code)

        if count_click:
            self.clicks.record(code)

        self.logger.debug(f"Resolved: {code} -> {destination_url}")
        return destination_url

    async def get_link_info(self, code: str) -> ShortLink:
        """Get complete information about a short link.

        Raises:
            NotFoundError: If no mapping exists
        """
        link = await self.store.get_by_code(code)
        if link is None:
            raise NotFoundError(code)
        return link

    async def code_exists(self, code: str) -> bool:
        return await self.store.exists_by_code(code)

    # ------------------------------------------------------------------
    # Owner management
    # ------------------------------------------------------------------

    async def list_owner_links(
        self,
        owner_id: str,
        limit: int = 20,
        skip: int = 0,
        search: str = "",
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> LinkPage:
        """List an owner's links with search, sorting and pagination.

        Raises:
            ValueError: If a paging or sorting parameter is out of range
        """
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValueError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
        if skip < 0:
            raise ValueError("Skip cannot be negative")
        if len(search) > MAX_SEARCH_LENGTH:
            raise ValueError(f"Search query cannot exceed {MAX_SEARCH_LENGTH} characters")
        if sort_by not in SORT_FIELDS:
            raise ValueError(f"Sort by must be one of: {', '.join(SORT_FIELDS)}")
        if sort_order not in SORT_ORDERS:
            raise ValueError("Sort order must be 'asc' or 'desc'")

        links, total = await self.store.list_by_owner(
            owner_id,
            limit=limit,
            skip=skip,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return LinkPage(links=links, total_count=total, limit=limit, skip=skip)

    async def delete_link(self, code: str, owner_id: str) -> None:
        """Delete a link owned by ``owner_id``.

        Raises:
            NotFoundError: If the code is not stored
            PermissionDeniedError: If the link belongs to someone else
        """
        link = await self.store.get_by_code(code)
        if link is None:
            raise NotFoundError(code)
        if link.owner_id != owner_id:
            raise PermissionDeniedError("You can only delete your own URLs", [code])

        await self.store.delete_codes([code], owner_id)
        if self.cache:
            await self.cache.delete(self.cache.get_cache_key(code))

        self.logger.info(f"Deleted short link: {code}")

    async def bulk_delete(self, codes: Sequence[str], owner_id: str) -> int:
        """Delete several links, all or nothing.

        Args:
            codes: Codes to delete (1 to 50)
            owner_id: Owner that must own every code

        Returns:
            Number of deleted links

        Raises:
            ValueError: If the code list is empty or too long
            PermissionDeniedError: If any code is missing or not owned
        """
        unique_codes: List[str] = list(dict.fromkeys(codes))
        if not unique_codes:
            raise ValueError("At least one short code is required")
        if len(unique_codes) > MAX_BULK_DELETE:
            raise ValueError(f"Cannot delete more than {MAX_BULK_DELETE} URLs at once")

        owned = await self.store.find_owned_codes(unique_codes, owner_id)
        rejected = [code for code in unique_codes if code not in owned]
        if rejected:
            raise PermissionDeniedError(
                "Some URLs were not found or you don't have permission to delete them",
                rejected,
            )

        deleted = await self.store.delete_codes(unique_codes, owner_id)
        if self.cache:
            await self.cache.delete(*self.cache.get_cache_keys(unique_codes))

        self.logger.info(f"Bulk deleted {deleted} short links for owner {owner_id}")
        return deleted

    async def owner_statistics(self, owner_id: str) -> OwnerStatistics:
        """Aggregate an owner's totals, last week's activity and top links."""
        since = datetime.now(timezone.utc) - timedelta(days=RECENT_ACTIVITY_DAYS)
        return await self.store.owner_statistics(owner_id, since=since, top_n=TOP_URLS)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        db_healthy = await self.store.health_check()
        cache_healthy = await self.cache.ping() if self.cache else True

        return {
            "database": db_healthy,
            "cache": cache_healthy,
            "overall": db_healthy and cache_healthy,
        }

    async def close(self, drain_timeout: Optional[float] = 5.0) -> None:
        """Let pending click increments settle, then close connections."""
        await self.clicks.drain(timeout=drain_timeout)
        await self.store.close()
        if self.cache:
            await self.cache.close()

    async def _cache_destination(self, code: str, destination_url: str) -> None:
        if self.cache:
            await self.cache.set(self.cache.get_cache_key(code), destination_url)
