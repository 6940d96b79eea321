"""Tests for service layer."""

import pytest
from shortlinks.lib.database.base import UniqueConstraintError
from shortlinks.lib.database.memory import InMemoryMappingStore
from shortlinks.lib.errors import (
    AliasTakenError,
    InvalidAliasError,
    InvalidDestinationError,
    NotFoundError,
    PermissionDeniedError,
)
from shortlinks.lib.identity import ANONYMOUS, Owned
from shortlinks.lib.service import ShortLinkService


class AliasRaceStore(InMemoryMappingStore):
    """Store where another writer takes the alias between check and insert."""

    async def exists_by_code(self, code):
        return False

    async def insert(self, link):
        raise UniqueConstraintError(link.code)


@pytest.mark.asyncio
class TestShortLinkAllocation:
    """Test the three creation paths."""

    async def test_create_anonymous(self, service, sample_urls):
        code = await service.create_anonymous(sample_urls[0])

        assert len(code) == 7
        link = await service.get_link_info(code)
        assert link.destination_url == sample_urls[0]
        assert link.owner_id is None
        assert link.click_count == 0

    async def test_anonymous_dedup(self, service, sample_urls):
        """Repeated anonymous submissions return the same code."""
        first = await service.create_anonymous(sample_urls[0])
        second = await service.create_anonymous(sample_urls[0])
        other = await service.create_anonymous(sample_urls[1])

        assert first == second
        assert other != first

    async def test_owner_dedup_is_scoped_per_owner(self, service, sample_urls):
        alice_1 = await service.create_for_owner(sample_urls[0], "alice")
        alice_2 = await service.create_for_owner(sample_urls[0], "alice")
        bob = await service.create_for_owner(sample_urls[0], "bob")
        anonymous = await service.create_anonymous(sample_urls[0])

        assert alice_1 == alice_2
        assert len({alice_1, bob, anonymous}) == 3

    async def test_anonymous_does_not_reuse_owned_code(self, service, sample_urls):
        owned = await service.create_for_owner(sample_urls[0], "alice")
        anonymous = await service.create_anonymous(sample_urls[0])

        assert owned != anonymous
        assert (await service.get_link_info(anonymous)).owner_id is None

    async def test_create_for_owner_requires_owner(self, service, sample_urls):
        with pytest.raises(ValueError):
            await service.create_for_owner(sample_urls[0], "")

    async def test_create_short_link_dispatch(self, service, sample_urls):
        anonymous = await service.create_short_link(sample_urls[0], ANONYMOUS)
        owned = await service.create_short_link(sample_urls[0], Owned("alice"))
        custom = await service.create_short_link(sample_urls[0], Owned("alice"), "my-link")

        assert (await service.get_link_info(anonymous)).owner_id is None
        assert (await service.get_link_info(owned)).owner_id == "alice"
        assert custom == "my-link"

    async def test_invalid_url(self, service):
        """Test invalid URL rejection."""
        with pytest.raises(InvalidDestinationError, match="Invalid URL"):
            await service.create_anonymous("not-a-url")

        with pytest.raises(InvalidDestinationError):
            await service.create_custom("", "valid-alias", Owned("alice"))

    async def test_create_custom(self, service, sample_urls):
        code = await service.create_custom(sample_urls[0], "valid-alias_1", Owned("alice"))

        assert code == "valid-alias_1"
        link = await service.get_link_info(code)
        assert link.owner_id == "alice"
        assert link.destination_url == sample_urls[0]

    @pytest.mark.parametrize("alias", ["ab", "a!b", "a" * 31, "has space", "api"])
    async def test_create_custom_invalid_alias(self, service, sample_urls, alias):
        with pytest.raises(InvalidAliasError):
            await service.create_custom(sample_urls[0], alias, Owned("alice"))

        assert not await service.code_exists(alias)

    async def test_custom_alias_taken_leaves_existing_link(self, service, sample_urls):
        await service.create_custom(sample_urls[0], "taken", Owned("alice"))

        with pytest.raises(AliasTakenError, match="already exists"):
            await service.create_custom(sample_urls[1], "taken", Owned("bob"))

        link = await service.get_link_info("taken")
        assert link.destination_url == sample_urls[0]
        assert link.owner_id == "alice"

    async def test_custom_has_no_dedup(self, service, sample_urls):
        first = await service.create_custom(sample_urls[0], "first-alias", Owned("alice"))
        second = await service.create_custom(sample_urls[0], "second-alias", Owned("alice"))

        assert first != second

    async def test_custom_insert_race_is_alias_taken(self, logger, sample_urls):
        service = ShortLinkService(store=AliasRaceStore(logger=logger), logger=logger)

        with pytest.raises(AliasTakenError):
            await service.create_custom(sample_urls[0], "raced", Owned("alice"))

    async def test_custom_codes_disabled(self, store, logger, sample_urls):
        service = ShortLinkService(store=store, logger=logger, enable_custom_codes=False)

        with pytest.raises(InvalidAliasError, match="not enabled"):
            await service.create_custom(sample_urls[0], "my-link", Owned("alice"))

    async def test_many_creations_get_distinct_codes(self, service):
        created = {}
        for i in range(200):
            url = f"https://example.com/page/{i}"
            if i % 2:
                code = await service.create_for_owner(url, f"owner-{i % 5}")
            else:
                code = await service.create_anonymous(url)
            created[code] = url

        assert len(created) == 200
        for code, url in created.items():
            assert await service.resolve(code, count_click=False) == url


@pytest.mark.asyncio
class TestShortLinkResolution:
    """Test redirect resolution."""

    async def test_resolve(self, service, sample_urls):
        code = await service.create_anonymous(sample_urls[0])

        assert await service.resolve(code) == sample_urls[0]

    async def test_resolve_not_found(self, service):
        with pytest.raises(NotFoundError, match="not found"):
            await service.resolve("missing")

    async def test_resolve_counts_click(self, service, sample_urls):
        code = await service.create_anonymous(sample_urls[0])

        await service.resolve(code)
        await service.resolve(code)
        await service.resolve(code, count_click=False)
        await service.clicks.drain()

        assert (await service.get_link_info(code)).click_count == 2

    async def test_get_link_info_not_found(self, service):
        with pytest.raises(NotFoundError):
            await service.get_link_info("missing")

    async def test_code_exists(self, service, sample_urls):
        code = await service.create_anonymous(sample_urls[0])

        assert await service.code_exists(code)
        assert not await service.code_exists("nonexistent")


@pytest.mark.asyncio
class TestOwnerManagement:
    """Test listing, deletion and statistics."""

    async def test_list_owner_links(self, service, sample_urls):
        for url in sample_urls:
            await service.create_for_owner(url, "alice")
        await service.create_for_owner(sample_urls[0], "bob")

        page = await service.list_owner_links("alice", limit=2)

        assert page.total_count == 3
        assert page.count == 2
        assert page.total_pages == 2
        assert page.current_page == 1
        assert page.has_more

        second = await service.list_owner_links("alice", limit=2, skip=2)
        assert second.count == 1
        assert second.current_page == 2
        assert not second.has_more

    async def test_list_search_and_sort(self, service, sample_urls):
        for url in sample_urls:
            await service.create_for_owner(url, "alice")

        page = await service.list_owner_links("alice", search="GITHUB")
        assert [link.destination_url for link in page.links] == [sample_urls[1]]

        page = await service.list_owner_links("alice", sort_by="destination_url", sort_order="asc")
        assert [link.destination_url for link in page.links] == sorted(sample_urls)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"limit": 0},
            {"limit": 101},
            {"skip": -1},
            {"search": "x" * 201},
            {"sort_by": "owner_id"},
            {"sort_order": "sideways"},
        ],
    )
    async def test_list_rejects_bad_parameters(self, service, kwargs):
        with pytest.raises(ValueError):
            await service.list_owner_links("alice", **kwargs)

    async def test_delete_link(self, service, sample_urls):
        code = await service.create_for_owner(sample_urls[0], "alice")

        await service.delete_link(code, "alice")

        assert not await service.code_exists(code)

    async def test_delete_link_not_found(self, service):
        with pytest.raises(NotFoundError):
            await service.delete_link("missing", "alice")

    async def test_delete_link_of_other_owner(self, service, sample_urls):
        code = await service.create_for_owner(sample_urls[0], "alice")

        with pytest.raises(PermissionDeniedError):
            await service.delete_link(code, "bob")

        assert await service.code_exists(code)

    async def test_bulk_delete(self, service, sample_urls):
        codes = [await service.create_for_owner(url, "alice") for url in sample_urls]

        deleted = await service.bulk_delete(codes + [codes[0]], "alice")

        assert deleted == 3
        for code in codes:
            assert not await service.code_exists(code)

    async def test_bulk_delete_is_all_or_nothing(self, service, sample_urls):
        mine = await service.create_for_owner(sample_urls[0], "alice")
        theirs = await service.create_for_owner(sample_urls[1], "bob")

        with pytest.raises(PermissionDeniedError) as exc_info:
            await service.bulk_delete([mine, theirs, "missing"], "alice")

        assert exc_info.value.codes == [theirs, "missing"]
        assert await service.code_exists(mine)
        assert await service.code_exists(theirs)

    async def test_bulk_delete_limits(self, service):
        with pytest.raises(ValueError):
            await service.bulk_delete([], "alice")

        with pytest.raises(ValueError, match="more than 50"):
            await service.bulk_delete([f"code{i}" for i in range(51)], "alice")

    async def test_owner_statistics(self, service, sample_urls):
        codes = [await service.create_for_owner(url, "alice") for url in sample_urls]
        await service.create_for_owner(sample_urls[0], "bob")

        for _ in range(3):
            await service.resolve(codes[1])
        await service.resolve(codes[2])
        await service.clicks.drain()

        stats = await service.owner_statistics("alice")

        assert stats.total_urls == 3
        assert stats.total_clicks == 4
        assert stats.avg_clicks_per_url == 1.33
        assert sum(day.count for day in stats.recent_activity) == 3
        assert sum(day.clicks for day in stats.recent_activity) == 4
        assert [link.code for link in stats.top_urls][:2] == [codes[1], codes[2]]

    async def test_owner_statistics_empty(self, service):
        stats = await service.owner_statistics("nobody")

        assert stats.total_urls == 0
        assert stats.avg_clicks_per_url == 0.0
        assert stats.recent_activity == []
        assert stats.top_urls == []

    async def test_health_check(self, service):
        health = await service.health_check()

        assert health == {"database": True, "cache": True, "overall": True}
