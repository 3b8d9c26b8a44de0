"""Tests for the link manager."""

import asyncio
import logging

import pytest
from shortlinks.errors import (
    InvalidLink,
    LinkDecodingFailure,
    LinkNotFound,
    ShortCodeExhausted,
    StoreOpenFailure,
)
from shortlinks.manager import LinkManager
from shortlinks.database.cache import RedisCache
from shortlinks.database.codec import encode_link
from shortlinks.models import Link


@pytest.mark.asyncio
class TestGenerateLink:
    """Test link creation."""

    async def test_generate_link(self, manager, sample_urls):
        """A generated link carries the normalized URL and a short code."""
        link = await manager.generate_link(sample_urls[0])

        assert link.original_url == sample_urls[0]
        assert len(link.short_code) == 7
        assert link.identifier.version == 4
        assert link.aliases is None

    async def test_generate_normalizes_url(self, manager):
        """Scheme and host are normalized."""
        link = await manager.generate_link("HTTPS://Example.COM")

        assert link.original_url == "https://example.com/"

    async def test_aliases_are_encoded_in_order(self, manager, sample_urls):
        """Aliases are percent-encoded and keep their order."""
        link = await manager.generate_link(sample_urls[0], ["my link", "a/b", "plain"])

        assert link.aliases == ("my%20link", "a%2Fb", "plain")

    async def test_invalid_url_does_not_touch_store(self, manager):
        """Invalid input is rejected before anything is written."""
        with pytest.raises(InvalidLink):
            await manager.generate_link("not a url", None)

        assert await manager.count_links() == 0

    async def test_forbidden_host_is_not_stored(self, manager):
        """Hosts with forbidden characters never reach the store."""
        for url in ("https://exa<mple.com/", "https://bad^host|x.com/", 'https://a"b.com/'):
            with pytest.raises(InvalidLink):
                await manager.generate_link(url)

        assert await manager.count_links() == 0

    async def test_invalid_alias_does_not_touch_store(self, manager, sample_urls):
        """Invalid aliases are rejected before anything is written."""
        with pytest.raises(InvalidLink):
            await manager.generate_link(sample_urls[0], ["ok", 5])

        assert await manager.count_links() == 0

    async def test_same_url_twice_gives_two_records(self, manager, sample_urls):
        """Generation is not idempotent, and never overwrites."""
        first = await manager.generate_link(sample_urls[0])
        second = await manager.generate_link(sample_urls[0])

        assert first.identifier != second.identifier
        assert first.short_code != second.short_code
        assert await manager.resolve_link(first.short_code) == first
        assert await manager.resolve_link(second.short_code) == second

    async def test_uniqueness(self, manager):
        """Identifiers and short codes are pairwise distinct."""
        links = [await manager.generate_link(f"https://example.com/{i}") for i in range(1000)]

        assert len({link.identifier for link in links}) == 1000
        assert len({link.short_code for link in links}) == 1000
        assert await manager.count_links() == 1000

    async def test_concurrent_generation(self, manager):
        """Concurrent calls all succeed with distinct short codes."""
        links = await asyncio.gather(
            *(manager.generate_link(f"https://example.com/page_{i}") for i in range(200))
        )

        assert len({link.short_code for link in links}) == 200
        assert await manager.count_links() == 200


@pytest.mark.asyncio
class TestCollisions:
    """Short code collision handling."""

    async def test_collision_retries_with_next_code(self, store, logger, sample_urls, fixed_codes):
        """A taken code is skipped and the existing record is kept."""
        first = await LinkManager(store, short_code_generator=fixed_codes(["taken"]), logger=logger) \
            .generate_link(sample_urls[0])

        manager = LinkManager(store, short_code_generator=fixed_codes(["taken", "fresh"]), logger=logger)
        second = await manager.generate_link(sample_urls[1])

        assert second.short_code == "fresh"
        assert await manager.resolve_link("taken") == first
        assert await manager.resolve_link("fresh") == second

    async def test_exhausted(self, store, logger, sample_urls, fixed_codes):
        """Giving up after the retry budget leaves the store unchanged."""
        first = await LinkManager(store, short_code_generator=fixed_codes(["taken"]), logger=logger) \
            .generate_link(sample_urls[0])

        manager = LinkManager(
            store,
            short_code_generator=fixed_codes(["taken"] * 10),
            logger=logger,
            max_collision_retries=3,
        )

        with pytest.raises(ShortCodeExhausted) as exc_info:
            await manager.generate_link(sample_urls[1])

        assert exc_info.value.attempts == 3
        assert await manager.count_links() == 1
        assert await manager.resolve_link("taken") == first

    async def test_store_level_overwrite(self, store, manager, sample_urls):
        """A plain store insert under an existing code replaces the record."""
        first = await manager.generate_link(sample_urls[0])
        replacement = Link(
            identifier=first.identifier,
            original_url=sample_urls[1],
            short_code=first.short_code,
        )

        await store.insert(first.storage_key, encode_link(replacement))

        assert await manager.resolve_link(first.short_code) == replacement

    async def test_invalid_retry_budget(self, store):
        """At least one attempt is required."""
        with pytest.raises(ValueError):
            LinkManager(store, max_collision_retries=0)


@pytest.mark.asyncio
class TestResolveLink:
    """Test link resolution."""

    async def test_round_trip(self, manager, sample_urls):
        """Resolving returns an equal record."""
        for url in sample_urls:
            link = await manager.generate_link(url, ["alias one", "alias/two"])
            assert await manager.resolve_link(link.short_code) == link

    async def test_not_found(self, manager):
        """Unknown codes raise LinkNotFound."""
        with pytest.raises(LinkNotFound) as exc_info:
            await manager.resolve_link("nothere")

        assert exc_info.value.short_code == "nothere"

    async def test_not_found_in_populated_store(self, manager, sample_urls):
        """Absence is not confused with decoding errors."""
        await manager.generate_link(sample_urls[0])

        for code in ("", "x", "nothere", "ünïcode"):
            with pytest.raises(LinkNotFound):
                await manager.resolve_link(code)

    async def test_unencodable_code_not_found(self, manager, sample_urls):
        """Codes that are not valid UTF-8 were never stored."""
        await manager.generate_link(sample_urls[0])

        with pytest.raises(LinkNotFound) as exc_info:
            await manager.resolve_link("ab\udc80")

        assert exc_info.value.short_code == "ab\udc80"
        assert not await manager.link_exists("ab\udc80")

    async def test_corrupt_record(self, store, manager):
        """Garbage under a key raises LinkDecodingFailure."""
        await store.insert(b"broken", b"\x01\x02\x03")

        with pytest.raises(LinkDecodingFailure):
            await manager.resolve_link("broken")

    async def test_record_under_wrong_key(self, store, manager, sample_urls):
        """A record stored under another code is treated as corrupt."""
        link = await manager.generate_link(sample_urls[0])
        await store.insert(b"other", encode_link(link))

        with pytest.raises(LinkDecodingFailure):
            await manager.resolve_link("other")

    async def test_link_exists(self, manager, sample_urls):
        """Existence check."""
        link = await manager.generate_link(sample_urls[0])

        assert await manager.link_exists(link.short_code)
        assert not await manager.link_exists("nothere")

    async def test_list_links(self, manager, sample_urls):
        """Listing is ordered by short code and pages with start_after."""
        created = [await manager.generate_link(url) for url in sample_urls]
        ordered = sorted(created, key=lambda link: link.short_code.encode())

        assert await manager.list_links() == ordered
        assert await manager.list_links(limit=1) == ordered[:1]
        assert await manager.list_links(start_after=ordered[0].short_code) == ordered[1:]

    async def test_list_links_start_after_unencodable(self, manager, sample_urls):
        """Paging from a code with a lone surrogate still follows byte order."""
        for url in sample_urls:
            await manager.generate_link(url)

        # Base62 codes sort before the encoded bytes of any surrogate
        assert await manager.list_links(start_after="\udc80") == []

    async def test_list_links_fails_on_corrupt_record(self, store, manager, sample_urls):
        """One corrupt record fails the whole page."""
        await manager.generate_link(sample_urls[0])
        await store.insert(b"broken", b"\x01\x02\x03")

        with pytest.raises(LinkDecodingFailure):
            await manager.list_links()

    async def test_list_links_fails_on_non_utf8_key(self, store, manager, sample_urls):
        """A key that is not UTF-8 cannot carry a matching short code."""
        link = await manager.generate_link(sample_urls[0])
        await store.insert(b"\xff\xfe", encode_link(link))

        with pytest.raises(LinkDecodingFailure):
            await manager.list_links()


@pytest.mark.asyncio
class TestLifecycle:
    """Creating and closing managers."""

    async def test_create_persists_across_instances(self, store_path, logger, sample_urls):
        """Links survive closing and reopening the store."""
        manager = await LinkManager.create(store_path, logger=logger)
        link = await manager.generate_link(sample_urls[0], ["docs"])
        await manager.close()

        reopened = await LinkManager.create(store_path, logger=logger)
        try:
            assert await reopened.resolve_link(link.short_code) == link
        finally:
            await reopened.close()

    async def test_create_without_path(self, caplog, sample_urls):
        """A temporary store is used when no path is given."""
        with caplog.at_level(logging.WARNING, logger="shortlinks"):
            manager = await LinkManager.create(None)

        try:
            link = await manager.generate_link(sample_urls[0])
            assert await manager.resolve_link(link.short_code) == link
            assert any("temporary" in r.getMessage() for r in caplog.records)
        finally:
            await manager.close()

    async def test_create_fails_on_bad_path(self, tmp_path):
        """Store open errors propagate."""
        path = tmp_path / "file"
        path.write_text("x")

        with pytest.raises(StoreOpenFailure):
            await LinkManager.create(path)

    async def test_health_check(self, manager):
        """Health reflects the store."""
        health = await manager.health_check()

        assert health == {"store": True, "cache": True, "overall": True}

        await manager.close()
        health = await manager.health_check()

        assert health["store"] is False
        assert health["overall"] is False


@pytest.mark.asyncio
class TestCachedManager:
    """Link manager with a Redis cache."""

    @pytest.fixture
    def cache(self, fake_redis, logger):
        return RedisCache(ttl_seconds=60, logger=logger, client=fake_redis)

    @pytest.fixture
    def cached_manager(self, store, cache, logger):
        return LinkManager(store, cache=cache, logger=logger)

    async def test_generate_populates_cache(self, cached_manager, cache, fake_redis, sample_urls):
        """New records are written to the cache."""
        link = await cached_manager.generate_link(sample_urls[0])

        key = cache.get_cache_key(link.short_code)
        assert fake_redis.data[key] == encode_link(link)
        assert fake_redis.ttls[key] == 60

    async def test_resolve_uses_cache(self, cached_manager, store, cache, sample_urls):
        """Cached records resolve without the store."""
        link = await cached_manager.generate_link(sample_urls[0])
        await store.close()

        assert await cached_manager.resolve_link(link.short_code) == link

    async def test_resolve_fills_cache_on_miss(self, cached_manager, fake_redis, cache, sample_urls):
        """A store hit is cached."""
        link = await cached_manager.generate_link(sample_urls[0])
        fake_redis.data.clear()

        assert await cached_manager.resolve_link(link.short_code) == link
        assert cache.get_cache_key(link.short_code) in fake_redis.data

    async def test_corrupt_cache_entry_falls_back(self, cached_manager, fake_redis, cache, sample_urls):
        """Corrupt cache entries are replaced from the store."""
        link = await cached_manager.generate_link(sample_urls[0])
        key = cache.get_cache_key(link.short_code)
        fake_redis.data[key] = b"garbage"

        assert await cached_manager.resolve_link(link.short_code) == link
        assert fake_redis.data[key] == encode_link(link)

    async def test_cache_failure_is_a_miss(self, cached_manager, fake_redis, sample_urls):
        """An unavailable cache does not break generation or resolution."""
        fake_redis.fail = True

        link = await cached_manager.generate_link(sample_urls[0])

        assert await cached_manager.resolve_link(link.short_code) == link

    async def test_health_reports_cache(self, cached_manager, fake_redis):
        """Cache outages show in the health check."""
        assert (await cached_manager.health_check())["overall"]

        fake_redis.fail = True
        health = await cached_manager.health_check()

        assert health["store"] is True
        assert health["cache"] is False
        assert health["overall"] is False

    async def test_close_closes_cache(self, cached_manager, fake_redis):
        """Closing the manager closes the cache client."""
        await cached_manager.close()

        assert fake_redis.closed
