"""Tests for service layer."""

import asyncio
from typing import Dict, Iterable, Optional

import pytest

from conftest import StubStore
from shortener.deleter import URLDeleter
from shortener.errors import InvalidURLError, URLExistsError, URLNotFoundError, URLDeletedError
from shortener.service import URLShortenerService
from shortener.storage.memory import MemoryStorage


class FakeCache:
    """Dictionary standing in for RedisCache."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.closed = False

    def get_cache_key(self, short_id: str) -> str:
        return f"url:shortener:{short_id}"

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        self.data[key] = value
        return True

    async def delete_many(self, keys: Iterable[str]) -> int:
        removed = 0
        for key in keys:
            removed += self.data.pop(key, None) is not None
        return removed

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self.closed = True


class YieldingStore(MemoryStorage):
    """Memory storage whose URL lookups suspend, letting requests interleave."""

    async def get_short_id_by_original_url(self, original_url):
        await asyncio.sleep(0)
        return await super().get_short_id_by_original_url(original_url)


class TestURLShortenerService:
    """Test URL shortener service."""

    @pytest.mark.asyncio
    async def test_shorten_url(self, service, sample_urls):
        """Test creating short URL."""
        short_id = await service.shorten_url(sample_urls[0], "user1")

        assert len(short_id) == 8
        record = await service.store.get_url(short_id)
        assert record.original_url == sample_urls[0]
        assert record.user_id == "user1"

    @pytest.mark.asyncio
    async def test_shorten_duplicate(self, service, sample_urls):
        """A URL shortened twice reports the first short id."""
        first = await service.shorten_url(sample_urls[0], "user1")

        with pytest.raises(URLExistsError) as exc_info:
            await service.shorten_url(sample_urls[0], "user2")

        assert exc_info.value.short_id == first

    @pytest.mark.asyncio
    async def test_invalid_url(self, service):
        """Test invalid URL rejection."""
        with pytest.raises(InvalidURLError, match="Invalid URL"):
            await service.shorten_url("not-a-url", "user1")

    @pytest.mark.asyncio
    async def test_get_original_url(self, service, sample_urls):
        """Test getting original URL."""
        short_id = await service.shorten_url(sample_urls[0], "user1")

        assert await service.get_original_url(short_id) == sample_urls[0]

    @pytest.mark.asyncio
    async def test_get_nonexistent_url(self, service):
        """Test getting nonexistent URL."""
        with pytest.raises(URLNotFoundError):
            await service.get_original_url("nonexistent")

    @pytest.mark.asyncio
    async def test_shorten_batch(self, service, sample_urls):
        """Batch results keep input order and correlation ids."""
        items = [(f"c{i}", url) for i, url in enumerate(sample_urls)]

        result = await service.shorten_batch(items, "user1")

        assert [corr for corr, _ in result] == ["c0", "c1", "c2"]
        assert len({short_id for _, short_id in result}) == 3
        for (_, short_id), url in zip(result, sample_urls):
            assert await service.get_original_url(short_id) == url

    @pytest.mark.asyncio
    async def test_shorten_batch_reuses_existing(self, service, sample_urls):
        existing = await service.shorten_url(sample_urls[0], "user1")

        result = await service.shorten_batch(
            [("a", sample_urls[0]), ("b", sample_urls[1]), ("c", sample_urls[1])],
            "user1",
        )

        assert result[0] == ("a", existing)
        assert result[1][1] == result[2][1]

    @pytest.mark.asyncio
    async def test_shorten_batch_rejects_empty_and_invalid(self, service):
        with pytest.raises(ValueError):
            await service.shorten_batch([], "user1")
        with pytest.raises(InvalidURLError):
            await service.shorten_batch([("a", "https://ok.example"), ("b", "nope")], "user1")

        assert await service.get_user_urls("user1") == []

    @pytest.mark.asyncio
    async def test_get_user_urls(self, service, sample_urls):
        for url in sample_urls:
            await service.shorten_url(url, "user1")
        await service.shorten_url("https://other.example", "user2")

        records = await service.get_user_urls("user1")

        assert sorted(r.original_url for r in records) == sorted(sample_urls)

    @pytest.mark.asyncio
    async def test_delete_user_urls(self, service, sample_urls):
        """Deleted ids resolve to URLDeletedError; other users' ids are untouched."""
        mine = await service.shorten_url(sample_urls[0], "user1")
        theirs = await service.shorten_url(sample_urls[1], "user2")

        report = await service.delete_user_urls([mine, theirs], "user1")

        assert report.ok
        with pytest.raises(URLDeletedError):
            await service.get_original_url(mine)
        assert await service.get_original_url(theirs) == sample_urls[1]

    @pytest.mark.asyncio
    async def test_delete_reports_storage_failures(self, sample_urls):
        store = StubStore(fail_when=lambda batch: True)
        service = URLShortenerService(store=store, deleter=URLDeleter(store))
        short_id = await service.shorten_url(sample_urls[0], "user1")

        report = await service.delete_user_urls([short_id], "user1")

        assert isinstance(report.error, ConnectionError)
        assert await service.get_original_url(short_id) == sample_urls[0]

    @pytest.mark.asyncio
    async def test_delete_honours_cancel_event(self, service, sample_urls):
        short_id = await service.shorten_url(sample_urls[0], "user1")
        cancel_event = asyncio.Event()
        cancel_event.set()

        report = await service.delete_user_urls([short_id], "user1", cancel_event=cancel_event)

        assert not report.ok
        assert await service.get_original_url(short_id) == sample_urls[0]

    @pytest.mark.asyncio
    async def test_get_statistics(self, service, sample_urls):
        """Test statistics."""
        await service.shorten_url(sample_urls[0], "user1")
        await service.shorten_url(sample_urls[1], "user2")

        stats = await service.get_statistics()

        assert stats["urls"] == 2
        assert stats["users"] == 2

    @pytest.mark.asyncio
    async def test_health_check(self, service):
        """Test health check."""
        health = await service.health_check()

        assert health == {"storage": True, "cache": True, "overall": True}


class TestServiceCache:
    """Test redirect caching."""

    @pytest.fixture
    def cache(self):
        return FakeCache()

    @pytest.fixture
    def cached_service(self, store, cache):
        return URLShortenerService(store=store, cache=cache)

    @pytest.mark.asyncio
    async def test_lookup_fills_cache(self, cached_service, cache, sample_urls):
        short_id = await cached_service.shorten_url(sample_urls[0], "user1")

        await cached_service.get_original_url(short_id)

        assert cache.data == {f"url:shortener:{short_id}": sample_urls[0]}

    @pytest.mark.asyncio
    async def test_delete_invalidates_cache(self, cached_service, cache, sample_urls):
        short_id = await cached_service.shorten_url(sample_urls[0], "user1")
        await cached_service.get_original_url(short_id)

        await cached_service.delete_user_urls([short_id], "user1")

        assert cache.data == {}
        with pytest.raises(URLDeletedError):
            await cached_service.get_original_url(short_id)

    @pytest.mark.asyncio
    async def test_close_closes_cache(self, cached_service, cache):
        await cached_service.close()

        assert cache.closed


class TestConcurrentBatches:
    """Test batch shortening when requests race on the same URL."""

    @pytest.mark.asyncio
    async def test_shared_url_gets_one_stored_id(self):
        """Both batches report the id that was actually stored for a shared URL."""
        service = URLShortenerService(store=YieldingStore())
        shared = "https://example.com/shared"

        first, second = await asyncio.gather(
            service.shorten_batch([("a", shared), ("b", "https://example.com/a-only")], "user1"),
            service.shorten_batch([("c", shared), ("d", "https://example.com/b-only")], "user2"),
        )

        assert first[0][1] == second[0][1]
        for _, short_id in first + second:
            assert await service.get_original_url(short_id)
        assert (await service.get_statistics())["urls"] == 3

    @pytest.mark.asyncio
    async def test_batch_after_single_shorten_race(self):
        service = URLShortenerService(store=YieldingStore())
        url = "https://example.com/raced"

        single, batch = await asyncio.gather(
            service.shorten_url(url, "user1"),
            service.shorten_batch([("x", url)], "user2"),
            return_exceptions=True,
        )

        stored = await service.store.get_short_id_by_original_url(url)
        assert batch == [("x", stored)]
        if isinstance(single, URLExistsError):
            assert single.short_id == stored
        else:
            assert single == stored


class TestCancelledDeletionCache:
    @pytest.mark.asyncio
    async def test_cache_cleared_when_deletion_cancelled(self, sample_urls):
        """A hard-cancelled deletion still drops the ids from the cache."""
        store = StubStore(delay=1)
        cache = FakeCache()
        service = URLShortenerService(store=store, cache=cache, deleter=URLDeleter(store))
        short_id = await service.shorten_url(sample_urls[0], "user1")
        await service.get_original_url(short_id)
        assert cache.data

        run = asyncio.create_task(service.delete_user_urls([short_id], "user1"))
        await asyncio.sleep(0.01)
        run.cancel()

        with pytest.raises(asyncio.CancelledError):
            await run
        assert cache.data == {}
