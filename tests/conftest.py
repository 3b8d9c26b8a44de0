"""Pytest configuration and fixtures."""

import pytest
from typing import AsyncGenerator, Dict, Optional

from shortlinks.database.sqlite import SQLiteLinkStore
from shortlinks.manager import LinkManager
from shortlinks.shortcode import ShortCodeGenerator
from shortlinks.common.logging_config import setup_logging


class FakeRedis:
    """In-memory stand-in for a ``redis.asyncio.Redis`` client."""

    def __init__(self):
        self.data: Dict[str, bytes] = {}
        self.ttls: Dict[str, int] = {}
        self.fail = False
        self.closed = False

    def _check(self):
        if self.fail:
            raise ConnectionError("redis unavailable")

    async def get(self, key: str) -> Optional[bytes]:
        self._check()
        return self.data.get(key)

    async def setex(self, key: str, ttl: int, value: bytes) -> bool:
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, key: str) -> int:
        self._check()
        return 1 if self.data.pop(key, None) is not None else 0

    async def ping(self) -> bool:
        self._check()
        return True

    async def aclose(self) -> None:
        self.closed = True


class FixedCodes(ShortCodeGenerator):
    """Generator that hands out a fixed sequence of short codes."""

    def __init__(self, codes):
        super().__init__()
        self.codes = list(codes)

    def candidates(self, identifier, attempts, length=None):
        yield from self.codes[:attempts]


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def store_path(tmp_path):
    """Directory for a test store."""
    return str(tmp_path / "store")


@pytest.fixture
async def store(store_path, logger) -> AsyncGenerator[SQLiteLinkStore, None]:
    """Create test store instance."""
    store = await SQLiteLinkStore.open(store_path, logger=logger)

    yield store

    await store.close()


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=7)


@pytest.fixture
async def manager(store, short_code_generator, logger) -> LinkManager:
    """Create manager instance."""
    return LinkManager(
        store=store,
        cache=None,  # No cache for most tests
        short_code_generator=short_code_generator,
        logger=logger,
    )


@pytest.fixture
def fake_redis():
    """Fake Redis client."""
    return FakeRedis()


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456?tab=votes",
    ]


@pytest.fixture
def fixed_codes():
    """Factory for generators with a fixed code sequence."""
    return FixedCodes
