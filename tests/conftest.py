"""Pytest configuration and fixtures."""

import asyncio
from typing import AsyncGenerator, Callable, List, Optional, Sequence, Tuple

import pytest
from httpx import ASGITransport, AsyncClient

from config import Config
from shortener.deleter import URLDeleter
from shortener.service import URLShortenerService
from shortener.shortcode import ShortCodeGenerator
from shortener.storage.memory import MemoryStorage
from shortener.common.logging_config import setup_logging
from web_app import create_app


class StubStore(MemoryStorage):
    """Memory storage that records mark_as_deleted calls.

    Args:
        fail_when: Optional predicate on a batch; matching batches raise
        delay: Seconds each mark_as_deleted call takes
    """

    def __init__(
        self,
        fail_when: Optional[Callable[[List[str]], bool]] = None,
        delay: float = 0.0,
    ):
        super().__init__()
        self.fail_when = fail_when
        self.delay = delay
        self.calls: List[Tuple[List[str], str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def mark_as_deleted(self, short_ids: Sequence[str], user_id: str) -> None:
        self.calls.append((list(short_ids), user_id))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_when and self.fail_when(list(short_ids)):
                raise ConnectionError(f"storage unavailable for {short_ids[0]}")
            await super().mark_as_deleted(short_ids, user_id)
        finally:
            self.in_flight -= 1


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def store() -> MemoryStorage:
    """Create in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def short_code_generator():
    """Create short id generator."""
    return ShortCodeGenerator(default_length=8)


@pytest.fixture
async def service(store, short_code_generator, logger) -> AsyncGenerator[URLShortenerService, None]:
    """Create service instance."""
    service = URLShortenerService(
        store=store,
        cache=None,  # No cache for tests
        short_code_generator=short_code_generator,
        deleter=URLDeleter(store, logger=logger),
        logger=logger,
    )
    yield service
    await service.close()


@pytest.fixture
def config() -> Config:
    """Test configuration."""
    return Config(
        base_url="http://testserver",
        auth_secret_key="test-secret",
        trusted_subnet="10.0.0.0/8",
    )


@pytest.fixture
async def app(service, config, logger):
    """Create test FastAPI app."""
    app = create_app(
        service_instance=service,
        config=config,
        logger=logger,
    )
    yield app
    await app.state.tasks.shutdown(timeout=5)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
