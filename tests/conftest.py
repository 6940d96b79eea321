"""Pytest configuration and fixtures."""

import pytest
from typing import AsyncGenerator

from httpx import ASGITransport, AsyncClient
from jose import jwt

from shortlinks.config import Config
from shortlinks.lib.common.logging_config import setup_logging
from shortlinks.lib.database.memory import InMemoryMappingStore
from shortlinks.lib.service import ShortLinkService
from shortlinks.lib.shortcode import ShortCodeGenerator
from shortlinks.web_app import create_app

TEST_JWT_SECRET = "test-secret"


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def store(logger):
    """Create in-memory store instance."""
    return InMemoryMappingStore(logger=logger)


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=7)


@pytest.fixture
async def service(store, short_code_generator, logger) -> AsyncGenerator[ShortLinkService, None]:
    """Create service instance."""
    service = ShortLinkService(
        store=store,
        cache=None,  # No cache for tests
        short_code_generator=short_code_generator,
        logger=logger,
    )

    yield service

    await service.close()


@pytest.fixture
def config():
    """Create test configuration."""
    return Config(
        database_backend="memory",
        base_url="http://testserver",
        jwt_secret=TEST_JWT_SECRET,
        redis_url=None,
    )


@pytest.fixture
def app(store, service, config, logger):
    """Create test FastAPI app."""
    app = create_app(
        store_instance=store,
        cache_instance=None,
        service_instance=service,
        config=config,
    )
    app.state.logger = logger
    return app


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


def make_token(owner_id: str, secret: str = TEST_JWT_SECRET) -> str:
    return jwt.encode({"id": owner_id}, secret, algorithm="HS256")


@pytest.fixture
def auth_headers():
    """Build Authorization headers for an owner id."""
    def _headers(owner_id: str = "user-1"):
        return {"Authorization": f"Bearer {make_token(owner_id)}"}
    return _headers


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
