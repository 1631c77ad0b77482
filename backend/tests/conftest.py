"""Pytest configuration and shared fixtures."""

from typing import Dict, List

import httpx
import pytest
import pytest_asyncio
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rentwatch.models import Base
from rentwatch.scrapers.base import PropertyRecord
from rentwatch.scrapers.utils import NoDelay, generate_property_id


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo configure_logging() calls so later tests don't log to a closed capture stream."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


class FakeSite:
    """Serves canned pages through httpx.MockTransport and records requests."""

    def __init__(self, pages: Dict[str, str], status_overrides: Dict[str, int] = None):
        self.pages = dict(pages)
        self.status_overrides = dict(status_overrides or {})
        self.requested: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        if url in self.status_overrides:
            return httpx.Response(self.status_overrides[url], text="error")
        if url in self.pages:
            return httpx.Response(200, text=self.pages[url])
        return httpx.Response(404, text="not found")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_site():
    """Factory building a FakeSite from a url -> html mapping."""
    return FakeSite


@pytest.fixture
def no_delay():
    return NoDelay()


def make_record(address: str = "東京都杉並区阿佐谷南１丁目", area: str = "25.5m²", price: str = "10万円", **kwargs) -> PropertyRecord:
    """Build a valid record whose id is derived like the adapters derive it."""
    fields = {
        "url": f"https://example.com/{generate_property_id(address, area, price)}",
        "title": "テストマンション 1K",
        "layout": "1K",
        "access": ["JR中央線/阿佐ケ谷駅 歩5分"],
    }
    fields.update(kwargs)
    return PropertyRecord(
        id=generate_property_id(address, area, price),
        address=address,
        area=area,
        price=price,
        **fields,
    )


@pytest.fixture
def record_factory():
    return make_record


@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite database for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
