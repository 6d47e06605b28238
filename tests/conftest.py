"""Pytest configuration and fixtures"""
import os
from decimal import Decimal
from typing import Callable, List

import httpx
import pytest

# Keep tests away from the user's real local store
os.environ.setdefault("MARKET_API_URL", "http://api.test/api")
os.environ.setdefault("MARKET_STORAGE_PATH", os.path.join(os.path.dirname(__file__), ".test_store.json"))
os.environ.pop("UPSTASH_REDIS_REST_URL", None)
os.environ.pop("UPSTASH_REDIS_REST_TOKEN", None)

from marketplace.models import Part  # noqa: E402
from marketplace.services.http import HttpClient  # noqa: E402
from marketplace.session import SessionTokenStore  # noqa: E402
from marketplace.storage import MemoryKeyValueStore  # noqa: E402

API_URL = "http://api.test/api"


@pytest.fixture
def memory_store():
    """Empty in-memory key-value store"""
    return MemoryKeyValueStore()


@pytest.fixture
def token_store(memory_store):
    """Session token store over the in-memory store"""
    return SessionTokenStore(memory_store)


@pytest.fixture
def sample_part_data():
    """Part as the API returns it (camelCase, decimal as string)"""
    return {
        "id": "part-123",
        "name": "Brake Pad Set",
        "description": "Front ceramic brake pads",
        "price": "100.00",
        "imageUrl": "https://cdn.test/brake.jpg",
        "isAvailable": True,
        "category": "Brakes",
        "brand": "Bosch",
        "model": "Civic",
        "year": "2018",
        "createdAt": "2025-01-01T00:00:00Z",
        "updatedAt": "2025-01-01T00:00:00Z",
    }


@pytest.fixture
def make_part() -> Callable[..., Part]:
    """Factory for Part instances"""
    def _make(part_id: str = "p1", price="100", name: str = None, **extra) -> Part:
        return Part(id=part_id, name=name or f"Part {part_id}", price=Decimal(str(price)), **extra)
    return _make


class SleepRecorder:
    """Async sleep replacement that records requested delays"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(float(delay))


@pytest.fixture
def fake_sleep():
    return SleepRecorder()


@pytest.fixture
def make_http(token_store, fake_sleep):
    """Factory: HttpClient whose transport is the given handler"""
    def _make(handler) -> HttpClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return HttpClient(base_url=API_URL, token_store=token_store, client=client, sleep=fake_sleep)
    return _make
