"""Tests for the web UI endpoints"""
from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from marketplace.app import create_app
from marketplace.cart import CartStore
from marketplace.contexts import PartsContext
from marketplace.errors import NetworkError
from marketplace.models import Part


async def _no_sleep(delay):
    return None


@pytest.fixture
def parts_service():
    service = Mock()
    service.get_public_parts = AsyncMock(return_value=[
        Part(id="p1", name="Oil Filter", price=Decimal("100")),
        Part(id="p2", name="Headlight", price=Decimal("40"), is_available=False),
    ])
    return service


@pytest.fixture
def parts_context(parts_service):
    return PartsContext(parts_service, sleep=_no_sleep)


@pytest.fixture
def cart(memory_store):
    return CartStore(memory_store)


@pytest.fixture
def client(cart, parts_context):
    """Test client; lifespan runs so the listing is loaded"""
    with TestClient(create_app(cart=cart, parts=parts_context)) as test_client:
        yield test_client


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_listing_loaded_on_startup(client):
    data = client.get("/api/parts").json()

    assert [part["id"] for part in data["parts"]] == ["p1", "p2"]
    assert data["loading"] is False
    assert data["error"] is None
    assert data["state"] == "success"


def test_cart_flow(client):
    response = client.post("/api/cart/items", json={"part_id": "p1", "quantity": 2})
    assert response.status_code == 200
    assert response.json()["total_items"] == 2
    assert response.json()["total_amount"] == 200.0

    response = client.post("/api/cart/items", json={"part_id": "p1"})
    assert response.json()["total_items"] == 3

    response = client.patch("/api/cart/items/p1", json={"quantity": 1})
    assert response.json()["total_amount"] == 100.0

    response = client.delete("/api/cart/items/p1")
    assert response.json()["is_empty"] is True


def test_add_unknown_part(client):
    response = client.post("/api/cart/items", json={"part_id": "missing"})
    assert response.status_code == 404


def test_add_unavailable_part(client):
    response = client.post("/api/cart/items", json={"part_id": "p2"})
    assert response.status_code == 400


def test_add_rejects_non_positive_quantity(client):
    response = client.post("/api/cart/items", json={"part_id": "p1", "quantity": 0})
    assert response.status_code == 422


def test_patch_zero_removes(client):
    client.post("/api/cart/items", json={"part_id": "p1", "quantity": 2})

    response = client.patch("/api/cart/items/p1", json={"quantity": 0})

    assert response.json()["items"] == []


def test_patch_missing_item(client):
    response = client.patch("/api/cart/items/p1", json={"quantity": 3})
    assert response.status_code == 404


def test_clear_cart(client):
    client.post("/api/cart/items", json={"part_id": "p1", "quantity": 2})

    response = client.delete("/api/cart")

    assert response.json()["total_items"] == 0
    assert client.get("/api/cart").json()["is_empty"] is True


def test_search_passes_filters(client, parts_service):
    response = client.post("/api/parts/search", json={"brand": "Bosch"})

    assert response.status_code == 200
    parts_service.get_public_parts.assert_awaited_with({"brand": "Bosch"})


def test_terminal_failure_then_retry(cart, parts_service):
    parts_service.get_public_parts = AsyncMock(side_effect=NetworkError())
    context = PartsContext(parts_service, sleep=_no_sleep)

    with TestClient(create_app(cart=cart, parts=context)) as client:
        data = client.get("/api/parts").json()
        assert data["can_retry"] is True
        assert data["placeholder"] is True
        assert data["error_kind"] == "NETWORK_ERROR"

        parts_service.get_public_parts = AsyncMock(return_value=[Part(id="p9", name="Belt", price=Decimal("9"))])
        data = client.post("/api/parts/retry").json()

    assert data["can_retry"] is False
    assert data["placeholder"] is False
    assert [part["id"] for part in data["parts"]] == ["p9"]
