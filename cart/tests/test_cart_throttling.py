import pytest
from cart.tests.factories import UserFactory
from catalog.tests.factories import ProductFactory
from django.core.cache import cache
from rest_framework.test import APIClient
from rest_framework.throttling import ScopedRateThrottle


@pytest.fixture
def tight_cart_rates(monkeypatch):
    cache.clear()
    rates = {**ScopedRateThrottle.THROTTLE_RATES, "cart": "2/min", "cart_write": "2/min"}
    monkeypatch.setattr(ScopedRateThrottle, "THROTTLE_RATES", rates)
    yield
    cache.clear()


@pytest.mark.django_db
def test_cart_detail_throttle_exceeded(tight_cart_rates):
    client = APIClient()
    client.force_authenticate(user=UserFactory())

    assert client.get("/api/v1/cart/").status_code == 200
    assert client.get("/api/v1/cart/").status_code == 200
    assert client.get("/api/v1/cart/").status_code == 429


@pytest.mark.django_db
def test_cart_write_throttle_exceeded(tight_cart_rates):
    product = ProductFactory(stock=50)
    client = APIClient()
    client.force_authenticate(user=UserFactory())

    for _ in range(2):
        r = client.post("/api/v1/cart/items/", {"product_id": product.id, "quantity": 1}, format="json")
        assert r.status_code == 201
    r3 = client.post("/api/v1/cart/items/", {"product_id": product.id, "quantity": 1}, format="json")
    assert r3.status_code == 429
