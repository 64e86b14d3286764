import pytest
from cart.tests.factories import UserFactory
from catalog.tests.factories import ProductFactory
from rest_framework.test import APIClient


@pytest.mark.django_db
def test_unauthenticated_requests_return_401():
    client = APIClient()

    assert client.get("/api/v1/cart/").status_code == 401
    r_add = client.post("/api/v1/cart/items/", {"product_id": 1, "quantity": 1}, format="json")
    assert r_add.status_code == 401


@pytest.mark.django_db
def test_cross_user_item_access_returns_404():
    user1 = UserFactory()
    product = ProductFactory(stock=10)
    c1 = APIClient()
    c1.force_authenticate(user=user1)
    r_add = c1.post("/api/v1/cart/items/", {"product_id": product.id, "quantity": 2}, format="json")
    assert r_add.status_code == 201
    item_id = r_add.json()["id"]

    c2 = APIClient()
    c2.force_authenticate(user=UserFactory())

    r_upd = c2.patch(f"/api/v1/cart/items/{item_id}/", {"quantity": 3}, format="json")
    assert r_upd.status_code == 404

    r_del = c2.delete(f"/api/v1/cart/items/{item_id}/")
    assert r_del.status_code == 404
