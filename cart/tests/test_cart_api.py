from decimal import Decimal

import pytest
from cart.models import CartItem
from cart.tests.factories import CartItemFactory, UserFactory
from catalog.models import Product
from catalog.tests.factories import ProductFactory
from rest_framework.test import APIClient


@pytest.fixture
def user():
    return UserFactory()


@pytest.fixture
def client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.mark.django_db
def test_empty_cart_has_zero_preview(client):
    body = client.get("/api/v1/cart/").json()
    assert body["items"] == []
    assert body["item_count"] == 0
    assert body["items_total"] == "0.00"
    assert body["delivery_fee"] == "0.00"
    assert body["grand_total"] == "0.00"


@pytest.mark.django_db
def test_preview_adds_delivery_fee_and_tax_below_threshold(client):
    product = ProductFactory(stock=5, price=Decimal("45.50"))
    resp = client.post("/api/v1/cart/items/", {"product_id": product.id, "quantity": 2}, format="json")
    assert resp.status_code == 201

    body = client.get("/api/v1/cart/").json()
    assert body["items"][0]["id"] == resp.json()["id"]
    assert body["items"][0]["name"] == product.name
    assert body["items"][0]["line_total"] == "91.00"
    assert body["total_quantity"] == 2
    assert body["items_total"] == "91.00"
    assert body["delivery_fee"] == "40.00"
    assert body["tax"] == "5.00"
    assert body["grand_total"] == "136.00"
    assert body["free_delivery_remaining"] == "409.00"


@pytest.mark.django_db
def test_preview_has_free_delivery_above_threshold(client):
    product = ProductFactory(stock=10, price=Decimal("300.00"))
    client.post("/api/v1/cart/items/", {"product_id": product.id, "quantity": 2}, format="json")

    body = client.get("/api/v1/cart/").json()
    assert body["delivery_fee"] == "0.00"
    assert body["tax"] == "30.00"
    assert body["grand_total"] == "630.00"
    assert body["free_delivery_remaining"] == "0.00"


@pytest.mark.django_db
def test_retired_products_are_hidden(client, user):
    CartItemFactory(cart__user=user, product__price=Decimal("50.00"))
    gone = CartItemFactory(cart__user=user)
    Product.objects.filter(id=gone.product_id).update(state=Product.STATE_RETIRED)

    body = client.get("/api/v1/cart/").json()
    assert body["item_count"] == 1
    assert body["items_total"] == "50.00"


@pytest.mark.django_db
def test_adding_same_product_increments_quantity(client, user):
    product = ProductFactory(stock=10)
    client.post("/api/v1/cart/items/", {"product_id": product.id, "quantity": 2}, format="json")
    resp = client.post("/api/v1/cart/items/", {"product_id": product.id, "quantity": 3}, format="json")
    assert resp.status_code == 201
    assert resp.json()["quantity"] == 5
    assert CartItem.objects.filter(cart__user=user).count() == 1


@pytest.mark.django_db
def test_update_item_quantity(client):
    product = ProductFactory(stock=10)
    item_id = client.post("/api/v1/cart/items/", {"product_id": product.id, "quantity": 2}, format="json").json()["id"]

    resp = client.patch(f"/api/v1/cart/items/{item_id}/", {"quantity": 3}, format="json")
    assert resp.status_code == 200
    assert resp.json() == {"id": item_id, "quantity": 3}


@pytest.mark.django_db
def test_delete_item_and_clear(client, user):
    p1 = ProductFactory(stock=10)
    p2 = ProductFactory(stock=10)
    item_id = client.post("/api/v1/cart/items/", {"product_id": p1.id, "quantity": 2}, format="json").json()["id"]
    client.post("/api/v1/cart/items/", {"product_id": p2.id, "quantity": 1}, format="json")

    assert client.delete(f"/api/v1/cart/items/{item_id}/").status_code == 204
    assert client.delete(f"/api/v1/cart/items/{item_id}/").status_code == 404
    assert CartItem.objects.filter(cart__user=user).count() == 1

    resp = client.post("/api/v1/cart/clear/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "cleared"
    assert not CartItem.objects.filter(cart__user=user).exists()
