from decimal import Decimal

import pytest
from catalog.tests.factories import ProductFactory
from customer.models import Address
from orders.models import Order
from orders.tests.factories import SHIPPING, OrderFactory
from rest_framework.test import APIClient
from users.tests.factories import AdminUserFactory, DeliveryUserFactory, UserFactory


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def checkout(client, product, **extra):
    payload = {
        "items": [{"product_id": product.id, "quantity": 1}],
        "shipping_address": SHIPPING,
        "payment_method": "upi",
    }
    payload.update(extra)
    payload = {k: v for k, v in payload.items() if v is not None}
    return client.post("/api/v1/orders/", payload, format="json")


@pytest.mark.django_db
def test_checkout_returns_order_with_price_summary_and_timeline():
    client = client_for(UserFactory())
    product = ProductFactory(price=Decimal("600.00"))

    resp = checkout(client, product)

    assert resp.status_code == 201, resp.data
    body = resp.json()
    assert body["status"] == "pending"
    assert body["payment"] == {
        "method": "upi",
        "status": "pending",
        "provider_order_id": "",
        "provider_payment_id": "",
    }
    assert Decimal(body["price_summary"]["grand_total"]) == Decimal("630.00")
    assert body["items"][0]["name"] == product.name
    assert body["timeline"][0]["completed"] is True


@pytest.mark.django_db
def test_checkout_with_saved_address_copies_it():
    user = UserFactory()
    address = Address.objects.create(
        user=user, name="Home", addr1="1 Lake View", city="Pune", postal_code="411001", phone="+919811111111"
    )
    resp = checkout(client_for(user), ProductFactory(), shipping_address=None, address_id=address.id)
    assert resp.status_code == 201, resp.data

    address.city = "Mumbai"
    address.save()
    order = Order.objects.get(order_id=resp.data["order_id"])
    assert order.shipping_address["city"] == "Pune"


@pytest.mark.django_db
def test_checkout_with_someone_elses_address_is_404():
    other = Address.objects.create(
        user=UserFactory(), name="Work", addr1="9 Park St", city="Delhi", postal_code="110001", phone="+919822222222"
    )
    resp = checkout(client_for(UserFactory()), ProductFactory(), shipping_address=None, address_id=other.id)
    assert resp.status_code == 404
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_checkout_requires_an_address():
    resp = checkout(client_for(UserFactory()), ProductFactory(), shipping_address=None)
    assert resp.status_code == 400
    assert "shipping_address" in resp.data


@pytest.mark.django_db
def test_checkout_out_of_stock_is_400():
    product = ProductFactory(stock=0)
    resp = checkout(client_for(UserFactory()), product)
    assert resp.status_code == 400
    assert "Insufficient stock" in resp.data["detail"]


@pytest.mark.django_db
def test_checkout_is_idempotent_with_key():
    client = client_for(UserFactory())
    product = ProductFactory(stock=5)

    r1 = client.post(
        "/api/v1/orders/",
        {"items": [{"product_id": product.id, "quantity": 1}], "shipping_address": SHIPPING, "payment_method": "upi"},
        format="json",
        HTTP_IDEMPOTENCY_KEY="checkout-1",
    )
    r2 = client.post(
        "/api/v1/orders/",
        {"items": [{"product_id": product.id, "quantity": 1}], "shipping_address": SHIPPING, "payment_method": "upi"},
        format="json",
        HTTP_IDEMPOTENCY_KEY="checkout-1",
    )
    assert r1.status_code == 201
    assert r2.status_code == 201
    assert r1.json()["order_id"] == r2.json()["order_id"]
    assert Order.objects.count() == 1
    product.refresh_from_db()
    assert product.stock == 4


@pytest.mark.django_db
def test_idempotency_key_reuse_with_different_payload_is_409():
    client = client_for(UserFactory())
    product = ProductFactory()
    body = {"items": [{"product_id": product.id, "quantity": 1}], "shipping_address": SHIPPING}
    client.post("/api/v1/orders/", {**body, "payment_method": "upi"}, format="json", HTTP_IDEMPOTENCY_KEY="k")
    resp = client.post("/api/v1/orders/", {**body, "payment_method": "card"}, format="json", HTTP_IDEMPOTENCY_KEY="k")
    assert resp.status_code == 409


@pytest.mark.django_db
def test_list_filters_by_status_and_only_shows_own_orders():
    user = UserFactory()
    mine_pending = OrderFactory(user=user)
    mine_cancelled = OrderFactory(user=user, status=Order.STATUS_CANCELLED)
    OrderFactory()

    resp = client_for(user).get("/api/v1/orders/?status=cancelled")
    assert resp.status_code == 200
    ids = [o["order_id"] for o in resp.json()["results"]]
    assert ids == [mine_cancelled.order_id]

    resp = client_for(user).get("/api/v1/orders/")
    assert {o["order_id"] for o in resp.json()["results"]} == {mine_pending.order_id, mine_cancelled.order_id}


@pytest.mark.django_db
def test_detail_hidden_from_other_customers_but_visible_to_staff():
    order = OrderFactory()
    assert client_for(UserFactory()).get(f"/api/v1/orders/{order.order_id}/").status_code == 404
    assert client_for(order.user).get(f"/api/v1/orders/{order.order_id}/").status_code == 200
    assert client_for(DeliveryUserFactory()).get(f"/api/v1/orders/{order.order_id}/").status_code == 200


@pytest.mark.django_db
def test_cancel_endpoint_and_second_cancel_is_rejected():
    user = UserFactory()
    client = client_for(user)
    product = ProductFactory(stock=3)
    order_id = checkout(client, product).data["order_id"]

    r1 = client.post(f"/api/v1/orders/{order_id}/cancel/", {"reason": "Ordered by mistake"}, format="json")
    assert r1.status_code == 200
    assert r1.data["status"] == "cancelled"
    assert r1.data["cancellation_reason"] == "Ordered by mistake"

    r2 = client.post(f"/api/v1/orders/{order_id}/cancel/", {}, format="json")
    assert r2.status_code == 400
    product.refresh_from_db()
    assert product.stock == 3


@pytest.mark.django_db
def test_cancel_by_non_owner_is_403():
    order = OrderFactory()
    resp = client_for(UserFactory()).post(f"/api/v1/orders/{order.order_id}/cancel/", {}, format="json")
    assert resp.status_code == 403


@pytest.mark.django_db
def test_status_endpoint_is_staff_only_and_validates_transitions():
    order = OrderFactory()
    url = f"/api/v1/orders/{order.order_id}/status/"

    assert client_for(order.user).patch(url, {"status": "confirmed"}, format="json").status_code == 403

    admin = client_for(AdminUserFactory())
    assert admin.patch(url, {"status": "delivered"}, format="json").status_code == 400
    resp = admin.patch(url, {"status": "confirmed"}, format="json")
    assert resp.status_code == 200
    assert resp.data["status"] == "confirmed"
    assert admin.patch(url, {"status": "shipped"}, format="json").status_code == 400


@pytest.mark.django_db
def test_tracking_includes_partner_location_and_timeline():
    admin = client_for(AdminUserFactory())
    partner = DeliveryUserFactory(first_name="Ravi")
    order = OrderFactory()

    resp = admin.post(f"/api/v1/orders/{order.order_id}/assign/", {"partner_id": partner.id}, format="json")
    assert resp.status_code == 200

    resp = client_for(partner).patch(
        f"/api/v1/orders/{order.order_id}/location/",
        {"lat": "12.971600", "lng": "77.594600", "address": "Church Street"},
        format="json",
    )
    assert resp.status_code == 200

    resp = client_for(order.user).get(f"/api/v1/orders/{order.order_id}/tracking/")
    assert resp.status_code == 200
    assert resp.data["delivery_partner"]["name"] == "Ravi"
    assert resp.data["current_location"]["address"] == "Church Street"
    assert resp.data["timeline"][0]["name"] == "Order Placed"


@pytest.mark.django_db
def test_assign_unknown_partner_is_404():
    order = OrderFactory()
    resp = client_for(AdminUserFactory()).post(
        f"/api/v1/orders/{order.order_id}/assign/", {"partner_id": 999999}, format="json"
    )
    assert resp.status_code == 404


@pytest.mark.django_db
def test_orders_require_authentication():
    assert APIClient().get("/api/v1/orders/").status_code == 401
