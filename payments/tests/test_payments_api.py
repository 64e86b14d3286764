from decimal import Decimal
from unittest import mock

import pytest
import requests
from orders.models import Order
from orders.tests.factories import OrderFactory
from payments import signatures
from payments.tests.helpers import captured, signed
from rest_framework.test import APIClient
from users.tests.factories import UserFactory
from wallet.tests.factories import WalletFactory


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def provider_response(payload, status_code=200):
    resp = mock.Mock(status_code=status_code)
    resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return resp


@pytest.mark.django_db
def test_payment_methods_flags_cod_above_limit():
    client = client_for(UserFactory())
    methods = {m["id"]: m for m in client.get("/api/v1/payments/methods/").data}
    assert set(methods) == {"card", "upi", "wallet", "netbanking", "cod"}
    assert methods["cod"]["available"] is True
    assert Decimal(methods["cod"]["max_order"]) == Decimal("2000.00")

    methods = {m["id"]: m for m in client.get("/api/v1/payments/methods/?amount=2500").data}
    assert methods["cod"]["available"] is False
    assert methods["upi"]["available"] is True


@pytest.mark.django_db
def test_create_order_calls_provider_with_minor_units(settings):
    settings.PAYMENT_PROVIDER_BASE_URL = "https://provider.test/v1"
    order = OrderFactory(grand_total=Decimal("145.50"))
    with mock.patch(
        "payments.gateway.requests.post",
        return_value=provider_response({"id": "order_XYZ", "amount": 14550, "currency": "INR"}),
    ) as post:
        resp = client_for(order.user).post("/api/v1/payments/create-order/", {"order_id": order.order_id})

    assert resp.status_code == 200, resp.data
    assert resp.data["provider_order_id"] == "order_XYZ"
    assert resp.data["amount"] == 14550
    args, kwargs = post.call_args
    assert args[0] == "https://provider.test/v1/orders"
    assert kwargs["json"] == {
        "amount": 14550,
        "currency": "INR",
        "receipt": f"order_{order.order_id}",
        "payment_capture": 1,
    }
    assert kwargs["auth"] == (settings.PAYMENT_KEY_ID, settings.PAYMENT_KEY_SECRET)
    order.refresh_from_db()
    assert order.provider_order_id == "order_XYZ"


@pytest.mark.django_db
def test_provider_failure_is_502_and_leaves_order_untouched():
    order = OrderFactory()
    with mock.patch("payments.gateway.requests.post", return_value=provider_response({}, status_code=500)):
        resp = client_for(order.user).post("/api/v1/payments/create-order/", {"order_id": order.order_id})
    assert resp.status_code == 502
    order.refresh_from_db()
    assert order.provider_order_id == ""


@pytest.mark.django_db
def test_create_order_rejects_cash_on_delivery_orders():
    order = OrderFactory(payment_method="cod")
    with mock.patch("payments.gateway.requests.post") as post:
        resp = client_for(order.user).post("/api/v1/payments/create-order/", {"order_id": order.order_id})
    assert resp.status_code == 400
    post.assert_not_called()


@pytest.mark.django_db
def test_verify_endpoint():
    order = OrderFactory(provider_order_id="order_ABC")
    payload = {
        "provider_order_id": "order_ABC",
        "provider_payment_id": "pay_1",
        "signature": signatures.checkout_signature("order_ABC", "pay_1"),
    }
    resp = client_for(order.user).post("/api/v1/payments/verify/", payload, format="json")
    assert resp.status_code == 200
    assert resp.data == {
        "order_id": order.order_id,
        "status": "confirmed",
        "payment_status": "completed",
        "payment_id": "pay_1",
    }

    bad = client_for(order.user).post("/api/v1/payments/verify/", {**payload, "signature": "f" * 64}, format="json")
    assert bad.status_code == 400


@pytest.mark.django_db
def test_webhook_endpoint_checks_signature_over_raw_body():
    OrderFactory(provider_order_id="order_ABC")
    client = APIClient()
    body = captured("order_ABC", "pay_1")

    forged = client.post(
        "/api/v1/payments/webhook/", data=body, content_type="application/json", HTTP_X_RAZORPAY_SIGNATURE="abc"
    )
    assert forged.status_code == 400
    assert Order.objects.get(provider_order_id="order_ABC").payment_status == "pending"

    ok = client.post(
        "/api/v1/payments/webhook/",
        data=body,
        content_type="application/json",
        HTTP_X_RAZORPAY_SIGNATURE=signed(body),
    )
    assert ok.status_code == 200
    assert ok.data == {"status": "payment.captured"}
    assert Order.objects.get(provider_order_id="order_ABC").payment_status == "completed"


@pytest.mark.django_db
def test_wallet_payment_endpoint_is_idempotent():
    user = UserFactory()
    wallet = WalletFactory(user=user, funded=Decimal("500.00"))
    order = OrderFactory(user=user)
    client = client_for(user)

    r1 = client.post("/api/v1/payments/wallet/", {"order_id": order.order_id}, HTTP_IDEMPOTENCY_KEY="pay-1")
    r2 = client.post("/api/v1/payments/wallet/", {"order_id": order.order_id}, HTTP_IDEMPOTENCY_KEY="pay-1")
    assert r1.status_code == 200
    assert r2.status_code == 200
    assert r1.json() == r2.json()
    wallet.refresh_from_db()
    assert wallet.balance == Decimal("355.00")


@pytest.mark.django_db
def test_wallet_payment_insufficient_balance_is_400():
    user = UserFactory()
    order = OrderFactory(user=user)
    resp = client_for(user).post("/api/v1/payments/wallet/", {"order_id": order.order_id})
    assert resp.status_code == 400
    assert resp.data["detail"] == "Insufficient wallet balance."
