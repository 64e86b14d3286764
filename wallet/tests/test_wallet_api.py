from decimal import Decimal

import pytest
from rest_framework.test import APIClient
from wallet.services import credit
from wallet.tests.factories import WalletFactory


@pytest.mark.django_db
def test_balance_endpoint_creates_wallet_on_first_read():
    from users.tests.factories import UserFactory

    client = APIClient()
    client.force_authenticate(user=UserFactory())
    resp = client.get("/api/v1/wallet/")
    assert resp.status_code == 200
    assert Decimal(resp.data["balance"]) == Decimal("0.00")


@pytest.mark.django_db
def test_transactions_endpoint_paginates():
    wallet = WalletFactory(funded=Decimal("100.00"))
    credit(wallet, Decimal("5.00"), description="Cashback", reference="CB_1")
    client = APIClient()
    client.force_authenticate(user=wallet.user)

    resp = client.get("/api/v1/wallet/transactions/?page=1&page_size=1")
    assert resp.status_code == 200
    assert resp.data["total"] == 2
    assert resp.data["has_next"] is True
    assert resp.data["transactions"][0]["reference"] == "CB_1"
    assert resp.data["transactions"][0]["order_id"] is None


@pytest.mark.django_db
def test_transactions_endpoint_rejects_bad_paging():
    wallet = WalletFactory()
    client = APIClient()
    client.force_authenticate(user=wallet.user)
    assert client.get("/api/v1/wallet/transactions/?page=abc").status_code == 400


def test_wallet_requires_authentication(db):
    assert APIClient().get("/api/v1/wallet/").status_code == 401
