import pytest
from customer.models import Address
from customer.serializers import AddressSerializer
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

pytestmark = pytest.mark.django_db


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user():
    User = get_user_model()
    return User.objects.create_user(
        username="asha", email="asha@example.com", password="pass1234", phone="+919800000001"
    )


@pytest.fixture
def auth_client(api_client, user):
    access = AccessToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    return api_client


def _address(user, **overrides):
    data = {"name": "Home", "addr1": "12 MG Road", "city": "Bengaluru", "state": "KA", "postal_code": "560001"}
    data.update(overrides)
    return Address.objects.create(user=user, **data)


def test_addresses_list_scoped_to_user(auth_client, user):
    _address(user, name="A1")
    _address(user, name="A2", addr1="9 Brigade Road")

    User = get_user_model()
    other = User.objects.create_user(username="ravi", email="ravi@example.com", password="pass1234")
    _address(other, name="Other")

    resp = auth_client.get("/api/v1/customer/addresses/")
    assert resp.status_code == 200
    data = resp.json()
    results = data.get("results", data)
    assert len(results) == 2
    for item in results:
        # No per-address phone: falls back to the user's phone
        assert item["effective_contact_phone"] == "+919800000001"


def test_address_crud_flow(auth_client, user):
    create = auth_client.post(
        "/api/v1/customer/addresses/",
        {
            "name": "Office",
            "addr1": "1 Residency Road",
            "city": "Bengaluru",
            "state": "KA",
            "postal_code": "560025",
            "country_code": "in",
            "phone": "+919811111111",
        },
        format="json",
    )
    assert create.status_code == 201
    body = create.json()
    addr_id = body["id"]
    assert body["country_code"] == "IN"
    # First saved address becomes the default
    assert body["is_default"] is True

    get = auth_client.get(f"/api/v1/customer/addresses/{addr_id}/")
    assert get.status_code == 200
    assert get.json()["phone"] == "+919811111111"

    patch = auth_client.patch(f"/api/v1/customer/addresses/{addr_id}/", {"name": "Work"}, format="json")
    assert patch.status_code == 200
    assert patch.json()["name"] == "Work"

    delete = auth_client.delete(f"/api/v1/customer/addresses/{addr_id}/")
    assert delete.status_code == 204

    gone = auth_client.get(f"/api/v1/customer/addresses/{addr_id}/")
    assert gone.status_code == 404


def test_set_default_moves_flag(auth_client, user):
    first = _address(user, is_default=True)
    second = _address(user, addr1="9 Brigade Road")

    resp = auth_client.post(f"/api/v1/customer/addresses/{second.id}/default/")
    assert resp.status_code == 200
    assert resp.json()["is_default"] is True
    first.refresh_from_db()
    assert first.is_default is False


def test_set_default_on_foreign_address_returns_404(auth_client):
    User = get_user_model()
    other = User.objects.create_user(username="ravi2", email="ravi2@example.com", password="pass1234")
    addr = _address(other)
    resp = auth_client.post(f"/api/v1/customer/addresses/{addr.id}/default/")
    assert resp.status_code == 404


def test_addresses_list_filters(auth_client, user):
    for i, c in enumerate(["Pune", "Mumbai", "Pune"], start=1):
        _address(user, addr1=f"{i} Main", city=c, postal_code=f"41100{i}")

    resp = auth_client.get("/api/v1/customer/addresses/?city=Pune")
    assert resp.status_code == 200
    data = resp.json()
    results = data.get("results", data)
    assert len(results) == 2
    assert all(item["city"] == "Pune" for item in results)


def test_deleting_default_promotes_another_address(auth_client, user):
    default = _address(user, is_default=True)
    spare = _address(user, addr1="9 Brigade Road")

    resp = auth_client.delete(f"/api/v1/customer/addresses/{default.id}/")
    assert resp.status_code == 204
    spare.refresh_from_db()
    assert spare.is_default is True


@pytest.mark.parametrize("raw, expected", [("in", "IN"), (" us ", "US"), ("GB", "GB")])
def test_country_code_is_upper_cased_before_validation(raw, expected):
    serializer = AddressSerializer(
        data={"addr1": "12 MG Road", "city": "Bengaluru", "postal_code": "560001", "country_code": raw}
    )
    assert serializer.is_valid(), serializer.errors
    assert serializer.validated_data["country_code"] == expected


def test_country_code_still_rejects_non_iso_values(auth_client):
    resp = auth_client.post(
        "/api/v1/customer/addresses/",
        {"addr1": "12 MG Road", "city": "Bengaluru", "postal_code": "560001", "country_code": "i1"},
        format="json",
    )
    assert resp.status_code == 400
    assert "country_code" in resp.json()
