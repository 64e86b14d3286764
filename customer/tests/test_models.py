import pytest
from common.exceptions import NotFound
from customer.models import Address
from customer.services import shipping_snapshot
from django.db import IntegrityError
from users.models import User


@pytest.mark.django_db
def test_only_one_default_address_per_user():
    user = User.objects.create(username="meera", email="meera@example.com")
    Address.objects.create(user=user, addr1="1 A St", city="Delhi", postal_code="110001", is_default=True)
    with pytest.raises(IntegrityError):
        Address.objects.create(user=user, addr1="2 B St", city="Delhi", postal_code="110002", is_default=True)


@pytest.mark.django_db
def test_snapshot_is_detached_copy():
    user = User.objects.create(username="kiran", email="kiran@example.com", phone="+919822222222")
    addr = Address.objects.create(user=user, name="Home", addr1="1 A St", city="Delhi", postal_code="110001")

    snap = shipping_snapshot(user=user, address_id=addr.id)
    assert snap["addr1"] == "1 A St"
    assert snap["phone"] == "+919822222222"

    addr.addr1 = "99 Changed Rd"
    addr.save()
    assert snap["addr1"] == "1 A St"


@pytest.mark.django_db
def test_snapshot_of_other_users_address_is_not_found():
    owner = User.objects.create(username="o", email="o@example.com")
    intruder = User.objects.create(username="i", email="i@example.com")
    addr = Address.objects.create(user=owner, addr1="1 A St", city="Delhi", postal_code="110001")
    with pytest.raises(NotFound):
        shipping_snapshot(user=intruder, address_id=addr.id)
