from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone
from orders.models import IdempotencyKey


def make_key(key, expires_in):
    return IdempotencyKey.objects.create(
        key=key,
        scope="orders",
        path="/api/v1/orders/",
        method="POST",
        response_code=201,
        response_json={"order_id": "ORD1"},
        expires_at=timezone.now() + expires_in,
    )


@pytest.mark.django_db
def test_cleanup_removes_only_expired_keys():
    make_key("old", timedelta(hours=-1))
    make_key("fresh", timedelta(hours=23))
    out = StringIO()
    call_command("cleanup_idempotency", stdout=out)
    assert "Deleted 1 expired" in out.getvalue()
    assert list(IdempotencyKey.objects.values_list("key", flat=True)) == ["fresh"]


@pytest.mark.django_db
def test_cleanup_dry_run_deletes_nothing():
    make_key("old", timedelta(hours=-1))
    out = StringIO()
    call_command("cleanup_idempotency", "--dry-run", stdout=out)
    assert "1 expired idempotency keys would be deleted" in out.getvalue()
    assert IdempotencyKey.objects.count() == 1
