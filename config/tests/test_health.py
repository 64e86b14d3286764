import pytest
from rest_framework.test import APIClient


@pytest.mark.django_db
def test_health_reports_database():
    resp = APIClient().get("/health/")
    assert resp.status_code == 200
    assert resp.data == {"status": "ok", "database": "ok"}

