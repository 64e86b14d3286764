import pytest
from catalog.models import Category, Product
from catalog.tests.factories import CategoryFactory, ProductFactory
from rest_framework.test import APIClient


@pytest.mark.django_db
def test_product_list_hides_retired():
    ProductFactory(name="Visible One")
    ProductFactory(name="Hidden One", state=Product.STATE_RETIRED)

    client = APIClient()
    resp = client.get("/api/v1/catalog/products/")
    assert resp.status_code == 200
    names = [r["name"] for r in resp.data["results"]]
    assert "Visible One" in names
    assert "Hidden One" not in names


@pytest.mark.django_db
def test_product_detail_retired_returns_404():
    p = ProductFactory(state=Product.STATE_RETIRED)

    client = APIClient()
    resp = client.get(f"/api/v1/catalog/products/{p.slug}/")
    assert resp.status_code == 404


@pytest.mark.django_db
def test_retired_category_returns_404():
    c = CategoryFactory(state=Category.STATE_RETIRED)

    client = APIClient()
    assert client.get(f"/api/v1/catalog/categories/{c.slug}/").status_code == 404


@pytest.mark.django_db
def test_products_of_retired_category_are_hidden():
    retired = CategoryFactory(state=Category.STATE_RETIRED)
    ProductFactory(name="Orphaned", category=retired)

    client = APIClient()
    resp = client.get("/api/v1/catalog/products/")
    assert "Orphaned" not in [r["name"] for r in resp.data["results"]]
