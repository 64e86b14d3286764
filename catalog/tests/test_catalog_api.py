from decimal import Decimal

import pytest
from catalog.tests.factories import CategoryFactory, ProductFactory
from rest_framework.test import APIClient


@pytest.mark.django_db
def test_products_list_filters_ordering_pagination_search(django_assert_max_num_queries):
    fruits = CategoryFactory(name="Fruits", slug="fruits")
    dairy = CategoryFactory(name="Dairy", slug="dairy")

    apple = ProductFactory(name="Shimla Apple", category=fruits, price=Decimal("180.00"))
    milk = ProductFactory(name="Toned Milk", category=dairy, price=Decimal("30.00"), brand="Amul")

    client = APIClient()

    # The category join keeps list queries flat
    with django_assert_max_num_queries(4):
        resp = client.get("/api/v1/catalog/products/?ordering=name")
    assert resp.status_code == 200
    assert resp.data["count"] == 2
    first = resp.data["results"][0]
    assert {"id", "name", "slug", "price", "category", "in_stock"} <= set(first.keys())

    resp_fruits = client.get("/api/v1/catalog/products/?category=fruits")
    assert [r["slug"] for r in resp_fruits.data["results"]] == [apple.slug]

    resp_cheap = client.get("/api/v1/catalog/products/?max_price=50")
    assert [r["slug"] for r in resp_cheap.data["results"]] == [milk.slug]

    resp_dear = client.get("/api/v1/catalog/products/?min_price=100")
    assert [r["slug"] for r in resp_dear.data["results"]] == [apple.slug]

    # DRF PageNumberPagination returns 404 for out-of-range pages
    resp_page = client.get("/api/v1/catalog/products/?page=9999")
    assert resp_page.status_code == 404

    resp_order = client.get("/api/v1/catalog/products/?ordering=-price")
    prices = [Decimal(r["price"]) for r in resp_order.data["results"]]
    assert prices == sorted(prices, reverse=True)

    resp_search = client.get("/api/v1/catalog/products/?q=amul")
    assert [r["slug"] for r in resp_search.data["results"]] == [milk.slug]


@pytest.mark.django_db
def test_product_detail_includes_category_and_stock():
    fruits = CategoryFactory(name="Fruits", slug="fruits")
    p = ProductFactory(name="Banana", category=fruits, stock=7, price=Decimal("40.00"), original_price=Decimal("50.00"))

    client = APIClient()
    resp = client.get(f"/api/v1/catalog/products/{p.slug}/")
    assert resp.status_code == 200
    assert resp.data["category"]["slug"] == "fruits"
    assert resp.data["stock"] == 7
    assert resp.data["discount_percentage"] == 20


@pytest.mark.django_db
def test_categories_list_detail_and_products():
    c = CategoryFactory(name="Vegetables", slug="vegetables")
    ProductFactory(category=c)
    ProductFactory()
    client = APIClient()
    resp_list = client.get("/api/v1/catalog/categories/")
    assert resp_list.status_code == 200
    resp_detail = client.get("/api/v1/catalog/categories/vegetables/")
    assert resp_detail.status_code == 200
    assert resp_detail.data["slug"] == c.slug
    resp_products = client.get("/api/v1/catalog/categories/vegetables/products/")
    assert resp_products.status_code == 200
    assert resp_products.data["count"] == 1


@pytest.mark.django_db
def test_in_stock_filter_splits_sold_out_products():
    fresh = ProductFactory(name="Spinach", stock=5)
    sold_out = ProductFactory(name="Kale", stock=0)

    client = APIClient()
    resp = client.get("/api/v1/catalog/products/?in_stock=true")
    assert [r["slug"] for r in resp.data["results"]] == [fresh.slug]

    resp = client.get("/api/v1/catalog/products/?in_stock=false")
    assert [r["slug"] for r in resp.data["results"]] == [sold_out.slug]
