from decimal import Decimal

import pytest
from catalog.admin_serializers import ProductAdminSerializer
from catalog.models import Product
from catalog.tests.factories import CategoryFactory, ProductFactory
from common.uow import UnitOfWork
from django.contrib import admin
from django.contrib.auth import get_user_model
from django.forms import modelform_factory
from inventory.services import reserve
from rest_framework.test import APIClient


def _product_payload(category_id, **overrides):
    payload = {
        "name": "Brown Bread",
        "slug": "brown-bread",
        "category": category_id,
        "price": "45.00",
        "unit": "piece",
        "delivery_time": 20,
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
def test_admin_create_product_requires_admin_role():
    User = get_user_model()
    admin_user = User.objects.create_user(
        username="admin", email="admin@example.com", password="pass1234", role=User.ROLE_ADMIN
    )
    regular = User.objects.create_user(username="user", email="user@example.com", password="pass1234")

    c = CategoryFactory()
    client = APIClient()

    client.force_authenticate(user=regular)
    resp_forbidden = client.post("/api/v1/admin/catalog/products/", _product_payload(c.id), format="json")
    assert resp_forbidden.status_code == 403

    client.force_authenticate(user=admin_user)
    resp = client.post("/api/v1/admin/catalog/products/", _product_payload(c.id, stock=99), format="json")
    assert resp.status_code == 201
    assert resp.data["slug"] == "brown-bread"
    # Stock is read-only here; adjustments go through inventory
    assert resp.data["stock"] == 0


@pytest.mark.django_db
def test_admin_delete_product_retires_it():
    User = get_user_model()
    staff = User.objects.create_user(username="staff", email="staff@example.com", password="pass1234", is_staff=True)
    p = ProductFactory()

    client = APIClient()
    client.force_authenticate(user=staff)
    resp = client.delete(f"/api/v1/admin/catalog/products/{p.id}/")
    assert resp.status_code == 204
    p.refresh_from_db()
    assert p.state == Product.STATE_RETIRED


@pytest.mark.django_db
def test_admin_low_stock_lists_products_under_alert():
    User = get_user_model()
    admin_user = User.objects.create_user(
        username="admin3", email="admin3@example.com", password="pass1234", role=User.ROLE_ADMIN
    )
    low = ProductFactory(stock=2, low_stock_alert=5)
    ProductFactory(stock=100, low_stock_alert=5)

    client = APIClient()
    client.force_authenticate(user=admin_user)
    resp = client.get("/api/v1/admin/catalog/low-stock/")
    assert resp.status_code == 200
    assert [r["slug"] for r in resp.data] == [low.slug]


@pytest.mark.django_db
def test_admin_edit_keeps_stock_reserved_by_checkout():
    product = ProductFactory(stock=5, price=Decimal("100.00"))
    serializer = ProductAdminSerializer(product, data={"price": "90.00"}, partial=True)
    assert serializer.is_valid(), serializer.errors

    # A checkout takes every unit while the admin form is open
    with UnitOfWork():
        reserve(product_id=product.id, quantity=5, reference="ORDER_1")
    serializer.save()

    assert serializer.data["stock"] == 0
    product.refresh_from_db()
    assert product.stock == 0
    assert product.price == Decimal("90.00")


@pytest.mark.django_db
def test_admin_patch_writes_only_submitted_fields():
    User = get_user_model()
    admin_user = User.objects.create_user(
        username="admin4", email="admin4@example.com", password="pass1234", role=User.ROLE_ADMIN
    )
    product = ProductFactory(name="Curd", stock=8)
    Product.objects.filter(pk=product.pk).update(stock=3)

    client = APIClient()
    client.force_authenticate(user=admin_user)
    resp = client.patch(f"/api/v1/admin/catalog/products/{product.id}/", {"name": "Thick Curd"}, format="json")
    assert resp.status_code == 200
    assert resp.data["stock"] == 3
    product.refresh_from_db()
    assert (product.name, product.stock) == ("Thick Curd", 3)


@pytest.mark.django_db
def test_django_admin_change_form_keeps_reserved_stock():
    product = ProductFactory(name="Paneer", stock=4, price=Decimal("80.00"))
    ProductForm = modelform_factory(Product, fields=["name", "price"])
    form = ProductForm(data={"name": "Malai Paneer", "price": "85.00"}, instance=product)
    assert form.is_valid(), form.errors

    with UnitOfWork():
        reserve(product_id=product.id, quantity=3, reference="ORDER_2")
    obj = form.save(commit=False)
    admin.site._registry[Product].save_model(None, obj, form, change=True)

    product.refresh_from_db()
    assert (product.name, product.price, product.stock) == ("Malai Paneer", Decimal("85.00"), 1)
