import pytest
from cart.models import CartItem
from cart.tests.factories import CartFactory
from catalog.tests.factories import ProductFactory
from django.db import IntegrityError


@pytest.mark.django_db
def test_unique_product_per_cart_constraint():
    cart = CartFactory()
    product = ProductFactory()
    CartItem.objects.create(cart=cart, product=product, quantity=1, price=product.price)

    with pytest.raises(IntegrityError):
        CartItem.objects.create(cart=cart, product=product, quantity=2, price=product.price)


@pytest.mark.django_db
def test_quantity_positive_constraint():
    cart = CartFactory()
    product = ProductFactory()

    with pytest.raises(IntegrityError):
        CartItem.objects.create(cart=cart, product=product, quantity=0, price=product.price)
