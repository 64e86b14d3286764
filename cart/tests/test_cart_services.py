import pytest
from cart.models import CartItem
from cart.selectors import cart_lines
from cart.services import CartError, add_item, clear_cart, remove_item, update_item_quantity
from cart.tests.factories import CartItemFactory, UserFactory
from catalog.tests.factories import ProductFactory


@pytest.mark.django_db
def test_cart_lines_lists_products_in_insertion_order():
    user = UserFactory()
    p1 = ProductFactory(stock=10)
    p2 = ProductFactory(stock=10)
    add_item(user=user, product_id=p2.id, quantity=1)
    add_item(user=user, product_id=p1.id, quantity=4)

    assert cart_lines(user=user) == [
        {"product_id": p2.id, "quantity": 1},
        {"product_id": p1.id, "quantity": 4},
    ]


@pytest.mark.django_db
def test_cart_lines_empty_for_user_without_cart():
    assert cart_lines(user=UserFactory()) == []


@pytest.mark.django_db
def test_update_refreshes_captured_price_and_checks_stock():
    user = UserFactory()
    item = CartItemFactory(cart__user=user, product__stock=5, quantity=1)
    item.product.price = item.product.price + 10
    item.product.save()

    updated = update_item_quantity(user=user, item_id=item.id, quantity=5)
    assert updated.price == item.product.price

    with pytest.raises(CartError):
        update_item_quantity(user=user, item_id=item.id, quantity=6)


@pytest.mark.django_db
def test_remove_missing_item_is_noop_and_clear_empties():
    user = UserFactory()
    CartItemFactory(cart__user=user)
    remove_item(user=user, item_id=999999)
    assert CartItem.objects.filter(cart__user=user).count() == 1
    clear_cart(user=user)
    assert not CartItem.objects.filter(cart__user=user).exists()
