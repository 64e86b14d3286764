"""Cart services: user cart mutations.

Stock is checked, not reserved, when lines change; the order workflow
reserves stock atomically at checkout. Every write re-captures the current
product price on the line.
"""

import logging

from catalog.models import Product
from common.exceptions import DomainError
from django.db import transaction
from django.shortcuts import get_object_or_404

from .models import CartItem
from .selectors import get_cart_for_user

logger = logging.getLogger("freshcart.cart")


class CartError(DomainError):
    default_detail = "Unable to update cart."


def _check_available(product: Product, quantity: int) -> None:
    if not product.is_active:
        raise CartError(f"{product.name} is no longer available.")
    if product.stock < quantity:
        raise CartError(f"Only {product.stock} units of {product.name} available.")


def _set_quantity(item: CartItem, product: Product, quantity: int) -> CartItem:
    _check_available(product, quantity)
    item.quantity = quantity
    item.price = product.price
    if item.pk:
        item.save(update_fields=["quantity", "price", "updated_at"])
    else:
        item.save()
    return item


@transaction.atomic
def add_item(*, user, product_id: int, quantity: int) -> CartItem:
    """Add a product to the user's cart, incrementing the line when present."""
    if quantity <= 0:
        raise CartError("Quantity must be positive.")
    cart = get_cart_for_user(user=user)
    product = get_object_or_404(Product, id=product_id)

    item = CartItem.objects.select_for_update().filter(cart=cart, product=product).first()
    if item is None:
        item = _set_quantity(CartItem(cart=cart, product=product), product, quantity)
        event = "cart_item_added"
    else:
        item = _set_quantity(item, product, int(item.quantity) + int(quantity))
        event = "cart_item_updated"
    logger.info(event, extra={"cart_id": cart.id, "product_id": product.id, "quantity": item.quantity})
    return item


@transaction.atomic
def update_item_quantity(*, user, item_id: int, quantity: int) -> CartItem:
    """Set a line's quantity."""
    if quantity <= 0:
        raise CartError("Quantity must be positive.")
    cart = get_cart_for_user(user=user)
    item = get_object_or_404(CartItem.objects.select_for_update().select_related("product"), id=item_id, cart=cart)
    item = _set_quantity(item, item.product, quantity)
    logger.info("cart_item_updated", extra={"cart_id": cart.id, "product_id": item.product_id, "quantity": quantity})
    return item


@transaction.atomic
def remove_item(*, user, item_id: int) -> bool:
    """Remove a line; returns False when the user's cart has no such line."""
    cart = get_cart_for_user(user=user)
    deleted, _ = CartItem.objects.filter(id=item_id, cart=cart).delete()
    if deleted:
        logger.info("cart_item_removed", extra={"cart_id": cart.id, "item_id": item_id})
    return bool(deleted)


def clear_cart(*, user) -> None:
    """Remove every line from the user's cart. Runs inside the caller's transaction at checkout."""
    deleted, _ = CartItem.objects.filter(cart__user=user).delete()
    logger.info("cart_cleared", extra={"user_id": getattr(user, "id", None), "deleted": deleted})
