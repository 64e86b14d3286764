"""Customer domain services for mutations and side-effects.

Keep business rules here and keep views thin.
"""

import logging
from typing import Optional

from catalog.models import Product
from common.exceptions import DomainError, NotFound
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction

from .models import Address, WishlistItem

logger = logging.getLogger("freshcart.customer")


def resolve_shipping_contact(address: Optional[Address]) -> Optional[str]:
    """Determine the delivery contact phone.

    Returns the `Address.phone` when present (per-address override), otherwise
    falls back to the owning `User.phone`. Whitespace is stripped; empty values yield None.
    """

    if address is None:
        return None
    if address.phone:
        phone = address.phone.strip()
        if phone:
            return phone

    user_phone = getattr(address.user, "phone", "")
    if user_phone:
        phone = user_phone.strip()
        return phone or None

    return None


@transaction.atomic
def set_default_address(*, user, address: Address) -> Address:
    """Flag ``address`` as the user's default, clearing any previous default."""

    if address.user_id != user.id:
        raise NotFound("Address not found.")
    Address.objects.filter(user=user, is_default=True).exclude(id=address.id).update(is_default=False)
    if not address.is_default:
        address.is_default = True
        address.save(update_fields=["is_default", "updated_at"])
    return address


def shipping_snapshot(*, user, address_id: int) -> dict:
    """Copy one of the user's saved addresses for use as an order's shipping address."""

    try:
        address = Address.objects.select_related("user").get(id=address_id, user=user)
    except Address.DoesNotExist:
        raise NotFound("Address not found.")
    return address.snapshot()


@transaction.atomic
def delete_address(*, user, address: Address) -> None:
    """Delete ``address``; when it was the default, the most recently updated remaining one takes over."""

    was_default = address.is_default
    address.delete()
    if was_default:
        successor = Address.objects.filter(user=user).order_by("-updated_at", "-id").first()
        if successor is not None:
            successor.is_default = True
            successor.save(update_fields=["is_default", "updated_at"])


class WishlistError(DomainError):
    default_detail = "Unable to update wishlist."


@transaction.atomic
def add_to_wishlist(*, user, product_id: int) -> WishlistItem:
    """Save an active product to the user's wishlist.

    Raises NotFound for unknown or retired products and WishlistError when
    the product is already saved or the list is at ``WISHLIST_MAX_ITEMS``.
    """

    product = Product.objects.filter(id=product_id, state=Product.STATE_ACTIVE).first()
    if product is None:
        raise NotFound("Product not found.")
    # Concurrent adds for one user queue on the user row so the cap holds
    get_user_model().objects.select_for_update().get(pk=user.pk)
    existing = WishlistItem.objects.filter(user=user)
    if existing.filter(product=product).exists():
        raise WishlistError("Product already in wishlist.")
    if existing.count() >= settings.WISHLIST_MAX_ITEMS:
        raise WishlistError(f"Wishlist can hold at most {settings.WISHLIST_MAX_ITEMS} products.")
    item = WishlistItem.objects.create(user=user, product=product)
    logger.info("wishlist_item_added", extra={"user_id": user.id, "product_id": product.id})
    return item


def remove_from_wishlist(*, user, product_id: int) -> bool:
    deleted, _ = WishlistItem.objects.filter(user=user, product_id=product_id).delete()
    if deleted:
        logger.info("wishlist_item_removed", extra={"user_id": user.id, "product_id": product_id})
    return bool(deleted)
