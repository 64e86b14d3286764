"""Read-only data access helpers for the customer app."""

from catalog.models import Product
from django.db.models import QuerySet

from .models import Address, WishlistItem


def list_addresses(user_id: int) -> QuerySet[Address]:
    """Return all addresses owned by the given user id, default first."""

    return Address.objects.filter(user_id=user_id).order_by("-is_default", "-updated_at", "id")


def list_wishlist(user_id: int) -> QuerySet[WishlistItem]:
    """Return the user's saved products that are still on sale, newest first."""

    return (
        WishlistItem.objects.filter(user_id=user_id, product__state=Product.STATE_ACTIVE)
        .select_related("product__category")
        .order_by("-created_at", "-id")
    )
