"""Read-only query helpers for the catalog.

Shoppers only ever see active rows; admin views query the models directly.
"""

from typing import Iterable, Optional

from django.db.models import F, QuerySet

from .models import Category, Product


def list_categories(ordering: Optional[Iterable[str]] = None) -> QuerySet[Category]:
    """Return active categories, by ``sort_order`` then ``name`` unless told otherwise."""

    ordering = list(ordering or ("sort_order", "name"))
    return Category.objects.filter(state=Category.STATE_ACTIVE).order_by(*ordering)


def list_products(
    *, category_slug: Optional[str] = None, ordering: Optional[Iterable[str]] = None
) -> QuerySet[Product]:
    """Return active products in active categories.

    The category is joined eagerly since every list row renders its name.
    """

    qs = Product.objects.filter(state=Product.STATE_ACTIVE, category__state=Category.STATE_ACTIVE).select_related(
        "category"
    )
    if category_slug:
        qs = qs.filter(category__slug=category_slug)
    return qs.order_by(*(ordering or ("name",)))


def list_low_stock_products() -> QuerySet[Product]:
    """Return active products whose stock is at or below their alert level."""

    return (
        Product.objects.filter(state=Product.STATE_ACTIVE, stock__lte=F("low_stock_alert"))
        .select_related("category")
        .order_by("stock", "name")
    )
