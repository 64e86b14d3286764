"""Catalog write services: customer reviews."""

import logging
from decimal import ROUND_HALF_UP, Decimal

from common.exceptions import DomainError, NotFound
from django.db import IntegrityError, transaction
from django.db.models import Avg, Count
from orders.models import Order

from .models import Product, ProductReview

logger = logging.getLogger("freshcart.catalog")


class ReviewError(DomainError):
    default_detail = "Unable to add review."


def _refresh_ratings(product: Product) -> None:
    stats = ProductReview.objects.filter(product=product).aggregate(avg=Avg("rating"), count=Count("id"))
    average = Decimal(str(stats["avg"] or 0)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    # Column update only: stock on this row is owned by inventory
    Product.objects.filter(pk=product.pk).update(rating_average=average, rating_count=stats["count"])
    product.rating_average, product.rating_count = average, stats["count"]


@transaction.atomic
def add_review(
    *, user, product: Product, rating: int, comment: str = "", order_id: str | None = None
) -> ProductReview:
    """Record the user's single review of ``product`` and refresh its rating roll-up.

    When ``order_id`` is given the order must belong to the user, be
    delivered, and contain the product; it is then flagged ``is_rated``.
    """
    if ProductReview.objects.filter(product=product, user=user).exists():
        raise ReviewError("Product already reviewed.")

    order = None
    if order_id:
        try:
            order = Order.objects.select_for_update().get(order_id=order_id, user=user)
        except Order.DoesNotExist:
            raise NotFound("Order not found.")
        if order.status != Order.STATUS_DELIVERED:
            raise ReviewError("Only delivered orders can be rated.")
        if not order.items.filter(product=product).exists():
            raise ReviewError("This order does not include the product.")

    try:
        with transaction.atomic():
            review = ProductReview.objects.create(
                product=product, user=user, order=order, rating=rating, comment=comment
            )
    except IntegrityError:
        raise ReviewError("Product already reviewed.")
    _refresh_ratings(product)
    if order is not None and not order.is_rated:
        order.is_rated = True
        order.save(update_fields=["is_rated", "updated_at"])

    logger.info(
        "product_reviewed",
        extra={"product_id": product.id, "user_id": user.id, "rating": rating, "order_id": order_id or ""},
    )
    return review
