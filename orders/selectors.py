"""Read-only order queries."""

from common.exceptions import NotFound
from django.db.models import QuerySet

from .models import Order


def list_orders_for_user(*, user, status: str | None = None) -> QuerySet:
    qs = Order.objects.filter(user_id=user.id).prefetch_related("items").select_related("coupon")
    if status:
        qs = qs.filter(status=status)
    return qs


def get_visible_order(*, order_id: str, user) -> Order:
    """Return the order when ``user`` owns it or has an admin/delivery role.

    Other users get NotFound so order ids do not leak.
    """
    try:
        order = (
            Order.objects.select_related("coupon", "delivery_partner")
            .prefetch_related("items")
            .get(order_id=order_id)
        )
    except Order.DoesNotExist:
        raise NotFound("Order not found.")
    if order.user_id == user.id or user.is_store_admin or user.is_delivery_partner:
        return order
    raise NotFound("Order not found.")
