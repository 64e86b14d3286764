"""Read-only cart queries."""

from decimal import Decimal

from catalog.models import Product
from django.conf import settings
from orders.pricing import ZERO, compute_summary, round_money

from .models import Cart, CartItem


def get_cart_for_user(*, user) -> Cart:
    """Return the user's cart, creating it if missing."""

    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


def available_items(*, cart: Cart):
    """Cart lines whose product can still be bought; retired products are hidden."""

    return CartItem.objects.filter(cart=cart, product__state=Product.STATE_ACTIVE).select_related("product")


def cart_summary(*, cart: Cart) -> dict:
    """Cart lines plus a checkout price preview (no coupon, no wallet)."""

    items = list(available_items(cart=cart))
    summary = compute_summary(items)
    fee, grand_total = summary.delivery_fee, summary.grand_total
    if not items:
        fee, grand_total = ZERO, ZERO
    threshold = Decimal(str(settings.FREE_DELIVERY_THRESHOLD))
    remaining = ZERO if fee == ZERO else round_money(max(threshold - summary.items_total, ZERO))
    return {
        "id": cart.id,
        "items": items,
        "item_count": len(items),
        "total_quantity": sum(int(i.quantity) for i in items),
        "items_total": summary.items_total,
        "delivery_fee": fee,
        "tax": summary.tax,
        "grand_total": grand_total,
        "free_delivery_remaining": remaining,
    }


def cart_lines(*, user) -> list[dict]:
    """Return the user's purchasable cart lines as ``{"product_id", "quantity"}``."""

    return [
        {"product_id": product_id, "quantity": quantity}
        for product_id, quantity in CartItem.objects.filter(
            cart__user=user, product__state=Product.STATE_ACTIVE
        )
        .order_by("id")
        .values_list("product_id", "quantity")
    ]


def coupon_lines(*, user) -> list[dict]:
    """Cart lines shaped for coupon scope checks: product, category and line total."""

    return [
        {"product_id": item.product_id, "category_id": item.product.category_id, "line_total": item.line_total}
        for item in CartItem.objects.filter(cart__user=user, product__state=Product.STATE_ACTIVE)
        .select_related("product")
        .order_by("id")
    ]
