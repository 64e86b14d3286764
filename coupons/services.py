"""Coupon evaluation and redemption.

``is_valid`` and ``calculate_discount`` are pure checks over a loaded coupon.
``apply_coupon`` is the only writer of ``used_count``: it runs inside the
order's unit of work and increments the counter with a conditional UPDATE,
so concurrent checkouts can never push it past ``usage_limit``.
"""

import logging
from decimal import Decimal
from typing import Iterable

from common.exceptions import DomainError, NotFound
from django.db.models import F, Q
from django.utils import timezone
from orders.pricing import ZERO, round_money

from .models import Coupon

logger = logging.getLogger("freshcart.coupons")


class InvalidCoupon(DomainError):
    default_detail = "Coupon is invalid."


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def is_valid(coupon: Coupon, now=None) -> bool:
    now = now or timezone.now()
    if coupon.state != Coupon.STATE_ACTIVE:
        return False
    if not (coupon.valid_from <= now <= coupon.valid_until):
        return False
    return coupon.usage_limit is None or coupon.used_count < coupon.usage_limit


def calculate_discount(coupon: Coupon, order_amount, now=None, *, eligible_amount=None) -> Decimal:
    """Return the discount for an order of ``order_amount``.

    The minimum order value is checked against ``order_amount``; the
    discount itself is computed on ``eligible_amount`` when the coupon is
    scoped to some products or categories.
    """
    order_amount = Decimal(order_amount)
    if not is_valid(coupon, now) or order_amount < coupon.min_order_value:
        return ZERO
    base = order_amount if eligible_amount is None else Decimal(eligible_amount)

    if coupon.discount_type == Coupon.TYPE_PERCENTAGE:
        discount = base * coupon.discount_value / Decimal(100)
        if coupon.max_discount and discount > coupon.max_discount:
            discount = coupon.max_discount
    else:
        discount = min(coupon.discount_value, base)
    return round_money(max(discount, ZERO))


def _is_scoped(coupon: Coupon) -> bool:
    return coupon.products.exists() or coupon.categories.exists() or coupon.excluded_products.exists()


def eligible_amount(coupon: Coupon, lines: Iterable[dict]) -> Decimal:
    """Sum the line totals the coupon applies to.

    Each line is a mapping with ``product_id``, ``category_id`` and
    ``line_total``. Excluded products never count; when the coupon lists
    products or categories, only lines matching either list count.
    """
    excluded = set(coupon.excluded_products.values_list("id", flat=True))
    products = set(coupon.products.values_list("id", flat=True))
    categories = set(coupon.categories.values_list("id", flat=True))
    scoped = bool(products or categories)

    total = ZERO
    for line in lines:
        if line["product_id"] in excluded:
            continue
        if scoped and line["product_id"] not in products and line["category_id"] not in categories:
            continue
        total += Decimal(line["line_total"])
    return round_money(total)


def apply_coupon(uow, *, code: str, lines: list[dict], items_total) -> tuple[Coupon, Decimal]:
    """Validate a coupon for an order being created and consume one use.

    Must be called inside ``uow``. Raises InvalidCoupon when the code is
    unknown, expired, retired, exhausted, or yields no discount for these
    lines; nothing is written in that case.
    """
    if not uow.active:
        raise RuntimeError("apply_coupon() requires an open unit of work")
    normalized = normalize_code(code)
    try:
        coupon = Coupon.objects.get(code=normalized)
    except Coupon.DoesNotExist:
        raise InvalidCoupon("Invalid coupon code.")

    now = timezone.now()
    if not is_valid(coupon, now):
        raise InvalidCoupon("Coupon is expired or inactive.")
    discount = calculate_discount(coupon, items_total, now, eligible_amount=eligible_amount(coupon, lines))
    if discount <= 0:
        raise InvalidCoupon("Coupon is not applicable to this order.")

    updated = (
        Coupon.objects.filter(pk=coupon.pk, state=Coupon.STATE_ACTIVE)
        .filter(Q(usage_limit__isnull=True) | Q(used_count__lt=F("usage_limit")))
        .update(used_count=F("used_count") + 1, updated_at=now)
    )
    if not updated:
        raise InvalidCoupon("Coupon usage limit reached.")
    coupon.refresh_from_db(fields=["used_count"])
    logger.info(
        "coupon_applied",
        extra={"coupon": coupon.code, "discount": str(discount), "used_count": coupon.used_count},
    )
    return coupon, discount


def retire_coupon(coupon: Coupon) -> Coupon:
    """Soft-delete a coupon. Orders that used it keep their reference."""
    if coupon.state != Coupon.STATE_RETIRED:
        coupon.state = Coupon.STATE_RETIRED
        coupon.save(update_fields=["state", "updated_at"])
        logger.info("coupon_retired", extra={"coupon": coupon.code})
    return coupon


def preview_coupon(code: str, cart_total, now=None, *, lines: Iterable[dict] = ()) -> dict:
    """Read-only check of a code against a cart total, for the storefront.

    Coupons scoped to products or categories, or with excluded products, are
    priced on the matching ``lines`` only, as checkout does.
    """
    try:
        coupon = Coupon.objects.get(code=normalize_code(code))
    except Coupon.DoesNotExist:
        raise NotFound("Invalid coupon code.")
    if not is_valid(coupon, now):
        raise InvalidCoupon("Coupon is expired or inactive.")
    total = round_money(cart_total or ZERO)
    if total < coupon.min_order_value:
        raise InvalidCoupon(f"Minimum order value of {coupon.min_order_value} required.")
    base = None
    if _is_scoped(coupon):
        base = eligible_amount(coupon, lines)
        if base <= 0:
            raise InvalidCoupon("Coupon does not apply to any item in your cart.")
    discount = calculate_discount(coupon, total, now, eligible_amount=base)
    return {"coupon": coupon, "discount": discount, "final_amount": round_money(total - discount)}