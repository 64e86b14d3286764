"""Order price computation.

Pure functions over ``Decimal`` amounts in the store's major currency unit.
Nothing here touches the database; the order workflow passes in captured
line prices and the balances it has already locked.

Order of application is fixed: coupon and other discounts first, then the
wallet (capped at what is left), then delivery fee and tax on top.
"""

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from django.conf import settings

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")
WHOLE = Decimal("1")


@dataclass(frozen=True)
class PriceSummary:
    items_total: Decimal
    delivery_fee: Decimal
    tax: Decimal
    discount: Decimal
    coupon_discount: Decimal
    wallet_used: Decimal
    grand_total: Decimal

    def as_dict(self) -> dict:
        return asdict(self)


def round_money(amount) -> Decimal:
    """Round to two places, half-up."""
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_minor_units(amount) -> int:
    """Convert a major-unit amount to the provider's integer minor units (paise)."""
    return int((round_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(minor) -> Decimal:
    return round_money(Decimal(int(minor)) / 100)


def _line_total(item) -> Decimal:
    return round_money(Decimal(item.price) * int(item.quantity))


def items_total(items: Iterable) -> Decimal:
    """Sum of price x quantity over lines exposing ``price`` and ``quantity``."""
    return round_money(sum((_line_total(i) for i in items), ZERO))


def delivery_fee_for(total: Decimal) -> Decimal:
    if total > Decimal(str(settings.FREE_DELIVERY_THRESHOLD)):
        return ZERO
    return round_money(Decimal(str(settings.DELIVERY_FEE)))


def tax_for(total: Decimal) -> Decimal:
    # Tax is charged in whole currency units
    tax = (Decimal(total) * Decimal(str(settings.TAX_RATE))).quantize(WHOLE, rounding=ROUND_HALF_UP)
    return round_money(tax)


def compute_summary(
    items: Iterable,
    *,
    coupon_discount=ZERO,
    wallet_balance=ZERO,
    discount=ZERO,
) -> PriceSummary:
    """Price an order.

    ``wallet_balance`` is the most the wallet may contribute; the amount used
    is capped at the running total after discounts.
    """
    subtotal = items_total(list(items))
    coupon_discount = round_money(coupon_discount)
    discount = round_money(discount)

    running = max(subtotal - discount - coupon_discount, ZERO)

    used = min(max(round_money(wallet_balance), ZERO), running)
    running -= used

    fee = delivery_fee_for(subtotal)
    tax = tax_for(subtotal)
    return PriceSummary(
        items_total=subtotal,
        delivery_fee=fee,
        tax=tax,
        discount=discount,
        coupon_discount=coupon_discount,
        wallet_used=used,
        grand_total=round_money(running + fee + tax),
    )
