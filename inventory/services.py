"""Inventory services: transactional stock movements against products.

All functions lock the product row with ``select_for_update`` and must run
inside a transaction; the order workflow calls ``reserve``/``release`` from
within its unit of work so stock changes commit or roll back with the order.
"""

import logging

from catalog.models import Product
from common.exceptions import DomainError, NotFound
from django.db import transaction

from .models import StockMovement

logger = logging.getLogger("freshcart.inventory")


class MovementError(DomainError):
    default_detail = "Invalid stock movement."


class ProductUnavailable(DomainError):
    default_detail = "Product is unavailable."

    def __init__(self, detail=None, *, product_id=None):
        self.product_id = product_id
        super().__init__(detail)


def _lock_product(product_id: int) -> Product:
    try:
        return Product.objects.select_for_update().get(id=product_id)
    except Product.DoesNotExist:
        raise ProductUnavailable("Product not found.", product_id=product_id)


def _journal(product: Product, *, movement_type: str, quantity: int, reason: str, reference: str) -> StockMovement:
    return StockMovement.objects.create(
        product=product,
        movement_type=movement_type,
        quantity=quantity,
        stock_after=product.stock,
        reason=reason,
        reference=reference,
    )


@transaction.atomic
def reserve(*, product_id: int, quantity: int, reference: str) -> Product:
    """Decrement stock for an order line and return the locked product.

    Raises ProductUnavailable when the product is missing, retired, or has
    fewer than ``quantity`` units on hand. The caller snapshots name and
    price from the returned row.
    """
    if quantity <= 0:
        raise MovementError("Quantity must be positive.")
    product = _lock_product(product_id)
    if not product.is_active:
        raise ProductUnavailable(f"{product.name} is no longer available.", product_id=product_id)
    if product.stock < quantity:
        raise ProductUnavailable(f"Insufficient stock for {product.name}.", product_id=product_id)

    product.stock = product.stock - quantity
    product.save(update_fields=["stock", "updated_at"])
    _journal(
        product,
        movement_type=StockMovement.TYPE_OUTBOUND,
        quantity=-quantity,
        reason="order",
        reference=reference,
    )
    logger.info(
        "stock_reserved",
        extra={"product_id": product_id, "quantity": quantity, "stock": product.stock, "reference": reference},
    )
    if product.stock <= product.low_stock_alert:
        logger.warning("stock_low", extra={"product_id": product_id, "stock": product.stock})
    return product


@transaction.atomic
def release(*, product_id: int, quantity: int, reference: str) -> Product:
    """Return previously reserved units to stock.

    Retired products are restocked too; the caller guarantees each order
    releases its lines at most once.
    """
    if quantity <= 0:
        raise MovementError("Quantity must be positive.")
    try:
        product = Product.objects.select_for_update().get(id=product_id)
    except Product.DoesNotExist:
        raise NotFound("Product not found.")
    product.stock = product.stock + quantity
    product.save(update_fields=["stock", "updated_at"])
    _journal(
        product,
        movement_type=StockMovement.TYPE_INBOUND,
        quantity=quantity,
        reason="order_cancelled",
        reference=reference,
    )
    logger.info(
        "stock_released",
        extra={"product_id": product_id, "quantity": quantity, "stock": product.stock, "reference": reference},
    )
    return product


@transaction.atomic
def apply_movement(*, product_id: int, movement_type: str, quantity: int, reason: str = "", reference: str = ""):
    """Apply a signed movement to a product's stock.

    quantity: positive for inbound/additions, negative for outbound/deductions.
    movement_type: label for admin/documentation; logic is driven by sign.
    """
    if quantity == 0:
        return None
    try:
        product = Product.objects.select_for_update().get(id=product_id)
    except Product.DoesNotExist:
        raise NotFound("Product not found.")

    if quantity < 0 and abs(quantity) > product.stock:
        raise MovementError("Insufficient available quantity")
    product.stock = product.stock + quantity
    product.save(update_fields=["stock", "updated_at"])
    movement = _journal(product, movement_type=movement_type, quantity=quantity, reason=reason, reference=reference)
    logger.info(
        "stock_adjusted",
        extra={"product_id": product_id, "quantity": quantity, "stock": product.stock, "movement_type": movement_type},
    )
    return movement
