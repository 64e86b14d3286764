"""Order workflow: placement, status transitions, cancellation and tracking.

Every mutating operation takes an open ``UnitOfWork`` as its first argument.
Stock, coupon usage, wallet balance and the order row all change inside that
unit of work, so a failure at any step rolls back every write, and events
are only published once the transaction commits.
"""

import hashlib
import json
import logging
from collections import OrderedDict
from datetime import timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional, Tuple

from cart.selectors import cart_lines
from cart.services import clear_cart
from common import events
from common.choices import PaymentMethod
from common.exceptions import DomainError, NotFound
from coupons.services import InvalidCoupon, apply_coupon
from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from inventory.services import release, reserve
from rest_framework import status as http_status
from wallet import services as wallet_services

from . import pricing
from .models import IdempotencyKey, Order, OrderItem, generate_order_id

logger = logging.getLogger("freshcart.orders")


class OrderError(DomainError):
    default_detail = "Unable to place order."


class InvalidTransition(DomainError):
    default_detail = "Invalid order status transition."


class Unauthorized(DomainError):
    status_code = http_status.HTTP_403_FORBIDDEN
    default_detail = "Not authorized to access this order."


TRANSITIONS = {
    Order.STATUS_PENDING: {Order.STATUS_CONFIRMED, Order.STATUS_CANCELLED},
    Order.STATUS_CONFIRMED: {Order.STATUS_PREPARING, Order.STATUS_CANCELLED},
    Order.STATUS_PREPARING: {Order.STATUS_OUT_FOR_DELIVERY},
    Order.STATUS_OUT_FOR_DELIVERY: {Order.STATUS_DELIVERED},
    Order.STATUS_DELIVERED: {Order.STATUS_RETURNED},
    Order.STATUS_CANCELLED: set(),
    Order.STATUS_RETURNED: set(),
}
CANCELLABLE = (Order.STATUS_PENDING, Order.STATUS_CONFIRMED)
TERMINAL = (Order.STATUS_DELIVERED, Order.STATUS_CANCELLED, Order.STATUS_RETURNED)

TIMELINE_STEPS = [
    ("Order Placed", Order.STATUS_PENDING),
    ("Order Confirmed", Order.STATUS_CONFIRMED),
    ("Preparing", Order.STATUS_PREPARING),
    ("Out for Delivery", Order.STATUS_OUT_FOR_DELIVERY),
    ("Delivered", Order.STATUS_DELIVERED),
]


def _require_uow(uow) -> None:
    if uow is None or not uow.active:
        raise RuntimeError("order workflow operations require an open unit of work")


def _is_admin(user) -> bool:
    return bool(getattr(user, "is_store_admin", False))


def _is_delivery(user) -> bool:
    return bool(getattr(user, "is_delivery_partner", False))


def _lock_order(order_id: str) -> Order:
    try:
        return Order.objects.select_for_update().get(order_id=order_id)
    except Order.DoesNotExist:
        raise NotFound("Order not found.")


def _merge_lines(items: Iterable[dict]) -> "OrderedDict[int, int]":
    merged: "OrderedDict[int, int]" = OrderedDict()
    for line in items:
        product_id = int(line["product_id"])
        quantity = int(line["quantity"])
        if quantity < 1:
            raise OrderError("Quantity must be at least 1.")
        merged[product_id] = merged.get(product_id, 0) + quantity
    return merged


def estimate_delivery(products, now=None):
    """Now plus the slowest product's delivery time."""
    now = now or timezone.now()
    minutes = max((p.delivery_time or 0 for p in products), default=0)
    return now + timedelta(minutes=minutes or settings.DEFAULT_DELIVERY_MINUTES)


def order_payload(order: Order) -> dict:
    """Event representation of an order."""
    return {
        "orderId": order.order_id,
        "userId": order.user_id,
        "status": order.status,
        "paymentMethod": order.payment_method,
        "paymentStatus": order.payment_status,
        "grandTotal": str(order.grand_total),
        "items": [
            {"productId": i.product_id, "name": i.name, "quantity": i.quantity, "price": str(i.price)}
            for i in order.items.all()
        ],
        "createdAt": order.created_at.isoformat() if order.created_at else None,
    }


def create_order(
    uow,
    *,
    user,
    items: Optional[list] = None,
    shipping_address: dict,
    payment_method: str,
    coupon_code: Optional[str] = None,
    use_wallet: bool = False,
    delivery_instructions: str = "",
) -> Order:
    """Place an order for ``items``, or for the user's cart when no items are given.

    Raises ProductUnavailable when any line cannot be reserved; nothing is
    written in that case. An unusable coupon is skipped, and the wallet only
    contributes up to its balance.
    """
    _require_uow(uow)
    lines = _merge_lines(items or cart_lines(user=user))
    if not lines:
        raise OrderError("No items to order.")

    order = Order(
        user=user,
        shipping_address=dict(shipping_address or {}),
        payment_method=payment_method,
        delivery_instructions=delivery_instructions or "",
    )
    order.order_id = generate_order_id()
    reference = f"ORDER_{order.order_id}"

    # Lock products in id order
    order_items, products = [], []
    for product_id in sorted(lines):
        product = reserve(product_id=product_id, quantity=lines[product_id], reference=reference)
        products.append(product)
        order_items.append(
            OrderItem(
                product=product,
                name=product.name,
                price=product.price,
                unit=product.unit,
                unit_value=product.unit_value,
                image_url=product.image_url,
                quantity=lines[product_id],
            )
        )

    subtotal = pricing.items_total(order_items)
    coupon, coupon_discount = None, pricing.ZERO
    if coupon_code:
        coupon_lines = [
            {"product_id": i.product_id, "category_id": i.product.category_id, "line_total": i.line_total}
            for i in order_items
        ]
        try:
            with transaction.atomic():
                coupon, coupon_discount = apply_coupon(uow, code=coupon_code, lines=coupon_lines, items_total=subtotal)
        except InvalidCoupon as exc:
            logger.info("coupon_skipped", extra={"order_id": order.order_id, "code": coupon_code, "reason": exc.detail})

    wallet, wallet_balance = None, pricing.ZERO
    if use_wallet:
        wallet = wallet_services.get_or_create_wallet(user, for_update=True)
        wallet_balance = wallet.balance

    summary = pricing.compute_summary(order_items, coupon_discount=coupon_discount, wallet_balance=wallet_balance)
    if payment_method == PaymentMethod.COD and summary.grand_total > Decimal(str(settings.COD_MAX_ORDER_VALUE)):
        raise OrderError(f"Cash on delivery is not available for orders above {settings.COD_MAX_ORDER_VALUE}.")

    for field, value in summary.as_dict().items():
        setattr(order, field, value)
    order.coupon = coupon
    order.estimated_delivery = estimate_delivery(products)
    if summary.grand_total == 0:
        # Nothing left to collect
        order.payment_status = Order.PAYMENT_COMPLETED
    order.save()
    for item in order_items:
        item.order = order
    OrderItem.objects.bulk_create(order_items)

    if summary.wallet_used > 0:
        wallet_services.debit(
            wallet,
            summary.wallet_used,
            description="Order payment",
            reference=reference,
            order=order,
            metadata={"order_type": "purchase"},
        )

    clear_cart(user=user)
    logger.info(
        "order_created",
        extra={
            "order_id": order.order_id,
            "user_id": user.id,
            "grand_total": str(order.grand_total),
            "wallet_used": str(order.wallet_used),
            "coupon": getattr(coupon, "code", None),
        },
    )
    uow.emit(events.ORDER_CREATED, {"order": order_payload(order)})
    return order


def _compensate(uow, order: Order) -> None:
    """Undo the side effects of placing ``order``: restock lines and refund wallet use.

    Runs once per order because callers flip the status to cancelled under
    the same row lock. Individual failures are logged and do not block the
    cancellation.
    """
    reference = f"CANCEL_{order.order_id}"
    for item in order.items.all():
        try:
            with transaction.atomic():
                release(product_id=item.product_id, quantity=item.quantity, reference=reference)
        except (DomainError, DatabaseError):
            logger.exception(
                "restock_failed", extra={"order_id": order.order_id, "product_id": item.product_id}
            )

    if order.wallet_used > 0:
        try:
            with transaction.atomic():
                wallet = wallet_services.get_or_create_wallet(order.user)
                wallet_services.credit(
                    wallet,
                    order.wallet_used,
                    description="Order cancellation refund",
                    reference=f"REFUND_{order.order_id}",
                    order=order,
                    metadata={"refund_type": "cancellation"},
                )
        except (DomainError, DatabaseError):
            logger.exception("wallet_refund_failed", extra={"order_id": order.order_id})


def _log_status_change(order: Order, prev: str, actor) -> None:
    logger.info(
        "order_status_changed",
        extra={
            "order_id": order.order_id,
            "user_id": order.user_id,
            "actor_id": getattr(actor, "id", None),
            "status_from": prev,
            "status_to": order.status,
        },
    )


def _emit_status(uow, order: Order, *, notification_type: str = "status_update") -> None:
    uow.emit(
        events.ORDER_STATUS_UPDATED,
        {"orderId": order.order_id, "status": order.status, "updatedAt": order.updated_at.isoformat()},
        room=order.room,
    )
    uow.emit(
        events.ORDER_NOTIFICATION,
        {
            "userId": order.user_id,
            "orderId": order.order_id,
            "message": f"Your order {order.order_id} is now {order.status}",
            "type": notification_type,
        },
    )


def _check_assigned_partner(order: Order, actor) -> None:
    # Unassigned orders are open to any courier; assigned ones only to theirs
    if _is_admin(actor) or not order.delivery_partner_id:
        return
    if order.delivery_partner_id != actor.id:
        raise Unauthorized("Order is assigned to another delivery partner.")


def update_order_status(uow, *, order_id: str, status: str, actor) -> Order:
    """Move an order along the status table. Admin and delivery roles only.

    Delivering completes the payment; cancelling runs compensation; only an
    admin may mark a delivered order returned.
    """
    _require_uow(uow)
    if not (_is_admin(actor) or _is_delivery(actor)):
        raise Unauthorized("Admin or delivery role required.")
    if status == Order.STATUS_RETURNED and not _is_admin(actor):
        raise Unauthorized("Only admins can mark an order returned.")

    order = _lock_order(order_id)
    _check_assigned_partner(order, actor)
    if status not in TRANSITIONS.get(order.status, set()):
        raise InvalidTransition(f"Cannot change order status from {order.status} to {status}.")

    prev = order.status
    order.status = status
    fields = ["status", "updated_at"]
    if status == Order.STATUS_DELIVERED:
        order.payment_status = Order.PAYMENT_COMPLETED
        order.delivered_at = timezone.now()
        fields += ["payment_status", "delivered_at"]
    order.save(update_fields=fields)
    if status == Order.STATUS_CANCELLED:
        _compensate(uow, order)

    _log_status_change(order, prev, actor)
    _emit_status(uow, order)
    return order


def cancel_order(uow, *, order_id: str, reason: str = "", user) -> Order:
    """Customer cancellation of their own pending or confirmed order."""
    _require_uow(uow)
    order = _lock_order(order_id)
    if order.user_id != user.id:
        raise Unauthorized("Not authorized to cancel this order.")
    if order.status not in CANCELLABLE:
        raise InvalidTransition("Order cannot be cancelled at this stage.")

    prev = order.status
    order.status = Order.STATUS_CANCELLED
    order.cancellation_reason = reason or ""
    order.save(update_fields=["status", "cancellation_reason", "updated_at"])
    _compensate(uow, order)

    _log_status_change(order, prev, user)
    _emit_status(uow, order, notification_type="cancelled")
    return order


def update_delivery_location(uow, *, order_id: str, lat, lng, address: str = "", actor) -> dict:
    """Record the courier's position for an order in progress."""
    _require_uow(uow)
    if not (_is_admin(actor) or _is_delivery(actor)):
        raise Unauthorized("Delivery role required.")
    order = _lock_order(order_id)
    _check_assigned_partner(order, actor)
    if order.status in TERMINAL:
        raise InvalidTransition("Order is no longer being delivered.")

    order.current_location = {
        "lat": float(lat),
        "lng": float(lng),
        "address": address or "",
        "updated_at": timezone.now().isoformat(),
    }
    order.save(update_fields=["current_location", "updated_at"])
    uow.emit(
        events.DELIVERY_LOCATION_UPDATED,
        {"orderId": order.order_id, "location": order.current_location},
        room=order.room,
    )
    return order.current_location


def assign_delivery_partner(uow, *, order_id: str, partner, actor) -> Order:
    _require_uow(uow)
    if not _is_admin(actor):
        raise Unauthorized("Admin role required.")
    if not _is_delivery(partner):
        raise OrderError("User is not a delivery partner.")
    order = _lock_order(order_id)
    if order.status in TERMINAL:
        raise InvalidTransition("Cannot assign a partner to a closed order.")

    order.delivery_partner = partner
    order.save(update_fields=["delivery_partner", "updated_at"])
    logger.info("delivery_partner_assigned", extra={"order_id": order.order_id, "partner_id": partner.id})
    uow.emit(
        events.ORDER_NOTIFICATION,
        {
            "userId": order.user_id,
            "orderId": order.order_id,
            "message": f"A delivery partner has been assigned to your order {order.order_id}",
            "type": "partner_assigned",
        },
    )
    return order


def order_timeline(status: str) -> list[dict]:
    """Customer-facing progress steps for an order in ``status``."""
    steps = [s for _, s in TIMELINE_STEPS]
    if status == Order.STATUS_CANCELLED:
        timeline = [{"name": n, "status": s, "completed": s == Order.STATUS_PENDING} for n, s in TIMELINE_STEPS[:1]]
        timeline.append({"name": "Cancelled", "status": Order.STATUS_CANCELLED, "completed": True})
        return timeline
    reached = steps.index(Order.STATUS_DELIVERED) if status == Order.STATUS_RETURNED else steps.index(status)
    timeline = [{"name": n, "status": s, "completed": i <= reached} for i, (n, s) in enumerate(TIMELINE_STEPS)]
    if status == Order.STATUS_RETURNED:
        timeline.append({"name": "Returned", "status": Order.STATUS_RETURNED, "completed": True})
    return timeline


def with_idempotency(
    *,
    key: str,
    user,
    path: str,
    method: str,
    handler: Callable[[], Tuple[dict, int]],
    request_hash: Optional[str] = None,
) -> Tuple[dict, int]:
    """Run handler idempotently and persist its response for the given key and scope.

    - Scope is derived from the caller: for authenticated users, "user:<id>"; otherwise "anon".
    - If a record exists and the stored `request_hash` differs from the provided one, returns 409.
    - If a record exists but response is not yet stored, returns 409 to indicate in-progress.
    - Responses with a 5xx status are not stored, so the key can be retried.
    """

    scope = f"user:{getattr(user, 'id', None)}" if getattr(user, "id", None) else "anon"
    method = str(method).upper()
    path = str(path)

    try:
        with transaction.atomic():
            idem = IdempotencyKey.objects.create(
                key=key,
                user=user if getattr(user, "id", None) else None,
                scope=scope,
                path=path,
                method=method,
                request_hash=request_hash,
                expires_at=timezone.now() + timedelta(hours=settings.IDEMPOTENCY_TTL_HOURS),
            )
    except IntegrityError:
        idem = IdempotencyKey.objects.get(key=key, scope=scope, path=path, method=method)
        # Guard against key reuse with different fingerprints
        if idem.request_hash and request_hash and idem.request_hash != request_hash:
            return {"detail": "Idempotency key reused with different request payload"}, 409
        if idem.response_json is not None and idem.response_code is not None:
            return idem.response_json, int(idem.response_code)
        return {"detail": "Request in progress"}, 409

    try:
        body, code = handler()
    except Exception:
        IdempotencyKey.objects.filter(id=idem.id).delete()
        raise

    if code >= 500:
        IdempotencyKey.objects.filter(id=idem.id).delete()
        return body, code

    safe_body = json.loads(json.dumps(body, default=str))
    IdempotencyKey.objects.filter(id=idem.id).update(response_json=safe_body, response_code=code)
    return body, code


def compute_request_hash(data: Optional[dict]) -> Optional[str]:
    """Compute a canonical SHA256 hash of the request body.

    Uses sorted keys JSON representation to stabilize the hash across equivalent payloads.
    Returns None when data is falsy.
    """
    if not data:
        return None
    try:
        payload = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return None
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
