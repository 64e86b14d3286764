"""Payment reconciliation.

Two paths confirm an online payment: the client's verify call and the
provider's ``payment.captured`` webhook. They race, so completing a payment
is idempotent: the order row is locked and an already completed payment is
left untouched. Signatures are checked before any order is read.
"""

import json
import logging
from decimal import Decimal

from common import events
from common.choices import PaymentMethod
from common.exceptions import DomainError, NotFound
from django.conf import settings
from django.db import DatabaseError, transaction
from orders.models import Order
from orders.pricing import ZERO, from_minor_units, round_money
from orders.services import Unauthorized
from wallet import services as wallet_services
from wallet.models import WalletTransaction

from . import gateway, signatures

logger = logging.getLogger("freshcart.payments")

CLOSED_STATUSES = (Order.STATUS_CANCELLED, Order.STATUS_RETURNED)


class InvalidSignature(DomainError):
    default_detail = "Invalid payment signature."


class PaymentError(DomainError):
    default_detail = "Unable to process payment."


METHODS = [
    {"id": PaymentMethod.CARD, "name": "Credit/Debit Card", "description": "Pay using your credit or debit card"},
    {"id": PaymentMethod.UPI, "name": "UPI", "description": "Pay using UPI apps like Google Pay, PhonePe"},
    {"id": PaymentMethod.WALLET, "name": "Wallet", "description": "Pay using your wallet balance"},
    {"id": PaymentMethod.NETBANKING, "name": "Net Banking", "description": "Pay using net banking"},
    {"id": PaymentMethod.COD, "name": "Cash on Delivery", "description": "Pay when you receive your order"},
]


def payment_methods(order_total=None) -> list[dict]:
    """Available payment methods; cash on delivery is capped by order value."""
    cod_max = Decimal(str(settings.COD_MAX_ORDER_VALUE))
    methods = []
    for method in METHODS:
        entry = {**method, "id": str(method["id"]), "available": True}
        if method["id"] == PaymentMethod.COD:
            entry.update(min_order=ZERO, max_order=round_money(cod_max))
            if order_total is not None and Decimal(order_total) > cod_max:
                entry["available"] = False
        methods.append(entry)
    return methods


def _require_uow(uow) -> None:
    if uow is None or not uow.active:
        raise RuntimeError("payment operations require an open unit of work")


def _lock_owned_order(order_id: str, user) -> Order:
    try:
        order = Order.objects.select_for_update().get(order_id=order_id)
    except Order.DoesNotExist:
        raise NotFound("Order not found.")
    if order.user_id != user.id:
        raise Unauthorized("Not authorized to pay for this order.")
    return order


def _complete_payment(uow, order: Order, *, provider_payment_id: str, signature: str = "") -> Order:
    """Mark ``order`` paid. Replays for an already completed payment change nothing."""
    if order.payment_status == Order.PAYMENT_COMPLETED:
        logger.info(
            "payment_already_completed",
            extra={"order_id": order.order_id, "provider_payment_id": provider_payment_id},
        )
        return order

    order.provider_payment_id = provider_payment_id
    if signature:
        order.provider_signature = signature
    order.payment_status = Order.PAYMENT_COMPLETED
    fields = ["provider_payment_id", "provider_signature", "payment_status", "updated_at"]
    if order.status == Order.STATUS_PENDING:
        order.status = Order.STATUS_CONFIRMED
        fields.append("status")
    elif order.status in CLOSED_STATUSES:
        logger.warning("payment_captured_for_closed_order", extra={"order_id": order.order_id, "status": order.status})
    order.save(update_fields=fields)

    logger.info(
        "payment_completed",
        extra={"order_id": order.order_id, "provider_payment_id": provider_payment_id, "status_to": order.status},
    )
    uow.emit(events.PAYMENT_SUCCESS, {"orderId": order.order_id, "paymentId": provider_payment_id}, room=order.room)
    return order


def create_payment_order(uow, *, order_id: str, user) -> dict:
    """Open a provider order for the outstanding amount of one of the user's orders."""
    _require_uow(uow)
    order = _lock_owned_order(order_id, user)
    if order.status in CLOSED_STATUSES:
        raise PaymentError("Order is closed.")
    if order.payment_method in (PaymentMethod.COD, PaymentMethod.WALLET):
        raise PaymentError("Order is not paid online.")
    amount = order.outstanding_amount
    if amount <= 0:
        raise PaymentError("Nothing to pay for this order.")

    provider_order = gateway.create_provider_order(amount=amount, receipt=f"order_{order.order_id}")
    order.provider_order_id = provider_order["id"]
    order.save(update_fields=["provider_order_id", "updated_at"])
    return {
        "order_id": order.order_id,
        "provider_order_id": provider_order["id"],
        "amount": provider_order.get("amount"),
        "currency": provider_order.get("currency", settings.CURRENCY),
        "key": settings.PAYMENT_KEY_ID,
    }


def verify_payment(uow, *, provider_order_id: str, provider_payment_id: str, signature: str, user) -> Order:
    """Client-side confirmation after checkout on the provider's widget."""
    _require_uow(uow)
    if not signatures.verify_checkout_signature(provider_order_id, provider_payment_id, signature):
        logger.warning("payment_signature_invalid", extra={"provider_order_id": provider_order_id})
        raise InvalidSignature()

    try:
        order = Order.objects.select_for_update().get(provider_order_id=provider_order_id)
    except Order.DoesNotExist:
        raise NotFound("Order not found.")
    if order.user_id != user.id:
        raise Unauthorized("Not authorized to pay for this order.")
    return _complete_payment(uow, order, provider_payment_id=provider_payment_id, signature=signature)


def pay_with_wallet(uow, *, order_id: str, user) -> Order:
    """Settle an order's outstanding amount from the wallet.

    Unlike checkout, an insufficient balance is a hard failure.
    """
    _require_uow(uow)
    order = _lock_owned_order(order_id, user)
    if order.status in CLOSED_STATUSES:
        raise PaymentError("Order is closed.")
    if order.payment_status == Order.PAYMENT_COMPLETED:
        return order

    amount = order.outstanding_amount
    reference = f"PAYMENT_{order.order_id}"
    if amount > 0:
        wallet = wallet_services.get_or_create_wallet(user, for_update=True)
        wallet_services.debit(
            wallet,
            amount,
            description="Order payment",
            reference=reference,
            order=order,
            metadata={"order_type": "purchase"},
        )
    order.wallet_used = order.wallet_used + amount
    order.grand_total = order.grand_total - amount
    order.payment_method = PaymentMethod.WALLET
    order.save(update_fields=["wallet_used", "grand_total", "payment_method", "updated_at"])
    return _complete_payment(uow, order, provider_payment_id=reference)


def _order_by(**lookup) -> Order | None:
    return Order.objects.select_for_update().filter(**lookup).first()


def _on_captured(uow, entity: dict) -> str:
    order = _order_by(provider_order_id=entity["order_id"])
    if order is None:
        logger.warning("webhook_order_missing", extra={"provider_order_id": entity.get("order_id")})
        return "ignored"
    _complete_payment(uow, order, provider_payment_id=entity["id"])
    return "payment.captured"


def _on_failed(uow, entity: dict) -> str:
    order = _order_by(provider_order_id=entity["order_id"])
    if order is None:
        logger.warning("webhook_order_missing", extra={"provider_order_id": entity.get("order_id")})
        return "ignored"
    if order.payment_status in (Order.PAYMENT_COMPLETED, Order.PAYMENT_REFUNDED):
        logger.info(
            "payment_failure_ignored",
            extra={"order_id": order.order_id, "payment_status": order.payment_status},
        )
        return "ignored"
    order.payment_status = Order.PAYMENT_FAILED
    order.save(update_fields=["payment_status", "updated_at"])
    error = entity.get("error_description") or "Payment failed"
    logger.info("payment_failed", extra={"order_id": order.order_id, "error": error})
    uow.emit(events.PAYMENT_FAILED, {"orderId": order.order_id, "error": error}, room=order.room)
    return "payment.failed"


def _on_refund(uow, entity: dict) -> str:
    order = _order_by(provider_payment_id=entity["payment_id"])
    if order is None:
        logger.warning("webhook_order_missing", extra={"provider_payment_id": entity.get("payment_id")})
        return "ignored"
    reference = f"REFUND_{entity['id']}"
    if WalletTransaction.objects.filter(wallet__user_id=order.user_id, reference=reference).exists():
        logger.info("refund_replayed", extra={"order_id": order.order_id, "refund_id": entity["id"]})
        return "ignored"

    amount = from_minor_units(entity["amount"])
    wallet = wallet_services.get_or_create_wallet(order.user, for_update=True)
    wallet_services.credit(
        wallet,
        amount,
        description="Payment refund",
        reference=reference,
        order=order,
        metadata={"refund_id": entity["id"], "refund_type": "payment"},
    )
    order.payment_status = Order.PAYMENT_REFUNDED
    order.refund_amount = order.refund_amount + amount
    order.save(update_fields=["payment_status", "refund_amount", "updated_at"])
    logger.info(
        "payment_refunded",
        extra={"order_id": order.order_id, "refund_id": entity["id"], "amount": str(amount)},
    )
    uow.emit(
        events.PAYMENT_REFUNDED,
        {"orderId": order.order_id, "refundId": entity["id"], "amount": str(amount)},
        room=order.room,
    )
    return "refund.processed"


HANDLERS = {
    "payment.captured": ("payment", _on_captured),
    "payment.failed": ("payment", _on_failed),
    "refund.processed": ("refund", _on_refund),
}


def handle_webhook(uow, *, raw_body: bytes, signature: str) -> str:
    """Verify and dispatch a provider webhook. Returns the outcome name.

    Raises InvalidSignature before reading anything. After that, handler
    failures are logged and reported as ``"error"`` so the provider is not
    asked to retry a poisoned event.
    """
    _require_uow(uow)
    if not signatures.verify_webhook_signature(raw_body, signature):
        logger.warning("webhook_signature_invalid")
        raise InvalidSignature("Invalid webhook signature.")

    try:
        envelope = json.loads(raw_body)
        event = envelope.get("event")
    except (ValueError, AttributeError):
        logger.error("webhook_malformed")
        return "error"

    if event not in HANDLERS:
        logger.info("webhook_ignored", extra={"webhook_event": event})
        return "ignored"

    kind, handler = HANDLERS[event]
    try:
        with transaction.atomic():
            entity = envelope["payload"][kind]["entity"]
            return handler(uow, entity)
    except (KeyError, TypeError, ValueError, DomainError, DatabaseError):
        logger.exception("webhook_handler_failed", extra={"webhook_event": event})
        return "error"
