import json

from payments import signatures


def webhook_body(event: str, **payload) -> bytes:
    return json.dumps({"event": event, "payload": payload}).encode("utf-8")


def captured(provider_order_id: str, payment_id: str) -> bytes:
    return webhook_body("payment.captured", payment={"entity": {"id": payment_id, "order_id": provider_order_id}})


def failed(provider_order_id: str, payment_id: str, error: str = "Card declined") -> bytes:
    return webhook_body(
        "payment.failed",
        payment={"entity": {"id": payment_id, "order_id": provider_order_id, "error_description": error}},
    )


def refunded(payment_id: str, refund_id: str, amount_minor: int) -> bytes:
    return webhook_body(
        "refund.processed", refund={"entity": {"id": refund_id, "payment_id": payment_id, "amount": amount_minor}}
    )


def signed(body: bytes) -> str:
    return signatures.webhook_signature(body)
