"""HMAC-SHA256 signatures exchanged with the payment provider.

Checkout verification signs a canonical compact JSON of the provider's order
and payment ids with the key secret. Webhooks sign the raw request body with
the webhook secret. Comparisons are constant-time.
"""

import hashlib
import hmac
import json

from django.conf import settings


def sign(message: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def checkout_message(provider_order_id: str, provider_payment_id: str) -> bytes:
    return json.dumps(
        {"order_id": provider_order_id, "payment_id": provider_payment_id}, separators=(",", ":")
    ).encode("utf-8")


def checkout_signature(provider_order_id: str, provider_payment_id: str, secret: str | None = None) -> str:
    return sign(checkout_message(provider_order_id, provider_payment_id), secret or settings.PAYMENT_KEY_SECRET)


def verify_checkout_signature(provider_order_id: str, provider_payment_id: str, signature: str) -> bool:
    if not (settings.PAYMENT_KEY_SECRET and signature):
        return False
    expected = checkout_signature(provider_order_id, provider_payment_id)
    return hmac.compare_digest(expected, str(signature))


def webhook_signature(raw_body: bytes, secret: str | None = None) -> str:
    return sign(raw_body, secret or settings.PAYMENT_WEBHOOK_SECRET)


def verify_webhook_signature(raw_body: bytes, signature: str) -> bool:
    if not (settings.PAYMENT_WEBHOOK_SECRET and signature):
        return False
    return hmac.compare_digest(webhook_signature(raw_body), str(signature))
