"""Client for the payment provider's order API.

Only this module and the refund webhook handler convert between major
currency units and the provider's integer minor units.
"""

import logging

import requests
from common.exceptions import DomainError
from django.conf import settings
from orders.pricing import to_minor_units
from rest_framework import status

logger = logging.getLogger("freshcart.payments")


class PaymentGatewayError(DomainError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment provider is unavailable."


def create_provider_order(*, amount, receipt: str, currency: str | None = None) -> dict:
    """Create a provider order for ``amount`` (major units) and return the provider's JSON."""
    payload = {
        "amount": to_minor_units(amount),
        "currency": currency or settings.CURRENCY,
        "receipt": receipt,
        "payment_capture": 1,
    }
    url = f"{settings.PAYMENT_PROVIDER_BASE_URL.rstrip('/')}/orders"
    try:
        resp = requests.post(
            url,
            json=payload,
            auth=(settings.PAYMENT_KEY_ID, settings.PAYMENT_KEY_SECRET),
            timeout=settings.PAYMENT_TIMEOUT_SECONDS,
        )
        resp.raise_for_status()
        body = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("provider_order_failed", extra={"receipt": receipt, "error": str(exc)})
        raise PaymentGatewayError(f"Payment provider order creation failed: {exc}")
    if not body.get("id"):
        logger.error("provider_order_failed", extra={"receipt": receipt, "error": "missing id"})
        raise PaymentGatewayError("Payment provider returned no order id.")
    logger.info("provider_order_created", extra={"receipt": receipt, "provider_order_id": body["id"]})
    return body
