from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """App configuration for payment reconciliation."""

    name = "payments"
    verbose_name = "Payments"
