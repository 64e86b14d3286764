"""Wallet models: one balance row per user plus an append-only ledger.

``Wallet.balance`` always equals the running sum of its transactions and is
only written by ``wallet.services.add_transaction``.
"""

from decimal import Decimal

from common.choices import WalletTransactionType
from django.conf import settings
from django.db import models


class Wallet(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="wallet")
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(name="wallet_balance_non_negative", condition=models.Q(balance__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Wallet({self.user_id}): {self.balance}"


class WalletTransaction(models.Model):
    TYPE_CREDIT = WalletTransactionType.CREDIT
    TYPE_DEBIT = WalletTransactionType.DEBIT
    TYPE_CHOICES = WalletTransactionType.choices

    wallet = models.ForeignKey(Wallet, on_delete=models.CASCADE, related_name="transactions")
    type = models.CharField(max_length=8, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=255)
    reference = models.CharField(max_length=64)
    order = models.ForeignKey(
        "orders.Order", null=True, blank=True, on_delete=models.PROTECT, related_name="wallet_transactions"
    )
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(fields=["wallet", "reference"], name="uniq_wallet_reference"),
            models.CheckConstraint(name="wallet_txn_amount_positive", condition=models.Q(amount__gt=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.type} {self.amount} ({self.reference})"
