"""Wallet ledger operations.

All balance changes go through ``add_transaction``, which locks the wallet
row, appends the ledger entry and writes the new balance in one atomic block.
The ``(wallet, reference)`` uniqueness makes every reference an idempotency
key: recording the same reference twice returns the first transaction.
"""

import logging
import math
from decimal import Decimal

from common.exceptions import DomainError
from django.db import transaction
from orders.pricing import round_money

from .models import Wallet, WalletTransaction

logger = logging.getLogger("freshcart.wallet")


class InsufficientWalletBalance(DomainError):
    default_detail = "Insufficient wallet balance."


class WalletError(DomainError):
    pass


def get_or_create_wallet(user, *, for_update: bool = False) -> Wallet:
    """Return the user's wallet, creating an empty one on first use.

    With ``for_update`` the row is locked; the caller must be inside a
    transaction.
    """
    wallet, _ = Wallet.objects.get_or_create(user=user)
    if for_update:
        wallet = Wallet.objects.select_for_update().get(pk=wallet.pk)
    return wallet


def add_transaction(
    wallet: Wallet,
    *,
    type: str,
    amount,
    description: str,
    reference: str,
    order=None,
    metadata: dict | None = None,
) -> WalletTransaction:
    if not reference:
        raise WalletError("A transaction reference is required.")
    amount = round_money(amount)
    if amount <= 0:
        raise WalletError("Amount must be positive.")
    if type not in (WalletTransaction.TYPE_CREDIT, WalletTransaction.TYPE_DEBIT):
        raise WalletError("Unknown transaction type.")

    with transaction.atomic():
        locked = Wallet.objects.select_for_update().get(pk=wallet.pk)
        existing = WalletTransaction.objects.filter(wallet=locked, reference=reference).first()
        if existing is not None:
            logger.info("wallet_transaction_replayed", extra={"wallet": locked.pk, "reference": reference})
            wallet.balance = locked.balance
            return existing

        if type == WalletTransaction.TYPE_DEBIT:
            if amount > locked.balance:
                raise InsufficientWalletBalance()
            new_balance = locked.balance - amount
        else:
            new_balance = locked.balance + amount

        txn = WalletTransaction.objects.create(
            wallet=locked,
            type=type,
            amount=amount,
            balance_after=new_balance,
            description=description,
            reference=reference,
            order=order,
            metadata=metadata or {},
        )
        locked.balance = new_balance
        locked.save(update_fields=["balance", "updated_at"])

    wallet.balance = new_balance
    logger.info(
        "wallet_transaction",
        extra={
            "wallet": wallet.pk,
            "type": type,
            "amount": str(amount),
            "balance_after": str(new_balance),
            "reference": reference,
        },
    )
    return txn


def credit(wallet: Wallet, amount, *, description: str, reference: str, **kwargs) -> WalletTransaction:
    return add_transaction(
        wallet,
        type=WalletTransaction.TYPE_CREDIT,
        amount=amount,
        description=description,
        reference=reference,
        **kwargs,
    )


def debit(wallet: Wallet, amount, *, description: str, reference: str, **kwargs) -> WalletTransaction:
    return add_transaction(
        wallet,
        type=WalletTransaction.TYPE_DEBIT,
        amount=amount,
        description=description,
        reference=reference,
        **kwargs,
    )


def transaction_history(wallet: Wallet, *, page: int = 1, page_size: int = 10) -> dict:
    """Page through the ledger, newest first."""
    page = max(int(page), 1)
    qs = wallet.transactions.all().order_by("-created_at", "-id")
    total = qs.count()
    total_pages = math.ceil(total / page_size) if total else 0
    start = (page - 1) * page_size
    return {
        "transactions": list(qs[start : start + page_size]),
        "current_page": page,
        "total_pages": total_pages,
        "total": total,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }
