from decimal import Decimal

import pytest
from django.db.models import Sum
from users.tests.factories import UserFactory
from wallet.models import Wallet, WalletTransaction
from wallet.services import (
    InsufficientWalletBalance,
    WalletError,
    credit,
    debit,
    get_or_create_wallet,
    transaction_history,
)
from wallet.tests.factories import WalletFactory


def _ledger_balance(wallet):
    credits = wallet.transactions.filter(type="credit").aggregate(s=Sum("amount"))["s"] or Decimal("0")
    debits = wallet.transactions.filter(type="debit").aggregate(s=Sum("amount"))["s"] or Decimal("0")
    return credits - debits


@pytest.mark.django_db
def test_wallet_is_created_lazily_with_zero_balance():
    user = UserFactory()
    assert not Wallet.objects.filter(user=user).exists()
    wallet = get_or_create_wallet(user)
    assert wallet.balance == Decimal("0.00")
    assert get_or_create_wallet(user).pk == wallet.pk


@pytest.mark.django_db
def test_credit_and_debit_keep_balance_equal_to_ledger():
    wallet = WalletFactory(funded=Decimal("500.00"))
    debit(wallet, Decimal("120.50"), description="Order", reference="ORDER_A")
    credit(wallet, Decimal("20.50"), description="Refund", reference="REFUND_A")
    wallet.refresh_from_db()
    assert wallet.balance == Decimal("400.00")
    assert wallet.balance == _ledger_balance(wallet)
    latest = wallet.transactions.first()
    assert latest.reference == "REFUND_A"
    assert latest.balance_after == Decimal("400.00")


@pytest.mark.django_db
def test_debit_above_balance_is_rejected_without_writes():
    wallet = WalletFactory(funded=Decimal("50.00"))
    with pytest.raises(InsufficientWalletBalance):
        debit(wallet, Decimal("50.01"), description="Too much", reference="ORDER_B")
    wallet.refresh_from_db()
    assert wallet.balance == Decimal("50.00")
    assert not WalletTransaction.objects.filter(reference="ORDER_B").exists()


@pytest.mark.django_db
def test_same_reference_is_recorded_once():
    wallet = WalletFactory()
    first = credit(wallet, Decimal("75.00"), description="Refund", reference="REFUND_rfnd_1")
    again = credit(wallet, Decimal("75.00"), description="Refund", reference="REFUND_rfnd_1")
    wallet.refresh_from_db()
    assert first.pk == again.pk
    assert wallet.balance == Decimal("75.00")
    assert wallet.transactions.count() == 1


@pytest.mark.django_db
def test_non_positive_amount_and_missing_reference_are_rejected():
    wallet = WalletFactory()
    with pytest.raises(WalletError):
        credit(wallet, Decimal("0"), description="Nothing", reference="ZERO")
    with pytest.raises(WalletError):
        credit(wallet, Decimal("10"), description="No ref", reference="")


@pytest.mark.django_db
def test_transaction_history_pages_newest_first():
    wallet = WalletFactory()
    for i in range(12):
        credit(wallet, Decimal("1.00"), description=f"Top-up {i}", reference=f"T{i}")
    page1 = transaction_history(wallet, page=1, page_size=5)
    assert page1["total"] == 12
    assert page1["total_pages"] == 3
    assert page1["has_next"] and not page1["has_prev"]
    assert page1["transactions"][0].reference == "T11"
    page3 = transaction_history(wallet, page=3, page_size=5)
    assert [t.reference for t in page3["transactions"]] == ["T1", "T0"]
    assert page3["has_prev"] and not page3["has_next"]
