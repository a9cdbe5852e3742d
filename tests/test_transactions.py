"""Tests for TransactionService."""

from datetime import date
from decimal import Decimal

import pytest

from pennywise.domain.errors import NotFoundError, ValidationError


def _add(service, user_id, account_id, amount, day, description="Purchase", **kwargs):
    return service.create_transaction(
        user_id=user_id,
        account_id=account_id,
        amount=Decimal(amount),
        description=description,
        transaction_date=day,
        **kwargs,
    )


def test_create_transaction_normalizes_amount(transaction_service, sample_account, user_id):
    txn = _add(transaction_service, user_id, sample_account.id, "-12.5", date(2024, 1, 2), "  Lunch ")

    assert txn.amount == Decimal("-12.50")
    assert txn.description == "Lunch"
    assert txn.user_id == user_id
    assert txn.recurring_payment_id is None


def test_zero_amount_rejected(transaction_service, sample_account, user_id):
    with pytest.raises(ValidationError):
        _add(transaction_service, user_id, sample_account.id, "0", date(2024, 1, 2))


def test_foreign_account_rejected(transaction_service, sample_account, other_user_id):
    with pytest.raises(NotFoundError):
        _add(transaction_service, other_user_id, sample_account.id, "-1.00", date(2024, 1, 2))


def test_foreign_transaction_is_not_found(
    transaction_service, sample_account, user_id, other_user_id
):
    txn = _add(transaction_service, user_id, sample_account.id, "-1.00", date(2024, 1, 2))

    with pytest.raises(NotFoundError):
        transaction_service.get_transaction(txn.id, other_user_id)
    with pytest.raises(NotFoundError):
        transaction_service.delete_transaction(txn.id, other_user_id)


def test_list_transactions_newest_first_with_filters(
    transaction_service, sample_account, sample_categories, user_id
):
    groceries = sample_categories["Groceries"]
    _add(transaction_service, user_id, sample_account.id, "-10.00", date(2024, 1, 5), category_id=groceries)
    _add(transaction_service, user_id, sample_account.id, "-20.00", date(2024, 2, 5))
    _add(transaction_service, user_id, sample_account.id, "-30.00", date(2024, 3, 5), category_id=groceries)

    everything = transaction_service.list_transactions(user_id)
    assert [t.transaction_date for t in everything] == [
        date(2024, 3, 5),
        date(2024, 2, 5),
        date(2024, 1, 5),
    ]

    february_on = transaction_service.list_transactions(user_id, start_date=date(2024, 2, 1))
    assert len(february_on) == 2

    categorized = transaction_service.list_transactions(user_id, category_id=groceries)
    assert {t.amount for t in categorized} == {Decimal("-10.00"), Decimal("-30.00")}

    assert len(transaction_service.list_transactions(user_id, limit=1)) == 1


def test_list_rejects_inverted_range(transaction_service, user_id):
    with pytest.raises(ValidationError):
        transaction_service.list_transactions(
            user_id, start_date=date(2024, 2, 1), end_date=date(2024, 1, 1)
        )


def test_list_is_scoped_to_user(transaction_service, sample_account, user_id, other_user_id):
    _add(transaction_service, user_id, sample_account.id, "-10.00", date(2024, 1, 5))

    assert transaction_service.list_transactions(other_user_id) == []


def test_update_and_clear_category(transaction_service, sample_account, sample_categories, user_id):
    txn = _add(transaction_service, user_id, sample_account.id, "-10.00", date(2024, 1, 5))

    updated = transaction_service.update_transaction(
        txn.id, user_id, category_id=sample_categories["Restaurants"], description="Dinner"
    )
    assert updated.category_id == sample_categories["Restaurants"]
    assert updated.description == "Dinner"

    cleared = transaction_service.update_transaction(txn.id, user_id, clear_category=True)
    assert cleared.category_id is None


def test_update_rejects_category_and_clear(
    transaction_service, sample_account, sample_categories, user_id
):
    txn = _add(transaction_service, user_id, sample_account.id, "-10.00", date(2024, 1, 5))

    with pytest.raises(ValidationError):
        transaction_service.update_transaction(
            txn.id, user_id, category_id=sample_categories["Rent"], clear_category=True
        )


def test_transaction_linked_to_recurring_payment(
    transaction_service, recurring_service, sample_account, user_id
):
    payment = recurring_service.create_recurring_payment(
        user_id=user_id,
        account_id=sample_account.id,
        name="Gym",
        amount=Decimal("40.00"),
        frequency="monthly",
        next_due_date=date(2024, 2, 1),
    )

    txn = _add(
        transaction_service,
        user_id,
        sample_account.id,
        "-40.00",
        date(2024, 1, 1),
        recurring_payment_id=payment.id,
    )

    assert txn.recurring_payment_id == payment.id
