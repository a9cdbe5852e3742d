"""Tests for domain entities."""

import dataclasses
from datetime import date, datetime
from decimal import Decimal

import pytest

from pennywise.domain.entities import (
    Account,
    AccountType,
    GoalStatus,
    PaymentFrequency,
    SavingsGoal,
    UserPreferences,
)

CREATED = datetime(2024, 1, 1)


def _account(**overrides):
    fields = dict(
        id=1,
        user_id="local",
        name="Checking",
        account_type=AccountType.CHECKING,
        balance=Decimal("0.00"),
        credit_limit=None,
        is_active=True,
        created_at=CREATED,
    )
    fields.update(overrides)
    return Account(**fields)


def _goal(current, target="1000.00"):
    return SavingsGoal(
        id=1,
        user_id="local",
        account_id=1,
        name="Trip",
        description=None,
        target_amount=Decimal(target),
        current_amount=Decimal(current),
        target_date=date(2024, 12, 31),
        priority=5,
        status=GoalStatus.ACTIVE,
        created_at=CREATED,
    )


class TestAccount:
    """Tests for Account entity."""

    def test_account_immutability(self):
        account = _account()
        with pytest.raises(dataclasses.FrozenInstanceError):
            account.name = "New Name"

    def test_account_equality(self):
        assert _account() == _account()
        assert _account() != _account(balance=Decimal("1.00"))


class TestEnums:
    """Enums compare equal to their stored values."""

    def test_str_values(self):
        assert AccountType("credit_card") is AccountType.CREDIT_CARD
        assert PaymentFrequency.MONTHLY == "monthly"

    def test_unknown_value(self):
        with pytest.raises(ValueError):
            PaymentFrequency("daily")


class TestSavingsGoal:
    """Tests for the derived goal amounts."""

    def test_progress_and_remaining(self):
        goal = _goal("250.00")
        assert goal.progress_percentage == 25.0
        assert goal.remaining_amount == Decimal("750.00")

    def test_overfunded_goal(self):
        goal = _goal("1200.00")
        assert goal.progress_percentage == 120.0
        assert goal.remaining_amount == Decimal("0.00")

    def test_milestones_default_empty(self):
        assert _goal("0").milestones == ()


def test_user_preference_defaults():
    preferences = UserPreferences()
    assert preferences.currency == "USD"
    assert preferences.credit_card_threshold == 80
    assert not preferences.sms_enabled
