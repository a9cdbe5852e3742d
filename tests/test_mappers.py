"""Tests for database mappers."""

from datetime import date, datetime
from decimal import Decimal

from pennywise.database.mappers import (
    account_to_domain,
    alert_to_domain,
    preferences_to_domain,
    preferences_to_orm,
    recurring_payment_to_domain,
    savings_goal_to_domain,
    transaction_to_domain,
)
from pennywise.database.models import (
    Account as ORMAccount,
    Alert as ORMAlert,
    GoalMilestone as ORMGoalMilestone,
    RecurringPayment as ORMRecurringPayment,
    SavingsGoal as ORMSavingsGoal,
    Transaction as ORMTransaction,
)
from pennywise.domain.entities import (
    Account,
    AccountType,
    AlertStatus,
    GoalStatus,
    PaymentFrequency,
    PaymentStatus,
    Priority,
    UserPreferences,
)

CREATED = datetime(2024, 1, 1, 12, 0)


class TestAccountMapper:
    """Tests for Account mapper."""

    def test_account_to_domain(self):
        orm_account = ORMAccount(
            id=1,
            user_id="local",
            name="Visa",
            account_type="credit_card",
            balance=-950.5,
            credit_limit=Decimal("1000"),
            is_active=True,
            created_at=CREATED,
        )
        account = account_to_domain(orm_account)

        assert isinstance(account, Account)
        assert account.account_type == AccountType.CREDIT_CARD
        # Float balances from the driver come back as exact cents.
        assert account.balance == Decimal("-950.50")
        assert account.credit_limit == Decimal("1000.00")

    def test_account_without_limit(self):
        orm_account = ORMAccount(
            id=2,
            user_id="local",
            name="Checking",
            account_type="checking",
            balance=None,
            credit_limit=None,
            is_active=False,
            created_at=CREATED,
        )
        account = account_to_domain(orm_account)

        assert account.balance == Decimal("0.00")
        assert account.credit_limit is None
        assert not account.is_active


class TestTransactionMapper:
    """Tests for Transaction mapper."""

    def test_transaction_to_domain(self):
        orm_transaction = ORMTransaction(
            id=7,
            user_id="local",
            account_id=1,
            category_id=None,
            amount=Decimal("-15.99"),
            description="NETFLIX.COM",
            transaction_date=date(2024, 1, 15),
            recurring_payment_id=3,
            created_at=CREATED,
        )
        txn = transaction_to_domain(orm_transaction)

        assert txn.amount == Decimal("-15.99")
        assert txn.recurring_payment_id == 3
        assert txn.transaction_date == date(2024, 1, 15)


class TestRecurringPaymentMapper:
    """Tests for RecurringPayment mapper."""

    def test_enums_are_restored(self):
        orm_payment = ORMRecurringPayment(
            id=1,
            user_id="local",
            account_id=1,
            category_id=None,
            name="Gym",
            merchant_pattern="gym",
            amount=Decimal("40"),
            frequency="monthly",
            next_due_date=date(2024, 2, 1),
            confidence=0.9,
            status="overdue",
            is_active=True,
            last_processed=None,
            created_at=CREATED,
            updated_at=CREATED,
        )
        payment = recurring_payment_to_domain(orm_payment)

        assert payment.frequency == PaymentFrequency.MONTHLY
        assert payment.status == PaymentStatus.OVERDUE
        assert payment.amount == Decimal("40.00")


class TestSavingsGoalMapper:
    """Tests for SavingsGoal mapper."""

    def test_goal_with_milestones(self):
        orm_goal = ORMSavingsGoal(
            id=1,
            user_id="local",
            account_id=1,
            name="Trip",
            description=None,
            target_amount=Decimal("400"),
            current_amount=Decimal("100"),
            target_date=date(2024, 12, 31),
            priority=5,
            status="active",
            created_at=CREATED,
        )
        orm_goal.milestones = [
            ORMGoalMilestone(
                id=10 + pct,
                goal_id=1,
                percentage=pct,
                target_amount=Decimal(4 * pct),
                is_achieved=pct == 25,
                achieved_amount=Decimal("100") if pct == 25 else None,
                achieved_at=CREATED if pct == 25 else None,
            )
            for pct in (25, 50, 75, 100)
        ]

        goal = savings_goal_to_domain(orm_goal)

        assert goal.status == GoalStatus.ACTIVE
        assert [m.percentage for m in goal.milestones] == [25, 50, 75, 100]
        assert goal.milestones[0].achieved_amount == Decimal("100.00")
        assert goal.milestones[1].achieved_amount is None
        assert goal.progress_percentage == 25.0


class TestAlertMapper:
    """Tests for Alert mapper."""

    def test_alert_to_domain(self):
        orm_alert = ORMAlert(
            id=1,
            user_id="local",
            account_id=1,
            alert_type="credit_utilization",
            message="High usage",
            current_value=Decimal("95"),
            threshold_value=Decimal("90"),
            priority="critical",
            status="snoozed",
            triggered_at=CREATED,
            acknowledged_at=None,
            snooze_until=CREATED,
        )
        alert = alert_to_domain(orm_alert)

        assert alert.priority == Priority.CRITICAL
        assert alert.status == AlertStatus.SNOOZED
        assert alert.snooze_until == CREATED


class TestPreferencesMapper:
    """Tests for the preferences JSON mapping."""

    def test_missing_keys_use_defaults(self):
        assert preferences_to_domain(None) == UserPreferences()
        assert preferences_to_domain({"currency": "EUR"}).currency == "EUR"

    def test_round_trip_is_json_friendly(self):
        preferences = UserPreferences(currency="GBP", low_balance_threshold=Decimal("50.00"))
        raw = preferences_to_orm(preferences)

        assert raw["low_balance_threshold"] == "50.00"
        assert preferences_to_domain(raw) == preferences
