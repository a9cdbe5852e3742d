"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so schema changes stay out of
the domain services.
"""

from decimal import Decimal
from typing import Optional

from pennywise.domain import entities as domain
from pennywise.database.models import (
    User as ORMUser,
    Account as ORMAccount,
    Category as ORMCategory,
    Transaction as ORMTransaction,
    RecurringPayment as ORMRecurringPayment,
    SavingsGoal as ORMSavingsGoal,
    GoalMilestone as ORMGoalMilestone,
    Alert as ORMAlert,
    AlertSetting as ORMAlertSetting,
    NotificationPreference as ORMNotificationPreference,
)

CENT = Decimal("0.01")


def _money(value) -> Decimal:
    # SQLite hands back floats for Numeric columns on some drivers.
    return Decimal(str(value if value is not None else 0)).quantize(CENT)


def _optional_money(value) -> Optional[Decimal]:
    return None if value is None else _money(value)


def preferences_to_domain(raw: Optional[dict]) -> domain.UserPreferences:
    """Convert the stored preferences JSON to a UserPreferences value."""
    raw = raw or {}
    defaults = domain.UserPreferences()
    return domain.UserPreferences(
        currency=raw.get("currency", defaults.currency),
        credit_card_threshold=int(
            raw.get("credit_card_threshold", defaults.credit_card_threshold)
        ),
        low_balance_threshold=_money(
            raw.get("low_balance_threshold", defaults.low_balance_threshold)
        ),
        email_enabled=bool(raw.get("email_enabled", defaults.email_enabled)),
        push_enabled=bool(raw.get("push_enabled", defaults.push_enabled)),
        sms_enabled=bool(raw.get("sms_enabled", defaults.sms_enabled)),
        timezone=raw.get("timezone", defaults.timezone),
    )


def preferences_to_orm(preferences: domain.UserPreferences) -> dict:
    """Convert UserPreferences to a JSON-serializable dict."""
    return {
        "currency": preferences.currency,
        "credit_card_threshold": preferences.credit_card_threshold,
        "low_balance_threshold": str(preferences.low_balance_threshold),
        "email_enabled": preferences.email_enabled,
        "push_enabled": preferences.push_enabled,
        "sms_enabled": preferences.sms_enabled,
        "timezone": preferences.timezone,
    }


def user_to_domain(orm_user: ORMUser) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    return domain.User(
        id=orm_user.id,
        email=orm_user.email,
        first_name=orm_user.first_name,
        last_name=orm_user.last_name,
        created_at=orm_user.created_at,
        preferences=preferences_to_domain(orm_user.preferences),
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        user_id=orm_account.user_id,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        balance=_money(orm_account.balance),
        credit_limit=_optional_money(orm_account.credit_limit),
        is_active=orm_account.is_active,
        created_at=orm_account.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        user_id=orm_category.user_id,
        name=orm_category.name,
        category_type=domain.CategoryType(orm_category.category_type),
        parent_id=orm_category.parent_id,
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        user_id=orm_transaction.user_id,
        account_id=orm_transaction.account_id,
        category_id=orm_transaction.category_id,
        amount=_money(orm_transaction.amount),
        description=orm_transaction.description,
        transaction_date=orm_transaction.transaction_date,
        recurring_payment_id=orm_transaction.recurring_payment_id,
        created_at=orm_transaction.created_at,
    )


def recurring_payment_to_domain(orm_payment: ORMRecurringPayment) -> domain.RecurringPayment:
    """Convert SQLAlchemy RecurringPayment model to domain entity."""
    return domain.RecurringPayment(
        id=orm_payment.id,
        user_id=orm_payment.user_id,
        account_id=orm_payment.account_id,
        category_id=orm_payment.category_id,
        name=orm_payment.name,
        merchant_pattern=orm_payment.merchant_pattern,
        amount=_money(orm_payment.amount),
        frequency=domain.PaymentFrequency(orm_payment.frequency),
        next_due_date=orm_payment.next_due_date,
        confidence=orm_payment.confidence,
        status=domain.PaymentStatus(orm_payment.status),
        is_active=orm_payment.is_active,
        last_processed=orm_payment.last_processed,
        created_at=orm_payment.created_at,
        updated_at=orm_payment.updated_at,
    )


def milestone_to_domain(orm_milestone: ORMGoalMilestone) -> domain.GoalMilestone:
    """Convert SQLAlchemy GoalMilestone model to domain entity."""
    return domain.GoalMilestone(
        id=orm_milestone.id,
        goal_id=orm_milestone.goal_id,
        percentage=orm_milestone.percentage,
        target_amount=_money(orm_milestone.target_amount),
        is_achieved=orm_milestone.is_achieved,
        achieved_amount=_optional_money(orm_milestone.achieved_amount),
        achieved_at=orm_milestone.achieved_at,
    )


def savings_goal_to_domain(orm_goal: ORMSavingsGoal) -> domain.SavingsGoal:
    """Convert SQLAlchemy SavingsGoal model to domain entity."""
    return domain.SavingsGoal(
        id=orm_goal.id,
        user_id=orm_goal.user_id,
        account_id=orm_goal.account_id,
        name=orm_goal.name,
        description=orm_goal.description,
        target_amount=_money(orm_goal.target_amount),
        current_amount=_money(orm_goal.current_amount),
        target_date=orm_goal.target_date,
        priority=orm_goal.priority,
        status=domain.GoalStatus(orm_goal.status),
        created_at=orm_goal.created_at,
        milestones=tuple(milestone_to_domain(m) for m in orm_goal.milestones),
    )


def alert_to_domain(orm_alert: ORMAlert) -> domain.Alert:
    """Convert SQLAlchemy Alert model to domain Alert entity."""
    return domain.Alert(
        id=orm_alert.id,
        user_id=orm_alert.user_id,
        account_id=orm_alert.account_id,
        alert_type=domain.AlertType(orm_alert.alert_type),
        message=orm_alert.message,
        current_value=_money(orm_alert.current_value),
        threshold_value=_money(orm_alert.threshold_value),
        priority=domain.Priority(orm_alert.priority),
        status=domain.AlertStatus(orm_alert.status),
        triggered_at=orm_alert.triggered_at,
        acknowledged_at=orm_alert.acknowledged_at,
        snooze_until=orm_alert.snooze_until,
    )


def alert_setting_to_domain(orm_setting: ORMAlertSetting) -> domain.AlertSetting:
    """Convert SQLAlchemy AlertSetting model to domain entity."""
    return domain.AlertSetting(
        id=orm_setting.id,
        user_id=orm_setting.user_id,
        account_id=orm_setting.account_id,
        alert_type=domain.AlertType(orm_setting.alert_type),
        threshold_percentage=_optional_money(orm_setting.threshold_percentage),
        threshold_amount=_optional_money(orm_setting.threshold_amount),
        is_enabled=orm_setting.is_enabled,
    )


def notification_preference_to_domain(
    orm_preference: ORMNotificationPreference,
) -> domain.NotificationPreference:
    """Convert SQLAlchemy NotificationPreference model to domain entity."""
    return domain.NotificationPreference(
        id=orm_preference.id,
        user_id=orm_preference.user_id,
        alert_type=orm_preference.alert_type,
        email_enabled=orm_preference.email_enabled,
        push_enabled=orm_preference.push_enabled,
        in_app_enabled=orm_preference.in_app_enabled,
        sms_enabled=orm_preference.sms_enabled,
        quiet_hours_start=orm_preference.quiet_hours_start,
        quiet_hours_end=orm_preference.quiet_hours_end,
        emergency_override=orm_preference.emergency_override,
    )
