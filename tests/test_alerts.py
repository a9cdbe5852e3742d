"""Tests for credit utilization alerts."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from pennywise.domain.alerts import (
    AlertService,
    calculate_credit_utilization,
    priority_for_utilization,
)
from pennywise.domain.entities import AlertStatus, Priority
from pennywise.domain.errors import NotFoundError, ValidationError
from pennywise.utils.date_parser import utcnow


def _charge(transaction_service, user_id, account_id, amount):
    return transaction_service.create_transaction(
        user_id=user_id,
        account_id=account_id,
        amount=Decimal(amount),
        description="Card purchase",
        transaction_date=date(2024, 5, 1),
    )


@pytest.fixture
def maxed_card(transaction_service, account_service, credit_card, user_id):
    """The credit card at 95% utilization."""
    _charge(transaction_service, user_id, credit_card.id, "-950.00")
    return account_service.get_account(credit_card.id, user_id)


def test_priority_for_utilization():
    assert priority_for_utilization(Decimal("95")) == Priority.CRITICAL
    assert priority_for_utilization(Decimal("70")) == Priority.HIGH
    assert priority_for_utilization(Decimal("50")) == Priority.MEDIUM
    assert priority_for_utilization(Decimal("10")) == Priority.LOW


def test_utilization_uses_absolute_balance(maxed_card):
    utilization = calculate_credit_utilization(maxed_card)

    assert utilization.utilization_amount == Decimal("950.00")
    assert utilization.utilization_percentage == Decimal("95.00")


def test_utilization_only_for_credit_cards(sample_account):
    assert calculate_credit_utilization(sample_account) is None


def test_transaction_raises_most_severe_alert(alert_service, maxed_card, user_id):
    alerts = alert_service.list_alerts(user_id)

    assert len(alerts) == 1
    assert alerts[0].priority == Priority.CRITICAL
    assert alerts[0].threshold_value == Decimal("90")
    assert alerts[0].current_value == Decimal("95.00")
    assert alerts[0].status == AlertStatus.TRIGGERED
    assert "95.0%" in alerts[0].message


def test_repeat_alert_within_interval_is_suppressed(
    alert_service, transaction_service, maxed_card, user_id
):
    _charge(transaction_service, user_id, maxed_card.id, "-10.00")

    assert alert_service.process_user_alerts(user_id) == []
    assert len(alert_service.list_alerts(user_id)) == 1


def test_daily_cap(temp_db, maxed_card, user_id):
    service = AlertService(temp_db, min_interval_minutes=0, max_alerts_per_day=2)
    later = utcnow() + timedelta(days=2)

    created = []
    for minutes in range(3):
        created.extend(
            service.process_account_alerts(user_id, maxed_card.id, now=later + timedelta(minutes=minutes))
        )

    assert len(created) == 2


def test_custom_threshold_replaces_defaults(
    alert_service, transaction_service, credit_card, user_id
):
    alert_service.upsert_settings(user_id, credit_card.id, threshold_percentage=Decimal("20"))

    _charge(transaction_service, user_id, credit_card.id, "-250.00")

    [alert] = alert_service.list_alerts(user_id)
    assert alert.threshold_value == Decimal("20")
    assert alert.priority == Priority.LOW


def test_amount_threshold(alert_service, transaction_service, credit_card, user_id):
    alert_service.upsert_settings(user_id, credit_card.id, threshold_amount=Decimal("100.00"))

    _charge(transaction_service, user_id, credit_card.id, "-150.00")

    [alert] = alert_service.list_alerts(user_id)
    assert alert.current_value == Decimal("150.00")
    assert alert.threshold_value == Decimal("100.00")


def test_disabled_setting_falls_back_to_defaults(
    alert_service, transaction_service, credit_card, user_id
):
    alert_service.upsert_settings(
        user_id, credit_card.id, threshold_percentage=Decimal("20"), is_enabled=False
    )

    _charge(transaction_service, user_id, credit_card.id, "-250.00")

    assert alert_service.list_alerts(user_id) == []


def test_upsert_replaces_setting(alert_service, credit_card, user_id):
    alert_service.upsert_settings(user_id, credit_card.id, threshold_percentage=Decimal("20"))
    alert_service.upsert_settings(user_id, credit_card.id, threshold_percentage=Decimal("60"))

    [setting] = alert_service.get_settings(user_id, credit_card.id)
    assert setting.threshold_percentage == Decimal("60")


def test_settings_validation(alert_service, credit_card, user_id, other_user_id):
    with pytest.raises(ValidationError):
        alert_service.upsert_settings(user_id, credit_card.id)
    with pytest.raises(ValidationError):
        alert_service.upsert_settings(user_id, credit_card.id, threshold_percentage=Decimal("150"))
    with pytest.raises(ValidationError):
        alert_service.upsert_settings(
            user_id, credit_card.id, alert_type="weather", threshold_percentage=Decimal("50")
        )
    with pytest.raises(NotFoundError):
        alert_service.upsert_settings(
            other_user_id, credit_card.id, threshold_percentage=Decimal("50")
        )


def test_alert_lifecycle(alert_service, maxed_card, user_id):
    [alert] = alert_service.list_alerts(user_id)
    now = utcnow()

    acknowledged = alert_service.acknowledge(alert.id, user_id, now=now)
    assert acknowledged.status == AlertStatus.ACKNOWLEDGED
    assert acknowledged.acknowledged_at == now

    snoozed = alert_service.snooze(alert.id, user_id, minutes=30, now=now)
    assert snoozed.status == AlertStatus.SNOOZED
    assert snoozed.snooze_until == now + timedelta(minutes=30)

    dismissed = alert_service.dismiss(alert.id, user_id)
    assert dismissed.status == AlertStatus.DISMISSED

    assert alert_service.list_alerts(user_id, status="dismissed")[0].id == alert.id
    assert alert_service.list_alerts(user_id, status="triggered") == []


def test_snooze_bounds(alert_service, maxed_card, user_id):
    [alert] = alert_service.list_alerts(user_id)
    with pytest.raises(ValidationError):
        alert_service.snooze(alert.id, user_id, minutes=0)
    with pytest.raises(ValidationError):
        alert_service.snooze(alert.id, user_id, minutes=7 * 24 * 60 + 1)


def test_foreign_alert_is_not_found(alert_service, maxed_card, user_id, other_user_id):
    [alert] = alert_service.list_alerts(user_id)
    with pytest.raises(NotFoundError):
        alert_service.acknowledge(alert.id, other_user_id)
    assert alert_service.list_alerts(other_user_id) == []


def test_utilization_summary(alert_service, maxed_card, sample_account, user_id):
    [row] = alert_service.utilization_summary(user_id)
    assert row.account_id == maxed_card.id
    assert row.utilization_percentage == Decimal("95.00")
