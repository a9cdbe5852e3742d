"""Credit utilization alerts."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from pennywise.database.base import Database
from pennywise.domain.entities import (
    Account,
    AccountType,
    Alert,
    AlertSetting,
    AlertStatus,
    AlertType,
    Priority,
)
from pennywise.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    alert_not_found,
)
from pennywise.utils.date_parser import utcnow

logger = logging.getLogger(__name__)

DEFAULT_CREDIT_THRESHOLDS = (30, 50, 70, 90)
MIN_ALERT_INTERVAL_MINUTES = 60
MAX_ALERTS_PER_DAY = 10
MAX_SNOOZE_MINUTES = 7 * 24 * 60


@dataclass(frozen=True)
class CreditUtilization:
    """Utilization snapshot of one credit card account."""

    account_id: int
    account_name: str
    current_balance: Decimal
    credit_limit: Decimal
    utilization_amount: Decimal
    utilization_percentage: Decimal


@dataclass(frozen=True)
class AlertCandidate:
    """An alert that a threshold says should fire, before spam checks."""

    alert_type: AlertType
    message: str
    current_value: Decimal
    threshold_value: Decimal
    threshold_type: str
    priority: Priority


def calculate_credit_utilization(account: Account) -> Optional[CreditUtilization]:
    """Return utilization for credit cards with a limit, else None.

    Credit card balances are usually negative (debt), so utilization is
    ``abs(balance) / limit * 100``.
    """
    if account.account_type != AccountType.CREDIT_CARD or not account.credit_limit:
        return None

    used = abs(account.balance)
    percentage = (used / account.credit_limit * 100).quantize(Decimal("0.01"))
    return CreditUtilization(
        account_id=account.id,
        account_name=account.name,
        current_balance=account.balance,
        credit_limit=account.credit_limit,
        utilization_amount=used,
        utilization_percentage=percentage,
    )


def priority_for_utilization(percentage: Decimal) -> Priority:
    """Map a utilization percentage to an alert priority."""
    if percentage >= 90:
        return Priority.CRITICAL
    if percentage >= 70:
        return Priority.HIGH
    if percentage >= 50:
        return Priority.MEDIUM
    return Priority.LOW


class AlertService:
    """Service that raises and manages account alerts."""

    def __init__(
        self,
        db: Database,
        min_interval_minutes: int = MIN_ALERT_INTERVAL_MINUTES,
        max_alerts_per_day: int = MAX_ALERTS_PER_DAY,
    ):
        """Initialize alert service.

        Args:
            db: Database instance
            min_interval_minutes: Quiet period per (account, alert type)
            max_alerts_per_day: Cap per account over a rolling 24 hours
        """
        self.db = db
        self.min_interval_minutes = min_interval_minutes
        self.max_alerts_per_day = max_alerts_per_day

    def _get_account(self, account_id: int, user_id: str) -> Account:
        account = self.db.get_account(account_id, user_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def _get_alert(self, alert_id: int, user_id: str) -> Alert:
        alert = self.db.get_alert(alert_id, user_id)
        if alert is None:
            raise NotFoundError(alert_not_found(alert_id))
        return alert

    def check_credit_utilization(
        self, user_id: str, utilization: CreditUtilization
    ) -> list[AlertCandidate]:
        """Return the alerts the account's thresholds call for.

        Enabled custom settings replace the default percentage thresholds.
        Candidates are ordered most severe first so that spam prevention
        keeps the alert that matters.
        """
        settings = [
            s
            for s in self.db.list_alert_settings(
                user_id, account_id=utilization.account_id, alert_type=AlertType.CREDIT_UTILIZATION
            )
            if s.is_enabled
        ]
        if settings:
            percentages = [s.threshold_percentage for s in settings if s.threshold_percentage is not None]
            amounts = [s.threshold_amount for s in settings if s.threshold_amount is not None]
        else:
            percentages = [Decimal(t) for t in DEFAULT_CREDIT_THRESHOLDS]
            amounts = []

        priority = priority_for_utilization(utilization.utilization_percentage)
        candidates = []
        for threshold in sorted(percentages, reverse=True):
            if utilization.utilization_percentage >= threshold:
                candidates.append(
                    AlertCandidate(
                        alert_type=AlertType.CREDIT_UTILIZATION,
                        message=(
                            f"Credit utilization has reached "
                            f"{utilization.utilization_percentage:.1f}% of your "
                            f"{utilization.credit_limit:.2f} limit"
                        ),
                        current_value=utilization.utilization_percentage,
                        threshold_value=Decimal(threshold),
                        threshold_type="percentage",
                        priority=priority_for_utilization(Decimal(threshold)),
                    )
                )
        for threshold in sorted(amounts, reverse=True):
            if utilization.utilization_amount >= threshold:
                candidates.append(
                    AlertCandidate(
                        alert_type=AlertType.CREDIT_UTILIZATION,
                        message=(
                            f"Credit usage has reached {utilization.utilization_amount:.2f} "
                            f"of your {utilization.credit_limit:.2f} limit"
                        ),
                        current_value=utilization.utilization_amount,
                        threshold_value=threshold,
                        threshold_type="amount",
                        priority=priority,
                    )
                )
        return candidates

    def is_spam(
        self, user_id: str, account_id: int, alert_type: AlertType, now: Optional[datetime] = None
    ) -> bool:
        """True when a new alert would exceed the interval or daily limits."""
        now = now or utcnow()
        recent = self.db.list_alerts(
            user_id,
            account_id=account_id,
            alert_type=alert_type,
            since=now - timedelta(minutes=self.min_interval_minutes),
            limit=1,
        )
        if recent:
            return True

        today = self.db.list_alerts(user_id, account_id=account_id, since=now - timedelta(hours=24))
        return len(today) >= self.max_alerts_per_day

    def process_account_alerts(
        self, user_id: str, account_id: int, now: Optional[datetime] = None
    ) -> list[Alert]:
        """Evaluate one account and create the alerts that pass spam checks.

        Returns:
            The alerts created (possibly none)

        Raises:
            NotFoundError: If the account is missing or foreign
        """
        now = now or utcnow()
        account = self._get_account(account_id, user_id)
        utilization = calculate_credit_utilization(account)
        if utilization is None:
            return []

        created = []
        for candidate in self.check_credit_utilization(user_id, utilization):
            if self.is_spam(user_id, account_id, candidate.alert_type, now):
                logger.debug(
                    "Suppressed %s alert for account %s", candidate.alert_type.value, account_id
                )
                continue
            alert_id = self.db.create_alert(
                user_id=user_id,
                account_id=account_id,
                alert_type=candidate.alert_type,
                message=candidate.message,
                current_value=candidate.current_value,
                threshold_value=candidate.threshold_value,
                priority=candidate.priority,
                triggered_at=now,
            )
            logger.info(
                "Alert %s raised for account %s: %s", alert_id, account_id, candidate.message
            )
            created.append(self.db.get_alert(alert_id))
        return created

    def process_user_alerts(self, user_id: str, now: Optional[datetime] = None) -> list[Alert]:
        """Evaluate every active account of the user."""
        created = []
        for account in self.db.list_accounts(user_id):
            created.extend(self.process_account_alerts(user_id, account.id, now))
        return created

    def utilization_summary(self, user_id: str) -> list[CreditUtilization]:
        """Utilization of each of the user's credit cards, highest first."""
        rows = [
            calculate_credit_utilization(account) for account in self.db.list_accounts(user_id)
        ]
        return sorted(
            (row for row in rows if row is not None),
            key=lambda row: row.utilization_percentage,
            reverse=True,
        )

    def list_alerts(
        self,
        user_id: str,
        status: Optional[str] = None,
        alert_type: Optional[str] = None,
        account_id: Optional[int] = None,
        priority: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Alert]:
        """List the user's alerts, most recent first."""
        return self.db.list_alerts(
            user_id,
            account_id=account_id,
            status=status,
            alert_type=alert_type,
            priority=priority,
            limit=limit,
            offset=offset,
        )

    def acknowledge(self, alert_id: int, user_id: str, now: Optional[datetime] = None) -> Alert:
        self._get_alert(alert_id, user_id)
        self.db.update_alert(
            alert_id, status=AlertStatus.ACKNOWLEDGED, acknowledged_at=now or utcnow()
        )
        return self.db.get_alert(alert_id)

    def snooze(
        self, alert_id: int, user_id: str, minutes: int, now: Optional[datetime] = None
    ) -> Alert:
        """Hide an alert for ``minutes`` (at most one week).

        Raises:
            ValidationError: If minutes is out of range
            NotFoundError: If the alert is missing or foreign
        """
        if not 0 < minutes <= MAX_SNOOZE_MINUTES:
            raise ValidationError(f"Snooze minutes must be between 1 and {MAX_SNOOZE_MINUTES}")
        self._get_alert(alert_id, user_id)
        now = now or utcnow()
        self.db.update_alert(
            alert_id, status=AlertStatus.SNOOZED, snooze_until=now + timedelta(minutes=minutes)
        )
        return self.db.get_alert(alert_id)

    def dismiss(self, alert_id: int, user_id: str) -> Alert:
        self._get_alert(alert_id, user_id)
        self.db.update_alert(alert_id, status=AlertStatus.DISMISSED)
        return self.db.get_alert(alert_id)

    def upsert_settings(
        self,
        user_id: str,
        account_id: int,
        alert_type: str | AlertType = AlertType.CREDIT_UTILIZATION,
        threshold_percentage: Optional[Decimal] = None,
        threshold_amount: Optional[Decimal] = None,
        is_enabled: bool = True,
    ) -> AlertSetting:
        """Create or replace the thresholds for one account and alert type.

        Raises:
            ValidationError: If neither threshold is given or one is out of range
            NotFoundError: If the account is missing or foreign
        """
        if threshold_percentage is None and threshold_amount is None:
            raise ValidationError("Either percentage or amount threshold must be provided")
        if threshold_percentage is not None and not 0 < threshold_percentage <= 100:
            raise ValidationError("Threshold percentage must be between 0 and 100")
        if threshold_amount is not None and threshold_amount <= 0:
            raise ValidationError("Threshold amount must be positive")
        try:
            alert_type = AlertType(alert_type)
        except ValueError:
            raise ValidationError(f"Invalid alert type '{alert_type}'")

        self._get_account(account_id, user_id)
        return self.db.upsert_alert_setting(
            user_id=user_id,
            account_id=account_id,
            alert_type=alert_type,
            threshold_percentage=threshold_percentage,
            threshold_amount=threshold_amount,
            is_enabled=is_enabled,
        )

    def get_settings(self, user_id: str, account_id: Optional[int] = None) -> list[AlertSetting]:
        if account_id is not None:
            self._get_account(account_id, user_id)
        return self.db.list_alert_settings(user_id, account_id=account_id)
