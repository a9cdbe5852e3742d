"""Notification delivery for payment reminders and account alerts.

Delivery is simulated: each allowed channel produces one log record.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pennywise.database.base import Database
from pennywise.domain.entities import (
    Alert,
    AlertStatus,
    NotificationPreference,
    PaymentStatus,
    Priority,
)
from pennywise.domain.errors import ValidationError
from pennywise.utils.date_parser import parse_clock_time, to_local_time, utcnow

logger = logging.getLogger(__name__)

CHANNELS = ("email", "push", "in_app", "sms")
DEFAULT_CHANNELS = {"email": True, "push": True, "in_app": True, "sms": False}
DUE_SOON_DAYS = 7
PAYMENT_DUE = "recurring_payment_due"
PAYMENT_MISSED = "recurring_payment_missed"
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PaymentAlert:
    """A reminder about an upcoming or overdue recurring payment."""

    type: str
    payment_id: int
    payment_name: str
    amount: Decimal
    due_date: date
    priority: Priority
    message: str
    days_until_due: Optional[int] = None
    days_overdue: Optional[int] = None


@dataclass(frozen=True)
class Notification:
    title: str
    message: str
    alert_type: str
    priority: Priority
    channels: tuple[str, ...]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationSummary:
    total: int
    unread: int
    high: int
    medium: int
    low: int


@dataclass(frozen=True)
class NotificationPage:
    alerts: list[Alert]
    summary: NotificationSummary
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def due_soon_priority(days_until_due: int) -> Priority:
    if days_until_due <= 1:
        return Priority.HIGH
    if days_until_due <= 3:
        return Priority.MEDIUM
    return Priority.LOW


def overdue_priority(days_overdue: int) -> Priority:
    if days_overdue > 7:
        return Priority.HIGH
    if days_overdue > 3:
        return Priority.MEDIUM
    return Priority.LOW


def in_quiet_hours(start: str, end: str, moment: datetime) -> bool:
    """True when ``moment`` falls in the quiet window, which may span midnight.

    Both ends are inclusive.
    """
    quiet_start = parse_clock_time(start)
    quiet_end = parse_clock_time(end)
    current = moment.time().replace(second=0, microsecond=0)
    if quiet_start <= quiet_end:
        return quiet_start <= current <= quiet_end
    return current >= quiet_start or current <= quiet_end


def _validate_channel(channel: str) -> str:
    if channel not in CHANNELS:
        raise ValidationError(f"Invalid channel '{channel}'. Must be one of: {', '.join(CHANNELS)}")
    return channel


class NotificationService:
    """Service that decides on and delivers notifications."""

    def __init__(self, db: Database):
        """Initialize notification service.

        Args:
            db: Database instance
        """
        self.db = db

    def pending_payment_alerts(
        self, user_id: str, today: Optional[date] = None
    ) -> list[PaymentAlert]:
        """Reminders for payments due within a week and alerts for overdue ones."""
        today = today or date.today()
        alerts = []
        for payment in self.db.list_recurring_payments(user_id):
            if payment.status == PaymentStatus.CANCELLED:
                continue
            days = (payment.next_due_date - today).days
            if 0 <= days <= DUE_SOON_DAYS:
                message = (
                    f"{payment.name} is due today"
                    if days == 0
                    else f"{payment.name} is due in {_plural(days, 'day')}"
                )
                alerts.append(
                    PaymentAlert(
                        type="due_soon",
                        payment_id=payment.id,
                        payment_name=payment.name,
                        amount=payment.amount,
                        due_date=payment.next_due_date,
                        priority=due_soon_priority(days),
                        message=message,
                        days_until_due=days,
                    )
                )
            elif days < 0:
                alerts.append(
                    PaymentAlert(
                        type="overdue",
                        payment_id=payment.id,
                        payment_name=payment.name,
                        amount=payment.amount,
                        due_date=payment.next_due_date,
                        priority=overdue_priority(-days),
                        message=f"{payment.name} is {_plural(-days, 'day')} overdue",
                        days_overdue=-days,
                    )
                )
        return alerts

    def _user_timezone(self, user_id: str) -> str:
        user = self.db.get_user(user_id)
        return user.preferences.timezone if user else "UTC"

    def get_preference(self, user_id: str, alert_type: str) -> Optional[NotificationPreference]:
        preferences = self.db.list_notification_preferences(user_id, alert_type=alert_type)
        return preferences[0] if preferences else None

    def should_send(
        self,
        user_id: str,
        alert_type: str,
        channel: str,
        urgency: Priority | str = Priority.MEDIUM,
        now: Optional[datetime] = None,
    ) -> bool:
        """Decide whether one channel may deliver a notification now.

        Without a stored preference the defaults apply (sms off, every other
        channel on). A disabled channel never delivers. Inside quiet hours
        only critical notifications with emergency override get through.
        Quiet hours are wall-clock times in the user's ``timezone``
        preference; ``now`` is naive UTC.
        """
        _validate_channel(channel)
        urgency = Priority(urgency)
        preference = self.get_preference(user_id, alert_type)
        if preference is None:
            return DEFAULT_CHANNELS[channel]

        if not getattr(preference, f"{channel}_enabled"):
            return False
        if urgency == Priority.CRITICAL and preference.emergency_override:
            return True
        if preference.quiet_hours_start and preference.quiet_hours_end:
            local_now = to_local_time(now or utcnow(), self._user_timezone(user_id))
            if in_quiet_hours(preference.quiet_hours_start, preference.quiet_hours_end, local_now):
                return False
        return True

    def send(
        self, user_id: str, notification: Notification, now: Optional[datetime] = None
    ) -> list[str]:
        """Deliver a notification on every channel its preferences allow.

        Returns:
            The channels the notification was delivered on
        """
        now = now or utcnow()
        delivered = []
        for channel in notification.channels:
            if not self.should_send(
                user_id, notification.alert_type, channel, notification.priority, now
            ):
                logger.debug(
                    "Skipped %s notification for user %s on %s",
                    notification.alert_type,
                    user_id,
                    channel,
                )
                continue
            logger.info(
                "Delivered %s notification to user %s via %s: %s",
                notification.alert_type,
                user_id,
                channel,
                notification.title,
            )
            delivered.append(channel)
        return delivered

    def process_user_notifications(
        self, user_id: str, today: Optional[date] = None, now: Optional[datetime] = None
    ) -> dict[str, int]:
        """Send reminders for upcoming payments and alerts for overdue ones.

        Returns:
            Counts of upcoming reminders, overdue alerts, total alerts and
            channel deliveries
        """
        alerts = self.pending_payment_alerts(user_id, today)
        deliveries = 0
        for alert in alerts:
            if alert.type == "due_soon":
                notification = Notification(
                    title=f"Upcoming Payment: {alert.payment_name}",
                    message=alert.message,
                    alert_type=PAYMENT_DUE,
                    priority=alert.priority,
                    channels=("in_app", "email"),
                    metadata={
                        "payment_id": alert.payment_id,
                        "amount": str(alert.amount),
                        "due_date": alert.due_date.isoformat(),
                        "days_until_due": alert.days_until_due,
                    },
                )
            else:
                notification = Notification(
                    title=f"Overdue Payment: {alert.payment_name}",
                    message=alert.message,
                    alert_type=PAYMENT_MISSED,
                    priority=alert.priority,
                    channels=("in_app", "email", "push"),
                    metadata={
                        "payment_id": alert.payment_id,
                        "amount": str(alert.amount),
                        "due_date": alert.due_date.isoformat(),
                        "days_overdue": alert.days_overdue,
                    },
                )
            deliveries += len(self.send(user_id, notification, now))

        return {
            "upcoming_reminders": sum(1 for a in alerts if a.type == "due_soon"),
            "overdue_alerts": sum(1 for a in alerts if a.type == "overdue"),
            "total_alerts": len(alerts),
            "deliveries": deliveries,
        }

    def summary(self, user_id: str) -> NotificationSummary:
        alerts = self.db.list_alerts(user_id)
        return NotificationSummary(
            total=len(alerts),
            unread=sum(1 for a in alerts if a.status == AlertStatus.TRIGGERED),
            high=sum(1 for a in alerts if a.priority in (Priority.HIGH, Priority.CRITICAL)),
            medium=sum(1 for a in alerts if a.priority == Priority.MEDIUM),
            low=sum(1 for a in alerts if a.priority == Priority.LOW),
        )

    def notification_center(
        self,
        user_id: str,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        alert_type: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> NotificationPage:
        """Page through the user's alerts, most recent first.

        Raises:
            ValidationError: If page is below 1 or limit is outside 1-100
        """
        if page < 1:
            raise ValidationError("Page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

        filters = {"status": status, "priority": priority, "alert_type": alert_type}
        total_count = len(self.db.list_alerts(user_id, **filters))
        alerts = self.db.list_alerts(user_id, limit=limit, offset=(page - 1) * limit, **filters)
        total_pages = math.ceil(total_count / limit)
        return NotificationPage(
            alerts=alerts,
            summary=self.summary(user_id),
            page=page,
            limit=limit,
            total_count=total_count,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )

    def get_preferences(
        self, user_id: str, alert_type: Optional[str] = None
    ) -> list[NotificationPreference]:
        return self.db.list_notification_preferences(user_id, alert_type=alert_type)

    def update_preferences(
        self, user_id: str, alert_type: str, **fields: Any
    ) -> NotificationPreference:
        """Create or update the preference for one alert type.

        Args:
            user_id: Owner of the preference
            alert_type: Alert or notification type the preference applies to
            **fields: Channel flags (``email_enabled``, ``push_enabled``,
                ``in_app_enabled``, ``sms_enabled``), ``quiet_hours_start``,
                ``quiet_hours_end`` ("HH:MM") and ``emergency_override``

        Raises:
            ValidationError: If a field is unknown or a quiet-hours bound is malformed
        """
        alert_type = (alert_type or "").strip()
        if not alert_type:
            raise ValidationError("Alert type is required")
        allowed = {f"{channel}_enabled" for channel in CHANNELS} | {
            "quiet_hours_start",
            "quiet_hours_end",
            "emergency_override",
        }
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(f"Unknown preference fields: {', '.join(sorted(unknown))}")
        for bound in ("quiet_hours_start", "quiet_hours_end"):
            if fields.get(bound) is not None:
                try:
                    parse_clock_time(fields[bound])
                except ValueError:
                    raise ValidationError(f"{bound} must be a time in HH:MM format")

        return self.db.upsert_notification_preference(user_id, alert_type, **fields)
