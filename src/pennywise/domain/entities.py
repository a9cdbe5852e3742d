"""Domain model entities for pennywise.

These are pure data classes representing business concepts, independent of
database schema. Services exchange these objects; the database layer maps
ORM rows onto them.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    INVESTMENT = "investment"
    CREDIT_CARD = "credit_card"
    OTHER = "other"


class CategoryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class PaymentFrequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AlertType(str, Enum):
    CREDIT_UTILIZATION = "credit_utilization"
    LOW_BALANCE = "low_balance"
    SPENDING_LIMIT = "spending_limit"
    UNUSUAL_ACTIVITY = "unusual_activity"


class AlertStatus(str, Enum):
    TRIGGERED = "triggered"
    ACKNOWLEDGED = "acknowledged"
    SNOOZED = "snoozed"
    DISMISSED = "dismissed"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class UserPreferences:
    """Per-user display and alerting preferences."""

    currency: str = "USD"
    credit_card_threshold: int = 80
    low_balance_threshold: Decimal = Decimal("100.00")
    email_enabled: bool = True
    push_enabled: bool = True
    sms_enabled: bool = False
    timezone: str = "UTC"


@dataclass(frozen=True)
class User:
    """User provisioned from the identity provider."""

    id: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    preferences: UserPreferences = field(default_factory=UserPreferences)


@dataclass(frozen=True)
class Account:
    """Financial account domain entity.

    ``balance`` is derived from the account's transactions and is only as
    fresh as the last reconciliation.
    """

    id: int
    user_id: str
    name: str
    account_type: AccountType
    balance: Decimal
    credit_limit: Optional[Decimal]
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Category:
    """Category domain entity with optional parent."""

    id: int
    user_id: str
    name: str
    category_type: CategoryType
    parent_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity. Expenses carry negative amounts."""

    id: int
    user_id: str
    account_id: int
    category_id: Optional[int]
    amount: Decimal
    description: str
    transaction_date: date
    recurring_payment_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class RecurringPayment:
    """Recurring payment domain entity. ``amount`` is positive."""

    id: int
    user_id: str
    account_id: int
    category_id: Optional[int]
    name: str
    merchant_pattern: str
    amount: Decimal
    frequency: PaymentFrequency
    next_due_date: date
    confidence: float
    status: PaymentStatus
    is_active: bool
    last_processed: Optional[date]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class GoalMilestone:
    """Milestone at a fixed percentage of a savings goal."""

    id: int
    goal_id: int
    percentage: int
    target_amount: Decimal
    is_achieved: bool
    achieved_amount: Optional[Decimal]
    achieved_at: Optional[datetime]


@dataclass(frozen=True)
class SavingsGoal:
    """Savings goal domain entity."""

    id: int
    user_id: str
    account_id: int
    name: str
    description: Optional[str]
    target_amount: Decimal
    current_amount: Decimal
    target_date: date
    priority: int
    status: GoalStatus
    created_at: datetime
    milestones: tuple[GoalMilestone, ...] = ()

    @property
    def progress_percentage(self) -> float:
        if self.target_amount <= 0:
            return 0.0
        return float(self.current_amount / self.target_amount * 100)

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.current_amount, Decimal("0.00"))


@dataclass(frozen=True)
class Alert:
    """Alert raised for an account."""

    id: int
    user_id: str
    account_id: int
    alert_type: AlertType
    message: str
    current_value: Decimal
    threshold_value: Decimal
    priority: Priority
    status: AlertStatus
    triggered_at: datetime
    acknowledged_at: Optional[datetime]
    snooze_until: Optional[datetime]


@dataclass(frozen=True)
class AlertSetting:
    """Custom alert thresholds for one account and alert type."""

    id: int
    user_id: str
    account_id: int
    alert_type: AlertType
    threshold_percentage: Optional[Decimal]
    threshold_amount: Optional[Decimal]
    is_enabled: bool


@dataclass(frozen=True)
class NotificationPreference:
    """Channel and quiet-hours preferences for one alert type."""

    id: int
    user_id: str
    alert_type: str
    email_enabled: bool
    push_enabled: bool
    in_app_enabled: bool
    sms_enabled: bool
    quiet_hours_start: Optional[str]
    quiet_hours_end: Optional[str]
    emergency_override: bool
