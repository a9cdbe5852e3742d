"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Any
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from pennywise.domain.entities import (
    User,
    UserPreferences,
    Account,
    Category,
    Transaction,
    RecurringPayment,
    SavingsGoal,
    Alert,
    AlertSetting,
    NotificationPreference,
)


class Database(ABC):
    """Abstract database interface for pennywise.

    Lookups that take an optional ``user_id`` return None when the row
    exists but belongs to another user, so callers cannot tell foreign rows
    from missing ones.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Group writes into a single unit of work.

        Writes made inside the block are committed together when it exits
        normally and rolled back together when it raises. Blocks nest; only
        the outermost block commits.
        """
        pass

    # User operations
    @abstractmethod
    def ensure_user(
        self, user_id: str, email: Optional[str] = None, first_name: str = "", last_name: str = ""
    ) -> User:
        """Return the user, creating it on first use."""
        pass

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    def update_user_preferences(self, user_id: str, preferences: UserPreferences) -> None:
        """Replace the user's preferences."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        user_id: str,
        name: str,
        account_type: str,
        credit_limit: Optional[Decimal] = None,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int, user_id: Optional[str] = None) -> Optional[Account]:
        """Get account by ID, optionally scoped to a user."""
        pass

    @abstractmethod
    def list_accounts(self, user_id: str, include_inactive: bool = False) -> list[Account]:
        """List a user's accounts."""
        pass

    @abstractmethod
    def update_account(self, account_id: int, **changes: Any) -> None:
        """Update account columns (name, account_type, credit_limit, is_active)."""
        pass

    @abstractmethod
    def set_account_balance(self, account_id: int, balance: Decimal) -> None:
        """Store a reconciled balance."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account."""
        pass

    @abstractmethod
    def get_account_transaction_count(self, account_id: int) -> int:
        """Get count of transactions associated with an account."""
        pass

    @abstractmethod
    def get_account_payment_count(self, account_id: int) -> int:
        """Get count of recurring payments associated with an account."""
        pass

    @abstractmethod
    def list_account_amounts(self, account_id: int) -> list[Decimal]:
        """Return the signed amounts of every transaction on the account."""
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self, user_id: str, name: str, category_type: str, parent_id: Optional[int] = None
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int, user_id: Optional[str] = None) -> Optional[Category]:
        """Get category by ID, optionally scoped to a user."""
        pass

    @abstractmethod
    def list_categories(self, user_id: str, category_type: Optional[str] = None) -> list[Category]:
        """List a user's categories."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        user_id: str,
        account_id: int,
        amount: Decimal,
        description: str,
        transaction_date: date,
        category_id: Optional[int] = None,
        recurring_payment_id: Optional[int] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(
        self, transaction_id: int, user_id: Optional[str] = None
    ) -> Optional[Transaction]:
        """Get transaction by ID, optionally scoped to a user."""
        pass

    @abstractmethod
    def update_transaction(self, transaction_id: int, **changes: Any) -> None:
        """Update transaction columns.

        Accepts account_id, category_id, amount, description,
        transaction_date and recurring_payment_id. A key that is present is
        written even when its value is None.
        """
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        user_id: str,
        account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        expenses_only: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """List transactions with optional filters, newest first."""
        pass

    # Recurring payment operations
    @abstractmethod
    def create_recurring_payment(
        self,
        user_id: str,
        account_id: int,
        name: str,
        amount: Decimal,
        frequency: str,
        next_due_date: date,
        category_id: Optional[int] = None,
        merchant_pattern: str = "",
        confidence: float = 1.0,
    ) -> int:
        """Create a recurring payment. Returns payment ID."""
        pass

    @abstractmethod
    def get_recurring_payment(
        self, payment_id: int, user_id: Optional[str] = None
    ) -> Optional[RecurringPayment]:
        """Get recurring payment by ID, optionally scoped to a user."""
        pass

    @abstractmethod
    def list_recurring_payments(
        self,
        user_id: str,
        status: Optional[str] = None,
        account_id: Optional[int] = None,
        frequency: Optional[str] = None,
        is_active: Optional[bool] = True,
    ) -> list[RecurringPayment]:
        """List recurring payments. ``is_active=None`` returns all."""
        pass

    @abstractmethod
    def update_recurring_payment(self, payment_id: int, **changes: Any) -> None:
        """Update recurring payment columns."""
        pass

    @abstractmethod
    def delete_recurring_payment(self, payment_id: int) -> None:
        """Delete a recurring payment and unlink its transactions."""
        pass

    # Savings goal operations
    @abstractmethod
    def create_savings_goal(
        self,
        user_id: str,
        account_id: int,
        name: str,
        target_amount: Decimal,
        target_date: date,
        priority: int = 5,
        description: Optional[str] = None,
        milestone_percentages: tuple[int, ...] = (),
    ) -> int:
        """Create a savings goal with its milestones. Returns goal ID."""
        pass

    @abstractmethod
    def get_savings_goal(self, goal_id: int, user_id: Optional[str] = None) -> Optional[SavingsGoal]:
        """Get savings goal by ID, optionally scoped to a user."""
        pass

    @abstractmethod
    def list_savings_goals(self, user_id: str) -> list[SavingsGoal]:
        """List a user's goals by priority, highest first."""
        pass

    @abstractmethod
    def update_savings_goal(self, goal_id: int, **changes: Any) -> None:
        """Update savings goal columns."""
        pass

    @abstractmethod
    def update_milestone(self, milestone_id: int, **changes: Any) -> None:
        """Update milestone columns."""
        pass

    @abstractmethod
    def delete_savings_goal(self, goal_id: int) -> None:
        """Delete a goal and its milestones."""
        pass

    # Alert operations
    @abstractmethod
    def create_alert(
        self,
        user_id: str,
        account_id: int,
        alert_type: str,
        message: str,
        current_value: Decimal,
        threshold_value: Decimal,
        priority: str,
        triggered_at: Optional[datetime] = None,
    ) -> int:
        """Create an alert. Returns alert ID."""
        pass

    @abstractmethod
    def get_alert(self, alert_id: int, user_id: Optional[str] = None) -> Optional[Alert]:
        """Get alert by ID, optionally scoped to a user."""
        pass

    @abstractmethod
    def list_alerts(
        self,
        user_id: str,
        account_id: Optional[int] = None,
        status: Optional[str] = None,
        alert_type: Optional[str] = None,
        priority: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Alert]:
        """List alerts, most recent first."""
        pass

    @abstractmethod
    def update_alert(self, alert_id: int, **changes: Any) -> None:
        """Update alert columns."""
        pass

    @abstractmethod
    def upsert_alert_setting(
        self,
        user_id: str,
        account_id: int,
        alert_type: str,
        threshold_percentage: Optional[Decimal],
        threshold_amount: Optional[Decimal],
        is_enabled: bool,
    ) -> AlertSetting:
        """Create or replace the setting for (user, account, alert type)."""
        pass

    @abstractmethod
    def list_alert_settings(
        self, user_id: str, account_id: Optional[int] = None, alert_type: Optional[str] = None
    ) -> list[AlertSetting]:
        """List alert settings."""
        pass

    # Notification preference operations
    @abstractmethod
    def upsert_notification_preference(
        self, user_id: str, alert_type: str, **fields: Any
    ) -> NotificationPreference:
        """Create or update the preference for (user, alert type)."""
        pass

    @abstractmethod
    def list_notification_preferences(
        self, user_id: str, alert_type: Optional[str] = None
    ) -> list[NotificationPreference]:
        """List notification preferences."""
        pass
