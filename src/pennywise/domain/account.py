"""Account domain service."""

from decimal import Decimal
from typing import Optional

from pennywise.database.base import Database
from pennywise.domain.entities import Account as AccountEntity, AccountType
from pennywise.domain.errors import (
    DependencyError,
    NotFoundError,
    ValidationError,
    account_delete_blocked,
    account_not_found,
)
from pennywise.domain.ledger import LedgerService


def parse_account_type(value: str | AccountType) -> AccountType:
    """Return the AccountType for a string, raising ValidationError if unknown."""
    try:
        return AccountType(value)
    except ValueError:
        choices = ", ".join(t.value for t in AccountType)
        raise ValidationError(f"Invalid account type '{value}'. Choose from: {choices}")


class AccountService:
    """Service for managing a user's accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db
        self.ledger = LedgerService(db)

    def create_account(
        self,
        user_id: str,
        name: str,
        account_type: str | AccountType = AccountType.CHECKING,
        credit_limit: Optional[Decimal] = None,
    ) -> AccountEntity:
        """Create a new account with a zero balance.

        Args:
            user_id: Owner of the account
            name: Account name, unique per user
            account_type: One of AccountType
            credit_limit: Positive limit, for credit cards

        Returns:
            The created account

        Raises:
            ValidationError: If the name is blank, the type unknown or the
                limit not positive
            ConflictError: If the user already has an account with that name
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required")
        account_type = parse_account_type(account_type)
        if credit_limit is not None and credit_limit <= 0:
            raise ValidationError("Credit limit must be positive")

        account_id = self.db.create_account(
            user_id=user_id, name=name, account_type=account_type, credit_limit=credit_limit
        )
        return self.db.get_account(account_id)

    def get_account(self, account_id: int, user_id: str) -> AccountEntity:
        """Get one of the user's accounts.

        Raises:
            NotFoundError: If the account does not exist or belongs to another user
        """
        account = self.db.get_account(account_id, user_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, user_id: str, include_inactive: bool = False) -> list[AccountEntity]:
        """List the user's accounts ordered by name."""
        return self.db.list_accounts(user_id, include_inactive=include_inactive)

    def update_account(
        self,
        account_id: int,
        user_id: str,
        name: Optional[str] = None,
        account_type: Optional[str | AccountType] = None,
        credit_limit: Optional[Decimal] = None,
        is_active: Optional[bool] = None,
        clear_credit_limit: bool = False,
    ) -> AccountEntity:
        """Update account fields. The balance cannot be set directly.

        Raises:
            NotFoundError: If the account is missing or foreign
            ValidationError: If a field is invalid
            ConflictError: If the new name is taken
        """
        self.get_account(account_id, user_id)

        changes = {}
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Account name is required")
            changes["name"] = name
        if account_type is not None:
            changes["account_type"] = parse_account_type(account_type)
        if clear_credit_limit:
            if credit_limit is not None:
                raise ValidationError("Cannot set both credit_limit and clear_credit_limit")
            changes["credit_limit"] = None
        elif credit_limit is not None:
            if credit_limit <= 0:
                raise ValidationError("Credit limit must be positive")
            changes["credit_limit"] = credit_limit
        if is_active is not None:
            changes["is_active"] = is_active

        if changes:
            self.db.update_account(account_id, **changes)
        return self.db.get_account(account_id)

    def delete_account(self, account_id: int, user_id: str) -> None:
        """Delete an account that has no transactions or recurring payments.

        Raises:
            NotFoundError: If the account is missing or foreign
            DependencyError: If transactions or recurring payments reference it
        """
        self.get_account(account_id, user_id)

        transaction_count = self.db.get_account_transaction_count(account_id)
        payment_count = self.db.get_account_payment_count(account_id)
        if transaction_count > 0 or payment_count > 0:
            raise DependencyError(
                account_delete_blocked(account_id, transaction_count, payment_count)
            )

        self.db.delete_account(account_id)

    def get_balance(self, account_id: int, user_id: str) -> Decimal:
        """Return the stored (last reconciled) balance."""
        return self.get_account(account_id, user_id).balance

    def reconcile(self, account_id: int, user_id: str) -> Decimal:
        """Recompute the balance from the account's transactions."""
        return self.ledger.recalculate_account_balance(account_id, user_id)
