"""Transaction domain service."""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from pennywise.database.base import Database
from pennywise.domain.alerts import AlertService
from pennywise.domain.entities import Transaction as TransactionEntity
from pennywise.domain.errors import (
    DomainError,
    NotFoundError,
    ValidationError,
    account_not_found,
    category_not_found,
    recurring_payment_not_found,
    transaction_not_found,
)
from pennywise.domain.ledger import LedgerService
from pennywise.utils.amount_parser import to_money

logger = logging.getLogger(__name__)


def _validate_amount(amount) -> Decimal:
    try:
        value = to_money(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid amount '{amount}'")
    if value == 0:
        raise ValidationError("Amount must be non-zero")
    return value


class TransactionService:
    """Service for managing transactions.

    Every write reconciles the balance of each affected account in the same
    unit of work, so a stored balance never disagrees with the ledger.
    """

    def __init__(self, db: Database, alert_service: Optional[AlertService] = None):
        """Initialize transaction service.

        Args:
            db: Database instance
            alert_service: Alert service evaluated after each write (defaults
                to one over the same database)
        """
        self.db = db
        self.ledger = LedgerService(db)
        self.alerts = alert_service or AlertService(db)

    def _require_account(self, account_id: int, user_id: str) -> None:
        if self.db.get_account(account_id, user_id) is None:
            raise NotFoundError(account_not_found(account_id))

    def _require_category(self, category_id: int, user_id: str) -> None:
        if self.db.get_category(category_id, user_id) is None:
            raise NotFoundError(category_not_found(category_id))

    def _require_transaction(self, transaction_id: int, user_id: str) -> TransactionEntity:
        txn = self.db.get_transaction(transaction_id, user_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def _evaluate_alerts(self, user_id: str, account_ids: set[int]) -> None:
        # The write is already committed; an alert failure must not undo it.
        for account_id in sorted(account_ids):
            try:
                self.alerts.process_account_alerts(user_id, account_id)
            except DomainError as exc:
                logger.warning("Alert evaluation failed for account %s: %s", account_id, exc)

    def create_transaction(
        self,
        user_id: str,
        account_id: int,
        amount: Decimal,
        description: str,
        transaction_date: date,
        category_id: Optional[int] = None,
        recurring_payment_id: Optional[int] = None,
    ) -> TransactionEntity:
        """Create a transaction and reconcile its account.

        Args:
            user_id: Owner of the transaction
            account_id: Account ID (must belong to the user)
            amount: Signed amount; expenses are negative
            description: Free-text description
            transaction_date: Date of the transaction
            category_id: Optional category ID (must belong to the user)
            recurring_payment_id: Optional recurring payment this settles

        Returns:
            The created transaction

        Raises:
            ValidationError: If the amount is zero or malformed
            NotFoundError: If the account, category or recurring payment is
                missing or foreign
        """
        amount = _validate_amount(amount)
        description = (description or "").strip()

        with self.db.atomic():
            self._require_account(account_id, user_id)
            if category_id is not None:
                self._require_category(category_id, user_id)
            if recurring_payment_id is not None:
                if self.db.get_recurring_payment(recurring_payment_id, user_id) is None:
                    raise NotFoundError(recurring_payment_not_found(recurring_payment_id))

            transaction_id = self.db.create_transaction(
                user_id=user_id,
                account_id=account_id,
                amount=amount,
                description=description,
                transaction_date=transaction_date,
                category_id=category_id,
                recurring_payment_id=recurring_payment_id,
            )
            self.ledger.recalculate_account_balance(account_id, user_id)

        self._evaluate_alerts(user_id, {account_id})
        return self.db.get_transaction(transaction_id)

    def get_transaction(self, transaction_id: int, user_id: str) -> TransactionEntity:
        """Get one of the user's transactions.

        Raises:
            NotFoundError: If the transaction is missing or foreign
        """
        return self._require_transaction(transaction_id, user_id)

    def update_transaction(
        self,
        transaction_id: int,
        user_id: str,
        account_id: Optional[int] = None,
        amount: Optional[Decimal] = None,
        description: Optional[str] = None,
        transaction_date: Optional[date] = None,
        category_id: Optional[int] = None,
        clear_category: bool = False,
    ) -> TransactionEntity:
        """Update transaction fields and reconcile affected accounts.

        Moving a transaction to another account reconciles both the old and
        the new account.

        Args:
            transaction_id: Transaction ID to update
            user_id: Owner of the transaction
            account_id: Optional new account ID
            amount: Optional new amount
            description: Optional new description
            transaction_date: Optional new date
            category_id: Optional new category ID
            clear_category: If True, clear the category (category_id must be None)

        Returns:
            The updated transaction

        Raises:
            NotFoundError: If the transaction, account or category is missing
                or foreign
            ValidationError: If the amount is invalid or both category_id
                and clear_category are given
        """
        changes = {}
        if amount is not None:
            changes["amount"] = _validate_amount(amount)
        if description is not None:
            changes["description"] = description.strip()
        if transaction_date is not None:
            changes["transaction_date"] = transaction_date
        if clear_category:
            if category_id is not None:
                raise ValidationError("Cannot set both category_id and clear_category")
            changes["category_id"] = None

        with self.db.atomic():
            txn = self._require_transaction(transaction_id, user_id)
            affected = {txn.account_id}

            if account_id is not None and account_id != txn.account_id:
                self._require_account(account_id, user_id)
                changes["account_id"] = account_id
                affected.add(account_id)
            if category_id is not None:
                self._require_category(category_id, user_id)
                changes["category_id"] = category_id

            if changes:
                self.db.update_transaction(transaction_id, **changes)
            for affected_id in sorted(affected):
                self.ledger.recalculate_account_balance(affected_id, user_id)

        self._evaluate_alerts(user_id, affected)
        return self.db.get_transaction(transaction_id)

    def delete_transaction(self, transaction_id: int, user_id: str) -> None:
        """Delete a transaction and reconcile its account.

        Raises:
            NotFoundError: If the transaction is missing or foreign
        """
        with self.db.atomic():
            txn = self._require_transaction(transaction_id, user_id)
            self.db.delete_transaction(transaction_id)
            self.ledger.recalculate_account_balance(txn.account_id, user_id)

        self._evaluate_alerts(user_id, {txn.account_id})

    def list_transactions(
        self,
        user_id: str,
        account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[TransactionEntity]:
        """List the user's transactions, newest first.

        Raises:
            ValidationError: If start_date is after end_date
        """
        if start_date and end_date and start_date > end_date:
            raise ValidationError("start_date must be on or before end_date")
        return self.db.list_transactions(
            user_id,
            account_id=account_id,
            category_id=category_id,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
        )
