"""Balance reconciliation.

An account's stored balance is a cache of the sum of its transactions. It is
always rebuilt from the full transaction set, never patched incrementally.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from pennywise.database.base import Database
from pennywise.domain.errors import NotFoundError, account_not_found

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def compute_balance(amounts: Iterable[Decimal]) -> Decimal:
    """Sum signed transaction amounts into a balance.

    Credits are positive and debits are already negative, so the balance is
    the plain sum, rounded half-up to cents.

    Args:
        amounts: Signed transaction amounts

    Returns:
        Balance with two decimal places (``Decimal("0.00")`` when empty)
    """
    total = sum((Decimal(amount) for amount in amounts), Decimal("0"))
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


class LedgerService:
    """Service that reconciles account balances with their transactions."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    def recalculate_account_balance(self, account_id: int, user_id: str) -> Decimal:
        """Recompute and store the balance of one account.

        Runs inside the caller's unit of work when there is one, so a failure
        here rolls back the write that triggered it.

        Args:
            account_id: Account to reconcile
            user_id: Requesting user; the account must belong to them

        Returns:
            The reconciled balance

        Raises:
            NotFoundError: If the account does not exist or belongs to
                another user (nothing is written)
        """
        with self.db.atomic():
            account = self.db.get_account(account_id, user_id)
            if account is None:
                raise NotFoundError(account_not_found(account_id))

            balance = compute_balance(self.db.list_account_amounts(account_id))
            if balance != account.balance:
                logger.debug(
                    "Account %s balance %s -> %s", account_id, account.balance, balance
                )
            self.db.set_account_balance(account_id, balance)
        return balance

    def recalculate_user_balances(self, user_id: str) -> dict[int, Decimal]:
        """Reconcile every account the user owns. Returns balances by account ID."""
        balances = {}
        with self.db.atomic():
            for account in self.db.list_accounts(user_id, include_inactive=True):
                balances[account.id] = self.recalculate_account_balance(account.id, user_id)
        return balances
