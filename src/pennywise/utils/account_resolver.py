"""Utility for resolving account names to IDs."""

from pennywise.domain.account import AccountService
from pennywise.domain.errors import NotFoundError


def resolve_account(account_service: AccountService, user_id: str, account: str | int) -> int:
    """Resolve account name or ID to one of the user's account IDs.

    Args:
        account_service: AccountService instance
        user_id: Owner of the account
        account: Account name (str) or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        NotFoundError: If the user has no such account
    """
    try:
        account_id = int(account)
    except (ValueError, TypeError):
        account_id = None

    if account_id is not None:
        # get_account raises NotFoundError for missing or foreign ids
        return account_service.get_account(account_id, user_id).id

    for acc in account_service.list_accounts(user_id, include_inactive=True):
        if acc.name == account:
            return acc.id

    raise NotFoundError(f"Account '{account}' not found")
