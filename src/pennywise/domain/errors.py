"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist or belongs to another user."""


class AuthorizationError(DomainError):
    """Caller is authenticated but may not perform the operation."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def category_not_found(category_id: int) -> str:
    """Return message for missing category."""
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def recurring_payment_not_found(payment_id: int) -> str:
    """Return message for missing recurring payment."""
    return f"Recurring payment {payment_id} not found"


def goal_not_found(goal_id: int) -> str:
    """Return message for missing savings goal."""
    return f"Savings goal {goal_id} not found"


def alert_not_found(alert_id: int) -> str:
    """Return message for missing alert."""
    return f"Alert {alert_id} not found"


def account_delete_blocked(
    account_id: int, transaction_count: int, payment_count: int
) -> str:
    """Return message when account has dependent transactions or payments."""
    parts = []
    if transaction_count > 0:
        parts.append(
            f"{transaction_count} transaction{'s' if transaction_count != 1 else ''}"
        )
    if payment_count > 0:
        parts.append(
            f"{payment_count} recurring payment{'s' if payment_count != 1 else ''}"
        )
    return (
        f"Cannot delete account {account_id}: it has {', '.join(parts)}. "
        "Please reassign or delete them first."
    )
