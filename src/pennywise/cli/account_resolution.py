"""CLI helpers for resolving accounts and categories given by name or ID."""

from __future__ import annotations

import click

from pennywise.cli.error_handling import handle_domain_error
from pennywise.domain.account import AccountService
from pennywise.domain.category import CategoryService
from pennywise.domain.errors import DomainError, NotFoundError
from pennywise.utils.account_resolver import resolve_account


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID for the CLI user, or exit with a CLI error."""
    try:
        return resolve_account(account_service, ctx.obj["user_id"], account)
    except DomainError as exc:
        handle_domain_error(ctx, exc)


def resolve_category_or_exit(
    ctx: click.Context, category_service: CategoryService, category: str
) -> int:
    """Resolve a category ID or name; names must be unambiguous."""
    user_id = ctx.obj["user_id"]
    try:
        if category.isdigit():
            return category_service.get_category(int(category), user_id).id
        matches = [c for c in category_service.list_categories(user_id) if c.name == category]
        if not matches:
            raise NotFoundError(f"Category '{category}' not found")
        if len(matches) > 1:
            raise NotFoundError(f"Category name '{category}' is ambiguous; use its ID")
        return matches[0].id
    except DomainError as exc:
        handle_domain_error(ctx, exc)
