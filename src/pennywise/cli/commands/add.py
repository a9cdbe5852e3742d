"""Add transaction command."""

import click

from pennywise.cli.account_resolution import resolve_account_or_exit, resolve_category_or_exit
from pennywise.cli.date_filters import parse_date_or_exit
from pennywise.cli.error_handling import handle_domain_error
from pennywise.cli.services import build_transaction_service
from pennywise.domain.account import AccountService
from pennywise.domain.category import CategoryService
from pennywise.domain.errors import DomainError
from pennywise.utils.amount_parser import format_money, parse_amount


@click.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option(
    "--date",
    "date_str",
    default="today",
    show_default=True,
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option(
    "--amount", required=True, help="Transaction amount; expenses are negative (e.g., -12.99)"
)
@click.option("--description", default="", help="Transaction description")
@click.option("--category", help="Category name or ID")
@click.pass_context
def add_transaction(
    ctx, account: str, date_str: str, amount: str, description: str, category: str | None
):
    """Add a transaction and reconcile the account balance.

    Examples:
        pennywise add --account Checking --amount -15.99 --description "NETFLIX.COM"
        pennywise add --account 1 --date 2025-01-15 --amount 2500 --category Salary
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    txn_date = parse_date_or_exit(ctx, date_str)

    try:
        txn_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    category_id = None
    if category:
        category_id = resolve_category_or_exit(ctx, CategoryService(db), category)

    service = build_transaction_service(ctx)
    try:
        txn = service.create_transaction(
            user_id=ctx.obj["user_id"],
            account_id=account_id,
            amount=txn_amount,
            description=description,
            transaction_date=txn_date,
            category_id=category_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    balance = AccountService(db).get_balance(account_id, ctx.obj["user_id"])
    click.echo(f"Created transaction {txn.id}")
    click.echo(f"  Date: {txn.transaction_date}")
    click.echo(f"  Amount: {format_money(txn.amount)}")
    if txn.description:
        click.echo(f"  Description: {txn.description}")
    click.echo(f"  New balance: {format_money(balance)}")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
