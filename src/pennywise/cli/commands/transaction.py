"""Transaction management commands."""

import click

from pennywise.cli.account_resolution import resolve_account_or_exit, resolve_category_or_exit
from pennywise.cli.date_filters import parse_date_or_exit, resolve_cli_date_range
from pennywise.cli.error_handling import handle_domain_error
from pennywise.cli.services import build_transaction_service
from pennywise.domain.account import AccountService
from pennywise.domain.category import CategoryService
from pennywise.domain.errors import DomainError
from pennywise.utils.amount_parser import format_money, parse_amount


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--this-month", is_flag=True, help="Only this month")
@click.option("--last-month", is_flag=True, help="Only last month")
@click.option("--this-year", is_flag=True, help="Only this year")
@click.option("--account", help="Account name or ID")
@click.option("--category", help="Category name or ID")
@click.option("--limit", type=int, default=None, help="Show at most this many transactions")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    this_month: bool,
    last_month: bool,
    this_year: bool,
    account: str | None,
    category: str | None,
    limit: int | None,
):
    """View transactions, newest first, with optional filters."""
    db = ctx.obj["db"]
    user_id = ctx.obj["user_id"]
    account_service = AccountService(db)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags={"this-month": this_month, "last-month": last_month, "this-year": this_year},
    )
    account_id = resolve_account_or_exit(ctx, account_service, account) if account else None
    category_id = resolve_category_or_exit(ctx, CategoryService(db), category) if category else None

    try:
        transactions = build_transaction_service(ctx).list_transactions(
            user_id,
            account_id=account_id,
            category_id=category_id,
            start_date=start,
            end_date=end,
            limit=limit,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo("No transactions found.")
        return

    accounts = {a.id: a.name for a in account_service.list_accounts(user_id, include_inactive=True)}
    categories = {c.id: c.name for c in CategoryService(db).list_categories(user_id)}

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 100)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Amount':>12} {'Account':<20} {'Category':<20} {'Description':<30}"
    )
    click.echo("-" * 100)
    for txn in transactions:
        click.echo(
            f"{txn.id:<6} {str(txn.transaction_date):<12} {format_money(txn.amount):>12} "
            f"{accounts.get(txn.account_id, 'Unknown'):<20} "
            f"{categories.get(txn.category_id, ''):<20} {txn.description[:30]:<30}"
        )

    total_expenses = sum(txn.amount for txn in transactions if txn.amount < 0)
    total_income = sum(txn.amount for txn in transactions if txn.amount > 0)
    click.echo("-" * 100)
    click.echo(
        f"{'TOTAL':<6} Expenses: {format_money(abs(total_expenses))} | "
        f"Income: {format_money(total_income)} | Count: {len(transactions)}"
    )


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--account", help="Move to this account (name or ID)")
@click.option("--date", "date_str", help="Transaction date")
@click.option("--amount", help="Transaction amount (e.g., -75.00)")
@click.option("--description", help="Transaction description")
@click.option("--category", help="Category name or ID, or empty string to clear")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    account: str | None,
    date_str: str | None,
    amount: str | None,
    description: str | None,
    category: str | None,
) -> None:
    """Update a transaction.

    Updates only the fields that are provided. Use --category "" to clear the category.

    Examples:
        pennywise transaction update 1 --amount -75.00
        pennywise transaction update 1 --account Savings
        pennywise transaction update 1 --category ""  # Clear category
    """
    db = ctx.obj["db"]

    account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None
    txn_date = parse_date_or_exit(ctx, date_str) if date_str else None

    txn_amount = None
    if amount is not None:
        try:
            txn_amount = parse_amount(amount)
        except ValueError as e:
            click.echo(f"Error: Invalid amount format: {e}", err=True)
            ctx.exit(1)

    category_id = None
    clear_category = category == ""
    if category:
        category_id = resolve_category_or_exit(ctx, CategoryService(db), category)

    try:
        build_transaction_service(ctx).update_transaction(
            transaction_id,
            ctx.obj["user_id"],
            account_id=account_id,
            amount=txn_amount,
            description=description,
            transaction_date=txn_date,
            category_id=category_id,
            clear_category=clear_category,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated transaction {transaction_id}")


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Delete a transaction and reconcile its account.

    Examples:
        pennywise transaction delete 1
    """
    service = build_transaction_service(ctx)
    try:
        service.get_transaction(transaction_id, ctx.obj["user_id"])
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(
        f"Are you sure you want to delete transaction {transaction_id}?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_transaction(transaction_id, ctx.obj["user_id"])
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
