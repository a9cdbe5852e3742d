"""Account management commands."""

import click

from pennywise.cli.account_resolution import resolve_account_or_exit
from pennywise.cli.error_handling import handle_domain_error
from pennywise.domain.account import AccountService
from pennywise.domain.entities import AccountType
from pennywise.domain.errors import DomainError
from pennywise.utils.amount_parser import format_money, parse_amount


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType]),
    default=AccountType.CHECKING.value,
    show_default=True,
    help="Account type",
)
@click.option("--credit-limit", help="Credit limit (credit cards)")
@click.pass_context
def create_account(ctx, name: str, account_type: str, credit_limit: str | None):
    """Create a new account.

    Examples:
        pennywise account create "Checking"
        pennywise account create "Visa" --type credit_card --credit-limit 5000
    """
    service = AccountService(ctx.obj["db"])

    limit = None
    if credit_limit is not None:
        try:
            limit = parse_amount(credit_limit)
        except ValueError as e:
            click.echo(f"Error: Invalid credit limit: {e}", err=True)
            ctx.exit(1)

    try:
        account = service.create_account(
            ctx.obj["user_id"], name=name, account_type=account_type, credit_limit=limit
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{account.name}' (ID: {account.id})")


@account_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include inactive accounts")
@click.pass_context
def list_accounts(ctx, include_inactive: bool):
    """List accounts with their balances."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(ctx.obj["user_id"], include_inactive=include_inactive)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        line = f"ID: {acc.id:3d} | {acc.name:20s} | {acc.account_type.value:12s} | {format_money(acc.balance):>12s}"
        if acc.credit_limit is not None:
            line += f" | Limit: {format_money(acc.credit_limit)}"
        if not acc.is_active:
            line += " | inactive"
        click.echo(line)


@account_group.command("balance")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_balance(ctx, account: str):
    """Show the stored balance of ACCOUNT (name or ID)."""
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    acc = service.get_account(account_id, ctx.obj["user_id"])
    click.echo(f"{acc.name}: {format_money(acc.balance)}")


@account_group.command("reconcile")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def reconcile_account(ctx, account: str):
    """Recompute the balance of ACCOUNT from its transactions."""
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    before = service.get_balance(account_id, ctx.obj["user_id"])

    try:
        after = service.reconcile(account_id, ctx.obj["user_id"])
    except DomainError as e:
        handle_domain_error(ctx, e)

    if after == before:
        click.echo(f"Balance is consistent: {format_money(after)}")
    else:
        click.echo(f"Balance corrected from {format_money(before)} to {format_money(after)}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
