"""Report commands: net worth, overview, cash flow and spending."""

from datetime import date

import click

from pennywise.cli.account_resolution import resolve_account_or_exit
from pennywise.cli.date_filters import parse_date_or_exit, resolve_cli_date_range
from pennywise.cli.error_handling import handle_domain_error
from pennywise.domain.account import AccountService
from pennywise.domain.analytics import AnalyticsService, GroupBy
from pennywise.domain.errors import DomainError
from pennywise.utils.amount_parser import format_money


def period_options(func):
    """Attach the shared date range options to a report command."""
    options = [
        click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')"),
        click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')"),
        click.option("--this-month", is_flag=True, help="Current month (the default)"),
        click.option("--last-month", is_flag=True, help="Previous month"),
        click.option("--this-year", is_flag=True, help="Current year"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _range(ctx, start_date, end_date, this_month, last_month, this_year) -> tuple[date, date]:
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags={"this-month": this_month, "last-month": last_month, "this-year": this_year},
    )
    end = end or date.today()
    return start or end.replace(day=1), end


def _account_id(ctx, account: str | None) -> int | None:
    if not account:
        return None
    return resolve_account_or_exit(ctx, AccountService(ctx.obj["db"]), account)


@click.group()
def report_group():
    """Summaries of the ledger."""
    pass


@report_group.command("net-worth")
@click.option("--as-of", help="Date to value accounts at (defaults to today)")
@click.pass_context
def net_worth(ctx, as_of: str | None):
    """Show assets, liabilities and net worth."""
    day = parse_date_or_exit(ctx, as_of, label="as-of date") if as_of else None
    worth = AnalyticsService(ctx.obj["db"]).net_worth(ctx.obj["user_id"], as_of=day)

    click.echo(f"Net worth as of {worth.as_of}")
    click.echo(f"  {'Assets':<14} {format_money(worth.total_assets):>14}")
    click.echo(f"  {'Liabilities':<14} {format_money(worth.total_liabilities):>14}")
    click.echo(f"  {'Net worth':<14} {format_money(worth.net_worth):>14}")


@report_group.command("overview")
@period_options
@click.option("--account", help="Only this account (name or ID)")
@click.pass_context
def overview(ctx, start_date, end_date, this_month, last_month, this_year, account):
    """Income, expenses and savings rate for a period.

    Examples:
        pennywise report overview --last-month
    """
    start, end = _range(ctx, start_date, end_date, this_month, last_month, this_year)
    account_id = _account_id(ctx, account)
    service = AnalyticsService(ctx.obj["db"])
    try:
        result = service.overview(ctx.obj["user_id"], start, end, account_id=account_id)
        comparisons = service.period_comparisons(ctx.obj["user_id"], start, end, account_id=account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Overview {start} to {end}")
    click.echo(f"  {'Income':<16} {format_money(result.total_income):>14}")
    click.echo(f"  {'Expenses':<16} {format_money(result.total_expenses):>14}")
    click.echo(f"  {'Net cash flow':<16} {format_money(result.net_cash_flow):>14}")
    click.echo(f"  {'Savings rate':<16} {result.savings_rate:>13.1f}%")
    click.echo(f"  {'Net worth':<16} {format_money(result.net_worth):>14}")
    click.echo(f"  {result.transaction_count} transaction(s) across {result.account_count} account(s)")

    click.echo("\nVersus previous period:")
    for comparison in comparisons:
        click.echo(
            f"  {comparison.metric:<16} {comparison.change_percentage:>+8.1f}%  {comparison.trend.value}"
        )


@report_group.command("cash-flow")
@period_options
@click.option(
    "--group-by",
    type=click.Choice([g.value for g in GroupBy]),
    help="Interval size (chosen from the range if omitted)",
)
@click.option("--account", help="Only this account (name or ID)")
@click.pass_context
def cash_flow(ctx, start_date, end_date, this_month, last_month, this_year, group_by, account):
    """Income and expenses per day, week or month."""
    start, end = _range(ctx, start_date, end_date, this_month, last_month, this_year)
    account_id = _account_id(ctx, account)
    try:
        periods = AnalyticsService(ctx.obj["db"]).cash_flow(
            ctx.obj["user_id"], start, end, group_by=group_by, account_id=account_id
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"{'Period':<12} {'Income':>14} {'Expenses':>14} {'Net':>14}")
    click.echo("-" * 57)
    for period in periods:
        click.echo(
            f"{period.label:<12} {format_money(period.income):>14} "
            f"{format_money(period.expenses):>14} {format_money(period.net_flow):>14}"
        )


@report_group.command("spending")
@period_options
@click.option("--account", help="Only this account (name or ID)")
@click.pass_context
def spending(ctx, start_date, end_date, this_month, last_month, this_year, account):
    """Expenses by category, largest first."""
    start, end = _range(ctx, start_date, end_date, this_month, last_month, this_year)
    account_id = _account_id(ctx, account)
    try:
        rows = AnalyticsService(ctx.obj["db"]).spending_breakdown(
            ctx.obj["user_id"], start, end, account_id=account_id
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not rows:
        click.echo("No expenses found.")
        return

    for row in rows:
        click.echo(
            f"{row.category_name:<30} {format_money(row.amount):>14} {row.percentage:>6.1f}%"
            f"  ({row.transaction_count})"
        )


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
