"""Savings goal commands."""

import click

from pennywise.cli.account_resolution import resolve_account_or_exit
from pennywise.cli.date_filters import parse_date_or_exit
from pennywise.cli.error_handling import handle_domain_error
from pennywise.domain.account import AccountService
from pennywise.domain.entities import GoalStatus
from pennywise.domain.errors import DomainError
from pennywise.domain.savings import SavingsService
from pennywise.utils.amount_parser import format_money, parse_amount


def _parse_amount_or_exit(ctx, value: str, label: str):
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@click.group()
def goal_group():
    """Manage savings goals."""
    pass


@goal_group.command("create")
@click.argument("name", metavar="GOAL_NAME")
@click.option("--account", required=True, help="Account the savings go into (name or ID)")
@click.option("--target", required=True, help="Target amount")
@click.option("--by", "target_date", required=True, help="Target date (YYYY-MM-DD)")
@click.option("--priority", type=click.IntRange(1, 10), default=5, show_default=True)
@click.option("--description", help="Goal description")
@click.pass_context
def create_goal(
    ctx, name: str, account: str, target: str, target_date: str, priority: int, description: str | None
):
    """Create a savings goal with 25/50/75/100% milestones.

    Examples:
        pennywise goal create "Emergency Fund" --account Savings --target 5000 --by 2027-06-30
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    amount = _parse_amount_or_exit(ctx, target, "target amount")
    by = parse_date_or_exit(ctx, target_date, label="target date")

    try:
        goal = SavingsService(db).create_goal(
            ctx.obj["user_id"],
            account_id=account_id,
            name=name,
            target_amount=amount,
            target_date=by,
            priority=priority,
            description=description,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created goal '{goal.name}' (ID: {goal.id}) targeting {format_money(goal.target_amount)}")


@goal_group.command("list")
@click.option(
    "--status", type=click.Choice([s.value for s in GoalStatus]), help="Only goals with this status"
)
@click.pass_context
def list_goals(ctx, status: str | None):
    """List savings goals with their progress."""
    progress = SavingsService(ctx.obj["db"]).list_goals(ctx.obj["user_id"], status=status)
    if not progress:
        click.echo("No savings goals found.")
        return

    click.echo("\nSavings goals:")
    click.echo("-" * 92)
    for item in progress:
        goal = item.goal
        click.echo(
            f"ID: {goal.id:3d} | {goal.name[:24]:24s} | "
            f"{format_money(goal.current_amount):>10s} / {format_money(goal.target_amount):>10s} | "
            f"{item.progress_percentage:5.1f}% | by {goal.target_date} | {goal.status.value}"
        )


@goal_group.command("contribute")
@click.argument("goal_id", type=int)
@click.argument("amount")
@click.pass_context
def contribute(ctx, goal_id: int, amount: str):
    """Add AMOUNT to goal GOAL_ID."""
    value = _parse_amount_or_exit(ctx, amount, "amount")
    try:
        result = SavingsService(ctx.obj["db"]).contribute(goal_id, ctx.obj["user_id"], value)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"'{result.goal.name}': {format_money(result.previous_amount)} -> {format_money(result.new_amount)}"
    )
    for percentage in result.achieved_milestones:
        click.echo(f"Milestone reached: {percentage}%")
    if result.completed:
        click.echo("Goal completed!")


def register_commands(cli):
    """Register savings goal commands with main CLI."""
    cli.add_command(goal_group, name="goal")
