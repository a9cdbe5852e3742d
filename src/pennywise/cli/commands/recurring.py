"""Recurring payment commands."""

from dataclasses import replace

import click

from pennywise.cli.account_resolution import resolve_account_or_exit
from pennywise.cli.error_handling import handle_domain_error
from pennywise.cli.services import build_transaction_service
from pennywise.domain.account import AccountService
from pennywise.domain.budget import BudgetImpactService
from pennywise.domain.errors import DomainError
from pennywise.domain.recurring import RecurringPaymentService
from pennywise.utils.amount_parser import format_money, parse_amount


@click.group()
def recurring_group():
    """Detect and manage recurring payments."""
    pass


@recurring_group.command("detect")
@click.option("--account", help="Only look at this account (name or ID)")
@click.option("--min-occurrences", type=int, help="Minimum number of matching charges")
@click.option("--confidence", type=float, help="Minimum confidence (0.1 - 1.0)")
@click.option("--save", is_flag=True, help="Track every newly detected pattern")
@click.pass_context
def detect(ctx, account: str | None, min_occurrences: int | None, confidence: float | None, save: bool):
    """Scan expense history for recurring charges.

    Examples:
        pennywise recurring detect
        pennywise recurring detect --account Checking --confidence 0.8 --save
    """
    db = ctx.obj["db"]
    user_id = ctx.obj["user_id"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None

    overrides = {}
    if min_occurrences is not None:
        overrides["min_occurrences"] = min_occurrences
    if confidence is not None:
        overrides["confidence_threshold"] = confidence

    service = RecurringPaymentService(db, build_transaction_service(ctx))
    try:
        config = replace(ctx.obj["settings"].detection_config(), **overrides)
        detections = service.detect_patterns(user_id, account_id=account_id, config=config)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not detections:
        click.echo("No recurring patterns found.")
        return

    click.echo(f"\nDetected {len(detections)} recurring pattern(s):")
    click.echo("-" * 90)
    for detection in detections:
        pattern = detection.pattern
        marker = "new" if detection.is_new_pattern else f"tracked #{detection.existing_payment_id}"
        click.echo(
            f"{detection.suggested_name[:28]:28s} | {format_money(pattern.average_amount):>10s} | "
            f"{pattern.frequency.value:10s} | confidence {pattern.confidence:.2f} | "
            f"next {pattern.next_expected_date} | {marker}"
        )

    if save:
        saved = 0
        for detection in detections:
            if not detection.is_new_pattern:
                continue
            try:
                payment = service.create_from_pattern(
                    user_id,
                    detection.pattern,
                    name=detection.suggested_name,
                    category_id=detection.suggested_category_id,
                )
            except DomainError as e:
                handle_domain_error(ctx, e)
            click.echo(f"Tracking '{payment.name}' (ID: {payment.id})")
            saved += 1
        click.echo(f"Saved {saved} recurring payment(s).")


@recurring_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include cancelled payments")
@click.pass_context
def list_payments(ctx, include_inactive: bool):
    """List tracked recurring payments by next due date."""
    service = RecurringPaymentService(ctx.obj["db"])
    payments = service.list_recurring_payments(
        ctx.obj["user_id"], is_active=None if include_inactive else True
    )
    if not payments:
        click.echo("No recurring payments found.")
        return

    click.echo("\nRecurring payments:")
    click.echo("-" * 84)
    for payment in payments:
        click.echo(
            f"ID: {payment.id:3d} | {payment.name[:24]:24s} | {format_money(payment.amount):>10s} | "
            f"{payment.frequency.value:10s} | due {payment.next_due_date} | {payment.status.value}"
        )


@recurring_group.command("analysis")
@click.option("--budget", "total_budget", help="Total monthly budget to compare against")
@click.pass_context
def analysis(ctx, total_budget: str | None):
    """Show what recurring payments cost and where to save."""
    budget = None
    if total_budget is not None:
        try:
            budget = parse_amount(total_budget)
        except ValueError as e:
            click.echo(f"Error: Invalid budget: {e}", err=True)
            ctx.exit(1)

    settings = ctx.obj["settings"]
    service = BudgetImpactService(ctx.obj["db"], default_budget_share=settings.default_budget_share)
    try:
        impact = service.analyze(ctx.obj["user_id"], total_budget=budget)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo("\nRecurring spending:")
    click.echo(f"  Monthly:   {format_money(impact.total_monthly)}")
    click.echo(f"  Quarterly: {format_money(impact.total_quarterly)}")
    click.echo(f"  Yearly:    {format_money(impact.total_yearly)}")

    if impact.category_breakdown:
        click.echo("\nBy category:")
        for item in impact.category_breakdown:
            click.echo(
                f"  {item.category_name[:24]:24s} {format_money(item.monthly_amount):>12s} "
                f"{item.percentage:6.1f}%  ({item.payment_count} payment(s))"
            )

    allocation = impact.allocation
    click.echo(
        f"\nBudget: {format_money(allocation.total_budget)} | "
        f"Recurring: {allocation.utilization_percentage:.1f}% | "
        f"Available: {format_money(allocation.available_spending)}"
    )

    if impact.suggestions:
        click.echo("\nSuggestions:")
        for suggestion in impact.suggestions:
            click.echo(
                f"  [{suggestion.priority}] {suggestion.suggestion} "
                f"(save up to {format_money(suggestion.potential_savings)}/month)"
            )


@recurring_group.command("due")
@click.option("--grace-days", type=int, default=3, show_default=True, help="Days past due before a payment counts as missed")
@click.option("--process", "process_due", is_flag=True, help="Post transactions for every due cycle")
@click.pass_context
def due(ctx, grace_days: int, process_due: bool):
    """Show missed payments, or post due payments with --process."""
    user_id = ctx.obj["user_id"]
    service = RecurringPaymentService(ctx.obj["db"], build_transaction_service(ctx))

    if process_due:
        result = service.process_due_payments(user_id)
        click.echo(
            f"Posted {len(result.created_transactions)} transaction(s) for "
            f"{len(result.updated_payments)} payment(s)."
        )
        for error in result.errors:
            click.echo(f"Error: payment {error['payment_id']}: {error['error']}", err=True)
        return

    missed = service.detect_missed_payments(user_id, grace_period_days=grace_days)
    if not missed:
        click.echo("No missed payments.")
        return

    click.echo("\nMissed payments:")
    for item in missed:
        click.echo(
            f"  {item.payment_name} ({item.account_name}): {format_money(item.expected_amount)} "
            f"due {item.expected_date}, {item.days_overdue} day(s) overdue, "
            f"{item.missed_consecutive_payments} cycle(s) missed"
        )


def register_commands(cli):
    """Register recurring payment commands with main CLI."""
    cli.add_command(recurring_group, name="recurring")
