"""Service construction for CLI commands, honoring the configured limits."""

import click

from pennywise.domain.alerts import AlertService
from pennywise.domain.transaction import TransactionService


def build_alert_service(ctx: click.Context) -> AlertService:
    settings = ctx.obj["settings"]
    return AlertService(
        ctx.obj["db"],
        min_interval_minutes=settings.alert_min_interval_minutes,
        max_alerts_per_day=settings.alert_max_per_day,
    )


def build_transaction_service(ctx: click.Context) -> TransactionService:
    return TransactionService(ctx.obj["db"], alert_service=build_alert_service(ctx))
