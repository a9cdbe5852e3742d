"""Credit utilization alert commands."""

import click

from pennywise.cli.services import build_alert_service
from pennywise.domain.entities import AlertStatus


@click.group()
def alerts_group():
    """Check and list credit utilization alerts."""
    pass


@alerts_group.command("list")
@click.option(
    "--status", type=click.Choice([s.value for s in AlertStatus]), help="Only alerts with this status"
)
@click.pass_context
def list_alerts(ctx, status: str | None):
    """List alerts, most recent first."""
    alerts = build_alert_service(ctx).list_alerts(ctx.obj["user_id"], status=status)
    if not alerts:
        click.echo("No alerts found.")
        return

    for alert in alerts:
        click.echo(
            f"ID: {alert.id:3d} | {alert.triggered_at:%Y-%m-%d %H:%M} | "
            f"{alert.priority.value:8s} | {alert.status.value:12s} | {alert.message}"
        )


@alerts_group.command("check")
@click.pass_context
def check_alerts(ctx):
    """Evaluate every credit card against its utilization thresholds."""
    service = build_alert_service(ctx)
    user_id = ctx.obj["user_id"]

    for utilization in service.utilization_summary(user_id):
        click.echo(
            f"{utilization.account_name}: {utilization.utilization_percentage}% of limit used"
        )

    created = service.process_user_alerts(user_id)
    if not created:
        click.echo("No new alerts.")
        return
    click.echo(f"Raised {len(created)} alert(s):")
    for alert in created:
        click.echo(f"  [{alert.priority.value}] {alert.message}")


def register_commands(cli):
    """Register alert commands with main CLI."""
    cli.add_command(alerts_group, name="alerts")
