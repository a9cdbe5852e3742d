"""Initialize default categories."""

import click

from pennywise.cli.error_handling import handle_domain_error
from pennywise.domain.category import CategoryService
from pennywise.domain.errors import DomainError


@click.command("init-categories")
@click.option("--force", is_flag=True, help="Add missing defaults even if categories exist")
@click.pass_context
def init_categories(ctx, force: bool):
    """Initialize the user's default income and expense category tree."""
    service = CategoryService(ctx.obj["db"])
    user_id = ctx.obj["user_id"]

    if service.list_categories(user_id) and not force:
        click.echo("Categories already exist. Use --force to add missing defaults.")
        return

    click.echo("Creating default category tree...")
    try:
        created = service.init_default_categories(user_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Successfully created {created} categories.")


def register_commands(cli):
    """Register init-categories command with main CLI."""
    cli.add_command(init_categories)
