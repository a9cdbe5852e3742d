"""Main CLI entry point."""

import click

from pennywise.config import Settings, configure_logging
from pennywise.database.factories import create_database, create_sqlite_database
from pennywise.domain.errors import DomainError
from pennywise.domain.user import UserService

# Import and register all commands at module level
from pennywise.cli.commands import (
    account,
    add,
    alerts,
    goal,
    init_categories,
    recurring,
    report,
    serve,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides PENNYWISE_DB_PATH environment variable)",
    envvar="PENNYWISE_DB_PATH",
)
@click.option(
    "--user",
    "user_id",
    default="local",
    show_default=True,
    envvar="PENNYWISE_USER",
    help="User the commands act on (overrides PENNYWISE_USER environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, user_id: str):
    """Pennywise - personal finance tracking.

    Track accounts and transactions, detect recurring payments, follow
    savings goals and watch credit card utilization.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        settings = Settings()
        configure_logging(settings.log_level)
        if db_path:
            db = create_sqlite_database(database_path=db_path)
        else:
            db = create_database(settings.resolved_database_url())
        db.connect()
        db.initialize_schema()
        ctx.call_on_close(db.disconnect)

        try:
            UserService(db).ensure_user(user_id)
        except DomainError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

        ctx.obj["db"] = db
        ctx.obj["user_id"] = user_id
        ctx.obj["settings"] = settings


# Register all commands
account.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
recurring.register_commands(cli)
report.register_commands(cli)
goal.register_commands(cli)
alerts.register_commands(cli)
init_categories.register_commands(cli)
serve.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
