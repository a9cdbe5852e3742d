"""Rendering of service errors on the command line."""

import logging

import click

from pennywise.domain.errors import DependencyError, DomainError

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Print ``Error: ...`` to stderr and exit with status 1."""
    logger.debug("%s failed: %r", ctx.command_path, error)
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, DependencyError):
        click.echo("Remove or reassign the dependent records first.", err=True)
    ctx.exit(1)
