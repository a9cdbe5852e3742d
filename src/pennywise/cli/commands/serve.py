"""Run the HTTP API."""

import click
import uvicorn

from pennywise.api.app import create_app


@click.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind")
@click.option("--port", type=int, default=8000, show_default=True, help="Port to listen on")
@click.pass_context
def serve(ctx, host: str, port: int):
    """Serve the JSON API over the same database as the CLI."""
    app = create_app(ctx.obj["settings"], database=ctx.obj["db"])
    click.echo(f"Serving pennywise API on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=ctx.obj["settings"].log_level.lower())


def register_commands(cli):
    """Register serve command with main CLI."""
    cli.add_command(serve)
