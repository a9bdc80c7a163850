"""pyreflect CLI - pyreflect command."""

import click

from pyreflect.cli.file import file_command
from pyreflect.cli.show import show_command
from pyreflect.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="pyreflect")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """pyreflect - inspect Python source without importing it."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(show_command, name="show")
cli.add_command(file_command, name="file")


if __name__ == "__main__":
    cli()
