"""pyreflect file command - list a file's declarations."""

import json
from pathlib import Path

import click

from pyreflect.cli.utils import build_engine, search_path_option
from pyreflect.core.errors import ReflectionError


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@search_path_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def file_command(path: Path, search_paths: tuple[Path, ...], as_json: bool) -> None:
    """List classes, functions and constants declared in PATH."""
    engine = build_engine(search_paths)
    try:
        namespace = engine.get_file(path).get_file_namespace()
        classes = {name: klass.get_kind().value for name, klass in namespace.get_classes().items()}
        functions = {name: fn.format_signature() for name, fn in namespace.get_functions().items()}
        constants = namespace.get_constants()
    except ReflectionError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        payload = {
            "module": namespace.get_name(),
            "classes": classes,
            "functions": functions,
            "constants": constants,
        }
        click.echo(json.dumps(payload, indent=2, default=repr))
        return

    click.echo(f"Module: {namespace.get_name()}")
    for name, kind in classes.items():
        click.echo(f"  {kind} {name}")
    for name, signature in functions.items():
        click.echo(f"  def {name}{signature}")
    for name, value in constants.items():
        click.echo(f"  {name} = {value!r}")
