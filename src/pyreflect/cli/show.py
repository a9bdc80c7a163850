"""pyreflect show command - summarize a class or function."""

import json
from pathlib import Path
from typing import Any

import click

from pyreflect.cli.utils import build_engine, search_path_option
from pyreflect.core.errors import ReflectionError
from pyreflect.reflection.base import Modifier
from pyreflect.reflection.function import ReflectionFunction
from pyreflect.reflection.klass import ReflectionClass


def _class_summary(klass: ReflectionClass) -> dict[str, Any]:
    return {
        "name": klass.get_name(),
        "kind": klass.get_kind().value,
        "file": klass.get_file_name(),
        "lines": [klass.get_start_line(), klass.get_end_line()],
        "modifiers": Modifier.names(klass.get_modifiers()),
        "bases": klass.get_base_names(),
        "mro": klass.get_mro_names(),
        "interfaces": klass.get_interface_names(),
        "traits": klass.get_trait_names(),
        "constants": {
            c.get_name(): c.get_value_expression() for c in klass.get_reflection_constants()
        },
        "properties": [str(p) for p in klass.get_properties()],
        "methods": [
            f"{m.get_class_name()}.{m.get_name()}{m.format_signature()}"
            for m in klass.get_methods()
        ],
    }


def _function_summary(function: ReflectionFunction) -> dict[str, Any]:
    return {
        "name": function.get_name(),
        "file": function.get_file_name(),
        "lines": [function.get_start_line(), function.get_end_line()],
        "signature": function.format_signature(),
        "doc": function.get_doc_comment(),
    }


@click.command()
@click.argument("name")
@search_path_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show_command(name: str, search_paths: tuple[Path, ...], as_json: bool) -> None:
    """Show a class or function by fully-qualified NAME."""
    engine = build_engine(search_paths)
    try:
        klass = engine.find_class(name)
        if klass is not None:
            summary = _class_summary(klass)
            text = str(klass)
        else:
            function = engine.get_function(name)
            summary = _function_summary(function)
            text = str(function)
    except ReflectionError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps(summary, indent=2, default=repr))
    else:
        click.echo(text)
