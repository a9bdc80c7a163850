"""CLI utilities."""

from pathlib import Path
from typing import Any

import click

from pyreflect.config.loader import find_project_root, load_config
from pyreflect.core.errors import ConfigError
from pyreflect.core.logging import configure_logging
from pyreflect.engine import ReflectionEngine

search_path_option = click.option(
    "-s",
    "--search-path",
    "search_paths",
    multiple=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Source root to locate modules in (repeatable). Defaults to the config value.",
)


def _verbose() -> bool:
    ctx = click.get_current_context(silent=True)
    obj = ctx.find_root().obj if ctx is not None else None
    return bool(obj and obj.get("verbose"))


def build_engine(search_paths: tuple[Path, ...]) -> ReflectionEngine:
    """Engine configured from the nearest pyreflect.yaml.

    Search paths given on the command line replace the configured ones.
    Logging follows the config file unless ``-v`` was given.
    """
    overrides: dict[str, Any] = {}
    if search_paths:
        overrides = {"locator": {"search_paths": [str(p) for p in search_paths]}}
    try:
        config = load_config(find_project_root(), **overrides)
    except ConfigError as e:
        raise click.ClickException(e.message) from e
    if not _verbose():
        configure_logging(config=config.logging)
    if not config.locator.search_paths:
        config.locator.search_paths = [str(Path.cwd())]
    return ReflectionEngine(config=config)
