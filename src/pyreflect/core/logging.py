"""Structured logging for pyreflect.

structlog events are routed through stdlib logging so every configured
output gets its own handler, level and renderer (console or JSON).

Events emitted while a file is parsed, indexed or resolved carry the
``path`` and ``module`` of that file, bound with :func:`source_context`.
A :class:`~pyreflect.core.errors.ReflectionError` passed as ``error=``
is expanded into its code, name and details.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

import structlog

from pyreflect.core.errors import ReflectionError

if TYPE_CHECKING:
    from pyreflect.config.models import LoggingConfig, LogOutputConfig

_STREAM_NAMES = ("stderr", "stdout")

# First file destination of the active configuration
_log_file_path: Path | None = None


def get_log_file_path() -> Path | None:
    """File the active configuration writes to, ``None`` for console-only setups."""
    return _log_file_path


def _stream(destination: str) -> TextIO | None:
    if destination not in _STREAM_NAMES:
        return None
    return sys.stderr if destination == "stderr" else sys.stdout


def _level_of(name: str | None, default: int) -> int:
    if not name:
        return default
    return logging.getLevelNamesMapping().get(name.upper(), default)


def _expand_reflection_error(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    error = event_dict.get("error")
    if isinstance(error, ReflectionError):
        event_dict["error"] = error.to_dict()
    return event_dict


@contextmanager
def source_context(path: Path | str, module: str) -> Iterator[None]:
    """Bind the file being processed to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(path=str(path), module=module):
        yield


def _formatter_for(
    output: LogOutputConfig, shared: list[structlog.types.Processor]
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = _stream(output.destination)
        renderer = structlog.dev.ConsoleRenderer(
            colors=stream is not None and stream.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)


def _handler_for(destination: str) -> logging.Handler:
    stream = _stream(destination)
    if stream is not None:
        return logging.StreamHandler(stream)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog and the root logger.

    Args:
        config: Full logging configuration. Takes precedence over the
            simple parameters when given.
        json_format: Render a single stderr output as JSON instead of console text.
        level: Level of the single stderr output.
    """
    global _log_file_path
    from pyreflect.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    default_level = _level_of(config.level, logging.INFO)

    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _expand_reflection_error,
    ]
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(default_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration must take effect for loggers created earlier
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(default_level)

    _log_file_path = None
    for output in config.outputs:
        if output.destination not in _STREAM_NAMES and _log_file_path is None:
            _log_file_path = Path(output.destination)
        handler = _handler_for(output.destination)
        handler.setLevel(_level_of(output.level, default_level))
        handler.setFormatter(_formatter_for(output, shared))
        root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger optionally bound to a ``component`` name."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(component=name)
    return logger  # type: ignore[no-any-return]
