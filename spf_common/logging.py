"""
Logging setup for settings-page-framework.

Library modules log through ``logging.getLogger(__name__)``; this module
routes those records (and native structlog loggers) through one structlog
formatter. Log lines emitted inside `option_group_context` carry the option
group they belong to.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

import structlog

from spf_common.config.env import parse_bool_env

ENV_LOG_LEVEL = "SPF_LOG_LEVEL"
ENV_LOG_JSON = "SPF_LOG_JSON"
ENV_LOG_FILE = "SPF_LOG_FILE"


@dataclass(frozen=True)
class LogSettings:
    level: int = logging.INFO
    json: bool = False
    log_file: Optional[str] = None


def _resolve_level(value: str | int | None, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if value is None:
        return logging.INFO
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    return logging.getLevelNamesMapping().get(value.upper(), logging.INFO)


def resolve_log_settings(
    *,
    level: str | int | None = None,
    debug: bool = False,
    log_file: str | None = None,
    json: bool | None = None,
) -> LogSettings:
    """Combine explicit arguments with the SPF_LOG_* environment variables.

    Explicit arguments win; ``debug`` wins over any level.
    """
    env_json = parse_bool_env(os.environ.get(ENV_LOG_JSON))
    return LogSettings(
        level=_resolve_level(level or os.environ.get(ENV_LOG_LEVEL), debug),
        json=bool(env_json if json is None else json),
        log_file=os.environ.get(ENV_LOG_FILE) if log_file is None else log_file,
    )


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _build_handlers(settings: LogSettings) -> list[logging.Handler]:
    renderer: structlog.types.Processor
    if settings.json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_shared_processors(),
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(
    *,
    level: str | int | None = None,
    debug: bool = False,
    log_file: str | None = None,
    json: bool | None = None,
    force: bool = False,
) -> LogSettings:
    """Configure stdlib logging and structlog with a shared formatter.

    A root logger that already has handlers (an embedding host, pytest) is
    left alone unless ``force`` is set; only structlog is configured then.
    """
    settings = resolve_log_settings(level=level, debug=debug, log_file=log_file, json=json)

    root_logger = logging.getLogger()
    if root_logger.handlers and not force:
        _configure_structlog()
        return settings

    if force:
        root_logger.handlers.clear()
    root_logger.setLevel(settings.level)
    for handler in _build_handlers(settings):
        root_logger.addHandler(handler)

    _configure_structlog()
    return settings


@contextmanager
def option_group_context(option_group: str) -> Iterator[None]:
    """Tag every log line emitted inside the block with ``option_group``."""
    with structlog.contextvars.bound_contextvars(option_group=option_group):
        yield
