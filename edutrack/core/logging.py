"""Structlog configuration for edutrack.

Services log snake_case events (``lesson_completed``, ``questionnaire_submitted``)
with keyword fields. Every event is enriched with:
- the operation context (operation_id, user_id, institution_id, correlation_id)
- app name, version and environment

Output goes to stdout (console or JSON) and, when ``log_to_file`` is set, to a
rotating JSON file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from structlog.types import EventDict, Processor

from edutrack.core.context import get_context


if TYPE_CHECKING:
    from edutrack.config.settings import Settings


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def add_context_processor(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Attach the current operation context; explicit event fields win."""
    for key, value in get_context().items():
        event_dict.setdefault(key, value)
    return event_dict


def drop_unset_fields(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Remove fields logged as None (optional arguments left out by callers)."""
    return {key: value for key, value in event_dict.items() if value is not None}


def add_app_info_processor(
    app_name: str,
    app_version: str,
    environment: str,
) -> Processor:
    """Create a processor that stamps events with application info.

    Args:
        app_name: Application name.
        app_version: Application version.
        environment: Environment name (development, production, etc.).
    """
    app_info = {"app": app_name, "version": app_version, "environment": environment}

    def processor(
        logger: logging.Logger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict.update(app_info)
        return event_dict

    return processor


def setup_file_handler(
    log_dir: Path,
    log_file: str,
    max_bytes: int,
    backup_count: int,
    log_level: str,
) -> RotatingFileHandler:
    """Rotating file handler writing ``log_dir / log_file``."""
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(log_dir / log_file),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(_level(log_level))
    return handler


def build_shared_processors(settings: "Settings") -> list[Processor]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_processor,
        drop_unset_fields,
        add_app_info_processor(
            settings.app_name, settings.app_version, settings.environment
        ),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_include_caller_info:
        callsite = structlog.processors.CallsiteParameter
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[callsite.FILENAME, callsite.LINENO, callsite.FUNC_NAME]
            )
        )

    return processors


def build_renderer(settings: "Settings") -> Processor:
    """JSON for log shippers, colored key-value output on a terminal."""
    if settings.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stdout.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_structlog(
    settings: "Settings",
    log_dir: Path | str | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once: root handlers are replaced, not stacked.

    Args:
        settings: Application settings.
        log_dir: Directory for log files. Defaults to ``settings.log_dir``.
    """
    shared = build_shared_processors(settings)

    def formatter(renderer: Processor) -> structlog.stdlib.ProcessorFormatter:
        return structlog.stdlib.ProcessorFormatter(
            processor=renderer, foreign_pre_chain=shared
        )

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(_level(settings.log_level))
    console.setFormatter(formatter(build_renderer(settings)))
    handlers: list[logging.Handler] = [console]

    if settings.log_to_file:
        file_handler = setup_file_handler(
            log_dir=Path(log_dir or settings.log_dir),
            log_file=f"{settings.app_name}.log",
            max_bytes=settings.log_file_max_bytes,
            backup_count=settings.log_file_backup_count,
            log_level=settings.log_level,
        )
        # Files are always JSON, whatever the console format
        file_handler.setFormatter(formatter(structlog.processors.JSONRenderer()))
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(_level(settings.log_level))
    for handler in handlers:
        root_logger.addHandler(handler)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for noisy in ("redis", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger (``__name__`` of the calling module by convention)."""
    return structlog.get_logger(name)
