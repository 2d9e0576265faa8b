"""
Logging Configuration for Sales Reports

Structured logging shared by the report pipeline, the CLI and the API.

Every event carries the application name and version. Events emitted while a
report is being built also carry ``report_type`` and ``evaluation_date``,
which ReportBuilder binds through ``structlog.contextvars``. Output goes to
stderr so reports printed by the CLI on stdout stay machine-readable.
"""

import logging
import sys
from typing import Any, Callable, Dict, List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import ProcessorFormatter, add_log_level

from sales_reports.config.settings import Settings, get_settings

EventDict = Dict[str, Any]

# Libraries that are chatty at INFO and only interesting when debugging
QUIET_LOGGERS = ["aiosqlite", "asyncio", "sqlalchemy.pool"]


def add_app_context(settings: Settings) -> Callable[[Any, str, EventDict], EventDict]:
    """Processor stamping app name and version on every event"""
    app, version = settings.app_name, settings.version

    def processor(_: Any, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", app)
        event_dict.setdefault("version", version)
        return event_dict

    return processor


def build_processors(settings: Settings) -> List[Any]:
    """Processors applied to structlog and foreign (stdlib) events alike"""
    return [
        structlog.contextvars.merge_contextvars,
        add_app_context(settings),
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str):
    if log_format == "json":
        return JSONRenderer(default=str)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        log_format: Override output format (json or text)
    """
    settings = get_settings()
    level = (log_level or settings.monitoring.log_level).upper()
    log_format = (log_format or settings.monitoring.log_format).lower()
    numeric_level = getattr(logging, level, logging.INFO)

    shared_processors = build_processors(settings)

    structlog.configure(
        processors=shared_processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        ProcessorFormatter(processor=_renderer(log_format), foreign_pre_chain=shared_processors)
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)

    for name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False
        uvicorn_logger.setLevel(numeric_level)

    # SQL echo is controlled by POSTGRES_ECHO, not by the root level
    sql_level = logging.INFO if settings.database.echo else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(max(sql_level, numeric_level))
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, numeric_level))

    structlog.get_logger(__name__).debug(
        "Logging configured",
        level=level,
        format=log_format,
        environment=settings.app_env,
    )
