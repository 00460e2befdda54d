"""
Structured logging configuration using structlog.

Three output formats, selected by LOG_FORMAT:
  - console: pretty, coloured lines for local development
  - json: one JSON object per line
  - tskv: tab-separated key=value lines for log shippers that expect TSKV
"""

import json
import logging
import sys

import structlog

from cinema_booking.core.config import get_settings


def _tskv_escape(value) -> str:
    if not isinstance(value, str):
        value = json.dumps(value, default=str, ensure_ascii=False)
    return (
        value.replace("\\", "\\\\")
        .replace("\t", "\\t")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def render_tskv(logger, method_name: str, event_dict: dict) -> str:
    """Render an event dict as a TSKV line.

    ``level`` and ``event`` lead the line, the remaining keys follow in
    sorted order so lines are stable across runs.
    """
    parts = ["tskv"]
    for key in ("timestamp", "level", "event"):
        if key in event_dict:
            parts.append(f"{key}={_tskv_escape(event_dict.pop(key))}")
    for key in sorted(event_dict):
        parts.append(f"{key}={_tskv_escape(event_dict[key])}")
    return "\t".join(parts)


def _select_renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    if log_format == "tskv":
        return render_tskv
    return structlog.dev.ConsoleRenderer(colors=True)


def setup_logging() -> None:
    settings = get_settings()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    # Machine-readable formats need tracebacks flattened into the event
    if settings.LOG_FORMAT != "console":
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _select_renderer(settings.LOG_FORMAT),
        ]
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Silence noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
