"""
Structlog setup for the company directory API.

structlog and stdlib records (uvicorn, pymongo) share one processor chain and
one stdout handler. Output is JSON unless stderr is a terminal, where the
console renderer is easier to read. Every event carries the service name.
"""
import logging
import sys

import structlog

SERVICE_NAME = "company-directory-api"

# Third-party loggers and the level they are held at
_LIBRARY_LEVELS = {
    "uvicorn.access": logging.WARNING,
    "pymongo": logging.WARNING,
}


def _add_service(logger, method_name, event_dict):
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _drop_color_message(logger, method_name, event_dict):
    # uvicorn duplicates its message with ANSI codes under this key
    event_dict.pop("color_message", None)
    return event_dict


def configure(log_level: str = "INFO", json_logs: bool | None = None) -> None:
    """Configure structlog and the root logger. Call once, before logging."""
    if json_logs is None:
        json_logs = not sys.stderr.isatty()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service,
        _drop_color_message,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name, level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(level)
