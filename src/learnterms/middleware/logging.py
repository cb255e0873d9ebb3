"""Structured logging configuration with structlog."""

import logging

import structlog

from learnterms.config import Settings

# third-party loggers that drown out request logs at INFO
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "asyncio")


def setup_logging(settings: Settings) -> None:
    """Configure structlog once per process.

    ``log_format="json"`` renders one JSON object per line with tracebacks as
    structured dicts; anything else uses the coloured console renderer.
    """
    json_output = settings.log_format == "json"
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors += [structlog.processors.UnicodeDecoder(), structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s")
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
