"""Structured logging setup for twoauth.

The library modules only obtain loggers through :func:`get_logger` and emit
structured events. Output is configured once by the host application (the CLI
calls :func:`setup_logging`). Every logger wraps a stdlib logger under the
``twoauth`` hierarchy, which carries a ``NullHandler``, so an embedding
application that never configures logging sees nothing.
"""

import logging
import sys
from typing import Any

import structlog


NOISY_LOGGERS = ("httpx", "httpcore")

logging.getLogger("twoauth").addHandler(logging.NullHandler())


def setup_logging(
    json_logs: bool = False,
    log_level_name: str = "INFO",
    log_file: str | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        json_logs: Render events as JSON lines instead of the console renderer
        log_level_name: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path; when set, events are also written there as JSON
    """
    level = getattr(logging, log_level_name.upper(), logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    renderer: Any
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        )
    )
    handlers: list[logging.Handler] = [console_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=shared_processors,
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.format_exc_info,
                    structlog.processors.JSONRenderer(),
                ],
            )
        )
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to ``name`` (typically ``__name__``)."""
    return structlog.wrap_logger(  # type: ignore[no-any-return]
        logging.getLogger(name), wrapper_class=structlog.stdlib.BoundLogger
    )
