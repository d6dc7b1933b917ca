"""structlog rendering for every stdlib logger in the process."""

from __future__ import annotations

import logging
import sys

import structlog

# Libraries that are chatty at INFO
_QUIET_LOGGERS = ("uvicorn.access", "asyncio")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


def setup_logging(level: str = "INFO", fmt: str = "json", log_file: str = "") -> None:
    """Route stdlib and structlog records through one structlog formatter.

    Records go to stdout, to ``log_file`` when given, and to the dashboard
    ring buffer behind ``GET /api/logs``.

    Args:
        level: Root level name; unknown names fall back to INFO.
        fmt: "json" (one object per line) or "console".
        log_file: Extra file destination. Empty disables it.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(fmt)],
    )

    from ecoflux.dashboard.log_buffer import log_buffer

    destinations: list[logging.Handler] = [logging.StreamHandler(sys.stdout), log_buffer]
    if log_file:
        destinations.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in destinations:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
