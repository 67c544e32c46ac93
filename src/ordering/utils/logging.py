"""Storefront logging.

Everything, including records from protean and httpx, flows through stdlib
handlers formatted by structlog's ``ProcessorFormatter``. The console gets
JSON when running in production or staging and a rich, coloured rendering
otherwise; the rotating files under ``LOG_DIR`` are always JSON so they can
be shipped as-is.

``storefront_error.log`` only receives ERROR and above. Failed commits and
captured payments that need reconciliation end up there.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

LEVELS_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

JSON_ENVIRONMENTS = ("production", "staging")

# Third-party loggers that are only interesting when something goes wrong
NOISY_LOGGERS = ("protean", "httpx", "httpcore", "stripe", "asyncio")

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def _environment() -> str:
    return (os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    """``LOG_LEVEL`` if set, else the default for ``PROTEAN_ENV`` (INFO when unknown)."""
    default = LEVELS_BY_ENVIRONMENT.get(_environment(), "INFO")
    return os.getenv("LOG_LEVEL", default).upper()


def _pre_chain() -> list:
    """Processors applied to both structlog events and plain stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.ExtraAdder(),
    ]


def _console_chain(environment: str) -> list:
    if environment in JSON_ENVIRONMENTS:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=4),
        )
    ]


def _formatter(*chain) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *chain],
    )


def _rotating_file(path: Path, level, *chain) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(_formatter(*chain))
    return handler


def build_handlers(log_dir: Path, level: str, environment: str) -> list[logging.Handler]:
    """Console plus the two rotating files, all formatted through structlog."""
    log_dir.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(_formatter(*_console_chain(environment)))

    return [
        console,
        _rotating_file(
            log_dir / "storefront.log",
            level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ),
        # Structured tracebacks so failed commits can be queried field by field
        _rotating_file(
            log_dir / "storefront_error.log",
            logging.ERROR,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ),
    ]


def configure_logging(log_dir: Path | None = None, environment: str | None = None) -> None:
    environment = (environment or _environment()).lower()
    level = get_log_level()
    log_dir = Path(log_dir or os.getenv("LOG_DIR", "logs"))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in build_handlers(log_dir, level, environment):
        root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_pre_chain(),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            ),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request_context(**kwargs: Any) -> None:
    """Attach key/values (request id, customer id) to every log line of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
