# src/indexsync/core/logging.py
"""Structured logging for indexsync.

structlog events and stdlib records share one handler on stderr, so the
JSON or console format is the same whichever API a module logs through.
stdout is left to command output.
"""

import hashlib
import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# HTTP client libraries log every connection at DEBUG
_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3")


def _renderers(json_output: bool) -> list[Any]:
    if json_output:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    # ConsoleRenderer formats exceptions itself
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def configure_logging(*, json_output: bool = False, level: str = "INFO") -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Args:
        json_output: Render JSON lines instead of console output.
        level: Root log level name (DEBUG, INFO, WARNING, ERROR).
    """
    log_level = logging.getLevelName(level.upper())
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration must reach loggers created at import time
        cache_logger_on_first_use=False,
    )

    formatter = ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[ProcessorFormatter.remove_processors_meta, *_renderers(json_output)],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a bound logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Bound structlog logger.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def token_fingerprint(token: str) -> str:
    """Short, non-reversible identifier for a session token.

    Tokens are credentials and must never appear in logs; the fingerprint
    lets operators correlate refreshes without exposing the value.
    """
    if not token:
        return "<empty>"
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]
