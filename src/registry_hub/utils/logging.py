"""Structured logging for RegistryHub, built on structlog.

Every module logs dotted event names with key/value context::

    >>> from registry_hub.utils.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("bulk_import.pass_completed", pass_name="names", rows=1200)

Settings consulted (``REG_`` prefix):

- ``LOG_LEVEL``: stdlib level name, INFO when unknown
- ``LOG_FORMAT``: ``json`` (default) or ``console`` for a human-readable tty
- ``LOG_TO_FILE`` / ``LOG_FILE_DIR``: add a midnight-rotated
  ``registryhub-YYYYMMDD.log`` next to stdout

Store connection strings, passwords and tokens are masked before rendering.
"""

import logging
import re
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, MutableMapping

import structlog
from structlog.types import EventDict, Processor

from registry_hub.config import get_settings

LOG_FILE_BACKUPS = 30

SENSITIVE_KEYS = re.compile(
    r"password|token|secret|service_key|^database_ur[il]$", re.IGNORECASE
)
# user:password@ inside a connection string
_CREDENTIALS_IN_URI = re.compile(r"(?P<scheme>[a-z0-9+]+://)[^/@\s]+@", re.IGNORECASE)

REDACTED_VALUE = "[REDACTED]"


def _redact_value(value: Any) -> Any:
    if isinstance(value, str):
        return _CREDENTIALS_IN_URI.sub(r"\g<scheme>" + REDACTED_VALUE + "@", value)
    if isinstance(value, dict):
        return sanitize_for_logging(value)
    return value


def sanitize_for_logging(data: Dict[str, Any]) -> Dict[str, Any]:
    """Mask secret-looking keys and credentials embedded in URIs.

    Example:
        >>> sanitize_for_logging({"password": "hunter2", "schema": "public"})
        {'password': '[REDACTED]', 'schema': 'public'}
    """
    return {
        key: REDACTED_VALUE if SENSITIVE_KEYS.search(key) else _redact_value(value)
        for key, value in data.items()
    }


def sanitization_processor(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> MutableMapping[str, Any]:
    return sanitize_for_logging(dict(event_dict))


def _log_file_path(log_dir: Path) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"registryhub-{datetime.now():%Y%m%d}.log"


def _build_handlers(level: int) -> List[logging.Handler]:
    settings = get_settings()
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.log_to_file:
        handlers.append(
            TimedRotatingFileHandler(
                filename=str(_log_file_path(Path(settings.log_file_dir))),
                when="midnight",
                interval=1,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setLevel(level)
    return handlers


def _renderer() -> Processor:
    if get_settings().log_format.lower() == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def configure_logging() -> None:
    """(Re)build the stdlib handlers and the structlog processor chain."""
    level = logging.getLevelName(get_settings().log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in _build_handlers(level):
        root.addHandler(handler)
    root.setLevel(level)

    processors: List[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        sanitization_processor,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _renderer(),
    ]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)
