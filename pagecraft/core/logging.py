"""Structured key=value logging for PageCraft Engine.

Every logger lives under the ``pagecraft`` root, which owns the single stdout
handler. Context travels through ``extra``: ``session_id`` and ``component``
become top-level fields and ``extra_data`` is flattened into the line.
"""

import logging
import sys
from typing import Any

ROOT_LOGGER_NAME = "pagecraft"
CONTEXT_FIELDS = ("session_id", "component")


class StructuredFormatter(logging.Formatter):
    """Render records as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                fields[name] = value
        fields.update(getattr(record, "extra_data", None) or {})

        line = " ".join(f"{key}={value}" for key, value in fields.items())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _resolve_level() -> int:
    try:
        from pagecraft.core.config import get_settings

        settings = get_settings()
    except Exception:
        # Settings may be incomplete (e.g. missing API key) during import
        return logging.INFO

    if settings.LOG_LEVEL:
        level = logging.getLevelName(settings.LOG_LEVEL.upper())
        return level if isinstance(level, int) else logging.INFO
    return logging.DEBUG if settings.PAGECRAFT_ENV == "dev" else logging.INFO


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        root.addHandler(handler)
        root.setLevel(_resolve_level())
        root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``pagecraft`` root.

    Args:
        name: Logger name (typically __name__)
    """
    _configure_root()
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_with_context(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """
    Log with context fields.

    ``session_id`` and ``component`` are promoted to top-level fields; every
    other keyword lands in ``extra_data``.
    """
    extra: dict[str, Any] = {name: kwargs.pop(name) for name in CONTEXT_FIELDS if name in kwargs}
    extra["extra_data"] = kwargs
    logger.log(level, msg, extra=extra)
