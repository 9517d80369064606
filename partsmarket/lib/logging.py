"""
JSON logging with a per-request correlation id.

Review operations log through `log_with_context` so the review, seller and
reviewer ids land as top-level JSON keys next to the request's correlation id.
"""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional
from contextvars import ContextVar

from partsmarket.lib.settings import settings


# Set by the correlation id middleware for the lifetime of a request
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, context fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            log_data["correlation_id"] = correlation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Fields passed through log_with_context
        log_data.update(getattr(record, "extra_fields", {}))

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", json_format: bool = True) -> None:
    """
    Route all logging to stdout, as JSON lines or plain text.

    SQL echo follows settings.debug; the SQLAlchemy engine logger is otherwise
    held at WARNING.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: Optional[str]) -> None:
    correlation_id_var.set(correlation_id)


def log_with_context(logger: logging.Logger, level: str, message: str, **extra_fields) -> None:
    """
    Log `message` at `level` with `extra_fields` as top-level JSON keys.

    Example:
        log_with_context(logger, "info", "Review created", review_id=12, seller_id=7)
    """
    getattr(logger, level.lower())(message, extra={"extra_fields": extra_fields})


setup_logging(
    level="DEBUG" if settings.debug else settings.log_level,
    json_format=settings.log_json,
)
