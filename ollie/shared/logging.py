"""
Structured JSON logging for Ollie.

Every record is one JSON object. Child ids are hashed before they reach a
handler, so logs never carry the raw profile id.
"""

import hashlib
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from ollie.shared.config import settings

# Fields copied verbatim from the record when present
CONTEXT_FIELDS = ("child_id", "action", "session_id")

# HTTP clients under the LLM SDKs log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")

_STANDARD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def anonymize_child_id(child_id: Any) -> str:
    """Stable short hash of a child id."""
    digest = hashlib.sha256(str(child_id).encode("utf-8")).hexdigest()
    return f"child_{digest[:12]}"


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value

        extras = {
            key: str(value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and key not in CONTEXT_FIELDS
        }
        payload.update(extras)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


class ChildIdFilter(logging.Filter):
    """Replaces raw child ids with their hash."""

    def filter(self, record: logging.LogRecord) -> bool:
        child_id = getattr(record, "child_id", None)
        if child_id is not None and not str(child_id).startswith("child_"):
            record.child_id = anonymize_child_id(child_id)
        return True


def _handler(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(StructuredFormatter())
    handler.addFilter(ChildIdFilter())
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None
) -> logging.Logger:
    """
    Configure the root logger for JSON output.

    Console output goes to stderr so the chat front end owns stdout.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for file logging
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    log_file = log_file or settings.log_file

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(_handler(logging.StreamHandler(sys.stderr)))

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8")))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    child_id: Optional[str] = None,
    action: Optional[str] = None,
    session_id: Optional[str] = None,
    **kwargs
):
    """Log with the learner context attached as structured fields."""
    context = {"child_id": child_id, "action": action, "session_id": session_id}
    extra = {key: value for key, value in context.items() if value}
    extra.update(kwargs)
    logger.log(level, message, extra=extra)
