"""JSON logging for tgrouter.

Every line is one JSON object. Records emitted while an update is being
routed carry ``update_id``, ``chat_id`` and ``author_id`` as top-level keys
(and ``outcome`` once dispatch finishes) so a single update can be followed
through the log with one filter.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

# Record attributes promoted to top-level JSON keys when present.
UPDATE_FIELDS = ("update_id", "chat_id", "author_id", "outcome")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in UPDATE_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", stream=None) -> None:
    """Send JSON lines to stdout (or ``stream``) from the root logger."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"tgrouter.{name}")


class UpdateLogger(logging.LoggerAdapter):
    """Binds the identity of one inbound update to every record it emits.

    Call sites may add ``outcome=`` and free-form ``context=`` keywords:

        log = UpdateLogger(logger, update_id=7, chat_id=-100, author_id=42)
        log.info("Update dispatched", outcome="no_op", context={"state_id": 3})
    """

    def __init__(
        self,
        logger: logging.Logger,
        update_id: int,
        chat_id: Optional[int] = None,
        author_id: Optional[int] = None,
    ):
        super().__init__(logger, {"update_id": update_id, "chat_id": chat_id, "author_id": author_id})

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = {**self.extra, **(kwargs.get("extra") or {})}
        outcome = kwargs.pop("outcome", None)
        if outcome is not None:
            extra["outcome"] = getattr(outcome, "value", outcome)
        context = kwargs.pop("context", None)
        if context:
            extra["context"] = context
        kwargs["extra"] = extra
        return msg, kwargs
