"""Structured logging configuration."""

import logging
import sys
from typing import Any

from app.core.config import settings

# Extra attributes copied into structured output when a caller passes them
# through ``logger.info(..., extra={...})``.
_STRUCTURED_EXTRAS = ("request_id", "user_id", "patient_id", "stage", "action")


class StructuredFormatter(logging.Formatter):
    """Formatter emitting ``key=value`` pairs for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _STRUCTURED_EXTRAS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return " ".join(f"{k}={v}" for k, v in log_data.items())


def setup_logging() -> None:
    """Configure application logging."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if settings.is_dev:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = StructuredFormatter()

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


class AuditLogger:
    """Mirrors persisted audit events to the ``audit`` logger."""

    def __init__(self) -> None:
        self.logger = logging.getLogger("audit")

    def log(
        self,
        action: str,
        actor_type: str,
        actor_id: str,
        entity_type: str,
        entity_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.logger.info(
            f"AUDIT: action={action} actor={actor_type}:{actor_id} "
            f"entity={entity_type}:{entity_id} metadata={metadata or {}}",
            extra={"action": action, "user_id": actor_id},
        )


audit_logger = AuditLogger()
