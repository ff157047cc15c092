"""Structured JSON logging for production observability"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from library_lending.config import settings

logger = logging.getLogger("library_lending")

# Set by the request-id middleware for the lifetime of one HTTP request
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    """Tag records that carry no request id with the one of the current request"""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_ctx.get()
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers
    root.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)


def log_loan_event(event: str, loan, request_id: str | None = None, **fields: Any) -> None:
    """Log a lifecycle transition with the loan's identifying fields"""
    logger.info(
        event.replace("_", " ").capitalize(),
        extra={
            "request_id": request_id or request_id_ctx.get(),
            "step": event,
            "loan_id": loan.id,
            "book_id": loan.book_id,
            "member_id": loan.member_id,
            "status": loan.status,
            "fine_cents": loan.fine_cents,
            **fields,
        },
    )
