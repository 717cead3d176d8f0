"""Structured JSON logging for production observability"""

import logging
import sys
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from smart_lending.config import settings
from smart_lending.utils.date_utils import utcnow


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = utcnow().isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_lifecycle_event(
    operation: str,
    application_number: str,
    status: int,
    transaction_id: Optional[str],
    duration_ms: float,
) -> None:
    """Log one completed lifecycle operation for audit and analysis"""
    logging.getLogger("smart_lending.lifecycle").info(
        "Lifecycle operation completed",
        extra={
            "operation": operation,
            "application_number": application_number,
            "application_status": status,
            "transaction_id": transaction_id,
            "duration_ms": duration_ms,
        },
    )
