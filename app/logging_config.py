"""
JSON logging for the inventory API.

Every record is written to stdout as a single JSON object:

    {
        "timestamp": "2026-10-19T09:14:03.120551+00:00",
        "level": "INFO",
        "logger": "app.service",
        "message": "Adjusted stock of 3f2c... by -2",
        "service_name": "inventory-api"
    }

ERROR records raised with ``logger.exception`` also carry an ``exception`` field
holding the formatted traceback.

Usage:
    from app.logging_config import setup_logging
    setup_logging("inventory-api", level="INFO")
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

_HANDLER_NAME = "inventory-json"


class JsonFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "service_name"):
            log_data["service_name"] = record.service_name
        if hasattr(record, "product_id"):
            log_data["product_id"] = record.product_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class ServiceFilter(logging.Filter):
    """Stamps the service name onto every record passing through the handler."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        return True


def setup_logging(service_name: str, level: str = "INFO") -> None:
    """Install the JSON handler on the root logger. Safe to call more than once."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(ServiceFilter(service_name))
    root.addHandler(handler)
