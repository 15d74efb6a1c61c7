# app/errors.py
from typing import Optional


class InventoryError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(InventoryError):
    status_code = 400
    default_message = "Invalid input"


class NotFound(InventoryError):
    status_code = 404
    default_message = "Not found"


class StoreError(InventoryError):
    """Connectivity or internal store failure. The message is never sent to callers."""

    status_code = 500
