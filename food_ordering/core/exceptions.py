"""
Domain Errors

Every error the services raise on purpose derives from OrderingError and
carries the HTTP status the API layer answers with. Anything else reaching
the API boundary is treated as an unexpected 500.
"""

from typing import Any, Optional


class OrderingError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    default_message: str = "Unexpected error"

    def __init__(self, message: Optional[str] = None, detail: Any = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(OrderingError):
    """Malformed or missing input."""

    status_code = 400
    default_message = "Validation failed"


class NotFoundError(OrderingError):
    """Referenced entity is absent, or not owned by the caller."""

    status_code = 404
    default_message = "Not found"


class UnavailableError(OrderingError):
    """A menu item exists but cannot be ordered right now."""

    status_code = 400
    default_message = "Menu item is not available"

    def __init__(self, menu_item_id: int, name: Optional[str] = None):
        self.menu_item_id = menu_item_id
        label = name or f"Menu item with ID {menu_item_id}"
        super().__init__(f"{label} is currently unavailable", detail={"menu_item_id": menu_item_id})


class Unauthenticated(OrderingError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Authentication required"


class StorageError(OrderingError):
    """The database rejected or failed a statement or transaction."""

    status_code = 500
    default_message = "Storage failure"
