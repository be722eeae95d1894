"""
Core module initialization.
Exports configuration, logging utilities and the domain error taxonomy.
"""

from food_ordering.core.config import (
    get_settings,
    setup_logging,
    Settings,
    EnvironmentMode,
    FulfillmentMode,
)
from food_ordering.core.exceptions import (
    OrderingError,
    ValidationError,
    NotFoundError,
    UnavailableError,
    Unauthenticated,
    StorageError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "FulfillmentMode",
    "OrderingError",
    "ValidationError",
    "NotFoundError",
    "UnavailableError",
    "Unauthenticated",
    "StorageError",
]
