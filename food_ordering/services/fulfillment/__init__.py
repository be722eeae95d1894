"""
Fulfillment Service Factory

Returns the fulfillment service selected by FULFILLMENT_MODE.

    - FULFILLMENT_MODE=disabled  -> DisabledFulfillmentService
    - FULFILLMENT_MODE=simulated -> SimulatedFulfillmentService (Celery + Redis)
"""

import logging
from functools import lru_cache

from food_ordering.core.config import FulfillmentMode, get_settings
from food_ordering.services.fulfillment.base import (
    BaseFulfillmentService,
    FulfillmentResult,
    ScheduledStep,
)
from food_ordering.services.fulfillment.disabled import DisabledFulfillmentService
from food_ordering.services.fulfillment.simulated import SimulatedFulfillmentService

logger = logging.getLogger(__name__)


@lru_cache()
def get_fulfillment_service() -> BaseFulfillmentService:
    """Get the configured fulfillment service."""
    settings = get_settings()

    if settings.fulfillment_mode == FulfillmentMode.SIMULATED:
        logger.info("Fulfillment Service: Using SimulatedFulfillmentService")
        return SimulatedFulfillmentService()

    logger.info("Fulfillment Service: Using DisabledFulfillmentService")
    return DisabledFulfillmentService()


def reset_fulfillment_service() -> None:
    """Clear the cached service instance."""
    get_fulfillment_service.cache_clear()


__all__ = [
    "get_fulfillment_service",
    "reset_fulfillment_service",
    "BaseFulfillmentService",
    "DisabledFulfillmentService",
    "FulfillmentResult",
    "ScheduledStep",
    "SimulatedFulfillmentService",
]
