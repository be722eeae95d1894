"""
Disabled Fulfillment Service

Used when FULFILLMENT_MODE=disabled. Orders keep their status until an
administrator changes it through the API.
"""

import logging

from food_ordering.services.fulfillment.base import BaseFulfillmentService, FulfillmentResult

logger = logging.getLogger(__name__)


class DisabledFulfillmentService(BaseFulfillmentService):
    """Accepts every order and schedules nothing."""

    @property
    def provider_name(self) -> str:
        return "disabled"

    async def order_placed(self, order_id: int) -> FulfillmentResult:
        logger.debug(f"Fulfillment disabled, order #{order_id} left as is")
        return FulfillmentResult(success=True, order_id=order_id, provider=self.provider_name)

    async def health_check(self) -> bool:
        return True
