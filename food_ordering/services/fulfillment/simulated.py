"""
Simulated Fulfillment Service

Stands in for a kitchen integration: every placed order gets a fixed
series of status changes queued as Celery tasks with countdowns
(by default confirmed after 2s, preparing after 5s, ready after 15s).

Requires a reachable Redis broker (REDIS_URL).
"""

import logging
from typing import Optional

from kombu.exceptions import OperationalError
import redis.asyncio as aioredis
from redis.exceptions import RedisError

from food_ordering.core.config import get_settings
from food_ordering.core.exceptions import ValidationError
from food_ordering.services.fulfillment.base import (
    BaseFulfillmentService,
    FulfillmentResult,
    ScheduledStep,
)
from food_ordering.services.orders import parse_status
from food_ordering.tasks import advance_order_status

logger = logging.getLogger(__name__)


class SimulatedFulfillmentService(BaseFulfillmentService):
    """
    Queue delayed status changes for every placed order.

    Args:
        steps: (status, delay_seconds) pairs, delays counted from placement
        redis_url: Broker URL checked by health_check()

    Raises:
        ValueError: If a step names an unknown status
    """

    def __init__(
        self,
        steps: Optional[list[tuple[str, int]]] = None,
        redis_url: Optional[str] = None,
    ):
        settings = get_settings()
        self.steps = steps if steps is not None else settings.fulfillment_steps
        self.redis_url = redis_url or settings.redis_url

        for status, _ in self.steps:
            try:
                parse_status(status)
            except ValidationError as e:
                raise ValueError(f"Invalid fulfillment schedule: {e}") from e

        logger.info(
            "SimulatedFulfillmentService initialized: "
            + ", ".join(f"{status}@{delay}s" for status, delay in self.steps)
        )

    @property
    def provider_name(self) -> str:
        return "simulated"

    async def order_placed(self, order_id: int) -> FulfillmentResult:
        queued: list[ScheduledStep] = []

        for status, delay in self.steps:
            try:
                async_result = advance_order_status.apply_async(
                    args=(order_id, status),
                    countdown=delay,
                    retry=False,
                )
            except OperationalError as e:
                logger.error(f"Could not queue status {status!r} for order #{order_id}: {e}")
                return FulfillmentResult(
                    success=False,
                    order_id=order_id,
                    steps=queued,
                    error_message=f"Broker unavailable: {e}",
                    provider=self.provider_name,
                )
            queued.append(ScheduledStep(status=status, delay_seconds=delay, task_id=async_result.id))

        logger.info(f"Order #{order_id}: queued {len(queued)} fulfillment step(s)")
        return FulfillmentResult(
            success=True,
            order_id=order_id,
            steps=queued,
            provider=self.provider_name,
        )

    async def health_check(self) -> bool:
        client = aioredis.from_url(self.redis_url, socket_timeout=2)
        try:
            return bool(await client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False
        finally:
            await client.aclose()
