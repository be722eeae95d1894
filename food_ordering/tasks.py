"""
Celery Tasks
Background status changes queued by the simulated fulfillment service.
"""

import asyncio
import logging
import time

from food_ordering.celery_worker import celery_app
from food_ordering.core.config import get_settings
from food_ordering.core.exceptions import NotFoundError, StorageError
from food_ordering.database import Database
from food_ordering.services.catalog import CatalogService
from food_ordering.services.orders import OrderService

logger = logging.getLogger(__name__)


async def apply_order_status(database: Database, order_id: int, status: str) -> dict:
    """
    Move an order to a new status on behalf of the kitchen.

    An order that no longer exists is reported, not retried.

    Returns:
        dict: Outcome of the status change
    """
    service = OrderService(database, CatalogService(database))

    try:
        order = await service.update_status(order_id, status)
    except NotFoundError:
        logger.warning(f"Order #{order_id} disappeared before status {status!r} was applied")
        return {
            "success": False,
            "order_id": order_id,
            "status": status,
            "message": "Order not found",
        }

    return {
        "success": True,
        "order_id": order.id,
        "status": order.status.value,
        "message": "Status updated",
    }


async def _run_with_fresh_database(order_id: int, status: str) -> dict:
    database = Database.from_settings(get_settings())
    try:
        return await apply_order_status(database, order_id, status)
    finally:
        await database.dispose()


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(StorageError,),
    retry_backoff=True,
)
def advance_order_status(self, order_id: int, status: str) -> dict:
    """
    Apply a scheduled status change.
    This task runs asynchronously via Celery worker.

    Args:
        order_id: Order to update
        status: New status value (e.g. "preparing")

    Returns:
        dict: Result of the update
    """
    task_id = self.request.id
    logger.info(f"Task {task_id}: order #{order_id} -> {status}")
    start_time = time.time()

    result = asyncio.run(_run_with_fresh_database(order_id, status))

    elapsed = round(time.time() - start_time, 3)
    result["task_id"] = task_id
    result["processing_time_seconds"] = elapsed

    if result["success"]:
        logger.info(f"Task {task_id}: order #{order_id} is now {status} ({elapsed}s)")
    else:
        logger.warning(f"Task {task_id}: order #{order_id} skipped - {result['message']}")

    return result
