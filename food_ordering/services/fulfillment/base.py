"""
Fulfillment Service Abstract Base Class

A fulfillment service is told when an order has been placed and is then
free to move the order through the kitchen statuses on its own schedule,
by calling OrderService.update_status() from the outside. The order
workflow never waits on it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ScheduledStep:
    """A status change queued for later."""
    status: str
    delay_seconds: int
    task_id: Optional[str] = None


@dataclass
class FulfillmentResult:
    """
    Result from handing an order to fulfillment.

    Attributes:
        success: Whether every step was queued
        order_id: The order that was handed over
        steps: Steps that were queued
        error_message: Why queuing failed, if it did
        provider: Name of the implementation
    """
    success: bool
    order_id: int
    steps: list[ScheduledStep] = field(default_factory=list)
    error_message: Optional[str] = None
    provider: str = "unknown"


class BaseFulfillmentService(ABC):
    """Abstract base class for fulfillment services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def order_placed(self, order_id: int) -> FulfillmentResult:
        """Handle a freshly committed order."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check that the backing infrastructure is reachable."""
        pass
