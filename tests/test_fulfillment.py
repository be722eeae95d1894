from types import SimpleNamespace

import pytest
from kombu.exceptions import OperationalError

from food_ordering.models import OrderStatus
from food_ordering.services.fulfillment import (
    DisabledFulfillmentService,
    SimulatedFulfillmentService,
    get_fulfillment_service,
)
from food_ordering.services.orders import CartLine
from food_ordering.tasks import advance_order_status, apply_order_status


@pytest.fixture
def queued(monkeypatch):
    calls = []

    def fake_apply_async(args, countdown, retry):
        calls.append((args, countdown, retry))
        return SimpleNamespace(id=f"task-{len(calls)}")

    monkeypatch.setattr(advance_order_status, "apply_async", fake_apply_async)
    return calls


def test_factory_respects_mode():
    assert isinstance(get_fulfillment_service(), DisabledFulfillmentService)


async def test_disabled_service_schedules_nothing():
    service = DisabledFulfillmentService()

    result = await service.order_placed(1)

    assert result.success
    assert result.steps == []
    assert await service.health_check()


async def test_simulated_service_queues_configured_steps(queued):
    service = SimulatedFulfillmentService(steps=[("confirmed", 2), ("ready", 15)])

    result = await service.order_placed(7)

    assert result.success
    assert result.provider == "simulated"
    assert [(s.status, s.delay_seconds, s.task_id) for s in result.steps] == [
        ("confirmed", 2, "task-1"),
        ("ready", 15, "task-2"),
    ]
    assert queued == [((7, "confirmed"), 2, False), ((7, "ready"), 15, False)]


async def test_simulated_service_reports_broker_outage(monkeypatch):
    def broken_apply_async(args, countdown, retry):
        raise OperationalError("connection refused")

    monkeypatch.setattr(advance_order_status, "apply_async", broken_apply_async)
    service = SimulatedFulfillmentService(steps=[("confirmed", 1)])

    result = await service.order_placed(3)

    assert not result.success
    assert "Broker unavailable" in result.error_message


def test_simulated_service_rejects_unknown_status():
    with pytest.raises(ValueError):
        SimulatedFulfillmentService(steps=[("shipped", 3)])


async def test_placing_an_order_queues_fulfillment(database, catalog, menu, alice, queued):
    from food_ordering.services.orders import OrderService

    service = OrderService(database, catalog, SimulatedFulfillmentService(steps=[("confirmed", 2)]))

    order = await service.place_order(alice, [CartLine(menu["Lemonade"].id, 1)])

    assert queued == [((order.id, "confirmed"), 2, False)]


# =============================================================================
# BACKGROUND STATUS STEP
# =============================================================================

async def test_apply_order_status_updates_order(database, orders, menu, alice):
    order = await orders.place_order(alice, [CartLine(menu["Lemonade"].id, 1)])

    result = await apply_order_status(database, order.id, "preparing")

    assert result["success"] is True
    assert result["status"] == "preparing"
    fetched = await orders.get_order_by_id(alice, order.id)
    assert fetched.status == OrderStatus.PREPARING


async def test_apply_order_status_tolerates_deleted_order(database):
    result = await apply_order_status(database, 404, "ready")

    assert result["success"] is False
    assert result["message"] == "Order not found"
