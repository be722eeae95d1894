from datetime import datetime
from decimal import Decimal

from food_ordering.models import OrderStatus
from food_ordering.services.orders import fold_order_rows


def make_row(order_id, line_id=None, **overrides):
    row = {
        "order_id": order_id,
        "user_id": 1,
        "total_amount": Decimal("10.00"),
        "status": "pending",
        "delivery_address": None,
        "phone": None,
        "notes": None,
        "created_at": datetime(2024, 1, 1, 12, 0),
        "updated_at": None,
        "line_id": line_id,
        "menu_item_id": None,
        "item_name": None,
        "item_description": None,
        "item_category": None,
        "item_image_url": None,
        "item_quantity": None,
        "item_price": None,
    }
    if line_id is not None:
        row.update({
            "menu_item_id": 100 + line_id,
            "item_name": f"Item {line_id}",
            "item_quantity": 1,
            "item_price": Decimal("5.00"),
        })
    row.update(overrides)
    return row


def test_rows_fold_into_nested_orders():
    rows = [
        make_row(7, line_id=1),
        make_row(7, line_id=2, item_quantity=3),
        make_row(3, line_id=3),
    ]

    orders = fold_order_rows(rows)

    assert [o.id for o in orders] == [7, 3]
    assert [line.id for line in orders[0].items] == [1, 2]
    assert orders[0].item_count == 4
    assert orders[0].items[1].total == Decimal("15.00")
    assert orders[0].status is OrderStatus.PENDING


def test_order_without_lines_has_empty_items():
    orders = fold_order_rows([make_row(5)])

    assert len(orders) == 1
    assert orders[0].items == []
    assert orders[0].item_count == 0


def test_first_seen_order_is_kept_for_interleaved_rows():
    rows = [
        make_row(2, line_id=1),
        make_row(1, line_id=2),
        make_row(2, line_id=3),
    ]

    orders = fold_order_rows(rows)

    assert [o.id for o in orders] == [2, 1]
    assert [line.id for line in orders[0].items] == [1, 3]


def test_no_rows():
    assert fold_order_rows([]) == []
