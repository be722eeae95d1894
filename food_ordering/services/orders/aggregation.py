"""
Order Read Model

The read path fetches orders with a single LEFT JOIN
(orders -> order_items -> menu_items) and folds the flat rows back into
one OrderRecord per order. Keeping the fold in Python, instead of a
vendor-specific JSON aggregate, keeps it portable and testable without a
database.

Row keys expected by fold_order_rows():

    order_id, user_id, total_amount, status, delivery_address, phone,
    notes, created_at, updated_at,
    line_id, menu_item_id, item_name, item_description, item_category,
    item_image_url, item_quantity, item_price

The line_* / item_* keys are None on the single row a LEFT JOIN produces
for an order without lines.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from food_ordering.models import OrderStatus


@dataclass
class OrderLine:
    """One purchased line, with the unit price captured at order time."""
    id: int
    menu_item_id: int
    quantity: int
    price: Decimal
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity


@dataclass
class OrderRecord:
    """A placed order with its nested lines."""
    id: int
    user_id: int
    total_amount: Decimal
    status: OrderStatus
    delivery_address: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: list[OrderLine] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)


def _line_from_row(row: Mapping[str, Any]) -> OrderLine:
    return OrderLine(
        id=row["line_id"],
        menu_item_id=row["menu_item_id"],
        quantity=row["item_quantity"],
        price=Decimal(row["item_price"]),
        name=row["item_name"],
        description=row["item_description"],
        category=row["item_category"],
        image_url=row["item_image_url"],
    )


def fold_order_rows(rows: Iterable[Mapping[str, Any]]) -> list[OrderRecord]:
    """
    Fold flat joined rows into orders with nested lines.

    Orders come out in the order their first row was seen, so a query
    sorted by (created_at DESC, id DESC) yields records in that order.
    Lines keep row order within each order.

    Args:
        rows: Mappings with the keys listed in the module docstring

    Returns:
        One OrderRecord per distinct order_id
    """
    orders: dict[int, OrderRecord] = {}

    for row in rows:
        order_id = row["order_id"]
        record = orders.get(order_id)

        if record is None:
            record = OrderRecord(
                id=order_id,
                user_id=row["user_id"],
                total_amount=Decimal(row["total_amount"]),
                status=OrderStatus(row["status"]),
                delivery_address=row["delivery_address"],
                phone=row["phone"],
                notes=row["notes"],
                created_at=row["created_at"],
                updated_at=row["updated_at"],
            )
            orders[order_id] = record

        # LEFT JOIN yields a single all-null line for an order without items
        if row["line_id"] is not None:
            record.items.append(_line_from_row(row))

    return list(orders.values())
