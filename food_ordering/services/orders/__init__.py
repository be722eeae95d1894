"""
Order Service Package

    - service: placement transaction, owner-scoped reads, status updates
    - aggregation: flat join rows -> nested order records
"""

from food_ordering.services.orders.aggregation import OrderLine, OrderRecord, fold_order_rows
from food_ordering.services.orders.service import (
    CartLine,
    OrderPage,
    OrderService,
    compute_total,
    parse_status,
)

__all__ = [
    "CartLine",
    "OrderLine",
    "OrderPage",
    "OrderRecord",
    "OrderService",
    "compute_total",
    "fold_order_rows",
    "parse_status",
]
