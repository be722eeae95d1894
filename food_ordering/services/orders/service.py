"""
Order Service

Places orders, reads them back for their owner, and updates their status.

Order placement runs in one database transaction:

    begin -> resolve & validate every cart line -> price the cart
          -> INSERT order -> INSERT order lines -> commit

Any failure on the way rolls the whole transaction back, so an order
without lines, or lines without an order, is never visible to readers.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Iterable, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from food_ordering.core.exceptions import (
    NotFoundError,
    StorageError,
    UnavailableError,
    ValidationError,
)
from food_ordering.database import Database
from food_ordering.models import INTEGER_MAX, MenuItem, Order, OrderItem, OrderStatus
from food_ordering.services.auth.base import Principal
from food_ordering.services.catalog import CatalogService
from food_ordering.services.orders.aggregation import OrderRecord, fold_order_rows

if TYPE_CHECKING:
    from food_ordering.services.fulfillment.base import BaseFulfillmentService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Upper bounds of the Integer quantity and Numeric(10, 2) money columns
MAX_LINE_QUANTITY = INTEGER_MAX
MAX_ORDER_TOTAL = Decimal("99999999.99")


@dataclass(frozen=True)
class CartLine:
    """One requested line: which menu item and how many."""
    menu_item_id: int
    quantity: int


@dataclass
class OrderPage:
    """A page of orders plus the number of orders matching the filter."""
    orders: list[OrderRecord]
    total: int
    limit: Optional[int] = None
    offset: int = 0


def parse_status(value: Any) -> OrderStatus:
    """
    Convert user input to an OrderStatus.

    Raises:
        ValidationError: If the value is not one of the known statuses
    """
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        valid = [s.value for s in OrderStatus]
        raise ValidationError(
            f"Invalid order status: {value!r}",
            detail={"valid_statuses": valid},
        )


def compute_total(priced_lines: Iterable[tuple[Decimal, int]]) -> Decimal:
    """Sum unit_price * quantity exactly and round to cents."""
    total = sum((price * quantity for price, quantity in priced_lines), Decimal("0"))
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def _is_valid_quantity(value: Any, maximum: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= maximum


class OrderService:
    """
    Core order workflow.

    Args:
        database: Connection pool owner
        catalog: Menu lookups used to validate carts
        fulfillment: Optional collaborator told about every placed order
        max_line_quantity: Largest quantity accepted for one cart line
    """

    def __init__(
        self,
        database: Database,
        catalog: CatalogService,
        fulfillment: Optional["BaseFulfillmentService"] = None,
        max_line_quantity: int = MAX_LINE_QUANTITY,
    ):
        self.database = database
        self.catalog = catalog
        self.fulfillment = fulfillment
        self.max_line_quantity = min(max_line_quantity, MAX_LINE_QUANTITY)

    # =========================================================================
    # PLACE ORDER
    # =========================================================================

    async def place_order(
        self,
        principal: Principal,
        cart: Sequence[CartLine],
        delivery_address: Optional[str] = None,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> OrderRecord:
        """
        Validate the cart, price it and persist the order atomically.

        Checks run in this order and the first failure wins:
            1. the cart has at least one line
            2. every menu item exists
            3. every menu item is available
            4. every quantity is an integer between 1 and max_line_quantity
            5. the order total fits the money column

        Returns:
            The committed order with its lines

        Raises:
            ValidationError: Empty cart, bad quantity or oversized total
            NotFoundError: Unknown menu item
            UnavailableError: Menu item switched off in the catalog
            StorageError: The database failed; nothing was written
        """
        cart = list(cart)
        if not cart:
            logger.warning(f"Rejected empty cart from user #{principal.user_id}")
            raise ValidationError("empty cart")

        async with self.database.transaction() as session:
            unit_prices = await self._price_cart(session, cart)
            total = compute_total(
                (unit_prices[line.menu_item_id], line.quantity) for line in cart
            )
            if total > MAX_ORDER_TOTAL:
                raise ValidationError(
                    f"Order total {total} exceeds the maximum of {MAX_ORDER_TOTAL}",
                    detail={"total_amount": str(total)},
                )

            order = Order(
                user_id=principal.user_id,
                total_amount=total,
                status=OrderStatus.PENDING,
                delivery_address=delivery_address,
                phone=phone,
                notes=notes,
            )
            session.add(order)
            await session.flush()

            session.add_all([
                OrderItem(
                    order_id=order.id,
                    menu_item_id=line.menu_item_id,
                    quantity=line.quantity,
                    price=unit_prices[line.menu_item_id],
                )
                for line in cart
            ])
            await session.flush()
            order_id = order.id

        logger.info(
            f"Order #{order_id} placed by user #{principal.user_id}: "
            f"{len(cart)} line(s), total {total}"
        )

        record = await self._fetch_order(order_id)
        if record is None:
            # Deleted between the commit and the read-back
            raise NotFoundError(f"Order #{order_id} not found")
        await self._notify_fulfillment(record)
        return record

    async def _price_cart(
        self,
        session: AsyncSession,
        cart: list[CartLine],
    ) -> dict[int, Decimal]:
        """
        Resolve every cart line against the catalog inside the transaction.

        Returns:
            Unit price per menu item id, read once and reused for the
            order total and the order lines
        """
        menu_items: dict[int, MenuItem] = {}

        for line in cart:
            item_id = line.menu_item_id
            if not isinstance(item_id, int) or isinstance(item_id, bool):
                raise NotFoundError(
                    f"Menu item with ID {item_id} not found",
                    detail={"menu_item_id": item_id},
                )
            if item_id in menu_items:
                continue
            try:
                menu_items[item_id] = await self.catalog.get_by_id(
                    item_id, include_unavailable=True, session=session
                )
            except NotFoundError:
                logger.warning(f"Rejected cart: menu item #{item_id} does not exist")
                raise

        for item in menu_items.values():
            if not item.is_available:
                logger.warning(f"Rejected cart: menu item #{item.id} is unavailable")
                raise UnavailableError(item.id, item.name)

        for line in cart:
            if not _is_valid_quantity(line.quantity, self.max_line_quantity):
                raise ValidationError(
                    f"Quantity must be between 1 and {self.max_line_quantity} "
                    f"(menu item {line.menu_item_id})",
                    detail={"menu_item_id": line.menu_item_id, "quantity": line.quantity},
                )

        return {
            item_id: Decimal(item.price).quantize(CENT)
            for item_id, item in menu_items.items()
        }

    async def _notify_fulfillment(self, order: OrderRecord) -> None:
        if self.fulfillment is None:
            return

        result = await self.fulfillment.order_placed(order.id)
        if result.success:
            logger.debug(
                f"Order #{order.id} handed to {result.provider} fulfillment "
                f"({len(result.steps)} step(s))"
            )
        else:
            logger.warning(
                f"Order #{order.id} was placed but fulfillment dispatch failed: "
                f"{result.error_message}"
            )

    # =========================================================================
    # READ ORDERS
    # =========================================================================

    async def get_orders_for_user(
        self,
        principal: Principal,
        status: Optional[Any] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> OrderPage:
        """
        List the principal's orders, newest first.

        Args:
            principal: Owner whose orders are listed
            status: Only return orders in this status
            limit: Maximum number of orders (None for all)
            offset: Number of orders to skip

        Raises:
            ValidationError: Unknown status or negative limit/offset
        """
        if limit is not None and limit < 0:
            raise ValidationError("limit must not be negative")
        if offset is not None and offset < 0:
            raise ValidationError("offset must not be negative")

        criteria = [Order.user_id == principal.user_id]
        if status is not None:
            criteria.append(Order.status == parse_status(status))

        rows_stmt = self._order_rows_statement(criteria, limit=limit, offset=offset)

        async with self.database.session() as session:
            rows = await self._execute_rows(session, rows_stmt)
            if rows:
                # Counted by the same statement that produced the page
                total = rows[0]["matching_total"]
            else:
                total = await self._count_orders(session, criteria)

        return OrderPage(
            orders=fold_order_rows(rows),
            total=total,
            limit=limit,
            offset=offset or 0,
        )

    async def _count_orders(self, session: AsyncSession, criteria: list) -> int:
        """Count matching orders when the page itself came back empty."""
        try:
            result = await session.execute(select(func.count(Order.id)).where(*criteria))
        except SQLAlchemyError as e:
            logger.error(f"Order count failed: {e}")
            raise StorageError("Failed to fetch orders") from e
        return result.scalar() or 0

    async def get_order_by_id(self, principal: Principal, order_id: int) -> OrderRecord:
        """
        Fetch one of the principal's orders.

        Raises:
            NotFoundError: If the order does not exist or belongs to someone else
        """
        order = await self._fetch_order(order_id, owner_id=principal.user_id)
        if order is None:
            raise NotFoundError(f"Order #{order_id} not found")
        return order

    async def _fetch_order(
        self,
        order_id: int,
        owner_id: Optional[int] = None,
    ) -> Optional[OrderRecord]:
        if not 1 <= order_id <= INTEGER_MAX:
            return None

        criteria = [Order.id == order_id]
        if owner_id is not None:
            criteria.append(Order.user_id == owner_id)

        async with self.database.session() as session:
            rows = await self._execute_rows(session, self._order_rows_statement(criteria))

        orders = fold_order_rows(rows)
        return orders[0] if orders else None

    @staticmethod
    def _order_rows_statement(
        criteria: list,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        """
        Build the flat order/line/menu-item query.

        Pagination is applied to orders in a subquery, so a page never cuts
        an order's lines in half. The subquery also counts every matching
        order (window count, evaluated before LIMIT), so the page and its
        total come from one snapshot.
        """
        page = (
            select(Order.id, func.count().over().label("matching_total"))
            .where(*criteria)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .offset(offset)
            .subquery()
        )

        return (
            select(
                Order.id.label("order_id"),
                Order.user_id.label("user_id"),
                Order.total_amount.label("total_amount"),
                Order.status.label("status"),
                Order.delivery_address.label("delivery_address"),
                Order.phone.label("phone"),
                Order.notes.label("notes"),
                Order.created_at.label("created_at"),
                Order.updated_at.label("updated_at"),
                OrderItem.id.label("line_id"),
                OrderItem.menu_item_id.label("menu_item_id"),
                OrderItem.quantity.label("item_quantity"),
                OrderItem.price.label("item_price"),
                MenuItem.name.label("item_name"),
                MenuItem.description.label("item_description"),
                MenuItem.category.label("item_category"),
                MenuItem.image_url.label("item_image_url"),
                page.c.matching_total.label("matching_total"),
            )
            .select_from(Order)
            .join(page, page.c.id == Order.id)
            .outerjoin(OrderItem, OrderItem.order_id == Order.id)
            .outerjoin(MenuItem, MenuItem.id == OrderItem.menu_item_id)
            .order_by(Order.created_at.desc(), Order.id.desc(), OrderItem.id)
        )

    @staticmethod
    async def _execute_rows(session: AsyncSession, stmt) -> list:
        try:
            result = await session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Order query failed: {e}")
            raise StorageError("Failed to fetch orders") from e
        return list(result.mappings().all())

    # =========================================================================
    # STATUS UPDATES
    # =========================================================================

    async def update_status(self, order_id: int, status: Any) -> OrderRecord:
        """
        Overwrite an order's status and bump updated_at.

        Any status may follow any other; there is no transition graph.

        Raises:
            ValidationError: Unknown status (the order is left unchanged)
            NotFoundError: No order with this id
        """
        new_status = parse_status(status)
        if not 1 <= order_id <= INTEGER_MAX:
            raise NotFoundError(f"Order #{order_id} not found")

        async with self.database.transaction() as session:
            result = await session.execute(
                update(Order)
                .where(Order.id == order_id)
                .values(status=new_status, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(f"Order #{order_id} not found")

        logger.info(f"Order #{order_id} status -> {new_status.value}")

        order = await self._fetch_order(order_id)
        if order is None:
            # Deleted between the update and the read-back
            raise NotFoundError(f"Order #{order_id} not found")
        return order
