"""
Menu Catalog Service

Read-only queries over menu items. The order workflow uses get_by_id()
with its own session so that validation reads happen inside the order
transaction.
"""

import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from food_ordering.core.exceptions import NotFoundError
from food_ordering.database import Database
from food_ordering.models import INTEGER_MAX, MenuItem

logger = logging.getLogger(__name__)


class CatalogService:
    """Queries over the menu_items table."""

    def __init__(self, database: Database):
        self.database = database

    async def list_available(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[MenuItem]:
        """
        List orderable menu items.

        Args:
            category: Exact category to keep
            search: Case-insensitive substring matched against name or description

        Returns:
            Available items sorted by (category, name)
        """
        stmt = select(MenuItem).where(MenuItem.is_available.is_(True))

        if category:
            stmt = stmt.where(MenuItem.category == category)
        if search:
            # % and _ in the search text match literally
            stmt = stmt.where(
                or_(
                    MenuItem.name.icontains(search, autoescape=True),
                    MenuItem.description.icontains(search, autoescape=True),
                )
            )

        stmt = stmt.order_by(MenuItem.category, MenuItem.name, MenuItem.id)

        async with self.database.session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_by_id(
        self,
        item_id: int,
        include_unavailable: bool = False,
        session: Optional[AsyncSession] = None,
    ) -> MenuItem:
        """
        Fetch one menu item.

        Args:
            item_id: Menu item primary key
            include_unavailable: Also return items switched off in the catalog
            session: Read inside this session instead of opening a new one

        Raises:
            NotFoundError: If the item does not exist (or is unavailable and
                include_unavailable is False)
        """
        if not 1 <= item_id <= INTEGER_MAX:
            item = None
        elif session is None:
            async with self.database.session() as own_session:
                item = await own_session.get(MenuItem, item_id)
        else:
            item = await session.get(MenuItem, item_id)

        if item is None or (not include_unavailable and not item.is_available):
            raise NotFoundError(
                f"Menu item with ID {item_id} not found",
                detail={"menu_item_id": item_id},
            )
        return item

    async def list_categories(self) -> list[str]:
        """Distinct categories that currently have at least one available item."""
        stmt = (
            select(MenuItem.category)
            .where(MenuItem.is_available.is_(True))
            .distinct()
            .order_by(MenuItem.category)
        )
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())
