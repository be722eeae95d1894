"""
FastAPI Dependencies

Services are built per request around the process-wide Database stored on
app.state by the lifespan handler. Tests override get_database to point
the whole graph at a throwaway database.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from food_ordering.core.config import get_settings
from food_ordering.core.exceptions import Unauthenticated
from food_ordering.database import Database
from food_ordering.services.auth import Principal, get_auth_service
from food_ordering.services.catalog import CatalogService
from food_ordering.services.fulfillment import BaseFulfillmentService, get_fulfillment_service
from food_ordering.services.orders import OrderService
from food_ordering.services.users import UserService

bearer_scheme = HTTPBearer(auto_error=False)


def get_database(request: Request) -> Database:
    """Database opened by the application lifespan."""
    return request.app.state.database


def get_fulfillment() -> BaseFulfillmentService:
    return get_fulfillment_service()


def get_catalog_service(database: Database = Depends(get_database)) -> CatalogService:
    return CatalogService(database)


def get_order_service(
    database: Database = Depends(get_database),
    catalog: CatalogService = Depends(get_catalog_service),
    fulfillment: BaseFulfillmentService = Depends(get_fulfillment),
) -> OrderService:
    return OrderService(
        database,
        catalog,
        fulfillment,
        max_line_quantity=get_settings().max_line_quantity,
    )


def get_user_service(database: Database = Depends(get_database)) -> UserService:
    return UserService(database, get_auth_service())


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    users: UserService = Depends(get_user_service),
) -> Principal:
    """
    Resolve the bearer token into a Principal.

    Raises:
        Unauthenticated: Missing header, bad or expired token, or deleted user
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Access token required")
    return await users.resolve_principal(credentials.credentials)
