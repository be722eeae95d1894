"""
FastAPI Application Entry Point

Food Ordering API: accounts, menu browsing, order placement and tracking.

Endpoints:
    - POST /api/auth/register: Create an account
    - POST /api/auth/login: Exchange credentials for a token
    - GET /api/auth/me: Current user
    - GET /api/menu: Available menu items
    - GET /api/menu/categories: Menu categories
    - GET /api/menu/{id}: One menu item
    - POST /api/orders: Place an order
    - GET /api/orders: List my orders
    - GET /api/orders/{id}: One of my orders
    - PATCH /api/orders/{id}/status: Change an order's status
    - GET /health: System health check
"""

import asyncio
import sys
import logging
from datetime import datetime, timedelta
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from food_ordering.core.config import get_settings, setup_logging
from food_ordering.core.exceptions import OrderingError, StorageError
from food_ordering.database import Database
from food_ordering.dependencies import (
    get_catalog_service,
    get_current_principal,
    get_database,
    get_fulfillment,
    get_order_service,
    get_user_service,
)
from food_ordering.schemas import (
    AuthResponse,
    CategoriesResponse,
    ErrorResponse,
    HealthResponse,
    LoginRequest,
    MenuItemResponse,
    MenuListResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderListResponse,
    OrderResponse,
    RegisterRequest,
    StatusUpdateRequest,
    StatusUpdateResponse,
    UserResponse,
)
from food_ordering.services.auth import Principal, get_auth_service
from food_ordering.services.catalog import CatalogService
from food_ordering.services.fulfillment import BaseFulfillmentService, get_fulfillment_service
from food_ordering.services.orders import CartLine, OrderService
from food_ordering.services.users import AuthenticatedUser, UserService

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    # Initialize database
    database = Database.from_settings(settings)
    await database.create_all()
    app.state.database = database
    logger.info("✅ Database initialized")

    # Log service configuration
    logger.info(f"✅ Auth Service: {get_auth_service().provider_name}")
    logger.info(f"✅ Fulfillment Service: {get_fulfillment_service().provider_name}")

    # Validate production config
    missing = settings.validate_production_config()
    if missing:
        logger.warning(f"⚠️ Insecure or missing production config: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await database.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Food ordering backend: accounts, menu browsing, "
        "transactional order placement and order tracking."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def estimated_ready_time() -> str:
    """Wall-clock time the order should arrive, e.g. '07:45 PM'."""
    estimated = datetime.now() + timedelta(minutes=settings.estimated_delivery_minutes)
    return estimated.strftime("%I:%M %p")


def auth_response(result: AuthenticatedUser, message: str) -> AuthResponse:
    return AuthResponse(
        message=message,
        token=result.token.access_token,
        token_type=result.token.token_type,
        expires_at=result.token.expires_at,
        user=UserResponse.model_validate(result.user),
    )


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍕 Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    database: Database = Depends(get_database),
    fulfillment: BaseFulfillmentService = Depends(get_fulfillment),
) -> HealthResponse:
    """Verify all system components are operational."""

    db_status = "healthy" if await database.ping() else "unhealthy"

    # Redis only backs the fulfillment worker
    if settings.fulfillment_enabled:
        redis_status = "healthy" if await fulfillment.health_check() else "unhealthy"
    else:
        redis_status = "disabled"

    overall = "operational" if all(
        s in ("healthy", "disabled") for s in [db_status, redis_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        redis=redis_status,
        fulfillment_service=fulfillment.provider_name,
        timestamp=datetime.now(),
    )


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@app.post(
    "/api/auth/register",
    response_model=AuthResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
    tags=["Auth"],
)
async def register(
    payload: RegisterRequest,
    users: UserService = Depends(get_user_service),
) -> AuthResponse:
    """Create an account and return a token for it."""
    result = await users.register(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
        address=payload.address,
    )
    return auth_response(result, "User registered successfully")


@app.post(
    "/api/auth/login",
    response_model=AuthResponse,
    responses=ERROR_RESPONSES,
    tags=["Auth"],
)
async def login(
    payload: LoginRequest,
    users: UserService = Depends(get_user_service),
) -> AuthResponse:
    result = await users.login(payload.email, payload.password)
    return auth_response(result, "Login successful")


@app.get(
    "/api/auth/me",
    response_model=UserResponse,
    responses=ERROR_RESPONSES,
    tags=["Auth"],
)
async def current_user(
    principal: Principal = Depends(get_current_principal),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await users.get_user(principal.user_id)
    return UserResponse.model_validate(user)


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@app.get(
    "/api/menu",
    response_model=MenuListResponse,
    tags=["Menu"],
)
async def list_menu(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    catalog: CatalogService = Depends(get_catalog_service),
) -> MenuListResponse:
    """List available menu items, optionally filtered."""
    items = await catalog.list_available(category=category, search=search)
    return MenuListResponse(
        menu_items=[MenuItemResponse.model_validate(item) for item in items],
        total=len(items),
    )


@app.get(
    "/api/menu/categories",
    response_model=CategoriesResponse,
    tags=["Menu"],
)
async def list_categories(
    catalog: CatalogService = Depends(get_catalog_service),
) -> CategoriesResponse:
    return CategoriesResponse(categories=await catalog.list_categories())


@app.get(
    "/api/menu/{item_id}",
    response_model=MenuItemResponse,
    responses=ERROR_RESPONSES,
    tags=["Menu"],
)
async def get_menu_item(
    item_id: int,
    catalog: CatalogService = Depends(get_catalog_service),
) -> MenuItemResponse:
    item = await catalog.get_by_id(item_id)
    return MenuItemResponse.model_validate(item)


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    response_model=OrderCreateResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    order_data: OrderCreate,
    principal: Principal = Depends(get_current_principal),
    orders: OrderService = Depends(get_order_service),
) -> OrderCreateResponse:
    """
    Place an order for the authenticated user.

    Prices come from the menu at the time of the request; the order and all
    of its lines are stored in a single transaction.
    """
    logger.info(f"Creating order for user #{principal.user_id}")

    order = await orders.place_order(
        principal,
        [CartLine(item.menu_item_id, item.quantity) for item in order_data.items],
        delivery_address=order_data.delivery_address,
        phone=order_data.phone,
        notes=order_data.notes,
    )

    return OrderCreateResponse(
        success=True,
        message="Order created successfully",
        order=OrderResponse.model_validate(order),
        estimated_time=estimated_ready_time(),
    )


@app.get(
    "/api/orders",
    response_model=OrderListResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="List Orders",
)
async def list_orders(
    status: Optional[str] = Query(None),
    limit: int = Query(settings.default_page_size, ge=0, le=settings.max_page_size),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_current_principal),
    orders: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """Retrieve the caller's orders, newest first."""
    page = await orders.get_orders_for_user(
        principal, status=status, limit=limit, offset=offset
    )
    return OrderListResponse(
        total=page.total,
        limit=page.limit,
        offset=page.offset,
        orders=[OrderResponse.model_validate(order) for order in page.orders],
    )


@app.get(
    "/api/orders/{order_id}",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def get_order(
    order_id: int,
    principal: Principal = Depends(get_current_principal),
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Get one of the caller's orders."""
    order = await orders.get_order_by_id(principal, order_id)
    return OrderResponse.model_validate(order)


@app.patch(
    "/api/orders/{order_id}/status",
    response_model=StatusUpdateResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def update_order_status(
    order_id: int,
    payload: StatusUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    orders: OrderService = Depends(get_order_service),
) -> StatusUpdateResponse:
    """
    Change an order's status.

    Any authenticated caller may change any order; this endpoint is meant
    for staff tooling.
    """
    logger.info(f"User #{principal.user_id} sets order #{order_id} to {payload.status!r}")
    order = await orders.update_status(order_id, payload.status)
    return StatusUpdateResponse(
        success=True,
        message="Order status updated successfully",
        order=OrderResponse.model_validate(order),
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def error_content(error: str, detail=None) -> dict:
    return ErrorResponse(error=error, detail=jsonable_encoder(detail)).model_dump()


@app.exception_handler(OrderingError)
async def ordering_exception_handler(request: Request, exc: OrderingError) -> JSONResponse:
    """Map domain errors to their HTTP status."""
    if isinstance(exc, StorageError):
        logger.exception(f"Storage failure on {request.method} {request.url.path}: {exc}")
        cause = str(exc.__cause__ or exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_content(
                "Internal Server Error",
                cause if settings.debug else "A storage error occurred",
            ),
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_content(exc.message, exc.detail),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed requests as 400 with the standard error body."""
    return JSONResponse(
        status_code=400,
        content=error_content("Validation failed", exc.errors()),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content=error_content(
            "Internal Server Error",
            str(exc) if settings.debug else "An unexpected error occurred",
        ),
    )
