"""
Shared fixtures.

Every test gets its own on-disk SQLite database under tmp_path, so tests
never share rows and can run in any order.
"""

import os

os.environ.update({
    "ENV_MODE": "development",
    "DEBUG": "false",
    "DATABASE_URL": "sqlite+aiosqlite:///./unused.db",
    "JWT_SECRET": "test-secret",
    "BCRYPT_ROUNDS": "4",
    "FULFILLMENT_MODE": "disabled",
})

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from food_ordering.core.config import get_settings
from food_ordering.database import Database
from food_ordering.models import MenuItem, User
from food_ordering.services.auth import Principal, get_auth_service, reset_auth_service
from food_ordering.services.catalog import CatalogService
from food_ordering.services.fulfillment import reset_fulfillment_service
from food_ordering.services.orders import OrderService


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    reset_auth_service()
    reset_fulfillment_service()
    yield
    get_settings.cache_clear()
    reset_auth_service()
    reset_fulfillment_service()


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def menu(database) -> dict[str, MenuItem]:
    """A small catalog; Tiramisu is switched off."""
    items = [
        MenuItem(name="Margherita Pizza", description="Tomato, mozzarella, basil",
                 price=Decimal("12.99"), category="Pizza", is_available=True),
        MenuItem(name="Pepperoni Pizza", description="Spicy pepperoni",
                 price=Decimal("14.50"), category="Pizza", is_available=True),
        MenuItem(name="Caesar Salad", description="Romaine, parmesan, croutons",
                 price=Decimal("8.25"), category="Salads", is_available=True),
        MenuItem(name="Lemonade", description="Fresh squeezed",
                 price=Decimal("3.10"), category="Drinks", is_available=True),
        MenuItem(name="Tiramisu", description="Coffee dessert",
                 price=Decimal("6.00"), category="Desserts", is_available=False),
    ]
    async with database.transaction() as session:
        session.add_all(items)
        await session.flush()
    return {item.name: item for item in items}


async def create_user(database: Database, email: str, name: str = "Test User") -> User:
    user = User(name=name, email=email, password_hash=get_auth_service().hash_password("secret123"))
    async with database.transaction() as session:
        session.add(user)
        await session.flush()
    return user


@pytest.fixture
async def alice(database) -> Principal:
    user = await create_user(database, "alice@example.com", "Alice")
    return Principal(user_id=user.id)


@pytest.fixture
async def bob(database) -> Principal:
    user = await create_user(database, "bob@example.com", "Bob")
    return Principal(user_id=user.id)


@pytest.fixture
def catalog(database) -> CatalogService:
    return CatalogService(database)


@pytest.fixture
def orders(database, catalog) -> OrderService:
    return OrderService(database, catalog)


@pytest.fixture
async def client(database):
    from food_ordering.dependencies import get_database
    from food_ordering.main import app

    app.dependency_overrides[get_database] = lambda: database
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
async def auth_headers(client) -> dict[str, str]:
    response = await client.post("/api/auth/register", json={
        "name": "Carol",
        "email": "carol@example.com",
        "password": "secret123",
    })
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}
