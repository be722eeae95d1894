import pytest

from food_ordering.core.config import get_settings


async def register(client, email: str) -> dict[str, str]:
    response = await client.post("/api/auth/register", json={
        "name": "Someone",
        "email": email,
        "password": "secret123",
    })
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}


# =============================================================================
# ROOT & HEALTH
# =============================================================================

async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["health"] == "/health"


async def test_health_without_fulfillment(client):
    response = await client.get("/health")

    body = response.json()
    assert response.status_code == 200
    assert body["status"] == "operational"
    assert body["database"] == "healthy"
    assert body["redis"] == "disabled"
    assert body["fulfillment_service"] == "disabled"


# =============================================================================
# AUTH
# =============================================================================

async def test_register_returns_token_and_user(client):
    response = await client.post("/api/auth/register", json={
        "name": "Dana",
        "email": "Dana@Example.com",
        "password": "secret123",
        "phone": "(555) 123-4567",
    })

    body = response.json()
    assert response.status_code == 201
    assert body["token"]
    assert body["user"]["email"] == "dana@example.com"
    assert "password_hash" not in body["user"]


async def test_register_duplicate_email(client, auth_headers):
    response = await client.post("/api/auth/register", json={
        "name": "Carol Again",
        "email": "carol@example.com",
        "password": "secret123",
    })

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "User with this email already exists",
        "detail": None,
    }


@pytest.mark.parametrize("payload", [
    {"name": "D", "email": "d@example.com", "password": "secret123"},
    {"name": "Dana", "email": "not-an-email", "password": "secret123"},
    {"name": "Dana", "email": "d@example.com", "password": "123"},
    {"name": "Dana", "email": "d@example.com", "password": "secret123", "phone": "12"},
])
async def test_register_validation_is_400(client, payload):
    response = await client.post("/api/auth/register", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


async def test_login(client, auth_headers):
    ok = await client.post("/api/auth/login", json={
        "email": "carol@example.com", "password": "secret123",
    })
    bad = await client.post("/api/auth/login", json={
        "email": "carol@example.com", "password": "wrong-password",
    })

    assert ok.status_code == 200
    assert ok.json()["user"]["name"] == "Carol"
    assert bad.status_code == 401
    assert bad.json()["error"] == "Invalid email or password"


async def test_me_requires_token(client, auth_headers):
    anonymous = await client.get("/api/auth/me")
    garbage = await client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
    me = await client.get("/api/auth/me", headers=auth_headers)

    assert anonymous.status_code == 401
    assert garbage.status_code == 401
    assert me.status_code == 200
    assert me.json()["email"] == "carol@example.com"


# =============================================================================
# MENU
# =============================================================================

async def test_menu_listing(client, menu):
    response = await client.get("/api/menu", params={"category": "Pizza"})

    body = response.json()
    assert response.status_code == 200
    assert body["total"] == 2
    assert {item["name"] for item in body["menu_items"]} == {"Margherita Pizza", "Pepperoni Pizza"}


async def test_menu_categories(client, menu):
    response = await client.get("/api/menu/categories")

    assert response.json() == {"categories": ["Drinks", "Pizza", "Salads"]}


async def test_menu_item(client, menu):
    found = await client.get(f"/api/menu/{menu['Lemonade'].id}")
    missing = await client.get("/api/menu/999")

    assert found.status_code == 200
    assert found.json()["price"] == 3.10
    assert missing.status_code == 404


# =============================================================================
# ORDERS
# =============================================================================

async def test_orders_require_authentication(client, menu):
    response = await client.post("/api/orders", json={
        "items": [{"menu_item_id": menu["Lemonade"].id, "quantity": 1}],
    })

    assert response.status_code == 401
    assert response.json()["success"] is False


async def test_place_order(client, menu, auth_headers):
    response = await client.post("/api/orders", headers=auth_headers, json={
        "items": [{"menu_item_id": menu["Margherita Pizza"].id, "quantity": 2}],
        "delivery_address": "1 Main St",
        "phone": "555-123-4567",
    })

    body = response.json()
    assert response.status_code == 201
    assert body["success"] is True
    assert body["estimated_time"]
    order = body["order"]
    assert order["total_amount"] == 25.98
    assert order["status"] == "pending"
    assert order["item_count"] == 2
    assert order["items"][0]["quantity"] == 2
    assert order["items"][0]["price"] == 12.99
    assert order["delivery_address"] == "1 Main St"


@pytest.mark.parametrize("items, status_code", [
    ([], 400),
    ([{"menu_item_id": 999, "quantity": 1}], 404),
    ([{"menu_item_id": "TIRAMISU", "quantity": 1}], 400),
    ([{"menu_item_id": "LEMONADE", "quantity": 0}], 400),
    ([{"menu_item_id": "LEMONADE", "quantity": "lots"}], 400),
])
async def test_place_order_failures(client, menu, auth_headers, items, status_code):
    ids = {"TIRAMISU": menu["Tiramisu"].id, "LEMONADE": menu["Lemonade"].id}
    for item in items:
        item["menu_item_id"] = ids.get(item["menu_item_id"], item["menu_item_id"])

    response = await client.post("/api/orders", headers=auth_headers, json={"items": items})

    assert response.status_code == status_code
    assert response.json()["success"] is False

    listing = await client.get("/api/orders", headers=auth_headers)
    assert listing.json()["total"] == 0


async def test_list_and_get_orders(client, menu, auth_headers):
    for quantity in (1, 2, 3):
        await client.post("/api/orders", headers=auth_headers, json={
            "items": [{"menu_item_id": menu["Lemonade"].id, "quantity": quantity}],
        })

    page = await client.get("/api/orders", headers=auth_headers, params={"limit": 2})
    body = page.json()

    assert page.status_code == 200
    assert body["total"] == 3
    assert body["limit"] == 2
    assert [o["item_count"] for o in body["orders"]] == [3, 2]

    order_id = body["orders"][0]["id"]
    single = await client.get(f"/api/orders/{order_id}", headers=auth_headers)
    assert single.json() == body["orders"][0]


async def test_list_orders_rejects_bad_query(client, auth_headers):
    bad_status = await client.get("/api/orders", headers=auth_headers, params={"status": "lost"})
    bad_limit = await client.get("/api/orders", headers=auth_headers, params={"limit": -1})

    assert bad_status.status_code == 400
    assert "valid_statuses" in bad_status.json()["detail"]
    assert bad_limit.status_code == 400


async def test_other_users_order_is_not_found(client, menu, auth_headers):
    created = await client.post("/api/orders", headers=auth_headers, json={
        "items": [{"menu_item_id": menu["Lemonade"].id, "quantity": 1}],
    })
    order_id = created.json()["order"]["id"]

    intruder = await register(client, "mallory@example.com")
    response = await client.get(f"/api/orders/{order_id}", headers=intruder)

    assert response.status_code == 404


async def test_update_status(client, menu, auth_headers):
    created = await client.post("/api/orders", headers=auth_headers, json={
        "items": [{"menu_item_id": menu["Lemonade"].id, "quantity": 1}],
    })
    order_id = created.json()["order"]["id"]

    ok = await client.patch(
        f"/api/orders/{order_id}/status", headers=auth_headers, json={"status": "confirmed"}
    )
    bogus = await client.patch(
        f"/api/orders/{order_id}/status", headers=auth_headers, json={"status": "bogus"}
    )
    missing = await client.patch(
        "/api/orders/999/status", headers=auth_headers, json={"status": "ready"}
    )

    assert ok.status_code == 200
    assert ok.json()["order"]["status"] == "confirmed"
    assert bogus.status_code == 400
    assert missing.status_code == 404

    current = await client.get(f"/api/orders/{order_id}", headers=auth_headers)
    assert current.json()["status"] == "confirmed"


async def test_oversized_quantity_is_a_bad_request(client, menu, auth_headers):
    response = await client.post("/api/orders", headers=auth_headers, json={
        "items": [{"menu_item_id": menu["Lemonade"].id, "quantity": 10**20}],
    })

    assert response.status_code == 400
    assert response.json()["success"] is False


async def test_quantity_limit_comes_from_settings(client, menu, auth_headers, monkeypatch):
    monkeypatch.setenv("MAX_LINE_QUANTITY", "5")
    get_settings.cache_clear()

    response = await client.post("/api/orders", headers=auth_headers, json={
        "items": [{"menu_item_id": menu["Lemonade"].id, "quantity": 6}],
    })

    assert response.status_code == 400
    assert "between 1 and 5" in response.json()["error"]


async def test_huge_ids_are_not_found(client, auth_headers):
    menu_item = await client.get(f"/api/menu/{10**20}")
    order = await client.get(f"/api/orders/{10**20}", headers=auth_headers)

    assert menu_item.status_code == 404
    assert order.status_code == 404
