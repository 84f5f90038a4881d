"""Integration tests for the store admin API.

Admin status comes from the role table only; tokens carry identity.
"""

import csv
import io

import pytest
import pytest_asyncio
from services.store_service.models import AppRole, OrderStatus, UserRole
from sqlalchemy import select
from tests.factories import (
    InventoryItemFactory,
    OrderFactory,
    UserRoleFactory,
    auth_header,
)

ADMIN_ID = "admin-1"


@pytest.fixture
def admin_headers() -> dict:
    return auth_header(ADMIN_ID, "admin@example.com")


@pytest_asyncio.fixture
async def admin_role(db_session):
    role = UserRoleFactory.create(user_id=ADMIN_ID)
    db_session.add(role)
    await db_session.commit()
    return role


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_reports_admin(client, admin_role, admin_headers):
    response = await client.get("/admin/verify", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["is_admin"] is True
    assert data["user_id"] == ADMIN_ID
    assert data["verified_at"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_reports_non_admin(client):
    response = await client.get("/admin/verify", headers=auth_header("user-9"))

    assert response.status_code == 200
    assert response.json()["is_admin"] is False


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_claim_in_token_is_not_trusted(client):
    """A role claim in the token grants nothing without a role row."""
    from jose import jwt
    from libs.common.config import get_settings

    token = jwt.encode(
        {"sub": "user-9", "role": "admin", "app_metadata": {"role": "admin"}},
        get_settings().SUPABASE_JWT_SECRET,
        algorithm="HS256",
    )

    response = await client.get(
        "/admin/orders", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_orders_with_status_filter(client, db_session, admin_role, admin_headers):
    db_session.add_all(
        [
            OrderFactory.create(status=OrderStatus.SHIPPED),
            OrderFactory.create(status=OrderStatus.CONFIRMED),
        ]
    )
    await db_session.commit()

    response = await client.get(
        "/admin/orders", params={"status": "shipped"}, headers=admin_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["status"] == "shipped"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_order_by_id(client, db_session, admin_role, admin_headers):
    order = OrderFactory.create()
    db_session.add(order)
    await db_session.commit()

    response = await client.get(f"/admin/orders/{order.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["order_number"] == order.order_number


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_order_status(client, db_session, admin_role, admin_headers):
    order = OrderFactory.create()
    db_session.add(order)
    await db_session.commit()

    response = await client.patch(
        f"/admin/orders/{order.id}/status",
        json={"status": "shipped"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "shipped"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_status_rejects_unknown_value(client, db_session, admin_role, admin_headers):
    order = OrderFactory.create()
    db_session.add(order)
    await db_session.commit()

    response = await client.patch(
        f"/admin/orders/{order.id}/status",
        json={"status": "teleported"},
        headers=admin_headers,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_stats(client, db_session, admin_role, admin_headers):
    db_session.add_all(
        [OrderFactory.create(), OrderFactory.create(status=OrderStatus.DELIVERED)]
    )
    await db_session.commit()

    response = await client.get("/admin/orders/stats", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total_orders"] == 2
    assert data["completed_orders"] == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_missing_order_is_404(client, admin_role, admin_headers):
    response = await client.get(
        "/admin/orders/00000000-0000-0000-0000-000000000000", headers=admin_headers
    )

    assert response.status_code == 404


# ---------------------------------------------------------------------------
# Order export
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_export_orders_as_csv(client, db_session, admin_role, admin_headers):
    db_session.add_all(
        [
            OrderFactory.create(
                order_number="ORD-AAA-0001",
                customer_name='Sipho "Sips" Dlamini',
                status=OrderStatus.SHIPPED,
            ),
            OrderFactory.create(order_number="ORD-AAA-0002"),
        ]
    )
    await db_session.commit()

    response = await client.get("/admin/orders/export", headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"].startswith(
        'attachment; filename="orders-'
    )
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0][0] == "Order Number"
    assert {row[0] for row in rows[1:]} == {"ORD-AAA-0001", "ORD-AAA-0002"}
    assert '"Sipho ""Sips"" Dlamini"' in response.text


@pytest.mark.asyncio
@pytest.mark.integration
async def test_export_orders_filtered_by_status(client, db_session, admin_role, admin_headers):
    db_session.add_all(
        [
            OrderFactory.create(order_number="ORD-BBB-0001", status=OrderStatus.SHIPPED),
            OrderFactory.create(order_number="ORD-BBB-0002"),
        ]
    )
    await db_session.commit()

    response = await client.get(
        "/admin/orders/export", params={"status": "shipped"}, headers=admin_headers
    )

    rows = list(csv.reader(io.StringIO(response.text)))
    assert [row[0] for row in rows[1:]] == ["ORD-BBB-0001"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_export_requires_admin(client):
    response = await client.get("/admin/orders/export", headers=auth_header("user-9"))

    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_seed_then_list_inventory(client, admin_role, admin_headers):
    products = [
        {"product_id": 1, "product_name": "Hoodie"},
        {"product_id": 2, "product_name": "Cap"},
    ]

    seeded = await client.post(
        "/admin/inventory/seed", json={"products": products}, headers=admin_headers
    )
    again = await client.post(
        "/admin/inventory/seed", json={"products": products}, headers=admin_headers
    )
    listed = await client.get("/admin/inventory", headers=admin_headers)

    assert seeded.status_code == 201
    assert seeded.json()["created"] == 2
    assert again.json()["created"] == 0
    data = listed.json()
    assert [item["product_name"] for item in data["items"]] == ["Cap", "Hoodie"]
    assert all(item["stock_quantity"] == 50 for item in data["items"])
    assert all(item["stock_status"] == "in_stock" for item in data["items"])
    assert data["low_stock_count"] == data["out_of_stock_count"] == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_inventory_alerts_and_low_stock_list(client, db_session, admin_role, admin_headers):
    db_session.add_all(
        [
            InventoryItemFactory.create(product_name="Cap", stock_quantity=0),
            InventoryItemFactory.create(product_name="Hoodie", stock_quantity=4),
            InventoryItemFactory.create(product_name="Tee", stock_quantity=90),
        ]
    )
    await db_session.commit()

    overview = await client.get("/admin/inventory", headers=admin_headers)
    low = await client.get("/admin/inventory/low-stock", headers=admin_headers)

    assert overview.json()["low_stock_count"] == 1
    assert overview.json()["out_of_stock_count"] == 1
    assert [(i["product_name"], i["stock_status"]) for i in low.json()] == [
        ("Cap", "out_of_stock"),
        ("Hoodie", "low_stock"),
    ]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_inventory_quantity_and_threshold(
    client, db_session, admin_role, admin_headers
):
    item = InventoryItemFactory.create(stock_quantity=50, low_stock_threshold=10)
    db_session.add(item)
    await db_session.commit()

    response = await client.patch(
        f"/admin/inventory/{item.id}",
        json={"stock_quantity": 8, "low_stock_threshold": 5},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["stock_quantity"] == 8
    assert data["low_stock_threshold"] == 5
    assert data["stock_status"] == "in_stock"


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "body", [{}, {"stock_quantity": -1}, {"low_stock_threshold": -3}]
)
async def test_update_inventory_rejects_bad_values(
    client, db_session, admin_role, admin_headers, body
):
    item = InventoryItemFactory.create()
    db_session.add(item)
    await db_session.commit()

    response = await client.patch(
        f"/admin/inventory/{item.id}", json=body, headers=admin_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_missing_inventory_is_404(client, admin_role, admin_headers):
    response = await client.patch(
        "/admin/inventory/00000000-0000-0000-0000-000000000000",
        json={"stock_quantity": 1},
        headers=admin_headers,
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Inventory item not found"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_inventory_requires_admin(client):
    response = await client.get("/admin/inventory", headers=auth_header("user-9"))

    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_promote_customer_by_email(client, db_session, admin_role, admin_headers):
    db_session.add(
        OrderFactory.create(user_id="user-7", customer_email="Sipho@example.com")
    )
    await db_session.commit()

    response = await client.post(
        "/admin/roles", json={"email": "sipho@example.com"}, headers=admin_headers
    )

    assert response.status_code == 201
    assert response.json()["user_id"] == "user-7"
    result = await db_session.execute(
        select(UserRole).where(UserRole.user_id == "user-7", UserRole.role == AppRole.ADMIN)
    )
    assert result.scalar_one_or_none() is not None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_promote_unknown_email_is_404(client, admin_role, admin_headers):
    response = await client.post(
        "/admin/roles", json={"email": "nobody@example.com"}, headers=admin_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_promote_existing_admin_is_409(client, db_session, admin_role, admin_headers):
    db_session.add(OrderFactory.create(user_id=ADMIN_ID, customer_email="admin@example.com"))
    await db_session.commit()

    response = await client.post(
        "/admin/roles", json={"email": "admin@example.com"}, headers=admin_headers
    )

    assert response.status_code == 409


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_and_revoke_roles(client, db_session, admin_role, admin_headers):
    other = UserRoleFactory.create(user_id="user-8")
    db_session.add(other)
    await db_session.commit()

    listed = await client.get("/admin/roles", headers=admin_headers)
    assert {r["user_id"] for r in listed.json()} == {ADMIN_ID, "user-8"}

    response = await client.delete(f"/admin/roles/{other.id}", headers=admin_headers)
    assert response.status_code == 204

    listed = await client.get("/admin/roles", headers=admin_headers)
    assert [r["user_id"] for r in listed.json()] == [ADMIN_ID]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_cannot_revoke_own_role(client, admin_role, admin_headers):
    response = await client.delete(f"/admin/roles/{admin_role.id}", headers=admin_headers)

    assert response.status_code == 400
