"""
HTTP API Tests

Drives the FastAPI application through TestClient with a SQLite database.
Entering the client runs the lifespan, so every test gets its own engine,
repository and NotificationService.

Test Categories:
1. Root and health
2. Catalog
3. Orders and checkout
4. Status updates and notifications
5. Error mapping
"""
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from ordering.main import create_app


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as client:
        yield client


@pytest.fixture
def catalog(client):
    customer = client.post(
        "/api/customers", json={"name": "Jane Doe", "email": "jane@example.com"}
    ).json()
    pizza = client.post(
        "/api/items", json={"name": "Margherita Pizza", "price": 12.50, "category": "Mains"}
    ).json()
    burger = client.post(
        "/api/items", json={"name": "Cheeseburger", "price": 7.50, "category": "Mains"}
    ).json()
    return {"customer": customer, "pizza": pizza, "burger": burger}


def _place(client, catalog, **extra):
    payload = {
        "customer_id": catalog["customer"]["id"],
        "items": [{"item_id": catalog["pizza"]["id"]}, {"item_id": catalog["burger"]["id"]}],
    }
    payload.update(extra)
    return client.post("/api/orders", json=payload)


# ============================================================================
# ROOT & HEALTH
# ============================================================================

class TestRoot:

    def test_root(self, client):
        data = client.get("/").json()
        assert data["message"] == "Welcome to Tasty Eats"
        assert data["environment"] == "development"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"


# ============================================================================
# CATALOG
# ============================================================================

class TestCatalogEndpoints:

    def test_create_customer(self, client):
        response = client.post("/api/customers", json={"name": "Jane Doe"})

        assert response.status_code == 201
        assert response.json()["id"] > 0

    def test_invalid_customer_email(self, client):
        response = client.post("/api/customers", json={"name": "Jane", "email": "nope"})
        assert response.status_code == 422

    def test_items_by_category(self, client, catalog):
        client.post("/api/items", json={"name": "Fries", "price": 3.0, "category": "Sides"})

        mains = client.get("/api/items", params={"category": "mains"}).json()
        everything = client.get("/api/items").json()

        assert {i["name"] for i in mains} == {"Margherita Pizza", "Cheeseburger"}
        assert len(everything) == 3

    def test_payment_methods(self, client):
        assert client.get("/api/payment-methods").json() == {
            "methods": ["cash", "credit", "check"]
        }


# ============================================================================
# ORDERS
# ============================================================================

class TestOrderEndpoints:

    def test_place_order(self, client, catalog):
        response = _place(client, catalog)

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["payment"] is None
        assert data["order"]["total_amount"] == 20.00
        assert data["order"]["status"] == "Pending"
        assert len(data["order"]["status_history"]) == 1

    def test_place_and_pay(self, client, catalog):
        response = _place(
            client, catalog,
            payment_method="cash",
            payment_details={"amount_tendered": 25.0, "card_number": "ignored"},
        )

        data = response.json()
        assert data["success"] is True
        assert data["payment"]["change_due"] == 5.0
        assert data["order"]["payment_status"] == "Completed"

    def test_place_with_declined_card(self, client, catalog):
        expired = (datetime.now() - timedelta(days=1)).isoformat()
        response = _place(
            client, catalog,
            payment_method="credit",
            payment_details={"expiry_date": expired},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is False
        assert data["payment"]["error_code"] == "expired_card"
        assert data["order"]["payment_status"] == "Failed"

    def test_utc_expiry_date_is_accepted(self, client, catalog):
        response = _place(
            client, catalog,
            payment_method="credit",
            payment_details={"expiry_date": "2030-01-01T00:00:00Z"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["payment"]["status"] == "Completed"
        assert data["order"]["payment_status"] == "Completed"

    @pytest.mark.parametrize("check_date,success", [
        ("2020-01-01T00:00:00+02:00", True),
        ("2999-01-01T00:00:00-05:00", False),
    ])
    def test_offset_cheque_date_is_judged(self, client, catalog, check_date, success):
        order_id = _place(client, catalog).json()["order"]["id"]

        response = client.post(
            f"/api/orders/{order_id}/checkout",
            json={"payment_method": "check", "payment_details": {"check_date": check_date}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is success
        assert data["order"]["payment_status"] == ("Completed" if success else "Failed")

    def test_place_with_customizations(self, client, catalog):
        response = _place(
            client, catalog,
            items=[{
                "item_id": catalog["pizza"]["id"],
                "quantity": 2,
                "customizations": [{"name": "Extra cheese", "additional_cost": 1.50}],
            }],
        )

        assert response.status_code == 201
        [line] = response.json()["order"]["line_items"]
        assert line["customizations"] == [{"name": "Extra cheese", "additional_cost": 1.50}]
        assert line["customization_cost"] == 3.00
        assert line["total_price"] == 28.00
        assert response.json()["order"]["total_amount"] == 28.00

    def test_customize_existing_line(self, client, catalog):
        order_id = _place(client, catalog).json()["order"]["id"]
        pizza_id = catalog["pizza"]["id"]
        url = f"/api/orders/{order_id}/items/{pizza_id}/customizations"

        added = client.post(url, json={"name": "Extra cheese", "additional_cost": 1.50})
        assert added.status_code == 200
        assert added.json()["total_amount"] == 21.50

        removed = client.delete(f"{url}/Extra cheese")
        assert removed.status_code == 200
        assert removed.json()["total_amount"] == 20.00
        assert client.get(f"/api/orders/{order_id}").json()["total_amount"] == 20.00

    def test_customizing_missing_line_is_400(self, client, catalog):
        order_id = _place(client, catalog).json()["order"]["id"]

        response = client.post(
            f"/api/orders/{order_id}/items/999/customizations", json={"name": "Extra cheese"}
        )
        assert response.status_code == 400

    def test_get_and_list_orders(self, client, catalog):
        order_id = _place(client, catalog).json()["order"]["id"]

        assert client.get(f"/api/orders/{order_id}").json()["id"] == order_id
        listed = client.get("/api/orders", params={"status": "pending"}).json()
        assert listed["total"] == 1

        history = client.get(f"/api/customers/{catalog['customer']['id']}/orders").json()
        assert [o["id"] for o in history["orders"]] == [order_id]

    def test_checkout_existing_order(self, client, catalog):
        order_id = _place(client, catalog).json()["order"]["id"]

        response = client.post(
            f"/api/orders/{order_id}/checkout",
            json={"payment_method": "check", "payment_details": {"bank_name": "First Bank"}},
        )

        data = response.json()
        assert data["success"] is True
        assert data["order"]["payment_method"] == "check"


# ============================================================================
# STATUS & NOTIFICATIONS
# ============================================================================

class TestStatusEndpoints:

    def test_lifecycle_over_http(self, client, catalog):
        order_id = _place(client, catalog).json()["order"]["id"]

        for status in ("Preparing", "Ready", "Delivered", "Completed"):
            response = client.post(f"/api/orders/{order_id}/status", json={"status": status})
            assert response.status_code == 200

        cancelled = client.post(f"/api/orders/{order_id}/cancel").json()
        assert cancelled["status"] == "Completed"
        assert len(cancelled["status_history"]) == 5

        stats = client.get("/api/notifications/stats").json()
        assert stats == {
            "monitored_orders": 1,
            "customer_notifications": 4,
            "kitchen_notifications": 4,
            "delivery_notifications": 4,
        }

    def test_custom_notification(self, client):
        response = client.post("/api/notifications/custom", json={"message": "Kitchen delayed"})

        assert response.json()["success"] is True
        stats = client.get("/api/notifications/stats").json()
        assert stats["monitored_orders"] == 0
        assert stats["kitchen_notifications"] == 1


# ============================================================================
# ERROR MAPPING
# ============================================================================

class TestErrorMapping:

    def test_unknown_order_is_404(self, client):
        assert client.get("/api/orders/999").status_code == 404
        assert client.post("/api/orders/999/status", json={"status": "Ready"}).status_code == 404
        assert client.post("/api/orders/999/cancel").status_code == 404

    def test_unknown_status_is_400(self, client, catalog):
        order_id = _place(client, catalog).json()["order"]["id"]

        response = client.post(f"/api/orders/{order_id}/status", json={"status": "Shipped"})

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidArgumentError"

    def test_unsupported_payment_method_is_400(self, client, catalog):
        response = _place(client, catalog, payment_method="bitcoin")
        assert response.status_code == 400
        assert client.get("/api/orders").json()["total"] == 0

    def test_unknown_customer_is_400(self, client, catalog):
        response = client.post(
            "/api/orders", json={"customer_id": 999, "items": [{"item_id": 1}]}
        )
        assert response.status_code == 400

    def test_paying_twice_is_409(self, client, catalog):
        order_id = _place(client, catalog, payment_method="cash").json()["order"]["id"]

        response = client.post(
            f"/api/orders/{order_id}/checkout", json={"payment_method": "cash"}
        )
        assert response.status_code == 409
