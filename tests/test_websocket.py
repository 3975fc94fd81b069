"""
WebSocket flows between customer and admin clients
"""

import pytest
from fastapi.testclient import TestClient

from main import create_app


@pytest.fixture
def client(test_settings):
    with TestClient(create_app(test_settings)) as client:
        yield client

@pytest.fixture
def session_id(client):
    return client.post("/api/sessions/create", json={"name": "Table 5", "tableNumber": "5"}).json()["data"]["sessionId"]

def send(ws, event, data=None):
    ws.send_json({"event": event, "data": data or {}})

def burgers(session_id):
    return {"sessionId": session_id, "items": [{"itemName": "Burger", "quantity": 2, "price": 12.99}]}


def test_admin_join_receives_ack_then_snapshot(client, session_id):
    client.post("/api/orders/create", json=burgers(session_id))

    with client.websocket_connect("/ws/orders") as admin:
        send(admin, "joinAdmin")

        ack = admin.receive_json()
        assert ack == {"event": "joinedAdmin", "data": {"userType": "admin"}}

        snapshot = admin.receive_json()
        assert snapshot["event"] == "initialOrders"
        assert len(snapshot["data"]["orders"]) == 1
        assert snapshot["data"]["orders"][0]["totalAmount"] == 25.98

def test_customer_join_gets_ack_only(client, session_id):
    with client.websocket_connect("/ws/orders") as customer:
        send(customer, "joinSession", {"sessionId": session_id, "userType": "customer"})
        assert customer.receive_json() == {
            "event": "joinedSession",
            "data": {"sessionId": session_id, "userType": "customer"},
        }

        # Nothing else is queued: the next reply is the pong
        send(customer, "ping", {"timestamp": 1})
        assert customer.receive_json() == {"event": "pong", "data": {"timestamp": 1}}

def test_admin_watching_a_session_gets_its_snapshot(client, session_id):
    client.post("/api/orders/create", json=burgers(session_id))

    with client.websocket_connect("/ws/orders") as admin:
        send(admin, "joinSession", {"sessionId": session_id, "role": "admin"})
        assert admin.receive_json()["event"] == "joinedSession"
        snapshot = admin.receive_json()
        assert snapshot["event"] == "initialOrders"
        assert [o["sessionId"] for o in snapshot["data"]["orders"]] == [session_id]

def test_order_placed_over_websocket(client, session_id):
    with client.websocket_connect("/ws/orders") as admin, client.websocket_connect("/ws/orders") as customer:
        send(admin, "joinAdmin")
        admin.receive_json()
        admin.receive_json()
        send(customer, "joinSession", {"sessionId": session_id})
        customer.receive_json()

        send(customer, "orderPlaced", burgers(session_id))

        new_order = customer.receive_json()
        assert new_order["event"] == "newOrder"
        confirmed = customer.receive_json()
        assert confirmed["event"] == "orderConfirmed"
        assert confirmed["data"]["orderId"] == new_order["data"]["order"]["orderId"]
        assert confirmed["data"]["replayed"] is False

        admin_copy = admin.receive_json()
        assert admin_copy == new_order

def test_status_update_over_websocket(client, session_id):
    order_id = client.post("/api/orders/create", json=burgers(session_id)).json()["data"]["orderId"]

    with client.websocket_connect("/ws/orders") as admin, client.websocket_connect("/ws/orders") as customer:
        send(admin, "joinAdmin")
        admin.receive_json()
        admin.receive_json()
        send(customer, "joinSession", {"sessionId": session_id})
        customer.receive_json()

        send(admin, "updateOrderStatus", {"orderId": order_id, "status": "ready", "adminNotes": "extra sauce"})

        admin_update = admin.receive_json()
        assert admin_update["event"] == "orderStatusUpdated"
        customer_update = customer.receive_json()
        assert customer_update["event"] == "statusUpdated"
        assert customer_update["data"] == admin_update["data"]
        assert customer_update["data"]["status"] == "ready"
        assert customer_update["data"]["adminNotes"] == "extra sauce"

def test_rest_status_update_reaches_websocket_clients(client, session_id):
    order_id = client.post("/api/orders/create", json=burgers(session_id)).json()["data"]["orderId"]

    with client.websocket_connect("/ws/orders") as customer:
        send(customer, "joinSession", {"sessionId": session_id})
        customer.receive_json()

        client.put(f"/api/orders/{order_id}/status", json={"status": "preparing"})

        update = customer.receive_json()
        assert update["event"] == "statusUpdated"
        assert update["data"]["orderId"] == order_id
        assert update["data"]["order"]["status"] == "preparing"

def test_customer_typing_is_relayed_to_admins(client, session_id):
    with client.websocket_connect("/ws/orders") as admin, client.websocket_connect("/ws/orders") as customer:
        send(admin, "joinAdmin")
        admin.receive_json()
        admin.receive_json()
        send(customer, "joinSession", {"sessionId": session_id})
        customer.receive_json()

        send(customer, "customerTyping", {"sessionId": session_id, "isTyping": True})

        relayed = admin.receive_json()
        assert relayed["event"] == "customerEvent"
        assert relayed["data"]["type"] == "customerTyping"
        assert relayed["data"]["sessionId"] == session_id

def test_error_replies(client, session_id):
    with client.websocket_connect("/ws/orders") as ws:
        send(ws, "launchRocket")
        assert ws.receive_json() == {"event": "error", "data": {"message": "Unknown event: launchRocket"}}

        send(ws, "joinSession", {})
        assert ws.receive_json()["data"]["message"] == "Session ID is required"

        send(ws, "joinSession", {"sessionId": "missing"})
        assert ws.receive_json()["data"]["message"] == "Session not found"

        send(ws, "orderPlaced", burgers("missing"))
        error = ws.receive_json()
        assert error["event"] == "error"
        assert "Session not found" in error["data"]["message"]

        send(ws, "updateOrderStatus", {"orderId": "nonexistent-id", "status": "accepted"})
        assert "Order not found" in ws.receive_json()["data"]["message"]

        ws.send_text("not json")
        assert ws.receive_json() == {"event": "error", "data": {"message": "Invalid JSON message"}}

def test_admin_join_requires_token_when_auth_enabled(test_settings):
    test_settings.REQUIRE_ADMIN_AUTH = True
    test_settings.ADMIN_TOKEN = "s3cret"
    with TestClient(create_app(test_settings)) as client:
        with client.websocket_connect("/ws/orders") as ws:
            send(ws, "joinAdmin")
            assert ws.receive_json() == {"event": "error", "data": {"message": "Invalid admin token"}}

            send(ws, "joinAdmin", {"token": "s3cret"})
            assert ws.receive_json()["event"] == "joinedAdmin"

def test_stats_endpoint(client, session_id):
    with client.websocket_connect("/ws/orders") as customer:
        send(customer, "joinSession", {"sessionId": session_id})
        customer.receive_json()

        stats = client.get("/ws/stats").json()
        assert stats["total_connections"] == 1
        assert stats["connection_counts"] == {f"session:{session_id}": 1}

def test_menu_changes_reach_connected_clients(client):
    with client.websocket_connect("/ws/orders") as ws:
        send(ws, "ping")
        ws.receive_json()

        item = client.post("/api/menu", json={"name": "Burger", "price": 12.99}).json()["data"]
        created = ws.receive_json()
        assert created["event"] == "menuUpdated"
        assert created["data"]["action"] == "create"
        assert created["data"]["productId"] == item["id"]
        assert created["data"]["product"]["name"] == "Burger"

        client.put(f"/api/menu/{item['id']}", json={"price": 13.5})
        updated = ws.receive_json()
        assert updated["data"]["action"] == "update"
        assert updated["data"]["product"]["price"] == 13.5

        client.delete(f"/api/menu/{item['id']}")
        assert ws.receive_json() == {
            "event": "menuUpdated",
            "data": {"action": "delete", "productId": item["id"]},
        }
