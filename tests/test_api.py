ORDER_BODY = {
    "items": [{"name": "Masala Dosa", "qty": 1, "price": 70}],
    "customer": {"name": "Asha", "phone": "9876543210", "address": "12 Temple Road"},
    "totalAmount": 70,
    "paymentMethod": "UPI",
}

RIDER_BODY = {
    "name": "Ravi",
    "phone": "9000000001",
    "password": "ride123",
    "vehicleType": "Bike",
    "vehicleNumber": "TN-01-1234",
}


def register_rider(client, **overrides):
    response = client.post("/api/rider/auth/register", json={**RIDER_BODY, **overrides})
    assert response.status_code == 201
    return response.json()["data"]


def test_root_and_health(client):
    assert client.get("/").json()["success"] is True

    health = client.get("/health").json()
    assert health["status"] == "operational"
    assert health["database"] == "healthy"
    assert health["redis"] == "disabled"


def test_unknown_route(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route not found", "path": "/api/nowhere"}


def test_create_and_fetch_order(client):
    response = client.post("/api/orders", json=ORDER_BODY)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    order = body["data"]
    assert order["id"].startswith("ORD")
    assert order["status"] == "placed"
    assert order["totalAmount"] == 70
    assert order["paymentMethod"] == "UPI"

    fetched = client.get(f"/api/orders/{order['id']}").json()["data"]
    assert fetched["customer"]["phone"] == "9876543210"

    listing = client.get("/api/orders", params={"phone": "9876543210"}).json()["data"]
    assert listing["count"] == 1
    assert "inProgress" in listing["statuses"]


def test_create_order_validation_envelope(client):
    response = client.post("/api/orders", json={**ORDER_BODY, "items": []})
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Items, customer info, and total amount are required",
    }


def test_missing_order_is_404(client):
    response = client.get("/api/orders/ORD-missing")
    assert response.status_code == 404
    assert response.json()["message"] == "Order not found"


def test_order_status_endpoints(client):
    order = client.post("/api/orders", json=ORDER_BODY).json()["data"]

    bad = client.patch(f"/api/orders/{order['id']}/status", json={"status": "shipped"})
    assert bad.status_code == 400

    done = client.patch(f"/api/orders/{order['id']}/status", json={"status": "delivered"})
    assert done.status_code == 200
    assert done.json()["data"]["deliveredAt"] is not None

    by_status = client.get("/api/orders/status/delivered").json()["data"]
    assert by_status["count"] == 1

    stats = client.get("/api/orders/stats").json()["data"]
    assert stats["delivered"] == 1
    assert stats["todayRevenue"] == 70


def test_assignment_flow_and_double_booking(client, push):
    rider = register_rider(client)["rider"]
    client.patch(f"/api/riders/{rider['id']}/status", json={"status": "available"})
    first = client.post("/api/orders", json=ORDER_BODY).json()["data"]
    second = client.post("/api/orders", json=ORDER_BODY).json()["data"]

    response = client.patch(f"/api/orders/{first['id']}/assign", json={"riderId": rider["id"]})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "inProgress"
    assert response.json()["data"]["riderName"] == "Ravi"

    clash = client.patch(f"/api/orders/{second['id']}/assign", json={"riderId": rider["id"]})
    assert clash.status_code == 409
    assert clash.json()["success"] is False

    missing = client.patch(f"/api/orders/{second['id']}/assign", json={})
    assert missing.status_code == 400
    assert missing.json()["message"] == "Rider ID is required"

    profile = client.get(f"/api/riders/{rider['id']}").json()["data"]
    assert profile["status"] == "on-delivery"
    assert profile["currentOrderId"] == first["id"]
    assert "fcmToken" not in profile

    # No device token registered yet
    assert push.sent == []


def test_rider_update_rejects_protected_fields(client):
    rider = register_rider(client)["rider"]

    response = client.put(f"/api/riders/{rider['id']}", json={"totalDeliveries": 50})
    assert response.status_code == 400

    response = client.put(f"/api/riders/{rider['id']}", json={"vehicleNumber": "TN-02-9999"})
    assert response.status_code == 200
    assert response.json()["data"]["vehicleNumber"] == "TN-02-9999"
    assert response.json()["data"]["totalDeliveries"] == 0


def test_rider_crud_endpoints(client):
    created = client.post("/api/riders", json={"name": "Meena", "phone": "9000000002"})
    assert created.status_code == 201
    rider_id = created.json()["data"]["id"]

    assert client.get("/api/riders").json()["data"]["count"] == 1
    assert client.get("/api/riders/available").json()["data"]["count"] == 0
    assert client.get("/api/riders/stats").json()["data"]["offline"] == 1

    deleted = client.delete(f"/api/riders/{rider_id}")
    assert deleted.status_code == 200
    assert deleted.json()["data"]["isActive"] is False
    assert client.get("/api/riders").json()["data"]["count"] == 0


def test_rider_login(client):
    registered = register_rider(client)

    response = client.post("/api/rider/auth/login", json={"phone": "9000000001", "password": "ride123"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["rider"]["id"] == registered["rider"]["id"]
    assert data["token"]

    wrong = client.post("/api/rider/auth/login", json={"phone": "9000000001", "password": "nope123"})
    assert wrong.status_code == 401


def test_duplicate_rider_registration_is_409(client):
    register_rider(client)
    response = client.post("/api/rider/auth/register", json={**RIDER_BODY, "name": "Other"})
    assert response.status_code == 409
    assert client.get("/api/riders").json()["data"]["count"] == 1


def test_short_rider_password_is_400(client):
    response = client.post("/api/rider/auth/register", json={**RIDER_BODY, "password": "123"})
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert client.get("/api/riders").json()["data"]["count"] == 0


def test_fcm_token_requires_matching_rider(client, push):
    registered = register_rider(client)
    rider_id = registered["rider"]["id"]
    headers = {"Authorization": f"Bearer {registered['token']}"}

    no_token = client.post("/api/rider/auth/fcm-token", json={"riderId": rider_id, "fcmToken": "t1"})
    assert no_token.status_code == 401

    other = client.post(
        "/api/rider/auth/fcm-token",
        json={"riderId": "RDR-someone-else", "fcmToken": "t1"},
        headers=headers,
    )
    assert other.status_code == 403

    incomplete = client.post("/api/rider/auth/fcm-token", json={"riderId": rider_id}, headers=headers)
    assert incomplete.status_code == 400
    assert incomplete.json()["detail"] == {"riderId": True, "fcmToken": False}

    ok = client.post(
        "/api/rider/auth/fcm-token",
        json={"riderId": rider_id, "fcmToken": "device-token-1"},
        headers=headers,
    )
    assert ok.status_code == 200

    # The stored token now receives assignment alerts
    client.patch(f"/api/riders/{rider_id}/status", json={"status": "available"})
    order = client.post("/api/orders", json=ORDER_BODY).json()["data"]
    client.patch(f"/api/orders/{order['id']}/assign", json={"riderId": rider_id})
    assert push.sent[-1]["token"] == "device-token-1"


def test_customer_token_cannot_set_rider_push_token(client):
    customer = client.post(
        "/api/auth/register",
        json={"name": "Asha", "phone": "9876543210", "password": "secret1"},
    ).json()["data"]

    response = client.post(
        "/api/rider/auth/fcm-token",
        json={"riderId": "RDR1", "fcmToken": "t1"},
        headers={"Authorization": f"Bearer {customer['token']}"},
    )
    assert response.status_code == 403


def test_customer_auth_and_admin(client):
    registered = client.post(
        "/api/auth/register",
        json={"name": "Asha", "phone": "9876543210", "password": "secret1", "email": "asha@example.com"},
    )
    assert registered.status_code == 201
    assert "passwordHash" not in registered.json()["data"]["user"]

    duplicate = client.post(
        "/api/auth/register",
        json={"name": "Asha", "phone": "9876543210", "password": "secret1"},
    )
    assert duplicate.status_code == 409

    as_rider = client.post(
        "/api/auth/register",
        json={"name": "Bala", "phone": "9123456789", "password": "secret1", "role": "rider"},
    )
    assert as_rider.status_code == 400

    login = client.post("/api/auth/login", json={"phone": "9876543210", "password": "secret1"})
    assert login.status_code == 200
    assert login.json()["data"]["user"]["lastLogin"] is not None

    assert client.get("/api/users").json()["data"]["count"] == 1
    assert client.get("/api/users/9876543210").json()["data"]["name"] == "Asha"
    assert client.get("/api/users/9000000000").status_code == 404

    bad_flag = client.patch("/api/users/9876543210/status", json={"isActive": "no"})
    assert bad_flag.status_code == 400

    deactivated = client.patch("/api/users/9876543210/status", json={"isActive": False})
    assert deactivated.status_code == 200
    assert deactivated.json()["data"]["isActive"] is False

    blocked = client.post("/api/auth/login", json={"phone": "9876543210", "password": "secret1"})
    assert blocked.status_code == 403

    stats = client.get("/api/users/stats").json()["data"]
    assert stats == {"total": 1, "active": 0, "verified": 0, "inactive": 1, "recentSignups": 1}
