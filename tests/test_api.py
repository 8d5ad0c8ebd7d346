GUEST = ("guest-1", "guest", "asha@example.com", "Asha")
OTHER = ("guest-2", "guest", "ravi@example.com", "Ravi")
HOST = ("host-1", "host", "host@villa.test", "Host")


def _book(client, headers, target="single-room-attached", start="2024-06-01", end="2024-06-03"):
    return client.post("/api/v1/bookings", json={"target": target, "start_date": start, "end_date": end}, headers=headers)


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_configurations_are_listed_cheapest_first(client):
    res = client.get("/api/v1/configurations")
    assert res.status_code == 200
    body = res.json()
    assert [c["slug"] for c in body] == ["single-room-shared", "single-room-attached", "3bhk-villa", "entire-villa"]
    three_bhk = body[2]
    assert three_bhk["price_per_night"] == 8000
    assert set(three_bhk["resources"]) == {"master-bedroom", "bedroom-2", "ground-floor-bedroom"}


def test_booking_requires_identity(client):
    assert _book(client, {}).status_code == 401
    assert client.get("/api/v1/bookings").status_code == 401
    assert _book(client, {"Authorization": "Bearer forged"}).status_code == 401


def test_create_booking(client, auth):
    res = _book(client, auth(*GUEST))
    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "pending"
    assert body["kind"] == "guest"
    assert body["nights"] == 2
    assert body["total_price"] == 3000
    assert body["guest_name"] == "Asha"
    assert "guest_email" not in body


def test_overlapping_request_is_a_conflict(client, auth):
    assert _book(client, auth(*GUEST), target="entire-villa").status_code == 201
    res = _book(client, auth(*OTHER), target="3bhk-villa", start="2024-06-02", end="2024-06-05")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CONFLICT"
    assert res.json()["error"]["retryable"] is False


def test_bad_requests(client, auth):
    same_day = _book(client, auth(*GUEST), start="2024-06-01", end="2024-06-01")
    assert same_day.status_code == 400
    assert same_day.json()["error"]["code"] == "INVALID_RANGE"

    unknown = _book(client, auth(*GUEST), target="penthouse")
    assert unknown.status_code == 404
    assert unknown.json()["error"]["code"] == "NOT_FOUND"

    assert client.post("/api/v1/bookings", json={"target": "villa"}, headers=auth(*GUEST)).status_code == 422


def test_guest_sees_and_cancels_only_own_bookings(client, auth):
    mine = _book(client, auth(*GUEST)).json()
    _book(client, auth(*OTHER), target="single-room-shared")

    listed = client.get("/api/v1/bookings", headers=auth(*GUEST)).json()
    assert [b["id"] for b in listed] == [mine["id"]]

    assert client.post(f"/api/v1/bookings/{mine['id']}/cancel", headers=auth(*OTHER)).status_code == 404
    res = client.post(f"/api/v1/bookings/{mine['id']}/cancel", headers=auth(*GUEST))
    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"


def test_admin_routes_require_host(client, auth):
    booking = _book(client, auth(*GUEST)).json()
    assert client.get("/api/v1/admin/bookings").status_code == 401
    assert client.get("/api/v1/admin/bookings", headers=auth(*GUEST)).status_code == 403
    res = client.patch(f"/api/v1/admin/bookings/{booking['id']}", json={"action": "confirm"}, headers=auth(*GUEST))
    assert res.status_code == 403


def test_host_confirms_then_double_confirm_fails(client, auth):
    booking = _book(client, auth(*GUEST)).json()
    url = f"/api/v1/admin/bookings/{booking['id']}"

    res = client.patch(url, json={"action": "confirm", "note": "Welcome!"}, headers=auth(*HOST))
    assert res.status_code == 200
    assert res.json()["status"] == "confirmed"
    assert res.json()["guest_email"] == "asha@example.com"
    assert res.json()["decision_note"] == "Welcome!"

    again = client.patch(url, json={"action": "confirm"}, headers=auth(*HOST))
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "INVALID_TRANSITION"

    assert client.patch(url, json={"action": "approve"}, headers=auth(*HOST)).status_code == 422
    assert client.patch("/api/v1/admin/bookings/999", json={"action": "confirm"}, headers=auth(*HOST)).status_code == 404


def test_host_blocks_dates_and_availability_shows_them(client, auth):
    res = client.post(
        "/api/v1/admin/blocks",
        json={"target": "villa", "start_date": "2024-07-01", "end_date": "2024-07-05", "note": "Painting"},
        headers=auth(*HOST),
    )
    assert res.status_code == 201
    block = res.json()
    assert block["kind"] == "block"
    assert block["status"] == "confirmed"
    assert block["total_price"] is None

    assert _book(client, auth(*GUEST), start="2024-07-04", end="2024-07-06").status_code == 409

    avail = client.get("/api/v1/availability", params={"target": "single-room-attached", "from": "2024-06-15", "to": "2024-07-15"})
    assert avail.status_code == 200
    rows = avail.json()
    assert len(rows) == 1
    assert rows[0]["booking_id"] == block["id"]
    assert rows[0]["resource_slug"] == "villa"
    assert rows[0]["start_date"] == "2024-07-01"
    assert "guest_id" not in rows[0]

    listing = client.get("/api/v1/admin/bookings", params={"include_blocks": "false"}, headers=auth(*HOST)).json()
    assert listing == []
    detail = client.get(f"/api/v1/admin/bookings/{block['id']}", headers=auth(*HOST)).json()
    assert detail["created_by"] == "host-1"


def test_availability_validation(client):
    assert client.get("/api/v1/availability", params={"target": "penthouse"}).status_code == 404
    res = client.get("/api/v1/availability", params={"target": "entire-villa", "from": "2024-07-05", "to": "2024-07-01"})
    assert res.status_code == 400


def test_default_app_is_built_from_environment_settings():
    from villabook import main
    from villabook.config import settings

    assert settings.DATABASE_URL
    assert main.app.state.database.url == settings.DATABASE_URL
    assert main.app.state.settings is settings
