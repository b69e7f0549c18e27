from datetime import datetime, timezone


def test_scenario_create_accept_and_read_back(client, make_user):
    alice = client.post(
        "/api/users",
        json={"username": "alice", "email": "a@x.com", "password": "p", "role": "resident"},
    )
    assert alice.status_code == 201
    driver = client.post(
        "/api/users",
        json={"username": "dave", "email": "d@x.com", "password": "p", "role": "driver"},
    ).json()

    created = client.post(
        "/api/requests",
        json={
            "requestId": "WD12345",
            "userId": alice.json()["id"],
            "address": "1 Main St",
            "waterAmount": 2000,
            "urgency": "normal",
        },
    )
    assert created.status_code == 201
    request = created.json()
    assert request["status"] == "pending"
    assert request["driverId"] is None
    assert request["acceptedAt"] is None
    assert request["rating"] is None

    now = datetime.now(timezone.utc).isoformat()
    patched = client.patch(
        f"/api/requests/{request['id']}",
        json={"status": "accepted", "driverId": driver["id"], "acceptedAt": now},
    )
    assert patched.status_code == 200
    assert patched.json()["status"] == "accepted"

    fetched = client.get(f"/api/requests/{request['id']}").json()
    assert fetched["status"] == "accepted"
    assert fetched["driverId"] == driver["id"]
    assert fetched["acceptedAt"] is not None


def test_round_trip_by_code_and_by_id(client, make_request):
    created = make_request(1, "WD55555", notes="Gate code 42", latitude=-1.5, longitude=36.8)
    by_id = client.get(f"/api/requests/{created['id']}").json()
    by_code = client.get("/api/requests/code/WD55555").json()
    assert by_id == by_code == created


def test_duplicate_request_id_is_a_conflict(client, make_request):
    make_request(1, "WD11111")
    response = client.post(
        "/api/requests",
        json={"requestId": "WD11111", "userId": 2, "address": "2 Side St", "waterAmount": 500, "urgency": "urgent"},
    )
    assert response.status_code == 409
    assert len(client.get("/api/requests").json()) == 1


def test_create_request_validation(client):
    response = client.post(
        "/api/requests",
        json={"requestId": "WD1", "userId": 1, "address": "x", "waterAmount": 0, "urgency": "whenever"},
    )
    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["errors"]}
    assert {"waterAmount", "urgency"} <= fields


def test_unknown_request_is_not_found(client):
    assert client.get("/api/requests/404").status_code == 404
    assert client.get("/api/requests/code/WD00000").status_code == 404
    assert client.get("/api/requests/abc").status_code == 400


def test_patch_unknown_request_is_not_found_and_changes_nothing(client, make_request):
    make_request(1, "WD10001")
    before = client.get("/api/requests").json()

    response = client.patch("/api/requests/999", json={"status": "accepted", "driverId": 7})
    assert response.status_code == 404
    assert client.get("/api/requests").json() == before


def test_filter_by_user(client, make_request):
    make_request(1, "WD10001")
    make_request(2, "WD10002")
    make_request(1, "WD10003")
    make_request(3, "WD10004")

    mine = client.get("/api/requests/user/1").json()
    assert {r["requestId"] for r in mine} == {"WD10001", "WD10003"}
    assert client.get("/api/requests/user/42").json() == []


def test_filter_by_status_and_driver(client, make_request):
    first = make_request(1, "WD10001")
    make_request(1, "WD10002")
    client.patch(f"/api/requests/{first['id']}", json={"status": "accepted", "driverId": 9})

    pending = client.get("/api/requests/status/pending").json()
    assert [r["requestId"] for r in pending] == ["WD10002"]
    accepted = client.get("/api/requests/status/accepted").json()
    assert [r["requestId"] for r in accepted] == ["WD10001"]
    assert client.get("/api/requests/status/lost").json() == []

    assert [r["requestId"] for r in client.get("/api/requests/driver/9").json()] == ["WD10001"]
    assert client.get("/api/requests/driver/10").json() == []


def test_full_lifecycle_stamps_timestamps(client, make_request):
    request = make_request(1, "WD20000")
    url = f"/api/requests/{request['id']}"

    accepted = client.patch(url, json={"status": "accepted", "driverId": 5}).json()
    assert accepted["acceptedAt"] is not None

    in_transit = client.patch(url, json={"status": "in_transit"}).json()
    assert in_transit["inTransitAt"] is not None

    completed = client.patch(url, json={"status": "completed"}).json()
    assert completed["status"] == "completed"
    assert completed["deliveredAt"] is not None

    rated = client.patch(url, json={"rating": 5, "feedback": "On time"})
    assert rated.status_code == 200
    assert rated.json()["rating"] == 5
    assert rated.json()["feedback"] == "On time"


def test_skipping_a_status_is_rejected(client, make_request):
    request = make_request(1, "WD20001")
    response = client.patch(
        f"/api/requests/{request['id']}", json={"status": "completed", "driverId": 5}
    )
    assert response.status_code == 409
    assert client.get(f"/api/requests/{request['id']}").json()["status"] == "pending"


def test_moving_backwards_is_rejected(client, make_request):
    request = make_request(1, "WD20002")
    url = f"/api/requests/{request['id']}"
    client.patch(url, json={"status": "accepted", "driverId": 5})
    client.patch(url, json={"status": "in_transit"})

    response = client.patch(url, json={"status": "pending"})
    assert response.status_code == 409
    assert client.get(url).json()["status"] == "in_transit"


def test_accepting_without_a_driver_is_rejected(client, make_request):
    request = make_request(1, "WD20003")
    response = client.patch(f"/api/requests/{request['id']}", json={"status": "accepted"})
    assert response.status_code == 409


def test_rating_before_completion_is_rejected(client, make_request):
    request = make_request(1, "WD20004")
    response = client.patch(f"/api/requests/{request['id']}", json={"rating": 4})
    assert response.status_code == 409
    assert client.get(f"/api/requests/{request['id']}").json()["rating"] is None


def test_rating_out_of_range_is_a_bad_request(client, make_request):
    request = make_request(1, "WD20005")
    response = client.patch(f"/api/requests/{request['id']}", json={"rating": 6})
    assert response.status_code == 400


def test_racing_accepts_both_succeed_last_write_wins(client, make_request):
    request = make_request(1, "WD30000")
    url = f"/api/requests/{request['id']}"

    first = client.patch(url, json={"status": "accepted", "driverId": 11})
    second = client.patch(url, json={"status": "accepted", "driverId": 12})
    assert first.status_code == 200
    assert second.status_code == 200
    assert client.get(url).json()["driverId"] == 12


def test_driver_is_locked_once_the_delivery_is_under_way(client, make_request):
    request = make_request(1, "WD30001")
    url = f"/api/requests/{request['id']}"
    client.patch(url, json={"status": "accepted", "driverId": 5})

    # still accepted: re-assignment is allowed
    assert client.patch(url, json={"driverId": 6}).status_code == 200

    client.patch(url, json={"status": "in_transit"})
    assert client.patch(url, json={"driverId": 7}).status_code == 409

    client.patch(url, json={"status": "completed"})
    response = client.patch(url, json={"driverId": 99})
    assert response.status_code == 409
    assert client.get(url).json()["driverId"] == 6

    # sending the same driver back is harmless
    assert client.patch(url, json={"driverId": 6, "rating": 4}).status_code == 200


def test_driver_active_delivery(client, make_request):
    assert client.get("/api/requests/driver/5/active").status_code == 404

    done = make_request(1, "WD40000")
    url = f"/api/requests/{done['id']}"
    client.patch(url, json={"status": "accepted", "driverId": 5})
    client.patch(url, json={"status": "in_transit"})
    client.patch(url, json={"status": "completed"})
    assert client.get("/api/requests/driver/5/active").status_code == 404

    current = make_request(1, "WD40001")
    client.patch(f"/api/requests/{current['id']}", json={"status": "accepted", "driverId": 5})
    active = client.get("/api/requests/driver/5/active")
    assert active.status_code == 200
    assert active.json()["requestId"] == "WD40001"


def test_driver_stats(client, make_request):
    empty = client.get("/api/drivers/5/stats").json()
    assert empty == {
        "driverId": 5,
        "acceptedTasks": 0,
        "completedToday": 0,
        "completedTotal": 0,
        "litersDelivered": 0,
        "rating": None,
    }

    for code, rating in (("WD50001", 4), ("WD50002", 5)):
        request = make_request(1, code, waterAmount=1000)
        url = f"/api/requests/{request['id']}"
        client.patch(url, json={"status": "accepted", "driverId": 5})
        client.patch(url, json={"status": "in_transit"})
        client.patch(url, json={"status": "completed"})
        client.patch(url, json={"rating": rating})
    active = make_request(1, "WD50003")
    client.patch(f"/api/requests/{active['id']}", json={"status": "accepted", "driverId": 5})

    stats = client.get("/api/drivers/5/stats").json()
    assert stats["acceptedTasks"] == 1
    assert stats["completedTotal"] == 2
    assert stats["completedToday"] == 2
    assert stats["litersDelivered"] == 2000
    assert stats["rating"] == 4.5
