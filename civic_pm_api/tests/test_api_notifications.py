"""Per-user notifications."""

from civic_pm_api.tests.conftest import CITIZEN, STAFF


def _notify(client, headers, **fields):
    payload = {"type": "deadline", "title": "Report due", "message": "Quarterly report due Friday"}
    payload.update(fields)
    response = client.post("/api/notifications", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_and_list(client):
    _notify(client, CITIZEN)
    _notify(client, STAFF, user_id="citizen-1", priority="high", title="Site visit")
    body = client.get("/api/notifications", headers=CITIZEN).json()
    assert body["total"] == 2
    assert body["unread"] == 2
    assert {n["title"] for n in body["notifications"]} == {"Report due", "Site visit"}
    assert client.get("/api/notifications", headers=STAFF).json()["total"] == 0


def test_citizen_cannot_notify_others(client):
    response = client.post(
        "/api/notifications",
        json={"type": "status", "title": "Hi", "message": "Hello", "user_id": "staff-1"},
        headers=CITIZEN,
    )
    assert response.status_code == 403


def test_mark_read_and_unread_filter(client):
    first = _notify(client, CITIZEN)
    _notify(client, CITIZEN, title="Second")
    response = client.put(f"/api/notifications/{first['id']}/read", headers=CITIZEN)
    assert response.status_code == 200
    assert response.json()["read"] is True

    unread = client.get("/api/notifications", params={"unread_only": True}, headers=CITIZEN).json()
    assert [n["title"] for n in unread["notifications"]] == ["Second"]
    assert unread["unread"] == 1

    assert client.put("/api/notifications/read-all", headers=CITIZEN).json() == {"updated": 1}
    assert client.get("/api/notifications", headers=CITIZEN).json()["unread"] == 0


def test_other_users_notifications_are_protected(client):
    notification = _notify(client, CITIZEN)
    assert client.put(f"/api/notifications/{notification['id']}/read", headers=STAFF).status_code == 403
    assert client.delete(f"/api/notifications/{notification['id']}", headers=STAFF).status_code == 403


def test_delete(client):
    notification = _notify(client, CITIZEN)
    assert client.delete(f"/api/notifications/{notification['id']}", headers=CITIZEN).status_code == 200
    assert client.get("/api/notifications", headers=CITIZEN).json()["total"] == 0
    assert client.delete(f"/api/notifications/{notification['id']}", headers=CITIZEN).status_code == 404
