"""Public project updates, citizen feedback and the regional council dashboard."""

from civic_pm_api.tests.conftest import CITIZEN, PM, STAFF


def _update(client, project_id, **fields):
    payload = {"title": "Foundation poured", "content": "Slab complete on schedule."}
    payload.update(fields)
    response = client.post(f"/api/projects/{project_id}/updates", json=payload, headers=STAFF)
    assert response.status_code == 201, response.text
    return response.json()


def _feedback(client, project_id, headers=None, **fields):
    payload = {"feedback_type": "complaint", "title": "Noise at night", "content": "Machines run past 10pm."}
    payload.update(fields)
    response = client.post(f"/api/projects/{project_id}/feedback", json=payload, headers=headers or {})
    assert response.status_code == 201, response.text
    return response.json()


def test_public_updates_hide_internal_notes(client, project):
    public = _update(client, project["id"], update_type="milestone")
    _update(client, project["id"], title="Contractor dispute", is_public=False)
    assert public["created_by"] == "staff-1"
    assert public["update_type"] == "milestone"

    anonymous = client.get(f"/api/projects/{project['id']}/updates").json()
    assert [u["title"] for u in anonymous] == ["Foundation poured"]
    staff_view = client.get(f"/api/projects/{project['id']}/updates", headers=STAFF).json()
    assert len(staff_view) == 2

    response = client.post(
        f"/api/projects/{project['id']}/updates", json={"title": "x", "content": "y"}, headers=CITIZEN
    )
    assert response.status_code == 403


def test_private_project_hidden_from_citizens(client, project):
    client.put(f"/api/projects/{project['id']}", json={"is_public": False}, headers=STAFF)
    assert client.get(f"/api/projects/{project['id']}/updates").status_code == 404
    assert client.get(f"/api/projects/{project['id']}/milestones", headers=CITIZEN).status_code == 404
    response = client.post(
        f"/api/projects/{project['id']}/feedback",
        json={"feedback_type": "question", "title": "When?", "content": "When will it open?"},
        headers=CITIZEN,
    )
    assert response.status_code == 404
    assert client.get(f"/api/projects/{project['id']}/updates", headers=STAFF).status_code == 200


def test_feedback_notifies_project_manager(client, project):
    client.put(f"/api/projects/{project['id']}", json={"project_manager_id": "pm-1"}, headers=PM)

    anonymous = _feedback(client, project["id"])
    assert anonymous["citizen_id"] is None
    assert anonymous["status"] == "new"
    praise = _feedback(client, project["id"], headers=CITIZEN, feedback_type="praise", title="Great work")
    assert praise["citizen_id"] == "citizen-1"

    notifications = client.get("/api/notifications", headers=PM).json()["notifications"]
    assert {(n["title"], n["priority"]) for n in notifications} == {
        ("New Citizen Feedback", "high"),
        ("New Citizen Feedback", "low"),
    }

    listing = client.get(f"/api/projects/{project['id']}/feedback", headers=STAFF).json()
    assert len(listing) == 2
    assert client.get(f"/api/projects/{project['id']}/feedback", headers=CITIZEN).status_code == 403


def test_respond_to_feedback(client, project):
    feedback = _feedback(client, project["id"], headers=CITIZEN)

    response = client.put(
        f"/api/feedback/{feedback['id']}", json={"response": "Work now stops at 6pm."}, headers=STAFF
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["status"] == "acknowledged"
    assert body["responded_by"] == "staff-1"
    assert body["responded_at"] is not None

    notifications = client.get("/api/notifications", headers=CITIZEN).json()["notifications"]
    assert notifications[0]["title"] == "Response to Your Feedback"

    closed = client.put(f"/api/feedback/{feedback['id']}", json={"status": "resolved"}, headers=STAFF).json()
    assert closed["status"] == "resolved"
    assert closed["response"] == "Work now stops at 6pm."

    assert client.put(f"/api/feedback/{feedback['id']}", json={"status": None}, headers=STAFF).status_code == 422
    assert client.put(f"/api/feedback/{feedback['id']}", json={"status": "closed"}, headers=CITIZEN).status_code == 403
    assert client.put("/api/feedback/feedback-missing", json={"status": "closed"}, headers=STAFF).status_code == 404


def test_rdc_dashboard(client, jurisdiction, project):
    client.put(
        f"/api/projects/{project['id']}",
        json={"project_manager_id": "pm-1", "budget_spent": 5000000},
        headers=STAFF,
    )
    second = client.post(
        "/api/projects",
        json={"jurisdiction_id": jurisdiction["id"], "name": "Market", "category": "economic"},
        headers=PM,
    ).json()
    client.put(f"/api/projects/{second['id']}", json={"project_manager_id": "pm-1", "status": "completed"}, headers=STAFF)
    client.post(
        f"/api/projects/{project['id']}/risks",
        json={"title": "Steel prices", "category": "financial", "probability": "high", "impact": "critical"},
        headers=STAFF,
    )
    _update(client, project["id"])

    headers = {**STAFF, "X-Jurisdiction-Id": jurisdiction["id"]}
    response = client.get("/api/rdc/dashboard", headers=headers)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["jurisdiction"]["identifier"] == "RDC4"
    assert body["summary"]["total_projects"] == 2
    assert body["budget_utilization"] == 20.0
    assert body["project_completion_rate"] == 50.0
    assert body["total_project_managers"] == 1
    assert body["project_managers"] == [{"user_id": "pm-1", "projects": 2, "active_projects": 1}]
    assert body["risk_analysis"]["total_open_risks"] == 1
    assert body["risk_analysis"]["top_risks"][0]["title"] == "Steel prices"
    assert [u["title"] for u in body["recent_updates"]] == ["Foundation poured"]

    by_query = client.get("/api/rdc/dashboard", params={"jurisdiction_id": jurisdiction["id"]}, headers=STAFF)
    assert by_query.json()["summary"]["total_projects"] == 2


def test_rdc_dashboard_needs_jurisdiction(client, jurisdiction):
    assert client.get("/api/rdc/dashboard", headers=STAFF).status_code == 400
    missing = {**STAFF, "X-Jurisdiction-Id": "jur-missing"}
    assert client.get("/api/rdc/dashboard", headers=missing).status_code == 404
    citizen = {**CITIZEN, "X-Jurisdiction-Id": jurisdiction["id"]}
    assert client.get("/api/rdc/dashboard", headers=citizen).status_code == 403

    empty = client.get("/api/rdc/dashboard", headers={**STAFF, "X-Jurisdiction-Id": jurisdiction["id"]}).json()
    assert empty["summary"]["total_projects"] == 0
    assert empty["budget_utilization"] == 0.0
    assert empty["recent_updates"] == []
