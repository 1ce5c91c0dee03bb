"""RAID register endpoints: risks, issues, decisions, actions and the analytics built on them."""

import pytest
from sqlalchemy.exc import IntegrityError

from civic_pm_api.tests.conftest import CITIZEN, PM, STAFF


def _risk(client, project_id, **fields):
    payload = {"title": "Risk", "category": "technical"}
    payload.update(fields)
    response = client.post(f"/api/projects/{project_id}/risks", json=payload, headers=STAFF)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_risk_scores_it(client, project):
    risk = _risk(client, project["id"], title="Contractor delay", probability="high", impact="critical")
    assert risk["risk_score"] == 12
    assert risk["risk_level"] == "high"
    assert risk["risk_label"] == "High Risk"
    assert risk["status"] == "identified"

    defaulted = _risk(client, project["id"], title="Defaults")
    assert defaulted["probability"] == "medium"
    assert defaulted["risk_score"] == 4


def test_citizen_cannot_write(client, project):
    response = client.post(
        f"/api/projects/{project['id']}/risks",
        json={"title": "x", "category": "technical"},
        headers=CITIZEN,
    )
    assert response.status_code == 403


def test_update_risk_recomputes_score(client, project):
    risk = _risk(client, project["id"], probability="low", impact="low")
    response = client.put(f"/api/risks/{risk['id']}", json={"impact": "critical"}, headers=STAFF)
    assert response.status_code == 200
    assert response.json()["risk_score"] == 4
    response = client.put(f"/api/risks/{risk['id']}", json={"probability": "critical"}, headers=STAFF)
    assert response.json()["risk_score"] == 16
    assert response.json()["risk_label"] == "Critical Risk"


def test_status_escalated_only_through_escalation(client, project):
    risk = _risk(client, project["id"])
    response = client.put(f"/api/risks/{risk['id']}", json={"status": "escalated"}, headers=STAFF)
    assert response.status_code == 409


def test_list_risks_highest_first(client, project):
    _risk(client, project["id"], title="small", probability="low", impact="low")
    _risk(client, project["id"], title="big", probability="high", impact="high")
    body = client.get(f"/api/projects/{project['id']}/risks", headers=CITIZEN).json()
    assert body["total"] == 2
    assert [r["title"] for r in body["risks"]] == ["big", "small"]


def test_escalate_risk(client, project):
    risk = _risk(
        client, project["id"], title="Bridge scour", probability="critical", impact="high", owner_id="eng-1",
    )
    response = client.post(f"/api/risks/{risk['id']}/escalate", json={}, headers=STAFF)
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["risk"]["status"] == "escalated"
    assert body["risk"]["escalated_to_issue_id"] == body["issue"]["id"]
    assert body["issue"]["risk_id"] == risk["id"]
    assert body["issue"]["severity"] == "high"
    assert body["issue"]["priority"] == "high"
    assert body["issue"]["title"] == "Bridge scour"

    again = client.post(f"/api/risks/{risk['id']}/escalate", json={}, headers=STAFF)
    assert again.status_code == 409

    issues = client.get(f"/api/projects/{project['id']}/issues", headers=STAFF).json()
    assert issues["total"] == 1

    notifications = client.get("/api/notifications", headers={"X-User-Id": "eng-1"}).json()
    assert [n["title"] for n in notifications["notifications"]] == ["Risk Escalated to Issue"]


def test_escalation_overrides(client, project):
    risk = _risk(client, project["id"], probability="critical", impact="critical")
    response = client.post(
        f"/api/risks/{risk['id']}/escalate",
        json={"title": "Flooded site", "severity": "medium"},
        headers=STAFF,
    )
    issue = response.json()["issue"]
    assert issue["title"] == "Flooded site"
    assert issue["severity"] == "medium"
    assert issue["priority"] == "urgent"


def test_closed_risk_cannot_be_escalated(client, project):
    risk = _risk(client, project["id"])
    client.put(f"/api/risks/{risk['id']}", json={"status": "closed"}, headers=STAFF)
    response = client.post(f"/api/risks/{risk['id']}/escalate", headers=STAFF)
    assert response.status_code == 409


def test_critical_risk_notifies_owner(client, project):
    _risk(client, project["id"], probability="critical", impact="critical", owner_id="owner-7")
    body = client.get("/api/notifications", headers={"X-User-Id": "owner-7"}).json()
    assert body["unread"] == 1
    assert body["notifications"][0]["priority"] == "critical"
    assert body["notifications"][0]["project_name"] == project["name"]


def test_issue_resolution_sets_date(client, project):
    issue = client.post(
        f"/api/projects/{project['id']}/issues",
        json={"title": "Cracked slab", "category": "quality", "severity": "high"},
        headers=STAFF,
    ).json()
    assert issue["status"] == "open"
    assert issue["reported_by"] == "staff-1"
    resolved = client.put(f"/api/issues/{issue['id']}", json={"status": "resolved"}, headers=STAFF).json()
    assert resolved["resolved_date"] is not None


def test_references_must_belong_to_project(client, project, jurisdiction):
    other = client.post(
        "/api/projects",
        json={"jurisdiction_id": jurisdiction["id"], "name": "Other", "category": "health"},
        headers=PM,
    ).json()
    foreign_risk = _risk(client, other["id"])
    response = client.post(
        f"/api/projects/{project['id']}/actions",
        json={"title": "Mitigate", "action_type": "mitigation", "risk_id": foreign_risk["id"]},
        headers=STAFF,
    )
    assert response.status_code == 400

    response = client.post(
        f"/api/projects/{project['id']}/issues",
        json={"title": "Ghost", "category": "technical", "risk_id": "risk-missing"},
        headers=STAFF,
    )
    assert response.status_code == 400


def test_decision_approval(client, project):
    decision = client.post(
        f"/api/projects/{project['id']}/decisions",
        json={"title": "Switch supplier", "decision_type": "resource", "approval_required": True},
        headers=STAFF,
    ).json()
    assert decision["decision_status"] == "pending"

    denied = client.put(f"/api/decisions/{decision['id']}", json={"decision_status": "approved"}, headers=STAFF)
    assert denied.status_code == 403

    approved = client.put(f"/api/decisions/{decision['id']}", json={"decision_status": "approved"}, headers=PM)
    assert approved.status_code == 200
    assert approved.json()["approved_by"] == "pm-1"
    assert approved.json()["approved_at"] is not None


def test_action_completion_sets_date(client, project):
    action = client.post(
        f"/api/projects/{project['id']}/actions",
        json={"title": "Pour footing", "action_type": "implementation"},
        headers=STAFF,
    ).json()
    assert action["status"] == "pending"
    done = client.put(f"/api/actions/{action['id']}", json={"status": "completed"}, headers=STAFF).json()
    assert done["completed_date"] is not None
    listing = client.get(f"/api/projects/{project['id']}/actions", headers=STAFF).json()
    assert listing["total"] == 1


def test_missing_records(client):
    assert client.put("/api/risks/risk-missing", json={}, headers=STAFF).status_code == 404
    assert client.put("/api/issues/issue-missing", json={}, headers=STAFF).status_code == 404
    assert client.get("/api/projects/proj-missing/raid/summary", headers=STAFF).status_code == 404


def test_raid_summary(client, project):
    big = _risk(client, project["id"], probability="critical", impact="critical")
    _risk(client, project["id"], probability="low", impact="medium")
    closed = _risk(client, project["id"], probability="high", impact="high")
    client.put(f"/api/risks/{closed['id']}", json={"status": "closed"}, headers=STAFF)
    client.post(
        f"/api/projects/{project['id']}/actions",
        json={"title": "Late", "action_type": "mitigation", "risk_id": big["id"], "due_date": "2020-01-01"},
        headers=STAFF,
    )

    summary = client.get(f"/api/projects/{project['id']}/raid/summary", headers=STAFF).json()
    assert summary["risks"]["total"] == 3
    assert summary["risks"]["open"] == 2
    assert summary["risks"]["by_status"] == {"identified": 2, "closed": 1}
    assert summary["risk_levels"] == {"low": 1, "medium": 0, "high": 0, "critical": 1}
    assert summary["risk_matrix"][0][3] == 1
    assert summary["overdue_actions"] == 1
    assert summary["top_risks"][0]["id"] == big["id"]


def test_prioritized_actions(client, project):
    risk = _risk(client, project["id"], title="Flood", probability="high", impact="critical")
    client.post(
        f"/api/projects/{project['id']}/actions",
        json={"title": "Build berm", "action_type": "mitigation", "risk_id": risk["id"], "priority": "low"},
        headers=STAFF,
    )
    body = client.get(f"/api/projects/{project['id']}/prioritized-actions", headers=STAFF).json()
    assert body["total"] == 2
    first, second = body["items"]
    assert first["id"] == risk["id"]
    assert first["blocking_count"] == 1
    assert "Blocking 1 other tasks." in first["reasoning"]
    assert second["dependencies"] == [risk["id"]]
    assert first["priority_score"] >= second["priority_score"]


def test_prioritization_endpoint(client):
    response = client.post(
        "/api/prioritization",
        json={
            "items": [
                {"id": "a", "title": "Low", "type": "action", "impact_score": 1, "risk_score": 1, "urgency_level": "low"},
                {"id": "b", "title": "Hot", "type": "issue", "impact_score": 9, "risk_score": 8,
                 "urgency_level": "critical", "blocking_count": 3, "note": "Road closed."},
            ]
        },
        headers=CITIZEN,
    )
    assert response.status_code == 200, response.text
    items = response.json()["items"]
    assert [i["id"] for i in items] == ["b", "a"]
    assert items[0]["priority_score"] == 10
    assert items[0]["reasoning"].endswith("Road closed.")


def test_cross_project_analysis(client, jurisdiction, project):
    other = client.post(
        "/api/projects",
        json={"jurisdiction_id": jurisdiction["id"], "name": "Second", "category": "health"},
        headers=PM,
    ).json()
    _risk(client, project["id"], category="financial", probability="high", impact="high")
    _risk(client, other["id"], category="financial", probability="critical", impact="high")
    _risk(client, other["id"], category="technical", probability="high", impact="critical")

    analysis = client.get("/api/risk-analysis/cross-project", headers=STAFF).json()
    assert analysis["projects_analyzed"] == 2
    assert analysis["total_open_risks"] == 3
    categories = {c["category"]: c for c in analysis["categories"]}
    assert categories["financial"]["systemic"] is True
    assert categories["financial"]["projects_affected"] == 2
    assert categories["technical"]["systemic"] is False
    assert analysis["projects"][0]["project_id"] == other["id"]
    assert analysis["top_risks"][0]["risk_score"] == 12


def test_risk_score_endpoint(client):
    body = client.get("/api/risk-score", params={"probability": "high", "impact": "critical"}).json()
    assert body == {
        "probability": "high",
        "impact": "critical",
        "risk_score": 12,
        "risk_level": "high",
        "risk_label": "High Risk",
    }
    assert client.get("/api/risk-score", params={"probability": "huge", "impact": "low"}).status_code == 422


@pytest.mark.parametrize(
    "fields",
    [{"probability": None}, {"impact": None}, {"status": None}, {"title": None}],
)
def test_risk_update_rejects_null_required_fields(client, project, fields):
    risk = _risk(client, project["id"], probability="high", impact="high")
    response = client.put(f"/api/risks/{risk['id']}", json=fields, headers=STAFF)
    assert response.status_code == 422
    assert "cannot be null" in response.text
    unchanged = client.get(f"/api/projects/{project['id']}/risks", headers=STAFF).json()["risks"][0]
    assert unchanged["risk_score"] == 9


def test_risk_update_clears_nullable_fields(client, project):
    risk = _risk(client, project["id"], owner_id="eng-1", due_date="2025-06-01")
    response = client.put(f"/api/risks/{risk['id']}", json={"owner_id": None, "due_date": None}, headers=STAFF)
    assert response.status_code == 200
    assert response.json()["owner_id"] is None
    assert response.json()["due_date"] is None


def test_register_updates_reject_null_required_fields(client, project):
    issue = client.post(
        f"/api/projects/{project['id']}/issues",
        json={"title": "Leak", "category": "quality"},
        headers=STAFF,
    ).json()
    decision = client.post(
        f"/api/projects/{project['id']}/decisions",
        json={"title": "Change vendor", "decision_type": "resource"},
        headers=STAFF,
    ).json()
    action = client.post(
        f"/api/projects/{project['id']}/actions",
        json={"title": "Patch roof", "action_type": "implementation"},
        headers=STAFF,
    ).json()

    assert client.put(f"/api/issues/{issue['id']}", json={"severity": None}, headers=STAFF).status_code == 422
    assert client.put(f"/api/issues/{issue['id']}", json={"status": None}, headers=STAFF).status_code == 422
    assert client.put(f"/api/decisions/{decision['id']}", json={"title": None}, headers=STAFF).status_code == 422
    assert client.put(f"/api/actions/{action['id']}", json={"status": None}, headers=STAFF).status_code == 422
    assert client.put(f"/api/actions/{action['id']}", json={"priority": None}, headers=STAFF).status_code == 422

    issue_after = client.get(f"/api/projects/{project['id']}/issues", headers=STAFF).json()["issues"][0]
    assert issue_after["status"] == "open"


def test_failed_escalation_leaves_risk_untouched(api, client, project):
    _, database_module = api
    risk = _risk(client, project["id"], title="Slope failure")

    db = database_module.DatabaseService(database_module.SessionLocal())
    try:
        record = db.get_risk(risk["id"])
        broken_issue = {
            "project_id": project["id"],
            "risk_id": record.id,
            "title": None,
            "category": "technical",
            "reported_by": "staff-1",
        }
        with pytest.raises(IntegrityError):
            db.escalate_risk(record, broken_issue)
        reloaded = db.get_risk(risk["id"])
        assert reloaded.status == "identified"
        assert reloaded.escalated_to_issue_id is None
    finally:
        db.close()

    assert client.get(f"/api/projects/{project['id']}/issues", headers=STAFF).json()["total"] == 0
    response = client.post(f"/api/risks/{risk['id']}/escalate", json={}, headers=STAFF)
    assert response.status_code == 201
