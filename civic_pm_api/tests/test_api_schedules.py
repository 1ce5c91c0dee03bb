"""Schedule templates, checklists and project schedules."""

from civic_pm_api.tests.conftest import CITIZEN, PM, STAFF


def _schedule(client, project_id, **fields):
    payload = {"template_id": "building-construction"}
    payload.update(fields)
    response = client.post(f"/api/projects/{project_id}/schedules", json=payload, headers=STAFF)
    assert response.status_code == 201, response.text
    return response.json()


def test_templates_require_staff(client):
    assert client.get("/api/schedule-templates", headers=CITIZEN).status_code == 403
    templates = client.get("/api/schedule-templates", headers=STAFF).json()
    assert [t["id"] for t in templates] == ["building-construction", "road-construction"]
    assert templates[0]["documents"][0]["name"] == "Building Permit"


def test_checklists(client):
    checklists = client.get("/api/pm-checklist-templates", headers=PM).json()
    assert {c["task_type"] for c in checklists} == {"meeting", "survey"}
    survey = client.get("/api/pm-checklist-templates/survey", headers=PM).json()
    assert survey["id"] == "survey-checklist"
    generic = client.get("/api/pm-checklist-templates/tendering", headers=PM).json()
    assert generic["id"] == "tendering-checklist"
    assert len(generic["checklist_items"]) == 4


def test_create_schedule_from_template(client, project):
    schedule = _schedule(client, project["id"])
    assert schedule["version"] == 1
    assert schedule["is_current"] is True
    assert schedule["start_date"] == "2025-01-06"
    assert schedule["template_name"] == "Building Construction"
    assert schedule["total_duration_days"] == 7 + 30 + 120 + 7
    # phase 1 has two tasks with seven subtasks, the other phases seven plain tasks
    assert schedule["total_tasks"] == 14
    assert schedule["progress_percentage"] == 0

    phases = client.get(f"/api/schedules/{schedule['id']}/phases", headers=STAFF).json()
    assert [p["phase_order"] for p in phases] == [1, 2, 3, 4]
    assert phases[0]["start_date"] == "2025-01-06"
    assert phases[0]["end_date"] == "2025-01-13"
    assert phases[1]["start_date"] == "2025-01-13"

    tasks = client.get(f"/api/schedules/{schedule['id']}/tasks", headers=STAFF).json()
    subtasks = [t for t in tasks if t["is_subtask"]]
    assert len(tasks) == 16
    assert len(subtasks) == 7
    parent_ids = {t["id"] for t in tasks if not t["is_subtask"]}
    assert all(t["parent_task_id"] in parent_ids and t["level"] == 1 for t in subtasks)


def test_phase_subset_and_start_date(client, project):
    schedule = _schedule(client, project["id"], phase_ids=["phase-4"], start_date="2026-02-01", name="Handover only")
    assert schedule["name"] == "Handover only"
    assert schedule["total_duration_days"] == 7
    assert schedule["total_tasks"] == 2
    phases = client.get(f"/api/schedules/{schedule['id']}/phases", headers=STAFF).json()
    assert [p["name"] for p in phases] == ["Handover"]


def test_unknown_template_or_phase(client, project):
    response = client.post(
        f"/api/projects/{project['id']}/schedules", json={"template_id": "castle"}, headers=STAFF
    )
    assert response.status_code == 400
    response = client.post(
        f"/api/projects/{project['id']}/schedules",
        json={"template_id": "building-construction", "phase_ids": ["phase-9"]},
        headers=STAFF,
    )
    assert response.status_code == 400


def test_new_version_replaces_current(client, project):
    first = _schedule(client, project["id"])
    second = _schedule(client, project["id"], template_id="road-construction")
    assert second["version"] == 2

    current = client.get(f"/api/projects/{project['id']}/schedules/current", headers=STAFF).json()
    assert current["id"] == second["id"]
    schedules = client.get(f"/api/projects/{project['id']}/schedules", headers=STAFF).json()
    assert [(s["version"], s["is_current"]) for s in schedules] == [(2, True), (1, False)]

    assert client.delete(f"/api/projects/{project['id']}/schedules/current", headers=PM).status_code == 200
    current = client.get(f"/api/projects/{project['id']}/schedules/current", headers=STAFF).json()
    assert current["id"] == first["id"]


def test_no_schedule(client, project):
    response = client.get(f"/api/projects/{project['id']}/schedules/current", headers=STAFF)
    assert response.status_code == 404


def test_task_progress_rolls_up(client, project):
    schedule = _schedule(client, project["id"], phase_ids=["phase-1"])
    assert schedule["total_tasks"] == 7
    tasks = client.get(f"/api/schedules/{schedule['id']}/tasks", headers=STAFF).json()
    meeting = next(t for t in tasks if t["name"] == "Stakeholder meeting")
    meeting_subtasks = [t for t in tasks if t["parent_task_id"] == meeting["id"]]

    for subtask in meeting_subtasks:
        response = client.put(
            f"/api/schedules/{schedule['id']}/tasks/{subtask['id']}",
            json={"status": "completed"},
            headers=STAFF,
        )
        assert response.status_code == 200
        assert response.json()["progress_percentage"] == 100

    current = client.get(f"/api/projects/{project['id']}/schedules/current", headers=STAFF).json()
    assert current["completed_tasks"] == 4
    assert current["progress_percentage"] == 57
    assert current["status"] == "active"

    tasks = client.get(f"/api/schedules/{schedule['id']}/tasks", headers=STAFF).json()
    meeting = next(t for t in tasks if t["id"] == meeting["id"])
    assert meeting["status"] == "completed"

    phases = client.get(f"/api/schedules/{schedule['id']}/phases", headers=STAFF).json()
    assert phases[0]["status"] == "in_progress"
    assert phases[0]["progress_percentage"] == 57


def test_unknown_task(client, project):
    schedule = _schedule(client, project["id"])
    response = client.put(
        f"/api/schedules/{schedule['id']}/tasks/task-missing", json={"status": "completed"}, headers=STAFF
    )
    assert response.status_code == 404


def _tasks(client, schedule_id):
    return client.get(f"/api/schedules/{schedule_id}/tasks", headers=STAFF).json()


def _put_task(client, schedule_id, task_id, **fields):
    return client.put(f"/api/schedules/{schedule_id}/tasks/{task_id}", json=fields, headers=STAFF)


def test_reopened_task_progress_resets(client, project):
    schedule = _schedule(client, project["id"], phase_ids=["phase-4"])
    inspection = next(t for t in _tasks(client, schedule["id"]) if t["name"] == "Final inspection")

    assert _put_task(client, schedule["id"], inspection["id"], status="completed").json()["progress_percentage"] == 100
    reopened = _put_task(client, schedule["id"], inspection["id"], status="in_progress").json()
    assert reopened["status"] == "in_progress"
    assert reopened["progress_percentage"] == 0

    _put_task(client, schedule["id"], inspection["id"], status="completed")
    partial = _put_task(client, schedule["id"], inspection["id"], status="in_progress", progress_percentage=60).json()
    assert partial["progress_percentage"] == 60

    lowered = _put_task(client, schedule["id"], inspection["id"], progress_percentage=100).json()
    assert lowered["status"] == "completed"
    lowered = _put_task(client, schedule["id"], inspection["id"], progress_percentage=30).json()
    assert lowered["status"] == "in_progress"


def test_task_update_rejects_null_required_fields(client, project):
    schedule = _schedule(client, project["id"], phase_ids=["phase-4"])
    task = _tasks(client, schedule["id"])[0]
    assert _put_task(client, schedule["id"], task["id"], status=None).status_code == 422
    assert _put_task(client, schedule["id"], task["id"], progress_percentage=None).status_code == 422

    cleared = _put_task(client, schedule["id"], task["id"], assigned_to=None)
    assert cleared.status_code == 200
    assert cleared.json()["status"] == "not_started"


def test_update_schedule_moves_phase_dates(client, project):
    schedule = _schedule(client, project["id"])
    response = client.put(
        f"/api/projects/{project['id']}/schedules/{schedule['id']}",
        json={"name": "Revised plan", "status": "active", "start_date": "2025-02-03"},
        headers=STAFF,
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["name"] == "Revised plan"
    assert body["status"] == "active"
    assert body["start_date"] == "2025-02-03"

    phases = client.get(f"/api/schedules/{schedule['id']}/phases", headers=STAFF).json()
    assert [(p["start_date"], p["end_date"]) for p in phases[:2]] == [
        ("2025-02-03", "2025-02-10"),
        ("2025-02-10", "2025-03-12"),
    ]

    response = client.put(
        f"/api/projects/{project['id']}/schedules/{schedule['id']}", json={"name": None}, headers=STAFF
    )
    assert response.status_code == 422
    response = client.put(
        f"/api/projects/proj-missing/schedules/{schedule['id']}", json={"name": "x"}, headers=STAFF
    )
    assert response.status_code == 404
    response = client.put(
        f"/api/projects/{project['id']}/schedules/{schedule['id']}", json={"name": "x"}, headers=CITIZEN
    )
    assert response.status_code == 403


def test_add_phases_to_schedule(client, project):
    schedule = _schedule(client, project["id"], phase_ids=["phase-1"])
    url = f"/api/projects/{project['id']}/schedules/{schedule['id']}/phases"

    response = client.post(url, json={"phase_ids": ["phase-4"]}, headers=STAFF)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["total_duration_days"] == 7 + 7
    assert body["total_tasks"] == 7 + 2

    phases = client.get(f"/api/schedules/{schedule['id']}/phases", headers=STAFF).json()
    assert [(p["phase_order"], p["name"]) for p in phases] == [(1, "Project Initiation"), (2, "Handover")]
    assert phases[1]["template_phase_id"] == "phase-4"
    assert phases[1]["start_date"] == phases[0]["end_date"]

    assert client.post(url, json={"phase_ids": ["phase-4"]}, headers=STAFF).status_code == 409
    assert client.post(url, json={"phase_ids": ["phase-9"]}, headers=STAFF).status_code == 400
    assert client.post(url, json={"phase_ids": []}, headers=STAFF).status_code == 422


def test_add_subtask_after_siblings(client, project):
    schedule = _schedule(client, project["id"], phase_ids=["phase-1"])
    tasks = _tasks(client, schedule["id"])
    meeting = next(t for t in tasks if t["name"] == "Stakeholder meeting")
    survey = next(t for t in tasks if t["name"] == "Site survey")
    last_sibling = max(t["task_order"] for t in tasks if t["parent_task_id"] == meeting["id"])

    response = client.post(
        f"/api/schedules/{schedule['id']}/tasks/{meeting['id']}/subtasks",
        json={"name": "Circulate minutes"},
        headers=STAFF,
    )
    assert response.status_code == 201, response.text
    minutes = response.json()
    assert minutes["task_order"] == last_sibling + 1
    assert minutes["level"] == 1
    assert minutes["is_subtask"] is True
    assert minutes["estimated_hours"] == 4.0

    tasks = _tasks(client, schedule["id"])
    assert [t["task_order"] for t in tasks] == list(range(1, len(tasks) + 1))
    assert next(t for t in tasks if t["id"] == survey["id"])["task_order"] == survey["task_order"] + 1
    assert client.get(f"/api/projects/{project['id']}/schedules/current", headers=STAFF).json()["total_tasks"] == 8

    nested = client.post(
        f"/api/schedules/{schedule['id']}/tasks/{minutes['id']}/subtasks",
        json={"name": "Email minutes", "estimated_hours": 1},
        headers=STAFF,
    ).json()
    assert nested["level"] == 2
    assert nested["task_order"] == minutes["task_order"] + 1

    _put_task(client, schedule["id"], nested["id"], status="completed")
    tasks = {t["id"]: t for t in _tasks(client, schedule["id"])}
    assert tasks[minutes["id"]]["status"] == "completed"
    assert tasks[meeting["id"]]["status"] == "in_progress"

    response = client.post(
        f"/api/schedules/{schedule['id']}/tasks/task-missing/subtasks", json={"name": "x"}, headers=STAFF
    )
    assert response.status_code == 404


def test_bulk_task_update(client, project):
    schedule = _schedule(client, project["id"], phase_ids=["phase-4"])
    inspection, handover = _tasks(client, schedule["id"])
    url = f"/api/schedules/{schedule['id']}/tasks/bulk"

    response = client.post(
        url,
        json={"tasks": [{"id": inspection["id"], "status": "completed"}, {"id": "task-missing", "status": "completed"}]},
        headers=STAFF,
    )
    assert response.status_code == 404
    assert "task-missing" in response.text
    assert _tasks(client, schedule["id"])[0]["status"] == "not_started"

    response = client.post(
        url,
        json={"tasks": [
            {"id": inspection["id"], "status": "completed"},
            {"id": handover["id"], "status": "in_progress", "assigned_to": "eng-2"},
        ]},
        headers=STAFF,
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["task_count"] == 2
    assert body["schedule"]["completed_tasks"] == 1
    assert body["schedule"]["progress_percentage"] == 50
    assert body["schedule"]["status"] == "active"

    response = client.post(url, json={"tasks": [{"id": handover["id"], "status": None}]}, headers=STAFF)
    assert response.status_code == 422


def test_schedule_history(client, project):
    schedule = _schedule(client, project["id"], phase_ids=["phase-4"])
    url = f"/api/schedules/{schedule['id']}/history"
    history = client.get(url, headers=STAFF).json()
    assert [h["action"] for h in history] == ["created"]
    assert history[0]["changed_by"] == "staff-1"

    client.put(
        f"/api/projects/{project['id']}/schedules/{schedule['id']}", json={"name": "Handover plan"}, headers=PM
    )
    task = _tasks(client, schedule["id"])[0]
    _put_task(client, schedule["id"], task["id"], status="completed")

    history = client.get(url, headers=STAFF).json()
    assert [h["action"] for h in history] == ["task_updated", "updated", "created"]
    assert history[0]["entity_id"] == task["id"]
    assert history[0]["new_values"] == {"status": "completed", "progress_percentage": 100}
    assert history[1]["old_values"] == {"name": schedule["name"]}
    assert history[1]["changed_by"] == "pm-1"

    assert client.get(url, headers=CITIZEN).status_code == 403
    assert client.get("/api/schedules/schedule-missing/history", headers=STAFF).status_code == 404


def test_milestones(client, project):
    url = f"/api/projects/{project['id']}/milestones"
    assert client.get(url).json() == []

    schedule = _schedule(client, project["id"], phase_ids=["phase-1", "phase-4"], start_date="2999-01-04")
    milestones = client.get(url).json()
    assert [(m["name"], m["status"]) for m in milestones] == [
        ("Project Initiation", "pending"),
        ("Handover", "pending"),
    ]
    assert milestones[0]["due_date"] == "2999-01-11"
    assert milestones[1]["schedule_id"] == schedule["id"]

    for task in _tasks(client, schedule["id"]):
        if task["name"] in ("Final inspection", "Project handover"):
            _put_task(client, schedule["id"], task["id"], status="completed")
    milestones = client.get(url, headers=CITIZEN).json()
    assert milestones[1]["status"] == "completed"
    assert milestones[1]["progress_percentage"] == 100

    _schedule(client, project["id"], phase_ids=["phase-4"], start_date="2020-01-06")
    assert [m["status"] for m in client.get(url).json()] == ["overdue"]
