import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

STAFF = {"X-User-Id": "staff-1", "X-User-Role": "staff"}
PM = {"X-User-Id": "pm-1", "X-User-Role": "pm"}
CITIZEN = {"X-User-Id": "citizen-1", "X-User-Role": "citizen"}


def _bootstrap_api(tmp_path: Path):
    """Reload the FastAPI app against an isolated SQLite database."""

    db_path = tmp_path / "civic_pm.db"
    os.environ["DATABASE_URL"] = f"sqlite:///{db_path}"
    os.environ["CIVIC_PM_CLOUD_MODE"] = "true"
    os.environ["CIVIC_PM_DEV_AUTH"] = "false"
    os.environ["CIVIC_PM_DOTENV"] = str(tmp_path / "missing.env")

    for module_name in list(sys.modules):
        if module_name.startswith("civic_pm_api.") and not module_name.startswith("civic_pm_api.tests"):
            del sys.modules[module_name]

    import civic_pm_api.database as database_module  # type: ignore
    import civic_pm_api.api as api_module  # type: ignore

    return api_module, database_module


@pytest.fixture
def api(tmp_path, monkeypatch):
    for name in ("DATABASE_URL", "CIVIC_PM_CLOUD_MODE", "CIVIC_PM_DEV_AUTH", "CIVIC_PM_DOTENV"):
        monkeypatch.delenv(name, raising=False)
    api_module, database_module = _bootstrap_api(tmp_path)
    yield api_module, database_module
    database_module.engine.dispose()
    for name in ("DATABASE_URL", "CIVIC_PM_CLOUD_MODE", "CIVIC_PM_DEV_AUTH", "CIVIC_PM_DOTENV"):
        os.environ.pop(name, None)


@pytest.fixture
def client(api):
    api_module, _ = api
    return TestClient(api_module.app)


@pytest.fixture
def jurisdiction(client):
    response = client.post("/api/jurisdictions", json={"identifier": "RDC4", "name": "Region 4"}, headers=PM)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def project(client, jurisdiction):
    response = client.post(
        "/api/projects",
        json={
            "jurisdiction_id": jurisdiction["id"],
            "name": "Community Centre",
            "description": "New community centre for Mahaica",
            "category": "infrastructure",
            "budget_allocated": 25000000,
            "planned_start_date": "2025-01-06",
            "planned_end_date": "2025-09-30",
        },
        headers=PM,
    )
    assert response.status_code == 201, response.text
    return response.json()
