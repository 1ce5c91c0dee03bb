from datetime import date

from civic_pm_api.models import Level, ProjectStatus
from civic_pm_api.payloads import enum_value, plain_values


def test_enum_members_become_their_values():
    assert enum_value(Level.critical) == "critical"
    assert enum_value("critical") == "critical"
    assert enum_value(None) is None


def test_plain_values_leaves_other_types_alone():
    payload = {"status": ProjectStatus.on_hold, "due_date": date(2025, 3, 1), "owner_id": None}
    assert plain_values(payload) == {"status": "on_hold", "due_date": date(2025, 3, 1), "owner_id": None}
    assert payload["status"] is ProjectStatus.on_hold
