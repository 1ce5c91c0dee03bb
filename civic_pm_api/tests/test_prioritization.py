from datetime import date, datetime
from types import SimpleNamespace

import pytest

from civic_pm_api.prioritization import (
    ActionItem,
    days_until,
    deadline_bonus,
    item_from_action,
    item_from_risk,
    prioritize,
    raw_priority,
)

NOW = datetime(2025, 3, 1, 12, 0, 0)


def _item(**overrides):
    values = dict(
        id="a1",
        title="Order steel",
        type="action",
        impact_score=8,
        risk_score=6,
        urgency_level="high",
    )
    values.update(overrides)
    return ActionItem(**values)


def test_formula_without_bonuses():
    # (8 * 0.3 + 6 * 0.25) * 1.2 = 4.68
    item = _item()
    assert raw_priority(item, NOW) == pytest.approx(4.68)
    [ranked] = prioritize([item], now=NOW)
    assert ranked.priority_score == 5
    assert ranked.reasoning.startswith("Priority 5:")
    assert "High project impact." in ranked.reasoning


def test_blocking_and_type_bonus():
    # (5 * 0.3 + 5 * 0.25) * 1.0 + 2 * 0.5 + 1 = 4.75
    item = _item(type="issue", impact_score=5, risk_score=5, urgency_level="medium", blocking_count=2)
    assert raw_priority(item, NOW) == pytest.approx(4.75)
    [ranked] = prioritize([item], now=NOW)
    assert ranked.priority_score == 5
    assert "Blocking 2 other tasks." in ranked.reasoning


def test_deadline_bonus():
    assert days_until(date(2025, 3, 3), NOW) == 2
    assert deadline_bonus(date(2025, 3, 4), NOW) == 2.0
    assert deadline_bonus(date(2025, 3, 8), NOW) == 1.0
    assert deadline_bonus(date(2025, 3, 20), NOW) == 0.0
    assert deadline_bonus(date(2025, 2, 1), NOW) == 2.0
    assert deadline_bonus(None, NOW) == 0.0


def test_score_is_capped_at_ten():
    item = _item(impact_score=10, risk_score=10, urgency_level="critical", blocking_count=10)
    [ranked] = prioritize([item], now=NOW)
    assert ranked.priority_score == 10
    assert ranked.raw_score > 10
    assert "Critical urgency." in ranked.reasoning


def test_sorted_descending_and_stable():
    low = _item(id="low", impact_score=1, risk_score=1, urgency_level="low")
    first = _item(id="first")
    second = _item(id="second")
    ranked = prioritize([low, first, second], now=NOW)
    assert [entry.id for entry in ranked] == ["first", "second", "low"]


def test_inputs_are_not_mutated():
    item = _item()
    prioritize([item], now=NOW)
    assert item.priority_score == 0
    assert item.reasoning == ""


def test_unknown_urgency():
    with pytest.raises(ValueError):
        raw_priority(_item(urgency_level="someday"), NOW)


def test_items_from_register_records():
    risk = SimpleNamespace(
        id="risk-1", title="Flooding", impact="critical", probability="high", risk_score=12,
        due_date=None, project_id="proj-1", status="identified", mitigation_strategy="Raise site level",
    )
    item = item_from_risk(risk, blocking_count=1)
    assert item.type == "risk"
    assert item.impact_score == 10.0
    assert item.risk_score == 7.5
    assert item.urgency_level == "high"
    assert item.note == "Raise site level"

    action = SimpleNamespace(
        id="action-1", title="Build berm", priority="urgent", risk_id="risk-1", issue_id=None,
        decision_id=None, due_date=None, project_id="proj-1", status="pending", description=None,
    )
    item = item_from_action(action, linked_risk_score=16)
    assert item.urgency_level == "critical"
    assert item.risk_score == 10.0
    assert item.dependencies == ["risk-1"]
