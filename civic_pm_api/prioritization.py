"""
Weighted prioritization of open RAID work.

Each item gets a score from its impact, risk, urgency, how many other items it
blocks and how close its deadline is. Scores are capped at 10 and the list is
returned highest first.
"""
import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional

from civic_pm_api.clock import utcnow
from civic_pm_api.risk_scoring import MAX_RISK_SCORE

URGENCY_MULTIPLIER: Dict[str, float] = {
    "critical": 1.5,
    "high": 1.2,
    "medium": 1.0,
    "low": 0.8,
}

TYPE_BONUS: Dict[str, float] = {
    "issue": 1.0,
    "risk": 0.5,
}

IMPACT_WEIGHT = 0.3
RISK_WEIGHT = 0.25
BLOCKING_BONUS = 0.5
MAX_PRIORITY = 10

# Levels mapped onto the 0-10 scale used by impact_score and risk_score.
LEVEL_TO_TEN: Dict[str, float] = {
    "low": 2.5,
    "medium": 5.0,
    "high": 7.5,
    "critical": 10.0,
}

PRIORITY_TO_URGENCY: Dict[str, str] = {
    "low": "low",
    "medium": "medium",
    "high": "high",
    "urgent": "critical",
}


@dataclass
class ActionItem:
    """One unit of work to rank, regardless of which register it came from."""

    id: str
    title: str
    type: str
    impact_score: float
    risk_score: float
    urgency_level: str
    blocking_count: int = 0
    deadline: Optional[date] = None
    project_id: Optional[str] = None
    status: Optional[str] = None
    note: str = ""
    priority_score: int = 0
    reasoning: str = ""
    raw_score: float = 0.0
    dependencies: List[str] = field(default_factory=list)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def days_until(deadline: date, now: datetime) -> int:
    """Whole days until the deadline, rounded up. Negative when overdue."""
    delta = datetime.combine(deadline, time.min) - now
    return math.ceil(delta.total_seconds() / 86400)


def deadline_bonus(deadline: Optional[date], now: datetime) -> float:
    if deadline is None:
        return 0.0
    days = days_until(deadline, now)
    if days <= 3:
        return 2.0
    if days <= 7:
        return 1.0
    return 0.0


def raw_priority(item: ActionItem, now: datetime) -> float:
    try:
        multiplier = URGENCY_MULTIPLIER[item.urgency_level]
    except KeyError:
        raise ValueError(f"Unknown urgency level {item.urgency_level!r}") from None
    score = item.impact_score * IMPACT_WEIGHT + item.risk_score * RISK_WEIGHT
    score *= multiplier
    score += item.blocking_count * BLOCKING_BONUS
    score += deadline_bonus(item.deadline, now)
    score += TYPE_BONUS.get(item.type, 0.0)
    return score


def explain(item: ActionItem, score: float) -> str:
    parts = [f"Priority {_round_half_up(score)}:"]
    if item.blocking_count > 0:
        parts.append(f"Blocking {item.blocking_count} other tasks.")
    if item.urgency_level == "critical":
        parts.append("Critical urgency.")
    if item.risk_score > 7:
        parts.append("High risk impact.")
    if item.impact_score > 7:
        parts.append("High project impact.")
    if item.note:
        parts.append(item.note)
    return " ".join(parts)


def prioritize(items: Iterable[ActionItem], now: Optional[datetime] = None) -> List[ActionItem]:
    """Score every item and return new items sorted by priority_score, highest first."""
    now = now or utcnow()
    scored = []
    for item in items:
        score = raw_priority(item, now)
        scored.append(
            replace(
                item,
                raw_score=round(score, 3),
                priority_score=min(MAX_PRIORITY, _round_half_up(score)),
                reasoning=explain(item, score),
            )
        )
    scored.sort(key=lambda entry: entry.priority_score, reverse=True)
    return scored


def _scaled_risk_score(risk_score: Optional[int]) -> float:
    if not risk_score:
        return 0.0
    return round(risk_score * 10.0 / MAX_RISK_SCORE, 2)


def item_from_risk(risk, blocking_count: int = 0) -> ActionItem:
    return ActionItem(
        id=risk.id,
        title=risk.title,
        type="risk",
        impact_score=LEVEL_TO_TEN[risk.impact],
        risk_score=_scaled_risk_score(risk.risk_score),
        urgency_level=risk.probability,
        blocking_count=blocking_count,
        deadline=risk.due_date,
        project_id=risk.project_id,
        status=risk.status,
        note=risk.mitigation_strategy or "",
    )


def item_from_issue(issue, blocking_count: int = 0) -> ActionItem:
    severity = LEVEL_TO_TEN[issue.severity]
    return ActionItem(
        id=issue.id,
        title=issue.title,
        type="issue",
        impact_score=severity,
        risk_score=severity,
        urgency_level=PRIORITY_TO_URGENCY[issue.priority],
        blocking_count=blocking_count,
        deadline=issue.due_date,
        project_id=issue.project_id,
        status=issue.status,
        note=issue.impact_description or "",
    )


def item_from_decision(decision, blocking_count: int = 0) -> ActionItem:
    return ActionItem(
        id=decision.id,
        title=decision.title,
        type="decision",
        impact_score=LEVEL_TO_TEN["medium"],
        risk_score=0.0,
        urgency_level="medium",
        blocking_count=blocking_count,
        deadline=decision.implementation_deadline,
        project_id=decision.project_id,
        status=decision.decision_status,
        note=decision.decision_criteria or "",
    )


def item_from_action(action, linked_risk_score: Optional[int] = None) -> ActionItem:
    urgency = PRIORITY_TO_URGENCY[action.priority]
    dependencies = [ref for ref in (action.risk_id, action.issue_id, action.decision_id) if ref]
    return ActionItem(
        id=action.id,
        title=action.title,
        type="action",
        impact_score=LEVEL_TO_TEN[urgency],
        risk_score=_scaled_risk_score(linked_risk_score),
        urgency_level=urgency,
        blocking_count=0,
        deadline=action.due_date,
        project_id=action.project_id,
        status=action.status,
        note=action.description or "",
        dependencies=dependencies,
    )

