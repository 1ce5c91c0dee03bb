"""
PURPOSE: RAID register operations - risks, issues, decisions and actions per project, risk
         escalation, per-project summaries, cross-project risk analysis and prioritization
SRP and DRY check: Pass - owns RAID business rules, persistence stays in DatabaseService
"""
import logging
from collections import Counter, defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from civic_pm_api import prioritization
from civic_pm_api.auth import PM_ROLES, CurrentUser
from civic_pm_api.clock import today, utcnow
from civic_pm_api.config import SETTINGS
from civic_pm_api.database import (
    DatabaseService,
    Project,
    ProjectAction,
    ProjectDecision,
    ProjectIssue,
    ProjectRisk,
)
from civic_pm_api.errors import (
    InvalidReferenceError,
    InvalidTransitionError,
    PermissionDeniedError,
    RecordNotFoundError,
)
from civic_pm_api.payloads import plain_values
from civic_pm_api.risk_scoring import RiskLevel, build_matrix, risk_level, score_risk
from civic_pm_api.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

# Statuses after which a record no longer counts as open work.
RISK_TERMINAL = frozenset({"closed", "escalated"})
ISSUE_TERMINAL = frozenset({"resolved", "closed", "escalated"})
DECISION_TERMINAL = frozenset({"approved", "rejected", "implemented"})
ACTION_TERMINAL = frozenset({"completed", "cancelled"})

LEVEL_TO_ISSUE_PRIORITY: Dict[str, str] = {
    "low": "low",
    "medium": "medium",
    "high": "high",
    "critical": "urgent",
}

HIGH_LEVELS = frozenset({RiskLevel.high.value, RiskLevel.critical.value})


class RaidService:
    def __init__(self, db: DatabaseService, notifications: Optional[NotificationService] = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    # Lookups

    def get_project(self, project_id: str) -> Project:
        project = self.db.get_project(project_id)
        if not project:
            raise RecordNotFoundError("Project not found")
        return project

    def get_risk(self, risk_id: str) -> ProjectRisk:
        risk = self.db.get_risk(risk_id)
        if not risk:
            raise RecordNotFoundError("Risk not found")
        return risk

    def get_issue(self, issue_id: str) -> ProjectIssue:
        issue = self.db.get_issue(issue_id)
        if not issue:
            raise RecordNotFoundError("Issue not found")
        return issue

    def get_decision(self, decision_id: str) -> ProjectDecision:
        decision = self.db.get_decision(decision_id)
        if not decision:
            raise RecordNotFoundError("Decision not found")
        return decision

    def get_action(self, action_id: str) -> ProjectAction:
        action = self.db.get_action(action_id)
        if not action:
            raise RecordNotFoundError("Action not found")
        return action

    def _check_reference(self, kind: str, record, project_id: str) -> None:
        if record is None:
            raise InvalidReferenceError(f"Referenced {kind} does not exist")
        if record.project_id != project_id:
            raise InvalidReferenceError(f"Referenced {kind} {record.id} belongs to another project")

    def _check_references(self, project_id: str, data: dict) -> None:
        if data.get("risk_id"):
            self._check_reference("risk", self.db.get_risk(data["risk_id"]), project_id)
        if data.get("issue_id"):
            self._check_reference("issue", self.db.get_issue(data["issue_id"]), project_id)
        if data.get("decision_id"):
            self._check_reference("decision", self.db.get_decision(data["decision_id"]), project_id)

    # Risks

    def list_risks(self, project_id: str) -> List[ProjectRisk]:
        self.get_project(project_id)
        return self.db.list_risks(project_id)

    def create_risk(self, project_id: str, data: dict, user: CurrentUser) -> ProjectRisk:
        project = self.get_project(project_id)
        data = plain_values(data)
        data.setdefault("probability", "medium")
        data.setdefault("impact", "medium")
        data.update(
            project_id=project_id,
            status="identified",
            risk_score=score_risk(data["probability"], data["impact"]),
            created_by=user.id,
        )
        risk = self.db.create_risk(data)
        logger.info(f"Risk {risk.id} created on {project_id} with score {risk.risk_score}")
        if risk_level(risk.risk_score) == RiskLevel.critical:
            self.notifications.notify(
                risk.owner_id or risk.assigned_to or user.id,
                type="risk",
                priority="critical",
                title="Critical Risk Identified",
                message=f"{risk.title} has {risk.probability} probability and {risk.impact} impact",
                project=project,
            )
        return risk

    def update_risk(self, risk_id: str, data: dict) -> ProjectRisk:
        risk = self.get_risk(risk_id)
        data = plain_values(data)
        if data.get("status") == "escalated" and risk.status != "escalated":
            raise InvalidTransitionError("Use the escalate endpoint to escalate a risk")
        if "probability" in data or "impact" in data:
            data["risk_score"] = score_risk(
                data.get("probability", risk.probability),
                data.get("impact", risk.impact),
            )
        return self.db.update_risk(risk_id, data)

    def escalate_risk(self, risk_id: str, overrides: dict, user: CurrentUser) -> tuple:
        """Open an issue from a risk and mark the risk escalated. Returns (risk, issue)."""
        risk = self.get_risk(risk_id)
        if risk.status in RISK_TERMINAL:
            raise InvalidTransitionError(f"Risk is {risk.status} and cannot be escalated")
        project = self.get_project(risk.project_id)
        overrides = {key: value for key, value in plain_values(overrides).items() if value is not None}
        level = risk_level(risk.risk_score).value
        issue_data = {
            "project_id": risk.project_id,
            "risk_id": risk.id,
            "title": risk.title,
            "description": risk.description,
            "category": risk.category,
            "severity": risk.impact,
            "priority": LEVEL_TO_ISSUE_PRIORITY[level],
            "status": "open",
            "owner_id": risk.owner_id,
            "assigned_to": risk.assigned_to,
            "reported_by": user.id,
            "due_date": risk.due_date,
        }
        issue_data.update(overrides)
        issue = self.db.escalate_risk(risk, issue_data)
        logger.info(f"Risk {risk_id} escalated to issue {issue.id}")
        self.notifications.notify(
            issue.assigned_to or risk.owner_id or user.id,
            type="issue",
            priority="critical" if issue.priority == "urgent" else issue.priority,
            title="Risk Escalated to Issue",
            message=f"{risk.title} has materialised and is now tracked as an issue",
            project=project,
        )
        return risk, issue

    # Issues

    def list_issues(self, project_id: str) -> List[ProjectIssue]:
        self.get_project(project_id)
        return self.db.list_issues(project_id)

    def create_issue(self, project_id: str, data: dict, user: CurrentUser) -> ProjectIssue:
        self.get_project(project_id)
        data = plain_values(data)
        self._check_references(project_id, data)
        data.update(project_id=project_id, status="open", reported_by=user.id)
        return self.db.create_issue(data)

    def update_issue(self, issue_id: str, data: dict) -> ProjectIssue:
        issue = self.get_issue(issue_id)
        data = plain_values(data)
        if data.get("status") == "resolved" and not (issue.resolved_date or data.get("resolved_date")):
            data["resolved_date"] = today()
        return self.db.update_issue(issue_id, data)

    # Decisions

    def list_decisions(self, project_id: str) -> List[ProjectDecision]:
        self.get_project(project_id)
        return self.db.list_decisions(project_id)

    def create_decision(self, project_id: str, data: dict, user: CurrentUser) -> ProjectDecision:
        self.get_project(project_id)
        data = plain_values(data)
        self._check_references(project_id, data)
        data.update(project_id=project_id, decision_status="pending", created_by=user.id)
        return self.db.create_decision(data)

    def update_decision(self, decision_id: str, data: dict, user: CurrentUser) -> ProjectDecision:
        decision = self.get_decision(decision_id)
        data = plain_values(data)
        if data.get("decision_status") == "approved" and decision.decision_status != "approved":
            approval_required = data.get("approval_required", decision.approval_required)
            if approval_required and user.role not in PM_ROLES:
                raise PermissionDeniedError("Decision requires approval by a project manager")
            data["approved_by"] = user.id
            data["approved_at"] = utcnow()
        return self.db.update_decision(decision_id, data)

    # Actions

    def list_actions(self, project_id: str) -> List[ProjectAction]:
        self.get_project(project_id)
        return self.db.list_actions(project_id)

    def create_action(self, project_id: str, data: dict, user: CurrentUser) -> ProjectAction:
        self.get_project(project_id)
        data = plain_values(data)
        self._check_references(project_id, data)
        data.update(project_id=project_id, status="pending", created_by=user.id)
        return self.db.create_action(data)

    def update_action(self, action_id: str, data: dict) -> ProjectAction:
        action = self.get_action(action_id)
        data = plain_values(data)
        if data.get("status") == "completed" and not (action.completed_date or data.get("completed_date")):
            data["completed_date"] = today()
        return self.db.update_action(action_id, data)

    # Analytics

    @staticmethod
    def _counts(records: Iterable, status_attr: str, terminal: frozenset) -> dict:
        statuses = Counter(getattr(record, status_attr) for record in records)
        return {
            "total": sum(statuses.values()),
            "open": sum(count for status, count in statuses.items() if status not in terminal),
            "by_status": dict(statuses),
        }

    def summary(self, project_id: str) -> dict:
        self.get_project(project_id)
        risks = self.db.list_risks(project_id)
        issues = self.db.list_issues(project_id)
        decisions = self.db.list_decisions(project_id)
        actions = self.db.list_actions(project_id)

        open_risks = [risk for risk in risks if risk.status not in RISK_TERMINAL]
        levels = Counter(risk_level(risk.risk_score).value for risk in open_risks)
        current_day = today()
        overdue = [
            action for action in actions
            if action.status not in ACTION_TERMINAL and action.due_date and action.due_date < current_day
        ]
        return {
            "project_id": project_id,
            "risks": self._counts(risks, "status", RISK_TERMINAL),
            "issues": self._counts(issues, "status", ISSUE_TERMINAL),
            "decisions": self._counts(decisions, "decision_status", DECISION_TERMINAL),
            "actions": self._counts(actions, "status", ACTION_TERMINAL),
            "risk_levels": {level.value: levels.get(level.value, 0) for level in RiskLevel},
            "risk_matrix": build_matrix((risk.probability, risk.impact) for risk in open_risks),
            "overdue_actions": len(overdue),
            # list_risks is ordered by score, highest first
            "top_risks": open_risks[: SETTINGS.top_risks_limit],
        }

    def cross_project_analysis(self, jurisdiction_ids: Optional[List[str]] = None) -> dict:
        projects = self.db.list_projects(jurisdiction_ids)
        project_profiles = []
        by_category: Dict[str, List[ProjectRisk]] = defaultdict(list)
        all_open: List[ProjectRisk] = []

        for project in projects:
            open_risks = [risk for risk in self.db.list_risks(project.id) if risk.status not in RISK_TERMINAL]
            scores = [risk.risk_score for risk in open_risks]
            project_profiles.append(
                {
                    "project_id": project.id,
                    "project_name": project.name,
                    "jurisdiction_id": project.jurisdiction_id,
                    "open_risks": len(open_risks),
                    "average_score": round(sum(scores) / len(scores), 2) if scores else 0.0,
                    "max_score": max(scores, default=0),
                    "high_or_critical": sum(1 for risk in open_risks if risk_level(risk.risk_score).value in HIGH_LEVELS),
                }
            )
            for risk in open_risks:
                by_category[risk.category].append(risk)
            all_open.extend(open_risks)

        categories = []
        for category, risks in by_category.items():
            severe = [risk for risk in risks if risk_level(risk.risk_score).value in HIGH_LEVELS]
            categories.append(
                {
                    "category": category,
                    "open_risks": len(risks),
                    "projects_affected": len({risk.project_id for risk in risks}),
                    "high_or_critical": len(severe),
                    "average_score": round(sum(risk.risk_score for risk in risks) / len(risks), 2),
                    "systemic": len({risk.project_id for risk in severe}) >= 2,
                }
            )
        categories.sort(key=lambda entry: (-entry["high_or_critical"], -entry["open_risks"], entry["category"]))
        project_profiles.sort(key=lambda entry: (-entry["max_score"], -entry["open_risks"], entry["project_name"]))
        all_open.sort(key=lambda risk: risk.risk_score, reverse=True)

        return {
            "generated_at": utcnow(),
            "projects_analyzed": len(projects),
            "total_open_risks": len(all_open),
            "projects": project_profiles,
            "categories": categories,
            "top_risks": all_open[: SETTINGS.top_risks_limit],
        }

    def prioritized_work(self, project_id: str, now: Optional[datetime] = None) -> List[prioritization.ActionItem]:
        """Rank the open RAID work of a project."""
        self.get_project(project_id)
        risks = self.db.list_risks(project_id)
        issues = self.db.list_issues(project_id)
        decisions = self.db.list_decisions(project_id)
        actions = self.db.list_actions(project_id)

        open_actions = [action for action in actions if action.status not in ACTION_TERMINAL]
        open_decisions = [decision for decision in decisions if decision.decision_status not in DECISION_TERMINAL]
        blocked_by_risk = Counter(action.risk_id for action in open_actions if action.risk_id)
        blocked_by_issue = Counter(action.issue_id for action in open_actions if action.issue_id)
        blocked_by_issue.update(decision.issue_id for decision in open_decisions if decision.issue_id)
        blocked_by_decision = Counter(action.decision_id for action in open_actions if action.decision_id)
        risk_scores = {risk.id: risk.risk_score for risk in risks}

        items = [
            prioritization.item_from_risk(risk, blocked_by_risk[risk.id])
            for risk in risks if risk.status not in RISK_TERMINAL
        ]
        items += [
            prioritization.item_from_issue(issue, blocked_by_issue[issue.id])
            for issue in issues if issue.status not in ISSUE_TERMINAL
        ]
        items += [
            prioritization.item_from_decision(decision, blocked_by_decision[decision.id])
            for decision in open_decisions
        ]
        items += [
            prioritization.item_from_action(action, risk_scores.get(action.risk_id))
            for action in open_actions
        ]
        return prioritization.prioritize(items, now=now)
