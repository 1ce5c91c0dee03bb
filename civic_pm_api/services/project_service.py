"""
PURPOSE: Project portfolio operations - filtered/paginated listing, project codes per jurisdiction,
         assignment tracking and the summary report used by council dashboards
SRP and DRY check: Pass - project rules only, queries delegated to DatabaseService
"""
import logging
import math
from collections import Counter
from typing import List, Optional

from civic_pm_api.auth import CurrentUser
from civic_pm_api.clock import today, utcnow
from civic_pm_api.config import SETTINGS
from civic_pm_api.database import DatabaseService, Jurisdiction, Project
from civic_pm_api.errors import (
    InvalidReferenceError,
    InvalidRequestError,
    InvalidTransitionError,
    RecordNotFoundError,
)
from civic_pm_api.payloads import enum_value, plain_values

logger = logging.getLogger(__name__)

CLOSED_PROJECT_STATUSES = frozenset({"completed", "cancelled"})
ACTIVE_PROJECT_STATUSES = frozenset({"assigned", "initiate", "planning", "in_progress"})
SORT_FIELDS = ("name", "created_at", "progress_percentage", "budget_allocated")


def split_ids(value: Optional[str]) -> List[str]:
    """Parse a comma separated id list from a query string."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class ProjectService:
    def __init__(self, db: DatabaseService):
        self.db = db

    # Jurisdictions

    def list_jurisdictions(self) -> List[Jurisdiction]:
        return self.db.list_jurisdictions()

    def create_jurisdiction(self, data: dict) -> Jurisdiction:
        if self.db.get_jurisdiction_by_identifier(data["identifier"]):
            raise InvalidTransitionError(f"Jurisdiction {data['identifier']} already exists")
        jurisdiction = self.db.create_jurisdiction(data)
        logger.info(f"Jurisdiction {jurisdiction.identifier} created as {jurisdiction.id}")
        return jurisdiction

    # Projects

    def get_project(self, project_id: str) -> Project:
        project = self.db.get_project(project_id)
        if not project:
            raise RecordNotFoundError("Project not found")
        return project

    def list_projects(
        self,
        jurisdiction_ids: Optional[List[str]] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        priority: Optional[str] = None,
        scope: Optional[str] = None,
        funding_source: Optional[str] = None,
        project_manager_id: Optional[str] = None,
        assigned_to: Optional[str] = None,
        is_public: Optional[bool] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: Optional[int] = None,
    ) -> dict:
        """Filter, sort and page the project list. Page numbers start at 1."""
        sort_by = enum_value(sort_by)
        sort_order = enum_value(sort_order)
        if sort_by not in SORT_FIELDS:
            raise InvalidRequestError(f"Cannot sort projects by {sort_by!r}")
        limit = min(limit or SETTINGS.default_page_limit, SETTINGS.max_page_limit)
        page = max(page, 1)

        equals = {
            "status": enum_value(status),
            "category": enum_value(category),
            "priority": enum_value(priority),
            "scope": enum_value(scope),
            "funding_source": enum_value(funding_source),
            "project_manager_id": project_manager_id,
            "assigned_to": assigned_to,
            "is_public": is_public,
        }
        projects = self.db.list_projects(jurisdiction_ids or None)
        for attr, expected in equals.items():
            if expected is not None:
                projects = [project for project in projects if getattr(project, attr) == expected]
        if search:
            needle = search.strip().lower()
            projects = [
                project for project in projects
                if needle in project.name.lower() or needle in (project.description or "").lower()
            ]

        # Sort on the value with None last regardless of direction
        present = [project for project in projects if getattr(project, sort_by) is not None]
        missing = [project for project in projects if getattr(project, sort_by) is None]
        key = (lambda project: project.name.lower()) if sort_by == "name" else (lambda project: getattr(project, sort_by))
        present.sort(key=key, reverse=sort_order == "desc")
        projects = present + missing

        total = len(projects)
        start = (page - 1) * limit
        return {
            "projects": projects[start:start + limit],
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if total else 0,
        }

    def list_public_projects(self, jurisdiction_ids: Optional[List[str]] = None) -> List[Project]:
        return [project for project in self.db.list_projects(jurisdiction_ids or None) if project.is_public]

    def create_project(self, data: dict, user: CurrentUser) -> Project:
        data = plain_values(data)
        start, end = data.get("planned_start_date"), data.get("planned_end_date")
        if start and end and end < start:
            raise InvalidRequestError("planned_end_date cannot be before planned_start_date")
        data.update(created_by=user.id, currency=SETTINGS.default_currency)
        project = self.db.create_project(data)
        if project is None:
            raise InvalidReferenceError(f"Unknown jurisdiction {data['jurisdiction_id']}")
        logger.info(f"Project {project.code} created by {user.id}")
        return project

    def update_project(self, project_id: str, data: dict) -> Project:
        project = self.get_project(project_id)
        data = plain_values(data)
        if "assigned_to" in data and data["assigned_to"] != project.assigned_to:
            data["assigned_at"] = utcnow() if data["assigned_to"] else None
        start = data.get("planned_start_date", project.planned_start_date)
        end = data.get("planned_end_date", project.planned_end_date)
        if start and end and end < start:
            raise InvalidRequestError("planned_end_date cannot be before planned_start_date")
        if data.get("status") == "completed":
            data.setdefault("progress_percentage", 100)
        return self.db.update_project(project_id, data)

    def delete_project(self, project_id: str) -> None:
        if not self.db.delete_project(project_id):
            raise RecordNotFoundError("Project not found")
        logger.info(f"Project {project_id} deleted with its RAID records and schedules")

    def summary(self, jurisdiction_ids: Optional[List[str]] = None) -> dict:
        projects = self.db.list_projects(jurisdiction_ids or None)
        current_day = today()
        overdue = [
            project for project in projects
            if project.planned_end_date
            and project.planned_end_date < current_day
            and project.status not in CLOSED_PROJECT_STATUSES
        ]
        progress = [project.progress_percentage or 0 for project in projects]
        return {
            "total_projects": len(projects),
            "active_projects": sum(1 for project in projects if project.status in ACTIVE_PROJECT_STATUSES),
            "completed_projects": sum(1 for project in projects if project.status == "completed"),
            "total_budget": sum(project.budget_allocated or 0.0 for project in projects),
            "total_spent": sum(project.budget_spent or 0.0 for project in projects),
            "average_progress": round(sum(progress) / len(progress), 1) if progress else 0.0,
            "overdue_projects": len(overdue),
            "projects_by_category": dict(Counter(project.category for project in projects)),
            "projects_by_status": dict(Counter(project.status for project in projects)),
        }
