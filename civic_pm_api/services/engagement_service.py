"""
PURPOSE: Citizen engagement on projects - progress updates published to the public and
         feedback sent in by citizens, with staff responses
SRP and DRY check: Pass - engagement rules only, persistence stays in DatabaseService
"""
import logging
from typing import List, Optional

from civic_pm_api.auth import STAFF_ROLES, CurrentUser
from civic_pm_api.clock import utcnow
from civic_pm_api.database import DatabaseService, Project, ProjectFeedback, ProjectUpdate
from civic_pm_api.errors import RecordNotFoundError
from civic_pm_api.payloads import plain_values
from civic_pm_api.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def is_staff(user: Optional[CurrentUser]) -> bool:
    return user is not None and user.role in STAFF_ROLES


class EngagementService:
    def __init__(self, db: DatabaseService, notifications: Optional[NotificationService] = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    def visible_project(self, project_id: str, user: Optional[CurrentUser]) -> Project:
        """Public projects are open to everyone, the others only to staff."""
        project = self.db.get_project(project_id)
        if not project or not (project.is_public or is_staff(user)):
            raise RecordNotFoundError("Project not found")
        return project

    def list_updates(self, project_id: str, user: Optional[CurrentUser]) -> List[ProjectUpdate]:
        self.visible_project(project_id, user)
        return self.db.list_project_updates(project_id, public_only=not is_staff(user))

    def publish_update(self, project_id: str, data: dict, user: CurrentUser) -> ProjectUpdate:
        project = self.db.get_project(project_id)
        if not project:
            raise RecordNotFoundError("Project not found")
        data = plain_values(data)
        data.update(project_id=project_id, created_by=user.id)
        update = self.db.create_project_update(data)
        logger.info(f"Update {update.id} published on {project.code or project_id}")
        return update

    def submit_feedback(self, project_id: str, data: dict, user: Optional[CurrentUser]) -> ProjectFeedback:
        project = self.visible_project(project_id, user)
        data = plain_values(data)
        data.update(project_id=project_id, status="new", citizen_id=user.id if user else None)
        feedback = self.db.create_feedback(data)
        logger.info(f"Feedback {feedback.id} ({feedback.feedback_type}) received on {project_id}")
        recipient = project.project_manager_id or project.assigned_to
        if recipient:
            self.notifications.notify(
                recipient,
                type="status",
                priority="high" if feedback.feedback_type == "complaint" else "low",
                title="New Citizen Feedback",
                message=f"{feedback.feedback_type.capitalize()}: {feedback.title}",
                project=project,
            )
        return feedback

    def list_feedback(self, project_id: str) -> List[ProjectFeedback]:
        if not self.db.get_project(project_id):
            raise RecordNotFoundError("Project not found")
        return self.db.list_feedback(project_id)

    def respond_to_feedback(self, feedback_id: str, data: dict, user: CurrentUser) -> ProjectFeedback:
        feedback = self.db.get_feedback(feedback_id)
        if not feedback:
            raise RecordNotFoundError("Feedback not found")
        data = plain_values(data)
        if data.get("response"):
            data.update(responded_by=user.id, responded_at=utcnow())
            if "status" not in data and feedback.status == "new":
                data["status"] = "acknowledged"
        feedback = self.db.update_feedback(feedback_id, data)
        if feedback.citizen_id and data.get("response"):
            self.notifications.notify(
                feedback.citizen_id,
                type="status",
                title="Response to Your Feedback",
                message=f"{feedback.title}: {feedback.response}",
                project_id=feedback.project_id,
            )
        return feedback
