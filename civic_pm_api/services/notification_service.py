"""Per-user notifications, created on request or raised by RAID events."""
import logging
from typing import List, Optional

from civic_pm_api.database import DatabaseService, Notification, Project
from civic_pm_api.errors import PermissionDeniedError, RecordNotFoundError

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db: DatabaseService):
        self.db = db

    def list_for_user(self, user_id: str, unread_only: bool = False, limit: int = 100) -> List[Notification]:
        return self.db.list_notifications(user_id, unread_only=unread_only, limit=limit)

    def unread_count(self, user_id: str) -> int:
        return self.db.count_unread_notifications(user_id)

    def notify(
        self,
        user_id: Optional[str],
        type: str,
        title: str,
        message: str,
        priority: str = "medium",
        project: Optional[Project] = None,
        project_id: Optional[str] = None,
        project_name: Optional[str] = None,
    ) -> Optional[Notification]:
        if not user_id:
            logger.debug(f"Notification {title!r} dropped, no recipient")
            return None
        if project is not None:
            project_id = project.id
            project_name = project.name
        notification = self.db.create_notification(
            {
                "user_id": user_id,
                "type": type,
                "priority": priority,
                "title": title,
                "message": message,
                "project_id": project_id,
                "project_name": project_name,
            }
        )
        logger.info(f"Notification {notification.id} ({type}/{priority}) sent to {user_id}")
        return notification

    def _owned(self, notification_id: str, user_id: str) -> Notification:
        notification = self.db.get_notification(notification_id)
        if not notification:
            raise RecordNotFoundError("Notification not found")
        if notification.user_id != user_id:
            raise PermissionDeniedError("Notification belongs to another user")
        return notification

    def mark_read(self, notification_id: str, user_id: str) -> Notification:
        self._owned(notification_id, user_id)
        return self.db.update_notification(notification_id, {"read": True})

    def mark_all_read(self, user_id: str) -> int:
        return self.db.mark_all_notifications_read(user_id)

    def delete(self, notification_id: str, user_id: str) -> None:
        self._owned(notification_id, user_id)
        self.db.delete_notification(notification_id)
