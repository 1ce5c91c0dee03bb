from civic_pm_api.services.dashboard_service import DashboardService
from civic_pm_api.services.engagement_service import EngagementService
from civic_pm_api.services.notification_service import NotificationService
from civic_pm_api.services.project_service import ProjectService
from civic_pm_api.services.raid_service import RaidService
from civic_pm_api.services.schedule_service import ScheduleService

__all__ = [
    "DashboardService",
    "EngagementService",
    "NotificationService",
    "ProjectService",
    "RaidService",
    "ScheduleService",
]
