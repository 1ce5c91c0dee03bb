"""
PURPOSE: Database models and connection for the civic project-management API - persistent storage
         for jurisdictions, projects, RAID registers, schedules and notifications
SRP and DRY check: Pass - Single responsibility of data persistence layer, DRY database operations
"""
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from civic_pm_api.clock import utcnow
from civic_pm_api.config import SETTINGS
from civic_pm_api.project_codes import format_project_code, next_sequence
from civic_pm_api.risk_scoring import risk_label, risk_level

logger = logging.getLogger(__name__)

DATABASE_URL = SETTINGS.database_url

engine_kwargs: Dict[str, Any] = {
    "pool_pre_ping": True,
    "pool_recycle": 3600,
    "connect_args": {"connect_timeout": 10},
}

# SQLite timeout is in seconds and the session may be used from FastAPI's threadpool.
if DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"timeout": 10.0, "check_same_thread": False}

engine = create_engine(DATABASE_URL, **engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class Jurisdiction(Base):
    """Regional council or other administrative unit that owns projects"""
    __tablename__ = "jurisdictions"

    id = Column(String(64), primary_key=True, default=lambda: new_id("jur"))
    identifier = Column(String(32), unique=True, nullable=False)  # e.g. "RDC4", used in project codes
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    last_project_sequence = Column(Integer, nullable=False, default=0)  # highest code sequence ever issued
    created_at = Column(DateTime, default=utcnow)


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(64), primary_key=True, default=lambda: new_id("proj"))
    code = Column(String(32), unique=True, index=True, nullable=True)
    jurisdiction_id = Column(String(64), ForeignKey("jurisdictions.id"), index=True, nullable=False)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(50), nullable=False)
    priority = Column(String(20), nullable=False, default="medium")
    scope = Column(String(20), nullable=False, default="local")
    funding_source = Column(String(20), nullable=False, default="local")

    # Budget
    budget_allocated = Column(Float, nullable=False, default=0.0)
    budget_spent = Column(Float, nullable=False, default=0.0)
    currency = Column(String(8), nullable=False, default="GYD")

    # Timeline
    planned_start_date = Column(Date, nullable=True)
    planned_end_date = Column(Date, nullable=True)
    actual_start_date = Column(Date, nullable=True)
    actual_end_date = Column(Date, nullable=True)

    # Status and progress
    status = Column(String(30), nullable=False, default="planning")
    progress_percentage = Column(Integer, nullable=False, default=0)

    # Team
    project_manager_id = Column(String(64), index=True, nullable=True)
    assigned_to = Column(String(64), index=True, nullable=True)
    assigned_at = Column(DateTime, nullable=True)
    created_by = Column(String(64), nullable=False)

    # Public engagement
    is_public = Column(Boolean, nullable=False, default=True)
    public_description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ProjectRisk(Base):
    __tablename__ = "project_risks"
    __table_args__ = (
        Index("idx_project_risks_project_status", "project_id", "status"),
    )

    id = Column(String(64), primary_key=True, default=lambda: new_id("risk"))
    project_id = Column(String(64), ForeignKey("projects.id"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(30), nullable=False)
    probability = Column(String(20), nullable=False, default="medium")
    impact = Column(String(20), nullable=False, default="medium")
    risk_score = Column(Integer, nullable=False, default=4)  # probability weight x impact weight
    status = Column(String(20), nullable=False, default="identified")
    mitigation_strategy = Column(Text, nullable=True)
    contingency_plan = Column(Text, nullable=True)
    owner_id = Column(String(64), nullable=True)
    assigned_to = Column(String(64), nullable=True)
    due_date = Column(Date, nullable=True)
    escalated_to_issue_id = Column(String(64), nullable=True)
    created_by = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def risk_level(self) -> str:
        return risk_level(self.risk_score or 0).value

    @property
    def risk_label(self) -> str:
        return risk_label(self.risk_score or 0)


class ProjectIssue(Base):
    __tablename__ = "project_issues"
    __table_args__ = (
        Index("idx_project_issues_project_status", "project_id", "status"),
    )

    id = Column(String(64), primary_key=True, default=lambda: new_id("issue"))
    project_id = Column(String(64), ForeignKey("projects.id"), nullable=False)
    risk_id = Column(String(64), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(30), nullable=False)
    severity = Column(String(20), nullable=False, default="medium")
    priority = Column(String(20), nullable=False, default="medium")
    status = Column(String(20), nullable=False, default="open")
    impact_description = Column(Text, nullable=True)
    root_cause = Column(Text, nullable=True)
    resolution_plan = Column(Text, nullable=True)
    actual_resolution = Column(Text, nullable=True)
    owner_id = Column(String(64), nullable=True)
    assigned_to = Column(String(64), nullable=True)
    reported_by = Column(String(64), nullable=False)
    due_date = Column(Date, nullable=True)
    resolved_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ProjectDecision(Base):
    __tablename__ = "project_decisions"

    id = Column(String(64), primary_key=True, default=lambda: new_id("decision"))
    project_id = Column(String(64), ForeignKey("projects.id"), index=True, nullable=False)
    issue_id = Column(String(64), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    decision_type = Column(String(20), nullable=False)
    decision_status = Column(String(20), nullable=False, default="pending")
    decision_criteria = Column(Text, nullable=True)
    options_considered = Column(Text, nullable=True)
    chosen_option = Column(Text, nullable=True)
    rationale = Column(Text, nullable=True)
    decision_maker = Column(String(64), nullable=True)
    stakeholders = Column(JSON, nullable=True)
    approval_required = Column(Boolean, nullable=False, default=False)
    approved_by = Column(String(64), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    implementation_deadline = Column(Date, nullable=True)
    created_by = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ProjectAction(Base):
    __tablename__ = "project_actions"
    __table_args__ = (
        Index("idx_project_actions_project_status", "project_id", "status"),
    )

    id = Column(String(64), primary_key=True, default=lambda: new_id("action"))
    project_id = Column(String(64), ForeignKey("projects.id"), nullable=False)
    decision_id = Column(String(64), nullable=True)
    issue_id = Column(String(64), nullable=True)
    risk_id = Column(String(64), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    action_type = Column(String(20), nullable=False)
    priority = Column(String(20), nullable=False, default="medium")
    status = Column(String(20), nullable=False, default="pending")
    assigned_to = Column(String(64), nullable=True)
    created_by = Column(String(64), nullable=False)
    due_date = Column(Date, nullable=True)
    completed_date = Column(Date, nullable=True)
    completion_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ProjectSchedule(Base):
    __tablename__ = "project_schedules"

    id = Column(String(64), primary_key=True, default=lambda: new_id("schedule"))
    project_id = Column(String(64), ForeignKey("projects.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    template_id = Column(String(100), nullable=True)
    template_name = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="draft")
    version = Column(Integer, nullable=False, default=1)
    is_current = Column(Boolean, nullable=False, default=True)
    start_date = Column(Date, nullable=True)
    total_duration_days = Column(Integer, nullable=False, default=0)
    total_tasks = Column(Integer, nullable=False, default=0)
    completed_tasks = Column(Integer, nullable=False, default=0)
    progress_percentage = Column(Integer, nullable=False, default=0)
    required_documents = Column(JSON, nullable=True)
    created_by = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class SchedulePhase(Base):
    __tablename__ = "schedule_phases"

    id = Column(String(64), primary_key=True, default=lambda: new_id("phase"))
    schedule_id = Column(String(64), ForeignKey("project_schedules.id"), index=True, nullable=False)
    phase_order = Column(Integer, nullable=False)
    template_phase_id = Column(String(100), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    estimated_days = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="not_started")
    progress_percentage = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ScheduleTask(Base):
    __tablename__ = "schedule_tasks"

    id = Column(String(64), primary_key=True, default=lambda: new_id("task"))
    schedule_id = Column(String(64), ForeignKey("project_schedules.id"), index=True, nullable=False)
    phase_id = Column(String(64), ForeignKey("schedule_phases.id"), index=True, nullable=False)
    parent_task_id = Column(String(64), nullable=True)
    task_order = Column(Integer, nullable=False)
    level = Column(Integer, nullable=False, default=0)
    is_subtask = Column(Boolean, nullable=False, default=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    estimated_hours = Column(Float, nullable=False, default=0.0)
    actual_hours = Column(Float, nullable=True)
    assigned_to = Column(String(64), nullable=True)
    status = Column(String(20), nullable=False, default="not_started")
    progress_percentage = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_user_read", "user_id", "read"),
    )

    id = Column(String(64), primary_key=True, default=lambda: new_id("notif"))
    user_id = Column(String(64), nullable=False)
    type = Column(String(20), nullable=False)  # risk, issue, deadline, status, success
    priority = Column(String(20), nullable=False, default="medium")
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    project_id = Column(String(64), nullable=True)
    project_name = Column(String(255), nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)


class ScheduleHistory(Base):
    """Audit trail of changes made to a schedule, its phases and tasks"""
    __tablename__ = "schedule_history"

    id = Column(String(64), primary_key=True, default=lambda: new_id("history"))
    schedule_id = Column(String(64), ForeignKey("project_schedules.id"), index=True, nullable=False)
    action = Column(String(30), nullable=False)  # created, updated, phases_added, task_added, task_updated
    entity_type = Column(String(20), nullable=False)  # schedule, phase, task
    entity_id = Column(String(64), nullable=False)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    change_summary = Column(Text, nullable=False)
    changed_by = Column(String(64), nullable=False)
    changed_at = Column(DateTime, default=utcnow)


class ProjectUpdate(Base):
    """Progress news published to citizens"""
    __tablename__ = "project_updates"

    id = Column(String(64), primary_key=True, default=lambda: new_id("update"))
    project_id = Column(String(64), ForeignKey("projects.id"), index=True, nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    update_type = Column(String(20), nullable=False, default="general")
    is_public = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=utcnow)


class ProjectFeedback(Base):
    __tablename__ = "project_feedback"

    id = Column(String(64), primary_key=True, default=lambda: new_id("feedback"))
    project_id = Column(String(64), ForeignKey("projects.id"), index=True, nullable=False)
    citizen_id = Column(String(64), nullable=True)  # None for anonymous feedback
    feedback_type = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="new")
    response = Column(Text, nullable=True)
    responded_by = Column(String(64), nullable=True)
    responded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


RAID_MODELS = (ProjectRisk, ProjectIssue, ProjectDecision, ProjectAction)
ENGAGEMENT_MODELS = (ProjectUpdate, ProjectFeedback)

ModelT = TypeVar("ModelT", bound=Base)


# Database service functions
class DatabaseService:
    """Service class for database operations"""

    def __init__(self, db: Session):
        self.db = db

    # Generic helpers shared by every table

    def _create(self, model: Type[ModelT], data: dict) -> ModelT:
        record = model(**data)
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def _get(self, model: Type[ModelT], record_id: str) -> Optional[ModelT]:
        return self.db.query(model).filter(model.id == record_id).first()

    def _update(self, model: Type[ModelT], record_id: str, update_data: dict) -> Optional[ModelT]:
        record = self._get(model, record_id)
        if record:
            for key, value in update_data.items():
                setattr(record, key, value)
            self.db.commit()
            self.db.refresh(record)
        return record

    # Jurisdictions

    def create_jurisdiction(self, data: dict) -> Jurisdiction:
        return self._create(Jurisdiction, data)

    def get_jurisdiction(self, jurisdiction_id: str) -> Optional[Jurisdiction]:
        return self._get(Jurisdiction, jurisdiction_id)

    def get_jurisdiction_by_identifier(self, identifier: str) -> Optional[Jurisdiction]:
        return self.db.query(Jurisdiction).filter(Jurisdiction.identifier == identifier).first()

    def list_jurisdictions(self) -> List[Jurisdiction]:
        return self.db.query(Jurisdiction).order_by(Jurisdiction.identifier).all()

    # Projects

    def create_project(self, data: dict) -> Optional[Project]:
        """Insert a project with the next code of its jurisdiction. None if the jurisdiction is unknown.

        The jurisdiction counter is bumped in the same transaction as the insert, so a code
        is never handed out twice even after the project holding it is deleted.
        """
        jurisdiction = (
            self.db.query(Jurisdiction)
            .filter(Jurisdiction.id == data["jurisdiction_id"])
            .with_for_update()
            .first()
        )
        if not jurisdiction:
            return None
        sequence = next_sequence(
            jurisdiction.identifier,
            self.project_codes_for_jurisdiction(jurisdiction.id),
            last_issued=jurisdiction.last_project_sequence or 0,
        )
        jurisdiction.last_project_sequence = sequence
        project = Project(**data, code=format_project_code(jurisdiction.identifier, sequence))
        self.db.add(project)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(project)
        return project

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._get(Project, project_id)

    def update_project(self, project_id: str, update_data: dict) -> Optional[Project]:
        return self._update(Project, project_id, update_data)

    def list_projects(self, jurisdiction_ids: Optional[Iterable[str]] = None) -> List[Project]:
        query = self.db.query(Project)
        if jurisdiction_ids:
            query = query.filter(Project.jurisdiction_id.in_(list(jurisdiction_ids)))
        return query.order_by(Project.created_at.desc()).all()

    def project_codes_for_jurisdiction(self, jurisdiction_id: str) -> List[str]:
        rows = self.db.query(Project.code).filter(Project.jurisdiction_id == jurisdiction_id).all()
        return [row[0] for row in rows if row[0]]

    def delete_project(self, project_id: str) -> bool:
        """Delete a project and all associated records"""
        project = self.get_project(project_id)
        if not project:
            return False
        schedule_ids = [
            row[0] for row in self.db.query(ProjectSchedule.id).filter(ProjectSchedule.project_id == project_id)
        ]
        if schedule_ids:
            self.db.query(ScheduleHistory).filter(ScheduleHistory.schedule_id.in_(schedule_ids)).delete(synchronize_session=False)
            self.db.query(ScheduleTask).filter(ScheduleTask.schedule_id.in_(schedule_ids)).delete(synchronize_session=False)
            self.db.query(SchedulePhase).filter(SchedulePhase.schedule_id.in_(schedule_ids)).delete(synchronize_session=False)
            self.db.query(ProjectSchedule).filter(ProjectSchedule.id.in_(schedule_ids)).delete(synchronize_session=False)
        for model in RAID_MODELS + ENGAGEMENT_MODELS:
            self.db.query(model).filter(model.project_id == project_id).delete(synchronize_session=False)
        self.db.delete(project)
        self.db.commit()
        return True

    # RAID registers

    def create_risk(self, data: dict) -> ProjectRisk:
        return self._create(ProjectRisk, data)

    def get_risk(self, risk_id: str) -> Optional[ProjectRisk]:
        return self._get(ProjectRisk, risk_id)

    def update_risk(self, risk_id: str, update_data: dict) -> Optional[ProjectRisk]:
        return self._update(ProjectRisk, risk_id, update_data)

    def escalate_risk(self, risk: ProjectRisk, issue_data: dict) -> ProjectIssue:
        """Insert the issue and mark the risk escalated in one transaction."""
        issue = ProjectIssue(**issue_data)
        issue.id = issue.id or new_id("issue")
        risk.status = "escalated"
        risk.escalated_to_issue_id = issue.id
        self.db.add(issue)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(issue)
        self.db.refresh(risk)
        return issue

    def list_risks(self, project_id: Optional[str] = None) -> List[ProjectRisk]:
        query = self.db.query(ProjectRisk)
        if project_id:
            query = query.filter(ProjectRisk.project_id == project_id)
        return query.order_by(ProjectRisk.risk_score.desc(), ProjectRisk.created_at).all()

    def create_issue(self, data: dict) -> ProjectIssue:
        return self._create(ProjectIssue, data)

    def get_issue(self, issue_id: str) -> Optional[ProjectIssue]:
        return self._get(ProjectIssue, issue_id)

    def update_issue(self, issue_id: str, update_data: dict) -> Optional[ProjectIssue]:
        return self._update(ProjectIssue, issue_id, update_data)

    def list_issues(self, project_id: str) -> List[ProjectIssue]:
        return (
            self.db.query(ProjectIssue)
            .filter(ProjectIssue.project_id == project_id)
            .order_by(ProjectIssue.created_at)
            .all()
        )

    def create_decision(self, data: dict) -> ProjectDecision:
        return self._create(ProjectDecision, data)

    def get_decision(self, decision_id: str) -> Optional[ProjectDecision]:
        return self._get(ProjectDecision, decision_id)

    def update_decision(self, decision_id: str, update_data: dict) -> Optional[ProjectDecision]:
        return self._update(ProjectDecision, decision_id, update_data)

    def list_decisions(self, project_id: str) -> List[ProjectDecision]:
        return (
            self.db.query(ProjectDecision)
            .filter(ProjectDecision.project_id == project_id)
            .order_by(ProjectDecision.created_at)
            .all()
        )

    def create_action(self, data: dict) -> ProjectAction:
        return self._create(ProjectAction, data)

    def get_action(self, action_id: str) -> Optional[ProjectAction]:
        return self._get(ProjectAction, action_id)

    def update_action(self, action_id: str, update_data: dict) -> Optional[ProjectAction]:
        return self._update(ProjectAction, action_id, update_data)

    def list_actions(self, project_id: str) -> List[ProjectAction]:
        return (
            self.db.query(ProjectAction)
            .filter(ProjectAction.project_id == project_id)
            .order_by(ProjectAction.created_at)
            .all()
        )

    # Schedules

    def list_schedules(self, project_id: str) -> List[ProjectSchedule]:
        return (
            self.db.query(ProjectSchedule)
            .filter(ProjectSchedule.project_id == project_id)
            .order_by(ProjectSchedule.version.desc())
            .all()
        )

    def get_schedule(self, schedule_id: str) -> Optional[ProjectSchedule]:
        return self._get(ProjectSchedule, schedule_id)

    def get_current_schedule(self, project_id: str) -> Optional[ProjectSchedule]:
        return (
            self.db.query(ProjectSchedule)
            .filter(ProjectSchedule.project_id == project_id, ProjectSchedule.is_current.is_(True))
            .order_by(ProjectSchedule.version.desc())
            .first()
        )

    def add_schedule(self, schedule: ProjectSchedule, phases: List[SchedulePhase], tasks: List[ScheduleTask]) -> ProjectSchedule:
        """Persist a schedule with its phases and tasks in one transaction, retiring the previous current one."""
        self.db.query(ProjectSchedule).filter(
            ProjectSchedule.project_id == schedule.project_id,
            ProjectSchedule.is_current.is_(True),
        ).update({"is_current": False}, synchronize_session=False)
        self.db.add(schedule)
        self.db.add_all(phases)
        self.db.add_all(tasks)
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def latest_schedule_version(self, project_id: str) -> int:
        latest = (
            self.db.query(ProjectSchedule.version)
            .filter(ProjectSchedule.project_id == project_id)
            .order_by(ProjectSchedule.version.desc())
            .first()
        )
        return latest[0] if latest else 0

    def delete_schedule(self, schedule_id: str) -> bool:
        schedule = self.get_schedule(schedule_id)
        if not schedule:
            return False
        self.db.query(ScheduleHistory).filter(ScheduleHistory.schedule_id == schedule_id).delete(synchronize_session=False)
        self.db.query(ScheduleTask).filter(ScheduleTask.schedule_id == schedule_id).delete(synchronize_session=False)
        self.db.query(SchedulePhase).filter(SchedulePhase.schedule_id == schedule_id).delete(synchronize_session=False)
        self.db.delete(schedule)
        self.db.commit()
        return True

    def list_phases(self, schedule_id: str) -> List[SchedulePhase]:
        return (
            self.db.query(SchedulePhase)
            .filter(SchedulePhase.schedule_id == schedule_id)
            .order_by(SchedulePhase.phase_order)
            .all()
        )

    def list_tasks(self, schedule_id: str) -> List[ScheduleTask]:
        return (
            self.db.query(ScheduleTask)
            .filter(ScheduleTask.schedule_id == schedule_id)
            .order_by(ScheduleTask.phase_id, ScheduleTask.task_order)
            .all()
        )

    def get_task(self, schedule_id: str, task_id: str) -> Optional[ScheduleTask]:
        return (
            self.db.query(ScheduleTask)
            .filter(ScheduleTask.schedule_id == schedule_id, ScheduleTask.id == task_id)
            .first()
        )

    def add_schedule_rows(self, phases: List[SchedulePhase], tasks: List[ScheduleTask]) -> None:
        """Stage phases and tasks on an existing schedule. The caller commits."""
        self.db.add_all(phases)
        self.db.add_all(tasks)
        self.db.flush()

    def shift_task_orders(self, phase_id: str, after_order: int) -> None:
        """Make room for a task right after after_order within a phase."""
        self.db.query(ScheduleTask).filter(
            ScheduleTask.phase_id == phase_id,
            ScheduleTask.task_order > after_order,
        ).update({"task_order": ScheduleTask.task_order + 1}, synchronize_session=False)

    def add_history(self, data: dict) -> ScheduleHistory:
        """Stage a history entry. The caller commits with the change it describes."""
        entry = ScheduleHistory(**data)
        self.db.add(entry)
        return entry

    def list_history(self, schedule_id: str) -> List[ScheduleHistory]:
        return (
            self.db.query(ScheduleHistory)
            .filter(ScheduleHistory.schedule_id == schedule_id)
            .order_by(ScheduleHistory.changed_at.desc(), ScheduleHistory.id)
            .all()
        )

    def commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def flush(self) -> None:
        self.db.flush()

    # Citizen engagement

    def create_project_update(self, data: dict) -> ProjectUpdate:
        return self._create(ProjectUpdate, data)

    def list_project_updates(self, project_id: str, public_only: bool = False) -> List[ProjectUpdate]:
        query = self.db.query(ProjectUpdate).filter(ProjectUpdate.project_id == project_id)
        if public_only:
            query = query.filter(ProjectUpdate.is_public.is_(True))
        return query.order_by(ProjectUpdate.created_at.desc()).all()

    def list_recent_updates(self, project_ids: Iterable[str], limit: int) -> List[ProjectUpdate]:
        project_ids = list(project_ids)
        if not project_ids:
            return []
        return (
            self.db.query(ProjectUpdate)
            .filter(ProjectUpdate.project_id.in_(project_ids))
            .order_by(ProjectUpdate.created_at.desc())
            .limit(limit)
            .all()
        )

    def create_feedback(self, data: dict) -> ProjectFeedback:
        return self._create(ProjectFeedback, data)

    def get_feedback(self, feedback_id: str) -> Optional[ProjectFeedback]:
        return self._get(ProjectFeedback, feedback_id)

    def update_feedback(self, feedback_id: str, update_data: dict) -> Optional[ProjectFeedback]:
        return self._update(ProjectFeedback, feedback_id, update_data)

    def list_feedback(self, project_id: str) -> List[ProjectFeedback]:
        return (
            self.db.query(ProjectFeedback)
            .filter(ProjectFeedback.project_id == project_id)
            .order_by(ProjectFeedback.created_at.desc())
            .all()
        )

    # Notifications

    def create_notification(self, data: dict) -> Notification:
        return self._create(Notification, data)

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        return self._get(Notification, notification_id)

    def list_notifications(self, user_id: str, unread_only: bool = False, limit: int = 100) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        return query.order_by(Notification.created_at.desc()).limit(limit).all()

    def count_unread_notifications(self, user_id: str) -> int:
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .count()
        )

    def mark_all_notifications_read(self, user_id: str) -> int:
        count = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .update({"read": True}, synchronize_session=False)
        )
        self.db.commit()
        return count

    def update_notification(self, notification_id: str, update_data: dict) -> Optional[Notification]:
        return self._update(Notification, notification_id, update_data)

    def delete_notification(self, notification_id: str) -> bool:
        notification = self.get_notification(notification_id)
        if not notification:
            return False
        self.db.delete(notification)
        self.db.commit()
        return True

    def close(self):
        """Close database session"""
        self.db.close()


# Database connection management
def get_database():
    """Get DatabaseService instance for dependency injection"""
    service = DatabaseService(SessionLocal())
    try:
        yield service
    finally:
        service.close()


def create_tables():
    """Create all database tables"""
    logger.info(f"Creating tables on {engine.url.render_as_string(hide_password=True)}")
    Base.metadata.create_all(bind=engine)
