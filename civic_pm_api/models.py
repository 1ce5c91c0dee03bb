"""
PURPOSE: Pydantic models for API request/response schemas - ensures type safety and validation
SRP and DRY check: Pass - Single responsibility of data validation, DRY approach to schema definitions
"""
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Level(str, Enum):
    """Probability, impact and severity scale"""
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class WorkPriority(str, Enum):
    """Priority scale used by issues, actions and projects"""
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class RaidCategory(str, Enum):
    technical = "technical"
    financial = "financial"
    regulatory = "regulatory"
    stakeholder = "stakeholder"
    environmental = "environmental"
    operational = "operational"
    schedule = "schedule"
    quality = "quality"


class RiskStatus(str, Enum):
    identified = "identified"
    assessed = "assessed"
    mitigated = "mitigated"
    monitored = "monitored"
    closed = "closed"
    escalated = "escalated"


class IssueStatus(str, Enum):
    open = "open"
    investigating = "investigating"
    resolving = "resolving"
    resolved = "resolved"
    closed = "closed"
    escalated = "escalated"


class DecisionType(str, Enum):
    technical = "technical"
    business = "business"
    resource = "resource"
    schedule = "schedule"
    scope = "scope"
    quality = "quality"
    risk = "risk"


class DecisionStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    deferred = "deferred"
    implemented = "implemented"


class ActionType(str, Enum):
    mitigation = "mitigation"
    resolution = "resolution"
    implementation = "implementation"
    monitoring = "monitoring"
    communication = "communication"
    escalation = "escalation"


class ActionStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    on_hold = "on_hold"


class ProjectCategory(str, Enum):
    infrastructure = "infrastructure"
    health = "health"
    education = "education"
    agriculture = "agriculture"
    environment = "environment"
    social = "social"
    economic = "economic"


class ProjectStatus(str, Enum):
    submitted = "submitted"
    under_review = "under_review"
    approved = "approved"
    assigned = "assigned"
    initiate = "initiate"
    planning = "planning"
    in_progress = "in_progress"
    on_hold = "on_hold"
    completed = "completed"
    cancelled = "cancelled"


class ProjectScope(str, Enum):
    local = "local"
    regional = "regional"
    national = "national"


class FundingSource(str, Enum):
    local = "local"
    regional = "regional"
    national = "national"
    international = "international"


class ProjectSortField(str, Enum):
    name = "name"
    created_at = "created_at"
    progress_percentage = "progress_percentage"
    budget_allocated = "budget_allocated"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class UserRole(str, Enum):
    citizen = "citizen"
    staff = "staff"
    pm = "pm"
    admin = "admin"
    super_admin = "super_admin"


class TaskStatus(str, Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    completed = "completed"
    on_hold = "on_hold"
    cancelled = "cancelled"


class NotificationType(str, Enum):
    risk = "risk"
    issue = "issue"
    deadline = "deadline"
    status = "status"
    success = "success"


class ScheduleStatus(str, Enum):
    draft = "draft"
    active = "active"
    completed = "completed"
    archived = "archived"


class MilestoneStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    overdue = "overdue"


class UpdateType(str, Enum):
    progress = "progress"
    milestone = "milestone"
    delay = "delay"
    completion = "completion"
    general = "general"


class FeedbackType(str, Enum):
    complaint = "complaint"
    suggestion = "suggestion"
    praise = "praise"
    question = "question"


class FeedbackStatus(str, Enum):
    new = "new"
    acknowledged = "acknowledged"
    in_review = "in_review"
    resolved = "resolved"
    closed = "closed"


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class PartialUpdate(BaseModel):
    """Update payload: any field may be omitted, only nullable columns accept an explicit null"""
    nullable_fields: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def reject_nulls(self):
        nulls = sorted(
            name for name in self.model_fields_set
            if getattr(self, name) is None and name not in self.nullable_fields
        )
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
        return self


# Jurisdictions

class JurisdictionCreate(BaseModel):
    identifier: str = Field(..., description="Short code used in project codes, e.g. RDC4", pattern=r"^[A-Z0-9]+$", max_length=32)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class JurisdictionResponse(ORMModel):
    id: str
    identifier: str
    name: str
    description: Optional[str] = None
    created_at: datetime


# Projects

class CreateProjectRequest(BaseModel):
    """Request to create a new project"""
    jurisdiction_id: str = Field(..., description="Primary jurisdiction")
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=10000)
    category: ProjectCategory
    priority: WorkPriority = WorkPriority.medium
    scope: ProjectScope = ProjectScope.local
    funding_source: FundingSource = FundingSource.local
    budget_allocated: float = Field(0.0, ge=0)
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
    project_manager_id: Optional[str] = None
    is_public: bool = True
    public_description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def ensure_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name cannot be empty")
        return value.strip()


class UpdateProjectRequest(PartialUpdate):
    nullable_fields = frozenset({
        "planned_start_date",
        "planned_end_date",
        "actual_start_date",
        "actual_end_date",
        "project_manager_id",
        "assigned_to",
        "public_description",
    })

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[ProjectCategory] = None
    priority: Optional[WorkPriority] = None
    budget_allocated: Optional[float] = Field(None, ge=0)
    budget_spent: Optional[float] = Field(None, ge=0)
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
    actual_start_date: Optional[date] = None
    actual_end_date: Optional[date] = None
    status: Optional[ProjectStatus] = None
    progress_percentage: Optional[int] = Field(None, ge=0, le=100)
    project_manager_id: Optional[str] = None
    assigned_to: Optional[str] = None
    is_public: Optional[bool] = None
    public_description: Optional[str] = None


class ProjectResponse(ORMModel):
    id: str
    code: Optional[str] = None
    jurisdiction_id: str
    name: str
    description: str
    category: ProjectCategory
    priority: WorkPriority
    scope: ProjectScope
    funding_source: FundingSource
    budget_allocated: float
    budget_spent: float
    currency: str
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
    actual_start_date: Optional[date] = None
    actual_end_date: Optional[date] = None
    status: ProjectStatus
    progress_percentage: int
    project_manager_id: Optional[str] = None
    assigned_to: Optional[str] = None
    assigned_at: Optional[datetime] = None
    created_by: str
    is_public: bool
    public_description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProjectListResponse(BaseModel):
    projects: List[ProjectResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class ProjectSummary(BaseModel):
    total_projects: int
    active_projects: int
    completed_projects: int
    total_budget: float
    total_spent: float
    average_progress: float
    overdue_projects: int
    projects_by_category: Dict[str, int]
    projects_by_status: Dict[str, int]


# Risks

class CreateRiskRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: RaidCategory
    probability: Level = Level.medium
    impact: Level = Level.medium
    mitigation_strategy: Optional[str] = None
    contingency_plan: Optional[str] = None
    owner_id: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None


class UpdateRiskRequest(PartialUpdate):
    nullable_fields = frozenset({
        "description",
        "mitigation_strategy",
        "contingency_plan",
        "owner_id",
        "assigned_to",
        "due_date",
    })

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[RaidCategory] = None
    probability: Optional[Level] = None
    impact: Optional[Level] = None
    status: Optional[RiskStatus] = None
    mitigation_strategy: Optional[str] = None
    contingency_plan: Optional[str] = None
    owner_id: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None


class RiskResponse(ORMModel):
    id: str
    project_id: str
    title: str
    description: Optional[str] = None
    category: RaidCategory
    probability: Level
    impact: Level
    risk_score: int
    risk_level: Level = Field(..., description="Bucket of risk_score")
    risk_label: str = Field(..., description="Human readable bucket, e.g. 'High Risk'")
    status: RiskStatus
    mitigation_strategy: Optional[str] = None
    contingency_plan: Optional[str] = None
    owner_id: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None
    escalated_to_issue_id: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class RiskListResponse(BaseModel):
    risks: List[RiskResponse]
    total: int


class EscalateRiskRequest(BaseModel):
    """Optional overrides for the issue created by an escalation"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    severity: Optional[Level] = None
    priority: Optional[WorkPriority] = None
    impact_description: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None


class RiskScoreResponse(BaseModel):
    probability: Level
    impact: Level
    risk_score: int
    risk_level: Level
    risk_label: str


# Issues

class CreateIssueRequest(BaseModel):
    risk_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: RaidCategory
    severity: Level = Level.medium
    priority: WorkPriority = WorkPriority.medium
    impact_description: Optional[str] = None
    root_cause: Optional[str] = None
    resolution_plan: Optional[str] = None
    owner_id: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None


class UpdateIssueRequest(PartialUpdate):
    nullable_fields = frozenset({
        "description",
        "impact_description",
        "root_cause",
        "resolution_plan",
        "actual_resolution",
        "owner_id",
        "assigned_to",
        "due_date",
        "resolved_date",
    })

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[RaidCategory] = None
    severity: Optional[Level] = None
    priority: Optional[WorkPriority] = None
    status: Optional[IssueStatus] = None
    impact_description: Optional[str] = None
    root_cause: Optional[str] = None
    resolution_plan: Optional[str] = None
    actual_resolution: Optional[str] = None
    owner_id: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None
    resolved_date: Optional[date] = None


class IssueResponse(ORMModel):
    id: str
    project_id: str
    risk_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    category: RaidCategory
    severity: Level
    priority: WorkPriority
    status: IssueStatus
    impact_description: Optional[str] = None
    root_cause: Optional[str] = None
    resolution_plan: Optional[str] = None
    actual_resolution: Optional[str] = None
    owner_id: Optional[str] = None
    assigned_to: Optional[str] = None
    reported_by: str
    due_date: Optional[date] = None
    resolved_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime


class IssueListResponse(BaseModel):
    issues: List[IssueResponse]
    total: int


class EscalationResponse(BaseModel):
    risk: RiskResponse
    issue: IssueResponse


# Decisions

class CreateDecisionRequest(BaseModel):
    issue_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    decision_type: DecisionType
    decision_criteria: Optional[str] = None
    options_considered: Optional[str] = None
    chosen_option: Optional[str] = None
    rationale: Optional[str] = None
    decision_maker: Optional[str] = None
    stakeholders: Optional[Any] = None
    approval_required: bool = False
    implementation_deadline: Optional[date] = None


class UpdateDecisionRequest(PartialUpdate):
    nullable_fields = frozenset({
        "description",
        "decision_criteria",
        "options_considered",
        "chosen_option",
        "rationale",
        "decision_maker",
        "stakeholders",
        "implementation_deadline",
    })

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    decision_type: Optional[DecisionType] = None
    decision_status: Optional[DecisionStatus] = None
    decision_criteria: Optional[str] = None
    options_considered: Optional[str] = None
    chosen_option: Optional[str] = None
    rationale: Optional[str] = None
    decision_maker: Optional[str] = None
    stakeholders: Optional[Any] = None
    approval_required: Optional[bool] = None
    implementation_deadline: Optional[date] = None


class DecisionResponse(ORMModel):
    id: str
    project_id: str
    issue_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    decision_type: DecisionType
    decision_status: DecisionStatus
    decision_criteria: Optional[str] = None
    options_considered: Optional[str] = None
    chosen_option: Optional[str] = None
    rationale: Optional[str] = None
    decision_maker: Optional[str] = None
    stakeholders: Optional[Any] = None
    approval_required: bool
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    implementation_deadline: Optional[date] = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class DecisionListResponse(BaseModel):
    decisions: List[DecisionResponse]
    total: int


# Actions

class CreateActionRequest(BaseModel):
    decision_id: Optional[str] = None
    issue_id: Optional[str] = None
    risk_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    action_type: ActionType
    priority: WorkPriority = WorkPriority.medium
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None


class UpdateActionRequest(PartialUpdate):
    nullable_fields = frozenset({
        "description",
        "assigned_to",
        "due_date",
        "completed_date",
        "completion_notes",
    })

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    action_type: Optional[ActionType] = None
    priority: Optional[WorkPriority] = None
    status: Optional[ActionStatus] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None
    completed_date: Optional[date] = None
    completion_notes: Optional[str] = None


class ActionResponse(ORMModel):
    id: str
    project_id: str
    decision_id: Optional[str] = None
    issue_id: Optional[str] = None
    risk_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    action_type: ActionType
    priority: WorkPriority
    status: ActionStatus
    assigned_to: Optional[str] = None
    created_by: str
    due_date: Optional[date] = None
    completed_date: Optional[date] = None
    completion_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ActionListResponse(BaseModel):
    actions: List[ActionResponse]
    total: int


# RAID analytics

class RaidRegisterCounts(BaseModel):
    total: int = 0
    open: int = Field(0, description="Records not in a terminal status")
    by_status: Dict[str, int] = Field(default_factory=dict)


class RaidSummaryResponse(BaseModel):
    project_id: str
    risks: RaidRegisterCounts
    issues: RaidRegisterCounts
    decisions: RaidRegisterCounts
    actions: RaidRegisterCounts
    risk_levels: Dict[str, int] = Field(..., description="Open risks per risk level")
    risk_matrix: List[List[int]] = Field(..., description="Rows impact critical..low, columns probability low..critical")
    overdue_actions: int
    top_risks: List[RiskResponse]


class ProjectRiskProfile(BaseModel):
    project_id: str
    project_name: str
    jurisdiction_id: str
    open_risks: int
    average_score: float
    max_score: int
    high_or_critical: int


class CategoryRiskProfile(BaseModel):
    category: RaidCategory
    open_risks: int
    projects_affected: int
    high_or_critical: int
    average_score: float
    systemic: bool = Field(..., description="High or critical open risks in two or more projects")


class CrossProjectRiskAnalysis(BaseModel):
    generated_at: datetime
    projects_analyzed: int
    total_open_risks: int
    projects: List[ProjectRiskProfile]
    categories: List[CategoryRiskProfile]
    top_risks: List[RiskResponse]


class PrioritizationItemRequest(BaseModel):
    id: str
    title: str
    type: str = Field(..., description="schedule, risk, issue, decision or action")
    impact_score: float = Field(..., ge=0, le=10)
    risk_score: float = Field(..., ge=0, le=10)
    urgency_level: Level
    blocking_count: int = Field(0, ge=0)
    deadline: Optional[date] = None
    project_id: Optional[str] = None
    note: str = ""


class PrioritizationRequest(BaseModel):
    items: List[PrioritizationItemRequest]


class PrioritizedItem(ORMModel):
    id: str
    title: str
    type: str
    priority_score: int
    raw_score: float
    urgency_level: str
    impact_score: float
    risk_score: float
    blocking_count: int
    deadline: Optional[date] = None
    project_id: Optional[str] = None
    status: Optional[str] = None
    reasoning: str
    dependencies: List[str] = Field(default_factory=list)


class PrioritizationResponse(BaseModel):
    items: List[PrioritizedItem]
    total: int


# Schedules

class ChecklistItem(BaseModel):
    id: str
    text: str
    priority: str


class ChecklistTemplateResponse(BaseModel):
    id: str
    task_type: str
    task_keywords: List[str]
    checklist_items: List[ChecklistItem]


class TemplateSubtask(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    estimated_hours: float = 0.0


class TemplateTask(TemplateSubtask):
    subtasks: List[TemplateSubtask] = Field(default_factory=list)


class TemplatePhase(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    estimated_days: int
    tasks: List[TemplateTask] = Field(default_factory=list)


class TemplateDocument(BaseModel):
    name: str
    description: Optional[str] = None
    required: bool = False


class ScheduleTemplateResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category: str
    estimated_duration: Optional[str] = None
    phases: List[TemplatePhase]
    documents: List[TemplateDocument] = Field(default_factory=list)


class CreateScheduleRequest(BaseModel):
    template_id: str
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    start_date: Optional[date] = Field(None, description="Defaults to the project's planned start date, else today")
    phase_ids: Optional[List[str]] = Field(None, description="Subset of template phases to include")


class UpdateScheduleRequest(PartialUpdate):
    nullable_fields = frozenset({"description"})

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[ScheduleStatus] = None
    start_date: Optional[date] = Field(None, description="Moving the start shifts every phase")


class AddPhasesRequest(BaseModel):
    phase_ids: List[str] = Field(..., min_length=1, description="Template phases to append")
    template_id: Optional[str] = Field(None, description="Defaults to the template the schedule was built from")


class ScheduleResponse(ORMModel):
    id: str
    project_id: str
    name: str
    description: Optional[str] = None
    template_id: Optional[str] = None
    template_name: Optional[str] = None
    status: ScheduleStatus
    version: int
    is_current: bool
    start_date: Optional[date] = None
    total_duration_days: int
    total_tasks: int
    completed_tasks: int
    progress_percentage: int
    required_documents: Optional[List[Dict[str, Any]]] = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class PhaseResponse(ORMModel):
    id: str
    schedule_id: str
    phase_order: int
    template_phase_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    estimated_days: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str
    progress_percentage: int


class TaskResponse(ORMModel):
    id: str
    schedule_id: str
    phase_id: str
    parent_task_id: Optional[str] = None
    task_order: int
    level: int
    is_subtask: bool
    name: str
    description: Optional[str] = None
    estimated_hours: float
    actual_hours: Optional[float] = None
    assigned_to: Optional[str] = None
    status: TaskStatus
    progress_percentage: int


class UpdateTaskRequest(PartialUpdate):
    nullable_fields = frozenset({"actual_hours", "assigned_to"})

    status: Optional[TaskStatus] = None
    progress_percentage: Optional[int] = Field(None, ge=0, le=100)
    actual_hours: Optional[float] = Field(None, ge=0)
    assigned_to: Optional[str] = None


class BulkTaskUpdate(UpdateTaskRequest):
    id: str


class BulkTaskUpdateRequest(BaseModel):
    tasks: List[BulkTaskUpdate] = Field(..., min_length=1)


class BulkTaskUpdateResponse(BaseModel):
    task_count: int
    schedule: ScheduleResponse


class CreateSubtaskRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    estimated_hours: float = Field(4.0, ge=0)
    assigned_to: Optional[str] = None


class ScheduleHistoryResponse(ORMModel):
    id: str
    schedule_id: str
    action: str
    entity_type: str
    entity_id: str
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    change_summary: str
    changed_by: str
    changed_at: datetime


class MilestoneResponse(BaseModel):
    """A phase of the current schedule seen as a dated milestone"""
    id: str
    project_id: str
    schedule_id: str
    name: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    status: MilestoneStatus
    progress_percentage: int


# Citizen engagement

class CreateProjectUpdateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    update_type: UpdateType = UpdateType.general
    is_public: bool = True


class ProjectUpdateResponse(ORMModel):
    id: str
    project_id: str
    title: str
    content: str
    update_type: UpdateType
    is_public: bool
    created_by: str
    created_at: datetime


class CreateFeedbackRequest(BaseModel):
    feedback_type: FeedbackType
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=5000)


class RespondFeedbackRequest(PartialUpdate):
    response: Optional[str] = Field(None, min_length=1)
    status: Optional[FeedbackStatus] = None


class FeedbackResponse(ORMModel):
    id: str
    project_id: str
    citizen_id: Optional[str] = None
    feedback_type: FeedbackType
    title: str
    content: str
    status: FeedbackStatus
    response: Optional[str] = None
    responded_by: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


# Session and dashboards

class UserInfo(BaseModel):
    id: str
    role: UserRole
    jurisdiction_id: Optional[str] = None


class CurrentUserResponse(BaseModel):
    user: UserInfo


class ProjectManagerWorkload(BaseModel):
    user_id: str
    projects: int
    active_projects: int


class RdcDashboardResponse(BaseModel):
    jurisdiction: JurisdictionResponse
    summary: ProjectSummary
    budget_utilization: float = Field(..., description="Percentage of allocated budget spent")
    project_completion_rate: float
    total_project_managers: int
    project_managers: List[ProjectManagerWorkload]
    risk_analysis: CrossProjectRiskAnalysis
    recent_updates: List[ProjectUpdateResponse]


# Notifications

class CreateNotificationRequest(BaseModel):
    user_id: Optional[str] = Field(None, description="Recipient, defaults to the caller")
    type: NotificationType
    priority: Level = Level.medium
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    project_id: Optional[str] = None
    project_name: Optional[str] = None


class NotificationResponse(ORMModel):
    id: str
    user_id: str
    type: NotificationType
    priority: Level
    title: str
    message: str
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    total: int
    unread: int


class HealthResponse(BaseModel):
    """API health check response"""
    status: str = Field("healthy", description="API status")
    version: str = Field(..., description="API version")
    database: str = Field(..., description="Database backend in use")
