"""
PURPOSE: FastAPI REST API for council project management - projects, RAID registers, schedules,
         notifications, risk scoring and action prioritization
SRP and DRY check: Pass - Single responsibility of HTTP routing, delegates business rules to services
"""
import logging
import os
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from civic_pm_api import __version__
from civic_pm_api.auth import (
    STAFF_ROLES,
    CurrentUser,
    get_current_user,
    get_optional_user,
    require_pm,
    require_staff,
)
from civic_pm_api.config import SETTINGS
from civic_pm_api.database import DatabaseService, create_tables, engine, get_database
from civic_pm_api.errors import PermissionDeniedError, ServiceError
from civic_pm_api.models import (
    ActionListResponse,
    ActionResponse,
    AddPhasesRequest,
    BulkTaskUpdateRequest,
    BulkTaskUpdateResponse,
    ChecklistTemplateResponse,
    CreateActionRequest,
    CreateDecisionRequest,
    CreateFeedbackRequest,
    CreateIssueRequest,
    CreateNotificationRequest,
    CreateProjectRequest,
    CreateProjectUpdateRequest,
    CreateRiskRequest,
    CreateScheduleRequest,
    CreateSubtaskRequest,
    CrossProjectRiskAnalysis,
    CurrentUserResponse,
    DecisionListResponse,
    DecisionResponse,
    EscalateRiskRequest,
    EscalationResponse,
    FeedbackResponse,
    FundingSource,
    HealthResponse,
    IssueListResponse,
    IssueResponse,
    JurisdictionCreate,
    JurisdictionResponse,
    Level,
    MilestoneResponse,
    NotificationListResponse,
    NotificationResponse,
    PhaseResponse,
    PrioritizationRequest,
    PrioritizationResponse,
    PrioritizedItem,
    ProjectCategory,
    ProjectListResponse,
    ProjectResponse,
    ProjectScope,
    ProjectSortField,
    ProjectStatus,
    ProjectSummary,
    ProjectUpdateResponse,
    RaidSummaryResponse,
    RdcDashboardResponse,
    RespondFeedbackRequest,
    RiskListResponse,
    RiskResponse,
    RiskScoreResponse,
    ScheduleHistoryResponse,
    ScheduleResponse,
    ScheduleTemplateResponse,
    SortOrder,
    TaskResponse,
    UpdateActionRequest,
    UpdateDecisionRequest,
    UpdateIssueRequest,
    UpdateProjectRequest,
    UpdateRiskRequest,
    UpdateScheduleRequest,
    UpdateTaskRequest,
    UserInfo,
    WorkPriority,
)
from civic_pm_api.prioritization import ActionItem, prioritize
from civic_pm_api.risk_scoring import risk_label, risk_level, score_risk
from civic_pm_api.schedule_catalog import ScheduleCatalog
from civic_pm_api.services import (
    DashboardService,
    EngagementService,
    NotificationService,
    ProjectService,
    RaidService,
    ScheduleService,
)
from civic_pm_api.services.project_service import split_ids

logging.basicConfig(
    level=SETTINGS.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Civic PM API",
    description="REST API for regional council project management and RAID tracking",
    version=__version__,
)

# CORS configuration - only enable for local development
if not SETTINGS.cloud_mode:
    logger.info(f"Development mode: CORS enabled for {', '.join(SETTINGS.cors_origins)}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=SETTINGS.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    logger.info("Cloud mode: CORS disabled")

schedule_catalog = ScheduleCatalog.default()
logger.info(f"Loaded {len(schedule_catalog.templates())} schedule templates")

# Database initialization
create_tables()


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Service dependencies, one database session per request

def get_project_service(db: DatabaseService = Depends(get_database)) -> ProjectService:
    return ProjectService(db)


def get_raid_service(db: DatabaseService = Depends(get_database)) -> RaidService:
    return RaidService(db, NotificationService(db))


def get_schedule_service(db: DatabaseService = Depends(get_database)) -> ScheduleService:
    return ScheduleService(db, schedule_catalog)


def get_notification_service(db: DatabaseService = Depends(get_database)) -> NotificationService:
    return NotificationService(db)


def get_engagement_service(db: DatabaseService = Depends(get_database)) -> EngagementService:
    return EngagementService(db, NotificationService(db))


def get_dashboard_service(db: DatabaseService = Depends(get_database)) -> DashboardService:
    return DashboardService(db, ProjectService(db), RaidService(db, NotificationService(db)))


def _risk(risk) -> RiskResponse:
    return RiskResponse.model_validate(risk)


# Health check endpoint
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(version=__version__, database=engine.dialect.name)


@app.get("/api/auth/me", response_model=CurrentUserResponse)
async def current_user(user: CurrentUser = Depends(get_current_user)):
    """The caller as resolved from the forwarded session headers"""
    return CurrentUserResponse(user=UserInfo(id=user.id, role=user.role, jurisdiction_id=user.jurisdiction_id))


# Jurisdictions

@app.get("/api/jurisdictions", response_model=List[JurisdictionResponse])
async def list_jurisdictions(
    user: CurrentUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    try:
        return [JurisdictionResponse.model_validate(j) for j in service.list_jurisdictions()]
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to list jurisdictions")
        raise HTTPException(status_code=500, detail=f"Failed to list jurisdictions: {str(e)}")


@app.post("/api/jurisdictions", response_model=JurisdictionResponse, status_code=201)
async def create_jurisdiction(
    request: JurisdictionCreate,
    user: CurrentUser = Depends(require_pm),
    service: ProjectService = Depends(get_project_service),
):
    try:
        return JurisdictionResponse.model_validate(service.create_jurisdiction(request.model_dump()))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to create jurisdiction")
        raise HTTPException(status_code=500, detail=f"Failed to create jurisdiction: {str(e)}")


# Regional council dashboard

@app.get("/api/rdc/dashboard", response_model=RdcDashboardResponse)
async def rdc_dashboard(
    jurisdiction_id: Optional[str] = Query(None, description="Defaults to the caller's jurisdiction"),
    user: CurrentUser = Depends(require_staff),
    service: DashboardService = Depends(get_dashboard_service),
):
    try:
        dashboard = service.rdc_dashboard(jurisdiction_id or user.jurisdiction_id)
        analysis = dashboard["risk_analysis"]
        analysis["top_risks"] = [_risk(r) for r in analysis["top_risks"]]
        return RdcDashboardResponse(
            jurisdiction=JurisdictionResponse.model_validate(dashboard["jurisdiction"]),
            summary=ProjectSummary(**dashboard["summary"]),
            budget_utilization=dashboard["budget_utilization"],
            project_completion_rate=dashboard["project_completion_rate"],
            total_project_managers=dashboard["total_project_managers"],
            project_managers=dashboard["project_managers"],
            risk_analysis=CrossProjectRiskAnalysis(**analysis),
            recent_updates=[ProjectUpdateResponse.model_validate(u) for u in dashboard["recent_updates"]],
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to build RDC dashboard")
        raise HTTPException(status_code=500, detail=f"Failed to build dashboard: {str(e)}")


# Projects

@app.get("/api/projects", response_model=ProjectListResponse)
async def list_projects(
    jurisdiction_ids: Optional[str] = Query(None, description="Comma separated jurisdiction ids"),
    status: Optional[ProjectStatus] = None,
    category: Optional[ProjectCategory] = None,
    priority: Optional[WorkPriority] = None,
    scope: Optional[ProjectScope] = None,
    funding_source: Optional[FundingSource] = None,
    project_manager_id: Optional[str] = None,
    assigned_to: Optional[str] = None,
    is_public: Optional[bool] = None,
    search: Optional[str] = None,
    sort_by: ProjectSortField = ProjectSortField.created_at,
    sort_order: SortOrder = SortOrder.desc,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    user: CurrentUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    """List projects with filters, sorting and pagination"""
    try:
        result = service.list_projects(
            jurisdiction_ids=split_ids(jurisdiction_ids),
            status=status,
            category=category,
            priority=priority,
            scope=scope,
            funding_source=funding_source,
            project_manager_id=project_manager_id,
            assigned_to=assigned_to,
            is_public=is_public,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
        result["projects"] = [ProjectResponse.model_validate(p) for p in result["projects"]]
        return ProjectListResponse(**result)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to list projects")
        raise HTTPException(status_code=500, detail=f"Failed to list projects: {str(e)}")


@app.get("/api/projects/public", response_model=List[ProjectResponse])
async def list_public_projects(
    jurisdiction_ids: Optional[str] = Query(None, description="Comma separated jurisdiction ids"),
    service: ProjectService = Depends(get_project_service),
):
    """Projects visible to citizens, no authentication required"""
    try:
        projects = service.list_public_projects(split_ids(jurisdiction_ids))
        return [ProjectResponse.model_validate(p) for p in projects]
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to list public projects")
        raise HTTPException(status_code=500, detail=f"Failed to list public projects: {str(e)}")


@app.get("/api/projects/reports/summary", response_model=ProjectSummary)
async def project_summary(
    jurisdiction_ids: Optional[str] = Query(None, description="Comma separated jurisdiction ids"),
    user: CurrentUser = Depends(require_staff),
    service: ProjectService = Depends(get_project_service),
):
    try:
        return ProjectSummary(**service.summary(split_ids(jurisdiction_ids)))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to build project summary")
        raise HTTPException(status_code=500, detail=f"Failed to build project summary: {str(e)}")


@app.post("/api/projects", response_model=ProjectResponse, status_code=201)
async def create_project(
    request: CreateProjectRequest,
    user: CurrentUser = Depends(require_pm),
    service: ProjectService = Depends(get_project_service),
):
    try:
        return ProjectResponse.model_validate(service.create_project(request.model_dump(), user))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to create project")
        raise HTTPException(status_code=500, detail=f"Failed to create project: {str(e)}")


@app.get("/api/projects/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    try:
        return ProjectResponse.model_validate(service.get_project(project_id))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to get project {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to get project: {str(e)}")


@app.put("/api/projects/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    request: UpdateProjectRequest,
    user: CurrentUser = Depends(require_staff),
    service: ProjectService = Depends(get_project_service),
):
    try:
        project = service.update_project(project_id, request.model_dump(exclude_unset=True))
        return ProjectResponse.model_validate(project)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to update project {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to update project: {str(e)}")


@app.delete("/api/projects/{project_id}")
async def delete_project(
    project_id: str,
    user: CurrentUser = Depends(require_pm),
    service: ProjectService = Depends(get_project_service),
):
    try:
        service.delete_project(project_id)
        return {"message": f"Project {project_id} deleted successfully"}
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to delete project {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to delete project: {str(e)}")


# Risks

@app.get("/api/projects/{project_id}/risks", response_model=RiskListResponse)
async def list_risks(
    project_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RaidService = Depends(get_raid_service),
):
    try:
        risks = service.list_risks(project_id)
        return RiskListResponse(risks=[_risk(r) for r in risks], total=len(risks))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to list risks for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to list risks: {str(e)}")


@app.post("/api/projects/{project_id}/risks", response_model=RiskResponse, status_code=201)
async def create_risk(
    project_id: str,
    request: CreateRiskRequest,
    user: CurrentUser = Depends(require_staff),
    service: RaidService = Depends(get_raid_service),
):
    try:
        return _risk(service.create_risk(project_id, request.model_dump(), user))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to create risk for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to create risk: {str(e)}")


@app.put("/api/risks/{risk_id}", response_model=RiskResponse)
async def update_risk(
    risk_id: str,
    request: UpdateRiskRequest,
    user: CurrentUser = Depends(require_staff),
    service: RaidService = Depends(get_raid_service),
):
    try:
        return _risk(service.update_risk(risk_id, request.model_dump(exclude_unset=True)))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to update risk {risk_id}")
        raise HTTPException(status_code=500, detail=f"Failed to update risk: {str(e)}")


@app.post("/api/risks/{risk_id}/escalate", response_model=EscalationResponse, status_code=201)
async def escalate_risk(
    risk_id: str,
    request: Optional[EscalateRiskRequest] = None,
    user: CurrentUser = Depends(require_staff),
    service: RaidService = Depends(get_raid_service),
):
    """Turn a materialised risk into an issue"""
    try:
        overrides = request.model_dump(exclude_unset=True) if request else {}
        risk, issue = service.escalate_risk(risk_id, overrides, user)
        return EscalationResponse(risk=_risk(risk), issue=IssueResponse.model_validate(issue))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to escalate risk {risk_id}")
        raise HTTPException(status_code=500, detail=f"Failed to escalate risk: {str(e)}")


# Issues

@app.get("/api/projects/{project_id}/issues", response_model=IssueListResponse)
async def list_issues(
    project_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RaidService = Depends(get_raid_service),
):
    try:
        issues = service.list_issues(project_id)
        return IssueListResponse(issues=[IssueResponse.model_validate(i) for i in issues], total=len(issues))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to list issues for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to list issues: {str(e)}")


@app.post("/api/projects/{project_id}/issues", response_model=IssueResponse, status_code=201)
async def create_issue(
    project_id: str,
    request: CreateIssueRequest,
    user: CurrentUser = Depends(require_staff),
    service: RaidService = Depends(get_raid_service),
):
    try:
        return IssueResponse.model_validate(service.create_issue(project_id, request.model_dump(), user))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to create issue for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to create issue: {str(e)}")


@app.put("/api/issues/{issue_id}", response_model=IssueResponse)
async def update_issue(
    issue_id: str,
    request: UpdateIssueRequest,
    user: CurrentUser = Depends(require_staff),
    service: RaidService = Depends(get_raid_service),
):
    try:
        return IssueResponse.model_validate(service.update_issue(issue_id, request.model_dump(exclude_unset=True)))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to update issue {issue_id}")
        raise HTTPException(status_code=500, detail=f"Failed to update issue: {str(e)}")


# Decisions

@app.get("/api/projects/{project_id}/decisions", response_model=DecisionListResponse)
async def list_decisions(
    project_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RaidService = Depends(get_raid_service),
):
    try:
        decisions = service.list_decisions(project_id)
        return DecisionListResponse(
            decisions=[DecisionResponse.model_validate(d) for d in decisions],
            total=len(decisions),
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to list decisions for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to list decisions: {str(e)}")


@app.post("/api/projects/{project_id}/decisions", response_model=DecisionResponse, status_code=201)
async def create_decision(
    project_id: str,
    request: CreateDecisionRequest,
    user: CurrentUser = Depends(require_staff),
    service: RaidService = Depends(get_raid_service),
):
    try:
        return DecisionResponse.model_validate(service.create_decision(project_id, request.model_dump(), user))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to create decision for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to create decision: {str(e)}")


@app.put("/api/decisions/{decision_id}", response_model=DecisionResponse)
async def update_decision(
    decision_id: str,
    request: UpdateDecisionRequest,
    user: CurrentUser = Depends(require_staff),
    service: RaidService = Depends(get_raid_service),
):
    try:
        decision = service.update_decision(decision_id, request.model_dump(exclude_unset=True), user)
        return DecisionResponse.model_validate(decision)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to update decision {decision_id}")
        raise HTTPException(status_code=500, detail=f"Failed to update decision: {str(e)}")


# Actions

@app.get("/api/projects/{project_id}/actions", response_model=ActionListResponse)
async def list_actions(
    project_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RaidService = Depends(get_raid_service),
):
    try:
        actions = service.list_actions(project_id)
        return ActionListResponse(actions=[ActionResponse.model_validate(a) for a in actions], total=len(actions))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to list actions for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to list actions: {str(e)}")


@app.post("/api/projects/{project_id}/actions", response_model=ActionResponse, status_code=201)
async def create_action(
    project_id: str,
    request: CreateActionRequest,
    user: CurrentUser = Depends(require_staff),
    service: RaidService = Depends(get_raid_service),
):
    try:
        return ActionResponse.model_validate(service.create_action(project_id, request.model_dump(), user))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to create action for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to create action: {str(e)}")


@app.put("/api/actions/{action_id}", response_model=ActionResponse)
async def update_action(
    action_id: str,
    request: UpdateActionRequest,
    user: CurrentUser = Depends(require_staff),
    service: RaidService = Depends(get_raid_service),
):
    try:
        return ActionResponse.model_validate(service.update_action(action_id, request.model_dump(exclude_unset=True)))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to update action {action_id}")
        raise HTTPException(status_code=500, detail=f"Failed to update action: {str(e)}")


# RAID analytics

@app.get("/api/projects/{project_id}/raid/summary", response_model=RaidSummaryResponse)
async def raid_summary(
    project_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RaidService = Depends(get_raid_service),
):
    try:
        summary = service.summary(project_id)
        summary["top_risks"] = [_risk(r) for r in summary["top_risks"]]
        return RaidSummaryResponse(**summary)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to summarise RAID for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to build RAID summary: {str(e)}")


@app.get("/api/projects/{project_id}/prioritized-actions", response_model=PrioritizationResponse)
async def prioritized_actions(
    project_id: str,
    user: CurrentUser = Depends(require_staff),
    service: RaidService = Depends(get_raid_service),
):
    """Open RAID work of a project ranked by priority"""
    try:
        items = service.prioritized_work(project_id)
        return PrioritizationResponse(items=[PrioritizedItem.model_validate(i) for i in items], total=len(items))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to prioritize work for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to prioritize actions: {str(e)}")


@app.post("/api/prioritization", response_model=PrioritizationResponse)
async def prioritize_items(
    request: PrioritizationRequest,
    user: CurrentUser = Depends(get_current_user),
):
    """Rank caller supplied items"""
    try:
        items = [
            ActionItem(**{**item.model_dump(), "urgency_level": item.urgency_level.value})
            for item in request.items
        ]
        ranked = prioritize(items)
        return PrioritizationResponse(items=[PrioritizedItem.model_validate(i) for i in ranked], total=len(ranked))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to prioritize items")
        raise HTTPException(status_code=500, detail=f"Failed to prioritize items: {str(e)}")


@app.get("/api/risk-analysis/cross-project", response_model=CrossProjectRiskAnalysis)
async def cross_project_risk_analysis(
    jurisdiction_ids: Optional[str] = Query(None, description="Comma separated jurisdiction ids"),
    user: CurrentUser = Depends(require_staff),
    service: RaidService = Depends(get_raid_service),
):
    try:
        analysis = service.cross_project_analysis(split_ids(jurisdiction_ids) or None)
        analysis["top_risks"] = [_risk(r) for r in analysis["top_risks"]]
        return CrossProjectRiskAnalysis(**analysis)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to analyse cross-project risk")
        raise HTTPException(status_code=500, detail=f"Failed to analyse cross-project risk: {str(e)}")


@app.get("/api/risk-score", response_model=RiskScoreResponse)
async def risk_score(probability: Level, impact: Level):
    """Score a probability/impact pair without storing anything"""
    score = score_risk(probability.value, impact.value)
    return RiskScoreResponse(
        probability=probability,
        impact=impact,
        risk_score=score,
        risk_level=risk_level(score).value,
        risk_label=risk_label(score),
    )


# Schedule and checklist templates

@app.get("/api/schedule-templates", response_model=List[ScheduleTemplateResponse])
async def list_schedule_templates(user: CurrentUser = Depends(require_staff)):
    try:
        return [
            ScheduleTemplateResponse(
                id=t.id,
                name=t.name,
                description=t.description,
                category=t.category,
                estimated_duration=t.estimated_duration,
                phases=t.phases,
                documents=t.documents,
            )
            for t in schedule_catalog.templates()
        ]
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to list schedule templates")
        raise HTTPException(status_code=500, detail=f"Failed to list schedule templates: {str(e)}")


@app.get("/api/pm-checklist-templates", response_model=List[ChecklistTemplateResponse])
async def list_checklist_templates(user: CurrentUser = Depends(require_staff)):
    return [ChecklistTemplateResponse(**vars(c)) for c in schedule_catalog.checklists()]


@app.get("/api/pm-checklist-templates/{task_type}", response_model=ChecklistTemplateResponse)
async def get_checklist_template(task_type: str, user: CurrentUser = Depends(require_staff)):
    """Checklist for a task type or a task name containing one of its keywords"""
    return ChecklistTemplateResponse(**vars(schedule_catalog.checklist_for(task_type)))


# Project schedules

@app.get("/api/projects/{project_id}/schedules", response_model=List[ScheduleResponse])
async def list_schedules(
    project_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    try:
        return [ScheduleResponse.model_validate(s) for s in service.list_schedules(project_id)]
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to list schedules for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to list schedules: {str(e)}")


@app.post("/api/projects/{project_id}/schedules", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
    project_id: str,
    request: CreateScheduleRequest,
    user: CurrentUser = Depends(require_staff),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Apply a template to the project as a new current schedule version"""
    try:
        schedule = service.create_schedule(
            project_id,
            request.template_id,
            user,
            name=request.name,
            description=request.description,
            start_date=request.start_date,
            phase_ids=request.phase_ids,
        )
        return ScheduleResponse.model_validate(schedule)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to create schedule for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to create schedule: {str(e)}")


@app.get("/api/projects/{project_id}/schedules/current", response_model=ScheduleResponse)
async def get_current_schedule(
    project_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    try:
        return ScheduleResponse.model_validate(service.current_schedule(project_id))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to get current schedule for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to get schedule: {str(e)}")


@app.delete("/api/projects/{project_id}/schedules/current")
async def delete_current_schedule(
    project_id: str,
    user: CurrentUser = Depends(require_pm),
    service: ScheduleService = Depends(get_schedule_service),
):
    try:
        service.delete_current_schedule(project_id)
        return {"message": "Schedule deleted successfully"}
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to delete schedule for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to delete schedule: {str(e)}")


@app.put("/api/projects/{project_id}/schedules/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
    project_id: str,
    schedule_id: str,
    request: UpdateScheduleRequest,
    user: CurrentUser = Depends(require_staff),
    service: ScheduleService = Depends(get_schedule_service),
):
    try:
        schedule = service.update_schedule(project_id, schedule_id, request.model_dump(exclude_unset=True), user)
        return ScheduleResponse.model_validate(schedule)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to update schedule {schedule_id}")
        raise HTTPException(status_code=500, detail=f"Failed to update schedule: {str(e)}")


@app.post("/api/projects/{project_id}/schedules/{schedule_id}/phases", response_model=ScheduleResponse)
async def add_schedule_phases(
    project_id: str,
    schedule_id: str,
    request: AddPhasesRequest,
    user: CurrentUser = Depends(require_staff),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Append more template phases to an existing schedule"""
    try:
        schedule = service.add_phases(
            project_id, schedule_id, request.phase_ids, user, template_id=request.template_id
        )
        return ScheduleResponse.model_validate(schedule)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to add phases to schedule {schedule_id}")
        raise HTTPException(status_code=500, detail=f"Failed to add phases: {str(e)}")


@app.get("/api/schedules/{schedule_id}/phases", response_model=List[PhaseResponse])
async def list_schedule_phases(
    schedule_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    try:
        return [PhaseResponse.model_validate(p) for p in service.list_phases(schedule_id)]
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to list phases for {schedule_id}")
        raise HTTPException(status_code=500, detail=f"Failed to list phases: {str(e)}")


@app.get("/api/schedules/{schedule_id}/tasks", response_model=List[TaskResponse])
async def list_schedule_tasks(
    schedule_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    try:
        return [TaskResponse.model_validate(t) for t in service.list_tasks(schedule_id)]
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to list tasks for {schedule_id}")
        raise HTTPException(status_code=500, detail=f"Failed to list tasks: {str(e)}")


@app.put("/api/schedules/{schedule_id}/tasks/{task_id}", response_model=TaskResponse)
async def update_schedule_task(
    schedule_id: str,
    task_id: str,
    request: UpdateTaskRequest,
    user: CurrentUser = Depends(require_staff),
    service: ScheduleService = Depends(get_schedule_service),
):
    try:
        task = service.update_task(schedule_id, task_id, request.model_dump(exclude_unset=True), user)
        return TaskResponse.model_validate(task)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to update task {task_id}")
        raise HTTPException(status_code=500, detail=f"Failed to update task: {str(e)}")


@app.post("/api/schedules/{schedule_id}/tasks/bulk", response_model=BulkTaskUpdateResponse)
async def bulk_update_schedule_tasks(
    schedule_id: str,
    request: BulkTaskUpdateRequest,
    user: CurrentUser = Depends(require_staff),
    service: ScheduleService = Depends(get_schedule_service),
):
    try:
        updates = [task.model_dump(exclude_unset=True) for task in request.tasks]
        schedule = service.bulk_update_tasks(schedule_id, updates, user)
        return BulkTaskUpdateResponse(
            task_count=len(updates), schedule=ScheduleResponse.model_validate(schedule)
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to bulk update tasks in {schedule_id}")
        raise HTTPException(status_code=500, detail=f"Failed to update tasks: {str(e)}")


@app.post(
    "/api/schedules/{schedule_id}/tasks/{parent_task_id}/subtasks",
    response_model=TaskResponse,
    status_code=201,
)
async def create_subtask(
    schedule_id: str,
    parent_task_id: str,
    request: CreateSubtaskRequest,
    user: CurrentUser = Depends(require_staff),
    service: ScheduleService = Depends(get_schedule_service),
):
    try:
        task = service.add_subtask(schedule_id, parent_task_id, request.model_dump(), user)
        return TaskResponse.model_validate(task)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to add subtask under {parent_task_id}")
        raise HTTPException(status_code=500, detail=f"Failed to add subtask: {str(e)}")


@app.get("/api/schedules/{schedule_id}/history", response_model=List[ScheduleHistoryResponse])
async def schedule_history(
    schedule_id: str,
    user: CurrentUser = Depends(require_staff),
    service: ScheduleService = Depends(get_schedule_service),
):
    try:
        return [ScheduleHistoryResponse.model_validate(h) for h in service.history(schedule_id)]
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to get history for {schedule_id}")
        raise HTTPException(status_code=500, detail=f"Failed to get schedule history: {str(e)}")


# Milestones, public updates and citizen feedback

@app.get("/api/projects/{project_id}/milestones", response_model=List[MilestoneResponse])
async def list_milestones(
    project_id: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    engagement: EngagementService = Depends(get_engagement_service),
    service: ScheduleService = Depends(get_schedule_service),
):
    try:
        engagement.visible_project(project_id, user)
        return [MilestoneResponse(**m) for m in service.milestones(project_id)]
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to list milestones for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to list milestones: {str(e)}")


@app.get("/api/projects/{project_id}/updates", response_model=List[ProjectUpdateResponse])
async def list_project_updates(
    project_id: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service: EngagementService = Depends(get_engagement_service),
):
    try:
        return [ProjectUpdateResponse.model_validate(u) for u in service.list_updates(project_id, user)]
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to list updates for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to list updates: {str(e)}")


@app.post("/api/projects/{project_id}/updates", response_model=ProjectUpdateResponse, status_code=201)
async def publish_project_update(
    project_id: str,
    request: CreateProjectUpdateRequest,
    user: CurrentUser = Depends(require_staff),
    service: EngagementService = Depends(get_engagement_service),
):
    try:
        update = service.publish_update(project_id, request.model_dump(), user)
        return ProjectUpdateResponse.model_validate(update)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to publish update on {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to publish update: {str(e)}")


@app.post("/api/projects/{project_id}/feedback", response_model=FeedbackResponse, status_code=201)
async def submit_feedback(
    project_id: str,
    request: CreateFeedbackRequest,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service: EngagementService = Depends(get_engagement_service),
):
    """Citizens may send feedback on public projects without signing in"""
    try:
        feedback = service.submit_feedback(project_id, request.model_dump(), user)
        return FeedbackResponse.model_validate(feedback)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to submit feedback on {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to submit feedback: {str(e)}")


@app.get("/api/projects/{project_id}/feedback", response_model=List[FeedbackResponse])
async def list_feedback(
    project_id: str,
    user: CurrentUser = Depends(require_staff),
    service: EngagementService = Depends(get_engagement_service),
):
    try:
        return [FeedbackResponse.model_validate(f) for f in service.list_feedback(project_id)]
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to list feedback for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to list feedback: {str(e)}")


@app.put("/api/feedback/{feedback_id}", response_model=FeedbackResponse)
async def respond_to_feedback(
    feedback_id: str,
    request: RespondFeedbackRequest,
    user: CurrentUser = Depends(require_staff),
    service: EngagementService = Depends(get_engagement_service),
):
    try:
        feedback = service.respond_to_feedback(feedback_id, request.model_dump(exclude_unset=True), user)
        return FeedbackResponse.model_validate(feedback)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to respond to feedback {feedback_id}")
        raise HTTPException(status_code=500, detail=f"Failed to respond to feedback: {str(e)}")


# Notifications

@app.get("/api/notifications", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=500),
    user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    try:
        notifications = service.list_for_user(user.id, unread_only=unread_only, limit=limit)
        return NotificationListResponse(
            notifications=[NotificationResponse.model_validate(n) for n in notifications],
            total=len(notifications),
            unread=service.unread_count(user.id),
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to list notifications")
        raise HTTPException(status_code=500, detail=f"Failed to list notifications: {str(e)}")


@app.post("/api/notifications", response_model=NotificationResponse, status_code=201)
async def create_notification(
    request: CreateNotificationRequest,
    user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    try:
        recipient = request.user_id or user.id
        if recipient != user.id and user.role not in STAFF_ROLES:
            raise PermissionDeniedError("Only staff can notify other users")
        notification = service.notify(
            recipient,
            type=request.type.value,
            priority=request.priority.value,
            title=request.title,
            message=request.message,
            project_id=request.project_id,
            project_name=request.project_name,
        )
        return NotificationResponse.model_validate(notification)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to create notification")
        raise HTTPException(status_code=500, detail=f"Failed to create notification: {str(e)}")


@app.put("/api/notifications/read-all")
async def mark_all_notifications_read(
    user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    try:
        return {"updated": service.mark_all_read(user.id)}
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception("Failed to mark notifications read")
        raise HTTPException(status_code=500, detail=f"Failed to mark notifications read: {str(e)}")


@app.put("/api/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    try:
        return NotificationResponse.model_validate(service.mark_read(notification_id, user.id))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to mark notification {notification_id} read")
        raise HTTPException(status_code=500, detail=f"Failed to mark notification read: {str(e)}")


@app.delete("/api/notifications/{notification_id}")
async def delete_notification(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    try:
        service.delete(notification_id, user.id)
        return {"message": "Notification deleted"}
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Failed to delete notification {notification_id}")
        raise HTTPException(status_code=500, detail=f"Failed to delete notification: {str(e)}")


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", "8080"))
    uvicorn.run(app, host="0.0.0.0", port=port)
