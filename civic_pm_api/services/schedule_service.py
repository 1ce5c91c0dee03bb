"""
PURPOSE: Apply schedule templates to projects and track task progress - versioned schedules,
         sequential phase dates, task/subtask hierarchy, roll-up of completion and a change history
SRP and DRY check: Pass - scheduling rules only, template data comes from ScheduleCatalog
"""
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from civic_pm_api.auth import CurrentUser
from civic_pm_api.clock import today
from civic_pm_api.database import (
    DatabaseService,
    ProjectSchedule,
    ScheduleHistory,
    SchedulePhase,
    ScheduleTask,
    new_id,
)
from civic_pm_api.errors import (
    InvalidReferenceError,
    InvalidRequestError,
    InvalidTransitionError,
    RecordNotFoundError,
)
from civic_pm_api.payloads import plain_values
from civic_pm_api.schedule_catalog import ScheduleCatalog, ScheduleTemplate

logger = logging.getLogger(__name__)

DEFAULT_SUBTASK_HOURS = 4.0


def _percent(done: int, total: int) -> int:
    return round(done * 100 / total) if total else 0


def _rollup_status(statuses: List[str]) -> str:
    active = [status for status in statuses if status != "cancelled"]
    if active and all(status == "completed" for status in active):
        return "completed"
    if any(status in ("in_progress", "completed") for status in active):
        return "in_progress"
    return "not_started"


def _jsonable(values: dict) -> dict:
    return {
        key: value.isoformat() if isinstance(value, (date, datetime)) else value
        for key, value in values.items()
    }


def _milestone_status(phase: SchedulePhase, current_day: date) -> str:
    if phase.status == "completed":
        return "completed"
    if phase.end_date and phase.end_date < current_day:
        return "overdue"
    if phase.status == "in_progress":
        return "in_progress"
    return "pending"


class ScheduleService:
    def __init__(self, db: DatabaseService, catalog: ScheduleCatalog):
        self.db = db
        self.catalog = catalog

    def _project(self, project_id: str):
        project = self.db.get_project(project_id)
        if not project:
            raise RecordNotFoundError("Project not found")
        return project

    def _template(self, template_id: str) -> ScheduleTemplate:
        template = self.catalog.find_template(template_id)
        if template is None:
            raise InvalidReferenceError(f"Unknown schedule template {template_id}")
        return template

    def _record(
        self,
        schedule_id: str,
        user: CurrentUser,
        action: str,
        entity_type: str,
        entity_id: str,
        summary: str,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
    ) -> ScheduleHistory:
        return self.db.add_history(
            {
                "schedule_id": schedule_id,
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "old_values": _jsonable(old_values) if old_values is not None else None,
                "new_values": _jsonable(new_values) if new_values is not None else None,
                "change_summary": summary,
                "changed_by": user.id,
            }
        )

    def get_schedule(self, schedule_id: str) -> ProjectSchedule:
        schedule = self.db.get_schedule(schedule_id)
        if not schedule:
            raise RecordNotFoundError("Schedule not found")
        return schedule

    def _project_schedule(self, project_id: str, schedule_id: str) -> ProjectSchedule:
        self._project(project_id)
        schedule = self.get_schedule(schedule_id)
        if schedule.project_id != project_id:
            raise RecordNotFoundError("Schedule not found")
        return schedule

    def list_schedules(self, project_id: str) -> List[ProjectSchedule]:
        self._project(project_id)
        return self.db.list_schedules(project_id)

    def current_schedule(self, project_id: str) -> ProjectSchedule:
        self._project(project_id)
        schedule = self.db.get_current_schedule(project_id)
        if not schedule:
            raise RecordNotFoundError("Project has no schedule")
        return schedule

    @staticmethod
    def _select_phases(template: ScheduleTemplate, phase_ids: Optional[List[str]]) -> List[dict]:
        if not phase_ids:
            return list(template.phases)
        unknown = [phase_id for phase_id in phase_ids if template.phase(phase_id) is None]
        if unknown:
            raise InvalidRequestError(f"Template {template.id} has no phases {', '.join(unknown)}")
        wanted = set(phase_ids)
        return [phase for phase in template.phases if phase["id"] in wanted]

    @staticmethod
    def _build_rows(
        schedule_id: str,
        phases: List[dict],
        start: date,
        first_order: int = 1,
    ) -> Tuple[List[SchedulePhase], List[ScheduleTask]]:
        """Lay template phases out back to back from start, with their tasks and subtasks."""
        phase_rows: List[SchedulePhase] = []
        task_rows: List[ScheduleTask] = []
        cursor = start
        for phase_order, phase in enumerate(phases, start=first_order):
            days = int(phase.get("estimated_days", 0))
            phase_row = SchedulePhase(
                id=new_id("phase"),
                schedule_id=schedule_id,
                phase_order=phase_order,
                template_phase_id=phase["id"],
                name=phase["name"],
                description=phase.get("description"),
                estimated_days=days,
                start_date=cursor,
                end_date=cursor + timedelta(days=days),
                status="not_started",
                progress_percentage=0,
            )
            cursor = phase_row.end_date
            phase_rows.append(phase_row)

            task_order = 0
            for task in phase.get("tasks", []):
                task_order += 1
                parent = ScheduleTask(
                    id=new_id("task"),
                    schedule_id=schedule_id,
                    phase_id=phase_row.id,
                    task_order=task_order,
                    level=0,
                    is_subtask=False,
                    name=task["name"],
                    description=task.get("description"),
                    estimated_hours=float(task.get("estimated_hours", 0)),
                    status="not_started",
                    progress_percentage=0,
                )
                task_rows.append(parent)
                for subtask in task.get("subtasks", []):
                    task_order += 1
                    task_rows.append(
                        ScheduleTask(
                            id=new_id("task"),
                            schedule_id=schedule_id,
                            phase_id=phase_row.id,
                            parent_task_id=parent.id,
                            task_order=task_order,
                            level=1,
                            is_subtask=True,
                            name=subtask["name"],
                            description=subtask.get("description"),
                            estimated_hours=float(subtask.get("estimated_hours", 0)),
                            status="not_started",
                            progress_percentage=0,
                        )
                    )
        return phase_rows, task_rows

    def create_schedule(
        self,
        project_id: str,
        template_id: str,
        user: CurrentUser,
        name: Optional[str] = None,
        description: Optional[str] = None,
        start_date: Optional[date] = None,
        phase_ids: Optional[List[str]] = None,
    ) -> ProjectSchedule:
        """Build a new current schedule version for the project from a template."""
        project = self._project(project_id)
        template = self._template(template_id)
        phases = self._select_phases(template, phase_ids)

        start = start_date or project.planned_start_date or today()
        schedule = ProjectSchedule(
            id=new_id("schedule"),
            project_id=project_id,
            name=name or f"{project.name} - {template.name}",
            description=description or template.description,
            template_id=template.id,
            template_name=template.name,
            status="draft",
            version=self.db.latest_schedule_version(project_id) + 1,
            is_current=True,
            start_date=start,
            created_by=user.id,
            required_documents=list(template.documents),
        )
        phase_rows, task_rows = self._build_rows(schedule.id, phases, start)

        parent_ids = {task.parent_task_id for task in task_rows if task.parent_task_id}
        schedule.total_duration_days = sum(phase.estimated_days for phase in phase_rows)
        schedule.total_tasks = sum(1 for task in task_rows if task.id not in parent_ids)
        schedule.completed_tasks = 0
        schedule.progress_percentage = 0

        self._record(
            schedule.id,
            user,
            "created",
            "schedule",
            schedule.id,
            f"Schedule created from {template.name} template",
            new_values={"name": schedule.name, "status": schedule.status, "version": schedule.version},
        )
        schedule = self.db.add_schedule(schedule, phase_rows, task_rows)
        logger.info(
            f"Schedule v{schedule.version} for project {project_id} created from {template.id}: "
            f"{len(phase_rows)} phases, {len(task_rows)} tasks"
        )
        return schedule

    def update_schedule(self, project_id: str, schedule_id: str, data: dict, user: CurrentUser) -> ProjectSchedule:
        """Change schedule metadata. A new start date shifts every phase with it."""
        schedule = self._project_schedule(project_id, schedule_id)
        data = plain_values(data)
        changed = {key: value for key, value in data.items() if getattr(schedule, key) != value}
        if not changed:
            return schedule
        old_values = {key: getattr(schedule, key) for key in changed}
        for key, value in changed.items():
            setattr(schedule, key, value)
        if "start_date" in changed:
            cursor = schedule.start_date
            for phase in self.db.list_phases(schedule.id):
                phase.start_date = cursor
                phase.end_date = cursor + timedelta(days=phase.estimated_days)
                cursor = phase.end_date

        self._record(
            schedule.id,
            user,
            "updated",
            "schedule",
            schedule.id,
            f"Schedule {', '.join(sorted(changed))} updated",
            old_values=old_values,
            new_values=changed,
        )
        self.db.commit()
        logger.info(f"Schedule {schedule_id} updated: {', '.join(sorted(changed))}")
        return schedule

    def add_phases(
        self,
        project_id: str,
        schedule_id: str,
        phase_ids: List[str],
        user: CurrentUser,
        template_id: Optional[str] = None,
    ) -> ProjectSchedule:
        """Append template phases after the last phase of an existing schedule."""
        schedule = self._project_schedule(project_id, schedule_id)
        template_id = template_id or schedule.template_id
        if not template_id:
            raise InvalidRequestError("Schedule has no template, give template_id")
        template = self._template(template_id)
        phases = self._select_phases(template, phase_ids)

        existing = self.db.list_phases(schedule.id)
        present = {phase.template_phase_id for phase in existing if phase.template_phase_id}
        duplicates = [phase["id"] for phase in phases if phase["id"] in present]
        if duplicates:
            raise InvalidTransitionError(f"Schedule already has phases {', '.join(duplicates)}")

        if existing:
            start = existing[-1].end_date or schedule.start_date or today()
            first_order = existing[-1].phase_order + 1
        else:
            start = schedule.start_date or today()
            first_order = 1
        phase_rows, task_rows = self._build_rows(schedule.id, phases, start, first_order)
        self.db.add_schedule_rows(phase_rows, task_rows)

        documents = list(schedule.required_documents or [])
        known = {document.get("name") for document in documents}
        documents.extend(document for document in template.documents if document.get("name") not in known)
        schedule.required_documents = documents
        schedule.total_duration_days = (schedule.total_duration_days or 0) + sum(
            phase.estimated_days for phase in phase_rows
        )
        self._recalculate(schedule)

        self._record(
            schedule.id,
            user,
            "phases_added",
            "schedule",
            schedule.id,
            f"Added {', '.join(phase.name for phase in phase_rows)} from {template.name} template",
            new_values={"phases": [phase.template_phase_id for phase in phase_rows], "tasks": len(task_rows)},
        )
        self.db.commit()
        logger.info(f"Schedule {schedule_id}: {len(phase_rows)} phases appended from {template.id}")
        return schedule

    def delete_current_schedule(self, project_id: str) -> None:
        """Delete the current schedule; the newest remaining version becomes current."""
        schedule = self.current_schedule(project_id)
        self.db.delete_schedule(schedule.id)
        remaining = self.db.list_schedules(project_id)
        if remaining:
            remaining[0].is_current = True
            self.db.commit()
        logger.info(f"Schedule {schedule.id} deleted from project {project_id}")

    def list_phases(self, schedule_id: str) -> List[SchedulePhase]:
        self.get_schedule(schedule_id)
        return self.db.list_phases(schedule_id)

    def list_tasks(self, schedule_id: str) -> List[ScheduleTask]:
        self.get_schedule(schedule_id)
        return self.db.list_tasks(schedule_id)

    def history(self, schedule_id: str) -> List[ScheduleHistory]:
        self.get_schedule(schedule_id)
        return self.db.list_history(schedule_id)

    def milestones(self, project_id: str) -> List[dict]:
        """Phases of the current schedule as dated milestones. Empty when the project has no schedule."""
        self._project(project_id)
        schedule = self.db.get_current_schedule(project_id)
        if schedule is None:
            return []
        current_day = today()
        return [
            {
                "id": phase.id,
                "project_id": project_id,
                "schedule_id": schedule.id,
                "name": phase.name,
                "description": phase.description,
                "start_date": phase.start_date,
                "due_date": phase.end_date,
                "status": _milestone_status(phase, current_day),
                "progress_percentage": phase.progress_percentage,
            }
            for phase in self.db.list_phases(schedule.id)
        ]

    @staticmethod
    def _task_changes(task: ScheduleTask, data: dict) -> dict:
        """Keep status and progress consistent with each other."""
        data = plain_values(data)
        status = data.get("status")
        if status == "completed":
            data["progress_percentage"] = 100
        elif status is not None:
            if task.status == "completed" and "progress_percentage" not in data:
                data["progress_percentage"] = 0
        elif data.get("progress_percentage") == 100:
            data["status"] = "completed"
        elif "progress_percentage" in data and task.status == "completed":
            data["status"] = "in_progress" if data["progress_percentage"] else "not_started"
        return data

    def _apply_task_update(self, schedule: ProjectSchedule, task: ScheduleTask, data: dict, user: CurrentUser) -> None:
        data = self._task_changes(task, data)
        changed = {key: value for key, value in data.items() if getattr(task, key) != value}
        if not changed:
            return
        old_values = {key: getattr(task, key) for key in changed}
        for key, value in changed.items():
            setattr(task, key, value)
        self._record(
            schedule.id,
            user,
            "task_updated",
            "task",
            task.id,
            f"Updated {task.name}: {', '.join(sorted(changed))}",
            old_values=old_values,
            new_values=changed,
        )

    def update_task(self, schedule_id: str, task_id: str, data: dict, user: CurrentUser) -> ScheduleTask:
        schedule = self.get_schedule(schedule_id)
        task = self.db.get_task(schedule_id, task_id)
        if not task:
            raise RecordNotFoundError("Task not found")
        self._apply_task_update(schedule, task, data, user)
        self._recalculate(schedule)
        self.db.commit()
        return task

    def bulk_update_tasks(self, schedule_id: str, updates: List[dict], user: CurrentUser) -> ProjectSchedule:
        """Apply several task updates in one transaction. Nothing is saved if any task is unknown."""
        schedule = self.get_schedule(schedule_id)
        tasks = {task.id: task for task in self.db.list_tasks(schedule_id)}
        unknown = [update["id"] for update in updates if update["id"] not in tasks]
        if unknown:
            raise RecordNotFoundError(f"Tasks not found: {', '.join(unknown)}")
        for update in updates:
            changes = {key: value for key, value in update.items() if key != "id"}
            self._apply_task_update(schedule, tasks[update["id"]], changes, user)
        self._recalculate(schedule)
        self.db.commit()
        logger.info(f"Schedule {schedule_id}: {len(updates)} tasks saved in bulk")
        return schedule

    def add_subtask(self, schedule_id: str, parent_task_id: str, data: dict, user: CurrentUser) -> ScheduleTask:
        """Insert a subtask right after the existing subtasks of its parent."""
        schedule = self.get_schedule(schedule_id)
        parent = self.db.get_task(schedule_id, parent_task_id)
        if not parent:
            raise RecordNotFoundError("Parent task not found")

        tasks = self.db.list_tasks(schedule_id)
        children: Dict[str, List[ScheduleTask]] = defaultdict(list)
        for task in tasks:
            if task.parent_task_id:
                children[task.parent_task_id].append(task)
        last_order = parent.task_order
        pending = [parent]
        while pending:
            for child in children.get(pending.pop().id, []):
                last_order = max(last_order, child.task_order)
                pending.append(child)

        self.db.shift_task_orders(parent.phase_id, last_order)
        subtask = ScheduleTask(
            id=new_id("task"),
            schedule_id=schedule_id,
            phase_id=parent.phase_id,
            parent_task_id=parent.id,
            task_order=last_order + 1,
            level=parent.level + 1,
            is_subtask=True,
            name=data["name"],
            description=data.get("description"),
            estimated_hours=float(data.get("estimated_hours", DEFAULT_SUBTASK_HOURS)),
            assigned_to=data.get("assigned_to"),
            status="not_started",
            progress_percentage=0,
        )
        self.db.add_schedule_rows([], [subtask])
        self._recalculate(schedule)
        self._record(
            schedule.id,
            user,
            "task_added",
            "task",
            subtask.id,
            f"Added {subtask.name} under {parent.name}",
            new_values={"name": subtask.name, "estimated_hours": subtask.estimated_hours, "parent_task_id": parent.id},
        )
        self.db.commit()
        return subtask

    def _recalculate(self, schedule: ProjectSchedule) -> None:
        """Roll leaf task completion up to parent tasks, phases and the schedule."""
        tasks = self.db.list_tasks(schedule.id)
        children: Dict[str, List[ScheduleTask]] = defaultdict(list)
        for task in tasks:
            if task.parent_task_id:
                children[task.parent_task_id].append(task)

        # Deepest parents first so nested subtasks roll up through every level
        for task in sorted(tasks, key=lambda t: t.level, reverse=True):
            subtasks = children.get(task.id)
            if subtasks:
                task.status = _rollup_status([subtask.status for subtask in subtasks])
                done = sum(1 for subtask in subtasks if subtask.status == "completed")
                task.progress_percentage = _percent(done, len(subtasks))

        leaves = [task for task in tasks if task.id not in children and task.status != "cancelled"]
        leaves_by_phase: Dict[str, List[ScheduleTask]] = defaultdict(list)
        for task in leaves:
            leaves_by_phase[task.phase_id].append(task)

        for phase in self.db.list_phases(schedule.id):
            phase_leaves = leaves_by_phase.get(phase.id, [])
            done = sum(1 for task in phase_leaves if task.status == "completed")
            phase.progress_percentage = _percent(done, len(phase_leaves))
            phase.status = _rollup_status([task.status for task in phase_leaves])

        completed = sum(1 for task in leaves if task.status == "completed")
        schedule.total_tasks = len(leaves)
        schedule.completed_tasks = completed
        schedule.progress_percentage = _percent(completed, len(leaves))
        if leaves and completed == len(leaves):
            schedule.status = "completed"
        elif schedule.status == "completed" or any(task.status in ("in_progress", "completed") for task in leaves):
            schedule.status = "active"
