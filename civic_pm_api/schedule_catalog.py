"""
PROMPT> python3 -m civic_pm_api.schedule_catalog
"""
import json
import logging
import os
import importlib.resources
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

SCHEDULE_TEMPLATES_FILE = "schedule_templates.jsonl"
CHECKLIST_TEMPLATES_FILE = "checklist_templates.jsonl"


@dataclass
class ScheduleTemplate:
    """A reusable project plan: ordered phases with tasks and subtasks, plus required documents."""
    id: str
    name: str
    category: str
    phases: List[Dict[str, Any]]
    description: Optional[str] = None
    estimated_duration: Optional[str] = None
    documents: List[Dict[str, Any]] = field(default_factory=list)

    def phase(self, phase_id: str) -> Optional[Dict[str, Any]]:
        for phase in self.phases:
            if phase["id"] == phase_id:
                return phase
        return None


@dataclass
class ChecklistTemplate:
    id: str
    task_type: str
    task_keywords: List[str]
    checklist_items: List[Dict[str, Any]]

    def matches(self, task_name: str) -> bool:
        words = task_name.lower()
        return any(keyword.lower() in words for keyword in self.task_keywords)


def generic_checklist(task_type: str) -> ChecklistTemplate:
    """Checklist for a task type that has no dedicated template."""
    return ChecklistTemplate(
        id=f"{task_type}-checklist",
        task_type=task_type,
        task_keywords=[task_type],
        checklist_items=[
            {"id": "1", "text": f"Review {task_type} requirements and deliverables", "priority": "critical"},
            {"id": "2", "text": "Check resource availability and allocation", "priority": "important"},
            {"id": "3", "text": "Verify timeline and dependencies", "priority": "important"},
            {"id": "4", "text": "Prepare necessary documentation", "priority": "nice-to-have"},
        ],
    )


def _read_jsonl(filepath: str):
    with open(filepath, 'r', encoding='utf-8') as f:
        for line_num, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield line_num, json.loads(line)
            except json.JSONDecodeError as e:
                logger.error(f"JSON decode error in {filepath} at line {line_num}: {e}")


class ScheduleCatalog:
    """
    Schedule templates and PM checklist templates, keyed by id.
    Loaded from JSONL files, one JSON object per line.
    """
    def __init__(self):
        self._templates: Dict[str, ScheduleTemplate] = {}
        self._checklists: Dict[str, ChecklistTemplate] = {}

    def load_templates(self, filepath: str) -> None:
        """
        Load schedule templates. Rows without an 'id' or without phases are logged and skipped,
        as are duplicate ids.
        """
        logger.debug(f"ScheduleCatalog.load_templates. filepath: {filepath!r}")
        for line_num, data in _read_jsonl(filepath):
            template_id = data.get('id')
            if not template_id:
                logger.error(f"Missing 'id' field in {filepath} at line {line_num}. Skipping row.")
                continue
            if not data.get('phases'):
                logger.error(f"Template '{template_id}' has no phases in {filepath} at line {line_num}. Skipping row.")
                continue
            if template_id in self._templates:
                logger.error(f"Duplicate template id in {filepath} at line {line_num}: {template_id}. Skipping row.")
                continue
            self._templates[template_id] = ScheduleTemplate(
                id=template_id,
                name=data.get('name', template_id),
                category=data.get('category', 'infrastructure'),
                phases=data['phases'],
                description=data.get('description'),
                estimated_duration=data.get('estimated_duration'),
                documents=data.get('documents', []),
            )

    def load_checklists(self, filepath: str) -> None:
        logger.debug(f"ScheduleCatalog.load_checklists. filepath: {filepath!r}")
        for line_num, data in _read_jsonl(filepath):
            task_type = data.get('task_type')
            if not task_type:
                logger.error(f"Missing 'task_type' field in {filepath} at line {line_num}. Skipping row.")
                continue
            if task_type in self._checklists:
                logger.error(f"Duplicate task type in {filepath} at line {line_num}: {task_type}. Skipping row.")
                continue
            self._checklists[task_type] = ChecklistTemplate(
                id=data.get('id', f"{task_type}-checklist"),
                task_type=task_type,
                task_keywords=data.get('task_keywords', [task_type]),
                checklist_items=data.get('checklist_items', []),
            )

    def find_template(self, template_id: str) -> Optional[ScheduleTemplate]:
        return self._templates.get(template_id)

    def templates(self) -> List[ScheduleTemplate]:
        """Return all templates in the order they were loaded."""
        return list(self._templates.values())

    def checklists(self) -> List[ChecklistTemplate]:
        return list(self._checklists.values())

    def checklist_for(self, task_type: str) -> ChecklistTemplate:
        """
        Checklist for a task type. Falls back to the first template whose keywords
        appear in task_type, then to a generic checklist.
        """
        checklist = self._checklists.get(task_type)
        if checklist is not None:
            return checklist
        for candidate in self._checklists.values():
            if candidate.matches(task_type):
                return candidate
        return generic_checklist(task_type)

    @classmethod
    def path_to_data_file(cls, filename: str) -> str:
        """Return the path to a packaged data file."""
        resource_path = 'civic_pm_api.data'
        try:
            dir_traversable = importlib.resources.files(resource_path)
            filepath = os.fspath(dir_traversable.joinpath(filename))
        except Exception as e:
            logger.error(f"ScheduleCatalog.path_to_data_file. resource_path: {resource_path!r}. Error finding resource: {e}. Using package folder.")
            filepath = os.path.join(os.path.dirname(__file__), 'data', filename)
        if not os.path.isfile(filepath):
            raise FileNotFoundError(f"ScheduleCatalog.path_to_data_file. filepath: {filepath!r} does not exist or is not a file.")
        return filepath

    @classmethod
    def default(cls) -> "ScheduleCatalog":
        """Catalog with the packaged templates loaded."""
        catalog = cls()
        catalog.load_templates(cls.path_to_data_file(SCHEDULE_TEMPLATES_FILE))
        catalog.load_checklists(cls.path_to_data_file(CHECKLIST_TEMPLATES_FILE))
        return catalog


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    sc = ScheduleCatalog.default()
    print(f"ScheduleCatalog. loaded {len(sc.templates())} templates and {len(sc.checklists())} checklists")
    for template in sc.templates():
        print(f"{template.id}: {len(template.phases)} phases")
