import json
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from civic_pm_api.schedule_catalog import ScheduleCatalog


class TestScheduleCatalog(unittest.TestCase):
    def setUp(self):
        self.catalog = ScheduleCatalog.default()

    def test_packaged_templates(self):
        template = self.catalog.find_template("building-construction")
        self.assertIsNotNone(template)
        self.assertEqual(template.name, "Building Construction")
        self.assertEqual(template.phases[0]["name"], "Project Initiation")
        self.assertEqual(len(template.phases[0]["tasks"][0]["subtasks"]), 4)
        self.assertIsNotNone(template.phase("phase-2"))
        self.assertIsNone(template.phase("phase-99"))
        self.assertIsNone(self.catalog.find_template("missing"))

    def test_checklist_by_task_type(self):
        checklist = self.catalog.checklist_for("meeting")
        self.assertEqual(checklist.id, "meeting-checklist")
        self.assertEqual(len(checklist.checklist_items), 6)

    def test_checklist_by_keyword(self):
        checklist = self.catalog.checklist_for("Site inspection")
        self.assertEqual(checklist.task_type, "survey")

    def test_generic_checklist(self):
        checklist = self.catalog.checklist_for("procurement")
        self.assertEqual(checklist.id, "procurement-checklist")
        self.assertIn("procurement", checklist.checklist_items[0]["text"])


class TestScheduleCatalogLoading(unittest.TestCase):
    def test_bad_rows_are_skipped(self):
        rows = [
            json.dumps({"id": "ok", "name": "Ok", "phases": [{"id": "p1", "name": "Only", "estimated_days": 1}]}),
            "{not json",
            json.dumps({"name": "No id", "phases": [{"id": "p1"}]}),
            json.dumps({"id": "empty", "phases": []}),
            json.dumps({"id": "ok", "name": "Duplicate", "phases": [{"id": "p1"}]}),
            "",
        ]
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "templates.jsonl"
            path.write_text("\n".join(rows), encoding="utf-8")
            catalog = ScheduleCatalog()
            catalog.load_templates(str(path))
        self.assertEqual([t.id for t in catalog.templates()], ["ok"])
        self.assertEqual(catalog.find_template("ok").name, "Ok")


if __name__ == "__main__":
    unittest.main()
