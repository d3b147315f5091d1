from __future__ import annotations

import copy
from typing import Any, Dict, List, Tuple

from ..utils.ids import new_id
from .defaults import default_document

LEGACY_PLAN_ID = "legacy"
LEGACY_PLAN_PREFIX = "Legacy plan (text): "

_TOP_LEVEL_LISTS = ("team", "projects", "knowledgeBase")


def _wrap_goal_strings(items: Any) -> Tuple[List[Any], bool]:
    if not isinstance(items, list):
        return [], items is not None
    changed = False
    out: List[Any] = []
    for item in items:
        if isinstance(item, str):
            out.append({"id": new_id("goal-"), "text": item, "isCompleted": False})
            changed = True
        else:
            out.append(item)
    return out, changed


def _migrate_project(project: Dict[str, Any], notes: List[str]) -> Dict[str, Any]:
    pid = project.get("id")
    for key in ("goals", "objectives"):
        wrapped, changed = _wrap_goal_strings(project.get(key))
        project[key] = wrapped
        if changed:
            notes.append(f"project {pid}: structured {key}")

    if not isinstance(project.get("blockers"), list):
        difficulties = project.get("difficulties")
        if isinstance(difficulties, str) and difficulties.strip():
            project["blockers"] = [{"id": new_id("blocker-"), "text": difficulties, "isResolved": False}]
            notes.append(f"project {pid}: blocker from difficulties")
        else:
            project["blockers"] = []

    if not isinstance(project.get("tasks"), list):
        tasks: List[Dict[str, Any]] = []
        for status in ("todo", "done"):
            for title in project.get(status) or []:
                if isinstance(title, str):
                    tasks.append({"id": new_id("task-"), "title": title, "status": status, "assigneeIds": []})
        project["tasks"] = tasks
        if tasks:
            notes.append(f"project {pid}: {len(tasks)} tasks from todo/done lists")
    return project


def _migrate_person(person: Dict[str, Any], notes: List[str]) -> Dict[str, Any]:
    plan = person.get("pdi")
    if isinstance(plan, str):
        person["pdi"] = (
            [{"id": LEGACY_PLAN_ID, "text": LEGACY_PLAN_PREFIX + plan, "isCompleted": False}] if plan else []
        )
        notes.append(f"person {person.get('id')}: wrapped text development plan")
    elif not isinstance(plan, list):
        person["pdi"] = []
    if not isinstance(person.get("studyPlan"), list):
        person["studyPlan"] = []
    if not person.get("seniority"):
        person["seniority"] = "Analyst"
    return person


def migrate_document(raw: Any) -> Tuple[Dict[str, Any], List[str]]:
    """
    Bring a stored document up to the current shape.

    Returns (document, notes). The input is not modified. Applying the
    migration to its own output changes nothing.
    """
    defaults = default_document()
    notes: List[str] = []
    if not isinstance(raw, dict):
        return defaults, ["document is not an object; using defaults"]

    doc = copy.deepcopy(raw)
    for key in _TOP_LEVEL_LISTS:
        if not isinstance(doc.get(key), list):
            doc[key] = defaults[key]
            notes.append(f"missing {key}; populated from defaults")
    if not isinstance(doc.get("aiConfig"), dict):
        doc["aiConfig"] = defaults["aiConfig"]
        notes.append("missing aiConfig; populated from defaults")

    doc["projects"] = [_migrate_project(p, notes) for p in doc["projects"] if isinstance(p, dict)]
    doc["team"] = [_migrate_person(t, notes) for t in doc["team"] if isinstance(t, dict)]
    doc["knowledgeBase"] = [d for d in doc["knowledgeBase"] if isinstance(d, dict)]
    return doc, notes
