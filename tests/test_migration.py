from __future__ import annotations

import copy

from nexus.store.migrate import LEGACY_PLAN_ID, LEGACY_PLAN_PREFIX, migrate_document


def _legacy_document():
    return {
        "team": [
            {"id": "p1", "name": "Carlos", "role": "Dev", "pdi": "Learn Rust"},
            {"id": "p2", "name": "Maria", "seniority": "Especialista", "pdi": []},
        ],
        "projects": [
            {
                "id": "pr1",
                "name": "Alpha",
                "goals": ["Ship v1", "Ship v2"],
                "objectives": ["Grow revenue"],
                "difficulties": "Vendor API is unstable",
                "todo": ["Write docs"],
                "done": ["Set up CI"],
            }
        ],
        "knowledgeBase": [],
    }


def test_string_goals_become_structured_entries():
    doc, _ = migrate_document(_legacy_document())
    goals = doc["projects"][0]["goals"]
    assert [g["text"] for g in goals] == ["Ship v1", "Ship v2"]
    assert all(g["id"] for g in goals)
    assert all(g["isCompleted"] is False for g in goals)
    assert goals[0]["id"] != goals[1]["id"]
    assert doc["projects"][0]["objectives"][0]["text"] == "Grow revenue"


def test_difficulties_become_single_blocker():
    doc, _ = migrate_document(_legacy_document())
    blockers = doc["projects"][0]["blockers"]
    assert len(blockers) == 1
    assert blockers[0]["text"] == "Vendor API is unstable"
    assert blockers[0]["isResolved"] is False


def test_existing_blockers_are_not_replaced_by_difficulties():
    raw = _legacy_document()
    raw["projects"][0]["blockers"] = []
    doc, _ = migrate_document(raw)
    assert doc["projects"][0]["blockers"] == []


def test_todo_and_done_lists_become_tasks():
    doc, _ = migrate_document(_legacy_document())
    tasks = doc["projects"][0]["tasks"]
    assert [(t["title"], t["status"]) for t in tasks] == [("Write docs", "todo"), ("Set up CI", "done")]
    assert all(t["id"] and t["assigneeIds"] == [] for t in tasks)


def test_text_development_plan_is_wrapped_as_legacy_entry():
    doc, _ = migrate_document(_legacy_document())
    plan = doc["team"][0]["pdi"]
    assert plan == [{"id": LEGACY_PLAN_ID, "text": LEGACY_PLAN_PREFIX + "Learn Rust", "isCompleted": False}]
    assert doc["team"][0]["seniority"] == "Analyst"
    assert doc["team"][0]["studyPlan"] == []
    assert doc["team"][1]["seniority"] == "Especialista"


def test_missing_top_level_entities_come_from_defaults():
    doc, notes = migrate_document({"team": []})
    assert doc["team"] == []
    assert doc["projects"] and doc["knowledgeBase"]
    assert doc["aiConfig"]["provider"] == "gemini"
    assert any("projects" in n for n in notes)


def test_non_object_document_falls_back_to_defaults():
    doc, notes = migrate_document(["not", "a", "snapshot"])
    assert doc["team"][0]["name"] == "Alice Dev"
    assert notes


def test_migration_is_idempotent():
    once, _ = migrate_document(_legacy_document())
    twice, notes = migrate_document(once)
    assert twice == once
    assert notes == []


def test_migration_does_not_modify_input():
    raw = _legacy_document()
    before = copy.deepcopy(raw)
    migrate_document(raw)
    assert raw == before
