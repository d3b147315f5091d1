from __future__ import annotations

import json
from pathlib import Path

from nexus.schemas.state import AIConfig, BoardConfig, KnowledgeDoc, Person, Seniority
from nexus.store import mutations
from nexus.store.state_store import StateStore


def _write(path: Path, obj) -> None:
    path.write_text(json.dumps(obj), encoding="utf-8")


def test_load_missing_file_uses_defaults(tmp_path: Path):
    store = StateStore(tmp_path / "state.json")
    snap = store.load()
    assert snap.team[0].name == "Alice Dev"
    assert snap.team[0].seniority == Seniority.SPECIALIST
    assert snap.ai_config.provider == "gemini"
    assert snap.board_config is None


def test_load_corrupt_file_uses_defaults(tmp_path: Path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    snap = StateStore(path).load()
    assert snap.projects[0].name.startswith("Project Alpha")


def test_load_migrates_legacy_document(tmp_path: Path):
    path = tmp_path / "state.json"
    _write(
        path,
        {
            "team": [{"id": "p1", "name": "Ana", "seniority": "Estagiário", "pdi": "Old plan"}],
            "projects": [{"id": "pr1", "name": "Alpha", "status": "Em Andamento", "goals": ["Ship v1"]}],
            "knowledgeBase": [],
            "trelloConfig": {"apiKey": "k", "token": "t", "boardId": "b"},
        },
    )
    snap = StateStore(path).load()
    person = snap.person("p1")
    assert person.seniority == Seniority.INTERN
    assert person.development_plan[0].id == "legacy"
    project = snap.project("pr1")
    assert project.status == "In progress"
    assert project.goals[0].text == "Ship v1"
    assert snap.board_config.board_id == "b"


def test_invalid_entities_are_dropped_not_fatal(tmp_path: Path):
    path = tmp_path / "state.json"
    _write(
        path,
        {
            "team": [{"id": "p1", "name": "Ana"}, {"name": "no id"}, {"id": "p3", "name": "Bo", "alignedTaskCount": -2}],
            "projects": [],
            "knowledgeBase": [],
        },
    )
    snap = StateStore(path).load()
    assert [p.id for p in snap.team] == ["p1"]


def test_save_then_load_round_trip(tmp_path: Path):
    path = tmp_path / "nested" / "state.json"
    store = StateStore(path)
    store.load()
    store.apply(mutations.add_person, Person(id="p2", name="Bruno", board_member_id="u9"))
    stored = json.loads(path.read_text(encoding="utf-8"))
    assert stored["team"][-1]["trelloMemberId"] == "u9"
    assert stored["team"][-1]["seniority"] == "Analyst"

    reloaded = StateStore(path).load()
    assert reloaded.person("p2").board_member_id == "u9"
    assert reloaded == store.snapshot


def test_apply_unknown_id_does_not_write(tmp_path: Path):
    path = tmp_path / "state.json"
    store = StateStore(path)
    store.load()
    store.apply(mutations.update_person, "missing", {"name": "x"})
    assert not path.exists()


def test_mutations_return_new_snapshots(tmp_path: Path):
    store = StateStore(tmp_path / "state.json")
    before = store.load()
    after = mutations.update_person(before, "1", {"jobDescription": "New", "seniority": "Intern"})
    assert before.person("1").job_description != "New"
    assert after.person("1").job_description == "New"
    assert after.person("1").seniority == Seniority.INTERN
    assert after.person("1").id == "1"


def test_delete_and_settings_mutations(tmp_path: Path):
    store = StateStore(tmp_path / "state.json")
    store.load()
    store.apply(mutations.delete_person, "1")
    store.apply(mutations.set_board_config, BoardConfig(api_key=" k ", token="t", board_id="b"))
    store.apply(mutations.set_ai_config, AIConfig(provider="gpt", openai_key="sk", temperature=0.2))
    snap = StateStore(tmp_path / "state.json").load()
    assert snap.team == []
    assert snap.board_config.cleaned().api_key == "k"
    assert snap.ai_config.provider == "gpt"


def test_update_doc_stamps_updated_at(tmp_path: Path):
    store = StateStore(tmp_path / "state.json")
    snap = store.load()
    snap = mutations.add_doc(snap, KnowledgeDoc(id="d1", title="Doc", updated_at=1))
    snap = mutations.update_doc(snap, "d1", {"content": "body"})
    doc = next(d for d in snap.knowledge_base if d.id == "d1")
    assert doc.content == "body"
    assert doc.updated_at > 1


def test_sync_demands_touches_only_listed_people(tmp_path: Path):
    snap = StateStore(tmp_path / "state.json").load()
    snap = mutations.add_person(snap, Person(id="p2", name="Bruno", demands=["keep"], aligned_count=7))
    synced = mutations.sync_demands(snap, {"1": ["Card A"]}, {"1": {"aligned": 1, "misaligned": 0}})
    assert synced.person("1").demands == ["Card A"]
    assert synced.person("1").aligned_count == 1
    assert synced.person("p2").demands == ["keep"]
    assert synced.person("p2").aligned_count == 7


def test_seniority_is_ordered():
    assert Seniority.INTERN < Seniority.ASSISTANT < Seniority.ANALYST < Seniority.SPECIALIST
    assert max([Seniority.ANALYST, Seniority.SPECIALIST, Seniority.INTERN]) == Seniority.SPECIALIST
