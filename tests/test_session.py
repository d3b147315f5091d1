from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

import pytest

from fakes import FakeGenerator
from nexus.board.errors import BoardAuthError, BoardFetchError
from nexus.board.models import ExternalCard, ExternalList, ExternalMember
from nexus.pipeline.session import ReconciliationSession
from nexus.schemas.state import BoardConfig, Person, Project, ProjectGoal, Snapshot
from nexus.store import mutations
from nexus.store.state_store import StateStore


class FakeBoard:
    def __init__(self, cards: List[ExternalCard], members: List[ExternalMember], fail_members: bool = False) -> None:
        self.config = BoardConfig(api_key="k", token="t", board_id="b")
        self._cards = cards
        self._members = members
        self.fail_members = fail_members

    def credentials(self) -> BoardConfig:
        return self.config

    def lists(self) -> List[ExternalList]:
        return [ExternalList(id="l1", name="Doing")]

    def cards(self) -> List[ExternalCard]:
        return self._cards

    def members(self) -> List[ExternalMember]:
        if self.fail_members:
            raise BoardAuthError("Unauthorized")
        return self._members


def _store(tmp_path: Path) -> StateStore:
    store = StateStore(tmp_path / "state.json")
    snap = Snapshot(
        team=[
            Person(id="p1", name="Carlos", board_member_id="u1", demands=["stale"], aligned_count=5, misaligned_count=5),
            Person(id="p2", name="Maria", demands=["stale"], aligned_count=2),
        ],
        projects=[
            Project(id="pr1", name="Billing", objectives=[ProjectGoal(id="o1", text="Launch invoicing")]),
            Project(id="pr2", name="Legacy", status="Done", objectives=[ProjectGoal(id="o2", text="Old goal")]),
        ],
    )
    store.save(snap)
    return store


def _board() -> FakeBoard:
    return FakeBoard(
        cards=[
            ExternalCard(id="c1", name="Invoice API", id_list="l1", id_members=["u1"]),
            ExternalCard(id="c2", name="Tidy wiki", id_list="l1", id_members=["u1"]),
            ExternalCard(id="c3", name="Billing emails", id_list="l1", id_members=["u2"]),
            ExternalCard(id="c4", name="Orphan", id_list="l1", id_members=[]),
        ],
        members=[ExternalMember(id="u1", full_name="Carlos Souza"), ExternalMember(id="u2", full_name="Maria Silva")],
    )


def _scoring(scores: Dict[str, int]):
    def respond(prompt: str) -> str:
        picked = [{"id": cid, "score": s, "reason": "r"} for cid, s in scores.items() if f'"id": "{cid}"' in prompt]
        return json.dumps({"summaryHtml": "<p>ok</p>", "cardScores": picked})

    return respond


def test_full_session_commits_demands_and_counts(tmp_path: Path):
    store = _store(tmp_path)
    gen = FakeGenerator(_scoring({"c1": 90, "c2": 30, "c3": 65}))
    session = ReconciliationSession(store.snapshot, generator=gen, concurrency=2)

    resolution = session.start(_board())
    assert [c.id for c in resolution.unassigned] == ["c4"]

    results = session.analyze_all()
    assert set(results) == {"p1", "p2"}
    assert all("Old goal" not in p for p in gen.prompts)

    session.commit(store)
    reloaded = StateStore(store.path).load()
    carlos = reloaded.person("p1")
    assert carlos.demands == ["Invoice API", "Tidy wiki"]
    assert (carlos.aligned_count, carlos.misaligned_count) == (1, 1)
    maria = reloaded.person("p2")
    assert maria.demands == ["Billing emails"]
    assert (maria.aligned_count, maria.misaligned_count) == (0, 0)

    status = session.status()
    assert status.started and status.unassigned_cards == 1
    assert status.failed_analyses == []


def test_failed_classification_leaves_counters_at_zero(tmp_path: Path):
    store = _store(tmp_path)
    session = ReconciliationSession(store.snapshot, generator=FakeGenerator("{broken"))
    session.start(_board())
    result = session.analyze("p1")
    assert result.failed and result.card_scores == []

    session.commit(store)
    carlos = store.snapshot.person("p1")
    assert (carlos.aligned_count, carlos.misaligned_count) == (0, 0)
    assert carlos.demands == ["Invoice API", "Tidy wiki"]
    assert session.status().failed_analyses == ["p1"]


def test_members_fetch_failure_commits_nothing(tmp_path: Path):
    store = _store(tmp_path)
    before = store.path.read_text(encoding="utf-8")
    session = ReconciliationSession(store.snapshot, generator=FakeGenerator("{}"))
    with pytest.raises(BoardFetchError):
        session.start(FakeBoard(cards=[], members=[], fail_members=True))

    status = session.status()
    assert not status.started and "Unauthorized" in status.start_error
    assert not status.config_error
    with pytest.raises(RuntimeError):
        session.commit(store)
    assert store.path.read_text(encoding="utf-8") == before


def test_closed_session_drops_results_and_refuses_commit(tmp_path: Path):
    store = _store(tmp_path)
    session = ReconciliationSession(store.snapshot, generator=FakeGenerator(_scoring({"c1": 95})))
    session.start(_board())
    session.close()
    session.analyze("p1")
    assert session.result_for("p1") is None
    with pytest.raises(RuntimeError):
        session.commit(store)


def test_people_added_after_start_are_left_untouched(tmp_path: Path):
    store = _store(tmp_path)
    session = ReconciliationSession(store.snapshot, generator=FakeGenerator(_scoring({})))
    session.start(_board())
    store.apply(mutations.add_person, Person(id="p3", name="Newcomer", demands=["own"], aligned_count=4))
    session.commit(store)
    newcomer = store.snapshot.person("p3")
    assert newcomer.demands == ["own"] and newcomer.aligned_count == 4


def test_analyze_requires_started_session(tmp_path: Path):
    store = _store(tmp_path)
    session = ReconciliationSession(store.snapshot, generator=FakeGenerator("{}"))
    with pytest.raises(RuntimeError):
        session.analyze("p1")
