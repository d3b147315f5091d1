"""
Pure update functions over ``Snapshot``.

Each function takes a snapshot and a patch and returns a new snapshot; the
input is never modified. Patches are validated through the record model, so
field names or their stored (camelCase) aliases are both accepted. An id that
does not exist leaves the snapshot unchanged.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, TypeVar

from ..schemas.state import (
    AIConfig,
    BoardConfig,
    KnowledgeDoc,
    Person,
    Project,
    Record,
    Snapshot,
)
from ..utils.time import utc_now_ms

R = TypeVar("R", bound=Record)


def _patched(record: R, patch: Mapping[str, Any]) -> R:
    # Round-trip through validation so aliases, enums and bounds apply.
    data = record.model_dump(by_alias=False)
    model_cls = type(record)
    by_alias = {f.alias: name for name, f in model_cls.model_fields.items() if f.alias}
    for key, value in patch.items():
        data[by_alias.get(key, key)] = value
    data["id"] = record.id
    return model_cls.model_validate(data)


def _replace(items: List[R], item_id: str, patch: Mapping[str, Any]) -> Optional[List[R]]:
    if not any(i.id == item_id for i in items):
        return None
    return [_patched(i, patch) if i.id == item_id else i for i in items]


def add_person(snapshot: Snapshot, person: Person) -> Snapshot:
    return snapshot.model_copy(update={"team": [*snapshot.team, person]})


def update_person(snapshot: Snapshot, person_id: str, patch: Mapping[str, Any]) -> Snapshot:
    team = _replace(snapshot.team, person_id, patch)
    if team is None:
        return snapshot
    return snapshot.model_copy(update={"team": team})


def delete_person(snapshot: Snapshot, person_id: str) -> Snapshot:
    return snapshot.model_copy(update={"team": [p for p in snapshot.team if p.id != person_id]})


def add_project(snapshot: Snapshot, project: Project) -> Snapshot:
    return snapshot.model_copy(update={"projects": [*snapshot.projects, project]})


def update_project(snapshot: Snapshot, project_id: str, patch: Mapping[str, Any]) -> Snapshot:
    projects = _replace(snapshot.projects, project_id, patch)
    if projects is None:
        return snapshot
    return snapshot.model_copy(update={"projects": projects})


def delete_project(snapshot: Snapshot, project_id: str) -> Snapshot:
    return snapshot.model_copy(update={"projects": [p for p in snapshot.projects if p.id != project_id]})


def add_doc(snapshot: Snapshot, doc: KnowledgeDoc) -> Snapshot:
    return snapshot.model_copy(update={"knowledge_base": [*snapshot.knowledge_base, doc]})


def update_doc(snapshot: Snapshot, doc_id: str, patch: Mapping[str, Any]) -> Snapshot:
    docs = _replace(snapshot.knowledge_base, doc_id, {**patch, "updated_at": utc_now_ms()})
    if docs is None:
        return snapshot
    return snapshot.model_copy(update={"knowledge_base": docs})


def delete_doc(snapshot: Snapshot, doc_id: str) -> Snapshot:
    return snapshot.model_copy(
        update={"knowledge_base": [d for d in snapshot.knowledge_base if d.id != doc_id]}
    )


def set_board_config(snapshot: Snapshot, config: BoardConfig) -> Snapshot:
    return snapshot.model_copy(update={"board_config": config})


def set_ai_config(snapshot: Snapshot, config: AIConfig) -> Snapshot:
    return snapshot.model_copy(update={"ai_config": config})


def sync_demands(
    snapshot: Snapshot,
    demands: Mapping[str, List[str]],
    counts: Optional[Mapping[str, Dict[str, int]]] = None,
) -> Snapshot:
    """
    Write synced demand lists and alignment counters onto people.

    Only people keyed in ``demands`` or ``counts`` are touched; demand lists
    are replaced wholesale and counters overwritten, both in one update per
    person.
    """
    counts = counts or {}
    team: List[Person] = []
    for person in snapshot.team:
        patch: Dict[str, Any] = {}
        if person.id in demands:
            patch["demands"] = list(demands[person.id])
        if person.id in counts:
            patch["aligned_count"] = int(counts[person.id].get("aligned", 0))
            patch["misaligned_count"] = int(counts[person.id].get("misaligned", 0))
        team.append(_patched(person, patch) if patch else person)
    return snapshot.model_copy(update={"team": team})
