from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError
from rich.console import Console

from ..schemas.state import AIConfig, BoardConfig, KnowledgeDoc, Person, Project, Snapshot
from ..utils.json_utils import safe_load_json, write_json
from .defaults import default_document
from .migrate import migrate_document

console = Console(stderr=True)

DEFAULT_STATE_PATH = Path("data/nexus_state.json")


def get_state_path(configured: Optional[str] = None) -> Path:
    env_path = os.getenv("NEXUS_STATE_PATH")
    if env_path:
        return Path(env_path)
    return Path(configured) if configured else DEFAULT_STATE_PATH


def _valid_items(items: List[Dict[str, Any]], model: Type[BaseModel], label: str) -> List[Any]:
    out = []
    for item in items:
        try:
            out.append(model.model_validate(item))
        except ValidationError as e:
            console.print(f"[yellow]Dropping invalid {label} {item.get('id')!r}:[/yellow] {e.error_count()} error(s)")
    return out


def build_snapshot(document: Dict[str, Any]) -> Snapshot:
    """
    Validate a migrated document entity by entity. Records that fail
    validation are dropped; the rest of the document survives.
    """
    try:
        return Snapshot.model_validate(document)
    except ValidationError:
        pass

    board_config = None
    if isinstance(document.get("trelloConfig"), dict):
        try:
            board_config = BoardConfig.model_validate(document["trelloConfig"])
        except ValidationError:
            console.print("[yellow]Dropping invalid board config[/yellow]")
    try:
        ai_config = AIConfig.model_validate(document.get("aiConfig") or {})
    except ValidationError:
        console.print("[yellow]Invalid AI config; using defaults[/yellow]")
        ai_config = AIConfig.model_validate(default_document()["aiConfig"])

    return Snapshot(
        team=_valid_items(document.get("team") or [], Person, "person"),
        projects=_valid_items(document.get("projects") or [], Project, "project"),
        knowledge_base=_valid_items(document.get("knowledgeBase") or [], KnowledgeDoc, "knowledge doc"),
        board_config=board_config,
        ai_config=ai_config,
    )


class StateStore:
    """
    Owns the current snapshot and writes the full document on every accepted
    mutation. Single writer; last write wins.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._snapshot: Optional[Snapshot] = None

    @property
    def snapshot(self) -> Snapshot:
        if self._snapshot is None:
            self._snapshot = self.load()
        return self._snapshot

    def load(self) -> Snapshot:
        data, err = safe_load_json(self.path)
        if err:
            if self.path.exists():
                console.print(f"[red]Saved state unreadable; falling back to defaults:[/red] {err}")
            else:
                console.print(f"[dim]No saved state at {self.path}; starting from defaults[/dim]")
            data = default_document()

        document, notes = migrate_document(data)
        for note in notes:
            console.print(f"[cyan]Migration[/cyan]: {note}")
        self._snapshot = build_snapshot(document)
        return self._snapshot

    def save(self, snapshot: Snapshot) -> None:
        write_json(self.path, snapshot.to_document())
        self._snapshot = snapshot

    def apply(self, mutation: Callable[..., Snapshot], *args: Any, **kwargs: Any) -> Snapshot:
        """
        Run a pure mutation against the current snapshot and persist the result.
        """
        updated = mutation(self.snapshot, *args, **kwargs)
        if updated is not self._snapshot:
            self.save(updated)
        return updated
