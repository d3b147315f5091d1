from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from rich.console import Console

from ..board.client import BoardClient
from ..board.errors import BoardConfigError, BoardFetchError
from ..board.fetch import fetch_board
from ..llm.client import TextGenerator
from ..llm.types import AlignmentResult, CardScore
from ..reconcile.resolver import Resolution, resolve_cards
from ..schemas.state import Snapshot
from ..store.state_store import StateStore
from .alignment import classify_alignment
from .sync import PersonSync, aggregate, apply_sync

console = Console(stderr=True)


@dataclass
class SessionStatus:
    started: bool
    start_error: Optional[str] = None
    config_error: bool = False
    unassigned_cards: int = 0
    analyzed: List[str] = field(default_factory=list)
    failed_analyses: List[str] = field(default_factory=list)


class ReconciliationSession:
    """
    One fetch -> resolve -> classify -> sync run. Board data is fetched once
    per session and never cached across sessions; per-person results are
    kept in memory until commit or close.
    """

    def __init__(self, snapshot: Snapshot, generator: Optional[TextGenerator] = None, concurrency: int = 4) -> None:
        self.snapshot = snapshot
        self.generator = generator
        self.concurrency = max(1, concurrency)
        self.resolution: Optional[Resolution] = None
        self._results: Dict[str, AlignmentResult] = {}
        self._lock = threading.Lock()
        self._closed = False
        self._start_error: Optional[BoardFetchError] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self, client: BoardClient) -> Resolution:
        """
        Fetch the board and partition its cards by person. A fetch failure
        is raised as BoardFetchError and leaves the session unstarted.
        """
        try:
            board = fetch_board(client)
        except BoardFetchError as e:
            self._start_error = e
            raise
        self.resolution = resolve_cards(board.cards, board.lists, board.members, self.snapshot.team)
        matched = sum(len(cards) for cards in self.resolution.member_cards.values())
        console.print(
            f"[cyan]Reconciliation[/cyan]: {matched} card assignments across {len(self.resolution.member_cards)} people, "
            f"{len(self.resolution.unassigned)} unassigned"
        )
        return self.resolution

    def _require_started(self) -> Resolution:
        if self.resolution is None:
            raise RuntimeError("Reconciliation session has not been started")
        return self.resolution

    def analyze(self, person_id: str) -> AlignmentResult:
        resolution = self._require_started()
        if self.generator is None:
            raise RuntimeError("No text generator configured for this session")
        person = self.snapshot.person(person_id)
        if person is None:
            raise KeyError(person_id)
        result = classify_alignment(
            person,
            resolution.cards_for(person_id),
            self.snapshot.active_projects(),
            self.generator,
        )
        with self._lock:
            if self._closed:
                console.print(f"[dim]Session closed; dropping analysis for {person.name}[/dim]")
            else:
                self._results[person_id] = result
        return result

    def analyze_all(self) -> Dict[str, AlignmentResult]:
        resolution = self._require_started()
        person_ids = [pid for pid, cards in resolution.member_cards.items() if cards]
        total = len(person_ids)
        console.print(f"[cyan]Alignment[/cyan]: analysing {total} people, concurrency={self.concurrency}")
        out: Dict[str, AlignmentResult] = {}
        with ThreadPoolExecutor(max_workers=self.concurrency) as pool:
            futures = {pool.submit(self.analyze, pid): pid for pid in person_ids}
            for fut in as_completed(futures):
                out[futures[fut]] = fut.result()
        failed = sum(1 for r in out.values() if r.failed)
        console.print(f"[green]Alignment complete[/green]: analysed={total} failed={failed}")
        return out

    def result_for(self, person_id: str) -> Optional[AlignmentResult]:
        with self._lock:
            return self._results.get(person_id)

    @property
    def card_scores(self) -> Dict[str, CardScore]:
        with self._lock:
            results = list(self._results.values())
        merged: Dict[str, CardScore] = {}
        for result in results:
            for score in result.card_scores:
                merged[score.id] = score
        return merged

    def scores_for(self, person_id: str) -> Dict[str, CardScore]:
        """
        Session-wide scores with the person's own analysis taking precedence
        for cards shared between people.
        """
        scores = self.card_scores
        own = self.result_for(person_id)
        if own is not None:
            scores.update({s.id: s for s in own.card_scores})
        return scores

    def aggregate(self) -> Dict[str, PersonSync]:
        resolution = self._require_started()
        return aggregate(resolution.member_cards, {pid: self.scores_for(pid) for pid in resolution.member_cards})

    def commit(self, store: StateStore) -> Snapshot:
        """
        Write demand lists and alignment counters for every person in the
        resolution as a single snapshot update.
        """
        if self._closed:
            raise RuntimeError("Reconciliation session is closed")
        synced = self.aggregate()
        snapshot = store.apply(apply_sync, synced)
        console.print(f"[green]Sync committed[/green]: {len(synced)} people updated")
        return snapshot

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def status(self) -> SessionStatus:
        if self.resolution is None:
            error = self._start_error
            return SessionStatus(
                started=False,
                start_error=str(error) if error else None,
                config_error=bool(error and isinstance(error.cause, BoardConfigError)),
            )
        with self._lock:
            results = dict(self._results)
        return SessionStatus(
            started=True,
            unassigned_cards=len(self.resolution.unassigned),
            analyzed=sorted(results),
            failed_analyses=sorted(pid for pid, r in results.items() if r.failed),
        )
