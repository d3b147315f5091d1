from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping

from ..board.models import ExternalCard
from ..llm.types import CardScore
from ..schemas.state import Snapshot
from ..store import mutations


@dataclass
class PersonSync:
    demands: List[str]
    aligned: int
    misaligned: int

    def counts(self) -> Dict[str, int]:
        return {"aligned": self.aligned, "misaligned": self.misaligned}


def aggregate_person(cards: List[ExternalCard], scores: Mapping[str, CardScore]) -> PersonSync:
    aligned = 0
    misaligned = 0
    for card in cards:
        score = scores.get(card.id)
        if score is None:
            continue
        if score.is_aligned:
            aligned += 1
        elif score.is_misaligned:
            misaligned += 1
    return PersonSync(demands=[c.title for c in cards], aligned=aligned, misaligned=misaligned)


def aggregate(
    member_cards: Mapping[str, List[ExternalCard]],
    scores_by_person: Mapping[str, Mapping[str, CardScore]],
) -> Dict[str, PersonSync]:
    """
    Reduce per-card scores to per-person demand lists and counters.
    Every person keyed in ``member_cards`` gets an entry, including those
    with no cards or no scores; people absent from the mapping are not
    represented.
    """
    return {pid: aggregate_person(cards, scores_by_person.get(pid, {})) for pid, cards in member_cards.items()}


def apply_sync(snapshot: Snapshot, synced: Mapping[str, PersonSync]) -> Snapshot:
    return mutations.sync_demands(
        snapshot,
        {pid: s.demands for pid, s in synced.items()},
        {pid: s.counts() for pid, s in synced.items()},
    )
