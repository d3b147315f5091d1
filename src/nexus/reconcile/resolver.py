from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..board.models import UNKNOWN_LIST, ExternalCard, ExternalList, ExternalMember
from ..schemas.state import Person


@dataclass
class Resolution:
    # person id -> cards; every local person has an entry, possibly empty
    member_cards: Dict[str, List[ExternalCard]]
    unassigned: List[ExternalCard] = field(default_factory=list)

    def cards_for(self, person_id: str) -> List[ExternalCard]:
        return self.member_cards.get(person_id, [])


def _norm_name(value: Optional[str]) -> str:
    return (value or "").lower()


def names_match(local_name: str, external_name: str) -> bool:
    """
    Case-insensitive equality or containment in either direction.
    Short local names (e.g. "Ana") can match unrelated full names. An empty
    name on either side never matches, although plain containment would
    make it match every name.
    """
    local = _norm_name(local_name)
    external = _norm_name(external_name)
    if not local or not external:
        return False
    return local == external or local in external or external in local


def enrich_cards(cards: Iterable[ExternalCard], lists: Iterable[ExternalList]) -> List[ExternalCard]:
    list_names = {lst.id: lst.name for lst in lists}
    return [c.model_copy(update={"list_name": list_names.get(c.id_list, UNKNOWN_LIST)}) for c in cards]


def match_person(
    external_member_id: str,
    members_by_id: Dict[str, ExternalMember],
    team: List[Person],
) -> Optional[Person]:
    """
    Exact board member id wins; otherwise fall back to the first roster
    entry whose name matches the member's full name.
    """
    exact = next((p for p in team if p.board_member_id and p.board_member_id == external_member_id), None)
    if exact is not None:
        return exact
    member = members_by_id.get(external_member_id)
    if member is None:
        return None
    return next((p for p in team if names_match(p.name, member.full_name)), None)


def resolve_cards(
    cards: Iterable[ExternalCard],
    lists: Iterable[ExternalList],
    members: Iterable[ExternalMember],
    team: List[Person],
) -> Resolution:
    members_by_id: Dict[str, ExternalMember] = {}
    for m in members:
        members_by_id.setdefault(m.id, m)

    member_cards: Dict[str, List[ExternalCard]] = {p.id: [] for p in team}
    unassigned: List[ExternalCard] = []

    for card in enrich_cards(cards, lists):
        if not card.id_members:
            unassigned.append(card)
            continue
        assigned = False
        for external_id in card.id_members:
            person = match_person(external_id, members_by_id, team)
            if person is None:
                continue
            assigned = True
            # two board members resolving to the same person attach the card once
            if all(c.id != card.id for c in member_cards[person.id]):
                member_cards[person.id].append(card)
        if not assigned:
            unassigned.append(card)

    return Resolution(member_cards=member_cards, unassigned=unassigned)


def demand_titles(resolution: Resolution) -> Dict[str, List[str]]:
    return {pid: [c.title for c in cards] for pid, cards in resolution.member_cards.items()}
