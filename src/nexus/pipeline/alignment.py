from __future__ import annotations

import json
from typing import Dict, Iterable, List

from pydantic import ValidationError
from rich.console import Console

from ..board.models import ExternalCard
from ..llm.client import LLMClientError, TextGenerator
from ..llm.prompting import render_prompt
from ..llm.types import EMPTY_SUMMARY, AlignmentResult, CardScore
from ..schemas.state import Person, Project
from ..utils.json_utils import extract_json_object

console = Console(stderr=True)

NO_CARDS_SUMMARY = "No board tasks are assigned to this person."


def _person_payload(person: Person) -> Dict:
    return {
        "name": person.name,
        "role": person.role,
        "seniority": person.seniority.value,
        "job_description": person.job_description,
    }


def _card_payload(cards: Iterable[ExternalCard]) -> List[Dict]:
    return [{"id": c.id, "name": c.name, "list": c.list_name, "desc": c.desc} for c in cards]


def _objective_lines(projects: Iterable[Project]) -> str:
    lines = [f"- {p.name}: {'; '.join(o.text for o in p.objectives)}" for p in projects]
    return "\n".join(lines) or "- (no active projects)"


def build_alignment_prompt(person: Person, cards: List[ExternalCard], projects: List[Project]) -> str:
    return render_prompt(
        "alignment_audit",
        {
            "PERSON_JSON": json.dumps(_person_payload(person), ensure_ascii=False, indent=2),
            "CARDS_JSON": json.dumps(_card_payload(cards), ensure_ascii=False),
            "OBJECTIVES": _objective_lines(projects),
        },
    )


def parse_alignment_response(person_id: str, raw_output: str, card_ids: Iterable[str]) -> AlignmentResult:
    """
    Raises ValueError when the response is not a JSON object with a
    ``cardScores`` list. Individual malformed scores, and scores for cards
    that were not in the request, are dropped.
    """
    data = extract_json_object(raw_output)
    raw_scores = data.get("cardScores") or []
    if not isinstance(raw_scores, list):
        raise ValueError("cardScores is not a list")

    known = set(card_ids)
    scores: List[CardScore] = []
    for item in raw_scores:
        try:
            score = CardScore.model_validate(item)
        except ValidationError as e:
            console.print(f"[yellow]Alignment[/yellow]: dropping malformed card score for {person_id}: {e.error_count()} error(s)")
            continue
        if score.id in known:
            scores.append(score)

    summary = data.get("summaryHtml")
    return AlignmentResult(
        person_id=person_id,
        summary_html=summary if isinstance(summary, str) and summary else EMPTY_SUMMARY,
        card_scores=scores,
    )


def classify_alignment(
    person: Person,
    cards: List[ExternalCard],
    projects: List[Project],
    generator: TextGenerator,
) -> AlignmentResult:
    """
    Score each of a person's board cards against their role and the active
    projects' objectives. Never raises: a failed call or unusable response
    yields an empty score list and a fallback summary.
    """
    if not cards:
        return AlignmentResult(person_id=person.id, summary_html=NO_CARDS_SUMMARY)

    prompt_text = build_alignment_prompt(person, cards, projects)
    try:
        raw_output = generator.generate(prompt_text, json_mode=True)
    except LLMClientError as e:
        console.print(f"[yellow]Alignment[/yellow]: provider call failed for {person.name}: {e}")
        return AlignmentResult.failure(person.id, str(e))
    except Exception as e:  # provider SDKs raise their own types
        console.print(f"[yellow]Alignment[/yellow]: unexpected provider error for {person.name}: {e}")
        return AlignmentResult.failure(person.id, str(e))

    try:
        result = parse_alignment_response(person.id, raw_output, (c.id for c in cards))
    except ValueError as e:
        console.print(f"[yellow]Alignment[/yellow]: unusable response for {person.name}: {e}")
        return AlignmentResult.failure(person.id, f"json_decode: {e}")

    console.print(
        f"[cyan]Alignment[/cyan]: {person.name} scored {len(result.card_scores)}/{len(cards)} cards"
    )
    return result
