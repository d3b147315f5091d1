"""
Auxiliary LLM analyses: development plans, project risk, external resource
reviews and free-form questions. Each helper degrades to an empty result on
provider or parsing failure.
"""
from __future__ import annotations

import json
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console

from ..llm.client import LLMClientError, TextGenerator
from ..llm.prompting import render_prompt
from ..llm.types import PlanItemDraft
from ..schemas.state import DevelopmentPlanItem, KnowledgeDoc, Person, Project, RiskAssessment, Snapshot
from ..utils.ids import new_id
from ..utils.json_utils import extract_json_object
from ..utils.time import utc_now_ms

console = Console(stderr=True)


def _tech_stack(snapshot: Snapshot) -> str:
    seen: List[str] = []
    for project in snapshot.projects:
        for tech in project.tech_stack:
            if tech not in seen:
                seen.append(tech)
    return ", ".join(seen)


def _generate(generator: TextGenerator, prompt_text: str, label: str, **kwargs) -> Optional[str]:
    try:
        return generator.generate(prompt_text, **kwargs)
    except LLMClientError as e:
        console.print(f"[yellow]{label}[/yellow]: provider call failed: {e}")
    except Exception as e:  # provider SDKs raise their own types
        console.print(f"[yellow]{label}[/yellow]: unexpected provider error: {e}")
    return None


def generate_development_plan(person: Person, snapshot: Snapshot, generator: TextGenerator) -> List[DevelopmentPlanItem]:
    payload = {
        "name": person.name,
        "seniority": person.seniority.value,
        "strengths": person.strengths,
        "weaknesses": person.weaknesses,
        "current_demands": person.demands,
    }
    prompt_text = render_prompt(
        "development_plan",
        {"PERSON_JSON": json.dumps(payload, ensure_ascii=False, indent=2), "TECH_STACK": _tech_stack(snapshot)},
    )
    raw_output = _generate(generator, prompt_text, "Development plan", json_mode=True)
    if raw_output is None:
        return []
    try:
        raw_items = extract_json_object(raw_output).get("items") or []
    except ValueError as e:
        console.print(f"[yellow]Development plan[/yellow]: unusable response: {e}")
        return []

    items: List[DevelopmentPlanItem] = []
    for raw in raw_items if isinstance(raw_items, list) else []:
        try:
            draft = PlanItemDraft.model_validate(raw)
        except ValidationError:
            continue
        items.append(DevelopmentPlanItem(id=new_id("plan-"), text=draft.text, category=draft.category))
    return items


def assess_project_risk(project: Project, people: List[Person], generator: TextGenerator) -> Optional[RiskAssessment]:
    payload = {
        "status": project.status,
        "objectives": [o.text for o in project.objectives],
        "blockers": [b.text for b in project.blockers if not b.is_resolved],
        "stack": project.tech_stack,
        "pending_tasks": [t.title for t in project.tasks if t.status == "todo"],
    }
    team_lines = "\n".join(f"- {p.name} ({p.seniority.value}): {', '.join(p.strengths)}" for p in people)
    prompt_text = render_prompt(
        "project_risk",
        {
            "PROJECT_NAME": project.name,
            "PROJECT_JSON": json.dumps(payload, ensure_ascii=False, indent=2),
            "TEAM_LINES": team_lines or "- (nobody assigned)",
        },
    )
    raw_output = _generate(generator, prompt_text, "Project risk", json_mode=True)
    if raw_output is None:
        return None
    try:
        data = extract_json_object(raw_output)
        return RiskAssessment.model_validate({**data, "lastUpdated": utc_now_ms()})
    except (ValueError, ValidationError) as e:
        console.print(f"[yellow]Project risk[/yellow]: unusable response for {project.name}: {e}")
        return None


def analyze_external_resource(doc: KnowledgeDoc, snapshot: Snapshot, generator: TextGenerator) -> str:
    prompt_text = render_prompt(
        "external_resource",
        {
            "TITLE": doc.title,
            "CONTENT": doc.content,
            "TECH_STACK": _tech_stack(snapshot),
            "TEAM_NAMES": ", ".join(p.name for p in snapshot.team),
        },
    )
    return _generate(generator, prompt_text, "Resource review") or ""


def build_consultant_context(snapshot: Snapshot) -> str:
    state = {
        "team": [p.model_dump(mode="json", by_alias=True) for p in snapshot.team],
        "projects": [p.model_dump(mode="json", by_alias=True) for p in snapshot.projects],
    }
    kb = "\n".join(
        f"-- DOCUMENT ({d.type}): {d.title} ({d.category}) --\n{d.content}\n" for d in snapshot.knowledge_base
    )
    return render_prompt(
        "consultant_context",
        {"STATE_JSON": json.dumps(state, ensure_ascii=False, indent=2), "KNOWLEDGE_BASE": kb},
    )


def quick_analysis(snapshot: Snapshot, question: str, generator: TextGenerator) -> str:
    return _generate(generator, f"USER QUESTION: {question}", "Quick analysis", system_text=build_consultant_context(snapshot)) or ""
