from __future__ import annotations

import copy
from typing import Any, Dict

from ..utils.time import utc_now_ms

_DEFAULT_DOCUMENT: Dict[str, Any] = {
    "team": [
        {
            "id": "1",
            "name": "Alice Dev",
            "role": "Backend Engineer",
            "seniority": "Specialist",
            "jobDescription": "Design scalable APIs and own interactions with the database layer.",
            "responsibilities": ["API gateway", "Database optimisation"],
            "demands": ["PostgreSQL migration", "Code review"],
            "strengths": ["System design", "Node.js", "Mentoring"],
            "weaknesses": ["Frontend CSS", "Public speaking"],
            "notes": "High performer, interested in ML.",
            "pdi": [],
            "studyPlan": [],
        }
    ],
    "projects": [
        {
            "id": "1",
            "name": "Project Alpha (AI automation)",
            "description": "Automate customer support tickets with LLMs.",
            "difficulties": "",
            "blockers": [],
            "goals": [
                {"id": "g1", "text": "Reach 90% precision", "isCompleted": False},
                {"id": "g2", "text": "Response time under 2s", "isCompleted": False},
            ],
            "objectives": [
                {"id": "o1", "text": "Cut support response time by 50%", "isCompleted": False},
            ],
            "status": "In progress",
            "tasks": [
                {"id": "t1", "title": "Proof of concept", "status": "done", "assigneeIds": ["1"]},
                {"id": "t2", "title": "API integration", "status": "done", "assigneeIds": ["1"]},
                {"id": "t3", "title": "Production deploy", "status": "todo", "assigneeIds": ["1"]},
            ],
            "techStack": ["Python", "React", "Gemini API"],
            "assignedTeamMembers": ["1"],
            "linkedDocIds": ["kb-1"],
        }
    ],
    "knowledgeBase": [
        {
            "id": "kb-1",
            "title": "AI docs architecture",
            "type": "Internal",
            "category": "Architecture",
            "content": "The core architecture is a multi-agent system built on Gemini 2.5 Flash...",
            "updatedAt": 0,
        }
    ],
    "aiConfig": {
        "provider": "gemini",
        "geminiModel": "gemini-2.5-flash",
        "gptModel": "gpt-4o",
        "temperature": 0.7,
        "openAIKey": "",
    },
}


def default_document() -> Dict[str, Any]:
    """
    Return a fresh copy of the built-in snapshot document (camelCase keys,
    the same shape that is written to disk).
    """
    doc = copy.deepcopy(_DEFAULT_DOCUMENT)
    for item in doc["knowledgeBase"]:
        item["updatedAt"] = utc_now_ms()
    return doc
