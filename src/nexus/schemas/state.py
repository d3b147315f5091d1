from __future__ import annotations

from enum import Enum
from functools import total_ordering
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


@total_ordering
class Seniority(Enum):
    INTERN = "Intern"
    ASSISTANT = "Assistant"
    ANALYST = "Analyst"
    SPECIALIST = "Specialist"

    @property
    def rank(self) -> int:
        return _SENIORITY_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Seniority):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def parse(cls, value: Any) -> "Seniority":
        if isinstance(value, Seniority):
            return value
        label = str(value or "").strip()
        if label in _LEGACY_SENIORITY:
            return _LEGACY_SENIORITY[label]
        for member in cls:
            if member.value.lower() == label.lower():
                return member
        raise ValueError(f"Unknown seniority: {value!r}")


_SENIORITY_ORDER = [Seniority.INTERN, Seniority.ASSISTANT, Seniority.ANALYST, Seniority.SPECIALIST]

_LEGACY_SENIORITY = {
    "Estagiário": Seniority.INTERN,
    "Assistente": Seniority.ASSISTANT,
    "Analista": Seniority.ANALYST,
    "Especialista": Seniority.SPECIALIST,
}

_LEGACY_PROJECT_STATUS = {
    "Planejamento": "Planning",
    "Em Andamento": "In progress",
    "Pausado": "Paused",
    "Concluído": "Done",
}

TaskStatus = Literal["backlog", "todo", "done"]
AIProvider = Literal["gemini", "gpt"]


class Record(BaseModel):
    # Snapshots are replaced, never edited in place.
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class DevelopmentPlanItem(Record):
    id: str
    text: str
    is_completed: bool = Field(default=False, alias="isCompleted")
    category: Optional[str] = None


class Person(Record):
    id: str
    name: str
    role: str = ""
    seniority: Seniority = Seniority.ANALYST
    job_description: str = Field(default="", alias="jobDescription")
    responsibilities: List[str] = Field(default_factory=list)
    demands: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    notes: str = ""
    development_plan: List[DevelopmentPlanItem] = Field(default_factory=list, alias="pdi")
    study_plan: List[str] = Field(default_factory=list, alias="studyPlan")
    board_member_id: Optional[str] = Field(default=None, alias="trelloMemberId")
    aligned_count: int = Field(default=0, ge=0, alias="alignedTaskCount")
    misaligned_count: int = Field(default=0, ge=0, alias="misalignedTaskCount")

    @field_validator("seniority", mode="before")
    @classmethod
    def _seniority_labels(cls, v: Any) -> Seniority:
        if v is None or v == "":
            return Seniority.ANALYST
        return Seniority.parse(v)


class ProjectGoal(Record):
    id: str
    text: str
    is_completed: bool = Field(default=False, alias="isCompleted")
    due_date: Optional[int] = Field(default=None, alias="dueDate")


class ProjectBlocker(Record):
    id: str
    text: str
    is_resolved: bool = Field(default=False, alias="isResolved")


class ProjectTask(Record):
    id: str
    title: str
    assignee_ids: List[str] = Field(default_factory=list, alias="assigneeIds")
    due_date: Optional[int] = Field(default=None, alias="dueDate")
    status: TaskStatus = "todo"


class RiskAssessment(Record):
    overall_score: int = Field(alias="overallScore", ge=0, le=100)
    deadline_risk: int = Field(alias="deadlineRisk", ge=0, le=100)
    complexity_risk: int = Field(alias="complexityRisk", ge=0, le=100)
    headcount_risk: int = Field(alias="headcountRisk", ge=0, le=100)
    competency_risk: int = Field(alias="competencyRisk", ge=0, le=100)
    analysis: str = ""
    last_updated: Optional[int] = Field(default=None, alias="lastUpdated")


class Project(Record):
    id: str
    name: str
    description: str = ""
    difficulties: str = ""
    blockers: List[ProjectBlocker] = Field(default_factory=list)
    status: str = "Planning"
    goals: List[ProjectGoal] = Field(default_factory=list)
    objectives: List[ProjectGoal] = Field(default_factory=list)
    tasks: List[ProjectTask] = Field(default_factory=list)
    tech_stack: List[str] = Field(default_factory=list, alias="techStack")
    assigned_people: List[str] = Field(default_factory=list, alias="assignedTeamMembers")
    linked_doc_ids: List[str] = Field(default_factory=list, alias="linkedDocIds")
    risk_assessment: Optional[RiskAssessment] = Field(default=None, alias="riskAssessment")

    @field_validator("status", mode="before")
    @classmethod
    def _status_labels(cls, v: Any) -> str:
        if not v:
            return "Planning"
        return _LEGACY_PROJECT_STATUS.get(str(v), str(v))

    @property
    def is_active(self) -> bool:
        return self.status != "Done"


class KnowledgeDoc(Record):
    id: str
    title: str
    type: str = "Internal"
    category: str = "General"
    content: str = ""
    analysis: Optional[str] = None
    updated_at: int = Field(default=0, alias="updatedAt")


class BoardConfig(Record):
    api_key: str = Field(default="", alias="apiKey")
    token: str = ""
    board_id: str = Field(default="", alias="boardId")

    def cleaned(self) -> "BoardConfig":
        return BoardConfig(
            api_key=(self.api_key or "").strip(),
            token=(self.token or "").strip(),
            board_id=(self.board_id or "").strip(),
        )

    def is_complete(self) -> bool:
        c = self.cleaned()
        return bool(c.api_key and c.token and c.board_id)


class AIConfig(Record):
    provider: AIProvider = "gemini"
    openai_key: Optional[str] = Field(default=None, alias="openAIKey")
    gpt_model: str = Field(default="gpt-4o", alias="gptModel")
    gemini_model: str = Field(default="gemini-2.5-flash", alias="geminiModel")
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)


class Snapshot(Record):
    team: List[Person] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    knowledge_base: List[KnowledgeDoc] = Field(default_factory=list, alias="knowledgeBase")
    board_config: Optional[BoardConfig] = Field(default=None, alias="trelloConfig")
    ai_config: AIConfig = Field(default_factory=AIConfig, alias="aiConfig")

    def person(self, person_id: str) -> Optional[Person]:
        return next((p for p in self.team if p.id == person_id), None)

    def project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.id == project_id), None)

    def active_projects(self) -> List[Project]:
        return [p for p in self.projects if p.is_active]

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
