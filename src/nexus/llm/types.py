from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ALIGNED_THRESHOLD = 80
MISALIGNED_THRESHOLD = 50

FALLBACK_SUMMARY = "Alignment analysis unavailable: the AI provider returned no usable result."
EMPTY_SUMMARY = "Analysis failed."


class ChatTurn(BaseModel):
    role: Literal["user", "model"]
    text: str


class CardScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    score: int = Field(..., ge=0, le=100)
    reason: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_text(cls, v: Any) -> str:
        return str(v) if v is not None else v

    @field_validator("score", mode="before")
    @classmethod
    def _round_score(cls, v: Any) -> Any:
        if isinstance(v, float):
            return round(v)
        if isinstance(v, str) and v.strip().replace(".", "", 1).isdigit():
            return round(float(v))
        return v

    @property
    def is_aligned(self) -> bool:
        return self.score >= ALIGNED_THRESHOLD

    @property
    def is_misaligned(self) -> bool:
        return self.score < MISALIGNED_THRESHOLD


class AlignmentResult(BaseModel):
    person_id: str
    summary_html: str
    card_scores: List[CardScore] = Field(default_factory=list)
    failed: bool = False
    error: Optional[str] = None

    @classmethod
    def failure(cls, person_id: str, error: str) -> "AlignmentResult":
        return cls(person_id=person_id, summary_html=FALLBACK_SUMMARY, card_scores=[], failed=True, error=error)


class PlanItemDraft(BaseModel):
    text: str = Field(..., min_length=1)
    category: Optional[str] = None

