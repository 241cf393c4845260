"""Shared type definitions for the feedback pipeline."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

Tone = Literal["appreciative", "developmental", "neutral"]
RecordingMode = Literal["full", "per_question"]
SessionStatus = Literal["pending", "recording", "processing", "draft", "published"]
SentimentLabel = Literal["positive", "neutral", "negative"]
AuditAction = Literal["published", "unpublished"]

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Value produced by the real provider."""

    value: T

    @property
    def degraded(self) -> bool:
        return False

    @property
    def reason(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class Degraded(Generic[T]):
    """Fallback value substituted after a provider or parse failure."""

    value: T
    reason: str

    @property
    def degraded(self) -> bool:
        return True


Outcome = Union[Ok[T], Degraded[T]]


class Sentiment(BaseModel):
    score: float = Field(default=0.0, ge=-1.0, le=1.0)
    label: SentimentLabel = "neutral"


class ExtractedFeatures(BaseModel):
    entities: List[str] = Field(default_factory=list, max_length=10)
    actions: List[str] = Field(default_factory=list, max_length=10)
    results: List[str] = Field(default_factory=list, max_length=10)
    sentiment: Sentiment = Field(default_factory=Sentiment)


class EmployeeMetadata(BaseModel):
    name: str = "Employee"
    role: str = "Team Member"
    prior_summary: str = ""


class QuestionRecording(BaseModel):
    question_id: str
    question_text: str
    audio_base64: Optional[str] = None
    transcript: Optional[str] = None
    duration: float = 0.0
    recorded_at: Optional[str] = None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        for key in ("text", "description", "title", "name"):
            if isinstance(value.get(key), str):
                return value[key]
        return ", ".join(f"{k}: {v}" for k, v in value.items())
    return str(value)


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"expected a list, got {type(value).__name__}")
    return [_as_text(item) for item in value]


class Competency(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="", validation_alias=AliasChoices("name", "competency"))
    rating: str = ""
    evidence: str = ""

    @field_validator("name", "rating", "evidence", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class LearningRecommendation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recommendation: str = Field(default="", validation_alias=AliasChoices("recommendation", "title", "text"))
    priority: str = "medium"
    type: str = "course"
    url: Optional[str] = None

    @field_validator("recommendation", "priority", "type", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class GrowthPath(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    short_term: str = Field(default="", validation_alias=AliasChoices("short_term", "shortTerm"))
    mid_term: str = Field(default="", validation_alias=AliasChoices("mid_term", "midTerm"))
    long_term: str = Field(default="", validation_alias=AliasChoices("long_term", "longTerm"))
    milestones: List[str] = Field(default_factory=list)

    @field_validator("short_term", "mid_term", "long_term", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("milestones", mode="before")
    @classmethod
    def _coerce_milestones(cls, value: Any) -> List[str]:
        return _as_list(value)


class FeedbackDraft(BaseModel):
    """Structured draft returned by the synthesizer; every key always present."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str = ""
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    competencies: List[Competency] = Field(
        default_factory=list,
        validation_alias=AliasChoices("competencies", "mapped_competencies"),
    )
    learning_recommendations: List[LearningRecommendation] = Field(
        default_factory=list,
        validation_alias=AliasChoices("learning_recommendations", "learningRecommendations", "learning_recs"),
    )
    growth_path: GrowthPath = Field(
        default_factory=GrowthPath,
        validation_alias=AliasChoices("growth_path", "growthPath"),
    )

    @field_validator("summary", mode="before")
    @classmethod
    def _coerce_summary(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("strengths", "improvements", mode="before")
    @classmethod
    def _coerce_items(cls, value: Any) -> List[str]:
        return _as_list(value)

    @field_validator("competencies", mode="before")
    @classmethod
    def _coerce_competencies(cls, value: Any) -> List[Any]:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"expected a list, got {type(value).__name__}")
        return list(value)

    @field_validator("learning_recommendations", mode="before")
    @classmethod
    def _coerce_recs(cls, value: Any) -> List[Any]:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"expected a list, got {type(value).__name__}")
        return [{"recommendation": item} if isinstance(item, str) else item for item in value]

    @field_validator("growth_path", mode="before")
    @classmethod
    def _coerce_growth(cls, value: Any) -> Any:
        return value if value is not None else {}


class AiFairness(BaseModel):
    fairness: float = Field(ge=0.0, le=1.0)
    issues: List[str] = Field(default_factory=list)

    @field_validator("fairness", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError(f"fairness must be a number, got {type(value).__name__}")
        score = float(value)
        if score != score:
            raise ValueError("fairness must be a number, got NaN")
        if score > 1.0:  # percentage scale
            score = score / 100.0
        return max(0.0, min(1.0, score))

    @field_validator("issues", mode="before")
    @classmethod
    def _coerce_issues(cls, value: Any) -> List[str]:
        return _as_list(value)


class FairnessAssessment(BaseModel):
    lexicon_hits: List[str] = Field(default_factory=list)
    ai_fairness_score: float = Field(ge=0.0, le=1.0)
    ai_issues: List[str] = Field(default_factory=list)
    combined_has_bias: bool
    ai_degraded: bool = False


__all__ = [
    "Tone",
    "RecordingMode",
    "SessionStatus",
    "SentimentLabel",
    "AuditAction",
    "Ok",
    "Degraded",
    "Outcome",
    "Sentiment",
    "ExtractedFeatures",
    "EmployeeMetadata",
    "QuestionRecording",
    "Competency",
    "LearningRecommendation",
    "GrowthPath",
    "FeedbackDraft",
    "AiFairness",
    "FairnessAssessment",
]
