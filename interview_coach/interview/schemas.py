"""
Structured schemas for language model output.

Every response the model returns is validated here before any session state
changes. Validation fails closed: a missing or malformed field raises
ParseError instead of being replaced by a default.
"""
import json
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ParseError
from .models import ProfileAnalysis, ScoreBreakdown, clamp
from ..config import TURN_SCORE_MIN, TURN_SCORE_MAX

T = TypeVar("T", bound=BaseModel)


def _require_number(value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("must be a finite number")
    return value


def _require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class OpeningPayload(BaseModel):
    """Opening question: {question, thinking}."""
    model_config = ConfigDict(extra="ignore")

    question: str
    thinking: str = ""

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: str) -> str:
        return _require_text(value)


class TurnPayload(BaseModel):
    """Per-answer result: {score, feedback, question, thinking}."""
    model_config = ConfigDict(extra="ignore")

    score: float
    feedback: str
    question: str
    thinking: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def score_numeric(cls, value: Any) -> Any:
        return _require_number(value)

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: str) -> str:
        return _require_text(value)


class BreakdownPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    role_fit: float = Field(alias="roleFit")
    technical: float
    structure: float
    communication: float
    initiative: float

    @field_validator("role_fit", "technical", "structure", "communication", "initiative", mode="before")
    @classmethod
    def scores_numeric(cls, value: Any) -> Any:
        return _require_number(value)


class HighlightPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    q_id: Optional[str] = None
    quote: str
    why: str = ""

    def as_text(self) -> str:
        return f"{self.quote} ({self.why})" if self.why else self.quote


class ScoringPayload(BaseModel):
    """Final scoring: {overall, breakdown, highlights, improvementSuggestions, raw_notes}."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    overall: Optional[float] = None
    breakdown: BreakdownPayload
    highlights: List[Union[str, HighlightPayload]]
    improvement_suggestions: List[str] = Field(alias="improvementSuggestions")
    raw_notes: str = ""

    @field_validator("overall", mode="before")
    @classmethod
    def overall_numeric(cls, value: Any) -> Any:
        return None if value is None else _require_number(value)


class ProfilePayload(BaseModel):
    """Pre-interview profile analysis."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    match_percentage: float = Field(alias="matchPercentage")
    gaps: List[str]
    strengths: List[str]
    focus_areas: List[str] = Field(alias="focusAreas")

    @field_validator("match_percentage", mode="before")
    @classmethod
    def match_numeric(cls, value: Any) -> Any:
        return _require_number(value)


class SummaryPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    strengths: List[str]
    gaps: List[str]
    recommendations: List[str]


@dataclass(frozen=True)
class OpeningResult:
    question: str
    thinking: str = ""


@dataclass(frozen=True)
class TurnResult:
    """Validated answer evaluation; score is already clamped to 1-10."""
    score: int
    feedback: str
    question: str
    thinking: str = ""
    raw_score: Optional[float] = None

    @property
    def was_clamped(self) -> bool:
        return self.raw_score is not None and self.raw_score != self.score


@dataclass(frozen=True)
class ScoringResult:
    breakdown: ScoreBreakdown
    highlights: List[str]
    improvement_suggestions: List[str]
    reported_overall: Optional[float] = None
    raw_notes: str = ""


def load_json_object(raw_response: str) -> Dict[str, Any]:
    """
    Parse model text into a JSON object.

    Args:
        raw_response: Text returned by the model (code fences already stripped)

    Returns:
        The decoded JSON object

    Raises:
        ParseError: If no JSON object can be decoded
    """
    try:
        data = json.loads(raw_response)
    except json.JSONDecodeError:
        # Models sometimes wrap the object in a sentence
        start = raw_response.find("{")
        end = raw_response.rfind("}")
        if start == -1 or end <= start:
            raise ParseError("No JSON object found in model response", raw_response)
        try:
            data = json.loads(raw_response[start:end + 1])
        except json.JSONDecodeError as e:
            raise ParseError(f"Could not decode JSON from model response: {e}", raw_response)

    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object, got {type(data).__name__}", raw_response)
    return data


def _validate(schema: Type[T], raw_response: str) -> T:
    data = load_json_object(raw_response)
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ParseError(f"{schema.__name__} validation failed ({fields})", raw_response)


def parse_opening(raw_response: str) -> OpeningResult:
    payload = _validate(OpeningPayload, raw_response)
    return OpeningResult(question=payload.question, thinking=payload.thinking)


def parse_turn_result(raw_response: str) -> TurnResult:
    """Validate a per-answer response, clamping the score into [1, 10]."""
    payload = _validate(TurnPayload, raw_response)
    return TurnResult(
        score=clamp(payload.score, TURN_SCORE_MIN, TURN_SCORE_MAX),
        feedback=payload.feedback.strip(),
        question=payload.question,
        thinking=payload.thinking,
        raw_score=payload.score,
    )


def parse_scoring(raw_response: str) -> ScoringResult:
    payload = _validate(ScoringPayload, raw_response)
    b = payload.breakdown
    breakdown = ScoreBreakdown(
        role_fit=b.role_fit,
        technical=b.technical,
        structure=b.structure,
        communication=b.communication,
        initiative=b.initiative,
    ).clamped()
    highlights = [h if isinstance(h, str) else h.as_text() for h in payload.highlights]
    return ScoringResult(
        breakdown=breakdown,
        highlights=[h.strip() for h in highlights if h.strip()],
        improvement_suggestions=_clean_list(payload.improvement_suggestions),
        reported_overall=payload.overall,
        raw_notes=payload.raw_notes,
    )


def _clean_list(items: List[str]) -> List[str]:
    return [item.strip() for item in items if item.strip()]


def parse_profile(raw_response: str) -> ProfileAnalysis:
    payload = _validate(ProfilePayload, raw_response)
    return ProfileAnalysis(
        match_percentage=clamp(payload.match_percentage, 0, 100),
        gaps=_clean_list(payload.gaps),
        strengths=_clean_list(payload.strengths),
        focus_areas=_clean_list(payload.focus_areas),
    )


def parse_summary(raw_response: str) -> SummaryPayload:
    return _validate(SummaryPayload, raw_response)
