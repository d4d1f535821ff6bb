"""
Data models for the interview system.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..config import SCORE_WEIGHTS


class ExperienceLevel(str, Enum):
    """Seniority the candidate is practising for."""
    ENTRY = "Entry"
    MID = "Mid"
    SENIOR = "Senior"

    @classmethod
    def parse(cls, value: str) -> "ExperienceLevel":
        """Accept 'mid', 'MID', 'Mid' and so on."""
        for level in cls:
            if level.value.lower() == str(value).strip().lower():
                return level
        raise ValueError(f"Unknown experience level: {value!r} (expected Entry, Mid or Senior)")


class Speaker(str, Enum):
    """Who produced a conversation turn."""
    INTERVIEWER = "interviewer"
    CANDIDATE = "candidate"


@dataclass(frozen=True)
class ConversationTurn:
    """Represents a single entry in the conversation transcript."""
    speaker: Speaker
    text: str

    @property
    def label(self) -> str:
        return "Interviewer" if self.speaker == Speaker.INTERVIEWER else "Candidate"


@dataclass(frozen=True)
class SessionContext:
    """Everything the prompts know about the candidate and the target role."""
    role: str
    level: ExperienceLevel
    resume_text: Optional[str] = None
    job_description: Optional[str] = None

    @property
    def has_resume(self) -> bool:
        return bool(self.resume_text and self.resume_text.strip())

    @property
    def has_job_description(self) -> bool:
        return bool(self.job_description and self.job_description.strip())


def clamp(value: float, low: int, high: int) -> int:
    """Round half up to an integer and clamp into [low, high]."""
    return int(max(low, min(high, math.floor(value + 0.5))))


@dataclass(frozen=True)
class ScoreBreakdown:
    """The five weighted sub-scores, each 0-100."""
    role_fit: int
    technical: int
    structure: int
    communication: int
    initiative: int

    def clamped(self) -> "ScoreBreakdown":
        return ScoreBreakdown(
            role_fit=clamp(self.role_fit, 0, 100),
            technical=clamp(self.technical, 0, 100),
            structure=clamp(self.structure, 0, 100),
            communication=clamp(self.communication, 0, 100),
            initiative=clamp(self.initiative, 0, 100),
        )

    def weighted_overall(self) -> int:
        """Overall score from the fixed weights, rounded and clamped to 0-100."""
        total = sum(getattr(self, name) * weight for name, weight in SCORE_WEIGHTS.items())
        return clamp(total, 0, 100)

    def to_dict(self) -> Dict[str, int]:
        return {
            "roleFit": self.role_fit,
            "technical": self.technical,
            "structure": self.structure,
            "communication": self.communication,
            "initiative": self.initiative,
        }


@dataclass(frozen=True)
class QuestionMeta:
    """One asked-and-answered question, passed to the scoring request."""
    id: str
    question: str
    score: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "question": self.question, "score": self.score}


@dataclass(frozen=True)
class ScoringInputs:
    """Input for the final scoring request."""
    transcript: Tuple[ConversationTurn, ...]
    role: str
    level: ExperienceLevel
    resume_text: Optional[str] = None
    question_meta: Tuple[QuestionMeta, ...] = ()

    def transcript_text(self) -> str:
        return "\n\n".join(f"{turn.label}: {turn.text}" for turn in self.transcript)

    @property
    def questions_answered(self) -> int:
        if self.question_meta:
            return len(self.question_meta)
        return sum(1 for turn in self.transcript if turn.speaker == Speaker.CANDIDATE)


@dataclass(frozen=True)
class InterviewResult:
    """Final interview results, produced once when the session ends."""
    overall: int
    breakdown: ScoreBreakdown
    highlights: Tuple[str, ...] = ()
    improvement_suggestions: Tuple[str, ...] = ()
    questions_answered: int = 0
    raw_notes: str = ""
    # Overall as reported by the model, kept for comparison only
    reported_overall: Optional[int] = None
    used_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "breakdown": self.breakdown.to_dict(),
            "highlights": list(self.highlights),
            "improvementSuggestions": list(self.improvement_suggestions),
            "stats": {"questionsAnswered": self.questions_answered},
            "raw_notes": self.raw_notes,
        }


@dataclass
class ProfileAnalysis:
    """How well the résumé matches the target role."""
    match_percentage: int
    gaps: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    focus_areas: List[str] = field(default_factory=list)


@dataclass
class InterviewSummary:
    """Post-interview summary shown next to the feedback chat."""
    overall_score: float
    strengths: List[str] = field(default_factory=list)
    gaps: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
