"""
Coaching around the interview: profile analysis before it, summary and
feedback chat after it.

Every language model failure here degrades to static content.
"""
import logging
from typing import Dict, List, Sequence

from .errors import TransportError, ParseError
from .models import InterviewSummary, ProfileAnalysis, SessionContext
from .prompts import (
    InterviewPrompts,
    build_profile_prompt,
    build_summary_prompt,
    build_coach_system_prompt,
)
from .schemas import parse_profile, parse_summary
from ..config import COACH_MAX_TOKENS, REPLY_MAX_TOKENS, SCORING_TEMPERATURE, CONVERSATION_TEMPERATURE

logger = logging.getLogger("coaching")

DEFAULT_AVERAGE_SCORE = 6.0
PROFILE_MATCH_WITHOUT_DOCUMENTS = 50
PROFILE_MATCH_ON_FAILURE = 60

FOCUS_AREAS: Dict[str, Dict[str, List[str]]] = {
    "engineer": {
        "Entry": ["Data structures & algorithms", "Web fundamentals", "Problem solving basics"],
        "Mid": ["System design", "Architecture decisions", "Scaling"],
        "Senior": ["Leadership", "Mentoring", "Technical strategy"],
    },
    "sales": {
        "Entry": ["Sales process", "Objection handling", "Prospecting"],
        "Mid": ["Deal closing", "Client relationships", "Pipeline management"],
        "Senior": ["Strategy", "Team leadership", "Revenue growth"],
    },
    "retail": {
        "Entry": ["Customer service", "Product knowledge", "Teamwork"],
        "Mid": ["Training", "Floor management", "Sales techniques"],
        "Senior": ["Store operations", "Team development", "KPI management"],
    },
}
GENERIC_FOCUS_AREAS = ["Communication", "Problem-solving", "Adaptability"]


def default_focus_areas(role: str, level: str) -> List[str]:
    return list(FOCUS_AREAS.get(role.lower(), {}).get(level, GENERIC_FOCUS_AREAS))


def average_score(scores: Sequence[int]) -> float:
    """Mean of the 1-10 turn scores, rounded to one decimal."""
    if not scores:
        return 0.0
    return round(sum(scores) / len(scores), 1)


class InterviewCoach:
    """Pre- and post-interview coaching backed by the completion gateway."""

    def __init__(self, gateway):
        self.gateway = gateway
        self.fallbacks = InterviewPrompts.fallback_messages()

    async def analyze_profile(self, context: SessionContext) -> ProfileAnalysis:
        """Estimate how well the résumé fits the role and what to focus on."""
        focus_areas = default_focus_areas(context.role, context.level.value)

        if not context.has_resume and not context.has_job_description:
            return ProfileAnalysis(match_percentage=PROFILE_MATCH_WITHOUT_DOCUMENTS, focus_areas=focus_areas)

        try:
            raw = await self.gateway.acomplete(
                "", build_profile_prompt(context), COACH_MAX_TOKENS, temperature=SCORING_TEMPERATURE
            )
            analysis = parse_profile(raw)
        except (TransportError, ParseError) as e:
            logger.warning(f"Profile analysis failed, using defaults: {e}")
            return ProfileAnalysis(match_percentage=PROFILE_MATCH_ON_FAILURE, focus_areas=focus_areas)

        if not analysis.focus_areas:
            analysis.focus_areas = focus_areas
        logger.info(f"Profile match {analysis.match_percentage}%")
        return analysis

    async def summarize(self, context: SessionContext, scores: Sequence[int],
                        responses: Sequence[str] = ()) -> InterviewSummary:
        if not scores:
            return InterviewSummary(
                overall_score=0,
                strengths=list(self.fallbacks["empty_strengths"]),
                gaps=list(self.fallbacks["empty_gaps"]),
                recommendations=list(self.fallbacks["empty_recommendations"]),
            )

        overall = average_score(scores)
        try:
            raw = await self.gateway.acomplete(
                "", build_summary_prompt(context, scores, responses), COACH_MAX_TOKENS,
                temperature=SCORING_TEMPERATURE,
            )
            payload = parse_summary(raw)
        except (TransportError, ParseError) as e:
            logger.warning(f"Interview summary failed, using static summary: {e}")
            return InterviewSummary(
                overall_score=overall,
                strengths=list(self.fallbacks["summary_strengths"]),
                gaps=list(self.fallbacks["summary_gaps"]),
                recommendations=list(self.fallbacks["summary_recommendations"]),
            )

        return InterviewSummary(
            overall_score=overall,
            strengths=payload.strengths,
            gaps=payload.gaps,
            recommendations=payload.recommendations,
        )

    async def reply(self, message: str, context: SessionContext, scores: Sequence[int] = ()) -> str:
        """Answer a follow-up question from the candidate in 2-3 sentences."""
        average = average_score(scores) if scores else DEFAULT_AVERAGE_SCORE
        try:
            text = await self.gateway.acomplete(
                build_coach_system_prompt(context, average), message, REPLY_MAX_TOKENS,
                temperature=CONVERSATION_TEMPERATURE,
            )
        except TransportError as e:
            logger.warning(f"Coach reply failed: {e}")
            return self.fallbacks["coach_reply"][0]

        text = text.strip()
        return text or self.fallbacks["coach_reply"][0]
