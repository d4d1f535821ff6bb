"""
Final interview scoring.

One scoring request per interview. The aggregator never fails outward: a
transport or parse failure produces a deterministic fallback result so
there is always something to render.
"""
import logging

from .errors import TransportError, ParseError
from .models import InterviewResult, ScoreBreakdown, ScoringInputs, clamp
from .prompts import build_scoring_prompt, build_scoring_system_prompt
from .schemas import parse_scoring
from ..config import (
    SCORING_MAX_TOKENS,
    SCORING_TEMPERATURE,
    OVERALL_DIVERGENCE_WARNING,
    MAX_HIGHLIGHTS,
    MAX_SUGGESTIONS,
    FALLBACK_BREAKDOWN,
    FALLBACK_HIGHLIGHTS,
    FALLBACK_SUGGESTIONS,
)

logger = logging.getLogger("scoring")


class ScoringAggregator:
    """Turns a finished transcript into an InterviewResult."""

    def __init__(self, gateway, max_tokens: int = SCORING_MAX_TOKENS):
        self.gateway = gateway
        self.max_tokens = max_tokens

    async def compute_score(self, inputs: ScoringInputs) -> InterviewResult:
        """
        Score the whole interview.

        The weighted recomputation of the breakdown is the overall score; the
        model's own "overall" is clamped and kept only for comparison.

        Args:
            inputs: Transcript plus résumé, question metadata, role and level

        Returns:
            InterviewResult (the fallback result if the request or parsing fails)
        """
        questions_answered = inputs.questions_answered
        logger.info(f"Computing final score for {questions_answered} answered question(s)")

        try:
            raw = await self.gateway.acomplete(
                build_scoring_system_prompt(),
                build_scoring_prompt(inputs),
                self.max_tokens,
                temperature=SCORING_TEMPERATURE,
            )
            scored = parse_scoring(raw)
        except (TransportError, ParseError) as e:
            logger.warning(f"Scoring failed, using fallback result: {e}")
            return self.fallback_result(questions_answered)

        overall = scored.breakdown.weighted_overall()
        reported = None
        if scored.reported_overall is not None:
            reported = clamp(scored.reported_overall, 0, 100)
            if abs(reported - overall) > OVERALL_DIVERGENCE_WARNING:
                logger.warning(
                    f"Model-reported overall {reported} diverges from weighted overall {overall}; "
                    f"using weighted value"
                )

        result = InterviewResult(
            overall=overall,
            breakdown=scored.breakdown,
            highlights=tuple(scored.highlights[:MAX_HIGHLIGHTS]),
            improvement_suggestions=tuple(scored.improvement_suggestions[:MAX_SUGGESTIONS]),
            questions_answered=questions_answered,
            raw_notes=scored.raw_notes,
            reported_overall=reported,
        )
        logger.info(f"Final score: {result.overall} ({result.breakdown.to_dict()})")
        return result

    def fallback_result(self, questions_answered: int) -> InterviewResult:
        breakdown = ScoreBreakdown(**FALLBACK_BREAKDOWN)
        return InterviewResult(
            overall=breakdown.weighted_overall(),
            breakdown=breakdown,
            highlights=FALLBACK_HIGHLIGHTS[:MAX_HIGHLIGHTS],
            improvement_suggestions=FALLBACK_SUGGESTIONS[:MAX_SUGGESTIONS],
            questions_answered=questions_answered,
            used_fallback=True,
        )
