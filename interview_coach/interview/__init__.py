"""Interview system components.

This module contains the business logic for conducting voice interview practice:
the turn-taking session, prompt construction, response validation, scoring
and coaching.
"""

# Core session
from .session import InterviewSession, SessionState

# Data models
from .models import (
    ExperienceLevel, Speaker, ConversationTurn, SessionContext,
    ScoreBreakdown, QuestionMeta, ScoringInputs, InterviewResult,
    ProfileAnalysis, InterviewSummary
)

# Errors
from .errors import InterviewError, TransportError, GatewayError, ParseError, CaptureError

# Structured schemas
from .schemas import parse_opening, parse_turn_result, parse_scoring

# Scoring and coaching
from .scoring import ScoringAggregator
from .coaching import InterviewCoach

# Event system
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    EventType, InterviewEvent, SessionStartedEvent, StateChangedEvent,
    QuestionAskedEvent, TurnScoredEvent, UtteranceIgnoredEvent,
    ErrorOccurredEvent, SessionFinalizedEvent
)

__all__ = [
    # Session
    "InterviewSession", "SessionState",

    # Data models
    "ExperienceLevel", "Speaker", "ConversationTurn", "SessionContext",
    "ScoreBreakdown", "QuestionMeta", "ScoringInputs", "InterviewResult",
    "ProfileAnalysis", "InterviewSummary",

    # Errors
    "InterviewError", "TransportError", "GatewayError", "ParseError", "CaptureError",

    # Schemas
    "parse_opening", "parse_turn_result", "parse_scoring",

    # Scoring and coaching
    "ScoringAggregator", "InterviewCoach",

    # Events
    "InterviewEventBus", "EventLogger", "InterviewMetrics",
    "EventType", "InterviewEvent", "SessionStartedEvent", "StateChangedEvent",
    "QuestionAskedEvent", "TurnScoredEvent", "UtteranceIgnoredEvent",
    "ErrorOccurredEvent", "SessionFinalizedEvent",
]
