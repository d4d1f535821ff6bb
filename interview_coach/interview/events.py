"""
Event-driven notification for the interview session.

The session never calls presentation code directly; it emits events on a bus
and whoever renders the interview subscribes to them.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of interview events."""
    SESSION_STARTED = "session_started"
    STATE_CHANGED = "state_changed"
    QUESTION_ASKED = "question_asked"
    TURN_SCORED = "turn_scored"
    UTTERANCE_IGNORED = "utterance_ignored"
    ERROR_OCCURRED = "error_occurred"
    SESSION_FINALIZED = "session_finalized"


@dataclass
class InterviewEvent(ABC):
    """Base class for all interview events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class SessionStartedEvent(InterviewEvent):
    """Event fired when the interview begins."""
    def __init__(self, session_id: str, timestamp: float, role: str, level: str, max_questions: int):
        super().__init__(
            event_type=EventType.SESSION_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"role": role, "level": level, "max_questions": max_questions}
        )


@dataclass
class StateChangedEvent(InterviewEvent):
    def __init__(self, session_id: str, timestamp: float, previous: str, current: str):
        super().__init__(
            event_type=EventType.STATE_CHANGED,
            session_id=session_id,
            timestamp=timestamp,
            data={"previous": previous, "current": current}
        )


@dataclass
class QuestionAskedEvent(InterviewEvent):
    """Event fired when a new interviewer question enters the transcript."""
    def __init__(self, session_id: str, timestamp: float, question: str, question_number: int):
        super().__init__(
            event_type=EventType.QUESTION_ASKED,
            session_id=session_id,
            timestamp=timestamp,
            data={"question": question, "question_number": question_number}
        )


@dataclass
class TurnScoredEvent(InterviewEvent):
    """Event fired when a candidate answer has been scored."""
    def __init__(self, session_id: str, timestamp: float, score: int, question_index: int, feedback: str):
        super().__init__(
            event_type=EventType.TURN_SCORED,
            session_id=session_id,
            timestamp=timestamp,
            data={"score": score, "question_index": question_index, "feedback": feedback}
        )

    @property
    def score(self) -> int:
        return self.data["score"]

    @property
    def question_index(self) -> int:
        return self.data["question_index"]


@dataclass
class UtteranceIgnoredEvent(InterviewEvent):
    """Event fired when an utterance arrives while no answer is expected."""
    def __init__(self, session_id: str, timestamp: float, text: str, state: str):
        super().__init__(
            event_type=EventType.UTTERANCE_IGNORED,
            session_id=session_id,
            timestamp=timestamp,
            data={"text": text, "state": state}
        )


@dataclass
class ErrorOccurredEvent(InterviewEvent):
    """Event fired when an error occurs."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, component: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component
            }
        )


@dataclass
class SessionFinalizedEvent(InterviewEvent):
    """Event fired once the final interview result is available."""
    def __init__(self, session_id: str, timestamp: float, overall: int,
                 questions_answered: int, used_fallback: bool):
        super().__init__(
            event_type=EventType.SESSION_FINALIZED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "overall": overall,
                "questions_answered": questions_answered,
                "used_fallback": used_fallback
            }
        )


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for interview system communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type.value}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type.value}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type.value}")

    def emit(self, event: InterviewEvent) -> None:
        """
        Emit an event to all subscribers.

        A failing handler is logged and skipped; it never breaks the session.
        """
        logger.debug(f"Emitting event: {event.event_type.value} for session {event.session_id}")

        for handler in list(self._handlers.get(event.event_type, [])):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type.value}: {e}")

        for handler in list(self._global_handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.log_level = log_level

    def handle_event(self, event: InterviewEvent) -> None:
        self.logger.log(self.log_level, f"Event: {event.event_type.value} | Session: {event.session_id} | Data: {event.data}")


class InterviewMetrics:
    """Collects metrics from interview events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: InterviewEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.SESSION_STARTED:
            self.sessions_started += 1
        elif event.event_type == EventType.SESSION_FINALIZED:
            self.sessions_finalized += 1
            if event.data.get("used_fallback"):
                self.fallback_results += 1
        elif event.event_type == EventType.QUESTION_ASKED:
            self.questions_asked += 1
        elif event.event_type == EventType.TURN_SCORED:
            self.turns_scored += 1
            self.score_total += event.data["score"]
        elif event.event_type == EventType.UTTERANCE_IGNORED:
            self.utterances_ignored += 1
        elif event.event_type == EventType.ERROR_OCCURRED:
            self.errors_occurred += 1

    @property
    def average_turn_score(self) -> Optional[float]:
        if not self.turns_scored:
            return None
        return round(self.score_total / self.turns_scored, 1)

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics snapshot."""
        return {
            "sessions_started": self.sessions_started,
            "sessions_finalized": self.sessions_finalized,
            "questions_asked": self.questions_asked,
            "turns_scored": self.turns_scored,
            "average_turn_score": self.average_turn_score,
            "utterances_ignored": self.utterances_ignored,
            "errors_occurred": self.errors_occurred,
            "fallback_results": self.fallback_results,
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.sessions_started = 0
        self.sessions_finalized = 0
        self.questions_asked = 0
        self.turns_scored = 0
        self.score_total = 0
        self.utterances_ignored = 0
        self.errors_occurred = 0
        self.fallback_results = 0
