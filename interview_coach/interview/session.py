"""
Turn-taking interview session.

The session is the only owner of the transcript, the score series and the
question counter. It is driven by explicit commands (start, submit_utterance,
stop) and by notifications from the speech adapter, and publishes everything
else through the event bus.

States:
    IDLE -> OPENING -> SPEAKING -> AWAITING_CANDIDATE -> PROCESSING -> SPEAKING ...
    any active state -> FINALIZING -> CLOSED
    OPENING / AWAITING_CANDIDATE / PROCESSING -> ERROR
"""
import asyncio
import logging
import time
import uuid
from enum import Enum
from typing import Callable, List, Optional, Set, Tuple

from .errors import InterviewError, TransportError, ParseError, CaptureError
from .events import (
    EventType, InterviewEventBus,
    SessionStartedEvent, StateChangedEvent, QuestionAskedEvent, TurnScoredEvent,
    UtteranceIgnoredEvent, ErrorOccurredEvent, SessionFinalizedEvent,
)
from .models import (
    ConversationTurn, InterviewResult, QuestionMeta, ScoringInputs, SessionContext, Speaker,
)
from .prompts import build_system_prompt, build_opening_prompt, build_turn_prompt
from .schemas import parse_opening, parse_turn_result
from .scoring import ScoringAggregator
from ..config import MAX_QUESTIONS, CONVERSATION_WINDOW, OPENING_MAX_TOKENS, TURN_MAX_TOKENS

logger = logging.getLogger("session")


class SessionState(str, Enum):
    IDLE = "idle"
    OPENING = "opening"
    AWAITING_CANDIDATE = "awaiting_candidate"
    PROCESSING = "processing"
    SPEAKING = "speaking"
    FINALIZING = "finalizing"
    CLOSED = "closed"
    ERROR = "error"


ACTIVE_STATES = frozenset({
    SessionState.OPENING,
    SessionState.AWAITING_CANDIDATE,
    SessionState.PROCESSING,
    SessionState.SPEAKING,
    SessionState.ERROR,
})


class InterviewSession:
    """
    One interview, from the opening question to the final result.

    A session runs once: after CLOSED it is inert and a new instance is
    needed for another interview.
    """

    def __init__(self,
                 context: SessionContext,
                 gateway,
                 speech,
                 aggregator: Optional[ScoringAggregator] = None,
                 event_bus: Optional[InterviewEventBus] = None,
                 max_questions: int = MAX_QUESTIONS,
                 window_size: int = CONVERSATION_WINDOW,
                 session_id: Optional[str] = None):
        if max_questions < 1:
            raise ValueError("max_questions must be at least 1")
        if window_size < 1:
            raise ValueError("window_size must be at least 1")

        self.context = context
        self.gateway = gateway
        self.speech = speech
        self.aggregator = aggregator or ScoringAggregator(gateway)
        self.event_bus = event_bus or InterviewEventBus()
        self.max_questions = max_questions
        self.window_size = window_size
        self.session_id = session_id or uuid.uuid4().hex[:12]

        self._state = SessionState.IDLE
        self._transcript: List[ConversationTurn] = []
        self._scores: List[int] = []
        self._question_meta: List[QuestionMeta] = []
        self._question_count = 0
        self._latest_question: Optional[str] = None
        self._latest_feedback: Optional[str] = None
        self._live_transcript = ""
        self._error: Optional[str] = None
        self._result: Optional[InterviewResult] = None
        self._processing = False
        self._finalize_future: Optional[asyncio.Future] = None
        self._utterance_tasks: Set[asyncio.Task] = set()

        speech.on_utterance = self._on_utterance
        speech.on_partial = self._on_partial
        speech.on_playback_ended = self._on_playback_ended
        speech.on_capture_error = self._on_capture_error

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state in ACTIVE_STATES

    @property
    def transcript(self) -> Tuple[ConversationTurn, ...]:
        return tuple(self._transcript)

    @property
    def scores(self) -> Tuple[int, ...]:
        return tuple(self._scores)

    @property
    def question_count(self) -> int:
        """Completed candidate turns so far."""
        return self._question_count

    @property
    def latest_question(self) -> Optional[str]:
        return self._latest_question

    @property
    def latest_feedback(self) -> Optional[str]:
        return self._latest_feedback

    @property
    def live_transcript(self) -> str:
        return self._live_transcript

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def result(self) -> Optional[InterviewResult]:
        return self._result

    @property
    def is_listening(self) -> bool:
        return self.speech.is_listening

    @property
    def is_speaking(self) -> bool:
        return self.speech.is_speaking

    @property
    def is_processing(self) -> bool:
        return self._processing

    def on_score_update(self, callback: Callable[[int, int], None]) -> Callable:
        """Call `callback(score, question_index)` after every scored answer."""
        def handler(event: TurnScoredEvent) -> None:
            callback(event.score, event.question_index)

        self.event_bus.subscribe(EventType.TURN_SCORED, handler)
        return handler

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Ask the opening question. Failures leave the session in ERROR."""
        if self._state != SessionState.IDLE:
            raise InterviewError(f"Session already started (state: {self._state.value})")

        logger.info(f"Starting interview {self.session_id}: {self.context.level.value}-level {self.context.role}, "
                    f"resume={self.context.has_resume}, job description={self.context.has_job_description}")
        self._emit(SessionStartedEvent(
            self.session_id, time.time(), self.context.role, self.context.level.value, self.max_questions
        ))
        self._transition(SessionState.OPENING)

        try:
            raw = await self.gateway.acomplete(
                build_system_prompt(self.context),
                build_opening_prompt(self.context),
                OPENING_MAX_TOKENS,
            )
            opening = parse_opening(raw)
        except (TransportError, ParseError) as e:
            if self._state == SessionState.OPENING:
                self._fail(e, "opening")
            return

        if self._state != SessionState.OPENING:
            logger.info("Session left OPENING while the opening question was generated; discarding it")
            return

        self._ask(opening.question)

    async def submit_utterance(self, text: str) -> bool:
        """
        Process one finished candidate answer.

        Returns:
            True if the answer was scored and committed, False if it was
            ignored, failed, or arrived after the session was stopped.
        """
        text = text.strip()
        if not text:
            return False

        if self._processing or not self._accepts_utterance():
            logger.debug(f"Ignoring utterance in state {self._state.value} (processing={self._processing}): {text[:80]!r}")
            self._emit(UtteranceIgnoredEvent(self.session_id, time.time(), text, self._state.value))
            return False

        # Re-entrancy guard: set before the first await
        self._processing = True
        self.speech.set_processing(True)
        self.speech.stop_capture()
        self._error = None
        self._live_transcript = ""
        self._transition(SessionState.PROCESSING)

        candidate_turn = ConversationTurn(Speaker.CANDIDATE, text)
        window = (self._transcript + [candidate_turn])[-self.window_size:]
        turn_index = self._question_count + 1

        try:
            raw = await self.gateway.acomplete(
                build_system_prompt(self.context),
                build_turn_prompt(self.context, window, text, turn_index),
                TURN_MAX_TOKENS,
            )
            turn = parse_turn_result(raw)
        except (TransportError, ParseError) as e:
            if self._state == SessionState.PROCESSING:
                self._fail(e, "processing")
            return False
        finally:
            self._processing = False
            self.speech.set_processing(False)

        if self._state != SessionState.PROCESSING:
            logger.info(f"Discarding turn result that arrived in state {self._state.value}")
            return False

        if turn.was_clamped:
            logger.warning(f"Turn score {turn.raw_score} out of range, clamped to {turn.score}")

        # Nothing is committed until the response validated
        self._transcript.append(candidate_turn)
        self._scores.append(turn.score)
        self._question_count += 1
        self._question_meta.append(QuestionMeta(
            id=f"q{self._question_count}", question=self._latest_question or "", score=turn.score
        ))
        self._latest_feedback = turn.feedback
        logger.info(f"Question {self._question_count} scored {turn.score}/10")
        self._emit(TurnScoredEvent(self.session_id, time.time(), turn.score, self._question_count, turn.feedback))

        if self._question_count >= self.max_questions:
            logger.info(f"Reached {self.max_questions} questions, finalizing automatically")
            await self.finalize()
            return True

        self._ask(turn.question)
        return True

    async def stop(self) -> InterviewResult:
        """Manual end of the interview."""
        logger.info(f"Stop requested in state {self._state.value}")
        return await self.finalize()

    async def finalize(self) -> InterviewResult:
        """
        Cancel speech, score the interview and close the session.

        Safe to call more than once; every call returns the same result.
        """
        if self._result is not None:
            return self._result
        if self._finalize_future is None:
            self._finalize_future = asyncio.ensure_future(self._finalize())
        return await asyncio.shield(self._finalize_future)

    def resume_capture(self) -> bool:
        """Leave ERROR and listen for an answer to the outstanding question."""
        if self._state != SessionState.ERROR or not self._has_outstanding_question():
            return False
        self._error = None
        self._transition(SessionState.AWAITING_CANDIDATE)
        self.speech.start_capture()
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _finalize(self) -> InterviewResult:
        self._transition(SessionState.FINALIZING)
        self.speech.close()
        self._live_transcript = ""

        inputs = ScoringInputs(
            transcript=tuple(self._transcript),
            role=self.context.role,
            level=self.context.level,
            resume_text=self.context.resume_text,
            question_meta=tuple(self._question_meta),
        )
        result = await self.aggregator.compute_score(inputs)

        self._result = result
        self._transition(SessionState.CLOSED)
        self._emit(SessionFinalizedEvent(
            self.session_id, time.time(), result.overall, result.questions_answered, result.used_fallback
        ))
        return result

    def _ask(self, question: str) -> None:
        self._transcript.append(ConversationTurn(Speaker.INTERVIEWER, question))
        self._latest_question = question
        self._emit(QuestionAskedEvent(self.session_id, time.time(), question, self._question_count + 1))
        self._transition(SessionState.SPEAKING)
        self.speech.play(question)

    def _has_outstanding_question(self) -> bool:
        return bool(self._transcript) and self._transcript[-1].speaker == Speaker.INTERVIEWER

    def _accepts_utterance(self) -> bool:
        if self._state == SessionState.AWAITING_CANDIDATE:
            return True
        return self._state == SessionState.ERROR and self._has_outstanding_question()

    def _fail(self, error: Exception, component: str) -> None:
        self._error = str(error)
        logger.error(f"{type(error).__name__} during {component}: {error}")
        self._emit(ErrorOccurredEvent(self.session_id, time.time(), type(error).__name__, str(error), component))
        self._transition(SessionState.ERROR)

    def _transition(self, new_state: SessionState) -> None:
        previous = self._state
        if previous == new_state:
            return
        self._state = new_state
        logger.info(f"State {previous.value} -> {new_state.value}")
        self._emit(StateChangedEvent(self.session_id, time.time(), previous.value, new_state.value))

    def _emit(self, event) -> None:
        self.event_bus.emit(event)

    # Speech adapter notifications

    def _on_utterance(self, text: str) -> None:
        task = asyncio.get_running_loop().create_task(self.submit_utterance(text))
        self._utterance_tasks.add(task)
        task.add_done_callback(self._utterance_tasks.discard)

    def _on_partial(self, text: str) -> None:
        if self._state == SessionState.AWAITING_CANDIDATE:
            self._live_transcript = text

    def _on_playback_ended(self) -> None:
        if self._state != SessionState.SPEAKING:
            return
        self._transition(SessionState.AWAITING_CANDIDATE)
        self.speech.start_capture()

    def _on_capture_error(self, error: CaptureError) -> None:
        if self._state == SessionState.AWAITING_CANDIDATE:
            self._fail(error, "speech")
