"""
Testing infrastructure with mock services for the interview system.

The same scripted collaborators back the offline --demo mode of the runner.
"""
import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .errors import TransportError
from .events import InterviewEventBus, EventLogger, InterviewMetrics, InterviewEvent
from .models import ExperienceLevel, InterviewResult, SessionContext
from .session import InterviewSession
from ..config import TURN_SCORE_MIN, TURN_SCORE_MAX
from ..infrastructure.speech.adapter import SpeechAdapter

MockResponse = Union[str, Exception]


class MockCompletionGateway:
    """
    Completion gateway returning scripted responses in order.

    A response that is an Exception instance is raised instead of returned.
    When `hold` is set, acomplete() waits for it before answering, which
    keeps a request in flight for as long as a test needs.
    """

    def __init__(self, mock_responses: Sequence[MockResponse] = (), hold: Optional[asyncio.Event] = None):
        self.mock_responses = list(mock_responses)
        self.current_response_idx = 0
        self.request_history: List[Dict[str, Any]] = []
        self.hold = hold

    def complete(self, system_prompt: str, prompt: str, max_tokens: int, temperature: float = 0.7) -> str:
        self.request_history.append({
            "system_prompt": system_prompt,
            "prompt": prompt,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })

        if self.current_response_idx >= len(self.mock_responses):
            raise TransportError("No more mock responses")
        response = self.mock_responses[self.current_response_idx]
        self.current_response_idx += 1

        if isinstance(response, Exception):
            raise response
        return response

    async def acomplete(self, system_prompt: str, prompt: str, max_tokens: int, temperature: float = 0.7) -> str:
        if self.hold is not None:
            await self.hold.wait()
        return self.complete(system_prompt, prompt, max_tokens, temperature)

    @property
    def call_count(self) -> int:
        return len(self.request_history)


class DemoCompletionGateway(MockCompletionGateway):
    """
    Offline gateway that answers every request kind with plausible JSON.

    Scores follow the length of the answer so the demo shows some variation.
    """

    QUESTIONS = [
        "What's a project you're proud of, and what was your part in it?",
        "What was the hardest trade-off you had to make on that project?",
        "How did you know it was the right call afterwards?",
        "Tell me how you work with people who disagree with you.",
        "What would you like to get better at over the next year?",
    ]

    def complete(self, system_prompt: str, prompt: str, max_tokens: int, temperature: float = 0.7) -> str:
        self.request_history.append({"system_prompt": system_prompt, "prompt": prompt, "max_tokens": max_tokens})

        if "objective scoring engine" in system_prompt:
            return json.dumps({
                "overall": 70,
                "breakdown": {"roleFit": 72, "technical": 68, "structure": 70, "communication": 75, "initiative": 62},
                "highlights": [{"q_id": "q1", "quote": "Answered every question", "why": "stayed engaged"}],
                "improvementSuggestions": ["Quantify the impact of your work", "Name the trade-offs explicitly"],
                "raw_notes": "Offline demo scoring",
            })
        if "Candidate just said" in prompt:
            answered = sum(1 for r in self.request_history if "Candidate just said" in r["prompt"])
            utterance = prompt.split("Candidate just said:", 1)[1].split("\n", 1)[0]
            score = max(TURN_SCORE_MIN, min(TURN_SCORE_MAX, 3 + len(utterance.split()) // 5))
            return json.dumps({
                "score": score,
                "feedback": "Thanks, that gives me a clearer picture.",
                "question": self.QUESTIONS[(answered - 1) % len(self.QUESTIONS)],
                "thinking": "demo",
            })
        if "Generate JSON with" in prompt:
            return json.dumps({
                "strengths": ["Stayed engaged throughout"],
                "gaps": ["Answers could use more concrete numbers"],
                "recommendations": ["Practice the STAR structure"],
            })
        if "matchPercentage" in prompt:
            return json.dumps({"matchPercentage": 70, "gaps": [], "strengths": [], "focusAreas": []})
        if "beginning a conversational interview" in prompt:
            return json.dumps({
                "question": "Hi! Thanks for making the time. What kind of work have you enjoyed most so far?",
                "thinking": "demo opening",
            })
        return "Keep your answers specific and you'll do great."


class MockCaptureService:
    """
    Capture service driven by the test.

    say()/interim()/fail()/end() play the part of the speech recognizer.
    """

    def __init__(self):
        self.started = 0
        self.stopped = 0
        self.active = False
        self._on_result: Optional[Callable[[str, bool], None]] = None
        self._on_error: Optional[Callable[[str], None]] = None
        self._on_end: Optional[Callable[[], None]] = None

    def start(self, on_result, on_error, on_end) -> None:
        self.started += 1
        self.active = True
        self._on_result = on_result
        self._on_error = on_error
        self._on_end = on_end

    def stop(self) -> None:
        self.stopped += 1
        self.active = False

    def say(self, text: str) -> None:
        self._on_result(text, True)

    def interim(self, text: str) -> None:
        self._on_result(text, False)

    def fail(self, code: str) -> None:
        self.active = False
        self._on_error(code)

    def end(self) -> None:
        self.active = False
        self._on_end()


class MockPlaybackService:
    """Playback service that records what would have been spoken."""

    def __init__(self, hold: Optional[asyncio.Event] = None):
        self.spoken_messages: List[str] = []
        self.cancelled = 0
        self.hold = hold

    async def speak(self, text: str) -> None:
        self.spoken_messages.append(text)
        if self.hold is not None:
            await self.hold.wait()
        else:
            await asyncio.sleep(0)

    def cancel(self) -> None:
        self.cancelled += 1


def opening_response(question: str = "Hi! What kind of work have you enjoyed most so far?") -> str:
    return json.dumps({"question": question, "thinking": "warm opener"})


def turn_response(score: Any = 7, question: str = "Can you tell me more about that?",
                  feedback: str = "Good detail.") -> str:
    return json.dumps({"score": score, "feedback": feedback, "question": question, "thinking": "ok"})


def scoring_response(overall: Any = 70, **breakdown: int) -> str:
    values = {"roleFit": 70, "technical": 70, "structure": 70, "communication": 70, "initiative": 70}
    values.update(breakdown)
    return json.dumps({
        "overall": overall,
        "breakdown": values,
        "highlights": ["Clear examples"],
        "improvementSuggestions": ["Be more concise"],
        "raw_notes": "",
    })


def create_mock_session_setup(gateway_responses: Sequence[MockResponse] = (),
                              context: Optional[SessionContext] = None,
                              max_questions: int = 15,
                              silence_seconds: float = 0.01,
                              restart_delay: float = 0.01,
                              gateway: Optional[MockCompletionGateway] = None,
                              playback: Optional[MockPlaybackService] = None) -> Dict[str, Any]:
    """Create a complete mock interview setup for testing."""
    gateway = gateway or MockCompletionGateway(gateway_responses)
    capture = MockCaptureService()
    playback = playback or MockPlaybackService()
    speech = SpeechAdapter(capture, playback, silence_seconds=silence_seconds, restart_delay=restart_delay)

    event_bus = InterviewEventBus()
    metrics = InterviewMetrics()
    events: List[InterviewEvent] = []
    event_bus.subscribe_all(EventLogger().handle_event)
    event_bus.subscribe_all(metrics.handle_event)
    event_bus.subscribe_all(events.append)

    context = context or SessionContext(role="engineer", level=ExperienceLevel.MID)
    session = InterviewSession(
        context, gateway, speech, event_bus=event_bus, max_questions=max_questions
    )

    return {
        "session": session,
        "gateway": gateway,
        "capture": capture,
        "playback": playback,
        "speech": speech,
        "event_bus": event_bus,
        "metrics": metrics,
        "events": events,
    }


class InterviewResultValidator:
    """Helper for validating interview results."""

    @staticmethod
    def validate_result(result: InterviewResult) -> List[str]:
        """
        Validate interview result and return list of issues found.

        Returns:
            List of validation error messages (empty if valid)
        """
        issues = []

        if not 0 <= result.overall <= 100:
            issues.append(f"Overall score out of range: {result.overall}")

        for name, value in result.breakdown.to_dict().items():
            if not isinstance(value, int) or not 0 <= value <= 100:
                issues.append(f"Breakdown {name} out of range: {value}")

        if result.questions_answered < 0:
            issues.append("Negative questions answered")

        return issues

    @staticmethod
    def assert_valid_result(result: InterviewResult) -> None:
        issues = InterviewResultValidator.validate_result(result)
        if issues:
            raise AssertionError(f"Invalid interview result: {'; '.join(issues)}")
