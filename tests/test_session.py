import asyncio
import json

import pytest

from interview_coach.interview.errors import InterviewError, TransportError
from interview_coach.interview.events import EventType
from interview_coach.interview.models import Speaker
from interview_coach.interview.session import SessionState
from interview_coach.interview.testing import (
    MockCompletionGateway,
    MockPlaybackService,
    InterviewResultValidator,
    create_mock_session_setup,
    opening_response,
    turn_response,
    scoring_response,
)


async def settle(ticks: int = 10):
    """Let scheduled callbacks and playback tasks run."""
    for _ in range(ticks):
        await asyncio.sleep(0)


async def started(setup):
    session = setup["session"]
    await session.start()
    await settle()
    assert session.state == SessionState.AWAITING_CANDIDATE
    return session


def assert_alternates(transcript):
    assert transcript[0].speaker == Speaker.INTERVIEWER
    for current, following in zip(transcript, transcript[1:]):
        assert current.speaker != following.speaker


@pytest.mark.asyncio
async def test_start_asks_opening_question_and_listens_after_playback():
    setup = create_mock_session_setup([opening_response("Welcome! What do you build?")])
    session = setup["session"]

    await session.start()
    assert session.state == SessionState.SPEAKING
    assert session.latest_question == "Welcome! What do you build?"
    assert [t.speaker for t in session.transcript] == [Speaker.INTERVIEWER]

    await settle()
    assert session.state == SessionState.AWAITING_CANDIDATE
    assert setup["playback"].spoken_messages == ["Welcome! What do you build?"]
    assert setup["capture"].started == 1
    assert session.is_listening


@pytest.mark.asyncio
async def test_turns_alternate_and_scores_match_candidate_turns():
    setup = create_mock_session_setup([
        opening_response(),
        turn_response(6, question="Second?"),
        turn_response(8, question="Third?"),
        turn_response(9, question="Fourth?"),
    ])
    session = await started(setup)

    for answer in ("first answer", "second answer", "third answer"):
        assert await session.submit_utterance(answer) is True
        await settle()

    transcript = session.transcript
    assert_alternates(transcript)
    candidate_turns = [t for t in transcript if t.speaker == Speaker.CANDIDATE]
    assert len(session.scores) == len(candidate_turns) == 3
    assert session.scores == (6, 8, 9)
    assert session.question_count == 3
    assert session.latest_question == "Fourth?"
    assert session.latest_feedback == "Good detail."


@pytest.mark.asyncio
async def test_out_of_range_score_is_clamped_before_storing():
    setup = create_mock_session_setup([opening_response(), turn_response(12), turn_response(-3)])
    session = await started(setup)

    await session.submit_utterance("an answer")
    await settle()
    await session.submit_utterance("another answer")

    assert session.scores == (10, 1)
    assert all(1 <= s <= 10 for s in session.scores)


@pytest.mark.asyncio
async def test_non_numeric_score_is_a_parse_error_and_keeps_prior_state():
    bad = json.dumps({"score": "high", "feedback": "ok", "question": "Next?", "thinking": ""})
    setup = create_mock_session_setup([opening_response(), turn_response(7), bad])
    session = await started(setup)

    await session.submit_utterance("good answer")
    await settle()
    before = session.transcript

    assert await session.submit_utterance("second answer") is False
    assert session.state == SessionState.ERROR
    assert "TurnPayload" in session.error
    assert session.transcript == before
    assert session.scores == (7,)
    assert setup["metrics"].errors_occurred == 1


@pytest.mark.asyncio
async def test_gateway_failure_moves_to_error_and_retry_succeeds():
    setup = create_mock_session_setup([
        opening_response(),
        TransportError("Vertex REST error 503: unavailable", 503),
        turn_response(5, question="Try this one?"),
    ])
    session = await started(setup)

    assert await session.submit_utterance("my answer") is False
    assert session.state == SessionState.ERROR
    assert "503" in session.error
    assert len(session.transcript) == 1
    assert not session.is_listening

    # A new utterance retries the same question
    assert await session.submit_utterance("my answer again") is True
    assert session.error is None
    assert session.scores == (5,)
    assert_alternates(session.transcript)


@pytest.mark.asyncio
async def test_resume_capture_from_error_listens_again():
    setup = create_mock_session_setup([opening_response(), TransportError("timeout")])
    session = await started(setup)

    await session.submit_utterance("answer")
    assert session.state == SessionState.ERROR

    assert session.resume_capture() is True
    assert session.state == SessionState.AWAITING_CANDIDATE
    assert setup["capture"].started == 2


@pytest.mark.asyncio
async def test_opening_failure_leaves_nothing_to_answer():
    setup = create_mock_session_setup([TransportError("no network")])
    session = setup["session"]

    await session.start()

    assert session.state == SessionState.ERROR
    assert session.latest_question is None
    assert session.transcript == ()
    assert session.resume_capture() is False
    assert await session.submit_utterance("hello?") is False


@pytest.mark.asyncio
async def test_duplicate_utterance_while_processing_is_ignored():
    hold = asyncio.Event()
    hold.set()
    gateway = MockCompletionGateway([opening_response(), turn_response(7)], hold=hold)
    setup = create_mock_session_setup(gateway=gateway)
    session = await started(setup)

    hold.clear()
    first = asyncio.ensure_future(session.submit_utterance("same answer"))
    await settle(2)
    assert session.state == SessionState.PROCESSING
    assert session.is_processing

    assert await session.submit_utterance("same answer") is False

    hold.set()
    assert await first is True
    candidate_turns = [t for t in session.transcript if t.speaker == Speaker.CANDIDATE]
    assert len(candidate_turns) == 1
    assert session.scores == (7,)
    assert gateway.call_count == 2
    assert any(e.event_type == EventType.UTTERANCE_IGNORED for e in setup["events"])


@pytest.mark.asyncio
async def test_utterance_while_speaking_is_ignored():
    playback = MockPlaybackService(hold=asyncio.Event())
    setup = create_mock_session_setup([opening_response()], playback=playback)
    session = setup["session"]

    await session.start()
    await settle()
    assert session.state == SessionState.SPEAKING
    assert session.is_speaking

    assert await session.submit_utterance("talking over the interviewer") is False
    assert setup["metrics"].utterances_ignored == 1
    setup["speech"].close()


@pytest.mark.asyncio
async def test_session_finalizes_automatically_at_question_ceiling():
    responses = [opening_response()]
    responses += [turn_response(7, question=f"Question {i + 2}?") for i in range(15)]
    responses.append(scoring_response())
    setup = create_mock_session_setup(responses, max_questions=15)
    session = await started(setup)

    for i in range(15):
        assert await session.submit_utterance(f"answer {i + 1}") is True
        await settle()

    assert session.state == SessionState.CLOSED
    assert session.question_count == 15
    assert session.result is not None
    assert session.result.questions_answered == 15

    states = [e.data["current"] for e in setup["events"] if e.event_type == EventType.STATE_CHANGED]
    assert "finalizing" in states
    assert states[-1] == "closed"

    transcript = session.transcript
    assert_alternates(transcript)
    assert transcript[-1].speaker == Speaker.CANDIDATE
    assert len(setup["playback"].spoken_messages) == 15


@pytest.mark.asyncio
async def test_stop_during_processing_discards_late_result():
    hold = asyncio.Event()
    hold.set()
    gateway = MockCompletionGateway([opening_response(), turn_response(9), scoring_response()], hold=hold)
    setup = create_mock_session_setup(gateway=gateway)
    session = await started(setup)

    hold.clear()
    in_flight = asyncio.ensure_future(session.submit_utterance("slow answer"))
    await settle(2)
    stopping = asyncio.ensure_future(session.stop())
    await settle(2)
    assert session.state == SessionState.FINALIZING

    hold.set()
    assert await in_flight is False
    result = await stopping

    assert session.state == SessionState.CLOSED
    assert session.scores == ()
    assert [t.speaker for t in session.transcript] == [Speaker.INTERVIEWER]
    InterviewResultValidator.assert_valid_result(result)


@pytest.mark.asyncio
async def test_stop_cancels_playback_and_capture():
    playback = MockPlaybackService(hold=asyncio.Event())
    setup = create_mock_session_setup([opening_response(), scoring_response()], playback=playback)
    session = setup["session"]

    await session.start()
    await settle()
    assert session.is_speaking

    result = await session.stop()

    assert playback.cancelled == 1
    assert not session.is_speaking
    assert not session.is_listening
    assert session.state == SessionState.CLOSED
    assert result.questions_answered == 0


@pytest.mark.asyncio
async def test_finalize_is_idempotent():
    setup = create_mock_session_setup([opening_response(), turn_response(7), scoring_response()])
    session = await started(setup)
    await session.submit_utterance("answer")

    first = await session.finalize()
    second = await session.stop()

    assert first is second
    assert setup["gateway"].call_count == 3
    assert setup["metrics"].sessions_finalized == 1


@pytest.mark.asyncio
async def test_finalize_falls_back_when_scoring_fails():
    setup = create_mock_session_setup([opening_response(), turn_response(7), TransportError("down")])
    session = await started(setup)
    await session.submit_utterance("answer")

    result = await session.stop()

    assert result.used_fallback
    assert result.overall == 64
    assert result.questions_answered == 1
    InterviewResultValidator.assert_valid_result(result)


@pytest.mark.asyncio
async def test_on_score_update_receives_score_and_question_index():
    setup = create_mock_session_setup([opening_response(), turn_response(4), turn_response(9)])
    session = await started(setup)
    updates = []
    session.on_score_update(lambda score, index: updates.append((score, index)))

    await session.submit_utterance("one")
    await settle()
    await session.submit_utterance("two")

    assert updates == [(4, 1), (9, 2)]


@pytest.mark.asyncio
async def test_start_twice_raises():
    setup = create_mock_session_setup([opening_response()])
    session = setup["session"]
    await session.start()

    with pytest.raises(InterviewError):
        await session.start()


@pytest.mark.asyncio
async def test_turn_prompt_uses_only_recent_window():
    setup = create_mock_session_setup([
        opening_response("OPENING-QUESTION"),
        turn_response(7, question="Q2"),
        turn_response(7, question="Q3"),
        turn_response(7, question="Q4"),
    ])
    session = await started(setup)

    for answer in ("A1", "A2", "A3"):
        await session.submit_utterance(answer)
        await settle()

    history = setup["gateway"].request_history
    assert "OPENING-QUESTION" in history[1]["prompt"]
    last_prompt = history[3]["prompt"]
    assert "OPENING-QUESTION" not in last_prompt
    assert "Interviewer: Q2" in last_prompt
    assert "Candidate: A3" in last_prompt
    assert "Question 3" in last_prompt


@pytest.mark.asyncio
async def test_captured_fragments_become_one_answer_after_silence():
    setup = create_mock_session_setup([opening_response(), turn_response(8)], silence_seconds=0.02)
    session = await started(setup)
    capture = setup["capture"]

    capture.interim("I built")
    assert session.live_transcript == "I built"
    capture.say("I built a queue")
    capture.say("in Go")
    await asyncio.sleep(0.1)
    await settle()

    assert session.transcript[1].text == "I built a queue in Go"
    assert session.scores == (8,)


@pytest.mark.asyncio
async def test_hard_capture_error_surfaces_and_stops_listening():
    setup = create_mock_session_setup([opening_response()])
    session = await started(setup)

    setup["capture"].fail("network")

    assert session.state == SessionState.ERROR
    assert session.error == "Speech recognition error: network"
    assert not session.is_listening


@pytest.mark.asyncio
async def test_benign_capture_error_keeps_listening():
    setup = create_mock_session_setup([opening_response()], restart_delay=0.01)
    session = await started(setup)
    capture = setup["capture"]

    capture.fail("no-speech")
    capture.end()
    await asyncio.sleep(0.05)

    assert session.state == SessionState.AWAITING_CANDIDATE
    assert session.error is None
    assert capture.started == 2
