import asyncio
import io

import pytest

from interview_coach.infrastructure.speech import ConsoleCapture, ConsolePlayback


@pytest.mark.asyncio
async def test_typed_lines_become_final_fragments_until_stop():
    stopped = asyncio.Event()
    results = []
    capture = ConsoleCapture(stream=io.StringIO("I like Python\n/stop\n"), on_stop_requested=stopped.set)

    capture.start(lambda text, is_final: results.append((text, is_final)), lambda code: None, lambda: None)
    await asyncio.wait_for(stopped.wait(), timeout=1)

    assert results == [("I like Python", True)]


@pytest.mark.asyncio
async def test_input_while_stopped_is_dropped(capsys):
    stopped = asyncio.Event()
    results = []
    capture = ConsoleCapture(stream=io.StringIO("too early\n"), on_stop_requested=stopped.set)

    capture.start(lambda text, is_final: results.append(text), lambda code: None, lambda: None)
    capture.stop()
    # End of input also counts as a stop request
    await asyncio.wait_for(stopped.wait(), timeout=1)

    assert results == []
    assert "please wait" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_take_lines_routes_input_away_from_the_recognizer():
    stops = []
    capture = ConsoleCapture(stream=io.StringIO("How did I do?\n"), on_stop_requested=lambda: stops.append(True))

    lines = capture.take_lines()

    assert await asyncio.wait_for(lines.get(), timeout=1) == "How did I do?"
    # End of input arrives as None instead of a stop request
    assert await asyncio.wait_for(lines.get(), timeout=1) is None
    assert stops == []


@pytest.mark.asyncio
async def test_take_lines_after_input_closed_ends_immediately():
    stopped = asyncio.Event()
    capture = ConsoleCapture(stream=io.StringIO(""), on_stop_requested=stopped.set)
    capture.start(lambda text, is_final: None, lambda code: None, lambda: None)
    await asyncio.wait_for(stopped.wait(), timeout=1)

    lines = capture.take_lines()

    assert lines.get_nowait() is None


@pytest.mark.asyncio
async def test_console_playback_prints_question(capsys):
    playback = ConsolePlayback()

    await playback.speak("What are you working on?")

    assert playback.spoken == ["What are you working on?"]
    assert "Interviewer: What are you working on?" in capsys.readouterr().out
