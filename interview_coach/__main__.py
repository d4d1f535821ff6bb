#!/usr/bin/env python3
"""
Main entry point for the interview coach.
Allows running the package with: python -m interview_coach
"""
import asyncio
import sys
from typing import Optional, TextIO

from .config import get_config, Config
from .interview import (
    InterviewSession, SessionState, SessionContext, ExperienceLevel, InterviewResult,
    InterviewCoach, InterviewEventBus, EventLogger, InterviewMetrics, EventType, Speaker,
)
from .infrastructure.speech import SpeechAdapter, ConsoleCapture, ConsolePlayback
from .infrastructure.speech.console import STOP_COMMANDS
from .utils import setup_logging


def _read_text_file(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        print(f"❌ Could not read {path}: {e}")
        sys.exit(1)


def _parse_number(arg: str, cast, usage: str):
    try:
        return cast(arg.split("=", 1)[1])
    except (ValueError, IndexError):
        print(f"❌ {usage}")
        sys.exit(1)


def print_result(result: InterviewResult) -> None:
    print("\n" + "=" * 50)
    print(f"🏁 Overall score: {result.overall}/100"
          + (" (offline estimate, scoring was unavailable)" if result.used_fallback else ""))
    for name, value in result.breakdown.to_dict().items():
        print(f"   {name:<14} {value:>3}")
    if result.highlights:
        print("\n✨ Highlights:")
        for item in result.highlights:
            print(f"   - {item}")
    if result.improvement_suggestions:
        print("\n🎯 Improve next time:")
        for item in result.improvement_suggestions:
            print(f"   - {item}")
    print(f"\n📝 Questions answered: {result.questions_answered}")


async def run_interview(config: Config, context: SessionContext, gateway, playback,
                        silence_seconds: float, max_questions: int,
                        stream: Optional[TextIO] = None) -> Optional[InterviewResult]:
    """Run one interview on the console, print the report, then chat with the coach."""
    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()
    finished = asyncio.Event()

    capture = ConsoleCapture(stream=stream, on_stop_requested=stop_requested.set)
    speech = SpeechAdapter(capture, playback, silence_seconds=silence_seconds,
                           restart_delay=config.capture_restart_delay)

    event_bus = InterviewEventBus()
    metrics = InterviewMetrics()
    event_bus.subscribe_all(EventLogger().handle_event)
    event_bus.subscribe_all(metrics.handle_event)
    event_bus.subscribe(EventType.SESSION_FINALIZED, lambda event: finished.set())

    def on_error(event) -> None:
        print(f"❌ {event.data['error_message']}\n   Type your answer again to retry, or press Enter to finish.")
        if event.data["component"] == "processing":
            # Runs once the failed turn has unwound and the session sits in ERROR
            loop.call_soon(session.resume_capture)

    event_bus.subscribe(EventType.ERROR_OCCURRED, on_error)

    session = InterviewSession(context, gateway, speech, event_bus=event_bus,
                               max_questions=max_questions, window_size=config.conversation_window)
    session.on_score_update(lambda score, index: print(f"   📊 Answer {index} scored {score}/10"))

    coach = InterviewCoach(gateway)
    profile = await coach.analyze_profile(context)
    print(f"🎯 Focus areas: {', '.join(profile.focus_areas)}")
    if context.has_resume or context.has_job_description:
        print(f"   Profile match: {profile.match_percentage}%")

    await session.start()
    if session.state == SessionState.ERROR and session.latest_question is None:
        print("❌ Could not start the interview. Check the log for details.")
        speech.close()
        return None

    stop_task = asyncio.ensure_future(stop_requested.wait())
    finished_task = asyncio.ensure_future(finished.wait())
    await asyncio.wait({stop_task, finished_task}, return_when=asyncio.FIRST_COMPLETED)
    stop_task.cancel()
    finished_task.cancel()

    print("\n⏳ Scoring your interview...")
    result = await session.stop()
    print_result(result)

    answers = [turn.text for turn in session.transcript if turn.speaker == Speaker.CANDIDATE]
    summary = await coach.summarize(context, session.scores, answers)
    print(f"\n📈 Average answer score: {summary.overall_score}/10")
    for label, items in (("Strengths", summary.strengths), ("Gaps", summary.gaps),
                         ("Recommendations", summary.recommendations)):
        if items:
            print(f"   {label}: {'; '.join(items)}")
    await chat_with_coach(coach, context, session.scores, capture.take_lines())
    print(f"\n📝 Detailed logs: {config.log_file}")
    return result


async def chat_with_coach(coach: InterviewCoach, context: SessionContext, scores, lines: asyncio.Queue) -> None:
    """Answer follow-up questions until an empty line, /stop or end of input."""
    print("\n💬 Ask the coach about your interview (empty line to finish)")
    while True:
        line = await lines.get()
        if line is None or line.strip() in STOP_COMMANDS:
            return
        print(f"🧑‍🏫 Coach: {await coach.reply(line.strip(), context, scores)}")


def main():
    """Command-line interface for the interview coach."""
    demo = "--demo" in sys.argv

    # Load configuration from environment
    try:
        config = get_config(require_project=not demo)
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    # TTS configuration with explicit flags taking precedence
    explicit_tts = "--tts" in sys.argv
    explicit_text = "--text" in sys.argv

    if explicit_text:
        use_tts = False
    elif explicit_tts:
        use_tts = True
    else:
        use_tts = config.enable_tts

    role = config.role
    level = config.level
    resume_text = None
    job_description = None
    max_questions = config.max_questions
    silence_seconds = config.silence_seconds

    for arg in sys.argv[1:]:
        if arg.startswith("--role="):
            role = arg.split("=", 1)[1].strip().lower()
        elif arg.startswith("--level="):
            level = arg.split("=", 1)[1]
        elif arg.startswith("--resume="):
            resume_text = _read_text_file(arg.split("=", 1)[1])
        elif arg.startswith("--jd="):
            job_description = _read_text_file(arg.split("=", 1)[1])
        elif arg.startswith("--max-questions="):
            max_questions = _parse_number(arg, int, "Invalid question count. Use --max-questions=1 or more")
            if max_questions < 1:
                print("❌ Invalid question count. Use --max-questions=1 or more")
                sys.exit(1)
        elif arg.startswith("--silence="):
            silence_seconds = _parse_number(arg, float, "Invalid silence window. Use e.g. --silence=2.0")
            if silence_seconds <= 0:
                print("❌ Invalid silence window. Use a positive number of seconds")
                sys.exit(1)

    try:
        experience_level = ExperienceLevel.parse(level)
    except ValueError as e:
        print(f"❌ {e}")
        sys.exit(1)

    try:
        setup_logging(config.log_file, config.log_level)
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    context = SessionContext(
        role=role,
        level=experience_level,
        resume_text=resume_text,
        job_description=job_description,
    )

    if demo:
        from .interview.testing import DemoCompletionGateway
        gateway = DemoCompletionGateway()
        print("🧪 Demo Mode: scripted interviewer, no cloud calls")
    else:
        from .infrastructure.llm import create_gateway
        gateway = create_gateway(config)

    if use_tts:
        from .infrastructure.speech.tts import GoogleTTSPlayback
        playback = GoogleTTSPlayback(voice=config.tts_voice, language_code=config.language_code)
        print("🔊 TTS Mode: questions will be spoken aloud")
    else:
        playback = ConsolePlayback()
        print("📝 Text Mode: questions will be displayed as text only")

    print(f"🎙️  {experience_level.value}-level {role} interview, up to {max_questions} questions")
    print("   Type each answer and press Enter. An empty line or /stop ends the interview.")
    print("=" * 50)

    try:
        result = asyncio.run(run_interview(config, context, gateway, playback, silence_seconds, max_questions))
    except KeyboardInterrupt:
        print("\n👋 Interview interrupted")
        sys.exit(130)

    if result is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
