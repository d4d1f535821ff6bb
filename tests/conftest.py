# tests/conftest.py
import logging

import pytest

from interview_coach.interview.models import ExperienceLevel, SessionContext


@pytest.fixture
def engineer_context():
    """Mid-level engineer interview with no documents."""
    return SessionContext(role="engineer", level=ExperienceLevel.MID)


@pytest.fixture
def resume_context():
    return SessionContext(
        role="engineer",
        level=ExperienceLevel.SENIOR,
        resume_text="Led the payments platform team at Acme for four years. Built a Kafka ingestion pipeline.",
        job_description="Staff engineer owning distributed systems and mentoring.",
    )


@pytest.fixture
def restore_root_logging():
    """Put the root logger back the way it was after a test reconfigures it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "GOOGLE_CLOUD_PROJECT", "GOOGLE_APPLICATION_CREDENTIALS", "INTERVIEW_MODEL",
        "INTERVIEW_MAX_QUESTIONS", "INTERVIEW_SILENCE_SECONDS", "INTERVIEW_LOG_LEVEL", "INTERVIEW_LOG_FILE",
        "VERTEX_LOCATION", "INTERVIEW_ROLE", "INTERVIEW_LEVEL", "INTERVIEW_ENABLE_TTS",
        "INTERVIEW_CONVERSATION_WINDOW",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
