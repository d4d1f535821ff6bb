"""
Interview Coach Configuration
=============================

This file contains ALL configuration for the interview coach.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# USER SETTINGS - Edit these to customize the interview
# =============================================================================

# REQUIRED for live interviews: Google Cloud project hosting Vertex AI
GOOGLE_CLOUD_PROJECT = "your-project-id"  # Change this!
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# Language model
VERTEX_LOCATION = "us-central1"
MODEL_NAME = "gemini-2.0-flash"

# Interview settings
DEFAULT_ROLE = "engineer"
DEFAULT_LEVEL = "Mid"
MAX_QUESTIONS = 15  # automatic stop after this many answered questions

# Speech settings
SILENCE_SECONDS = 2.0  # quiet interval after the last final fragment before an answer is submitted
ENABLE_TTS = False
TTS_VOICE = "en-US-Neural2-F"
LANGUAGE_CODE = "en-US"

# Logging
LOG_FILE = "./_interviews/interview.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# Speech adapter
CAPTURE_RESTART_DELAY = 0.1
BENIGN_CAPTURE_ERRORS = ("aborted", "no-speech")
TTS_SAMPLE_RATE = 16000
TTS_SPEAKING_RATE = 0.95

# Prompt construction
CONVERSATION_WINDOW = 4  # last K transcript entries embedded in each turn prompt
SYSTEM_EXCERPT_CHARS = 500
OPENING_EXCERPT_CHARS = 200
SCORING_TRANSCRIPT_CHARS = 10000
SCORING_RESUME_CHARS = 4000

# LLM
LLM_TIMEOUT = 60
OPENING_MAX_TOKENS = 300
TURN_MAX_TOKENS = 400
SCORING_MAX_TOKENS = 1024
COACH_MAX_TOKENS = 400
REPLY_MAX_TOKENS = 300
CONVERSATION_TEMPERATURE = 0.7
SCORING_TEMPERATURE = 0.5

# Scoring
TURN_SCORE_MIN = 1
TURN_SCORE_MAX = 10
SCORE_WEIGHTS = {
    "role_fit": 0.30,
    "technical": 0.25,
    "structure": 0.20,
    "communication": 0.15,
    "initiative": 0.10,
}
OVERALL_DIVERGENCE_WARNING = 10
MAX_HIGHLIGHTS = 3
MAX_SUGGESTIONS = 3

# Returned when the scoring request fails
FALLBACK_BREAKDOWN = {
    "role_fit": 65,
    "technical": 60,
    "structure": 65,
    "communication": 70,
    "initiative": 60,
}
FALLBACK_HIGHLIGHTS = ("Participated in all questions", "Provided relevant answers")
FALLBACK_SUGGESTIONS = ("Add more specific examples", "Use STAR method for behavioral questions")


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    google_cloud_project: Optional[str] = None
    google_application_credentials: Optional[str] = None
    vertex_location: str = VERTEX_LOCATION
    model_name: str = MODEL_NAME
    role: str = DEFAULT_ROLE
    level: str = DEFAULT_LEVEL
    max_questions: int = MAX_QUESTIONS
    silence_seconds: float = SILENCE_SECONDS
    capture_restart_delay: float = CAPTURE_RESTART_DELAY
    conversation_window: int = CONVERSATION_WINDOW
    enable_tts: bool = ENABLE_TTS
    tts_voice: str = TTS_VOICE
    language_code: str = LANGUAGE_CODE
    llm_timeout: int = LLM_TIMEOUT
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL


def _env_number(name: str, cast, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be true or false, got {raw!r}")


def get_config(require_project: bool = True) -> Config:
    """Load configuration, letting environment variables override the defaults above."""
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS

    if project == "your-project-id":
        if require_project:
            raise ValueError("Please set GOOGLE_CLOUD_PROJECT in config.py or as environment variable")
        project = None

    max_questions = _env_number("INTERVIEW_MAX_QUESTIONS", int, MAX_QUESTIONS)
    if max_questions < 1:
        raise ValueError("INTERVIEW_MAX_QUESTIONS must be at least 1")

    silence_seconds = _env_number("INTERVIEW_SILENCE_SECONDS", float, SILENCE_SECONDS)
    if silence_seconds <= 0:
        raise ValueError("INTERVIEW_SILENCE_SECONDS must be positive")

    conversation_window = _env_number("INTERVIEW_CONVERSATION_WINDOW", int, CONVERSATION_WINDOW)
    if conversation_window < 1:
        raise ValueError("INTERVIEW_CONVERSATION_WINDOW must be at least 1")

    return Config(
        google_cloud_project=project,
        google_application_credentials=credentials,
        vertex_location=os.getenv("VERTEX_LOCATION") or VERTEX_LOCATION,
        model_name=os.getenv("INTERVIEW_MODEL") or MODEL_NAME,
        role=os.getenv("INTERVIEW_ROLE") or DEFAULT_ROLE,
        level=os.getenv("INTERVIEW_LEVEL") or DEFAULT_LEVEL,
        max_questions=max_questions,
        silence_seconds=silence_seconds,
        conversation_window=conversation_window,
        enable_tts=_env_flag("INTERVIEW_ENABLE_TTS", ENABLE_TTS),
        log_file=os.getenv("INTERVIEW_LOG_FILE") or LOG_FILE,
        log_level=os.getenv("INTERVIEW_LOG_LEVEL") or LOG_LEVEL,
    )
