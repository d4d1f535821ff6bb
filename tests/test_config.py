import pytest

from interview_coach.config import (
    get_config, MAX_QUESTIONS, SILENCE_SECONDS, VERTEX_LOCATION, ENABLE_TTS, CONVERSATION_WINDOW,
)


def test_project_required_for_live_interviews(clean_env):
    with pytest.raises(ValueError, match="GOOGLE_CLOUD_PROJECT"):
        get_config()


def test_demo_mode_runs_without_project(clean_env):
    config = get_config(require_project=False)

    assert config.google_cloud_project is None
    assert config.max_questions == MAX_QUESTIONS
    assert config.silence_seconds == SILENCE_SECONDS


def test_environment_overrides_defaults(clean_env):
    clean_env.setenv("GOOGLE_CLOUD_PROJECT", "acme-interviews")
    clean_env.setenv("INTERVIEW_MAX_QUESTIONS", "5")
    clean_env.setenv("INTERVIEW_SILENCE_SECONDS", "1.5")
    clean_env.setenv("INTERVIEW_MODEL", "gemini-1.5-pro")
    clean_env.setenv("INTERVIEW_LOG_LEVEL", "DEBUG")

    config = get_config()

    assert config.google_cloud_project == "acme-interviews"
    assert config.max_questions == 5
    assert config.silence_seconds == 1.5
    assert config.model_name == "gemini-1.5-pro"
    assert config.log_level == "DEBUG"


def test_non_numeric_question_count_is_rejected(clean_env):
    clean_env.setenv("INTERVIEW_MAX_QUESTIONS", "lots")
    with pytest.raises(ValueError, match="INTERVIEW_MAX_QUESTIONS"):
        get_config(require_project=False)


def test_silence_window_must_be_positive(clean_env):
    clean_env.setenv("INTERVIEW_SILENCE_SECONDS", "0")
    with pytest.raises(ValueError, match="positive"):
        get_config(require_project=False)


def test_interview_settings_come_from_environment(clean_env):
    clean_env.setenv("VERTEX_LOCATION", "europe-west4")
    clean_env.setenv("INTERVIEW_ROLE", "sales")
    clean_env.setenv("INTERVIEW_LEVEL", "Senior")
    clean_env.setenv("INTERVIEW_ENABLE_TTS", "yes")
    clean_env.setenv("INTERVIEW_CONVERSATION_WINDOW", "6")

    config = get_config(require_project=False)

    assert config.vertex_location == "europe-west4"
    assert config.role == "sales"
    assert config.level == "Senior"
    assert config.enable_tts is True
    assert config.conversation_window == 6


def test_defaults_without_interview_overrides(clean_env):
    config = get_config(require_project=False)

    assert config.vertex_location == VERTEX_LOCATION
    assert config.enable_tts is ENABLE_TTS
    assert config.conversation_window == CONVERSATION_WINDOW


@pytest.mark.parametrize("name, value", [
    ("INTERVIEW_ENABLE_TTS", "maybe"),
    ("INTERVIEW_CONVERSATION_WINDOW", "0"),
])
def test_invalid_interview_overrides_are_rejected(clean_env, name, value):
    clean_env.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        get_config(require_project=False)
