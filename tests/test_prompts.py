from interview_coach.interview.models import (
    ConversationTurn, ExperienceLevel, QuestionMeta, ScoringInputs, SessionContext, Speaker,
)
from interview_coach.interview.prompts import (
    excerpt,
    render_turns,
    build_system_prompt,
    build_opening_prompt,
    build_turn_prompt,
    build_scoring_prompt,
    build_profile_prompt,
    build_summary_prompt,
)


def test_excerpt_marks_the_cut():
    assert excerpt("short", 10) == "short"
    assert excerpt("abcdefghij", 4) == "abcd..."
    assert excerpt(None, 4) == ""


def test_system_prompt_without_resume_forbids_invention(engineer_context):
    prompt = build_system_prompt(engineer_context)

    assert "Mid-level engineer" in prompt
    assert "NO RESUME WAS PROVIDED" in prompt
    assert "NO JOB DESCRIPTION WAS PROVIDED" in prompt
    assert "CANDIDATE BACKGROUND" not in prompt


def test_system_prompt_embeds_document_excerpts():
    context = SessionContext(
        role="designer", level=ExperienceLevel.SENIOR,
        resume_text="R" * 800, job_description="J" * 800,
    )

    prompt = build_system_prompt(context)

    assert "R" * 500 + "..." in prompt
    assert "R" * 501 not in prompt
    assert "J" * 500 + "..." in prompt
    assert "NO RESUME WAS PROVIDED" not in prompt


def test_opening_prompt_without_resume_has_no_resume_placeholder(engineer_context):
    prompt = build_opening_prompt(engineer_context)

    assert "No resume was provided" in prompt
    assert "from the resume" not in prompt
    assert '"question"' in prompt


def test_opening_prompt_uses_short_resume_excerpt():
    context = SessionContext(role="engineer", level=ExperienceLevel.ENTRY, resume_text="Z" * 400)

    prompt = build_opening_prompt(context)

    assert "Z" * 200 + "..." in prompt
    assert "Z" * 201 not in prompt
    assert "[specific thing from the resume above]" in prompt


def test_turn_prompt_lists_window_and_question_number(engineer_context):
    window = [
        ConversationTurn(Speaker.INTERVIEWER, "What did you build?"),
        ConversationTurn(Speaker.CANDIDATE, 'A "fast" cache'),
    ]

    prompt = build_turn_prompt(engineer_context, window, 'A "fast" cache', 1)

    assert "CONVERSATION SO FAR:\nInterviewer: What did you build?\n\nCandidate: A \"fast\" cache" in prompt
    assert 'Candidate just said: "A \\"fast\\" cache"' in prompt
    assert "Question 1." in prompt
    assert "NO RESUME WAS PROVIDED" in prompt


def test_turn_prompt_with_resume_skips_no_resume_rule(resume_context):
    prompt = build_turn_prompt(resume_context, [], "hello", 2)
    assert "(no previous conversation)" in prompt
    assert "NO RESUME WAS PROVIDED" not in prompt


def test_render_turns_labels_speakers():
    turns = [ConversationTurn(Speaker.INTERVIEWER, "Q"), ConversationTurn(Speaker.CANDIDATE, "A")]
    assert render_turns(turns) == "Interviewer: Q\n\nCandidate: A"


def test_scoring_prompt_marks_missing_resume_and_includes_meta():
    inputs = ScoringInputs(
        transcript=(ConversationTurn(Speaker.INTERVIEWER, "Q1"), ConversationTurn(Speaker.CANDIDATE, "A1")),
        role="engineer",
        level=ExperienceLevel.MID,
        question_meta=(QuestionMeta("q1", "Q1", 8),),
    )

    prompt = build_scoring_prompt(inputs)

    assert "Role: Mid-level engineer" in prompt
    assert "ResumeText: NONE" in prompt
    assert '"id": "q1"' in prompt


def test_profile_prompt_only_includes_present_documents():
    context = SessionContext(role="engineer", level=ExperienceLevel.MID, job_description="Go and Postgres")

    prompt = build_profile_prompt(context)

    assert "Job Description:\nGo and Postgres" in prompt
    assert "CV Summary" not in prompt


def test_summary_prompt_reports_average(engineer_context):
    prompt = build_summary_prompt(engineer_context, [6, 8], ["first answer", "second answer", "third"])

    assert "Scores: 6, 8" in prompt
    assert "Average: 7.0/10" in prompt
    assert "first answer | second answer" in prompt
    assert "third" not in prompt
