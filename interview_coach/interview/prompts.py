"""
Interview prompt templates and generation.

This module contains all the prompt templates used throughout the interview system,
keeping them separate from the business logic for easier maintenance and editing.
The build_* functions are pure: they only render text from the session context.
"""

import json
from typing import Dict, List, Sequence

from .models import ConversationTurn, SessionContext, ScoringInputs
from ..config import (
    SYSTEM_EXCERPT_CHARS,
    OPENING_EXCERPT_CHARS,
    SCORING_TRANSCRIPT_CHARS,
    SCORING_RESUME_CHARS,
    SCORE_WEIGHTS,
    MAX_HIGHLIGHTS,
    MAX_SUGGESTIONS,
)


def excerpt(text: str, limit: int) -> str:
    """Trim text to at most `limit` characters, marking the cut."""
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


class InterviewPrompts:
    """Collection of all interview-related prompts."""

    @staticmethod
    def interviewer_persona(level: str, role: str) -> str:
        """Base personality for the simulated interviewer."""
        return f"""
You are a real senior hiring manager conducting a natural, conversational interview for a {level}-level {role} position. This is not a scripted Q&A, it's a flowing discussion.

YOUR PERSONALITY:
- You're experienced, friendly, and genuinely curious
- You listen carefully and react to what they say
- You probe deeper on interesting points
- You challenge gently when answers are vague

CONVERSATIONAL STYLE:
Good: "That's interesting. So when you ran into that scaling issue, how did your team react?"
Good: "Right, that makes sense. Let me push back on that a bit though..."
Avoid: "Tell me about a time when..." (too scripted)
Avoid: "Question 3: Describe your experience with..." (robotic)

ADAPTIVE INTERVIEWING:
- If they give shallow answers, dig deeper and ask for specifics
- If they mention something interesting, explore it further
- If they struggle, provide hints and ask simpler questions
- If they excel, increase difficulty and challenge assumptions
        """.strip()

    @staticmethod
    def resume_section(resume_excerpt: str) -> str:
        return f"""
CANDIDATE BACKGROUND:
{resume_excerpt}

Reference this naturally: mention their specific projects, companies, or skills when relevant.
        """.strip()

    @staticmethod
    def job_description_section(jd_excerpt: str) -> str:
        return f"""
TARGET ROLE:
{jd_excerpt}

Probe for these skills, but do it conversationally, not as a checklist.
        """.strip()

    @staticmethod
    def no_resume_rule() -> str:
        return (
            "NO RESUME WAS PROVIDED. Do not invent or assume any resume details: no employers, "
            "projects, schools or skills the candidate has not mentioned themselves. "
            "Only refer to what the candidate says during this conversation."
        )

    @staticmethod
    def no_job_description_rule(role: str) -> str:
        return (
            f"NO JOB DESCRIPTION WAS PROVIDED. Do not invent requirements, team names or company details. "
            f"Keep questions to what is typical for a {role} role."
        )

    @staticmethod
    def interview_flow() -> str:
        return """
INTERVIEW FLOW:
- Start warm, build rapport
- Progress naturally through topics
- Circle back if they mention something worth exploring
- Don't rigidly move through a script, follow interesting threads

Remember: you're having a conversation, not interrogating. Be human.
Always answer with a single JSON object and nothing else.
        """.strip()

    @staticmethod
    def opening_question(level: str, role: str, background: str, example_question: str, example_thinking: str) -> str:
        """Prompt for the first interviewer turn."""
        example = json.dumps({"question": example_question, "thinking": example_thinking}, indent=2)
        return f"""
You're beginning a conversational interview for a {level}-level {role} position.

{background}

Start with a warm, engaging opening question that:
- Puts them at ease
- Gets them talking about their experience naturally
- Sets up for deeper questions later

Be conversational, like a real person. Avoid "Tell me about yourself", be more specific.

Format as JSON:
{example}
        """.strip()

    @staticmethod
    def turn_evaluation(recent_conversation: str, candidate_utterance: str, question_number: int) -> str:
        """Prompt that scores the latest answer and produces the next question."""
        example = json.dumps({
            "score": 7,
            "feedback": "I like how you mentioned X. That shows...",
            "question": "Building on that, tell me more about...",
            "thinking": "They showed strength in X but avoided Y",
        }, indent=2)
        return f"""
CONVERSATION SO FAR:
{recent_conversation}

Candidate just said: {json.dumps(candidate_utterance, ensure_ascii=False)}

As an experienced interviewer having a natural conversation:
1. React authentically to what they just said (acknowledge good points, probe weak areas)
2. Score this specific response with an integer from 1 to 10 based on depth, clarity, and relevance
3. Either:
   - Ask a relevant follow-up to dig deeper on what they mentioned
   - Move to a new topic if their answer was complete
   - Challenge them gently if the answer was superficial

Reference what they actually said. Question {question_number}.

Format as JSON:
{example}
        """.strip()

    @staticmethod
    def scoring_system() -> str:
        """System prompt for the final objective scoring request."""
        weights = ", ".join(
            f"{key} {int(round(weight * 100))}%"
            for key, weight in zip(
                ("roleFit", "technical", "structure", "communication", "initiative"),
                SCORE_WEIGHTS.values(),
            )
        )
        return f"""
You are an objective scoring engine. Analyze the candidate interview transcript and question metadata and produce an objective score and reasoning.

Rules:
1. Output JSON only (no extra commentary).
2. Provide sub-scores (0-100) for: roleFit, technical, structure, communication, initiative.
3. Overall score must be computed from weights: {weights} and returned as integer 0-100 (round to nearest integer).
4. Provide {MAX_HIGHLIGHTS} highlights: short candidate quotes or paraphrases with question IDs showing strengths.
5. Provide {MAX_SUGGESTIONS} improvementSuggestions: concrete, actionable bullet points.
6. Only quote what the candidate actually said in the transcript.

Output schema:
{{
  "overall": number,
  "breakdown": {{"roleFit":number,"technical":number,"structure":number,"communication":number,"initiative":number}},
  "highlights": [{{"q_id":string,"quote":string,"why":string}}],
  "improvementSuggestions":[string],
  "raw_notes": string
}}
        """.strip()

    @staticmethod
    def scoring_request(transcript: str, question_meta: str, resume: str, level: str, role: str) -> str:
        return f"""
Role: {level}-level {role}

Transcript: {transcript}

QuestionMeta: {question_meta}

ResumeText: {resume}

Task: Score the candidate using the rules above and return valid JSON.
        """.strip()

    @staticmethod
    def profile_analysis(role: str, level: str, resume: str, job_description: str) -> str:
        """Prompt comparing a résumé and job description before the interview."""
        sections = []
        if resume:
            sections.append(f"CV Summary:\n{resume}")
        if job_description:
            sections.append(f"Job Description:\n{job_description}")
        profile = "\n\n".join(sections)
        return f"""
Analyze this candidate profile for a {role} position at {level} level:

{profile}

Only use facts stated above. If only one of the two documents is present, base the match on that document alone.

Provide JSON analysis:
{{
  "matchPercentage": 0-100,
  "gaps": ["gap1", "gap2"],
  "strengths": ["strength1", "strength2"],
  "focusAreas": ["area1", "area2"]
}}
        """.strip()

    @staticmethod
    def interview_summary(level: str, role: str, scores: str, average: float, samples: str) -> str:
        samples_line = f"Response samples: {samples}" if samples else ""
        return f"""
Interview Summary for {level}-level {role} candidate.
Scores: {scores}
Average: {average:.1f}/10

{samples_line}

Generate JSON with:
{{
  "strengths": ["strength1", "strength2"],
  "gaps": ["gap1", "gap2"],
  "recommendations": ["recommendation1", "recommendation2"]
}}
        """.strip()

    @staticmethod
    def feedback_coach(level: str, role: str, average: float) -> str:
        """System prompt for the post-interview feedback chat."""
        return f"""
You are an empathetic interview coach providing constructive feedback.
The interview was for a {level}-level {role} position.
Average score: {average:.1f}/10

Be encouraging but honest. Provide actionable advice for improvement.
Keep responses concise (2-3 sentences) and conversational.
Reference specific areas if the user asks about gaps or improvements.
        """.strip()

    @staticmethod
    def fallback_messages() -> Dict[str, List[str]]:
        """Static content used when the coach cannot reach the language model."""
        return {
            "summary_strengths": ["Good participation", "Clear communication"],
            "summary_gaps": ["Continue practicing"],
            "summary_recommendations": ["Review technical fundamentals"],
            "empty_strengths": ["No interview data available"],
            "empty_gaps": ["Complete an interview to see results"],
            "empty_recommendations": ["Start a new interview session"],
            "coach_reply": ["That's a great question. Keep practicing and you'll improve quickly!"],
        }


def render_turns(turns: Sequence[ConversationTurn]) -> str:
    """Render transcript entries as 'Interviewer: ...' / 'Candidate: ...' blocks."""
    return "\n\n".join(f"{turn.label}: {turn.text}" for turn in turns)


def build_system_prompt(context: SessionContext) -> str:
    """System prompt shared by the opening and per-turn requests."""
    level = context.level.value
    sections = [InterviewPrompts.interviewer_persona(level, context.role)]

    if context.has_resume:
        sections.append(InterviewPrompts.resume_section(excerpt(context.resume_text, SYSTEM_EXCERPT_CHARS)))
    else:
        sections.append(InterviewPrompts.no_resume_rule())

    if context.has_job_description:
        sections.append(InterviewPrompts.job_description_section(
            excerpt(context.job_description, SYSTEM_EXCERPT_CHARS)))
    else:
        sections.append(InterviewPrompts.no_job_description_rule(context.role))

    sections.append(InterviewPrompts.interview_flow())
    return "\n\n".join(sections)


def build_opening_prompt(context: SessionContext) -> str:
    """
    Build the prompt for the opening question.

    The worked example only points at a résumé detail when a résumé exists,
    otherwise the model would copy the placeholder and make one up.
    """
    background = []
    if context.has_resume:
        background.append(f"The candidate has background in: {excerpt(context.resume_text, OPENING_EXCERPT_CHARS)}")
    else:
        background.append("No resume was provided. Do not invent or assume anything about the candidate's background.")
    if context.has_job_description:
        background.append(f"Target role requires: {excerpt(context.job_description, OPENING_EXCERPT_CHARS)}")
    else:
        background.append("No job description was provided. Do not invent role requirements.")

    if context.has_resume:
        example_question = (
            "Hi! I've been looking forward to this. I noticed you worked on [specific thing from the resume above] "
            "- that must have been interesting. What drew you to that kind of work?"
        )
        example_thinking = "Opening with a specific resume detail to build rapport"
    else:
        example_question = (
            f"Hi! Thanks for making the time. To get us started, what kind of {context.role} work "
            "have you enjoyed most so far, and why?"
        )
        example_thinking = "No resume available, so asking an open question instead of assuming a background"

    return InterviewPrompts.opening_question(
        context.level.value,
        context.role,
        "\n".join(background),
        example_question,
        example_thinking,
    )


def build_turn_prompt(
    context: SessionContext,
    recent_turns: Sequence[ConversationTurn],
    candidate_utterance: str,
    turn_index: int,
) -> str:
    """
    Build the per-answer prompt.

    Args:
        context: Session context (kept for signature symmetry with the system prompt)
        recent_turns: Bounded window of the most recent transcript entries
        candidate_utterance: The answer being evaluated
        turn_index: 1-based number of the question being answered

    Returns:
        Prompt text asking for {score, feedback, question, thinking}
    """
    recent = render_turns(recent_turns) or "(no previous conversation)"
    prompt = InterviewPrompts.turn_evaluation(recent, candidate_utterance, turn_index)
    if not context.has_resume:
        prompt += "\n\n" + InterviewPrompts.no_resume_rule()
    return prompt


def build_scoring_system_prompt() -> str:
    return InterviewPrompts.scoring_system()


def build_scoring_prompt(inputs: ScoringInputs) -> str:
    """Render the final scoring request; the transcript keeps its trailing window only."""
    transcript = inputs.transcript_text()
    if len(transcript) > SCORING_TRANSCRIPT_CHARS:
        transcript = transcript[-SCORING_TRANSCRIPT_CHARS:]

    question_meta = json.dumps([meta.to_dict() for meta in inputs.question_meta], indent=2, ensure_ascii=False)
    resume = inputs.resume_text[:SCORING_RESUME_CHARS] if inputs.resume_text and inputs.resume_text.strip() else "NONE"

    return InterviewPrompts.scoring_request(transcript, question_meta, resume, inputs.level.value, inputs.role)


def build_profile_prompt(context: SessionContext) -> str:
    resume = excerpt(context.resume_text, SCORING_RESUME_CHARS) if context.has_resume else ""
    jd = excerpt(context.job_description, SCORING_RESUME_CHARS) if context.has_job_description else ""
    return InterviewPrompts.profile_analysis(context.role, context.level.value, resume, jd)


def build_summary_prompt(context: SessionContext, scores: Sequence[int], responses: Sequence[str]) -> str:
    average = sum(scores) / len(scores)
    samples = " | ".join(excerpt(r, OPENING_EXCERPT_CHARS) for r in list(responses)[:2])
    return InterviewPrompts.interview_summary(
        context.level.value, context.role, ", ".join(str(s) for s in scores), average, samples
    )


def build_coach_system_prompt(context: SessionContext, average: float) -> str:
    return InterviewPrompts.feedback_coach(context.level.value, context.role, average)
