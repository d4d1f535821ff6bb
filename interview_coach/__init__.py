"""
Interview Coach: voice-driven interview practice.

Runs a conversational interview against a hosted language model, scores
each answer as it goes, and produces a final weighted report.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.session import InterviewSession, SessionState
from .interview.models import SessionContext, ExperienceLevel, InterviewResult

__all__ = ["InterviewSession", "SessionState", "SessionContext", "ExperienceLevel", "InterviewResult"]
