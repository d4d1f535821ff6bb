"""Infrastructure components for the interview coach.

This module contains low-level technical components that provide
foundational capabilities for the interview system.
"""

# LLM infrastructure
from .llm import VertexRestClient, CompletionGateway, create_gateway, strip_code_fences

# Speech infrastructure
from .speech import SpeechAdapter, ConsoleCapture, ConsolePlayback

__all__ = [
    # LLM
    "VertexRestClient", "CompletionGateway", "create_gateway", "strip_code_fences",

    # Speech
    "SpeechAdapter", "ConsoleCapture", "ConsolePlayback",
]
