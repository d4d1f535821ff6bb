"""
Completion gateway: (system prompt, prompt, token budget) in, raw text out.
"""
import asyncio
import logging
import re
from typing import Optional

from .client import VertexRestClient
from ...config import CONVERSATION_TEMPERATURE, Config

logger = logging.getLogger("gateway")

_OPENING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_CLOSING_FENCE = re.compile(r"\r?\n?```\s*$")


def strip_code_fences(text: str) -> str:
    """
    Remove a markdown code fence wrapped around model output.

    Handles both ```json ... ``` and bare ``` ... ``` fences. Text without
    fences is only trimmed.
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
        cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


class CompletionGateway:
    """
    Single-purpose adapter in front of the language model.

    There is no retry here: a failed call raises TransportError (GatewayError)
    and the caller decides what to fall back to.
    """

    def __init__(self, client: VertexRestClient):
        self.client = client

    def complete(self, system_prompt: str, prompt: str, max_tokens: int,
                 temperature: float = CONVERSATION_TEMPERATURE) -> str:
        logger.debug(f"Completion request ({max_tokens} tokens): {prompt[:200]!r}")
        text = self.client.generate_content(
            prompt,
            system_instruction=system_prompt,
            temperature=temperature,
            max_output_tokens=max_tokens,
        )
        logger.debug(f"Completion response: {text[:200]!r}")
        return strip_code_fences(text)

    async def acomplete(self, system_prompt: str, prompt: str, max_tokens: int,
                        temperature: float = CONVERSATION_TEMPERATURE) -> str:
        """Run complete() in a worker thread so the event loop keeps serving speech events."""
        return await asyncio.to_thread(self.complete, system_prompt, prompt, max_tokens, temperature)


def create_gateway(config: Config, client: Optional[VertexRestClient] = None) -> CompletionGateway:
    """Build a gateway backed by Vertex AI from the runtime configuration."""
    if client is None:
        if not config.google_cloud_project:
            raise ValueError("A Google Cloud project is required for live interviews")
        client = VertexRestClient(
            project=config.google_cloud_project,
            location=config.vertex_location,
            model=config.model_name,
            credentials_json=config.google_application_credentials,
            timeout=config.llm_timeout,
        )
    return CompletionGateway(client)
