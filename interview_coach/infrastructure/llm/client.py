"""
Vertex AI REST client for LLM interactions.
"""
import logging
from typing import Optional, Dict, Any, List

import requests
import google.auth
import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import VERTEX_LOCATION, MODEL_NAME, LLM_TIMEOUT, TURN_MAX_TOKENS
from ...interview.errors import TransportError

logger = logging.getLogger("llm_client")

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


class VertexRestClient:
    """REST-based client for Vertex AI Gemini models."""

    def __init__(self,
                 project: str,
                 location: str = VERTEX_LOCATION,
                 model: str = MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT):
        self.project = project
        self.location = location
        self.model = model
        self.credentials_json = credentials_json
        self.base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
        self.model_resource = f"projects/{self.project}/locations/{self.location}/publishers/google/models/{self.model}"
        self._token = None
        self.timeout = timeout

    def _refresh_token(self):
        """Refresh the OAuth token for API calls."""
        try:
            if self.credentials_json:
                creds = service_account.Credentials.from_service_account_file(self.credentials_json, scopes=SCOPES)
            else:
                creds, _ = google.auth.default(scopes=SCOPES)
            creds.refresh(google.auth.transport.requests.Request())
        except google.auth.exceptions.GoogleAuthError as e:
            raise TransportError(f"Could not obtain Google Cloud credentials: {e}")
        except (OSError, ValueError) as e:
            # Missing, unreadable or malformed service account file
            raise TransportError(f"Could not load credentials file {self.credentials_json}: {e}")
        self._token = creds.token

    def _ensure_token(self):
        if not self._token:
            self._refresh_token()

    def generate_content(
        self,
        prompt_text: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.0,
        max_output_tokens: int = TURN_MAX_TOKENS,
        stop_sequences: Optional[List[str]] = None,
    ) -> str:
        """
        Generate content using the Vertex AI REST API.

        Raises:
            TransportError: On network failure, HTTP status >= 400 or a reply without text
        """
        self._ensure_token()
        url = f"{self.base_url}/{self.model_resource}:generateContent"

        body: Dict[str, Any] = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt_text}],
                }
            ],
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(max_output_tokens),
            },
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if stop_sequences:
            body["generationConfig"]["stopSequences"] = list(stop_sequences)

        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

        try:
            resp = requests.post(url, headers=headers, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Vertex REST request failed: {e}")

        if resp.status_code == 401:
            # Token expired; drop it so the next call refreshes
            self._token = None
        if resp.status_code >= 400:
            raise TransportError(f"Vertex REST error {resp.status_code}: {resp.text[:500]}", resp.status_code)

        try:
            payload = resp.json()
        except ValueError:
            raise TransportError("Vertex REST response is not JSON", resp.status_code)

        return self._parse_response_text(payload)

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> str:
        """Extract candidates[0].content.parts[*].text from a Vertex response."""
        cands = resp_json.get("candidates") or []
        if cands and isinstance(cands[0], dict):
            content = cands[0].get("content") or {}
            parts = content.get("parts") or []
            texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
            if texts:
                return "".join(texts)
            finish_reason = cands[0].get("finishReason", "unknown")
            raise TransportError(f"Vertex response has no text (finishReason={finish_reason})")

        if isinstance(resp_json.get("text"), str):
            return resp_json["text"]

        raise TransportError("Vertex response has no candidates")
