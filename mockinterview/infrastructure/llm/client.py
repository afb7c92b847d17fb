"""
Vertex AI REST client for structured completions.
"""
import json
import logging
from typing import Optional, Dict, Any

import requests
import google.auth
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import VERTEX_LOCATION, MODEL_NAME, LLM_TIMEOUT, MAX_OUTPUT_TOKENS
from ...errors import ServiceError, TransientServiceError, MalformedResponseError

logger = logging.getLogger("llm_client")

RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


class VertexRestClient:
    """REST-based client for Vertex AI Gemini models."""

    def __init__(self,
                 project: str,
                 location: str = VERTEX_LOCATION,
                 model: str = MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.project = project
        self.location = location
        self.model = model
        self.credentials_json = credentials_json
        self.base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
        self.model_resource = f"projects/{self.project}/locations/{self.location}/publishers/google/models/{self.model}"
        self._token = None
        self.timeout = timeout
        self.session = session or requests.Session()

    def _refresh_token(self):
        """Refresh the OAuth token for API calls."""
        if self.credentials_json:
            creds = service_account.Credentials.from_service_account_file(
                self.credentials_json,
                scopes=["https://www.googleapis.com/auth/cloud-platform"],
            )
        else:
            creds, _ = google.auth.default(scopes=["https://www.googleapis.com/auth/cloud-platform"])

        auth_req = google.auth.transport.requests.Request()
        creds.refresh(auth_req)
        self._token = creds.token

    def _ensure_token(self):
        """Ensure we have a valid token, refreshing if needed."""
        if not self._token:
            self._refresh_token()

    def generate_content(self, prompt_text: str, temperature: float = 0.0,
                         max_output_tokens: int = MAX_OUTPUT_TOKENS,
                         response_mime_type: Optional[str] = None) -> str:
        """Single-turn generateContent call; returns the first text part."""
        self._ensure_token()
        url = f"{self.base_url}/{self.model_resource}:generateContent"

        generation_config: Dict[str, Any] = {
            "temperature": float(temperature),
            "maxOutputTokens": int(max_output_tokens),
        }
        if response_mime_type:
            generation_config["responseMimeType"] = response_mime_type

        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt_text}]}],
            "generationConfig": generation_config,
        }
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

        try:
            resp = self.session.post(url, headers=headers, json=body, timeout=self.timeout)
        except (requests.Timeout, requests.ConnectionError) as e:
            raise TransientServiceError(f"Vertex request failed: {e}", service="vertex") from e

        if resp.status_code == 401:
            # Token expired mid-session; drop it so the next call refreshes
            self._token = None
        if resp.status_code in RETRYABLE_STATUS:
            raise TransientServiceError(f"Vertex REST error {resp.status_code}: {resp.text}", service="vertex")
        if resp.status_code >= 400:
            raise ServiceError(f"Vertex REST error {resp.status_code}: {resp.text}", service="vertex")

        try:
            payload = resp.json()
        except ValueError as e:
            raise MalformedResponseError("Vertex returned a non-JSON body", service="vertex", raw=resp.text) from e
        return self._response_text(payload)

    def _response_text(self, payload: Dict[str, Any]) -> str:
        """Text of the first candidate part; blocked or empty candidates are malformed."""
        for candidate in payload.get("candidates") or []:
            parts = (candidate.get("content") or {}).get("parts") or []
            for part in parts:
                if isinstance(part, dict) and isinstance(part.get("text"), str):
                    return part["text"]

        reason = (payload.get("promptFeedback") or {}).get("blockReason")
        raise MalformedResponseError(
            f"Vertex response had no text{f' (blocked: {reason})' if reason else ''}",
            service="vertex", raw=json.dumps(payload)[:2000],
        )

    def complete(self, prompt: str, schema_hint: Dict[str, Any], temperature: float = 0.0) -> str:
        """
        Request a structured completion. Returns the raw text; callers parse it
        with `parse_structured_response` since models may still wrap the JSON in prose.
        """
        prompt_json = (
            prompt.strip()
            + "\n\nRespond ONLY with a JSON object matching this structure (no code fences, no prose):\n"
            + json.dumps(schema_hint, ensure_ascii=False)
        )
        logger.debug("Sending structured prompt to LLM (%d chars)", len(prompt_json))

        text = self.generate_content(
            prompt_json,
            temperature=temperature,
            response_mime_type="application/json",
        )
        logger.debug("Raw LLM output: %s", repr(text))
        return text
