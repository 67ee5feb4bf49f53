# FocusFlow/ai/client.py
"""
Gemini access for FocusFlow.

`create_ai_client()` checks the configuration once and returns either a
working `GeminiClient` or an `UnavailableAIClient` whose every call fails with
`AIUnavailableError`. Flows only ever see the `AIClient` interface.
"""

import logging
from typing import Optional

from google import genai
from google.genai import types as genai_types

from FocusFlow.config import Settings

log = logging.getLogger(__name__)


class FlowError(RuntimeError):
    """An AI request failed: provider missing, transport error, blocked prompt or bad output."""


class AIUnavailableError(FlowError):
    pass


class AIClient:
    """Interface: send a prompt, get back the raw JSON text of the reply."""

    available = True

    def generate_json(self, prompt: str) -> str:
        raise NotImplementedError


class UnavailableAIClient(AIClient):
    available = False

    def __init__(self, reason: str = "AI provider is not configured. Check GOOGLE_API_KEY."):
        self.reason = reason

    def generate_json(self, prompt: str) -> str:
        raise AIUnavailableError(self.reason)


class GeminiClient(AIClient):
    """Single-shot JSON generation through the google-genai SDK. No retries."""

    def __init__(self, api_key: str, model_name: str, temperature: float = 0.3, client: Optional[genai.Client] = None):
        self.model_name = model_name
        self.temperature = temperature
        self._client = client or genai.Client(api_key=api_key)

    def generate_json(self, prompt: str) -> str:
        config = genai_types.GenerateContentConfig(
            response_mime_type="application/json",
            temperature=self.temperature,
        )
        log.debug(f"Querying Gemini model {self.model_name}. Prompt length: ~{len(prompt)} chars.")
        try:
            response = self._client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            log.warning(f"Gemini API error: {type(e).__name__} - {e}")
            raise FlowError(f"Gemini request failed: {e}") from e

        if response.prompt_feedback and response.prompt_feedback.block_reason:
            log.error(f"Prompt was blocked by Gemini. Reason: {response.prompt_feedback.block_reason}")
            raise FlowError(f"Prompt blocked: {response.prompt_feedback.block_reason}")

        text = response.text
        if not text:
            raise FlowError("Empty response from Gemini.")
        return text


def create_ai_client(settings: Settings) -> AIClient:
    if not settings.ai_configured:
        log.warning("GOOGLE_API_KEY is not set or is a placeholder. AI features are disabled.")
        return UnavailableAIClient()
    try:
        return GeminiClient(
            api_key=settings.google_api_key.strip(),
            model_name=settings.model_name,
            temperature=settings.llm_temperature,
        )
    except Exception as e:
        log.warning(f"Failed to initialize Gemini client, AI features may be affected: {e}")
        return UnavailableAIClient(reason=f"AI provider failed to initialize: {e}")
