"""Text-generation client used by the AI scorer."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import google.generativeai as genai

from ...config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class ModelClient(Protocol):
    """Anything that turns a prompt into reply text."""

    model_name: str

    async def generate_content(self, prompt: str) -> str:
        ...


class GeminiModelClient:
    """Async adapter over ``google.generativeai``.

    Create one instance per process and pass it to the scorers; it holds no
    per-request state.
    """

    def __init__(self, api_key: str, model_name: str, timeout: Optional[float] = None) -> None:
        if not api_key:
            raise ValueError("Gemini API key is required.")
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.timeout = timeout
        self._model = genai.GenerativeModel(model_name)

    async def generate_content(self, prompt: str) -> str:
        request_options: dict[str, Any] = {}
        if self.timeout is not None:
            request_options["timeout"] = self.timeout
        response = await self._model.generate_content_async(prompt, request_options=request_options or None)
        return response.text


def build_model_client(config: Settings | None = None) -> Optional[GeminiModelClient]:
    """Return a Gemini client, or ``None`` when no API key is configured."""
    config = config or default_settings
    if not config.gemini_api_key:
        logger.warning("Gemini API key not provided, AI scoring disabled")
        return None
    client = GeminiModelClient(
        api_key=config.gemini_api_key,
        model_name=config.gemini_model,
        timeout=config.gemini_timeout_seconds,
    )
    logger.info(f"Gemini client initialised with model '{config.gemini_model}'")
    return client
