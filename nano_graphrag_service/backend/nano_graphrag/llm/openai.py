from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import httpx

from ..errors import ConfigurationError
from ..transport import DEFAULT_TIMEOUT_SECONDS, post_json

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com"
OPENAI_API_KEY_ENV = "OPENAI_API_KEY"


def extract_response_text(data: dict[str, Any]) -> str:
    """Pull the generated text out of a Responses API (or chat completions) payload."""

    text = data.get("output_text")
    if isinstance(text, str) and text:
        return text

    output = data.get("output")
    if isinstance(output, list) and output:
        first = output[0]
        if isinstance(first, dict):
            content = first.get("content")
            if isinstance(content, list):
                for part in content:
                    if isinstance(part, dict) and isinstance(part.get("text"), str):
                        return part["text"]

    # Chat completions shape, for compatible servers.
    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        first_choice = choices[0]
        if isinstance(first_choice, dict):
            msg = first_choice.get("message")
            if isinstance(msg, dict) and isinstance(msg.get("content"), str):
                return msg["content"]

    return ""


@dataclass
class OpenAILLM:
    """Generation through the OpenAI Responses API (``POST /v1/responses``)."""

    model: str = "gpt-4.1-mini"
    base_url: str = OPENAI_BASE_URL
    api_key: str | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    client: httpx.Client | None = None

    @property
    def model_name(self) -> str:
        return self.model

    def prompt(self, user_prompt: str, system_prompt: str = "") -> str:
        api_key = self.api_key or os.getenv(OPENAI_API_KEY_ENV)
        if not api_key:
            raise ConfigurationError(f"{OPENAI_API_KEY_ENV} is not set")

        body: dict[str, Any] = {"model": self.model, "input": user_prompt}
        if system_prompt:
            body["instructions"] = system_prompt

        data = post_json(
            f"{self.base_url.rstrip('/')}/v1/responses",
            body,
            api_key=api_key,
            timeout=self.timeout_seconds,
            client=self.client,
        )
        text = extract_response_text(data)
        if not text:
            logger.warning("llm_empty_output", extra={"fields": {"provider": "openai", "model": self.model}})
        return text
