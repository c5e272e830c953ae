from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from ..transport import DEFAULT_TIMEOUT_SECONDS, post_json


@dataclass
class OllamaLLM:
    """Generation backed by the Ollama chat API.

    Requires an Ollama server (default: http://localhost:11434). Requests are
    sent with ``stream: false``; a streamed reply is a transport error.
    """

    base_url: str = "http://localhost:11434"
    model: str = "qwen2.5:7b-instruct"
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    options: dict[str, Any] = field(default_factory=lambda: {"temperature": 0.2})
    client: httpx.Client | None = None

    @property
    def model_name(self) -> str:
        return self.model

    def prompt(self, user_prompt: str, system_prompt: str = "") -> str:
        data = post_json(
            f"{self.base_url.rstrip('/')}/api/chat",
            self._request_payload(user_prompt, system_prompt),
            timeout=self.timeout_seconds,
            client=self.client,
        )

        content = ""
        msg = data.get("message")
        if isinstance(msg, dict):
            content = str(msg.get("content") or "")
            # Some Ollama builds/models emit the primary payload under `thinking`.
            if not content.strip():
                content = str(msg.get("thinking") or "")
        return content

    def _request_payload(self, user_prompt: str, system_prompt: str) -> dict[str, Any]:
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        return {
            "model": self.model,
            "stream": False,
            "messages": messages,
            "options": dict(self.options),
        }
