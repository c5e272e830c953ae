from __future__ import annotations

from typing import Any

from .base import LLMStrategy
from .ollama import OllamaLLM
from .openai import OpenAILLM


def create_llm_strategy(kind: str, **kwargs: Any) -> LLMStrategy | None:
    """Build a generation strategy by name; unknown names (and ``none``) give ``None``."""

    name = (kind or "").strip().lower()
    if name == "openai":
        return OpenAILLM(**kwargs)
    if name == "ollama":
        return OllamaLLM(**kwargs)
    return None


__all__ = ["LLMStrategy", "OllamaLLM", "OpenAILLM", "create_llm_strategy"]
