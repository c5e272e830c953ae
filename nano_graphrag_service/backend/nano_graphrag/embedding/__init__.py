from __future__ import annotations

from typing import Any

from .base import EmbeddingStrategy
from .hash import HashEmbedding
from .ollama import OllamaEmbedding
from .openai import OpenAIEmbedding


def create_embedding_strategy(kind: str, **kwargs: Any) -> EmbeddingStrategy | None:
    """Build an embedding strategy by name; unknown names give ``None``.

    Keyword arguments are passed to the strategy constructor.
    """

    name = (kind or "").strip().lower()
    if name == "hash":
        return HashEmbedding(**kwargs)
    if name == "openai":
        return OpenAIEmbedding(**kwargs)
    if name == "ollama":
        return OllamaEmbedding(**kwargs)
    return None


__all__ = [
    "EmbeddingStrategy",
    "HashEmbedding",
    "OllamaEmbedding",
    "OpenAIEmbedding",
    "create_embedding_strategy",
]
