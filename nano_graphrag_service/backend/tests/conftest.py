from __future__ import annotations

from pathlib import Path

import pytest

from nano_graphrag.graphrag import GraphRAG

VOCABULARY = ["apple", "banana", "cherry", "delta", "echo", "fox"]


class KeywordEmbedding:
    """One dimension per vocabulary word; counts occurrences. Records every call."""

    def __init__(self, vocabulary: list[str] | None = None) -> None:
        self.vocabulary = list(vocabulary or VOCABULARY)
        self.calls: list[list[str]] = []

    @property
    def embedding_dim(self) -> int:
        return len(self.vocabulary)

    @property
    def max_token_size(self) -> int:
        return 512

    def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        out: list[list[float]] = []
        for t in texts:
            words = t.lower().split()
            out.append([float(words.count(w)) for w in self.vocabulary])
        return out


class EmptyEmbedding(KeywordEmbedding):
    def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return []


class FakeLLM:
    def __init__(self, response: str = "generated answer") -> None:
        self.response = response
        self.calls: list[tuple[str, str]] = []

    @property
    def model_name(self) -> str:
        return "fake-llm"

    def prompt(self, user_prompt: str, system_prompt: str = "") -> str:
        self.calls.append((user_prompt, system_prompt))
        return self.response


@pytest.fixture
def embedding() -> KeywordEmbedding:
    return KeywordEmbedding()


@pytest.fixture
def make_rag(tmp_path: Path, embedding: KeywordEmbedding):
    def _make(**kwargs) -> GraphRAG:
        params = {
            "working_dir": str(tmp_path / "cache"),
            "tokenizer_type": "simple",
            "embedding_strategy": embedding,
            "enable_naive_rag": True,
        }
        params.update(kwargs)
        return GraphRAG(**params)

    return _make
