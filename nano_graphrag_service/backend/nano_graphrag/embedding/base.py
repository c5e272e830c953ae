from __future__ import annotations

from typing import Protocol


class EmbeddingStrategy(Protocol):
    """Embedding provider interface (structural typing).

    ``embed`` is batch in, batch out: one vector per input text, in order.
    Callers tolerate a count mismatch by falling back to zero vectors.
    """

    @property
    def embedding_dim(self) -> int: ...

    @property
    def max_token_size(self) -> int: ...

    def embed(self, texts: list[str]) -> list[list[float]]: ...
