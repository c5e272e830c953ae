from __future__ import annotations

from dataclasses import dataclass

import httpx

from ..errors import TransportError
from ..transport import DEFAULT_TIMEOUT_SECONDS, post_json


@dataclass
class OllamaEmbedding:
    """Embeddings from an Ollama server (``POST /api/embed``).

    Requires an Ollama server (default: http://localhost:11434) with the
    embedding model pulled.
    """

    base_url: str = "http://localhost:11434"
    model: str = "nomic-embed-text"
    dim: int = 768
    max_tokens: int = 8192
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    client: httpx.Client | None = None

    @property
    def embedding_dim(self) -> int:
        return self.dim

    @property
    def max_token_size(self) -> int:
        return self.max_tokens

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        url = f"{self.base_url.rstrip('/')}/api/embed"
        data = post_json(
            url,
            {"model": self.model, "input": list(texts)},
            timeout=self.timeout_seconds,
            client=self.client,
        )

        embeddings = data.get("embeddings")
        if not isinstance(embeddings, list):
            raise TransportError("Ollama response has no embeddings array", url=url)
        return [[float(x) for x in row] for row in embeddings if isinstance(row, list)]
