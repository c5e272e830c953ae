from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import httpx

from ..errors import ConfigurationError, TransportError
from ..transport import DEFAULT_TIMEOUT_SECONDS, post_json

OPENAI_BASE_URL = "https://api.openai.com"
OPENAI_API_KEY_ENV = "OPENAI_API_KEY"


@dataclass
class OpenAIEmbedding:
    """Embeddings from the OpenAI ``/v1/embeddings`` endpoint.

    One request per ``embed`` call. The API key is read from
    ``OPENAI_API_KEY`` at call time unless given explicitly.
    """

    model: str = "text-embedding-3-small"
    dim: int = 1536
    max_tokens: int = 8191
    base_url: str = OPENAI_BASE_URL
    api_key: str | None = None
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

        api_key = self.api_key or os.getenv(OPENAI_API_KEY_ENV)
        if not api_key:
            raise ConfigurationError(f"{OPENAI_API_KEY_ENV} is not set")

        url = f"{self.base_url.rstrip('/')}/v1/embeddings"
        data = post_json(
            url,
            {"model": self.model, "input": list(texts)},
            api_key=api_key,
            timeout=self.timeout_seconds,
            client=self.client,
        )

        items = data.get("data")
        if not isinstance(items, list):
            raise TransportError("Embedding response has no data array", url=url)

        # The API may return items out of order; `index` is authoritative when present.
        rows: list[tuple[int, list[float]]] = []
        for pos, item in enumerate(items):
            if not isinstance(item, dict):
                continue
            emb: Any = item.get("embedding")
            if not isinstance(emb, list):
                continue
            idx = item.get("index", pos)
            rows.append((int(idx) if isinstance(idx, int) else pos, [float(x) for x in emb]))
        rows.sort(key=lambda r: r[0])
        return [emb for _, emb in rows]
