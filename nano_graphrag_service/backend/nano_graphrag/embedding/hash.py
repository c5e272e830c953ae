"""Offline bag-of-words hashing embedding.

Each whitespace token is hashed with blake2b into one of ``dim`` buckets and
counted; the vector is then L2-normalised. Deterministic across processes
(unlike ``hash()``), needs no network, and is good enough for tests, demos
and lexical-overlap retrieval.
"""

from __future__ import annotations

import hashlib

import numpy as np

DEFAULT_DIM = 256
DEFAULT_MAX_TOKEN_SIZE = 8192


def _bucket(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "little") % dim


class HashEmbedding:
    def __init__(self, dim: int = DEFAULT_DIM, max_token_size: int = DEFAULT_MAX_TOKEN_SIZE) -> None:
        if dim <= 0:
            raise ValueError("dim must be positive")
        self._dim = int(dim)
        self._max_token_size = int(max_token_size)

    @property
    def embedding_dim(self) -> int:
        return self._dim

    @property
    def max_token_size(self) -> int:
        return self._max_token_size

    def _embed_one(self, text: str) -> list[float]:
        vec = np.zeros(self._dim, dtype=np.float32)
        tokens = (text or "").lower().split()[: self._max_token_size]
        for tok in tokens:
            vec[_bucket(tok, self._dim)] += 1.0
        norm = float(np.linalg.norm(vec))
        if norm > 0:
            vec /= norm
        return vec.tolist()

    def embed(self, texts: list[str]) -> list[list[float]]:
        return [self._embed_one(t) for t in texts]
