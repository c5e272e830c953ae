"""Environment-driven configuration.

Every knob has a ``NANO_GRAPHRAG_*`` variable (Ollama keeps the usual
``OLLAMA_*`` names). Empty variables count as unset.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .embedding import EmbeddingStrategy, create_embedding_strategy
from .errors import ConfigurationError
from .graphrag import GraphRAG
from .llm import LLMStrategy, create_llm_strategy
from .utils import env_bool, env_float, env_int, env_str

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphRAGSettings:
    working_dir: str = "./nano_graphrag_cache"
    chunk_token_size: int = 1200
    chunk_overlap_token_size: int = 100
    tokenizer: str = "tiktoken"
    embedding: str = "hash"
    llm: str = "none"
    enable_naive_rag: bool = True
    vector_metric: str = "cosine"
    storage_backend: str = "file"
    auto_save: bool = False
    query_threshold: float = 0.0
    timeout_seconds: float = 60.0
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "qwen2.5:7b-instruct"
    ollama_embed_model: str = "nomic-embed-text"

    @classmethod
    def from_env(cls) -> "GraphRAGSettings":
        d = cls()
        return cls(
            working_dir=env_str("NANO_GRAPHRAG_WORKING_DIR", d.working_dir),
            chunk_token_size=env_int("NANO_GRAPHRAG_CHUNK_TOKEN_SIZE", d.chunk_token_size),
            chunk_overlap_token_size=env_int("NANO_GRAPHRAG_CHUNK_OVERLAP_TOKEN_SIZE", d.chunk_overlap_token_size),
            tokenizer=env_str("NANO_GRAPHRAG_TOKENIZER", d.tokenizer).lower(),
            embedding=env_str("NANO_GRAPHRAG_EMBEDDING", d.embedding).lower(),
            llm=env_str("NANO_GRAPHRAG_LLM", d.llm).lower(),
            enable_naive_rag=env_bool("NANO_GRAPHRAG_ENABLE_NAIVE", "1"),
            vector_metric=env_str("NANO_GRAPHRAG_VECTOR_METRIC", d.vector_metric).lower(),
            storage_backend=env_str("NANO_GRAPHRAG_STORAGE_BACKEND", d.storage_backend).lower(),
            auto_save=env_bool("NANO_GRAPHRAG_AUTO_SAVE", "0"),
            query_threshold=env_float("NANO_GRAPHRAG_QUERY_THRESHOLD", d.query_threshold),
            timeout_seconds=env_float("NANO_GRAPHRAG_TIMEOUT_SECONDS", d.timeout_seconds),
            ollama_base_url=env_str("OLLAMA_BASE_URL", d.ollama_base_url),
            ollama_model=env_str("OLLAMA_MODEL", d.ollama_model),
            ollama_embed_model=env_str("OLLAMA_EMBED_MODEL", d.ollama_embed_model),
        )


def build_embedding_strategy(settings: GraphRAGSettings) -> EmbeddingStrategy:
    kwargs: dict[str, Any] = {}
    if settings.embedding in {"openai", "ollama"}:
        kwargs["timeout_seconds"] = settings.timeout_seconds
    if settings.embedding == "ollama":
        kwargs["base_url"] = settings.ollama_base_url
        kwargs["model"] = settings.ollama_embed_model

    strategy = create_embedding_strategy(settings.embedding, **kwargs)
    if strategy is None:
        raise ConfigurationError(f"Unknown embedding strategy {settings.embedding!r}")
    return strategy


def build_llm_strategy(settings: GraphRAGSettings) -> LLMStrategy | None:
    if settings.llm in {"", "none"}:
        return None

    kwargs: dict[str, Any] = {"timeout_seconds": settings.timeout_seconds}
    if settings.llm == "ollama":
        kwargs["base_url"] = settings.ollama_base_url
        kwargs["model"] = settings.ollama_model

    strategy = create_llm_strategy(settings.llm, **kwargs)
    if strategy is None:
        raise ConfigurationError(f"Unknown llm strategy {settings.llm!r}")
    return strategy


def build_graphrag(settings: GraphRAGSettings | None = None) -> GraphRAG:
    """Wire a GraphRAG instance from ``settings`` (environment when omitted)."""

    settings = settings or GraphRAGSettings.from_env()
    rag = GraphRAG(
        working_dir=settings.working_dir,
        chunk_token_size=settings.chunk_token_size,
        chunk_overlap_token_size=settings.chunk_overlap_token_size,
        tokenizer_type=settings.tokenizer,
        embedding_strategy=build_embedding_strategy(settings),
        llm_strategy=build_llm_strategy(settings),
        vector_db_storage_cls_kwargs={
            "metric": settings.vector_metric,
            "storage_backend": settings.storage_backend,
            "auto_save": settings.auto_save,
        },
        naive_query_threshold=settings.query_threshold,
        enable_naive_rag=settings.enable_naive_rag,
    )
    logger.info(
        "graphrag_configured",
        extra={
            "fields": {
                "tokenizer": rag.tokenizer.kind,
                "embedding": settings.embedding,
                "llm": settings.llm,
                "naive": settings.enable_naive_rag,
            }
        },
    )
    return rag
