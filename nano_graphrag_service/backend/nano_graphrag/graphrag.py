from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any

from .chunker import TextChunker
from .embedding import EmbeddingStrategy
from .errors import ConfigurationError
from .llm import LLMStrategy
from .metrics import record_insert, record_query
from .prompts import PROMPTS, naive_rag_response
from .storage import InMemoryGraphStorage, JsonKVStorage, NanoVectorDBStorage, StorageNameSpace
from .tokenizer import SimpleTokenizer, TokenizerStrategy, create_tokenizer
from .types import Community, QueryParam, QueryResult, TextChunk
from .utils import compute_mdhash_id

logger = logging.getLogger(__name__)

DOC_ID_PREFIX = "doc-"
CHUNK_SEPARATOR = "\n--New Chunk--\n"


def _make_tokenizer(kind: str) -> TokenizerStrategy | None:
    try:
        return create_tokenizer(kind)
    except Exception as e:
        # tiktoken may need to fetch its encoding files on first use.
        logger.warning(
            "tokenizer_init_failed",
            extra={"fields": {"tokenizer": kind, "error": f"{type(e).__name__}: {e}"}},
        )
        return None


@dataclass
class GraphRAG:
    """Document indexing and retrieval orchestrator.

    Owns the document, chunk and community-report stores, the entity graph,
    and up to two vector indices (entities, chunks). ``insert`` chunks and
    indexes documents; ``query`` answers in ``naive`` mode only.

    Not thread-safe: share an instance across threads only behind a lock.
    """

    working_dir: str = "./nano_graphrag_cache"
    enable_local: bool = True
    enable_naive_rag: bool = False

    # chunking
    chunk_token_size: int = 1200
    chunk_overlap_token_size: int = 100
    tokenizer_type: str = "tiktoken"

    # strategies
    embedding_strategy: EmbeddingStrategy | None = None
    llm_strategy: LLMStrategy | None = None

    # vector storage: metric, storage_backend, auto_save, query_better_than_threshold
    vector_db_storage_cls_kwargs: dict[str, Any] = field(default_factory=dict)
    # Chunk index similarity cut-off; 0 keeps every hit.
    naive_query_threshold: float = 0.0

    def __post_init__(self) -> None:
        os.makedirs(self.working_dir, exist_ok=True)
        logger.info("graphrag_init", extra={"fields": {"working_dir": self.working_dir}})

        global_config: dict[str, Any] = {"working_dir": self.working_dir}
        self.full_docs: JsonKVStorage[dict[str, str]] = JsonKVStorage("full_docs", dict(global_config))
        self.text_chunks: JsonKVStorage[TextChunk] = JsonKVStorage("text_chunks", dict(global_config))
        self.community_reports: JsonKVStorage[Community] = JsonKVStorage("community_reports", dict(global_config))
        self.chunk_entity_relation_graph = InMemoryGraphStorage("chunk_entity_relation", dict(global_config))

        tokenizer = _make_tokenizer(self.tokenizer_type)
        if tokenizer is None:
            logger.warning(
                "tokenizer_fallback",
                extra={"fields": {"requested": self.tokenizer_type, "using": "simple"}},
            )
            tokenizer = SimpleTokenizer()
        self.tokenizer: TokenizerStrategy = tokenizer
        self.chunker = TextChunker(self.tokenizer, self.chunk_token_size, self.chunk_overlap_token_size)

        self.entities_vdb: NanoVectorDBStorage | None = None
        self.chunks_vdb: NanoVectorDBStorage | None = None
        self._build_entities_vdb()
        if self.enable_naive_rag:
            self.enable_naive(True)

    def _vdb_config(self, **overrides: Any) -> dict[str, Any]:
        cfg: dict[str, Any] = {"working_dir": self.working_dir}
        cfg.update(self.vector_db_storage_cls_kwargs)
        cfg.update(overrides)
        return cfg

    def _build_entities_vdb(self) -> None:
        if self.enable_local and self.embedding_strategy is not None:
            self.entities_vdb = NanoVectorDBStorage(
                "entities",
                self._vdb_config(),
                embedding_strategy=self.embedding_strategy,
                meta_fields={"entity_name"},
            )
        else:
            self.entities_vdb = None

    def _storages(self) -> list[StorageNameSpace]:
        storages: list[StorageNameSpace] = [
            self.full_docs,
            self.text_chunks,
            self.community_reports,
            self.chunk_entity_relation_graph,
        ]
        for vdb in (self.entities_vdb, self.chunks_vdb):
            if vdb is not None:
                storages.append(vdb)
        return storages

    # -- configuration -----------------------------------------------------

    def set_chunk_params(self, max_tokens: int, overlap_tokens: int) -> None:
        chunker = TextChunker(self.tokenizer, max_tokens, overlap_tokens)
        self.chunk_token_size = max_tokens
        self.chunk_overlap_token_size = overlap_tokens
        self.chunker = chunker

    def set_tokenizer(self, kind: str) -> None:
        tokenizer = _make_tokenizer(kind)
        if tokenizer is None:
            raise ConfigurationError(f"Unknown or unavailable tokenizer {kind!r}")
        self.tokenizer_type = kind
        self.tokenizer = tokenizer
        self.chunker.tokenizer = tokenizer

    def set_embedding_strategy(self, strategy: EmbeddingStrategy | None) -> None:
        """Swap the embedder used by every vector index.

        A chunk index built with a different dimension is dropped and the
        stored chunks are re-embedded with ``strategy``.
        """

        self.embedding_strategy = strategy
        self._build_entities_vdb()
        if self.chunks_vdb is None:
            return
        index = self.chunks_vdb.index
        self.chunks_vdb.embedding_strategy = strategy
        if index is not None and self.chunks_vdb.embedding_dim != index.dim:
            self.chunks_vdb.drop()
            self._reindex_chunks()

    def _reindex_chunks(self) -> None:
        assert self.chunks_vdb is not None
        data: dict[str, dict[str, str]] = {}
        for key in self.text_chunks.all_keys():
            chunk = self.text_chunks.get_by_id(key)
            if chunk is not None:
                data[key] = {"content": chunk.content}
        if data:
            self.chunks_vdb.upsert(data)
        logger.info("chunk_index_rebuilt", extra={"fields": {"chunks": len(data)}})

    def set_llm_strategy(self, strategy: LLMStrategy | None) -> None:
        self.llm_strategy = strategy

    def enable_naive(self, enabled: bool) -> None:
        """Turn chunk-level vector retrieval on or off.

        Turning it on attaches a new chunk index that loads the working
        directory's stored chunk index, if any, on first use. Chunks inserted
        while it was off are not in it.
        """

        self.enable_naive_rag = enabled
        if enabled:
            self.chunks_vdb = NanoVectorDBStorage(
                "chunks",
                self._vdb_config(query_better_than_threshold=self.naive_query_threshold),
                embedding_strategy=self.embedding_strategy,
            )
            logger.info("naive_rag_enabled", extra={"fields": {"working_dir": self.working_dir}})

    # -- indexing ------------------------------------------------------------

    def insert(self, docs: str | list[str]) -> int:
        """Chunk and index ``docs``; returns the number of chunk records upserted.

        Re-inserting a document always re-derives its chunks; content-hash
        ids make the stored result the same as the first insert.
        """

        if isinstance(docs, str):
            docs = [docs]

        t0 = time.perf_counter()
        for storage in self._storages():
            storage.index_start_callback()
        try:
            new_docs = {compute_mdhash_id(c, prefix=DOC_ID_PREFIX): {"content": c} for c in docs}
            inserting_chunks = self.chunker.get_chunks(new_docs)

            if self.enable_naive_rag and self.chunks_vdb is not None and inserting_chunks:
                self.chunks_vdb.upsert({k: {"content": v.content} for k, v in inserting_chunks.items()})

            self.text_chunks.upsert(inserting_chunks)
            self.full_docs.upsert(new_docs)
        finally:
            for storage in self._storages():
                storage.index_done_callback()

        record_insert(documents=len(new_docs), chunks=len(inserting_chunks))
        logger.info(
            "insert_done",
            extra={
                "fields": {
                    "documents": len(new_docs),
                    "chunks": len(inserting_chunks),
                    "duration_ms": int((time.perf_counter() - t0) * 1000),
                }
            },
        )
        return len(inserting_chunks)

    # -- retrieval -------------------------------------------------------------

    def query(self, q: str, param: QueryParam | None = None) -> str:
        return self.query_result(q, param).text

    def query_result(self, q: str, param: QueryParam | None = None) -> QueryResult:
        param = param or QueryParam()
        try:
            if param.mode == "naive":
                result = self._naive_query(q, param)
            else:
                # local/global answer synthesis is not implemented.
                result = QueryResult(kind="unsupported_mode", text=PROMPTS["fail_response"])
        finally:
            for storage in self._storages():
                storage.query_done_callback()

        record_query(mode=param.mode, outcome=result.kind)
        logger.info("query_done", extra={"fields": {"mode": param.mode, "outcome": result.kind}})
        return result

    def build_naive_context(self, q: str, param: QueryParam) -> str | None:
        """Token-budgeted context for ``q``, or ``None`` when nothing was retrieved.

        Chunks are taken in score order; the first chunk that would push the
        running token count over ``naive_max_token_for_text_unit`` is dropped
        and assembly stops there (chunks are never truncated).
        """

        if self.chunks_vdb is None:
            return None
        results = self.chunks_vdb.query(q, top_k=param.top_k)
        if not results:
            return None

        chunks = self.text_chunks.get_by_ids([r["id"] for r in results])
        parts: list[str] = []
        tokens = 0
        for chunk in chunks:
            if chunk is None:
                continue
            tokens += chunk.tokens
            if tokens > param.naive_max_token_for_text_unit:
                break
            parts.append(chunk.content)
        logger.debug(
            "naive_context",
            extra={"fields": {"hits": len(results), "used": len(parts), "tokens": tokens}},
        )
        return CHUNK_SEPARATOR.join(parts)

    def _naive_query(self, q: str, param: QueryParam) -> QueryResult:
        section = self.build_naive_context(q, param)
        if section is None:
            return QueryResult(kind="no_context", text=PROMPTS["no_context_response"])
        if param.only_need_context or self.llm_strategy is None:
            return QueryResult(kind="context", text=section)

        sys_prompt = naive_rag_response(section, param.response_type)
        response = self.llm_strategy.prompt(q, sys_prompt)
        if not response:
            return QueryResult(kind="context", text=section)
        return QueryResult(kind="answer", text=response)
