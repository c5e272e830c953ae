from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from ..embedding import EmbeddingStrategy
from ..utils import parse_bool, parse_float
from .base import StorageNameSpace
from .vector_index import NanoVectorIndex

logger = logging.getLogger(__name__)

DEFAULT_QUERY_THRESHOLD = 0.2


@dataclass
class NanoVectorDBStorage(StorageNameSpace):
    """Embeds record content and answers nearest-neighbour queries.

    Recognised ``global_config`` keys: ``working_dir``, ``metric``
    (``cosine`` | ``l2``), ``storage_backend`` (``file`` | ``sqlite``),
    ``storage_file``, ``query_better_than_threshold`` (default 0.2, applied
    only when > 0) and ``auto_save`` (default off).

    The index is created on the first upsert; a storage file left by an
    earlier run is loaded at that point, or at the first query.
    """

    embedding_strategy: EmbeddingStrategy | None = None
    meta_fields: set[str] = field(default_factory=set)

    _index: NanoVectorIndex | None = field(default=None, init=False, repr=False)
    _skip_stored: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        cfg = self.global_config
        self.metric = str(cfg.get("metric") or "cosine")
        self.storage_backend = str(cfg.get("storage_backend") or "file")
        self.cosine_better_than_threshold = parse_float(
            cfg.get("query_better_than_threshold"), DEFAULT_QUERY_THRESHOLD
        )
        self.auto_save = parse_bool(cfg.get("auto_save"), False)

        storage_file = cfg.get("storage_file")
        if storage_file:
            self.storage_file: Path | None = Path(str(storage_file))
        elif cfg.get("working_dir"):
            suffix = ".sqlite" if self.storage_backend == "sqlite" else ".json"
            self.storage_file = Path(str(cfg["working_dir"])) / f"vdb_{self.namespace}{suffix}"
        else:
            self.storage_file = None

    @property
    def embedding_dim(self) -> int:
        return self.embedding_strategy.embedding_dim if self.embedding_strategy is not None else 0

    @property
    def index(self) -> NanoVectorIndex | None:
        return self._index

    def _ensure_index(self, dim: int) -> NanoVectorIndex:
        if self._index is None:
            self._index = NanoVectorIndex(
                dim,
                metric=self.metric,
                storage_file=self.storage_file,
                storage_backend=self.storage_backend,
                load=not self._skip_stored,
            )
        return self._index

    def _embed(self, texts: list[str]) -> list[list[float]]:
        if self.embedding_strategy is None or not texts:
            return []
        return self.embedding_strategy.embed(texts)

    def upsert(self, data: Mapping[str, Mapping[str, Any]]) -> None:
        if not data:
            logger.warning("vector_upsert_empty", extra={"fields": {"namespace": self.namespace}})
            return

        ids = list(data.keys())
        contents = [str(data[i].get("content", "")) for i in ids]
        metadata = {
            i: {k: str(v) for k, v in data[i].items() if k in self.meta_fields} for i in ids
        }

        # One batched call for the whole upsert.
        embeddings = self._embed(contents)
        dim = self.embedding_dim or (len(embeddings[0]) if embeddings else 0)
        if len(embeddings) != len(ids):
            logger.warning(
                "embedding_count_mismatch",
                extra={"fields": {"namespace": self.namespace, "expected": len(ids), "got": len(embeddings)}},
            )
            embeddings = [[0.0] * dim for _ in ids]
        if dim <= 0:
            logger.warning("vector_upsert_no_dimension", extra={"fields": {"namespace": self.namespace}})
            return

        index = self._ensure_index(dim)
        index.upsert(list(zip(ids, embeddings)), metadata)
        logger.info("vector_upsert", extra={"fields": {"namespace": self.namespace, "count": len(ids)}})

        if self.auto_save:
            index.save()

    def query(self, query: str, top_k: int = 5) -> list[dict[str, Any]]:
        """Nearest records to ``query`` as metadata rows with ``id`` and ``score``.

        Highest score first. Empty when nothing was ever indexed.
        """

        if self._index is None:
            if self._skip_stored or self.embedding_dim <= 0:
                return []
            if self.storage_file is None or not self.storage_file.exists():
                return []
            self._ensure_index(self.embedding_dim)
        index = self._index
        assert index is not None

        embeddings = self._embed([query])
        vector = embeddings[0] if embeddings else [0.0] * index.dim

        threshold = self.cosine_better_than_threshold if self.cosine_better_than_threshold > 0 else None
        hits = index.query(vector, top_k, threshold)

        rows: list[dict[str, Any]] = []
        for item_id, score in hits:
            row: dict[str, Any] = index.get_metadata(item_id)
            row["id"] = item_id
            row["score"] = score
            rows.append(row)
        return rows

    def drop(self) -> None:
        """Forget every vector; the storage file is overwritten on the next save."""

        self._index = None
        self._skip_stored = True
        logger.info("vector_index_dropped", extra={"fields": {"namespace": self.namespace}})

    def save(self) -> None:
        """Write the index to its storage file (no-op before the first upsert)."""

        if self._index is not None:
            self._index.save()
