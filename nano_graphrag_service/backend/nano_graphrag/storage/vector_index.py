"""Brute-force numpy vector index with pluggable persistence.

Vectors live in one ``(n, dim)`` float32 matrix; a query scores every row.
Scores are cosine similarity, or ``1 / (1 + euclidean distance)`` for the
``l2`` metric, so that higher is always better for both metrics.

Persistence backends:
- ``file``: a single JSON document, replaced atomically on save
- ``sqlite``: one row per vector in a ``vectors`` table plus a ``meta`` table
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import numpy as np

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_METRICS = ("cosine", "l2")
SUPPORTED_BACKENDS = ("file", "sqlite")


@dataclass(frozen=True)
class IndexSnapshot:
    dim: int
    metric: str
    ids: list[str]
    vectors: list[list[float]]
    metadata: dict[str, dict[str, str]]


class IndexBackend(Protocol):
    def load(self) -> IndexSnapshot | None: ...

    def save(self, snapshot: IndexSnapshot) -> None: ...


class FileBackend:
    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> IndexSnapshot | None:
        if not self.path.exists():
            return None
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return None
        data = json.loads(raw)
        return IndexSnapshot(
            dim=int(data["dim"]),
            metric=str(data["metric"]),
            ids=[str(i) for i in data.get("ids", [])],
            vectors=[[float(x) for x in v] for v in data.get("vectors", [])],
            metadata={str(k): dict(v) for k, v in (data.get("metadata") or {}).items()},
        )

    def save(self, snapshot: IndexSnapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        payload = {
            "dim": snapshot.dim,
            "metric": snapshot.metric,
            "ids": snapshot.ids,
            "vectors": snapshot.vectors,
            "metadata": snapshot.metadata,
        }
        tmp.write_text(json.dumps(payload), encoding="utf-8")
        os.replace(tmp, self.path)


class SqliteBackend:
    def __init__(self, path: Path) -> None:
        self.path = path

    def _connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.path))
        conn.execute("CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS vectors (
                position INTEGER PRIMARY KEY,
                id TEXT NOT NULL UNIQUE,
                vector TEXT NOT NULL,
                metadata TEXT NOT NULL DEFAULT '{}'
            )
            """
        )
        return conn

    def load(self) -> IndexSnapshot | None:
        if not self.path.exists():
            return None
        conn = self._connect()
        try:
            meta = dict(conn.execute("SELECT key, value FROM meta").fetchall())
            if "dim" not in meta:
                return None
            rows = conn.execute("SELECT id, vector, metadata FROM vectors ORDER BY position").fetchall()
        finally:
            conn.close()
        return IndexSnapshot(
            dim=int(meta["dim"]),
            metric=str(meta.get("metric", "cosine")),
            ids=[str(r[0]) for r in rows],
            vectors=[[float(x) for x in json.loads(r[1])] for r in rows],
            metadata={str(r[0]): dict(json.loads(r[2])) for r in rows},
        )

    def save(self, snapshot: IndexSnapshot) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM vectors")
                conn.execute("DELETE FROM meta")
                conn.executemany(
                    "INSERT INTO meta (key, value) VALUES (?, ?)",
                    [("dim", str(snapshot.dim)), ("metric", snapshot.metric)],
                )
                conn.executemany(
                    "INSERT INTO vectors (position, id, vector, metadata) VALUES (?, ?, ?, ?)",
                    [
                        (pos, i, json.dumps(v), json.dumps(snapshot.metadata.get(i, {}), ensure_ascii=False))
                        for pos, (i, v) in enumerate(zip(snapshot.ids, snapshot.vectors))
                    ],
                )
        finally:
            conn.close()


def create_backend(kind: str, path: Path) -> IndexBackend:
    name = (kind or "").strip().lower()
    if name == "file":
        return FileBackend(path)
    if name == "sqlite":
        return SqliteBackend(path)
    raise ConfigurationError(f"Unsupported storage_backend {kind!r}; expected one of {SUPPORTED_BACKENDS}")


class NanoVectorIndex:
    """Fixed-dimension vector index.

    ``upsert`` replaces vectors by id and keeps first-insertion position;
    ``query`` returns ``(id, score)`` pairs by descending score, ties in
    insertion order.
    """

    def __init__(
        self,
        dim: int,
        *,
        metric: str = "cosine",
        storage_file: Path | str | None = None,
        storage_backend: str = "file",
        load: bool = True,
    ) -> None:
        if dim <= 0:
            raise ConfigurationError(f"Vector dimension must be positive, got {dim}")
        if metric not in SUPPORTED_METRICS:
            raise ConfigurationError(f"Unsupported metric {metric!r}; expected one of {SUPPORTED_METRICS}")

        self.dim = int(dim)
        self.metric = metric
        self.storage_file = Path(storage_file) if storage_file is not None else None
        self._backend = create_backend(storage_backend, self.storage_file) if self.storage_file else None

        self._ids: list[str] = []
        self._positions: dict[str, int] = {}
        self._metadata: dict[str, dict[str, str]] = {}
        self._matrix = np.zeros((0, self.dim), dtype=np.float32)

        if load and self._backend is not None:
            snapshot = self._backend.load()
            if snapshot is not None:
                self._restore(snapshot)

    def _restore(self, snapshot: IndexSnapshot) -> None:
        if snapshot.dim != self.dim:
            raise ConfigurationError(
                f"Stored index at {self.storage_file} has dim {snapshot.dim}, expected {self.dim}"
            )
        if snapshot.metric != self.metric:
            raise ConfigurationError(
                f"Stored index at {self.storage_file} uses metric {snapshot.metric!r}, expected {self.metric!r}"
            )
        self._ids = list(snapshot.ids)
        self._positions = {i: pos for pos, i in enumerate(self._ids)}
        self._metadata = {i: dict(snapshot.metadata.get(i, {})) for i in self._ids}
        if snapshot.vectors:
            self._matrix = np.asarray(snapshot.vectors, dtype=np.float32).reshape(len(self._ids), self.dim)
        logger.info(
            "vector_index_loaded",
            extra={"fields": {"path": str(self.storage_file), "count": len(self._ids)}},
        )

    def __len__(self) -> int:
        return len(self._ids)

    def get_metadata(self, item_id: str) -> dict[str, str]:
        return dict(self._metadata.get(item_id, {}))

    def upsert(
        self,
        items: list[tuple[str, list[float]]],
        metadata: dict[str, dict[str, str]] | None = None,
    ) -> None:
        """Insert or replace vectors by id; ``metadata`` replaces the stored map per id."""

        metadata = metadata or {}
        checked: list[tuple[str, np.ndarray]] = []
        for item_id, vector in items:
            vec = np.asarray(vector, dtype=np.float32)
            if vec.shape != (self.dim,):
                raise ValueError(f"Vector for {item_id!r} has shape {vec.shape}, expected ({self.dim},)")
            checked.append((item_id, vec))

        new_rows: list[np.ndarray] = []
        for item_id, vec in checked:
            self._metadata[item_id] = dict(metadata.get(item_id, {}))
            pos = self._positions.get(item_id)
            if pos is None:
                self._positions[item_id] = len(self._ids)
                self._ids.append(item_id)
                new_rows.append(vec)
            elif pos < self._matrix.shape[0]:
                self._matrix[pos] = vec
            else:
                # Repeated id within the same batch.
                new_rows[pos - self._matrix.shape[0]] = vec
        if new_rows:
            self._matrix = np.vstack([self._matrix, np.stack(new_rows)])

    def _scores(self, query: np.ndarray) -> np.ndarray:
        if self.metric == "l2":
            dist = np.linalg.norm(self._matrix - query, axis=1)
            return 1.0 / (1.0 + dist)
        norms = np.linalg.norm(self._matrix, axis=1) * float(np.linalg.norm(query))
        dots = self._matrix @ query
        return np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

    def query(self, vector: list[float], top_k: int, threshold: float | None = None) -> list[tuple[str, float]]:
        if not self._ids or top_k <= 0:
            return []
        q = np.asarray(vector, dtype=np.float32)
        if q.shape != (self.dim,):
            raise ValueError(f"Query vector has shape {q.shape}, expected ({self.dim},)")

        scores = self._scores(q)
        order = np.argsort(-scores, kind="stable")
        results: list[tuple[str, float]] = []
        for pos in order:
            score = float(scores[pos])
            if threshold is not None and score < threshold:
                # Sorted descending: nothing after this passes either.
                break
            results.append((self._ids[pos], score))
            if len(results) >= top_k:
                break
        return results

    def save(self) -> None:
        if self._backend is None:
            return
        self._backend.save(
            IndexSnapshot(
                dim=self.dim,
                metric=self.metric,
                ids=list(self._ids),
                vectors=self._matrix.tolist(),
                metadata={i: self._metadata.get(i, {}) for i in self._ids},
            )
        )
        logger.debug("vector_index_saved", extra={"fields": {"path": str(self.storage_file), "count": len(self._ids)}})
