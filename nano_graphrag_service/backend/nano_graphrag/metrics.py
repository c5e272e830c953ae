from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, generate_latest


@dataclass
class Metrics:
    registry: CollectorRegistry
    errors_total: Counter
    documents_inserted_total: Counter
    chunks_indexed_total: Counter
    queries_total: Counter

    def render(self) -> tuple[bytes, str]:
        return generate_latest(self.registry), CONTENT_TYPE_LATEST


_metrics_singleton: Metrics | None = None


def get_metrics() -> Metrics:
    global _metrics_singleton
    if _metrics_singleton is not None:
        return _metrics_singleton

    # Dedicated registry so repeated imports (tests, uvicorn reload) never register twice.
    registry = CollectorRegistry(auto_describe=True)

    errors_total = Counter(
        "nano_graphrag_errors_total",
        "Total classified errors",
        ["stage", "code"],
        registry=registry,
    )
    documents_inserted_total = Counter(
        "nano_graphrag_documents_inserted_total",
        "Documents passed to insert (re-inserts included)",
        registry=registry,
    )
    chunks_indexed_total = Counter(
        "nano_graphrag_chunks_indexed_total",
        "Chunk records upserted into the chunk store",
        registry=registry,
    )
    queries_total = Counter(
        "nano_graphrag_queries_total",
        "Queries by mode and result kind",
        ["mode", "outcome"],
        registry=registry,
    )

    _metrics_singleton = Metrics(
        registry=registry,
        errors_total=errors_total,
        documents_inserted_total=documents_inserted_total,
        chunks_indexed_total=chunks_indexed_total,
        queries_total=queries_total,
    )
    return _metrics_singleton


def inc_error(*, stage: str, code: str) -> None:
    get_metrics().errors_total.labels(stage=str(stage), code=str(code)).inc()


def record_insert(*, documents: int, chunks: int) -> None:
    m = get_metrics()
    m.documents_inserted_total.inc(documents)
    m.chunks_indexed_total.inc(chunks)


def record_query(*, mode: str, outcome: str) -> None:
    get_metrics().queries_total.labels(mode=str(mode), outcome=str(outcome)).inc()
