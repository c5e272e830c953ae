"""nano-graphrag HTTP backend.

A thin FastAPI layer over one GraphRAG instance:
- Insert raw documents or ingest a folder of text files
- Naive (chunk-level) retrieval with optional answer generation
- Health and Prometheus metrics

The instance is built from ``NANO_GRAPHRAG_*`` environment variables on
first use and guarded by a lock (GraphRAG itself is not thread-safe).
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from nano_graphrag.config import build_graphrag
from nano_graphrag.errors import classify_error
from nano_graphrag.graphrag import GraphRAG
from nano_graphrag.ingest import ingest_dataset
from nano_graphrag.logging_utils import (
    REQUEST_ID_HEADER,
    configure_json_logging,
    get_request_id,
    log_http_request,
    new_request_id,
    set_request_id,
)
from nano_graphrag.metrics import get_metrics, inc_error
from nano_graphrag.types import QueryParam

ERROR_STATUS = {
    "CONFIGURATION_ERROR": 400,
    "DATASET_NOT_FOUND": 404,
    "TRANSPORT_ERROR": 502,
}


class InsertRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    documents: list[str] = Field(..., min_length=1)


class IngestRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dataset_path: str = Field(..., min_length=1)
    split_paragraphs: bool = False


class QueryRequest(QueryParam):
    question: str = Field(..., min_length=1)
    mode: str = "naive"


class KnowledgeBase:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rag: GraphRAG | None = None

    def reset(self, rag: GraphRAG | None = None) -> None:
        with self._lock:
            self._rag = rag

    def is_ready(self) -> bool:
        with self._lock:
            return self._rag is not None and len(self._rag.full_docs) > 0

    def _get_unlocked(self) -> GraphRAG:
        if self._rag is None:
            self._rag = build_graphrag()
        return self._rag

    def insert(self, documents: list[str]) -> dict[str, Any]:
        with self._lock:
            rag = self._get_unlocked()
            chunks = rag.insert(documents)
            return {"documents": len(documents), "chunks": chunks, "total_documents": len(rag.full_docs)}

    def ingest(self, dataset_path: str, *, split: bool) -> dict[str, Any]:
        with self._lock:
            rag = self._get_unlocked()
            result = ingest_dataset(rag, dataset_path, split=split)
            return {
                "documents": result.document_count,
                "chunks": result.chunk_count,
                "warnings": result.warnings,
            }

    def query(self, question: str, param: QueryParam) -> dict[str, Any]:
        with self._lock:
            result = self._get_unlocked().query_result(question, param)
            return {"mode": param.mode, "kind": result.kind, "answer": result.text}


app = FastAPI(title="nano-graphrag", version="0.1.0")
kb = KnowledgeBase()
logger = logging.getLogger("nano_graphrag_service")


@app.on_event("startup")
def _startup() -> None:
    configure_json_logging()


@app.middleware("http")
async def request_id_middleware(request, call_next):  # type: ignore[no-untyped-def]
    rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
    set_request_id(rid)
    start = time.time()
    response = None
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "http_exception",
            extra={
                "fields": {
                    "method": request.method,
                    "path": request.url.path,
                }
            },
        )
        raise
    finally:
        client = None
        if getattr(request, "client", None) is not None:
            client = getattr(request.client, "host", None)
        log_http_request(
            logger=logger,
            method=str(request.method),
            path=str(request.url.path),
            status_code=int(getattr(response, "status_code", 500)),
            duration_ms=(time.time() - start) * 1000.0,
            client=client,
        )

    # echo back for clients & downstream logs
    response.headers[REQUEST_ID_HEADER] = get_request_id() or rid
    return response


def _coded_http_error(e: Exception, *, stage: str) -> HTTPException | None:
    coded = classify_error(e=e, stage=stage)  # type: ignore[arg-type]
    inc_error(stage=coded.stage, code=coded.code)
    status = ERROR_STATUS.get(coded.code)
    if status is None:
        return None
    return HTTPException(status_code=status, detail={"error_code": coded.code, "message": coded.message})


@app.get("/health")
def health() -> dict[str, Any]:
    return {"status": "ok", "kb_ready": kb.is_ready()}


@app.get("/metrics")
def metrics() -> Response:
    body, content_type = get_metrics().render()
    return Response(content=body, media_type=content_type)


@app.post("/insert")
def insert(req: InsertRequest) -> dict[str, Any]:
    try:
        return kb.insert(req.documents)
    except Exception as e:
        http_error = _coded_http_error(e, stage="insert")
        if http_error is None:
            raise
        raise http_error from e


@app.post("/ingest")
def ingest(req: IngestRequest) -> dict[str, Any]:
    try:
        return kb.ingest(req.dataset_path, split=req.split_paragraphs)
    except Exception as e:
        http_error = _coded_http_error(e, stage="ingest")
        if http_error is None:
            raise
        raise http_error from e


@app.post("/query")
def query(req: QueryRequest) -> dict[str, Any]:
    param = QueryParam(**req.model_dump(exclude={"question"}))
    try:
        return kb.query(req.question, param)
    except Exception as e:
        http_error = _coded_http_error(e, stage="query")
        if http_error is None:
            raise
        raise http_error from e


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("NANO_GRAPHRAG_HOST", "127.0.0.1"),
        port=int(os.getenv("NANO_GRAPHRAG_PORT", "8000")),
    )
