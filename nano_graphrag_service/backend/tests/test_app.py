from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

import app as service
from nano_graphrag.errors import TransportError
from nano_graphrag.logging_utils import REQUEST_ID_HEADER
from nano_graphrag.prompts import PROMPTS

from conftest import FakeLLM


class BrokenLLM(FakeLLM):
    def prompt(self, user_prompt: str, system_prompt: str = "") -> str:
        raise TransportError("HTTP 503 from upstream", url="http://llm", status_code=503)


@pytest.fixture
def client(make_rag):
    service.kb.reset(make_rag())
    yield TestClient(service.app)
    service.kb.reset(None)


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "kb_ready": False}


def test_insert_then_naive_query(client: TestClient) -> None:
    resp = client.post("/insert", json={"documents": ["apple apple banana", "delta echo"]})
    assert resp.status_code == 200
    assert resp.json() == {"documents": 2, "chunks": 2, "total_documents": 2}

    resp = client.post("/query", json={"question": "apple", "top_k": 1})
    assert resp.status_code == 200
    assert resp.json() == {"mode": "naive", "kind": "context", "answer": "apple apple banana"}
    assert client.get("/health").json()["kb_ready"] is True


def test_query_other_mode(client: TestClient) -> None:
    resp = client.post("/query", json={"question": "apple", "mode": "global"})
    assert resp.json()["kind"] == "unsupported_mode"
    assert resp.json()["answer"] == PROMPTS["fail_response"]


def test_query_rejects_unknown_fields(client: TestClient) -> None:
    resp = client.post("/query", json={"question": "apple", "temperature": 0.1})
    assert resp.status_code == 422


def test_query_transport_error_is_502(make_rag) -> None:
    service.kb.reset(make_rag(llm_strategy=BrokenLLM()))
    try:
        client = TestClient(service.app)
        client.post("/insert", json={"documents": ["apple"]})
        resp = client.post("/query", json={"question": "apple"})
    finally:
        service.kb.reset(None)

    assert resp.status_code == 502
    assert resp.json()["detail"]["error_code"] == "TRANSPORT_ERROR"


def test_ingest_missing_dataset_is_404(client: TestClient, tmp_path: Path) -> None:
    resp = client.post("/ingest", json={"dataset_path": str(tmp_path / "missing")})
    assert resp.status_code == 404
    assert resp.json()["detail"]["error_code"] == "DATASET_NOT_FOUND"


def test_ingest_folder(client: TestClient, tmp_path: Path) -> None:
    (tmp_path / "notes.txt").write_text("cherry fox\n\nbanana", encoding="utf-8")
    resp = client.post("/ingest", json={"dataset_path": str(tmp_path), "split_paragraphs": True})
    assert resp.status_code == 200
    assert resp.json()["documents"] == 2


def test_request_id_is_echoed(client: TestClient) -> None:
    resp = client.get("/health", headers={REQUEST_ID_HEADER: "rid-42"})
    assert resp.headers[REQUEST_ID_HEADER] == "rid-42"


def test_metrics_exposes_counters(client: TestClient) -> None:
    client.post("/insert", json={"documents": ["apple"]})
    client.post("/query", json={"question": "apple"})
    body = client.get("/metrics").text
    assert "nano_graphrag_documents_inserted_total" in body
    assert 'nano_graphrag_queries_total{mode="naive",outcome="context"}' in body
