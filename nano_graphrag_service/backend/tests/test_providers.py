from __future__ import annotations

import json
from typing import Callable

import httpx
import numpy as np
import pytest

from nano_graphrag.embedding import HashEmbedding, OllamaEmbedding, OpenAIEmbedding, create_embedding_strategy
from nano_graphrag.errors import ConfigurationError, TransportError
from nano_graphrag.llm import OllamaLLM, OpenAILLM, create_llm_strategy
from nano_graphrag.llm.openai import extract_response_text
from nano_graphrag.transport import post_json


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_post_json_sends_body_and_bearer_token() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True})

    data = post_json("https://api.test/v1/x", {"a": 1}, api_key="sk-test", client=_client(handler))

    assert data == {"ok": True}
    assert seen == {"auth": "Bearer sk-test", "body": {"a": 1}}


def test_post_json_non_success_status() -> None:
    client = _client(lambda request: httpx.Response(500, json={"error": "boom"}))
    with pytest.raises(TransportError) as excinfo:
        post_json("https://api.test/v1/x", {}, client=client)
    assert excinfo.value.status_code == 500


@pytest.mark.parametrize("content_type", ["text/event-stream", "application/x-ndjson; charset=utf-8"])
def test_post_json_rejects_streamed_content_types(content_type: str) -> None:
    client = _client(
        lambda request: httpx.Response(200, headers={"Content-Type": content_type}, content=b"data: {}\n\n")
    )
    with pytest.raises(TransportError, match="Streaming"):
        post_json("https://api.test/v1/x", {}, client=client)


def test_post_json_rejects_chunked_transfer() -> None:
    client = _client(
        lambda request: httpx.Response(
            200,
            headers={"Content-Type": "application/json", "Transfer-Encoding": "chunked"},
            content=b"{}",
        )
    )
    with pytest.raises(TransportError, match="Chunked"):
        post_json("https://api.test/v1/x", {}, client=client)


def test_post_json_wraps_network_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError) as excinfo:
        post_json("https://api.test/v1/x", {}, client=_client(handler))
    assert excinfo.value.url == "https://api.test/v1/x"


def test_post_json_rejects_non_json_body() -> None:
    client = _client(lambda request: httpx.Response(200, content=b"not json"))
    with pytest.raises(TransportError):
        post_json("https://api.test/v1/x", {}, client=client)


def test_openai_embedding_orders_by_index() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.url.path == "/v1/embeddings"
        assert body == {"model": "text-embedding-3-small", "input": ["a", "b"]}
        return httpx.Response(
            200,
            json={"data": [{"index": 1, "embedding": [0.0, 1.0]}, {"index": 0, "embedding": [1.0, 0.0]}]},
        )

    emb = OpenAIEmbedding(dim=2, api_key="sk-test", client=_client(handler))
    assert emb.embedding_dim == 2
    assert emb.embed(["a", "b"]) == [[1.0, 0.0], [0.0, 1.0]]


def test_openai_embedding_empty_batch_makes_no_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert OpenAIEmbedding(api_key="sk-test", client=_client(handler)).embed([]) == []


def test_openai_requires_api_key(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        OpenAIEmbedding().embed(["a"])
    with pytest.raises(ConfigurationError):
        OpenAILLM().prompt("hi")


def test_openai_llm_uses_responses_api() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.url.path == "/v1/responses"
        assert body == {"model": "gpt-4.1-mini", "input": "question", "instructions": "system"}
        return httpx.Response(200, json={"output_text": "answer"})

    llm = OpenAILLM(api_key="sk-test", client=_client(handler))
    assert llm.model_name == "gpt-4.1-mini"
    assert llm.prompt("question", "system") == "answer"


@pytest.mark.parametrize(
    "payload,expected",
    [
        ({"output_text": "direct"}, "direct"),
        ({"output": [{"content": [{"type": "output_text", "text": "nested"}]}]}, "nested"),
        ({"choices": [{"message": {"content": "chat"}}]}, "chat"),
        ({"output": []}, ""),
        ({}, ""),
    ],
)
def test_extract_response_text(payload: dict, expected: str) -> None:
    assert extract_response_text(payload) == expected


def test_ollama_llm_payload_and_thinking_fallback() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content))
        return httpx.Response(200, json={"message": {"content": "", "thinking": "thought"}})

    llm = OllamaLLM(base_url="http://ollama:11434/", model="m", client=_client(handler))

    assert llm.prompt("user", "sys") == "thought"
    assert seen["stream"] is False
    assert seen["messages"] == [{"role": "system", "content": "sys"}, {"role": "user", "content": "user"}]


def test_ollama_embedding() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/embed"
        return httpx.Response(200, json={"embeddings": [[1, 2], [3, 4]]})

    emb = OllamaEmbedding(dim=2, client=_client(handler))
    assert emb.embed(["a", "b"]) == [[1.0, 2.0], [3.0, 4.0]]


def test_hash_embedding_is_deterministic_and_normalised() -> None:
    emb = HashEmbedding(dim=64)
    first, empty = emb.embed(["Graph rag graph", ""])

    assert first == emb.embed(["graph RAG graph"])[0]
    assert len(first) == 64
    assert np.linalg.norm(first) == pytest.approx(1.0, rel=1e-5)
    assert empty == [0.0] * 64
    assert emb.max_token_size == 8192


def test_factories() -> None:
    assert isinstance(create_embedding_strategy("hash"), HashEmbedding)
    assert create_embedding_strategy("word2vec") is None
    assert isinstance(create_llm_strategy("ollama", model="m"), OllamaLLM)
    assert create_llm_strategy("none") is None
    assert create_llm_strategy("claude-local") is None
