"""JSON-over-HTTP helper shared by the remote embedding and LLM strategies.

One request, one JSON response. Streamed bodies (server-sent events, ndjson,
chunked transfer encoding) are rejected before the body is read. There is no
retry; the client timeout is the only bound on a call.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from .errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0

_STREAMING_CONTENT_TYPES = ("text/event-stream", "application/x-ndjson")


def _reject_streaming(resp: httpx.Response, url: str) -> None:
    content_type = (resp.headers.get("content-type") or "").lower()
    for streaming in _STREAMING_CONTENT_TYPES:
        if streaming in content_type:
            raise TransportError(
                f"Streaming response ({streaming}) is not supported",
                url=url,
                status_code=resp.status_code,
            )
    transfer_encoding = (resp.headers.get("transfer-encoding") or "").lower()
    if "chunked" in transfer_encoding:
        raise TransportError(
            "Chunked transfer encoding is not supported",
            url=url,
            status_code=resp.status_code,
        )


def post_json(
    url: str,
    body: dict[str, Any],
    *,
    api_key: str | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    client: httpx.Client | None = None,
) -> dict[str, Any]:
    """POST ``body`` as JSON and return the decoded JSON object.

    Pass ``client`` to reuse a connection pool (or inject a mock transport in
    tests); otherwise a short-lived client is created for the call.
    """

    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    owns_client = client is None
    http = client if client is not None else httpx.Client(timeout=timeout)
    t0 = time.perf_counter()
    try:
        with http.stream("POST", url, json=body, headers=headers) as resp:
            if resp.status_code < 200 or resp.status_code >= 300:
                raise TransportError(
                    f"HTTP {resp.status_code} from {url}",
                    url=url,
                    status_code=resp.status_code,
                )
            _reject_streaming(resp, url)
            resp.read()
            data = resp.json()
    except httpx.HTTPError as e:
        raise TransportError(f"Request to {url} failed: {e}", url=url) from e
    except ValueError as e:
        raise TransportError(f"Response from {url} is not valid JSON", url=url) from e
    finally:
        if owns_client:
            http.close()

    logger.debug(
        "post_json",
        extra={"fields": {"url": url, "duration_ms": int((time.perf_counter() - t0) * 1000)}},
    )
    if not isinstance(data, dict):
        raise TransportError(f"Response from {url} is not a JSON object", url=url)
    return data
