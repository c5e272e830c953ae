from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

ErrorStage = Literal["insert", "ingest", "query", "unknown"]


class GraphRAGError(Exception):
    """Base class for errors raised by nano_graphrag."""


class ConfigurationError(GraphRAGError):
    """Invalid parameters or missing credentials.

    Raised for non-positive chunking strides, unsupported clustering
    algorithms and remote strategies called without an API key. Never
    retried.
    """


class TransportError(GraphRAGError):
    """A remote strategy returned something we cannot use.

    Covers non-success status codes, network failures and response bodies
    that are streamed (event-stream, ndjson or chunked transfer encoding).
    """

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


@dataclass(frozen=True)
class CodedError:
    code: str
    stage: ErrorStage
    message: str
    detail: dict[str, Any] | None = None


def _name(e: BaseException) -> str:
    return type(e).__name__


def classify_error(*, e: BaseException, stage: ErrorStage) -> CodedError:
    msg = str(e) if str(e) else _name(e)

    if isinstance(e, ConfigurationError):
        return CodedError(code="CONFIGURATION_ERROR", stage=stage, message=msg)

    if isinstance(e, TransportError):
        detail: dict[str, Any] = {}
        if e.status_code is not None:
            detail["status_code"] = e.status_code
        if e.url:
            detail["url"] = e.url
        return CodedError(code="TRANSPORT_ERROR", stage=stage, message=msg, detail=detail or None)

    # Dataset / file issues
    if isinstance(e, FileNotFoundError) or "Dataset path does not exist" in msg:
        return CodedError(code="DATASET_NOT_FOUND", stage=stage, message=msg)

    return CodedError(code="UNCLASSIFIED", stage=stage, message=msg, detail={"type": _name(e)})
