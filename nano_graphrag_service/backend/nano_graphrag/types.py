from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ResultKind = Literal["answer", "context", "no_context", "unsupported_mode"]


@dataclass(frozen=True)
class TextChunk:
    tokens: int
    content: str
    full_doc_id: str
    chunk_order_index: int


@dataclass
class SingleCommunity:
    """A cluster of graph nodes with its induced, canonicalised edge set.

    ``occurrence`` is the number of chunk ids associated with the community.
    Nothing associates chunks with communities yet, so it stays 0.0.
    """

    level: int = 0
    title: str = ""
    edges: list[tuple[str, str]] = field(default_factory=list)
    nodes: list[str] = field(default_factory=list)
    chunk_ids: list[str] = field(default_factory=list)
    occurrence: float = 0.0
    sub_communities: list[str] = field(default_factory=list)


@dataclass
class Community(SingleCommunity):
    report_string: str = ""
    report_json: dict[str, str] = field(default_factory=dict)


class QueryParam(BaseModel):
    """Retrieval mode and budget limits for ``GraphRAG.query``.

    Only ``naive`` mode is functional; the local/global budgets are accepted
    so callers can pass a full parameter set, but nothing reads them yet.
    """

    model_config = ConfigDict(extra="forbid")

    mode: str = "global"
    only_need_context: bool = False
    response_type: str = "Multiple Paragraphs"
    level: int = 2
    top_k: int = Field(20, ge=1)

    # naive search
    naive_max_token_for_text_unit: int = Field(12000, ge=0)

    # local search
    local_max_token_for_text_unit: int = 4000
    local_max_token_for_local_context: int = 4800
    local_max_token_for_community_report: int = 3200
    local_community_single_one: bool = False

    # global search
    global_min_community_rating: float = 0.0
    global_max_consider_community: int = 512
    global_max_token_for_community_report: int = 16384
    global_special_community_map_llm_kwargs: dict[str, str] = Field(
        default_factory=lambda: {"response_format": "json_object"}
    )


@dataclass(frozen=True)
class QueryResult:
    """Outcome of a query, with the degenerate cases kept apart.

    - ``answer``: text produced by the generation strategy
    - ``context``: the assembled context (context-only request, no LLM, or empty LLM output)
    - ``no_context``: nothing retrievable (no chunk index, or no hit above threshold)
    - ``unsupported_mode``: mode other than ``naive``
    """

    kind: ResultKind
    text: str
