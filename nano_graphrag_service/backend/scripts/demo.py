from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

# Allow `python scripts/demo.py` from the backend folder without installing.
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from nano_graphrag.config import GraphRAGSettings, build_graphrag  # noqa: E402
from nano_graphrag.loaders import split_paragraphs  # noqa: E402
from nano_graphrag.logging_utils import configure_json_logging  # noqa: E402
from nano_graphrag.types import QueryParam  # noqa: E402

SAMPLE_DOCUMENTS = [
    "NanoGraphRAG is a lightweight GraphRAG implementation using simple storages.",
    "OpenAI embeddings and chat completions can be used for RAG responses.",
]


def main() -> int:
    ap = argparse.ArgumentParser(description="Index a small corpus and run one naive query.")
    ap.add_argument("question", nargs="?", default="What is NanoGraphRAG?")
    ap.add_argument("--corpus", default="", help="Text file; each blank-line separated paragraph is one document.")
    ap.add_argument("--top-k", type=int, default=1)
    ap.add_argument("--max-context-tokens", type=int, default=1024)
    ap.add_argument("--context-only", action="store_true", help="Skip generation even when an LLM is configured.")
    args = ap.parse_args()

    configure_json_logging()
    settings = GraphRAGSettings.from_env()
    rag = build_graphrag(settings)
    rag.enable_naive(True)

    if args.corpus:
        docs = split_paragraphs(Path(args.corpus).read_text(encoding="utf-8", errors="ignore"))
    else:
        docs = list(SAMPLE_DOCUMENTS)

    t0 = time.perf_counter()
    chunk_count = rag.insert(docs)
    index_ms = (time.perf_counter() - t0) * 1000.0

    param = QueryParam(
        mode="naive",
        top_k=int(args.top_k),
        naive_max_token_for_text_unit=int(args.max_context_tokens),
        only_need_context=bool(args.context_only) or rag.llm_strategy is None,
    )
    t1 = time.perf_counter()
    result = rag.query_result(args.question, param)
    query_ms = (time.perf_counter() - t1) * 1000.0

    summary = {
        "documents": len(docs),
        "chunks": chunk_count,
        "tokenizer": rag.tokenizer.kind,
        "embedding": settings.embedding,
        "llm": settings.llm,
        "index_ms": round(index_ms, 2),
        "query_ms": round(query_ms, 2),
        "kind": result.kind,
    }
    print(json.dumps(summary, ensure_ascii=False, indent=2))
    print(f"\nQuestion:\n{args.question}\n\nAnswer:\n{result.text}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
