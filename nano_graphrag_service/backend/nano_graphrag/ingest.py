from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .graphrag import GraphRAG
from .loaders import LoadedDocument, Loader, default_loaders, iter_supported_files, split_paragraphs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestResult:
    document_count: int
    chunk_count: int
    warnings: list[str] = field(default_factory=list)


def load_dataset(
    dataset_path: str | Path,
    *,
    loaders: list[Loader] | None = None,
) -> tuple[list[LoadedDocument], list[str]]:
    """Read every loadable file under ``dataset_path``.

    Returns the non-empty documents plus warnings for files that failed to
    load or came back empty.
    """

    root = Path(dataset_path)
    if not root.exists():
        raise FileNotFoundError(f"Dataset path does not exist: {dataset_path}")

    loaders = loaders or default_loaders()

    def pick_loader(p: Path) -> Loader | None:
        for l in loaders:
            if l.can_load(p):
                return l
        return None

    paths = [root] if root.is_file() else list(iter_supported_files(root))
    documents: list[LoadedDocument] = []
    warnings: list[str] = []
    for p in paths:
        loader = pick_loader(p)
        if not loader:
            continue

        rel_path = p.name if root.is_file() else os.path.relpath(p, root)
        try:
            text = (loader.load_text(p) or "").strip()
        except (OSError, UnicodeError) as e:
            warnings.append(f"Failed to load {rel_path}: {e}")
            continue

        if not text:
            warnings.append(f"Empty extracted text: {rel_path}")
            continue
        documents.append(LoadedDocument(source_path=rel_path, text=text))
    return documents, warnings


def ingest_dataset(
    rag: GraphRAG,
    dataset_path: str | Path,
    *,
    loaders: list[Loader] | None = None,
    split: bool = False,
) -> IngestResult:
    """Load a file or folder and insert its text into ``rag``.

    With ``split`` each blank-line separated paragraph becomes its own
    document; otherwise each file is one document.
    """

    loaded, warnings = load_dataset(dataset_path, loaders=loaders)

    docs: list[str] = []
    for d in loaded:
        docs.extend(split_paragraphs(d.text) if split else [d.text])

    chunk_count = rag.insert(docs) if docs else 0
    for w in warnings:
        logger.warning("ingest_warning", extra={"fields": {"warning": w}})
    logger.info(
        "ingest_done",
        extra={"fields": {"dataset_path": str(dataset_path), "documents": len(docs), "chunks": chunk_count}},
    )
    return IngestResult(document_count=len(docs), chunk_count=chunk_count, warnings=warnings)
