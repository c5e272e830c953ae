"""Token-window chunker for splitting documents.

Each document is encoded once, cut into fixed-size overlapping token windows
and every window is turned back into text by the tokenizer. Documents are
chunked independently: no state is carried from one document to the next,
so ``chunk_order_index`` restarts at 0 for each document.
"""

from __future__ import annotations

import logging
from typing import Mapping

from .errors import ConfigurationError
from .tokenizer import TokenizerStrategy
from .types import TextChunk
from .utils import compute_mdhash_id

logger = logging.getLogger(__name__)

CHUNK_ID_PREFIX = "chunk-"


def _check_window(max_token_size: int, overlap_token_size: int) -> int:
    if max_token_size <= 0:
        raise ConfigurationError(f"chunk_token_size must be positive, got {max_token_size}")
    if overlap_token_size < 0:
        raise ConfigurationError(f"chunk_overlap_token_size must be >= 0, got {overlap_token_size}")
    stride = max_token_size - overlap_token_size
    if stride <= 0:
        raise ConfigurationError(
            f"chunk_overlap_token_size ({overlap_token_size}) must be smaller than "
            f"chunk_token_size ({max_token_size})"
        )
    return stride


def window_offsets(n_tokens: int, max_token_size: int, overlap_token_size: int) -> list[tuple[int, int]]:
    """``(start, length)`` of every window over a sequence of ``n_tokens`` tokens."""

    stride = _check_window(max_token_size, overlap_token_size)
    offsets: list[tuple[int, int]] = []
    start = 0
    while start < n_tokens:
        offsets.append((start, min(max_token_size, n_tokens - start)))
        start += stride
    return offsets


class TextChunker:
    """Chunk documents into overlapping token windows."""

    def __init__(self, tokenizer: TokenizerStrategy, chunk_size: int = 1200, overlap: int = 100) -> None:
        _check_window(chunk_size, overlap)
        self.tokenizer = tokenizer
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunking_by_token_size(
        self,
        tokens_list: list[list[int]],
        docs: list[str],
        doc_keys: list[str],
        overlap_token_size: int = 128,
        max_token_size: int = 1024,
    ) -> list[TextChunk]:
        """Window every encoded document and rebuild the window texts.

        Args:
            tokens_list: Encoded documents, aligned with ``docs``.
            docs: Source document texts (needed by approximate tokenizers).
            doc_keys: Document ids recorded on each chunk.
            overlap_token_size: Tokens shared by consecutive windows.
            max_token_size: Window size in tokens.

        Returns:
            Chunks of all documents, in document order then window order.

        Raises:
            ConfigurationError: If the window does not advance
                (``overlap_token_size >= max_token_size``) or sizes are invalid.
        """
        _check_window(max_token_size, overlap_token_size)

        results: list[TextChunk] = []
        for index, tokens in enumerate(tokens_list):
            offsets = window_offsets(len(tokens), max_token_size, overlap_token_size)
            if not offsets:
                continue
            starts = [s for s, _ in offsets]
            lengths = [n for _, n in offsets]
            chunk_tokens = [tokens[s : s + n] for s, n in offsets]

            texts = self.tokenizer.decode(chunk_tokens, docs[index], starts, lengths)
            for i, text in enumerate(texts):
                results.append(
                    TextChunk(
                        tokens=lengths[i],
                        content=text,
                        full_doc_id=doc_keys[index],
                        chunk_order_index=i,
                    )
                )
        return results

    def chunk(self, text: str) -> list[str]:
        """Window a single document and return the chunk texts in order."""

        tokens = self.tokenizer.encode(text or "")
        chunks = self.chunking_by_token_size(
            [tokens],
            [text or ""],
            [""],
            overlap_token_size=self.overlap,
            max_token_size=self.chunk_size,
        )
        return [c.content for c in chunks]

    def get_chunks(self, new_docs: Mapping[str, Mapping[str, str]]) -> dict[str, TextChunk]:
        """Chunk ``{doc_id: {"content": ...}}`` and key the chunks by content hash.

        Identical chunk text from different documents collapses to one key;
        the later document wins.
        """

        doc_keys = list(new_docs.keys())
        docs = [str(new_docs[k].get("content", "")) for k in doc_keys]
        tokens_list = [self.tokenizer.encode(d) for d in docs]

        chunks = self.chunking_by_token_size(
            tokens_list,
            docs,
            doc_keys,
            overlap_token_size=self.overlap,
            max_token_size=self.chunk_size,
        )
        inserting: dict[str, TextChunk] = {}
        for c in chunks:
            inserting[compute_mdhash_id(c.content, prefix=CHUNK_ID_PREFIX)] = c
        logger.debug(
            "chunked_documents",
            extra={"fields": {"documents": len(doc_keys), "chunks": len(inserting)}},
        )
        return inserting
