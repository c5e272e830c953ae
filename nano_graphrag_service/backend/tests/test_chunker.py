from __future__ import annotations

import math

import pytest

from nano_graphrag.chunker import CHUNK_ID_PREFIX, TextChunker, window_offsets
from nano_graphrag.errors import ConfigurationError
from nano_graphrag.tokenizer import SimpleTokenizer, TiktokenTokenizer
from nano_graphrag.utils import compute_mdhash_id


def _words(n: int) -> str:
    return " ".join(f"w{i}" for i in range(n))


def test_window_offsets_stride_three() -> None:
    assert window_offsets(10, 4, 1) == [(0, 4), (3, 4), (6, 4), (9, 1)]


@pytest.mark.parametrize(
    "n,max_tokens,overlap",
    [(10, 4, 1), (7, 3, 1), (5, 5, 0), (1, 4, 2), (100, 12, 5), (12, 4, 0)],
)
def test_window_count_and_coverage(n: int, max_tokens: int, overlap: int) -> None:
    offsets = window_offsets(n, max_tokens, overlap)
    stride = max_tokens - overlap

    assert len(offsets) == math.ceil(n / stride)
    assert [s for s, _ in offsets] == list(range(0, n, stride))
    assert all(0 < length <= max_tokens for _, length in offsets)
    last_start, last_len = offsets[-1]
    assert last_start + last_len == n


def test_window_offsets_empty_sequence() -> None:
    assert window_offsets(0, 4, 1) == []


@pytest.mark.parametrize("max_tokens,overlap", [(4, 4), (4, 5), (0, 0), (4, -1)])
def test_invalid_window_raises(max_tokens: int, overlap: int) -> None:
    with pytest.raises(ConfigurationError):
        window_offsets(10, max_tokens, overlap)
    with pytest.raises(ConfigurationError):
        TextChunker(SimpleTokenizer(), chunk_size=max_tokens, overlap=overlap)


def test_chunking_by_token_size_rejects_zero_stride() -> None:
    chunker = TextChunker(SimpleTokenizer(), chunk_size=4, overlap=1)
    with pytest.raises(ConfigurationError):
        chunker.chunking_by_token_size([[1, 1, 1]], ["a b c"], ["doc"], overlap_token_size=3, max_token_size=3)


def test_approximate_tokenizer_rebuilds_words() -> None:
    chunker = TextChunker(SimpleTokenizer(), chunk_size=4, overlap=1)
    doc = _words(10)
    chunks = chunker.chunking_by_token_size(
        [SimpleTokenizer().encode(doc)], [doc], ["doc-1"], overlap_token_size=1, max_token_size=4
    )

    assert [c.content for c in chunks] == ["w0 w1 w2 w3", "w3 w4 w5 w6", "w6 w7 w8 w9", "w9"]
    assert [c.tokens for c in chunks] == [4, 4, 4, 1]
    assert [c.chunk_order_index for c in chunks] == [0, 1, 2, 3]
    assert {c.full_doc_id for c in chunks} == {"doc-1"}


def test_order_index_restarts_per_document() -> None:
    chunker = TextChunker(SimpleTokenizer(), chunk_size=3, overlap=0)
    chunks = chunker.get_chunks(
        {
            "doc-a": {"content": "a1 a2 a3 a4 a5"},
            "doc-b": {"content": "b1 b2 b3 b4"},
        }
    )

    by_doc: dict[str, list[int]] = {}
    for c in chunks.values():
        by_doc.setdefault(c.full_doc_id, []).append(c.chunk_order_index)
    assert sorted(by_doc["doc-a"]) == [0, 1]
    assert sorted(by_doc["doc-b"]) == [0, 1]


def test_get_chunks_keys_by_content_hash_and_collapses_duplicates() -> None:
    chunker = TextChunker(SimpleTokenizer(), chunk_size=10, overlap=0)
    chunks = chunker.get_chunks(
        {
            "doc-a": {"content": "same text here"},
            "doc-b": {"content": "same   text\nhere"},
        }
    )

    key = compute_mdhash_id("same text here", prefix=CHUNK_ID_PREFIX)
    assert list(chunks) == [key]
    # Last document wins.
    assert chunks[key].full_doc_id == "doc-b"


def test_chunk_single_document() -> None:
    chunker = TextChunker(SimpleTokenizer(), chunk_size=2, overlap=0)
    assert chunker.chunk("one two three") == ["one two", "three"]
    assert chunker.chunk("") == []


class CharEncoding:
    def encode(self, text: str) -> list[int]:
        return [ord(ch) for ch in text]

    def decode(self, tokens: list[int]) -> str:
        return "".join(chr(t) for t in tokens)


def test_exact_tokenizer_chunks_keep_whitespace() -> None:
    chunker = TextChunker(TiktokenTokenizer(encoding=CharEncoding()), chunk_size=4, overlap=0)
    doc = "ab  cd  ef"

    chunks = chunker.chunk(doc)

    assert chunks == ["ab  ", "cd  ", "ef"]
    assert "".join(chunks) == doc


def test_exact_tokenizer_whitespace_variants_get_distinct_ids() -> None:
    chunker = TextChunker(TiktokenTokenizer(encoding=CharEncoding()), chunk_size=8, overlap=0)
    chunks = chunker.get_chunks({"doc-a": {"content": " abc"}, "doc-b": {"content": "abc "}})

    assert sorted(c.content for c in chunks.values()) == [" abc", "abc "]
