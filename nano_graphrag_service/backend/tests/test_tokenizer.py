from __future__ import annotations

from nano_graphrag.tokenizer import SimpleTokenizer, TiktokenTokenizer, create_tokenizer
from nano_graphrag.tokenizer.simple import split_words


class FakeEncoding:
    """Character-level stand-in for a tiktoken encoding."""

    def encode(self, text: str) -> list[int]:
        return [ord(ch) for ch in text]

    def decode(self, tokens: list[int]) -> str:
        return "".join(chr(t) for t in tokens)


def test_split_words_on_space_tab_newline() -> None:
    assert split_words("  alpha\tbeta\n\ngamma  ") == ["alpha", "beta", "gamma"]
    assert split_words("") == []


def test_simple_tokenizer_counts_words() -> None:
    tok = SimpleTokenizer()
    assert tok.kind == "simple"
    assert len(tok.encode("one two\tthree\nfour")) == 4
    assert tok.decode_batch([[1, 1, 1], []]) == ["3", "0"]


def test_simple_decode_slices_source_words() -> None:
    tok = SimpleTokenizer()
    doc = "a  b\tc\nd e"
    texts = tok.decode([[1, 1], [1, 1, 1]], doc, [0, 2], [2, 3])
    assert texts == ["a b", "c d e"]


def test_simple_decode_clamps_past_end() -> None:
    tok = SimpleTokenizer()
    assert tok.decode([[1, 1, 1]], "x y", [1], [3]) == ["y"]


def test_tiktoken_decode_uses_window_tokens() -> None:
    tok = TiktokenTokenizer(encoding=FakeEncoding())
    assert tok.kind == "tiktoken"
    tokens = tok.encode("hello")
    assert tok.decode([tokens[:2], tokens[2:]], "ignored", [0, 2], [2, 3]) == ["he", "llo"]
    assert tok.decode_batch([tokens]) == ["hello"]


def test_create_tokenizer_unknown_is_none() -> None:
    assert create_tokenizer("sentencepiece") is None
    assert create_tokenizer("") is None
    assert isinstance(create_tokenizer("Simple"), SimpleTokenizer)
