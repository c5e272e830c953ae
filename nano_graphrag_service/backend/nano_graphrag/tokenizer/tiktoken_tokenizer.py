from __future__ import annotations

from typing import Any

from .base import TokenizerType

DEFAULT_ENCODING = "o200k_base"


class TiktokenTokenizer:
    """BPE tokenizer backed by ``tiktoken``.

    Exact: window texts are decoded straight from the window tokens, so the
    source document and offsets passed to ``decode`` are not needed.
    """

    def __init__(self, encoding_name: str = DEFAULT_ENCODING, *, encoding: Any = None) -> None:
        if encoding is None:
            import tiktoken

            encoding = tiktoken.get_encoding(encoding_name)
        self.encoding_name = encoding_name
        self._encoding = encoding

    @property
    def kind(self) -> TokenizerType:
        return "tiktoken"

    def encode(self, text: str) -> list[int]:
        return list(self._encoding.encode(text))

    def decode_batch(self, tokens_list: list[list[int]]) -> list[str]:
        return [self._encoding.decode(tokens) for tokens in tokens_list]

    def decode(
        self,
        chunk_tokens: list[list[int]],
        doc: str,
        starts: list[int],
        lengths: list[int],
    ) -> list[str]:
        return self.decode_batch(chunk_tokens)
