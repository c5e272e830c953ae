"""Whitespace tokenizer.

Every run of non-whitespace characters counts as one token. Token ids carry
no information (they are all 1), so the tokenizer cannot rebuild text from
ids alone: chunk text is recovered by slicing the source document's words
instead. Lossy (whitespace collapses to single spaces) but stable.
"""

from __future__ import annotations

from .base import TokenizerType

_WHITESPACE = (" ", "\n", "\t")


def split_words(text: str) -> list[str]:
    words: list[str] = []
    current: list[str] = []
    for ch in text:
        if ch in _WHITESPACE:
            if current:
                words.append("".join(current))
                current = []
        else:
            current.append(ch)
    if current:
        words.append("".join(current))
    return words


class SimpleTokenizer:
    @property
    def kind(self) -> TokenizerType:
        return "simple"

    def encode(self, text: str) -> list[int]:
        return [1] * len(split_words(text))

    def decode_batch(self, tokens_list: list[list[int]]) -> list[str]:
        # Text cannot be rebuilt from ids; report the token count instead.
        return [str(len(tokens)) for tokens in tokens_list]

    def decode(
        self,
        chunk_tokens: list[list[int]],
        doc: str,
        starts: list[int],
        lengths: list[int],
    ) -> list[str]:
        words = split_words(doc)
        texts: list[str] = []
        for i in range(len(chunk_tokens)):
            start = starts[i]
            end = min(start + lengths[i], len(words))
            texts.append(" ".join(words[start:end]))
        return texts
