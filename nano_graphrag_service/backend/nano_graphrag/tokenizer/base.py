from __future__ import annotations

from typing import Literal, Protocol

TokenizerType = Literal["simple", "tiktoken"]


class TokenizerStrategy(Protocol):
    """Tokenizer interface (structural typing).

    ``decode`` rebuilds the text of token windows cut from ``doc``. Exact
    tokenizers decode the window tokens; approximate ones slice ``doc`` by
    word using ``starts``/``lengths`` as word indices.
    """

    @property
    def kind(self) -> TokenizerType: ...

    def encode(self, text: str) -> list[int]: ...

    def decode_batch(self, tokens_list: list[list[int]]) -> list[str]: ...

    def decode(
        self,
        chunk_tokens: list[list[int]],
        doc: str,
        starts: list[int],
        lengths: list[int],
    ) -> list[str]: ...
