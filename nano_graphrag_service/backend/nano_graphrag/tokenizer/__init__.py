from __future__ import annotations

from .base import TokenizerStrategy, TokenizerType
from .simple import SimpleTokenizer
from .tiktoken_tokenizer import TiktokenTokenizer


def create_tokenizer(kind: str) -> TokenizerStrategy | None:
    """Build a tokenizer by name; unknown names give ``None``."""

    name = (kind or "").strip().lower()
    if name == "simple":
        return SimpleTokenizer()
    if name == "tiktoken":
        return TiktokenTokenizer()
    return None


__all__ = [
    "SimpleTokenizer",
    "TiktokenTokenizer",
    "TokenizerStrategy",
    "TokenizerType",
    "create_tokenizer",
]
