from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol

_BLANK_LINE = re.compile(r"\n[ \t]*\n")


@dataclass(frozen=True)
class LoadedDocument:
    source_path: str
    text: str


class Loader(Protocol):
    def can_load(self, path: Path) -> bool: ...

    def load_text(self, path: Path) -> str: ...


class TextLoader:
    def can_load(self, path: Path) -> bool:
        return path.suffix.lower() in {".txt", ".md", ".markdown"}

    def load_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8", errors="ignore").strip()


def default_loaders() -> list[Loader]:
    return [TextLoader()]


def iter_supported_files(root: Path) -> Iterable[Path]:
    """Every regular file under ``root``, in sorted path order.

    Office lock files (``~$...``) are skipped.
    """

    for p in sorted(root.rglob("*")):
        if not p.is_file():
            continue
        if p.name.startswith("~$"):
            continue
        yield p


def split_paragraphs(text: str) -> list[str]:
    """Split on blank lines; line breaks inside a paragraph are kept."""

    text = (text or "").replace("\r\n", "\n")
    return [p.strip() for p in _BLANK_LINE.split(text) if p.strip()]
