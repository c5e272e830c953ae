from __future__ import annotations

from pathlib import Path

import pytest

from nano_graphrag.ingest import ingest_dataset, load_dataset
from nano_graphrag.loaders import iter_supported_files, split_paragraphs


@pytest.fixture
def dataset(tmp_path: Path) -> Path:
    root = tmp_path / "docs"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_text("apple banana\n\ncherry delta", encoding="utf-8")
    (root / "sub" / "b.md").write_text("# echo\nfox", encoding="utf-8")
    (root / "empty.txt").write_text("   \n", encoding="utf-8")
    (root / "image.png").write_bytes(b"\x89PNG")
    (root / "~$lock.txt").write_text("lock", encoding="utf-8")
    return root


def test_split_paragraphs_keeps_inner_line_breaks() -> None:
    text = "first line\nsecond line\n\n  \n third\r\n\r\nfourth\n"
    assert split_paragraphs(text) == ["first line\nsecond line", "third", "fourth"]
    assert split_paragraphs("") == []


def test_iter_supported_files_sorted_and_skips_lock_files(dataset: Path) -> None:
    names = [p.relative_to(dataset).as_posix() for p in iter_supported_files(dataset)]
    assert names == ["a.txt", "empty.txt", "image.png", "sub/b.md"]


def test_load_dataset_warns_on_empty_text(dataset: Path) -> None:
    docs, warnings = load_dataset(dataset)
    assert [Path(d.source_path).as_posix() for d in docs] == ["a.txt", "sub/b.md"]
    assert warnings == ["Empty extracted text: empty.txt"]


def test_ingest_dataset_one_document_per_file(make_rag, dataset: Path) -> None:
    rag = make_rag()
    result = ingest_dataset(rag, dataset)

    assert result.document_count == 2
    assert result.chunk_count == 2
    assert len(rag.full_docs) == 2
    assert len(result.warnings) == 1


def test_ingest_dataset_split_paragraphs(make_rag, dataset: Path) -> None:
    rag = make_rag()
    result = ingest_dataset(rag, dataset, split=True)
    assert result.document_count == 3
    assert len(rag.full_docs) == 3


def test_ingest_single_file(make_rag, dataset: Path) -> None:
    result = ingest_dataset(make_rag(), dataset / "a.txt")
    assert result.document_count == 1


def test_ingest_missing_path(make_rag, tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        ingest_dataset(make_rag(), tmp_path / "missing")
