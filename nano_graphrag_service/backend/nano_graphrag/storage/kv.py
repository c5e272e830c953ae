from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Iterable, Mapping, TypeVar

from .base import StorageNameSpace

T = TypeVar("T")


@dataclass
class JsonKVStorage(StorageNameSpace, Generic[T]):
    """In-memory key-value store for one namespace.

    Records are replaced whole on upsert (no field-level merge). Missing ids
    are represented as ``None``, never raised. Not thread-safe.
    """

    _data: dict[str, T] = field(default_factory=dict, init=False, repr=False)

    def all_keys(self) -> list[str]:
        return list(self._data.keys())

    def get_by_id(self, id: str) -> T | None:
        return self._data.get(id)

    def get_by_ids(self, ids: Iterable[str]) -> list[T | None]:
        return [self._data.get(i) for i in ids]

    def filter_keys(self, ids: Iterable[str]) -> list[str]:
        return [i for i in ids if i not in self._data]

    def upsert(self, data: Mapping[str, T]) -> None:
        self._data.update(data)

    def drop(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
