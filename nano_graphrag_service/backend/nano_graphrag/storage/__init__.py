from .base import StorageNameSpace
from .graph import InMemoryGraphStorage
from .kv import JsonKVStorage
from .vector import NanoVectorDBStorage
from .vector_index import NanoVectorIndex

__all__ = [
    "InMemoryGraphStorage",
    "JsonKVStorage",
    "NanoVectorDBStorage",
    "NanoVectorIndex",
    "StorageNameSpace",
]
