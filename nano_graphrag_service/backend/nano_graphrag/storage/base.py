from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class StorageNameSpace:
    """A named storage area plus the orchestrator's configuration.

    The callbacks bracket indexing and querying; stores that persist
    (or batch) override them. The defaults do nothing.
    """

    namespace: str
    global_config: dict[str, Any] = field(default_factory=dict)

    def index_start_callback(self) -> None:
        pass

    def index_done_callback(self) -> None:
        pass

    def query_done_callback(self) -> None:
        pass
