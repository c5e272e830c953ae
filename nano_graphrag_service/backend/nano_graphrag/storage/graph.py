"""In-memory undirected property graph with connected-components clustering.

Edges are stored once under their canonical key ``(min(a, b), max(a, b))``,
so ``(a, b)`` and ``(b, a)`` always address the same property map.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..errors import ConfigurationError
from ..types import SingleCommunity
from .base import StorageNameSpace

logger = logging.getLogger(__name__)

CLUSTERS_KEY = "clusters"
SUPPORTED_ALGORITHMS = ("connected_components",)


def edge_key(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a <= b else (b, a)


def _parse_clusters(raw: str) -> list[dict[str, Any]] | None:
    """Cluster entries from a ``clusters`` property, or ``None`` if it is not a label list."""

    try:
        clusters = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(clusters, list):
        return None
    if not all(isinstance(c, dict) and "cluster" in c for c in clusters):
        return None
    return clusters


@dataclass
class InMemoryGraphStorage(StorageNameSpace):
    _nodes: dict[str, dict[str, str]] = field(default_factory=dict, init=False, repr=False)
    _edges: dict[tuple[str, str], dict[str, str]] = field(default_factory=dict, init=False, repr=False)
    _adjacency: dict[str, set[str]] = field(default_factory=dict, init=False, repr=False)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def has_edge(self, source_node_id: str, target_node_id: str) -> bool:
        return edge_key(source_node_id, target_node_id) in self._edges

    def node_degree(self, node_id: str) -> int:
        return len(self._adjacency.get(node_id, ()))

    def edge_degree(self, src_id: str, tgt_id: str) -> int:
        # Sum of endpoint degrees: a cheap ranking heuristic, not a centrality measure.
        return self.node_degree(src_id) + self.node_degree(tgt_id)

    def get_node(self, node_id: str) -> dict[str, str] | None:
        return self._nodes.get(node_id)

    def get_edge(self, source_node_id: str, target_node_id: str) -> dict[str, str] | None:
        return self._edges.get(edge_key(source_node_id, target_node_id))

    def get_node_edges(self, source_node_id: str) -> list[tuple[str, str]] | None:
        """Incident edges as ``(source_node_id, neighbour)`` pairs, neighbours sorted.

        ``None`` when the node is unknown.
        """

        if source_node_id not in self._nodes:
            return None
        return [(source_node_id, n) for n in sorted(self._adjacency.get(source_node_id, ()))]

    def upsert_node(self, node_id: str, node_data: dict[str, str]) -> None:
        self._nodes[node_id] = dict(node_data)
        self._adjacency.setdefault(node_id, set())

    def upsert_edge(self, source_node_id: str, target_node_id: str, edge_data: dict[str, str]) -> None:
        # Endpoints never upserted as nodes still join the graph (empty properties).
        for n in (source_node_id, target_node_id):
            if n not in self._nodes:
                self._nodes[n] = {}
            self._adjacency.setdefault(n, set())

        self._edges[edge_key(source_node_id, target_node_id)] = dict(edge_data)
        self._adjacency[source_node_id].add(target_node_id)
        self._adjacency[target_node_id].add(source_node_id)

    def upsert_nodes_batch(self, nodes: Iterable[tuple[str, dict[str, str]]]) -> None:
        for node_id, data in nodes:
            self.upsert_node(node_id, data)

    def upsert_edges_batch(self, edges: Iterable[tuple[str, str, dict[str, str]]]) -> None:
        for src, tgt, data in edges:
            self.upsert_edge(src, tgt, data)

    def clustering(self, algorithm: str = "connected_components") -> None:
        """Label every node with its connected component.

        Nodes are visited in sorted id order and neighbours expanded in sorted
        order, so component ``0`` holds the smallest node id, component ``1``
        the smallest id not in component ``0``, and so on. Labels are stable
        for an unchanged graph.
        """

        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(f"Clustering algorithm {algorithm!r} is not supported")

        visited: set[str] = set()
        label = 0
        for start in sorted(self._nodes):
            if start in visited:
                continue
            visited.add(start)
            queue = deque([start])
            while queue:
                node = queue.popleft()
                self._nodes[node][CLUSTERS_KEY] = json.dumps([{"level": 0, "cluster": label}])
                for nb in sorted(self._adjacency.get(node, ())):
                    if nb not in visited:
                        visited.add(nb)
                        queue.append(nb)
            label += 1

        logger.info("graph_clustered", extra={"fields": {"namespace": self.namespace, "clusters": label}})

    def _community_occurrence(self, community: SingleCommunity) -> float:
        # Nothing associates chunks with communities yet, so this is 0.0 for now.
        return float(len(community.chunk_ids))

    def community_schema(self) -> dict[str, SingleCommunity]:
        """Group labelled nodes into communities keyed by cluster label.

        Nodes without a label (clustering never ran) are left out.
        """

        members: dict[str, set[str]] = {}
        levels: dict[str, int] = {}
        for node_id, data in self._nodes.items():
            raw = data.get(CLUSTERS_KEY)
            if not raw:
                continue
            clusters = _parse_clusters(raw)
            if clusters is None:
                logger.warning(
                    "graph_clusters_unreadable",
                    extra={"fields": {"namespace": self.namespace, "node": node_id}},
                )
                continue
            for cluster in clusters:
                key = str(cluster["cluster"])
                members.setdefault(key, set()).add(node_id)
                levels[key] = int(cluster.get("level", 0))

        results: dict[str, SingleCommunity] = {}
        for key in sorted(members, key=lambda k: (len(k), k)):
            nodes = members[key]
            edges: set[tuple[str, str]] = set()
            for n in nodes:
                for nb in self._adjacency.get(n, ()):
                    if nb in nodes:
                        edges.add(edge_key(n, nb))
            community = SingleCommunity(
                level=levels[key],
                title=f"Cluster {key}",
                edges=sorted(edges),
                nodes=sorted(nodes),
            )
            community.occurrence = self._community_occurrence(community)
            results[key] = community
        return results
