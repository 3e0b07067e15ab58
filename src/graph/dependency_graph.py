"""DependencyGraph: immutable package dependency graph.

Wraps a frozen NetworkX MultiDiGraph. MultiDiGraph keeps several edges
between the same pair of packages (e.g. a normal and a dev dependency on the
same crate) as distinct, independently reportable edges.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import networkx as nx
from networkx import MultiDiGraph

from graph.errors import MalformedGraph
from graph.models import DependencyEdge, Ecosystem, PackageId, PackageNode, normalize_name

logger = logging.getLogger(__name__)

_NODE_ATTR = "node"
_EDGE_ATTR = "edge"


class DependencyGraph:
    """Read-only dependency graph.

    Construction validates that every edge endpoint exists and that package
    identities are unique; afterwards the underlying graph is frozen and no
    operation mutates it.
    """

    def __init__(
        self,
        nodes: Iterable[PackageNode],
        edges: Iterable[DependencyEdge],
        ecosystem: Ecosystem = Ecosystem.GENERIC,
    ) -> None:
        self._ecosystem = ecosystem
        graph: MultiDiGraph = nx.MultiDiGraph()

        for node in nodes:
            if graph.has_node(node.id):
                raise MalformedGraph(f"Duplicate package identity: {node.id}")
            graph.add_node(node.id, **{_NODE_ATTR: node})

        seen = set()
        for edge in edges:
            for endpoint, role in ((edge.source, "source"), (edge.target, "target")):
                if not graph.has_node(endpoint):
                    raise MalformedGraph(
                        f"Dependency edge {edge.source} -> {edge.target} references "
                        f"missing {role} package {endpoint}"
                    )
            if edge in seen:
                continue
            seen.add(edge)
            graph.add_edge(edge.source, edge.target, **{_EDGE_ATTR: edge})

        self._graph = nx.freeze(graph)
        self._by_name: Dict[str, List[PackageId]] = {}
        for pid in sorted(self._graph.nodes):
            self._by_name.setdefault(normalize_name(pid.name, ecosystem), []).append(pid)

        logger.debug(
            "Dependency graph built: %d packages, %d edges",
            self._graph.number_of_nodes(),
            self._graph.number_of_edges(),
        )

    @property
    def ecosystem(self) -> Ecosystem:
        return self._ecosystem

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def has_node(self, package_id: PackageId) -> bool:
        return self._graph.has_node(package_id)

    def node(self, package_id: PackageId) -> PackageNode:
        """Look up a node by identity.

        Raises:
            KeyError: If the package is not in the graph.
        """
        if not self._graph.has_node(package_id):
            raise KeyError(package_id)
        return self._graph.nodes[package_id][_NODE_ATTR]

    def nodes(self) -> List[PackageNode]:
        """All nodes, ordered by identity."""
        return [self._graph.nodes[pid][_NODE_ATTR] for pid in sorted(self._graph.nodes)]

    def workspace_members(self) -> List[PackageNode]:
        """Workspace-owned nodes, ordered by identity."""
        return [n for n in self.nodes() if n.workspace_member]

    def edges(self) -> List[DependencyEdge]:
        """All edges in deterministic order."""
        return sorted(
            (data for _, _, data in self._graph.edges(data=_EDGE_ATTR)),
            key=DependencyEdge.sort_key,
        )

    def out_edges(self, package_id: PackageId) -> List[DependencyEdge]:
        """Direct dependencies of ``package_id``, in deterministic order."""
        self._require(package_id)
        return sorted(
            (data for _, _, data in self._graph.out_edges(package_id, data=_EDGE_ATTR)),
            key=DependencyEdge.sort_key,
        )

    def in_edges(self, package_id: PackageId) -> List[DependencyEdge]:
        """Direct dependents of ``package_id``, in deterministic order."""
        self._require(package_id)
        return sorted(
            (data for _, _, data in self._graph.in_edges(package_id, data=_EDGE_ATTR)),
            key=DependencyEdge.sort_key,
        )

    def iter_edges_with_nodes(self) -> Iterator[Tuple[DependencyEdge, PackageNode]]:
        """Yield each edge with its source node (for activation checks)."""
        for edge in self.edges():
            yield edge, self.node(edge.source)

    def find(self, name: str, version: Optional[str] = None) -> List[PackageId]:
        """All package ids with the given (normalized) name, optionally one version."""
        matches = self._by_name.get(normalize_name(name, self._ecosystem), [])
        if version is None:
            return list(matches)
        return [pid for pid in matches if pid.version == version]

    def package_ids(self) -> List[PackageId]:
        return sorted(self._graph.nodes)

    def _require(self, package_id: PackageId) -> None:
        if not self._graph.has_node(package_id):
            raise KeyError(package_id)
