"""Reachability index: which packages have a path of active edges to a target.

The active-edge subgraph is contracted into strongly connected components
first (dev-dependency back-edges can make a dependency graph cyclic), so the
reverse traversal runs over a DAG and always terminates. The condensation is
built once per index; results are memoized per target set.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

import networkx as nx

from analysis.filters import EdgeFilter
from common.logging_utils import Timer, extra_context, is_debug_enabled
from graph.dependency_graph import DependencyGraph
from graph.errors import UnknownTarget
from graph.models import Activation, DependencyEdge, PackageId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReachabilitySet:
    """All packages with an active-edge path to one of ``targets``.

    Targets are members of their own set (zero-length path).
    ``ambiguous_edges`` lists traversed edges whose activation was UNKNOWN
    and whose destination is in the set, so callers can warn about them.
    """

    targets: FrozenSet[PackageId]
    nodes: FrozenSet[PackageId]
    ambiguous_edges: Tuple[DependencyEdge, ...] = ()

    def __contains__(self, package_id: object) -> bool:
        return package_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[PackageId]:
        return iter(sorted(self.nodes))

    def is_target(self, package_id: PackageId) -> bool:
        return package_id in self.targets

    def dependents(self) -> List[PackageId]:
        """Reachable packages other than the targets, ordered."""
        return sorted(self.nodes - self.targets)


class ReachabilityIndex:
    """Computes and memoizes reachability sets over one immutable graph."""

    def __init__(self, graph: DependencyGraph, edge_filter: Optional[EdgeFilter] = None):
        self._graph = graph
        self._filter = edge_filter or EdgeFilter()
        self._condensed: Optional[nx.DiGraph] = None
        self._mapping: Dict[PackageId, int] = {}
        self._unknown_edges: Tuple[DependencyEdge, ...] = ()
        self._memo: Dict[FrozenSet[PackageId], ReachabilitySet] = {}

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    @property
    def edge_filter(self) -> EdgeFilter:
        return self._filter

    def _build_condensation(self) -> nx.DiGraph:
        active = nx.DiGraph()
        active.add_nodes_from(self._graph.package_ids())
        unknown: List[DependencyEdge] = []
        for edge, source in self._graph.iter_edges_with_nodes():
            state = self._filter.activation(edge, source)
            if not state.traversable:
                continue
            if state is Activation.UNKNOWN:
                unknown.append(edge)
            active.add_edge(edge.source, edge.target)

        with Timer() as t:
            condensed = nx.condensation(active)
        self._condensed = condensed
        self._mapping = condensed.graph["mapping"]
        self._unknown_edges = tuple(unknown)
        if is_debug_enabled(logger):
            logger.debug(
                "Active-edge subgraph condensed",
                extra=extra_context(
                    event="condensation",
                    component="reachability",
                    outcome="built",
                    nodes=active.number_of_nodes(),
                    edges=active.number_of_edges(),
                    components=condensed.number_of_nodes(),
                    duration_ms=t.duration_ms(),
                ),
            )
        return condensed

    def reachable_from(self, targets: Iterable[PackageId]) -> ReachabilitySet:
        """Return the reachability set for one or more target packages.

        Several targets (e.g. every version matching a constraint) are
        unioned into a single set.

        Raises:
            UnknownTarget: If no target is given or one is not in the graph.
        """
        key = frozenset(targets)
        if not key:
            raise UnknownTarget("<none>")
        for target in sorted(key):
            if not self._graph.has_node(target):
                raise UnknownTarget(str(target))

        cached = self._memo.get(key)
        if cached is not None:
            return cached

        condensed = self._condensed
        if condensed is None:
            condensed = self._build_condensation()

        start = {self._mapping[t] for t in key}
        visited = set(start)
        queue = deque(sorted(start))
        while queue:
            component = queue.popleft()
            for pred in condensed.predecessors(component):
                if pred not in visited:
                    visited.add(pred)
                    queue.append(pred)

        nodes = frozenset(
            member for component in visited for member in condensed.nodes[component]["members"]
        )
        ambiguous = tuple(e for e in self._unknown_edges if e.target in nodes)
        result = ReachabilitySet(targets=key, nodes=nodes, ambiguous_edges=ambiguous)
        self._memo[key] = result

        logger.debug(
            "Reachability computed for %s: %d packages reach the target",
            ", ".join(str(t) for t in sorted(key)),
            len(nodes),
        )
        return result
