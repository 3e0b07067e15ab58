"""Audit runner: graph -> reachability -> frontier -> report.

Single pass over an immutable graph. The reachability set is fully computed
before any frontier extraction starts.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from analysis.filters import EdgeFilter
from analysis.frontier import FrontierExtractor
from analysis.reachability import ReachabilityIndex
from analysis.report import FrontierReport, ReportBuilder
from analysis.targets import TargetSpec, resolve_package_id, resolve_targets
from common.logging_utils import extra_context, is_debug_enabled
from graph.dependency_graph import DependencyGraph
from graph.models import PackageId

logger = logging.getLogger(__name__)


def select_targets(
    graph: DependencyGraph,
    target: Optional[TargetSpec] = None,
    package_id: Optional[str] = None,
) -> list[PackageId]:
    """Resolve the audit targets from either a name spec or a package-id substring."""
    if package_id:
        return [resolve_package_id(graph, package_id)]
    if target is None:
        raise ValueError("Either a target package or a package id is required")
    return resolve_targets(graph, target)


def run_audit(
    graph: DependencyGraph,
    targets: Iterable[PackageId],
    edge_filter: Optional[EdgeFilter] = None,
    boundary_only: bool = False,
    index: Optional[ReachabilityIndex] = None,
) -> FrontierReport:
    """Compute the frontier report for ``targets`` over ``graph``.

    Pass an existing ``index`` to reuse its condensation across several
    target queries on the same graph. The index's own filter applies; an
    ``edge_filter`` given alongside it must be equal to that filter.

    Raises:
        UnknownTarget: If a target is not in the graph.
        ValueError: If ``index`` belongs to another graph or uses another filter.
    """
    if index is None:
        index = ReachabilityIndex(graph, edge_filter)
    elif index.graph is not graph:
        raise ValueError("Reachability index was built for a different graph")
    elif edge_filter is not None and edge_filter != index.edge_filter:
        raise ValueError(
            f"Edge filter {edge_filter} conflicts with the index filter {index.edge_filter}"
        )
    targets = list(targets)

    reach = index.reachable_from(targets)
    extractor = FrontierExtractor(index, boundary_only=boundary_only)
    member_frontiers = extractor.extract(reach)

    report = ReportBuilder(
        kinds=index.edge_filter.kind_labels(),
        boundary_only=boundary_only,
    ).build(reach.targets, member_frontiers, reach.ambiguous_edges)

    if is_debug_enabled(logger):
        logger.debug(
            "Audit finished",
            extra=extra_context(
                event="function_exit",
                component="audit",
                action="run_audit",
                target=", ".join(str(t) for t in report.targets),
                outcome="affected" if report.groups else "clean",
                members_scanned=report.summary.members_scanned,
                members_affected=report.summary.members_affected,
                total_entries=report.summary.total_entries,
            ),
        )
    return report
