"""Frontier extraction.

For every workspace member, find the direct dependency edges whose
destination can reach the target. Each such edge is an independently
removable introduction point, so all of them are reported, with one
exception: an edge to another workspace member (one that is not itself a
target) is only reported when the member has no outbound frontier edge of
the same kind. The other member is audited on its own, so its exposure
already shows up under its own name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from analysis.filters import EdgeFilter
from analysis.reachability import ReachabilityIndex, ReachabilitySet
from graph.models import Activation, DependencyKind, PackageId, PackageNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrontierEntry:
    """One direct edge from a workspace member into the target's reachability set.

    ``direct``: the destination is a target itself.
    ``internal``: the destination is another workspace member.
    """

    member: PackageId
    dependency: PackageId
    kind: DependencyKind
    features: Tuple[str, ...] = ()
    activation: Activation = Activation.ACTIVE
    direct: bool = False
    internal: bool = False

    def sort_key(self):
        return (self.kind.rank, self.dependency.name, self.dependency.version)

    def key(self) -> Tuple[str, str, str]:
        """Version-independent identity used for baseline comparisons."""
        return (self.member.name, self.dependency.name, self.kind.value)


@dataclass(frozen=True)
class MemberFrontier:
    """All frontier entries of one workspace member, in report order."""

    member: PackageId
    entries: Tuple[FrontierEntry, ...]

    @property
    def affected(self) -> bool:
        return bool(self.entries)


class FrontierExtractor:
    """Extracts per-member frontier entries from a reachability set.

    Args:
        index: Reachability index over the audited graph.
        boundary_only: Only report edges that leave the workspace; members
            exposed solely through other workspace members are not reported.
    """

    def __init__(self, index: ReachabilityIndex, boundary_only: bool = False):
        self._graph = index.graph
        self._filter: EdgeFilter = index.edge_filter
        self._boundary_only = boundary_only

    def members(self, reach: ReachabilitySet) -> List[PackageNode]:
        """Workspace members to scan; target packages are never scanned."""
        return [m for m in self._graph.workspace_members() if not reach.is_target(m.id)]

    def extract(self, reach: ReachabilitySet) -> List[MemberFrontier]:
        """Frontier for every scanned member (entries may be empty)."""
        return [self.extract_member(m, reach) for m in self.members(reach)]

    def extract_member(self, member: PackageNode, reach: ReachabilitySet) -> MemberFrontier:
        merged: Dict[Tuple[PackageId, DependencyKind], Dict] = {}
        for edge in self._graph.out_edges(member.id):
            state = self._filter.activation(edge, member)
            if not state.traversable:
                continue
            if edge.target == member.id or edge.target not in reach:
                continue

            slot = merged.setdefault(
                (edge.target, edge.kind),
                {"features": set(), "activation": Activation.UNKNOWN},
            )
            if edge.feature is not None:
                slot["features"].add(edge.feature)
            if state is Activation.ACTIVE:
                slot["activation"] = Activation.ACTIVE

        entries = []
        for (dependency, kind), slot in merged.items():
            direct = reach.is_target(dependency)
            entries.append(
                FrontierEntry(
                    member=member.id,
                    dependency=dependency,
                    kind=kind,
                    features=tuple(sorted(slot["features"])),
                    activation=slot["activation"],
                    direct=direct,
                    internal=not direct and self._graph.node(dependency).workspace_member,
                )
            )

        if self._boundary_only:
            entries = [e for e in entries if not e.internal]
        else:
            # an internal edge yields to an outbound edge of the same kind
            covered = {e.kind for e in entries if not e.internal}
            entries = [e for e in entries if not e.internal or e.kind not in covered]
        entries.sort(key=FrontierEntry.sort_key)

        for entry in entries:
            logger.debug(
                "\t*%s: %s -> %s (%s)",
                "direct" if entry.direct else "indirect",
                member.id,
                entry.dependency,
                entry.kind.value,
            )
        return MemberFrontier(member=member.id, entries=tuple(entries))


def entries_for(groups: List[MemberFrontier], member: PackageId) -> Optional[MemberFrontier]:
    """Find the group for ``member`` in extractor output."""
    for group in groups:
        if group.member == member:
            return group
    return None
