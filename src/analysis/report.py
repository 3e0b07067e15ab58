"""Report builder: assemble frontier entries into an ordered, serializable report.

Performs no I/O; rendering lives in cli_export.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence, Set, Tuple

from analysis.frontier import FrontierEntry, MemberFrontier
from constants import Constants
from graph.models import PackageId


@dataclass(frozen=True)
class ReportSummary:
    """Summary counts for a frontier report."""
    members_scanned: int
    members_affected: int
    total_entries: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "members_scanned": self.members_scanned,
            "members_affected": self.members_affected,
            "total_entries": self.total_entries,
        }


@dataclass(frozen=True)
class FrontierReport:
    """Ordered frontier report.

    ``groups`` holds only affected members, ordered by member identity;
    entries inside a group are ordered by kind, then dependency name.
    """
    targets: Tuple[PackageId, ...]
    groups: Tuple[MemberFrontier, ...]
    summary: ReportSummary
    kinds: Tuple[str, ...] = ()
    boundary_only: bool = False
    ambiguous_edges: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def empty(self) -> bool:
        return not self.groups

    def entries(self) -> List[FrontierEntry]:
        return [entry for group in self.groups for entry in group.entries]

    def entry_keys(self) -> Set[Tuple[str, str, str]]:
        """(member name, dependency name, kind) for every entry."""
        return {entry.key() for entry in self.entries()}

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form for serializers. Key order is fixed."""
        return {
            "schema_version": Constants.REPORT_SCHEMA_VERSION,
            "targets": [str(t) for t in self.targets],
            "kinds": list(self.kinds),
            "boundary_only": self.boundary_only,
            "summary": self.summary.to_dict(),
            "frontier": [
                {
                    "member": {"name": group.member.name, "version": group.member.version},
                    "entries": [_entry_to_dict(e) for e in group.entries],
                }
                for group in self.groups
            ],
        }


def _entry_to_dict(entry: FrontierEntry) -> Dict[str, Any]:
    return {
        "name": entry.dependency.name,
        "version": entry.dependency.version,
        "kind": entry.kind.value,
        "features": list(entry.features),
        "activation": entry.activation.value,
        "direct": entry.direct,
        "internal": entry.internal,
    }


class ReportBuilder:
    """Collects extractor output and produces a FrontierReport."""

    def __init__(self, kinds: Sequence[str] = (), boundary_only: bool = False):
        self._kinds = tuple(kinds)
        self._boundary_only = boundary_only

    def build(
        self,
        targets: Iterable[PackageId],
        member_frontiers: Iterable[MemberFrontier],
        ambiguous_edges: Iterable[Any] = (),
    ) -> FrontierReport:
        scanned = sorted(member_frontiers, key=lambda g: g.member)
        groups = tuple(g for g in scanned if g.affected)
        summary = ReportSummary(
            members_scanned=len(scanned),
            members_affected=len(groups),
            total_entries=sum(len(g.entries) for g in groups),
        )
        return FrontierReport(
            targets=tuple(sorted(targets)),
            groups=groups,
            summary=summary,
            kinds=self._kinds,
            boundary_only=self._boundary_only,
            ambiguous_edges=tuple(
                f"{e.source} -> {e.target} ({e.kind.value})" for e in ambiguous_edges
            ),
        )
