"""Edge filtering shared by reachability traversal and frontier extraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Tuple

from graph.models import Activation, DependencyEdge, DependencyKind, PackageNode

ALL_KINDS: FrozenSet[DependencyKind] = frozenset(DependencyKind)


@dataclass(frozen=True)
class EdgeFilter:
    """Which edges take part in the audit.

    kinds: dependency kinds considered (default: all).
    skip: substrings; edges whose destination ``"name version"`` contains
        any of them are ignored.
    """

    kinds: FrozenSet[DependencyKind] = ALL_KINDS
    skip: Tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        kinds: Optional[Iterable[str]] = None,
        skip: Optional[Iterable[str]] = None,
    ) -> "EdgeFilter":
        """Create a filter from CLI/config labels."""
        parsed = frozenset(DependencyKind.parse(k) for k in kinds) if kinds else ALL_KINDS
        skips = tuple(sorted({s for s in (skip or ()) if s}))
        return cls(kinds=parsed, skip=skips)

    def allows(self, edge: DependencyEdge) -> bool:
        if edge.kind not in self.kinds:
            return False
        if self.skip:
            rendered = str(edge.target)
            if any(s in rendered for s in self.skip):
                return False
        return True

    def activation(self, edge: DependencyEdge, source: PackageNode) -> Activation:
        """Edge activation, treating filtered-out edges as inactive."""
        if not self.allows(edge):
            return Activation.INACTIVE
        return edge.resolve_activation(source)

    def kind_labels(self):
        return [k.value for k in sorted(self.kinds, key=lambda k: k.rank)]
