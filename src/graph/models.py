"""Data models for the dependency graph.

Leaf module; no intra-package imports (prevents import cycles).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional


class Ecosystem(Enum):
    """Naming rules the graph's package names follow."""
    CARGO = "cargo"
    PYTHON = "python"
    GENERIC = "generic"


class DependencyKind(Enum):
    """Dependency edge classification."""
    NORMAL = "normal"
    BUILD = "build"
    DEV = "dev"

    @property
    def rank(self) -> int:
        """Sort rank: normal, then build, then dev."""
        return _KIND_RANK[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> "DependencyKind":
        """Parse a kind label; ``None`` and aliases map onto the three kinds."""
        if value is None:
            return cls.NORMAL
        label = str(value).strip().lower()
        alias = _KIND_ALIASES.get(label)
        if alias is None:
            raise ValueError(f"Unknown dependency kind: {value!r}")
        return alias


_KIND_RANK = {DependencyKind.NORMAL: 0, DependencyKind.BUILD: 1, DependencyKind.DEV: 2}
_KIND_ALIASES = {
    "normal": DependencyKind.NORMAL,
    "": DependencyKind.NORMAL,
    "build": DependencyKind.BUILD,
    "dev": DependencyKind.DEV,
    "development": DependencyKind.DEV,
}


class Activation(Enum):
    """Whether an edge is active under the resolved configuration.

    UNKNOWN is traversed like ACTIVE: over-reporting a possible exposure is
    preferred to hiding one.
    """
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"

    @property
    def traversable(self) -> bool:
        return self is not Activation.INACTIVE


_PEP503_RE = re.compile(r"[-_.]+")


def normalize_name(name: str, ecosystem: Ecosystem) -> str:
    """Apply ecosystem-specific package name normalization for comparisons."""
    if ecosystem == Ecosystem.CARGO:
        return name.replace("_", "-")
    if ecosystem == Ecosystem.PYTHON:
        return _PEP503_RE.sub("-", name).lower()
    return name


@dataclass(frozen=True, order=True)
class PackageId:
    """Package identity: unique (name, version) pair within a graph."""
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


@dataclass(frozen=True)
class PackageNode:
    """A package in the graph.

    ``features`` is None when the provider cannot tell which features are on.
    """
    id: PackageId
    workspace_member: bool = False
    features: Optional[FrozenSet[str]] = None

    @property
    def name(self) -> str:
        return self.id.name

    @property
    def version(self) -> str:
        return self.id.version


@dataclass(frozen=True)
class DependencyEdge:
    """Directed "depends on" edge from ``source`` to ``target``.

    ``feature`` gates the edge on a feature of the source package;
    ``platform`` is a target cfg / environment marker that cannot be
    evaluated statically. An explicit ``activation`` from the provider
    overrides both.
    """
    source: PackageId
    target: PackageId
    kind: DependencyKind = DependencyKind.NORMAL
    feature: Optional[str] = None
    platform: Optional[str] = None
    activation: Optional[Activation] = None

    def resolve_activation(self, source_node: PackageNode) -> Activation:
        """Collapse the edge's conditions into a single tri-state."""
        if self.activation is not None:
            return self.activation
        states = []
        if self.feature is not None:
            if source_node.features is None:
                states.append(Activation.UNKNOWN)
            elif self.feature in source_node.features:
                states.append(Activation.ACTIVE)
            else:
                states.append(Activation.INACTIVE)
        if self.platform is not None:
            states.append(Activation.UNKNOWN)
        if Activation.INACTIVE in states:
            return Activation.INACTIVE
        if Activation.UNKNOWN in states:
            return Activation.UNKNOWN
        return Activation.ACTIVE

    def sort_key(self):
        return (
            self.source,
            self.kind.rank,
            self.target,
            self.feature or "",
            self.platform or "",
        )
