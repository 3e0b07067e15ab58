"""Dependency graph model.

- models.py: package identities, nodes, edges, dependency kinds, activation tri-state
- dependency_graph.py: immutable NetworkX-backed graph with lookup and edge iteration
- errors.py: MalformedGraph, UnknownTarget and friends
"""

from .errors import (
    AmbiguousTarget,
    GraphError,
    MalformedGraph,
    ProviderError,
    UnknownTarget,
)
from .models import (
    Activation,
    DependencyEdge,
    DependencyKind,
    Ecosystem,
    PackageId,
    PackageNode,
    normalize_name,
)
from .dependency_graph import DependencyGraph

__all__ = [
    "Activation",
    "AmbiguousTarget",
    "DependencyEdge",
    "DependencyGraph",
    "DependencyKind",
    "Ecosystem",
    "GraphError",
    "MalformedGraph",
    "PackageId",
    "PackageNode",
    "ProviderError",
    "UnknownTarget",
    "normalize_name",
]
