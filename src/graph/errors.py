"""Exceptions raised by the graph model, providers and frontier analysis."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple


class GraphError(ValueError):
    """Base class for dependency graph failures."""


class MalformedGraph(GraphError):
    """Raised when graph input is structurally invalid.

    Covers dangling edge endpoints, duplicate package identities and provider
    documents that do not match their expected shape. Fatal: no partial report
    is produced from a malformed graph.
    """


class ProviderError(GraphError):
    """Raised when graph metadata cannot be obtained (I/O, subprocess)."""


class UnknownTarget(GraphError):
    """Raised when the requested target package does not exist in the graph."""

    def __init__(self, target: str, available: Optional[Iterable[str]] = None):
        self.target = target
        self.available: Tuple[str, ...] = tuple(available or ())
        msg = f"target package '{target}' not found in dependency graph; nothing to audit"
        if self.available:
            msg += f" (available versions: {', '.join(self.available)})"
        super().__init__(msg)


class AmbiguousTarget(UnknownTarget):
    """Raised when a package-id substring matches more than one package."""

    def __init__(self, target: str, candidates: Iterable[str]):
        self.candidates: Tuple[str, ...] = tuple(candidates)
        super().__init__(target)
        self.args = (
            f"package-id substring '{target}' should match exactly one package, "
            f"matched {len(self.candidates)}: {', '.join(self.candidates)}",
        )

    def __str__(self) -> str:
        return str(self.args[0])
