"""Dependency graph providers.

- cargo_metadata.py: `cargo metadata` JSON (file or live cargo run)
- uv_lock.py: uv.lock workspaces
- graph_file.py: native JSON/YAML graph documents

load_graph() picks a provider from the explicit name or the file name.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from constants import Constants, GraphProviders
from graph.dependency_graph import DependencyGraph
from graph.errors import ProviderError

from .cargo_metadata import load_cargo_graph
from .graph_file import load_graph_file
from .uv_lock import load_uv_graph

logger = logging.getLogger(__name__)


def detect_provider(path: Optional[str]) -> str:
    """Pick a provider from a graph path: uv.lock -> uv, .yml/.yaml -> graph, JSON sniffed."""
    if not path:
        return GraphProviders.CARGO.value
    base = os.path.basename(path).lower()
    if base in (Constants.CARGO_LOCK_FILE.lower(), Constants.CARGO_MANIFEST_FILE.lower()):
        raise ProviderError(
            f"{path} has no resolved dependency kinds; pass saved `cargo metadata "
            f"--format-version 1` JSON with -g, or the workspace directory with -w"
        )
    if base == Constants.UV_LOCK_FILE:
        return GraphProviders.UV.value
    ext = os.path.splitext(base)[1]
    if ext in (".yml", ".yaml"):
        return GraphProviders.GRAPH.value
    if ext == ".lock":
        return GraphProviders.UV.value
    try:
        with open(path, "r", encoding="utf-8") as fh:
            head = fh.read(4096)
    except OSError as e:
        raise ProviderError(f"Failed to read graph file {path}: {e}") from e
    # cargo metadata output always carries these top-level keys
    if '"workspace_members"' in head or '"resolve"' in head:
        return GraphProviders.CARGO.value
    return GraphProviders.GRAPH.value


def load_graph(
    path: Optional[str] = None,
    provider: str = GraphProviders.AUTO.value,
    workspace: Optional[str] = None,
) -> DependencyGraph:
    """Load a dependency graph.

    Args:
        path: Graph input file; when omitted cargo metadata runs in ``workspace``.
        provider: One of Constants.SUPPORTED_PROVIDERS.
        workspace: Directory for a live ``cargo metadata`` run.
    """
    if provider == GraphProviders.AUTO.value:
        provider = detect_provider(path)
    logger.info("Loading dependency graph with the %s provider", provider)

    if provider == GraphProviders.CARGO.value:
        return load_cargo_graph(path=path, workspace=workspace)
    if not path:
        raise ProviderError(f"The {provider} provider requires a graph file (--graph)")
    if provider == GraphProviders.UV.value:
        return load_uv_graph(path)
    if provider == GraphProviders.GRAPH.value:
        return load_graph_file(path)
    raise ProviderError(f"Unsupported graph provider: {provider}")


__all__ = ["detect_provider", "load_graph"]
