"""Graph provider for Cargo workspaces (``cargo metadata --format-version 1``).

The JSON either comes from a file or from running cargo in a workspace
directory. ``resolve.nodes`` carries the fully resolved graph: per dependency
the kinds it is used as (``null`` = normal, ``build``, ``dev``) and the
platform cfg it is restricted to.
"""

from __future__ import annotations

import json
import logging
import subprocess
from typing import Any, Dict, List, Optional

from constants import Constants
from graph.dependency_graph import DependencyGraph
from graph.errors import MalformedGraph, ProviderError
from graph.models import (
    Activation,
    DependencyEdge,
    DependencyKind,
    Ecosystem,
    PackageId,
    PackageNode,
)

logger = logging.getLogger(__name__)


def run_cargo_metadata(workspace: Optional[str] = None) -> Dict[str, Any]:
    """Run ``cargo metadata`` in ``workspace`` and return the parsed JSON.

    Raises:
        ProviderError: If cargo is missing, fails or prints invalid JSON.
    """
    cmd = list(Constants.CARGO_METADATA_COMMAND)
    logger.info("Running %s in %s", " ".join(cmd), workspace or ".")
    try:
        result = subprocess.run(
            cmd,
            cwd=workspace,
            capture_output=True,
            text=True,
            timeout=Constants.CARGO_METADATA_TIMEOUT,
            check=False,
        )
    except FileNotFoundError as e:
        raise ProviderError(f"cargo executable not found: {e}") from e
    except subprocess.TimeoutExpired as e:
        raise ProviderError(
            f"cargo metadata timed out after {Constants.CARGO_METADATA_TIMEOUT} seconds"
        ) from e
    if result.returncode != 0:
        raise ProviderError(
            f"cargo metadata failed with exit code {result.returncode}: {result.stderr.strip()}"
        )
    try:
        return json.loads(result.stdout)
    except ValueError as e:
        raise ProviderError(f"cargo metadata produced invalid JSON: {e}") from e


def load_cargo_metadata_file(path: str) -> Dict[str, Any]:
    """Read saved ``cargo metadata`` output."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError as e:
        raise ProviderError(f"cargo metadata file not found: {path}") from e
    except OSError as e:
        raise ProviderError(f"Failed to read cargo metadata file {path}: {e}") from e
    except ValueError as e:
        raise MalformedGraph(f"Invalid JSON in cargo metadata file {path}: {e}") from e


def _optional_features(package: Dict[str, Any]) -> Dict[str, str]:
    """Map dependency name -> gating feature for optional declared dependencies."""
    gated: Dict[str, str] = {}
    for dep in package.get("dependencies") or []:
        if not isinstance(dep, dict) or not dep.get("optional"):
            continue
        name = dep.get("rename") or dep.get("name")
        if name:
            gated[str(name).replace("-", "_")] = str(name)
    return gated


def parse_cargo_metadata(metadata: Dict[str, Any]) -> DependencyGraph:
    """Build a DependencyGraph from cargo metadata JSON.

    Raises:
        MalformedGraph: If required sections are missing or ids do not resolve.
    """
    if not isinstance(metadata, dict):
        raise MalformedGraph("cargo metadata must be a JSON object")
    packages = metadata.get("packages")
    resolve = metadata.get("resolve")
    if not isinstance(packages, list):
        raise MalformedGraph("cargo metadata is missing the 'packages' list")
    if not isinstance(resolve, dict) or not isinstance(resolve.get("nodes"), list):
        raise MalformedGraph(
            "cargo metadata has no 'resolve' graph (was it run with --no-deps?)"
        )
    members = set(metadata.get("workspace_members") or [])

    ids: Dict[str, PackageId] = {}
    by_opaque: Dict[str, Dict[str, Any]] = {}
    for pkg in packages:
        try:
            opaque = pkg["id"]
            ids[opaque] = PackageId(str(pkg["name"]), str(pkg["version"]))
        except (KeyError, TypeError) as e:
            raise MalformedGraph(f"cargo package entry missing field: {e}") from e
        by_opaque[opaque] = pkg

    enabled: Dict[str, frozenset] = {}
    for node in resolve["nodes"]:
        if isinstance(node, dict) and "id" in node:
            enabled[node["id"]] = frozenset(node.get("features") or [])

    nodes: List[PackageNode] = []
    for opaque, pid in ids.items():
        nodes.append(
            PackageNode(
                id=pid,
                workspace_member=opaque in members,
                features=enabled.get(opaque),
            )
        )

    edges: List[DependencyEdge] = []
    for node in resolve["nodes"]:
        source_opaque = node.get("id") if isinstance(node, dict) else None
        if source_opaque not in ids:
            raise MalformedGraph(f"resolve node references unknown package id {source_opaque!r}")
        source = ids[source_opaque]
        gated = _optional_features(by_opaque[source_opaque])
        for dep in node.get("deps") or []:
            target_opaque = dep.get("pkg")
            if target_opaque not in ids:
                raise MalformedGraph(
                    f"{source} depends on unknown package id {target_opaque!r}"
                )
            target = ids[target_opaque]
            feature = gated.get(str(dep.get("name", "")))
            # The resolver only lists optional deps it activated; a feature
            # missing from the enabled list means `dep:` syntax, not "off".
            activation = None
            if feature is not None and feature not in enabled.get(source_opaque, frozenset()):
                activation = Activation.UNKNOWN
            dep_kinds = dep.get("dep_kinds") or [{"kind": None, "target": None}]
            for dk in dep_kinds:
                try:
                    kind = DependencyKind.parse(dk.get("kind"))
                except ValueError as e:
                    raise MalformedGraph(f"{source} -> {target}: {e}") from e
                edges.append(
                    DependencyEdge(
                        source=source,
                        target=target,
                        kind=kind,
                        feature=feature,
                        platform=dk.get("target"),
                        activation=activation,
                    )
                )

    logger.debug(
        "Parsed cargo metadata: %d packages (%d workspace members), %d edges",
        len(nodes),
        sum(1 for n in nodes if n.workspace_member),
        len(edges),
    )
    return DependencyGraph(nodes, edges, ecosystem=Ecosystem.CARGO)


def load_cargo_graph(path: Optional[str] = None, workspace: Optional[str] = None) -> DependencyGraph:
    """Load a cargo graph from a saved metadata file, or by running cargo."""
    if path:
        return parse_cargo_metadata(load_cargo_metadata_file(path))
    return parse_cargo_metadata(run_cargo_metadata(workspace))
