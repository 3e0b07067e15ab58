"""Graph provider for uv workspaces (``uv.lock``).

uv.lock is a TOML file with [[package]] sections. Workspace members carry an
``editable``/``virtual`` source (or are listed under ``[manifest] members``).
Each package lists its resolved ``dependencies``, ``optional-dependencies``
per extra and ``dev-dependencies`` per group.
"""

from __future__ import annotations

import logging
import tomllib
from typing import Any, Dict, List, Optional

from graph.dependency_graph import DependencyGraph
from graph.errors import MalformedGraph, ProviderError
from graph.models import (
    DependencyEdge,
    DependencyKind,
    Ecosystem,
    PackageId,
    PackageNode,
    normalize_name,
)

logger = logging.getLogger(__name__)

_MEMBER_SOURCES = ("editable", "virtual", "workspace")


def load_uv_lock_file(lockfile_path: str) -> Dict[str, Any]:
    """Read and parse uv.lock."""
    try:
        with open(lockfile_path, "rb") as f:
            return tomllib.load(f) or {}
    except FileNotFoundError as e:
        raise ProviderError(f"uv.lock file not found: {lockfile_path}") from e
    except OSError as e:
        raise ProviderError(f"Failed to read uv.lock file {lockfile_path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise MalformedGraph(f"Failed to parse uv.lock (invalid TOML): {e}") from e


def _is_member(pkg: Dict[str, Any], manifest_members: set) -> bool:
    source = pkg.get("source")
    if isinstance(source, dict) and any(k in source for k in _MEMBER_SOURCES):
        return True
    return normalize_name(str(pkg.get("name", "")), Ecosystem.PYTHON) in manifest_members


class _Resolver:
    """Resolve dependency references ({name, version?}) to package ids."""

    def __init__(self, ids: List[PackageId]):
        self._by_name: Dict[str, List[PackageId]] = {}
        for pid in ids:
            self._by_name.setdefault(normalize_name(pid.name, Ecosystem.PYTHON), []).append(pid)

    def resolve(self, owner: PackageId, ref: Any) -> PackageId:
        if not isinstance(ref, dict) or "name" not in ref:
            raise MalformedGraph(f"{owner}: dependency entry without a name: {ref!r}")
        name = normalize_name(str(ref["name"]), Ecosystem.PYTHON)
        candidates = self._by_name.get(name, [])
        version = ref.get("version")
        if version is not None:
            candidates = [pid for pid in candidates if pid.version == str(version)]
        if not candidates:
            raise MalformedGraph(f"{owner} depends on missing package {ref['name']!r}")
        if len(candidates) > 1:
            raise MalformedGraph(
                f"{owner} dependency {ref['name']!r} is ambiguous without a version: "
                f"{', '.join(c.version for c in candidates)}"
            )
        return candidates[0]


def parse_uv_lock(data: Dict[str, Any]) -> DependencyGraph:
    """Build a DependencyGraph from parsed uv.lock data.

    Enabled extras are not recorded in the lockfile, so packages get unknown
    feature state and optional dependencies are conservatively traversed.

    Raises:
        MalformedGraph: On missing fields or unresolvable dependency references.
    """
    package_list = data.get("package", [])
    if not isinstance(package_list, list):
        raise MalformedGraph("uv.lock 'package' must be an array of tables")
    manifest = data.get("manifest") or {}
    manifest_members = {
        normalize_name(str(m), Ecosystem.PYTHON) for m in (manifest.get("members") or [])
    }

    nodes: List[PackageNode] = []
    entries: List[tuple] = []
    for pkg in package_list:
        if not isinstance(pkg, dict) or "name" not in pkg:
            raise MalformedGraph(f"uv.lock package entry without a name: {pkg!r}")
        # Virtual workspace roots may omit the version.
        pid = PackageId(str(pkg["name"]), str(pkg.get("version", "0.0.0")))
        nodes.append(PackageNode(id=pid, workspace_member=_is_member(pkg, manifest_members)))
        entries.append((pid, pkg))

    resolver = _Resolver([n.id for n in nodes])
    edges: List[DependencyEdge] = []
    for pid, pkg in entries:
        for ref in pkg.get("dependencies") or []:
            edges.append(_edge(resolver, pid, ref, DependencyKind.NORMAL))
        for extra, refs in sorted((pkg.get("optional-dependencies") or {}).items()):
            for ref in refs or []:
                edges.append(_edge(resolver, pid, ref, DependencyKind.NORMAL, feature=extra))
        for _group, refs in sorted((pkg.get("dev-dependencies") or {}).items()):
            for ref in refs or []:
                edges.append(_edge(resolver, pid, ref, DependencyKind.DEV))

    logger.debug(
        "Parsed uv.lock: %d packages (%d workspace members), %d edges",
        len(nodes),
        sum(1 for n in nodes if n.workspace_member),
        len(edges),
    )
    return DependencyGraph(nodes, edges, ecosystem=Ecosystem.PYTHON)


def _edge(
    resolver: _Resolver,
    owner: PackageId,
    ref: Any,
    kind: DependencyKind,
    feature: Optional[str] = None,
) -> DependencyEdge:
    target = resolver.resolve(owner, ref)
    marker = ref.get("marker") if isinstance(ref, dict) else None
    return DependencyEdge(
        source=owner,
        target=target,
        kind=kind,
        feature=feature,
        platform=marker or None,
    )


def load_uv_graph(lockfile_path: str) -> DependencyGraph:
    return parse_uv_lock(load_uv_lock_file(lockfile_path))
