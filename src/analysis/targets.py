"""Target selection: map a user-supplied target token onto graph packages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import semantic_version
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from graph.dependency_graph import DependencyGraph
from graph.errors import AmbiguousTarget, UnknownTarget
from graph.models import Ecosystem, PackageId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TargetSpec:
    """Target package name plus an optional version constraint."""
    name: str
    constraint: Optional[str] = None

    def __str__(self) -> str:
        if self.constraint:
            return f"{self.name}@{self.constraint}"
        return self.name


def tokenize_target(token: str) -> Tuple[str, Optional[str]]:
    """Return (name, constraint or None) using the rightmost-separator rule.

    Both ``name@constraint`` and ``name:constraint`` are accepted.
    """
    s = token.strip()
    cut = max(s.rfind("@"), s.rfind(":"))
    if cut <= 0:
        return s, None
    name = s[:cut].strip()
    spec = s[cut + 1:].strip()
    return name, (spec or None)


def parse_target(token: str, version: Optional[str] = None) -> TargetSpec:
    """Parse a CLI/config target token; an explicit ``version`` wins."""
    name, spec = tokenize_target(token)
    if not name:
        raise ValueError(f"Empty target package name in {token!r}")
    constraint = version if version else spec
    if constraint is not None and constraint.lower() in ("*", "latest", "any"):
        constraint = None
    return TargetSpec(name=name, constraint=constraint)


def _match_semver(constraint: str, versions: List[str], ecosystem: Ecosystem) -> List[str]:
    raw = constraint.strip()
    # Cargo reads a bare requirement ("1.2") as a caret requirement.
    if ecosystem == Ecosystem.CARGO and raw[:1].isdigit() and "," not in raw:
        raw = f"^{raw}"
    try:
        spec = semantic_version.SimpleSpec(raw)
    except ValueError as e:
        raise ValueError(f"Invalid version constraint '{constraint}': {e}") from e
    matched = []
    for v in versions:
        try:
            parsed = semantic_version.Version(v)
        except ValueError:
            try:
                parsed = semantic_version.Version.coerce(v)
            except ValueError:
                logger.debug("Skipping unparseable version %s", v)
                continue
        if parsed in spec:
            matched.append(v)
    return matched


def _match_pep440(constraint: str, versions: List[str]) -> List[str]:
    raw = constraint.strip()
    if raw[:1].isdigit():
        raw = f"=={raw}"
    try:
        spec = SpecifierSet(raw, prereleases=True)
    except InvalidSpecifier as e:
        raise ValueError(f"Invalid version constraint '{constraint}': {e}") from e
    matched = []
    for v in versions:
        try:
            if Version(v) in spec:
                matched.append(v)
        except InvalidVersion:
            logger.debug("Skipping unparseable version %s", v)
    return matched


def resolve_targets(graph: DependencyGraph, spec: TargetSpec) -> List[PackageId]:
    """All graph packages matching ``spec``; matching versions are unioned.

    Raises:
        UnknownTarget: If the name is absent or no version satisfies the constraint.
        ValueError: If the constraint cannot be parsed.
    """
    candidates = graph.find(spec.name)
    if not candidates:
        raise UnknownTarget(str(spec))
    if spec.constraint is None:
        return candidates

    versions = [pid.version for pid in candidates]
    if spec.constraint in versions:
        matched = [spec.constraint]
    elif graph.ecosystem == Ecosystem.PYTHON:
        matched = _match_pep440(spec.constraint, versions)
    else:
        matched = _match_semver(spec.constraint, versions, graph.ecosystem)

    result = [pid for pid in candidates if pid.version in matched]
    if not result:
        raise UnknownTarget(str(spec), available=versions)
    return result


def resolve_package_id(graph: DependencyGraph, fragment: str) -> PackageId:
    """Resolve a package-id substring that must match exactly one package.

    Raises:
        UnknownTarget: No package id contains ``fragment``.
        AmbiguousTarget: More than one package id contains it.
    """
    candidates = [
        pid for pid in graph.package_ids()
        if fragment in str(pid) or fragment in f"{pid.name}@{pid.version}"
    ]
    if not candidates:
        raise UnknownTarget(fragment)
    if len(candidates) > 1:
        raise AmbiguousTarget(fragment, [str(c) for c in candidates])
    return candidates[0]
