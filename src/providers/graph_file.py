"""Graph provider for native graph documents (JSON or YAML).

Document shape::

    ecosystem: generic            # optional: generic | cargo | python
    packages:
      - {name: app, version: "0.1.0", workspace: true, features: [default]}
      - {name: old_futures, version: "0.1.0"}
    dependencies:
      - from: {name: app, version: "0.1.0"}
        to: {name: old_futures, version: "0.1.0"}
        kind: normal              # normal | build | dev
        feature: null             # optional gating feature of the source
        platform: null            # optional cfg / marker condition
        activation: null          # optional explicit active | inactive | unknown

``features`` omitted (or null) means the enabled features are unknown.
Versions must be strings; quote them in YAML (``"1.10"``, not ``1.10``).
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict

import yaml
from jsonschema import Draft7Validator

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

_VERSION = {"type": "string", "minLength": 1}
_REF = {
    "type": "object",
    "required": ["name", "version"],
    "properties": {"name": {"type": "string", "minLength": 1}, "version": _VERSION},
}

GRAPH_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["packages"],
    "properties": {
        "ecosystem": {"enum": [e.value for e in Ecosystem]},
        "packages": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "version"],
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "version": _VERSION,
                    "workspace": {"type": "boolean"},
                    "features": {
                        "type": ["array", "null"],
                        "items": {"type": "string"},
                    },
                },
            },
        },
        "dependencies": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["from", "to"],
                "properties": {
                    "from": _REF,
                    "to": _REF,
                    "kind": {"enum": [None, "normal", "build", "dev", "development"]},
                    "feature": {"type": ["string", "null"]},
                    "platform": {"type": ["string", "null"]},
                    "activation": {"enum": [None] + [a.value for a in Activation]},
                },
            },
        },
    },
}


def validate_document(data: Any) -> None:
    """Validate a graph document against GRAPH_SCHEMA.

    Raises:
        MalformedGraph: On the first schema violation (by path).
    """
    validator = Draft7Validator(GRAPH_SCHEMA)
    errs = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
    if errs:
        first = errs[0]
        path = "/".join(str(p) for p in first.path)
        raise MalformedGraph(f"Invalid graph document at '{path}': {first.message}")


def _ref(data: Dict[str, Any]) -> PackageId:
    return PackageId(data["name"], data["version"])


def parse_graph_document(data: Any) -> DependencyGraph:
    """Build a DependencyGraph from a validated document."""
    validate_document(data)
    ecosystem = Ecosystem(data.get("ecosystem", Ecosystem.GENERIC.value))

    nodes = []
    for pkg in data["packages"]:
        features = pkg.get("features")
        nodes.append(
            PackageNode(
                id=_ref(pkg),
                workspace_member=bool(pkg.get("workspace", False)),
                features=frozenset(features) if features is not None else None,
            )
        )

    edges = []
    for dep in data.get("dependencies") or []:
        activation = dep.get("activation")
        edges.append(
            DependencyEdge(
                source=_ref(dep["from"]),
                target=_ref(dep["to"]),
                kind=DependencyKind.parse(dep.get("kind")),
                feature=dep.get("feature"),
                platform=dep.get("platform"),
                activation=Activation(activation) if activation else None,
            )
        )
    return DependencyGraph(nodes, edges, ecosystem=ecosystem)


def load_graph_document(path: str) -> Any:
    """Read a JSON or YAML graph document; YAML for .yml/.yaml, JSON otherwise."""
    ext = os.path.splitext(path)[1].lower()
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if ext in (".yml", ".yaml"):
                return yaml.safe_load(fh)
            return json.load(fh)
    except FileNotFoundError as e:
        raise ProviderError(f"Graph file not found: {path}") from e
    except OSError as e:
        raise ProviderError(f"Failed to read graph file {path}: {e}") from e
    except (ValueError, yaml.YAMLError) as e:
        raise MalformedGraph(f"Failed to parse graph file {path}: {e}") from e


def load_graph_file(path: str) -> DependencyGraph:
    graph = parse_graph_document(load_graph_document(path))
    logger.debug("Loaded graph file %s: %d packages", path, graph.node_count)
    return graph
