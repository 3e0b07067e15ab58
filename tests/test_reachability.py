"""Tests for the reachability index (SCC contraction + reverse traversal)."""

import pytest

from analysis import reachability
from analysis.filters import EdgeFilter
from analysis.reachability import ReachabilityIndex
from graph import (
    Activation,
    DependencyEdge,
    DependencyGraph,
    DependencyKind,
    PackageId,
    PackageNode,
    UnknownTarget,
)


def pid(name, version="1.0.0"):
    return PackageId(name, version)


def make_graph(members, externals, edges, features=None):
    """edges: (source, target, kind[, extra DependencyEdge kwargs])."""
    features = features or {}
    nodes = [PackageNode(pid(m), True, features.get(m, frozenset())) for m in members]
    nodes += [PackageNode(pid(x), False, features.get(x, frozenset())) for x in externals]
    built = []
    for item in edges:
        src, dst, kind = item[:3]
        extra = item[3] if len(item) > 3 else {}
        built.append(DependencyEdge(pid(src), pid(dst), DependencyKind(kind), **extra))
    return DependencyGraph(nodes, built)


def test_target_is_in_its_own_set():
    graph = make_graph(["app"], ["t"], [])
    reach = ReachabilityIndex(graph).reachable_from([pid("t")])
    assert pid("t") in reach
    assert reach.is_target(pid("t"))
    assert reach.dependents() == []


def test_transitive_dependents():
    graph = make_graph(
        ["app"],
        ["mid", "leaf", "t", "unrelated"],
        [
            ("app", "mid", "normal"),
            ("mid", "leaf", "normal"),
            ("leaf", "t", "normal"),
            ("app", "unrelated", "normal"),
        ],
    )
    reach = ReachabilityIndex(graph).reachable_from([pid("t")])
    assert reach.dependents() == [pid("app"), pid("leaf"), pid("mid")]
    assert pid("unrelated") not in reach


def test_cycle_terminates_and_is_contracted():
    graph = make_graph(
        ["a", "b"],
        ["c", "t"],
        [
            ("a", "b", "dev"),
            ("b", "a", "normal"),
            ("b", "c", "normal"),
            ("c", "t", "normal"),
        ],
    )
    reach = ReachabilityIndex(graph).reachable_from([pid("t")])
    assert {pid("a"), pid("b"), pid("c")} <= reach.nodes


def test_cycle_not_reaching_target():
    graph = make_graph(
        ["a", "b"],
        ["t"],
        [("a", "b", "dev"), ("b", "a", "dev")],
    )
    reach = ReachabilityIndex(graph).reachable_from([pid("t")])
    assert pid("a") not in reach
    assert pid("b") not in reach


def test_inactive_edge_is_not_traversed():
    graph = make_graph(
        ["app"],
        ["x", "t"],
        [("app", "x", "normal", {"feature": "extra"}), ("x", "t", "normal")],
        features={"app": frozenset({"default"})},
    )
    reach = ReachabilityIndex(graph).reachable_from([pid("t")])
    assert pid("x") in reach
    assert pid("app") not in reach


def test_unknown_edge_is_traversed_and_recorded():
    graph = make_graph(
        ["app"],
        ["x", "t"],
        [("app", "x", "normal", {"platform": "cfg(windows)"}), ("x", "t", "normal")],
    )
    reach = ReachabilityIndex(graph).reachable_from([pid("t")])
    assert pid("app") in reach
    assert [(e.source, e.target) for e in reach.ambiguous_edges] == [(pid("app"), pid("x"))]


def test_kind_filter_drops_edges():
    graph = make_graph(["app"], ["t"], [("app", "t", "dev")])
    index = ReachabilityIndex(graph, EdgeFilter.build(kinds=["normal", "build"]))
    assert pid("app") not in index.reachable_from([pid("t")])


def test_skip_filter_drops_edges_into_matching_packages():
    graph = make_graph(["app"], ["shim", "t"], [("app", "shim", "normal"), ("shim", "t", "normal")])
    index = ReachabilityIndex(graph, EdgeFilter.build(skip=["shim"]))
    assert pid("app") not in index.reachable_from([pid("t")])


def test_multiple_targets_are_unioned():
    graph = make_graph(
        ["a", "b"],
        ["t1", "t2"],
        [("a", "t1", "normal"), ("b", "t2", "normal")],
    )
    reach = ReachabilityIndex(graph).reachable_from([pid("t1"), pid("t2")])
    assert pid("a") in reach and pid("b") in reach


def test_results_are_memoized():
    graph = make_graph(["app"], ["t"], [("app", "t", "normal")])
    index = ReachabilityIndex(graph)
    assert index.reachable_from([pid("t")]) is index.reachable_from({pid("t")})


def test_unknown_target_raises():
    graph = make_graph(["app"], ["t"], [])
    with pytest.raises(UnknownTarget):
        ReachabilityIndex(graph).reachable_from([pid("nonexistent_crate")])
    with pytest.raises(UnknownTarget):
        ReachabilityIndex(graph).reachable_from([])


def test_filtered_edge_activation_is_inactive():
    edge = DependencyEdge(pid("app"), pid("t"), DependencyKind.BUILD)
    node = PackageNode(pid("app"), True, frozenset())
    assert EdgeFilter.build(kinds=["normal"]).activation(edge, node) is Activation.INACTIVE
    assert EdgeFilter.build().activation(edge, node) is Activation.ACTIVE


def test_condensation_built_once_per_index(monkeypatch):
    calls = []
    real = reachability.nx.condensation

    def counting(graph, *args, **kwargs):
        calls.append(graph)
        return real(graph, *args, **kwargs)

    monkeypatch.setattr(reachability.nx, "condensation", counting)
    graph = make_graph(["app"], ["x", "y"], [("app", "x", "normal"), ("app", "y", "normal")])
    index = ReachabilityIndex(graph)
    assert pid("app") in index.reachable_from([pid("x")])
    assert pid("app") in index.reachable_from([pid("y")])
    assert len(calls) == 1
