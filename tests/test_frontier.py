"""Tests for frontier extraction and the audit runner."""

import pytest

from analysis.audit import run_audit, select_targets
from analysis.filters import EdgeFilter
from analysis.frontier import FrontierExtractor, entries_for
from analysis.reachability import ReachabilityIndex
from analysis.targets import TargetSpec
from cli_export import render_json
from graph import (
    Activation,
    DependencyEdge,
    DependencyGraph,
    DependencyKind,
    Ecosystem,
    PackageId,
    PackageNode,
    UnknownTarget,
)


def pid(name, version="1.0.0"):
    return PackageId(name, version)


def make_graph(members, externals, edges, features=None):
    features = features or {}
    nodes = [PackageNode(pid(m), True, features.get(m, frozenset())) for m in members]
    nodes += [PackageNode(pid(x), False, features.get(x, frozenset())) for x in externals]
    built = []
    for item in edges:
        src, dst, kind = item[:3]
        extra = item[3] if len(item) > 3 else {}
        built.append(DependencyEdge(pid(src), pid(dst), DependencyKind(kind), **extra))
    return DependencyGraph(nodes, built, ecosystem=Ecosystem.CARGO)


def app_lib_graph():
    return make_graph(
        ["app", "lib"],
        ["old_futures"],
        [
            ("app", "lib", "normal"),
            ("app", "old_futures", "normal"),
            ("lib", "old_futures", "normal"),
        ],
    )


def audit(graph, target, **kwargs):
    targets = select_targets(graph, target=TargetSpec(target))
    return run_audit(graph, targets, **kwargs)


def summarize(report):
    return {
        group.member.name: [(e.dependency.name, e.kind.value) for e in group.entries]
        for group in report.groups
    }


class TestAppLibScenario:
    def test_each_member_reports_its_own_edge(self):
        report = audit(app_lib_graph(), "old_futures")
        assert summarize(report) == {
            "app": [("old_futures", "normal")],
            "lib": [("old_futures", "normal")],
        }
        assert report.summary.members_affected == 2
        assert report.summary.members_scanned == 2
        assert report.summary.total_entries == 2

    def test_direct_flag(self):
        report = audit(app_lib_graph(), "old_futures")
        assert all(e.direct for e in report.entries())

    def test_nonexistent_target(self):
        graph = app_lib_graph()
        with pytest.raises(UnknownTarget):
            select_targets(graph, target=TargetSpec("nonexistent_crate"))


def test_member_exposed_only_through_another_member():
    graph = make_graph(
        ["app", "lib"],
        ["old_futures"],
        [("app", "lib", "normal"), ("lib", "old_futures", "normal")],
    )
    report = audit(graph, "old_futures")
    assert summarize(report) == {
        "app": [("lib", "normal")],
        "lib": [("old_futures", "normal")],
    }
    app_entry = entries_for(list(report.groups), pid("app")).entries[0]
    assert app_entry.internal
    assert not app_entry.direct


def internal_and_dev_graph():
    return make_graph(
        ["app", "lib"],
        ["x", "t"],
        [
            ("app", "lib", "normal"),
            ("lib", "t", "normal"),
            ("app", "x", "dev"),
            ("x", "t", "normal"),
        ],
    )


def test_internal_edge_not_hidden_by_outbound_edge_of_other_kind():
    report = audit(internal_and_dev_graph(), "t")
    assert summarize(report)["app"] == [("lib", "normal"), ("x", "dev")]


def test_narrowing_kinds_never_adds_entries():
    graph = internal_and_dev_graph()
    full = audit(graph, "t").entry_keys()
    for kind in ("normal", "build", "dev"):
        narrowed = audit(graph, "t", edge_filter=EdgeFilter.build(kinds=[kind])).entry_keys()
        assert narrowed <= full


def test_internal_edge_of_other_kind_kept_next_to_outbound_normal():
    graph = make_graph(
        ["app", "lib"],
        ["x", "t"],
        [
            ("app", "x", "normal"),
            ("app", "lib", "dev"),
            ("x", "t", "normal"),
            ("lib", "t", "normal"),
        ],
    )
    full = audit(graph, "t")
    assert summarize(full)["app"] == [("x", "normal"), ("lib", "dev")]
    dev_only = audit(graph, "t", edge_filter=EdgeFilter.build(kinds=["dev"]))
    assert dev_only.entry_keys() <= full.entry_keys()


def test_boundary_only_drops_internal_edges():
    graph = make_graph(
        ["app", "lib"],
        ["old_futures"],
        [("app", "lib", "normal"), ("lib", "old_futures", "normal")],
    )
    report = audit(graph, "old_futures", boundary_only=True)
    assert summarize(report) == {"lib": [("old_futures", "normal")]}
    assert report.summary.members_scanned == 2


def test_every_external_introduction_point_is_reported():
    graph = make_graph(
        ["app"],
        ["a", "b", "unrelated", "t"],
        [
            ("app", "a", "normal"),
            ("app", "b", "build"),
            ("app", "unrelated", "normal"),
            ("a", "t", "normal"),
            ("b", "t", "normal"),
        ],
    )
    report = audit(graph, "t")
    assert summarize(report) == {"app": [("a", "normal"), ("b", "build")]}
    assert not any(e.direct for e in report.entries())


def test_no_multi_hop_edges_reported():
    graph = make_graph(
        ["app"],
        ["mid", "t"],
        [("app", "mid", "normal"), ("mid", "t", "normal")],
    )
    report = audit(graph, "t")
    assert summarize(report) == {"app": [("mid", "normal")]}


def test_kind_sensitivity():
    graph = make_graph(
        ["app"],
        ["d", "t"],
        [("app", "d", "dev"), ("app", "d", "normal"), ("d", "t", "normal")],
    )
    report = audit(graph, "t")
    assert summarize(report) == {"app": [("d", "normal"), ("d", "dev")]}


def test_kind_filter_limits_entries():
    graph = make_graph(
        ["app"],
        ["d", "t"],
        [("app", "d", "dev"), ("app", "d", "normal"), ("d", "t", "normal")],
    )
    report = audit(graph, "t", edge_filter=EdgeFilter.build(kinds=["dev"]))
    assert summarize(report) == {}
    report = audit(graph, "t", edge_filter=EdgeFilter.build(kinds=["normal"]))
    assert summarize(report) == {"app": [("d", "normal")]}
    assert report.kinds == ("normal",)


def test_dev_cycle_produces_no_spurious_entries():
    graph = make_graph(
        ["a", "b", "c"],
        ["t"],
        [("a", "b", "dev"), ("b", "a", "dev"), ("c", "t", "normal")],
    )
    report = audit(graph, "t")
    assert summarize(report) == {"c": [("t", "normal")]}


def test_cycle_through_target_path():
    graph = make_graph(
        ["a", "b"],
        ["t"],
        [("a", "b", "dev"), ("b", "a", "normal"), ("b", "t", "normal")],
    )
    report = audit(graph, "t")
    assert summarize(report) == {
        "a": [("b", "dev")],
        "b": [("t", "normal")],
    }


def test_target_is_never_its_own_entry():
    graph = make_graph(
        ["core", "app"],
        [],
        [("core", "core", "dev"), ("app", "core", "normal")],
    )
    report = audit(graph, "core")
    assert summarize(report) == {"app": [("core", "normal")]}
    assert report.summary.members_scanned == 1


def test_self_loop_on_member_is_ignored():
    graph = make_graph(
        ["app"],
        ["t"],
        [("app", "app", "dev"), ("app", "t", "normal")],
    )
    report = audit(graph, "t")
    assert summarize(report) == {"app": [("t", "normal")]}


def test_features_merge_and_activation():
    graph = make_graph(
        ["app"],
        ["d", "t"],
        [
            ("app", "d", "normal", {"feature": "tls"}),
            ("app", "d", "normal", {"feature": "net"}),
            ("d", "t", "normal"),
        ],
        features={"app": frozenset({"tls", "net"})},
    )
    report = audit(graph, "t")
    (entry,) = report.entries()
    assert entry.features == ("net", "tls")
    assert entry.activation is Activation.ACTIVE


def test_unknown_activation_is_reported_and_flagged():
    graph = make_graph(
        ["app"],
        ["d", "t"],
        [("app", "d", "normal", {"platform": "cfg(unix)"}), ("d", "t", "normal")],
    )
    report = audit(graph, "t")
    (entry,) = report.entries()
    assert entry.activation is Activation.UNKNOWN
    assert report.ambiguous_edges == ("app 1.0.0 -> d 1.0.0 (normal)",)


def test_disabled_feature_edge_is_not_an_entry():
    graph = make_graph(
        ["app"],
        ["d", "t"],
        [("app", "d", "normal", {"feature": "tls"}), ("d", "t", "normal")],
        features={"app": frozenset()},
    )
    report = audit(graph, "t")
    assert report.empty


def test_target_exists_but_nothing_depends_on_it():
    graph = make_graph(["app"], ["t"], [])
    report = audit(graph, "t")
    assert report.empty
    assert report.summary.members_scanned == 1
    assert report.summary.members_affected == 0


def test_extractor_returns_empty_groups_for_unaffected_members():
    graph = app_lib_graph()
    index = ReachabilityIndex(graph)
    reach = index.reachable_from([pid("old_futures")])
    groups = FrontierExtractor(index).extract(reach)
    assert [g.member.name for g in groups] == ["app", "lib"]
    assert all(g.affected for g in groups)


def test_reused_index_across_targets():
    graph = make_graph(
        ["app"],
        ["x", "y"],
        [("app", "x", "normal"), ("app", "y", "build")],
    )
    index = ReachabilityIndex(graph)
    first = run_audit(graph, [pid("x")], index=index)
    second = run_audit(graph, [pid("y")], index=index)
    assert summarize(first) == {"app": [("x", "normal")]}
    assert summarize(second) == {"app": [("y", "build")]}


def test_reused_index_rejects_conflicting_filter():
    graph = app_lib_graph()
    index = ReachabilityIndex(graph, EdgeFilter.build(kinds=["normal"]))
    with pytest.raises(ValueError):
        run_audit(graph, [pid("old_futures")], edge_filter=EdgeFilter.build(), index=index)
    report = run_audit(
        graph, [pid("old_futures")], edge_filter=EdgeFilter.build(kinds=["normal"]), index=index
    )
    assert report.kinds == ("normal",)


def test_reused_index_rejects_other_graph():
    index = ReachabilityIndex(app_lib_graph())
    with pytest.raises(ValueError):
        run_audit(app_lib_graph(), [pid("old_futures")], index=index)


def test_output_is_deterministic_regardless_of_input_order():
    edges = [
        ("app", "lib", "normal"),
        ("app", "old_futures", "normal"),
        ("lib", "old_futures", "dev"),
        ("lib", "old_futures", "normal"),
    ]
    forward = make_graph(["app", "lib"], ["old_futures"], edges)
    backward = make_graph(["lib", "app"], ["old_futures"], list(reversed(edges)))
    first = render_json(audit(forward, "old_futures"))
    assert first == render_json(audit(forward, "old_futures"))
    assert first == render_json(audit(backward, "old_futures"))
