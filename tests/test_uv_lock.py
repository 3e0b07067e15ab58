"""Tests for the uv.lock graph provider."""

import pytest

from graph import DependencyKind, Ecosystem, MalformedGraph, PackageId, ProviderError
from providers.uv_lock import load_uv_graph


UV_LOCK = """version = 1
requires-python = ">=3.11"

[manifest]
members = ["service", "shared"]

[[package]]
name = "service"
version = "0.1.0"
source = { editable = "service" }
dependencies = [
    { name = "shared" },
    { name = "requests" },
]

[package.optional-dependencies]
socks = [
    { name = "pysocks" },
]

[package.dev-dependencies]
test = [
    { name = "urllib3", version = "1.26.14" },
]

[[package]]
name = "shared"
version = "0.1.0"
source = { virtual = "shared" }
dependencies = [
    { name = "urllib3", version = "2.0.7", marker = "python_version >= '3.12'" },
]

[[package]]
name = "requests"
version = "2.31.0"
source = { registry = "https://pypi.org/simple" }
dependencies = [
    { name = "certifi" },
    { name = "urllib3", version = "2.0.7" },
]

[[package]]
name = "certifi"
version = "2023.7.22"
source = { registry = "https://pypi.org/simple" }

[[package]]
name = "PySocks"
version = "1.7.1"
source = { registry = "https://pypi.org/simple" }

[[package]]
name = "urllib3"
version = "1.26.14"
source = { registry = "https://pypi.org/simple" }

[[package]]
name = "urllib3"
version = "2.0.7"
source = { registry = "https://pypi.org/simple" }
"""


def write_lock(tmp_path, content=UV_LOCK):
    path = tmp_path / "uv.lock"
    path.write_text(content, encoding="utf-8")
    return str(path)


class TestUvLockProvider:
    """Test uv.lock graph provider."""

    def test_members_and_nodes(self, tmp_path):
        graph = load_uv_graph(write_lock(tmp_path))
        assert graph.ecosystem is Ecosystem.PYTHON
        assert graph.node_count == 7
        assert [m.name for m in graph.workspace_members()] == ["service", "shared"]

    def test_edge_kinds(self, tmp_path):
        graph = load_uv_graph(write_lock(tmp_path))
        edges = graph.out_edges(PackageId("service", "0.1.0"))
        summary = [(e.target.name, e.target.version, e.kind, e.feature) for e in edges]
        assert summary == [
            ("PySocks", "1.7.1", DependencyKind.NORMAL, "socks"),
            ("requests", "2.31.0", DependencyKind.NORMAL, None),
            ("shared", "0.1.0", DependencyKind.NORMAL, None),
            ("urllib3", "1.26.14", DependencyKind.DEV, None),
        ]

    def test_marker_becomes_platform(self, tmp_path):
        graph = load_uv_graph(write_lock(tmp_path))
        (edge,) = graph.out_edges(PackageId("shared", "0.1.0"))
        assert edge.platform == "python_version >= '3.12'"

    def test_features_are_unknown(self, tmp_path):
        graph = load_uv_graph(write_lock(tmp_path))
        assert graph.node(PackageId("service", "0.1.0")).features is None

    def test_ambiguous_reference_without_version(self, tmp_path):
        content = UV_LOCK.replace('{ name = "urllib3", version = "2.0.7" },\n]', '{ name = "urllib3" },\n]')
        with pytest.raises(MalformedGraph) as exc:
            load_uv_graph(write_lock(tmp_path, content))
        assert "ambiguous" in str(exc.value)

    def test_missing_dependency(self, tmp_path):
        content = UV_LOCK.replace('{ name = "certifi" }', '{ name = "idna" }')
        with pytest.raises(MalformedGraph):
            load_uv_graph(write_lock(tmp_path, content))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ProviderError):
            load_uv_graph(str(tmp_path / "nonexistent.lock"))

    def test_invalid_toml(self, tmp_path):
        with pytest.raises(MalformedGraph):
            load_uv_graph(write_lock(tmp_path, "invalid toml {"))

    def test_no_package_section(self, tmp_path):
        graph = load_uv_graph(write_lock(tmp_path, "version = 1\n"))
        assert graph.node_count == 0

    def test_package_without_name(self, tmp_path):
        with pytest.raises(MalformedGraph):
            load_uv_graph(write_lock(tmp_path, 'version = 1\n\n[[package]]\nversion = "2.28.2"\n'))
