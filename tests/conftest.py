"""Pytest configuration and fixtures."""

import pytest
from sqlflow import SQLFlow, SQLContractedFlow
from sqlflow.catalog import InMemoryCatalog, SampleCatalog, EntryType
from sqlflow.core.resolver import IdentityResolver
from sqlflow.core.propagator import ColumnLineagePropagator


@pytest.fixture
def group_by_catalog():
    """CREATE TEMPORARY VIEW t AS SELECT k, sum(v) FROM VALUES (1, 2), (3, 4) t(k, v) GROUP BY k"""
    return SampleCatalog("group_by_view")


@pytest.fixture
def cached_reuse_catalog():
    """t1 is a cached aggregate, t2 filters and projects the same t1 plan."""
    return SampleCatalog("cached_view_reuse")


@pytest.fixture
def union_join_catalog():
    return SampleCatalog("union_join")


@pytest.fixture
def empty_catalog():
    return InMemoryCatalog()


@pytest.fixture
def catalog_factory():
    """Build an InMemoryCatalog from (id, operator, output, kwargs) tuples and entries."""
    def build(nodes, entries=()):
        catalog = InMemoryCatalog()
        for identity, operator, output, kwargs in nodes:
            catalog.add_node(identity, operator, output, **kwargs)
        for entry in entries:
            root, name = entry[0], entry[1]
            entry_type = entry[2] if len(entry) > 2 else EntryType.VIEW
            catalog.register(root, name, entry_type)
        return catalog
    return build


@pytest.fixture
def build_full_graph():
    """Resolve and propagate a catalog into an annotated full graph."""
    def build(catalog, roots=None, cache_precedence=False, case_sensitive=False):
        graph = IdentityResolver(cache_precedence=cache_precedence).resolve(catalog.snapshot(), roots)
        return ColumnLineagePropagator(case_sensitive=case_sensitive).propagate(graph)
    return build


@pytest.fixture
def flow():
    return SQLFlow()


@pytest.fixture
def contracted_flow():
    return SQLContractedFlow()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep SQLFLOW_* settings of the developer's shell out of the tests."""
    for name in ("SQLFLOW_DIALECT", "SQLFLOW_CASE_SENSITIVE", "SQLFLOW_CACHE_PRECEDENCE", "SQLFLOW_IMAGE_FORMAT"):
        monkeypatch.delenv(name, raising=False)
