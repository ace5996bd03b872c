"""Tests for contraction of the full lineage graph."""

import pytest
from sqlflow.catalog import SampleCatalog
from sqlflow.core.contraction import ContractionEngine
from sqlflow.core.models import NodeCategory


def reaches_through_operators(graph, producer, consumer):
    """Whether ``consumer`` reaches ``producer`` walking producers through operator nodes only."""
    pending = list(graph.producers_of(consumer))
    seen = set()
    while pending:
        column = pending.pop()
        if column == producer:
            return True
        if column in seen or graph.node(column.node).is_anchor:
            continue
        seen.add(column)
        pending.extend(graph.producers_of(column))
    return False


class TestContractionEngine:
    """Test cases for ContractionEngine."""

    @pytest.fixture
    def engine(self):
        return ContractionEngine()

    def test_group_by_view(self, engine, group_by_catalog, build_full_graph):
        contracted = engine.contract(build_full_graph(group_by_catalog))

        assert [n.display_label for n in contracted.sorted_nodes()] == ["LocalRelation_0", "t"]
        assert [(e.producer.ordinal, e.consumer.ordinal) for e in contracted.sorted_edges()] == [(0, 0), (1, 1)]

    def test_only_anchors_survive(self, engine, build_full_graph):
        for scenario in SampleCatalog.SCENARIOS:
            contracted = engine.contract(build_full_graph(SampleCatalog(scenario)))
            assert all(node.kind != NodeCategory.OPERATOR for node in contracted.nodes.values())

    def test_anchors_keep_all_columns(self, engine, build_full_graph):
        full = build_full_graph(SampleCatalog("cached_view_reuse"))
        contracted = engine.contract(full)

        for identity, node in contracted.nodes.items():
            assert node.output_columns == full.node(identity).output_columns

    def test_edges_skip_operator_chains(self, engine, cached_reuse_catalog, build_full_graph):
        contracted = engine.contract(build_full_graph(cached_reuse_catalog))
        pairs = [
            ((contracted.label_of(e.producer), e.producer.ordinal), (contracted.label_of(e.consumer), e.consumer.ordinal))
            for e in contracted.sorted_edges()
        ]

        assert pairs == [
            (("Range_0", 0), ("t1", 0)),
            (("t1", 0), ("t2", 0)),
        ]

    def test_literal_columns_have_no_incoming_edge(self, engine, cached_reuse_catalog, build_full_graph):
        contracted = engine.contract(build_full_graph(cached_reuse_catalog))
        t2 = contracted.node("6")

        # v = rand()
        assert contracted.producers_of(t2.column(1)) == []
        assert t2.output_columns == ("k", "v")

    def test_union_collects_every_branch(self, engine, union_join_catalog, build_full_graph):
        contracted = engine.contract(build_full_graph(union_join_catalog))
        all_orders = contracted.node("7")

        assert [contracted.label_of(c) for c in contracted.producers_of(all_orders.column(0))] == [
            "LocalRelation_1", "LocalRelation_5"
        ]
        assert [contracted.label_of(c) for c in contracted.producers_of(all_orders.column(1))] == [
            "LocalRelation_0", "LocalRelation_5"
        ]

    def test_soundness(self, engine, build_full_graph):
        """Every contracted edge has a full-graph path through operator nodes only."""
        for scenario in SampleCatalog.SCENARIOS:
            full = build_full_graph(SampleCatalog(scenario))
            contracted = engine.contract(full)
            for edge in contracted.edges:
                assert reaches_through_operators(full, edge.producer, edge.consumer), (scenario, edge)

    def test_contracted_graph_is_acyclic(self, engine, build_full_graph):
        for scenario in SampleCatalog.SCENARIOS:
            assert engine.contract(build_full_graph(SampleCatalog(scenario))).is_acyclic()

    def test_cache_precedence_keeps_cached_view(self, engine, cached_reuse_catalog, build_full_graph):
        contracted = engine.contract(build_full_graph(cached_reuse_catalog, cache_precedence=True))

        assert contracted.node("5").kind == NodeCategory.CACHE_BOUNDARY
        assert len(contracted.nodes) == 3
