"""Tests for the lineage graph model."""

import pytest
from sqlflow.core.errors import StructuralInconsistencyError, CircularPlanError
from sqlflow.core.models import LineageGraph, PlanNode, ColumnRef, Edge, NodeCategory, LineageRule


def make_node(identity, label, columns=("a",), children=(), kind=NodeCategory.OPERATOR, rule=LineageRule.PASS_THROUGH):
    return PlanNode(identity, "Op", kind, rule, label, tuple(columns), children=tuple(children))


class TestLineageGraph:
    """Test cases for LineageGraph."""

    @pytest.fixture
    def graph(self):
        graph = LineageGraph()
        graph.add_node(make_node("0", "src", kind=NodeCategory.SOURCE, rule=LineageRule.SOURCE))
        graph.add_node(make_node("1", "mid", children=["0"]))
        graph.add_node(make_node("2", "out", children=["1"], kind=NodeCategory.NAMED_ENTITY))
        graph.add_edge(Edge(ColumnRef("0", 0, "a"), ColumnRef("1", 0, "a")))
        graph.add_edge(Edge(ColumnRef("1", 0, "a"), ColumnRef("2", 0, "a")))
        return graph

    def test_duplicate_identity(self, graph):
        with pytest.raises(StructuralInconsistencyError):
            graph.add_node(make_node("1", "other"))

    def test_edge_to_missing_ordinal(self, graph):
        with pytest.raises(StructuralInconsistencyError):
            graph.add_edge(Edge(ColumnRef("0", 0, "a"), ColumnRef("1", 3, "z")))

    def test_edge_to_unknown_node(self, graph):
        with pytest.raises(StructuralInconsistencyError):
            graph.add_edge(Edge(ColumnRef("0", 0, "a"), ColumnRef("9", 0, "a")))

    def test_duplicate_edges_collapse(self, graph):
        graph.add_edge(Edge(ColumnRef("0", 0, "a"), ColumnRef("1", 0, "a")))
        assert len(graph.edges) == 2

    def test_topological_order(self, graph):
        assert [n.display_label for n in graph.topological_order()] == ["src", "mid", "out"]

    def test_cycle_through_edges(self, graph):
        graph.add_edge(Edge(ColumnRef("2", 0, "a"), ColumnRef("0", 0, "a")))
        with pytest.raises(CircularPlanError):
            graph.topological_order()
        assert not graph.is_acyclic()

    def test_anchors(self, graph):
        assert [n.display_label for n in graph.anchors()] == ["out", "src"]

    def test_to_dict(self, graph):
        data = graph.to_dict()

        assert [n["label"] for n in data["nodes"]] == ["mid", "out", "src"]
        assert data["nodes"][1]["children"] == ["mid"]
        assert data["edges"] == [
            {"from": {"node": "mid", "port": 0}, "to": {"node": "out", "port": 0}},
            {"from": {"node": "src", "port": 0}, "to": {"node": "mid", "port": 0}},
        ]
