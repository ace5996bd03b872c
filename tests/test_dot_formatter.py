"""Tests for DOT, JSON and console formatters."""

import json
import re

import pytest
from rich.console import Console
from sqlflow.catalog import SampleCatalog
from sqlflow.core.models import LineageGraph, PlanNode, ColumnRef, Edge, NodeCategory, LineageRule
from sqlflow.formatters import DotFormatter, JSONFormatter, ConsoleFormatter, NODE_COLORS, format_flow

EXPECTED_GROUP_BY_FLOW = '''digraph {
  graph [pad="0.5", nodesep="0.5", ranksep="2", fontname="Helvetica"];
  node [shape=plain]
  rankdir=LR;


  "Aggregate_1" [label=<
  <table border="1" cellborder="0" cellspacing="0">
    <tr><td bgcolor="lightgray" port="nodeName"><i>Aggregate_1</i></td></tr>
    <tr><td port="0">k</td></tr>
  <tr><td port="1">sum(v)</td></tr>
  </table>>];


  "LocalRelation_0" [label=<
  <table border="1" cellborder="0" cellspacing="0">
    <tr><td bgcolor="lightpink" port="nodeName"><i>LocalRelation_0</i></td></tr>
    <tr><td port="0">k</td></tr>
  <tr><td port="1">v</td></tr>
  </table>>];


  "t" [label=<
  <table border="1" cellborder="0" cellspacing="0">
    <tr><td bgcolor="lightyellow" port="nodeName"><i>t</i></td></tr>
    <tr><td port="0">k</td></tr>
  <tr><td port="1">sum(v)</td></tr>
  </table>>];

  "Aggregate_1":0 -> "t":0;
  "Aggregate_1":1 -> "t":1;
  "LocalRelation_0":0 -> "Aggregate_1":0;
  "LocalRelation_0":1 -> "Aggregate_1":1;
}
'''


def node_rows(document, label):
    """Column rows of one node block."""
    start = document.index(f'"{label}" [label=<')
    block = document[start:document.index('</table>', start)]
    return re.findall(r'<td port="(\d+)">([^<]*)</td>', block)


class TestDotFormatter:
    """Test cases for DotFormatter."""

    @pytest.fixture
    def formatter(self):
        return DotFormatter()

    def test_group_by_view(self, formatter, group_by_catalog, build_full_graph):
        assert formatter.format(build_full_graph(group_by_catalog)) == EXPECTED_GROUP_BY_FLOW

    def test_deterministic_output(self, formatter, build_full_graph):
        for scenario in SampleCatalog.SCENARIOS:
            first = formatter.format(build_full_graph(SampleCatalog(scenario)))
            second = formatter.format(build_full_graph(SampleCatalog(scenario)))
            assert first == second

    def test_insertion_order_does_not_matter(self, formatter):
        def build(order):
            graph = LineageGraph()
            nodes = {
                "a": PlanNode("a", "LocalRelation", NodeCategory.SOURCE, LineageRule.SOURCE, "alpha", ("x",)),
                "b": PlanNode("b", "View", NodeCategory.NAMED_ENTITY, LineageRule.PASS_THROUGH, "beta", ("x",),
                              children=("a",), catalog_name="beta"),
            }
            for identity in order:
                graph.add_node(nodes[identity])
            graph.add_edge(Edge(ColumnRef("a", 0, "x"), ColumnRef("b", 0, "x")))
            return graph

        assert formatter.format(build(["a", "b"])) == formatter.format(build(["b", "a"]))

    def test_column_count_invariant(self, formatter, build_full_graph):
        graph = build_full_graph(SampleCatalog("union_join"))
        document = formatter.format(graph)

        for node in graph.nodes.values():
            rows = node_rows(document, node.display_label)
            assert [int(port) for port, _ in rows] == list(range(len(node.output_columns)))
            assert [name for _, name in rows] == list(node.output_columns)

    def test_colors(self, formatter, build_full_graph):
        graph = build_full_graph(SampleCatalog("cached_plan"))
        document = formatter.format(graph)

        assert '<td bgcolor="lightpink" port="nodeName"><i>Range_0</i>' in document
        assert '<td bgcolor="lightgray" port="nodeName"><i>Filter_3</i>' in document
        assert '<td bgcolor="lightblue" port="nodeName"><i>Aggregate_2</i>' in document
        assert '<td bgcolor="lightyellow" port="nodeName"><i>v</i>' in document
        assert set(NODE_COLORS.values()) == {"lightpink", "lightgray", "lightblue", "lightyellow"}

    def test_escaping(self, formatter):
        graph = LineageGraph()
        graph.add_node(PlanNode(
            "0", "LocalRelation", NodeCategory.SOURCE, LineageRule.SOURCE, 'say "hi"', ("a<b", "c&d")
        ))
        document = formatter.format(graph)

        assert '"say \\"hi\\"" [label=<' in document
        assert "<i>say &quot;hi&quot;</i>" in document
        assert '<td port="0">a&lt;b</td>' in document
        assert '<td port="1">c&amp;d</td>' in document

    def test_node_without_columns(self, formatter):
        graph = LineageGraph()
        graph.add_node(PlanNode("0", "OneRowRelation", NodeCategory.SOURCE, LineageRule.SOURCE, "OneRowRelation_0", ()))
        document = formatter.format(graph)

        assert '<i>OneRowRelation_0</i></td></tr>\n  </table>>];' in document
        assert document.endswith("  </table>>];\n\n\n}\n")

    def test_format_to_file(self, formatter, group_by_catalog, build_full_graph, tmp_path):
        target = tmp_path / "flow.dot"
        formatter.format_to_file(build_full_graph(group_by_catalog), str(target))
        assert target.read_text(encoding="utf-8") == EXPECTED_GROUP_BY_FLOW

    def test_format_flow(self, group_by_catalog, build_full_graph):
        assert format_flow(build_full_graph(group_by_catalog)) == EXPECTED_GROUP_BY_FLOW


class TestJSONFormatter:
    """Test cases for JSONFormatter."""

    def test_format(self, group_by_catalog, build_full_graph):
        data = json.loads(JSONFormatter().format(build_full_graph(group_by_catalog)))

        assert [n["label"] for n in data["nodes"]] == ["Aggregate_1", "LocalRelation_0", "t"]
        assert data["nodes"][2]["category"] == "NAMED_ENTITY"
        assert data["nodes"][2]["children"] == ["Aggregate_1"]
        assert data["edges"][0] == {"from": {"node": "Aggregate_1", "port": 0}, "to": {"node": "t", "port": 0}}
        assert len(data["edges"]) == 4

    def test_compact(self, group_by_catalog, build_full_graph):
        output = JSONFormatter(indent=None).format(build_full_graph(group_by_catalog))
        assert "\n" not in output


class TestConsoleFormatter:
    """Test cases for ConsoleFormatter."""

    @pytest.fixture
    def console(self):
        return Console(record=True, width=160, color_system=None)

    def test_format(self, console, cached_reuse_catalog, build_full_graph):
        ConsoleFormatter(console).format(build_full_graph(cached_reuse_catalog))
        output = console.export_text()

        assert "Nodes: 7" in output
        assert "Edges: 9" in output
        assert "NAMED_ENTITY" in output
        assert "<- Range_0.id" in output

    def test_format_compact(self, console, group_by_catalog, build_full_graph):
        ConsoleFormatter(console).format_compact(build_full_graph(group_by_catalog))
        lines = console.export_text().splitlines()

        assert lines[0].strip() == "Aggregate_1.k -> t.k"
        assert len(lines) == 4
