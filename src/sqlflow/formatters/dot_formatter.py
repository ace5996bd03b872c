"""Graphviz DOT output formatter."""

import html
from typing import Dict, Optional

from ..core.models import LineageGraph, PlanNode, Edge, NodeCategory

NODE_COLORS: Dict[NodeCategory, str] = {
    NodeCategory.SOURCE: 'lightpink',
    NodeCategory.OPERATOR: 'lightgray',
    NodeCategory.CACHE_BOUNDARY: 'lightblue',
    NodeCategory.NAMED_ENTITY: 'lightyellow',
}

GRAPH_HEADER = (
    'digraph {\n'
    '  graph [pad="0.5", nodesep="0.5", ranksep="2", fontname="Helvetica"];\n'
    '  node [shape=plain]\n'
    '  rankdir=LR;\n'
    '\n'
)


class DotFormatter:
    """Formats lineage graphs as deterministic Graphviz DOT documents."""

    def format(self, graph: LineageGraph) -> str:
        """
        Format a lineage graph as DOT text.

        Nodes are emitted by display label and edges by (producer label,
        producer port, consumer label, consumer port), so the same graph always
        yields the same bytes.

        Args:
            graph: Full or contracted LineageGraph

        Returns:
            DOT document
        """
        nodes = "\n".join(self._format_node(node) for node in graph.sorted_nodes())
        edges = "\n".join(self._format_edge(graph, edge) for edge in graph.sorted_edges())
        return f"{GRAPH_HEADER}{nodes}\n{edges}\n}}\n"

    def format_to_file(self, graph: LineageGraph, file_path: str) -> None:
        """Format a lineage graph and write it to ``file_path``."""
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(self.format(graph))

    def _format_node(self, node: PlanNode) -> str:
        label = html.escape(node.display_label)
        rows = "\n  ".join(
            f'<tr><td port="{port}">{html.escape(column)}</td></tr>'
            for port, column in enumerate(node.output_columns)
        )
        lines = [
            f'\n  {self._quote(node.display_label)} [label=<',
            '  <table border="1" cellborder="0" cellspacing="0">',
            f'    <tr><td bgcolor="{self.color_of(node)}" port="nodeName"><i>{label}</i></td></tr>',
        ]
        if rows:
            lines.append(f'    {rows}')
        lines.append('  </table>>];\n')
        return "\n".join(lines)

    def _format_edge(self, graph: LineageGraph, edge: Edge) -> str:
        producer = self._quote(graph.label_of(edge.producer))
        consumer = self._quote(graph.label_of(edge.consumer))
        return f'  {producer}:{edge.producer.ordinal} -> {consumer}:{edge.consumer.ordinal};'

    @staticmethod
    def color_of(node: PlanNode) -> str:
        return NODE_COLORS[node.kind]

    @staticmethod
    def _quote(identifier: str) -> str:
        escaped = identifier.replace('\\', '\\\\').replace('"', '\\"')
        return f'"{escaped}"'


def format_flow(graph: LineageGraph, formatter: Optional[DotFormatter] = None) -> str:
    """Convenience function to format a graph as DOT text."""
    return (formatter or DotFormatter()).format(graph)
