"""Contraction of the operator-level graph into an entity-level graph."""

from typing import Dict, FrozenSet, List, Set

from .models import LineageGraph, ColumnRef, Edge
from ..utils.logging_config import get_logger


class ContractionEngine:
    """
    Reduces a lineage graph to its anchors.

    Anchors (sources, cache boundaries and named entities) keep all of their
    columns. Chains of operator nodes between anchors are replaced by direct
    column edges, so lineage stays exact at the column level.
    """

    def __init__(self):
        self.logger = get_logger('contraction')

    def contract(self, graph: LineageGraph) -> LineageGraph:
        """
        Build the contracted graph.

        Args:
            graph: Full graph with lineage edges

        Returns:
            New LineageGraph holding only anchor nodes
        """
        contracted = LineageGraph()
        anchors = graph.anchors()
        for anchor in anchors:
            contracted.add_node(anchor)

        reached: Dict[ColumnRef, FrozenSet[ColumnRef]] = {}
        for anchor in anchors:
            for column in anchor.columns:
                for producer in self._upstream_anchor_columns(graph, column, reached):
                    contracted.add_edge(Edge(producer, column))

        self.logger.info(
            f"Contracted {len(graph.nodes)} nodes / {len(graph.edges)} edges into "
            f"{len(contracted.nodes)} anchors / {len(contracted.edges)} edges"
        )
        return contracted

    def _upstream_anchor_columns(
        self,
        graph: LineageGraph,
        column: ColumnRef,
        reached: Dict[ColumnRef, FrozenSet[ColumnRef]]
    ) -> List[ColumnRef]:
        """Anchor columns found walking backward from ``column`` through operator nodes only."""
        found: Set[ColumnRef] = set()
        for producer in graph.producers_of(column):
            if graph.node(producer.node).is_anchor:
                found.add(producer)
            else:
                found.update(self._through_operator(graph, producer, reached))
        return sorted(found, key=lambda c: (graph.label_of(c), c.ordinal))

    def _through_operator(
        self,
        graph: LineageGraph,
        column: ColumnRef,
        reached: Dict[ColumnRef, FrozenSet[ColumnRef]]
    ) -> FrozenSet[ColumnRef]:
        if column not in reached:
            reached[column] = frozenset(self._upstream_anchor_columns(graph, column, reached))
        return reached[column]
