"""Data models for column-level plan lineage graphs."""

from typing import Dict, Set, Optional, List, Tuple, Any
from dataclasses import dataclass, field
from enum import Enum

from .errors import StructuralInconsistencyError, CircularPlanError


class NodeCategory(str, Enum):
    """Rendering category of a plan node."""
    SOURCE = "SOURCE"
    OPERATOR = "OPERATOR"
    CACHE_BOUNDARY = "CACHE_BOUNDARY"
    NAMED_ENTITY = "NAMED_ENTITY"


class LineageRule(str, Enum):
    """How output columns of a node derive from its children's columns."""
    SOURCE = "source"
    PASS_THROUGH = "pass_through"
    FILTER = "filter"
    PROJECT = "project"
    AGGREGATE = "aggregate"
    UNION = "union"
    JOIN = "join"


@dataclass(frozen=True)
class ColumnRef:
    """One output column (port) of a plan node."""
    node: str
    ordinal: int
    name: str


@dataclass(frozen=True)
class Edge:
    """Lineage edge: ``consumer`` is derived (in whole or part) from ``producer``."""
    producer: ColumnRef
    consumer: ColumnRef


@dataclass(frozen=True)
class PlanNode:
    """A deduplicated node of an analyzed plan."""
    identity: str
    operator: str
    kind: NodeCategory
    rule: LineageRule
    display_label: str
    output_columns: Tuple[str, ...]
    children: Tuple[str, ...] = ()
    expressions: Tuple[Optional[str], ...] = ()
    grouping: Tuple[str, ...] = ()
    is_cache_point: bool = False
    catalog_name: Optional[str] = None
    output_ids: Tuple[Optional[str], ...] = ()

    @property
    def is_anchor(self) -> bool:
        """Anchors survive contraction: sources, cache boundaries and named entities."""
        return self.kind != NodeCategory.OPERATOR

    @property
    def columns(self) -> List[ColumnRef]:
        return [ColumnRef(self.identity, i, name) for i, name in enumerate(self.output_columns)]

    def column(self, ordinal: int) -> ColumnRef:
        if not 0 <= ordinal < len(self.output_columns):
            raise StructuralInconsistencyError(
                f"Plan node {self.display_label} has no column at ordinal {ordinal}",
                identity=self.identity
            )
        return ColumnRef(self.identity, ordinal, self.output_columns[ordinal])

    def output_id(self, ordinal: int) -> Optional[str]:
        """Engine attribute id of an output column, if the engine supplied one."""
        if ordinal < len(self.output_ids):
            return self.output_ids[ordinal]
        return None

    def expression_for(self, ordinal: int) -> Optional[str]:
        """Get the defining expression of an output column, if the engine supplied one."""
        if ordinal < len(self.expressions):
            return self.expressions[ordinal]
        return None


@dataclass
class LineageGraph:
    """Plan nodes keyed by identity plus the column-level lineage edges between them."""
    nodes: Dict[str, PlanNode] = field(default_factory=dict)
    edges: Set[Edge] = field(default_factory=set)
    _producers: Dict[ColumnRef, Set[ColumnRef]] = field(default_factory=dict, repr=False)
    _consumers: Dict[ColumnRef, Set[ColumnRef]] = field(default_factory=dict, repr=False)
    _labels: Dict[str, str] = field(default_factory=dict, repr=False)

    def add_node(self, node: PlanNode) -> None:
        """Add a plan node; identities and display labels must be unique."""
        if node.identity in self.nodes:
            raise StructuralInconsistencyError(
                f"Plan node {node.identity} was added twice", identity=node.identity
            )
        owner = self._labels.get(node.display_label)
        if owner is not None:
            raise StructuralInconsistencyError(
                f"Display label '{node.display_label}' is used by plan nodes {owner} and {node.identity}",
                identity=node.identity
            )
        self.nodes[node.identity] = node
        self._labels[node.display_label] = node.identity

    def add_edge(self, edge: Edge) -> None:
        """Add a lineage edge between two columns of nodes already in the graph."""
        for ref in (edge.producer, edge.consumer):
            node = self.nodes.get(ref.node)
            if node is None:
                raise StructuralInconsistencyError(
                    f"Edge endpoint references unknown plan node {ref.node}", identity=ref.node
                )
            node.column(ref.ordinal)
        self.edges.add(edge)
        self._producers.setdefault(edge.consumer, set()).add(edge.producer)
        self._consumers.setdefault(edge.producer, set()).add(edge.consumer)

    def node(self, identity: str) -> PlanNode:
        if identity not in self.nodes:
            raise StructuralInconsistencyError(f"Unknown plan node {identity}", identity=identity)
        return self.nodes[identity]

    def children_of(self, node: PlanNode) -> List[PlanNode]:
        return [self.node(child) for child in node.children]

    def producers_of(self, column: ColumnRef) -> List[ColumnRef]:
        """Columns that ``column`` is derived from, in deterministic order."""
        return sorted(self._producers.get(column, ()), key=self._column_key)

    def consumers_of(self, column: ColumnRef) -> List[ColumnRef]:
        """Columns derived from ``column``, in deterministic order."""
        return sorted(self._consumers.get(column, ()), key=self._column_key)

    def anchors(self) -> List[PlanNode]:
        return [node for node in self.sorted_nodes() if node.is_anchor]

    def sorted_nodes(self) -> List[PlanNode]:
        """Nodes ordered by display label."""
        return sorted(self.nodes.values(), key=lambda n: n.display_label)

    def sorted_edges(self) -> List[Edge]:
        """Edges ordered by producer label/ordinal, then consumer label/ordinal."""
        return sorted(self.edges, key=lambda e: self._column_key(e.producer) + self._column_key(e.consumer))

    def label_of(self, column: ColumnRef) -> str:
        return self.node(column.node).display_label

    def _column_key(self, column: ColumnRef) -> Tuple[str, int]:
        return (self.nodes[column.node].display_label, column.ordinal)

    def topological_order(self) -> List[PlanNode]:
        """
        Order nodes so that every producer comes before its consumers.

        Considers both child references and lineage edges.

        Raises:
            CircularPlanError: if the graph contains a cycle
        """
        upstream: Dict[str, Set[str]] = {identity: set() for identity in self.nodes}
        for node in self.nodes.values():
            upstream[node.identity].update(c for c in node.children if c in self.nodes)
        for edge in self.edges:
            upstream[edge.consumer.node].add(edge.producer.node)

        order: List[PlanNode] = []
        done: Set[str] = set()

        def visit(identity: str, path: List[str]) -> None:
            if identity in path:
                raise CircularPlanError(path[path.index(identity):])
            if identity in done:
                return
            path.append(identity)
            for dep in sorted(upstream[identity], key=lambda i: self.nodes[i].display_label):
                visit(dep, path)
            path.pop()
            done.add(identity)
            order.append(self.nodes[identity])

        for node in self.sorted_nodes():
            visit(node.identity, [])
        return order

    def is_acyclic(self) -> bool:
        try:
            self.topological_order()
        except CircularPlanError:
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "nodes": [self._serialize_node(node) for node in self.sorted_nodes()],
            "edges": [
                {
                    "from": {"node": self.label_of(edge.producer), "port": edge.producer.ordinal},
                    "to": {"node": self.label_of(edge.consumer), "port": edge.consumer.ordinal}
                }
                for edge in self.sorted_edges()
            ]
        }

    def _serialize_node(self, node: PlanNode) -> Dict[str, Any]:
        return {
            "label": node.display_label,
            "identity": node.identity,
            "operator": node.operator,
            "category": node.kind.value,
            "rule": node.rule.value,
            "columns": list(node.output_columns),
            "children": [self.nodes[c].display_label for c in node.children if c in self.nodes],
            "cached": node.is_cache_point,
            "catalog_name": node.catalog_name
        }
