"""Per-operator column lineage rules."""

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .models import LineageGraph, PlanNode, LineageRule, ColumnRef, Edge
from .errors import StructuralInconsistencyError
from ..utils.expression_utils import (
    ColumnReference,
    as_column_reference,
    extract_column_names,
    split_aggregate_references,
    split_attribute,
    strip_expression_ids
)
from ..utils.logging_config import get_logger

# (output ordinal, producing child column)
ColumnMapping = Tuple[int, ColumnRef]


class ColumnLineagePropagator:
    """
    Annotates a resolved plan graph with column-level lineage edges.

    Every LineageRule has exactly one handler; a handler maps each output
    column of a node to the child columns it derives from.
    """

    def __init__(self, dialect: str = "spark", case_sensitive: bool = False):
        """
        Initialize the propagator.

        Args:
            dialect: sqlglot dialect used to read column expressions
            case_sensitive: Whether column names are matched case-sensitively
        """
        self.dialect = dialect
        self.case_sensitive = case_sensitive
        self.logger = get_logger('propagator')
        self._handlers: Dict[LineageRule, Callable[[PlanNode, List[PlanNode]], Iterable[ColumnMapping]]] = {
            LineageRule.SOURCE: self._source_lineage,
            LineageRule.PASS_THROUGH: self._positional_lineage,
            LineageRule.FILTER: self._positional_lineage,
            LineageRule.PROJECT: self._project_lineage,
            LineageRule.AGGREGATE: self._aggregate_lineage,
            LineageRule.UNION: self._union_lineage,
            LineageRule.JOIN: self._join_lineage,
        }

    def propagate(self, graph: LineageGraph) -> LineageGraph:
        """
        Add the lineage edges of every node to ``graph``.

        Returns:
            The same graph, for chaining

        Raises:
            StructuralInconsistencyError: if a node's columns cannot be traced to its children
        """
        for node in graph.sorted_nodes():
            children = graph.children_of(node)
            for ordinal, producer in self._handlers[node.rule](node, children):
                graph.add_edge(Edge(producer, node.column(ordinal)))
        self.logger.info(f"Propagated {len(graph.edges)} column lineage edges over {len(graph.nodes)} nodes")
        return graph

    def _source_lineage(self, node: PlanNode, children: List[PlanNode]) -> Iterable[ColumnMapping]:
        return []

    def _positional_lineage(self, node: PlanNode, children: List[PlanNode]) -> Iterable[ColumnMapping]:
        """Column i comes from column i of the single child."""
        child = self._single_child(node, children)
        if len(child.output_columns) != len(node.output_columns):
            raise StructuralInconsistencyError(
                f"{node.display_label} has {len(node.output_columns)} columns but its child "
                f"{child.display_label} has {len(child.output_columns)}",
                identity=node.identity
            )
        return [(i, child.column(i)) for i in range(len(node.output_columns))]

    def _project_lineage(self, node: PlanNode, children: List[PlanNode]) -> Iterable[ColumnMapping]:
        child = self._single_child(node, children)
        mappings: List[ColumnMapping] = []
        for ordinal, name in enumerate(node.output_columns):
            expression = node.expression_for(ordinal)
            direct = self._find_direct(node, child, ordinal)
            if direct is not None:
                mappings.append((ordinal, child.column(direct)))
                continue
            if expression is None:
                raise StructuralInconsistencyError(
                    f"Column '{name}' of {node.display_label} has no expression and is not a column of "
                    f"{child.display_label}",
                    identity=node.identity
                )
            references = extract_column_names(expression, self.dialect, node.identity)
            if not references:
                self.logger.debug(f"{node.display_label}.{name} is a provenance root ({expression})")
            for reference in references:
                mappings.append((ordinal, self._resolve(node, child, reference)))
        return mappings

    def _aggregate_lineage(self, node: PlanNode, children: List[PlanNode]) -> Iterable[ColumnMapping]:
        """Grouping keys map to the grouped inputs, aggregate results to their arguments."""
        child = self._single_child(node, children)
        grouping = {self._normalize(strip_expression_ids(g)) for g in node.grouping}
        mappings: List[ColumnMapping] = []
        for ordinal, name in enumerate(node.output_columns):
            expression = node.expression_for(ordinal)
            direct = self._find_direct(node, child, ordinal)
            if direct is not None:
                mappings.append((ordinal, child.column(direct)))
                continue
            if expression is None:
                raise StructuralInconsistencyError(
                    f"Aggregate column '{name}' of {node.display_label} has no expression",
                    identity=node.identity
                )
            keys, aggregated = split_aggregate_references(expression, self.dialect, node.identity)
            for key in keys:
                if grouping and self._normalize(key.name) not in grouping:
                    self.logger.warning(
                        f"{node.display_label}.{name} references '{key}' outside an aggregate "
                        f"but it is not a grouping key"
                    )
                mappings.append((ordinal, self._resolve(node, child, key)))
            for reference in aggregated:
                mappings.append((ordinal, self._resolve(node, child, reference)))
        return mappings

    def _union_lineage(self, node: PlanNode, children: List[PlanNode]) -> Iterable[ColumnMapping]:
        """Column i comes from column i of every child."""
        if not children:
            raise StructuralInconsistencyError(f"{node.display_label} has no children", identity=node.identity)
        mappings: List[ColumnMapping] = []
        for child in children:
            if len(child.output_columns) != len(node.output_columns):
                raise StructuralInconsistencyError(
                    f"{node.display_label} has {len(node.output_columns)} columns but its child "
                    f"{child.display_label} has {len(child.output_columns)}",
                    identity=node.identity
                )
            mappings.extend((i, child.column(i)) for i in range(len(node.output_columns)))
        return mappings

    def _join_lineage(self, node: PlanNode, children: List[PlanNode]) -> Iterable[ColumnMapping]:
        """Each output column comes from the one child schema that contributed it."""
        if not children:
            raise StructuralInconsistencyError(f"{node.display_label} has no children", identity=node.identity)
        contributed = [column for child in children for column in child.columns]

        if len(contributed) == len(node.output_columns) and not any(node.expressions):
            return [(i, contributed[i]) for i in range(len(node.output_columns))]

        # Semi/anti joins and pruned outputs: resolve by attribute id, then by name left to right
        mappings: List[ColumnMapping] = []
        for ordinal, name in enumerate(node.output_columns):
            producer = self._find_in_children(node, children, self._output_reference(node, ordinal))
            if producer is None:
                raise StructuralInconsistencyError(
                    f"Column '{name}' of {node.display_label} is not contributed by any child",
                    identity=node.identity
                )
            mappings.append((ordinal, producer))
        return mappings

    def _single_child(self, node: PlanNode, children: List[PlanNode]) -> PlanNode:
        if len(children) != 1:
            raise StructuralInconsistencyError(
                f"{node.display_label} ({node.rule.value}) needs exactly one child, found {len(children)}",
                identity=node.identity
            )
        return children[0]

    def _normalize(self, name: str) -> str:
        return name if self.case_sensitive else name.lower()

    def _output_reference(self, node: PlanNode, ordinal: int) -> ColumnReference:
        """The child column an output column would copy unchanged."""
        expression = node.expression_for(ordinal)
        if expression is None:
            return ColumnReference(node.output_columns[ordinal], node.output_id(ordinal))
        reference = as_column_reference(expression, self.dialect)
        if reference is None:
            # Columns named after their expression, e.g. ``sum(v)``
            reference = ColumnReference(*split_attribute(expression))
        return reference

    def _find_direct(self, node: PlanNode, child: PlanNode, ordinal: int) -> Optional[int]:
        return self._find_column(node, child, self._output_reference(node, ordinal))

    def _find_column(self, node: PlanNode, child: PlanNode, reference: ColumnReference) -> Optional[int]:
        """
        Ordinal of the child column ``reference`` points at, or None.

        An attribute id carried by both sides decides. Otherwise the name must
        occur exactly once among the child's columns.

        Raises:
            StructuralInconsistencyError: if the name matches several child columns
        """
        by_id = self._find_by_id(child, reference)
        if by_id is not None:
            return by_id

        wanted = self._normalize(reference.name)
        matches = [o for o, column in enumerate(child.output_columns) if self._normalize(column) == wanted]
        if len(matches) > 1:
            self.logger.error(f"{node.display_label} references ambiguous column '{reference}' of {child.display_label}")
            raise StructuralInconsistencyError(
                f"Column '{reference}' referenced by {node.display_label} is ambiguous: {child.display_label} "
                f"has it at ordinals {', '.join(str(o) for o in matches)}",
                identity=node.identity
            )
        return matches[0] if matches else None

    def _find_by_id(self, child: PlanNode, reference: ColumnReference) -> Optional[int]:
        if reference.expr_id is None:
            return None
        for ordinal in range(len(child.output_columns)):
            if child.output_id(ordinal) == reference.expr_id:
                return ordinal
        return None

    def _find_in_children(
        self,
        node: PlanNode,
        children: List[PlanNode],
        reference: ColumnReference
    ) -> Optional[ColumnRef]:
        """An attribute id match in any child wins over a name match."""
        for child in children:
            ordinal = self._find_by_id(child, reference)
            if ordinal is not None:
                return child.column(ordinal)
        for child in children:
            ordinal = self._find_column(node, child, reference)
            if ordinal is not None:
                return child.column(ordinal)
        return None

    def _resolve(self, node: PlanNode, child: PlanNode, reference: ColumnReference) -> ColumnRef:
        ordinal = self._find_column(node, child, reference)
        if ordinal is None and reference.root is not None:
            # Struct field access: ``s.a`` reads column ``s``
            ordinal = self._find_column(node, child, reference.root)
        if ordinal is None:
            self.logger.error(f"{node.display_label} references unknown column '{reference}' of {child.display_label}")
            raise StructuralInconsistencyError(
                f"Column '{reference}' referenced by {node.display_label} is not an output of {child.display_label}",
                identity=node.identity
            )
        return child.column(ordinal)
