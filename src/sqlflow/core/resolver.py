"""Identity-aware construction of one shared plan graph from many root plans."""

from typing import Dict, Optional, List, Set

from .models import LineageGraph, PlanNode, NodeCategory, LineageRule
from .errors import StructuralInconsistencyError, CircularPlanError
from ..catalog.snapshot import CatalogSnapshot, EnginePlanNode, EntryType
from ..utils.expression_utils import split_attribute
from ..utils.logging_config import get_logger

# Default lineage rule per engine operator name
OPERATOR_RULES: Dict[str, LineageRule] = {
    'LocalRelation': LineageRule.SOURCE,
    'Range': LineageRule.SOURCE,
    'LogicalRelation': LineageRule.SOURCE,
    'LogicalRDD': LineageRule.SOURCE,
    'HiveTableRelation': LineageRule.SOURCE,
    'OneRowRelation': LineageRule.SOURCE,
    'View': LineageRule.PASS_THROUGH,
    'SubqueryAlias': LineageRule.PASS_THROUGH,
    'InMemoryRelation': LineageRule.PASS_THROUGH,
    'ResolvedHint': LineageRule.PASS_THROUGH,
    'Filter': LineageRule.FILTER,
    'Sort': LineageRule.FILTER,
    'Limit': LineageRule.FILTER,
    'GlobalLimit': LineageRule.FILTER,
    'LocalLimit': LineageRule.FILTER,
    'Sample': LineageRule.FILTER,
    'Distinct': LineageRule.FILTER,
    'Deduplicate': LineageRule.FILTER,
    'Repartition': LineageRule.FILTER,
    'RepartitionByExpression': LineageRule.FILTER,
    'Project': LineageRule.PROJECT,
    'Window': LineageRule.PROJECT,
    'Aggregate': LineageRule.AGGREGATE,
    'Union': LineageRule.UNION,
    'Join': LineageRule.JOIN,
}


def infer_lineage_rule(engine_node: EnginePlanNode) -> LineageRule:
    """
    Pick the lineage rule for an engine node.

    An explicit ``rule`` on the node wins, then the operator table; unknown
    operators are classified by their shape.
    """
    if engine_node.rule:
        try:
            return LineageRule(engine_node.rule.lower())
        except ValueError:
            supported = ", ".join(r.value for r in LineageRule)
            raise StructuralInconsistencyError(
                f"Plan node {engine_node.identity} has unknown lineage rule '{engine_node.rule}'. Supported: {supported}",
                identity=engine_node.identity
            )

    if engine_node.operator in OPERATOR_RULES:
        return OPERATOR_RULES[engine_node.operator]

    if not engine_node.children:
        return LineageRule.SOURCE
    if len(engine_node.children) > 1:
        return LineageRule.JOIN
    if engine_node.expressions:
        return LineageRule.PROJECT
    return LineageRule.PASS_THROUGH


class IdentityResolver:
    """
    Builds the deduplicated plan graph for a catalog snapshot.

    Every distinct engine identity becomes exactly one PlanNode, no matter how
    many roots reach it; a node already in the graph is reused and its
    children are not walked again.
    """

    def __init__(self, cache_precedence: bool = False):
        """
        Initialize the resolver.

        Args:
            cache_precedence: Categorize nodes that are both named and cached as
                cache boundaries instead of named entities
        """
        self.cache_precedence = cache_precedence
        self.logger = get_logger('resolver')

    def resolve(self, snapshot: CatalogSnapshot, roots: Optional[List[str]] = None) -> LineageGraph:
        """
        Walk the given roots (default: every catalog entry root) into one graph.

        Args:
            snapshot: Catalog snapshot holding the engine plan nodes
            roots: Root identities to traverse, in order

        Returns:
            LineageGraph with nodes only; edges are added by the propagator

        Raises:
            StructuralInconsistencyError: for references to unknown identities
            CircularPlanError: if the child relation has a cycle
        """
        roots = snapshot.roots() if roots is None else [str(r) for r in roots]
        names = self._collect_names(snapshot)
        cache_roots = {e.root for e in snapshot.entries if e.entry_type == EntryType.CACHED}

        self.logger.info(f"Resolving {len(roots)} root plans over {len(snapshot.nodes)} engine nodes")
        graph = LineageGraph()
        for root in roots:
            if root not in snapshot.nodes:
                self.logger.error(f"Catalog root {root} is not among the snapshot's plan nodes")
                raise StructuralInconsistencyError(
                    f"Catalog root {root} references an unknown plan node", identity=root
                )
            self._visit(root, snapshot, names, cache_roots, graph, [])

        unreachable = len(snapshot.nodes) - len(graph.nodes)
        if unreachable:
            self.logger.debug(f"{unreachable} engine nodes are not reachable from the traversed roots")
        self.logger.info(f"Resolved {len(graph.nodes)} distinct plan nodes")
        return graph

    def _collect_names(self, snapshot: CatalogSnapshot) -> Dict[str, str]:
        """Map root identities of named entries to their catalog names."""
        names: Dict[str, str] = {}
        for entry in snapshot.entries:
            if not entry.name:
                continue
            existing = names.get(entry.root)
            if existing is not None and existing != entry.name:
                self.logger.warning(
                    f"Plan node {entry.root} is registered as both '{existing}' and '{entry.name}'; using '{existing}'"
                )
                continue
            names[entry.root] = entry.name
        return names

    def _visit(
        self,
        identity: str,
        snapshot: CatalogSnapshot,
        names: Dict[str, str],
        cache_roots: Set[str],
        graph: LineageGraph,
        path: List[str]
    ) -> None:
        if identity in path:
            cycle = path[path.index(identity):]
            self.logger.error(f"Plan cycle detected: {' -> '.join(cycle)}")
            raise CircularPlanError(cycle)
        if identity in graph.nodes:
            self.logger.debug(f"Reusing shared plan node {identity}")
            return

        engine_node = snapshot.get_node(identity)
        if engine_node is None:
            parent = path[-1] if path else None
            self.logger.error(f"Plan node {parent} references unknown child {identity}")
            raise StructuralInconsistencyError(
                f"Plan node {parent} references unknown child {identity}", identity=identity
            )

        path.append(identity)
        for child in engine_node.children:
            self._visit(child, snapshot, names, cache_roots, graph, path)
        path.pop()

        graph.add_node(self._make_node(engine_node, names.get(identity), identity in cache_roots))

    def _make_node(self, engine_node: EnginePlanNode, catalog_name: Optional[str], cache_root: bool) -> PlanNode:
        rule = infer_lineage_rule(engine_node)
        is_cache_point = engine_node.cached or cache_root

        if rule == LineageRule.SOURCE and engine_node.children:
            raise StructuralInconsistencyError(
                f"Source plan node {engine_node.identity} ({engine_node.operator}) must not have children",
                identity=engine_node.identity
            )

        if catalog_name:
            label = catalog_name
        elif engine_node.label:
            label = engine_node.label
        else:
            label = f"{engine_node.operator}_{engine_node.identity}"

        attributes = [split_attribute(column) for column in engine_node.output]
        output_ids = tuple(expr_id for _, expr_id in attributes)

        return PlanNode(
            identity=engine_node.identity,
            operator=engine_node.operator,
            kind=self._categorize(rule, catalog_name, is_cache_point),
            rule=rule,
            display_label=label,
            output_columns=tuple(name for name, _ in attributes),
            children=engine_node.children,
            expressions=engine_node.expressions,
            grouping=engine_node.grouping,
            is_cache_point=is_cache_point,
            catalog_name=catalog_name,
            output_ids=output_ids if any(output_ids) else ()
        )

    def _categorize(self, rule: LineageRule, catalog_name: Optional[str], is_cache_point: bool) -> NodeCategory:
        if catalog_name and is_cache_point:
            return NodeCategory.CACHE_BOUNDARY if self.cache_precedence else NodeCategory.NAMED_ENTITY
        if catalog_name:
            return NodeCategory.NAMED_ENTITY
        if is_cache_point:
            return NodeCategory.CACHE_BOUNDARY
        if rule == LineageRule.SOURCE:
            return NodeCategory.SOURCE
        return NodeCategory.OPERATOR
