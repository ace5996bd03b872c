"""SQLGlot helper functions for reading column expressions of plan nodes."""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

import sqlglot
import sqlglot.expressions as exp
from sqlglot.errors import ParseError, TokenError

from ..core.errors import InvalidExpressionError

# Engine attribute ids, e.g. ``sum(v#12L)``
EXPR_ID_PATTERN = re.compile(r"#\d+L?")

# ``name#12`` or ``\`quoted name\`#12``
_ATTRIBUTE_PATTERN = re.compile(r"(`[^`]*`|\w+)#(\d+)L?")
_ATTRIBUTE_NAME_PATTERN = re.compile(r"^(.*?)#(\d+)L?$", re.DOTALL)

# sqlglot cannot parse ``#``; ids ride along inside identifiers instead
_ID_MARKER = "__exprid"
_MARKED_NAME_PATTERN = re.compile(rf"^(.*){_ID_MARKER}(\d+)$", re.DOTALL)
_MARKER_PATTERN = re.compile(rf"{_ID_MARKER}\d+")


@dataclass(frozen=True)
class ColumnReference:
    """
    A column referenced by an expression.

    ``qualifiers`` holds the dotted parts in front of the name, outermost
    first, each with its attribute id. For ``s#3.a`` that is ``(("s", "3"),)``.
    """
    name: str
    expr_id: Optional[str] = None
    qualifiers: Tuple[Tuple[str, Optional[str]], ...] = ()

    @property
    def root(self) -> Optional["ColumnReference"]:
        """The outermost qualifier as a reference of its own (a struct column or a relation alias)."""
        if not self.qualifiers:
            return None
        name, expr_id = self.qualifiers[0]
        return ColumnReference(name, expr_id)

    def __str__(self) -> str:
        parts = list(self.qualifiers) + [(self.name, self.expr_id)]
        return ".".join(name if expr_id is None else f"{name}#{expr_id}" for name, expr_id in parts)


def strip_expression_ids(expression: str) -> str:
    """Remove engine-assigned attribute ids from an expression string."""
    return EXPR_ID_PATTERN.sub("", expression)


def split_attribute(attribute: str) -> Tuple[str, Optional[str]]:
    """
    Split an output attribute such as ``k#2L`` into its name and attribute id.

    Returns:
        (name without ids, id or None)
    """
    attribute = attribute.strip()
    match = _ATTRIBUTE_NAME_PATTERN.match(attribute)
    if match:
        return strip_expression_ids(match.group(1)), match.group(2)
    return strip_expression_ids(attribute), None


def _mark_ids(expression: str) -> str:
    def mark(match):
        name, expr_id = match.group(1), match.group(2)
        if name.startswith("`"):
            return f"{name[:-1]}{_ID_MARKER}{expr_id}`"
        return f"{name}{_ID_MARKER}{expr_id}"

    return strip_expression_ids(_ATTRIBUTE_PATTERN.sub(mark, expression))


def _unmark(name: str) -> Tuple[str, Optional[str]]:
    match = _MARKED_NAME_PATTERN.match(name)
    if match:
        return match.group(1), match.group(2)
    return name, None


def parse_expression(expression: str, dialect: str = "spark", identity: Optional[str] = None) -> exp.Expression:
    """
    Parse a single column expression.

    Attribute ids stay attached to their identifiers; read them back through
    ``extract_column_names`` or ``output_attribute``.

    Raises:
        InvalidExpressionError: if sqlglot cannot parse the expression
    """
    try:
        parsed = sqlglot.parse_one(_mark_ids(expression), read=dialect)
    except (ParseError, TokenError) as e:
        raise InvalidExpressionError(expression, identity=identity, reason=str(e)) from e
    if parsed is None:
        raise InvalidExpressionError(expression, identity=identity, reason="empty expression")
    return parsed


def _to_reference(column: exp.Column) -> ColumnReference:
    parts = [_unmark(part.name) for part in column.parts]
    name, expr_id = parts[-1]
    return ColumnReference(name, expr_id, tuple(parts[:-1]))


def _unique(references: List[ColumnReference]) -> List[ColumnReference]:
    seen = []
    for reference in references:
        if reference not in seen:
            seen.append(reference)
    return seen


def extract_column_names(
    expression: str,
    dialect: str = "spark",
    identity: Optional[str] = None
) -> List[ColumnReference]:
    """Distinct columns referenced by an expression, in order of appearance."""
    parsed = parse_expression(expression, dialect, identity)
    return _unique([_to_reference(column) for column in parsed.find_all(exp.Column, bfs=False) if column.name])


def as_column_reference(expression: str, dialect: str = "spark") -> Optional[ColumnReference]:
    """The referenced column when ``expression`` is nothing but a column, else None."""
    try:
        parsed = parse_expression(expression, dialect)
    except InvalidExpressionError:
        return None
    if isinstance(parsed, exp.Column) and parsed.name:
        return _to_reference(parsed)
    return None


def split_aggregate_references(
    expression: str,
    dialect: str = "spark",
    identity: Optional[str] = None
) -> Tuple[List[ColumnReference], List[ColumnReference]]:
    """
    Split the column references of an aggregate output expression.

    Returns:
        (grouping-key references outside any aggregate function,
         references inside aggregate functions)
    """
    parsed = parse_expression(expression, dialect, identity)
    keys: List[ColumnReference] = []
    aggregated: List[ColumnReference] = []
    for column in parsed.find_all(exp.Column, bfs=False):
        if not column.name:
            continue
        if column.find_ancestor(exp.AggFunc) is not None:
            aggregated.append(_to_reference(column))
        else:
            keys.append(_to_reference(column))
    return _unique(keys), _unique(aggregated)


def _output(expression: str, dialect: str) -> Tuple[str, Optional[str]]:
    parsed = parse_expression(expression, dialect)
    if parsed.alias_or_name:
        return _unmark(parsed.alias_or_name)
    return _MARKER_PATTERN.sub("", parsed.sql(dialect=dialect)), None


def output_attribute(expression: str, dialect: str = "spark") -> str:
    """Output column of an expression, written ``name#id`` when the engine gave it an id."""
    name, expr_id = _output(expression, dialect)
    return name if expr_id is None else f"{name}#{expr_id}"
