"""Immutable catalog snapshots as handed over by the query engine."""

from typing import Dict, Optional, List, Tuple, Any, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from ..core.errors import InvalidSnapshotError
from ..core.models import LineageRule
from ..utils.expression_utils import output_attribute


class EntryType(str, Enum):
    """Catalog entry type enumeration."""
    TABLE = "TABLE"
    VIEW = "VIEW"
    TEMP_VIEW = "TEMP_VIEW"
    CACHED = "CACHED"


@dataclass(frozen=True)
class EnginePlanNode:
    """A plan node exactly as the engine reports it."""
    identity: str
    operator: str
    output: Tuple[str, ...]
    children: Tuple[str, ...] = ()
    expressions: Tuple[Optional[str], ...] = ()
    grouping: Tuple[str, ...] = ()
    cached: bool = False
    rule: Optional[str] = None
    label: Optional[str] = None


@dataclass(frozen=True)
class CatalogEntry:
    """A table, view or cached dataset known to the catalog."""
    root: str
    name: Optional[str] = None
    entry_type: EntryType = EntryType.VIEW


@dataclass(frozen=True)
class CatalogSnapshot:
    """The engine's plan nodes plus the ordered catalog entries rooted in them."""
    nodes: Mapping[str, EnginePlanNode] = field(default_factory=dict)
    entries: Tuple[CatalogEntry, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))
        object.__setattr__(self, "entries", tuple(self.entries))

    def roots(self) -> List[str]:
        """Root identities in catalog order, without repeats."""
        roots: List[str] = []
        for entry in self.entries:
            if entry.root not in roots:
                roots.append(entry.root)
        return roots

    def get_node(self, identity: str) -> Optional[EnginePlanNode]:
        return self.nodes.get(identity)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogSnapshot":
        """
        Build a snapshot from its JSON document form.

        Args:
            data: Dictionary with ``nodes`` and ``entries`` lists

        Returns:
            CatalogSnapshot

        Raises:
            InvalidSnapshotError: if required keys are missing or values are malformed
        """
        if not isinstance(data, dict):
            raise InvalidSnapshotError("Catalog snapshot must be a JSON object")

        raw_nodes = data.get("nodes", [])
        raw_entries = data.get("entries", [])
        if not isinstance(raw_nodes, list) or not isinstance(raw_entries, list):
            raise InvalidSnapshotError("'nodes' and 'entries' must be lists")

        nodes: Dict[str, EnginePlanNode] = {}
        for position, raw in enumerate(raw_nodes):
            node = _node_from_dict(raw, position)
            if node.identity in nodes:
                raise InvalidSnapshotError(f"Duplicate plan node id {node.identity}")
            nodes[node.identity] = node

        entries = [_entry_from_dict(raw, position) for position, raw in enumerate(raw_entries)]
        return cls(nodes=nodes, entries=tuple(entries))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON document form accepted by ``from_dict``."""
        nodes = []
        for node in self.nodes.values():
            raw: Dict[str, Any] = {"id": node.identity, "operator": node.operator, "output": list(node.output)}
            if node.children:
                raw["children"] = list(node.children)
            if node.expressions:
                raw["expressions"] = list(node.expressions)
            if node.grouping:
                raw["grouping"] = list(node.grouping)
            if node.cached:
                raw["cached"] = True
            if node.rule:
                raw["rule"] = node.rule
            if node.label:
                raw["label"] = node.label
            nodes.append(raw)
        entries = []
        for entry in self.entries:
            raw_entry: Dict[str, Any] = {"root": entry.root, "type": entry.entry_type.value}
            if entry.name:
                raw_entry["name"] = entry.name
            entries.append(raw_entry)
        return {"nodes": nodes, "entries": entries}


def _require(raw: Dict[str, Any], key: str, what: str) -> Any:
    if key not in raw:
        raise InvalidSnapshotError(f"{what} is missing required key '{key}'")
    return raw[key]


def _string_list(value: Any, key: str, what: str) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        raise InvalidSnapshotError(f"'{key}' of {what} must be a list")
    return tuple(str(v) for v in value)


def _node_from_dict(raw: Any, position: int) -> EnginePlanNode:
    what = f"Plan node #{position}"
    if not isinstance(raw, dict):
        raise InvalidSnapshotError(f"{what} must be a JSON object")

    identity = str(_require(raw, "id", what))
    what = f"Plan node {identity}"
    expressions = raw.get("expressions", [])
    if not isinstance(expressions, list):
        raise InvalidSnapshotError(f"'expressions' of {what} must be a list")

    if "output" in raw:
        output = _string_list(raw["output"], "output", what)
    elif expressions and all(e is not None for e in expressions):
        output = tuple(output_attribute(str(e)) for e in expressions)
    else:
        raise InvalidSnapshotError(f"{what} is missing required key 'output'")

    rule = raw.get("rule")
    if rule is not None and str(rule).lower() not in {r.value for r in LineageRule}:
        supported = ", ".join(r.value for r in LineageRule)
        raise InvalidSnapshotError(f"{what} has unknown lineage rule '{rule}'. Supported: {supported}")

    return EnginePlanNode(
        identity=identity,
        operator=str(_require(raw, "operator", what)),
        output=output,
        children=_string_list(raw.get("children", []), "children", what),
        expressions=tuple(None if e is None else str(e) for e in expressions),
        grouping=_string_list(raw.get("grouping", []), "grouping", what),
        cached=bool(raw.get("cached", False)),
        rule=rule,
        label=raw.get("label")
    )


def _entry_from_dict(raw: Any, position: int) -> CatalogEntry:
    what = f"Catalog entry #{position}"
    if not isinstance(raw, dict):
        raise InvalidSnapshotError(f"{what} must be a JSON object")

    type_name = str(raw.get("type", EntryType.VIEW.value)).upper()
    try:
        entry_type = EntryType(type_name)
    except ValueError:
        supported = ", ".join(t.value for t in EntryType)
        raise InvalidSnapshotError(f"{what} has unsupported type '{type_name}'. Supported: {supported}")

    name = raw.get("name")
    if not name and entry_type != EntryType.CACHED:
        raise InvalidSnapshotError(f"{what} of type {entry_type.value} is missing required key 'name'")

    return CatalogEntry(root=str(_require(raw, "root", what)), name=name or None, entry_type=entry_type)
