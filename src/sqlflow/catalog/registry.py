"""Catalog providers that hand plan snapshots to the lineage engine."""

import json
from pathlib import Path
from typing import Dict, Optional, List, Protocol, Sequence, Union, Any

from .snapshot import CatalogSnapshot, CatalogEntry, EnginePlanNode, EntryType
from ..core.errors import InvalidSnapshotError
from ..utils.logging_config import get_logger


class CatalogProvider(Protocol):
    """Protocol for catalog providers."""

    def snapshot(self) -> CatalogSnapshot:
        """Get an immutable snapshot of the catalog's current plans."""
        ...


class InMemoryCatalog:
    """Registry of engine plan nodes and the catalog entries rooted in them."""

    def __init__(self):
        self.nodes: Dict[str, EnginePlanNode] = {}
        self.entries: List[CatalogEntry] = []
        self.logger = get_logger('catalog')

    def add_node(
        self,
        identity: Union[str, int],
        operator: str,
        output: Sequence[str],
        children: Sequence[Union[str, int]] = (),
        expressions: Sequence[Optional[str]] = (),
        grouping: Sequence[str] = (),
        cached: bool = False,
        rule: Optional[str] = None,
        label: Optional[str] = None
    ) -> EnginePlanNode:
        """Register a plan node; identities are stringified."""
        node = EnginePlanNode(
            identity=str(identity),
            operator=operator,
            output=tuple(output),
            children=tuple(str(c) for c in children),
            expressions=tuple(expressions),
            grouping=tuple(grouping),
            cached=cached,
            rule=rule,
            label=label
        )
        if node.identity in self.nodes:
            raise InvalidSnapshotError(f"Duplicate plan node id {node.identity}")
        self.nodes[node.identity] = node
        return node

    def register(
        self,
        root: Union[str, int],
        name: Optional[str] = None,
        entry_type: EntryType = EntryType.VIEW
    ) -> CatalogEntry:
        """Register a catalog entry (table, view or cached dataset) rooted at a plan node."""
        if not name and entry_type != EntryType.CACHED:
            raise InvalidSnapshotError(f"Catalog entries of type {entry_type.value} need a name")
        entry = CatalogEntry(root=str(root), name=name, entry_type=entry_type)
        self.entries.append(entry)
        self.logger.debug(f"Registered {entry_type.value} entry {name or '<unnamed>'} rooted at {entry.root}")
        return entry

    def drop(self, name: str) -> None:
        """Remove a named entry; its plan nodes stay available to other entries."""
        self.entries = [e for e in self.entries if e.name != name]

    def snapshot(self) -> CatalogSnapshot:
        return CatalogSnapshot(nodes=dict(self.nodes), entries=tuple(self.entries))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryCatalog":
        snapshot = CatalogSnapshot.from_dict(data)
        catalog = cls()
        catalog.nodes.update(snapshot.nodes)
        catalog.entries.extend(snapshot.entries)
        return catalog


class JsonCatalogProvider:
    """Reads catalog snapshots from a JSON document on disk."""

    def __init__(self, file_path: Union[str, Path]):
        self.file_path = Path(file_path)
        self.logger = get_logger('catalog.json')

    def snapshot(self) -> CatalogSnapshot:
        """
        Load the snapshot document.

        Returns:
            CatalogSnapshot read from ``file_path``

        Raises:
            InvalidSnapshotError: if the file cannot be read or is not a valid snapshot
        """
        self.logger.info(f"Loading catalog snapshot from {self.file_path}")
        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise InvalidSnapshotError(f"Cannot read catalog snapshot {self.file_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise InvalidSnapshotError(f"Catalog snapshot {self.file_path} is not valid JSON: {e}") from e

        snapshot = CatalogSnapshot.from_dict(data)
        self.logger.debug(f"Loaded {len(snapshot.nodes)} plan nodes and {len(snapshot.entries)} entries")
        return snapshot


def resolve_snapshot(catalog: Union[CatalogProvider, CatalogSnapshot]) -> CatalogSnapshot:
    """Accept either a provider or an already-taken snapshot."""
    if isinstance(catalog, CatalogSnapshot):
        return catalog
    return catalog.snapshot()
