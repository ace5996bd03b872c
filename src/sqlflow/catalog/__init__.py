"""Catalog snapshot boundary between the query engine and the lineage engine."""

from .snapshot import CatalogSnapshot, CatalogEntry, EnginePlanNode, EntryType
from .registry import CatalogProvider, InMemoryCatalog, JsonCatalogProvider, resolve_snapshot
from .sample_catalog import SampleCatalog

__all__ = [
    "CatalogSnapshot",
    "CatalogEntry",
    "EnginePlanNode",
    "EntryType",
    "CatalogProvider",
    "InMemoryCatalog",
    "JsonCatalogProvider",
    "SampleCatalog",
    "resolve_snapshot"
]
