"""SQLFlow - Column-level lineage graphs over analyzed query plans."""

__version__ = "1.0.0"

from .core.errors import (
    SQLFlowError,
    StructuralInconsistencyError,
    CircularPlanError,
    InvalidExpressionError,
    InvalidSnapshotError,
    DestinationExistsError,
    UnsupportedFormatError,
    ExternalToolUnavailableError
)
from .core.models import LineageGraph, PlanNode, ColumnRef, Edge, NodeCategory, LineageRule
from .catalog import InMemoryCatalog, JsonCatalogProvider, SampleCatalog, CatalogSnapshot
from .core.flow import SQLFlow, SQLContractedFlow, save_as_flow

__all__ = [
    "SQLFlow",
    "SQLContractedFlow",
    "save_as_flow",
    "LineageGraph",
    "PlanNode",
    "ColumnRef",
    "Edge",
    "NodeCategory",
    "LineageRule",
    "InMemoryCatalog",
    "JsonCatalogProvider",
    "SampleCatalog",
    "CatalogSnapshot",
    "SQLFlowError",
    "StructuralInconsistencyError",
    "CircularPlanError",
    "InvalidExpressionError",
    "InvalidSnapshotError",
    "DestinationExistsError",
    "UnsupportedFormatError",
    "ExternalToolUnavailableError"
]
