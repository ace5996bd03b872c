"""Core lineage graph components."""

from .models import ColumnRef, Edge, PlanNode, LineageGraph, NodeCategory, LineageRule
from .errors import (
    SQLFlowError,
    StructuralInconsistencyError,
    CircularPlanError,
    InvalidExpressionError,
    InvalidSnapshotError,
    DestinationExistsError,
    UnsupportedFormatError,
    ExternalToolUnavailableError
)

__all__ = [
    "ColumnRef",
    "Edge",
    "PlanNode",
    "LineageGraph",
    "NodeCategory",
    "LineageRule",
    "SQLFlowError",
    "StructuralInconsistencyError",
    "CircularPlanError",
    "InvalidExpressionError",
    "InvalidSnapshotError",
    "DestinationExistsError",
    "UnsupportedFormatError",
    "ExternalToolUnavailableError"
]
