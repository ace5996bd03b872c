"""Exception types raised while building, contracting and writing lineage flows."""

from typing import List, Optional


class SQLFlowError(Exception):
    """Base class for all SQLFlow errors."""


class StructuralInconsistencyError(SQLFlowError, ValueError):
    """Raised when the plans handed over by the query engine contradict each other."""

    def __init__(self, message: str, identity: Optional[str] = None):
        self.identity = identity
        super().__init__(message)


class CircularPlanError(StructuralInconsistencyError):
    """Exception raised when a cycle is detected among plan node children."""

    def __init__(self, cycle_path: List[str]):
        self.cycle_path = list(cycle_path)
        cycle_str = " -> ".join(self.cycle_path + self.cycle_path[:1])
        super().__init__(
            f"CircularPlanError: Circular plan dependency detected: {cycle_str}",
            identity=self.cycle_path[0] if self.cycle_path else None
        )


class InvalidExpressionError(StructuralInconsistencyError):
    """Raised when a column expression cannot be parsed."""

    def __init__(self, expression: str, identity: Optional[str] = None, reason: str = ""):
        self.expression = expression
        message = f"Cannot parse expression '{expression}'"
        if identity is not None:
            message += f" of plan node {identity}"
        if reason:
            message += f": {reason}"
        super().__init__(message, identity=identity)


class InvalidSnapshotError(SQLFlowError, ValueError):
    """Raised when a catalog snapshot document is malformed."""


class DestinationExistsError(SQLFlowError, FileExistsError):
    """Raised when an output path already exists and overwrite was not requested."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"path {path} already exists")


class UnsupportedFormatError(SQLFlowError, ValueError):
    """Raised for image formats Graphviz output is not produced in."""

    def __init__(self, image_format: str):
        self.image_format = image_format
        super().__init__(f"Invalid image format: {image_format}")


class ExternalToolUnavailableError(SQLFlowError, RuntimeError):
    """Raised when the Graphviz ``dot`` executable cannot be found."""
