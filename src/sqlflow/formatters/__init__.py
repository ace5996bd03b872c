"""Output formatters for lineage graphs."""

from .dot_formatter import DotFormatter, NODE_COLORS, format_flow
from .json_formatter import JSONFormatter
from .console_formatter import ConsoleFormatter

__all__ = ["DotFormatter", "NODE_COLORS", "format_flow", "JSONFormatter", "ConsoleFormatter"]
