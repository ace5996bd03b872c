"""JSON output formatter."""

import json
from typing import Optional

from ..core.models import LineageGraph


class JSONFormatter:
    """Formats lineage graphs as JSON."""

    def __init__(self, indent: Optional[int] = 2):
        """
        Initialize JSON formatter.

        Args:
            indent: JSON indentation level (None for compact output)
        """
        self.indent = indent

    def format(self, graph: LineageGraph) -> str:
        """
        Format a lineage graph as a JSON string.

        Args:
            graph: LineageGraph to format

        Returns:
            JSON string with nodes and edges in deterministic order
        """
        return json.dumps(graph.to_dict(), indent=self.indent, ensure_ascii=False)

    def format_to_file(self, graph: LineageGraph, file_path: str) -> None:
        """
        Format a lineage graph and write it to file.

        Args:
            graph: LineageGraph to format
            file_path: Output file path
        """
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(self.format(graph))
