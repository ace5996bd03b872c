"""Rich console output formatter."""

from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from ..core.models import LineageGraph, NodeCategory

CATEGORY_STYLES = {
    NodeCategory.SOURCE: "magenta",
    NodeCategory.OPERATOR: "white",
    NodeCategory.CACHE_BOUNDARY: "blue",
    NodeCategory.NAMED_ENTITY: "yellow",
}


class ConsoleFormatter:
    """Formats lineage graphs for rich console output."""

    def __init__(self, console: Optional[Console] = None):
        """
        Initialize console formatter.

        Args:
            console: Rich console instance (creates new one if None)
        """
        self.console = console or Console()

    def format(self, graph: LineageGraph, title: str = "SQL Flow") -> None:
        """
        Print a summary of a lineage graph to the console.

        Args:
            graph: LineageGraph to summarize
            title: Panel title
        """
        self.console.print()
        self._print_header(graph, title)
        self._print_nodes(graph)
        self._print_column_lineage(graph)

    def _print_header(self, graph: LineageGraph, title: str) -> None:
        counts = {category: 0 for category in NodeCategory}
        for node in graph.nodes.values():
            counts[node.kind] += 1
        breakdown = ", ".join(f"{category.value.lower()}: {count}" for category, count in counts.items() if count)
        panel = Panel.fit(
            f"[bold]Nodes:[/bold] {len(graph.nodes)} ({breakdown or 'none'})\n"
            f"[bold]Edges:[/bold] {len(graph.edges)}",
            title=Text(title, style="bold blue"),
            border_style="blue"
        )
        self.console.print(panel)

    def _print_nodes(self, graph: LineageGraph) -> None:
        table = Table(title="Plan Nodes", show_header=True)
        table.add_column("Label", style="cyan")
        table.add_column("Operator")
        table.add_column("Category")
        table.add_column("Columns")
        table.add_column("Cached", style="blue")

        for node in graph.sorted_nodes():
            style = CATEGORY_STYLES[node.kind]
            table.add_row(
                escape(node.display_label),
                escape(node.operator),
                f"[{style}]{node.kind.value}[/{style}]",
                escape(", ".join(node.output_columns)),
                "yes" if node.is_cache_point else ""
            )
        self.console.print(table)

    def _print_column_lineage(self, graph: LineageGraph) -> None:
        self.console.print("\n[bold blue]COLUMN LINEAGE[/bold blue]")
        if not graph.edges:
            self.console.print("  [dim]No column lineage found[/dim]")
            return

        tree = Tree("Targets")
        for node in graph.sorted_nodes():
            if node.kind == NodeCategory.SOURCE:
                continue
            node_branch = tree.add(f"[green]{escape(node.display_label)}[/green]")
            for column in node.columns:
                producers = graph.producers_of(column)
                column_branch = node_branch.add(f"[yellow]{escape(column.name)}[/yellow]")
                if not producers:
                    column_branch.add("[dim]<- No dependencies[/dim]")
                for producer in producers:
                    column_branch.add(
                        f"[blue]<- {escape(graph.label_of(producer))}.{escape(producer.name)}[/blue]"
                    )
        self.console.print(tree)

    def format_compact(self, graph: LineageGraph) -> None:
        """Print one line per lineage edge."""
        for edge in graph.sorted_edges():
            self.console.print(
                f"  {escape(graph.label_of(edge.producer))}.{escape(edge.producer.name)} -> "
                f"{escape(graph.label_of(edge.consumer))}.{escape(edge.consumer.name)}",
                highlight=False
            )
