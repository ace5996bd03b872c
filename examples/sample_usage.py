#!/usr/bin/env python3
"""
Sample usage examples for SQLFlow.
"""

import tempfile
from pathlib import Path

from sqlflow import SQLFlow, SQLContractedFlow, InMemoryCatalog, SampleCatalog, save_as_flow
from sqlflow.catalog import EntryType
from sqlflow.formatters import ConsoleFormatter


def build_orders_catalog():
    """A cached daily revenue aggregate read by a reporting view."""
    catalog = InMemoryCatalog()
    catalog.add_node(0, "LogicalRelation", ["order_id", "day", "amount"], label="orders_parquet")
    catalog.add_node(1, "Filter", ["order_id", "day", "amount"], children=[0])
    catalog.add_node(2, "Aggregate", ["day", "revenue"], children=[1],
                     expressions=["day", "sum(amount) AS revenue"], grouping=["day"], cached=True)
    catalog.register(2, entry_type=EntryType.CACHED)
    catalog.add_node(3, "Project", ["day", "revenue_k"], children=[2],
                     expressions=["day", "revenue / 1000 AS revenue_k"])
    catalog.add_node(4, "View", ["day", "revenue_k"], children=[3])
    catalog.register(4, "reporting.daily_revenue", EntryType.VIEW)
    return catalog


def main():
    """Demonstrate various usage patterns."""
    print("SQLFlow - Sample Usage")
    print("=" * 50)

    # Example 1: DOT document of a temporary view
    print("\n1. GROUP BY view:")
    SQLFlow().debug_print(SampleCatalog("group_by_view"))

    # Example 2: full versus contracted graph of a shared cached plan
    print("\n2. Cached view reused by another view (contracted):")
    reuse = SampleCatalog("cached_view_reuse")
    SQLContractedFlow().debug_print(reuse)

    # Example 3: programmatic catalog with rich summary
    print("\n3. Programmatic catalog:")
    catalog = build_orders_catalog()
    graph = SQLFlow().build_graph(catalog)
    ConsoleFormatter().format(graph)
    ConsoleFormatter().format_compact(SQLContractedFlow().build_graph(catalog))

    # Example 4: single plan rendered against the catalog
    print("\n4. Single plan:")
    SQLFlow().debug_print(reuse, root=4)

    # Example 5: write documents to disk
    print("\n5. Saving flow documents:")
    with tempfile.TemporaryDirectory() as tmp:
        written = save_as_flow(catalog, Path(tmp) / "flow")
        for name, path in written.items():
            print(f"  {name}: {Path(path).name}")


if __name__ == "__main__":
    main()
