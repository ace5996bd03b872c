"""Entry points that turn a catalog into lineage flow documents."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .models import LineageGraph
from .resolver import IdentityResolver
from .propagator import ColumnLineagePropagator
from .contraction import ContractionEngine
from ..catalog.registry import CatalogProvider, resolve_snapshot
from ..catalog.snapshot import CatalogSnapshot
from ..formatters.dot_formatter import DotFormatter
from ..visualization.renderer import FlowWriter
from ..utils.config import load_flow_config
from ..utils.logging_config import get_logger, log_performance

Catalog = Union[CatalogProvider, CatalogSnapshot]

logger = get_logger('flow')


class SQLFlow:
    """
    Renders the plans registered in a catalog as a column-level lineage flow.

    Each call takes a fresh catalog snapshot, resolves it into one
    deduplicated plan graph, annotates column lineage and serializes the
    result as DOT.
    """

    def __init__(self, contracted: bool = False, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the flow renderer.

        Args:
            contracted: Render only anchor nodes with transitive column edges
            config: Overrides applied on top of the loaded flow configuration
        """
        self.contracted = contracted
        self.config = load_flow_config(overrides=config)
        self.resolver = IdentityResolver(cache_precedence=self.config['cache_precedence'])
        self.propagator = ColumnLineagePropagator(
            dialect=self.config['dialect'],
            case_sensitive=self.config['case_sensitive']
        )
        self.contraction = ContractionEngine()
        self.formatter = DotFormatter()
        logger.debug(f"Initialized {type(self).__name__} with config: {self.config}")

    @log_performance(logger)
    def build_graph(self, catalog: Catalog, roots: Optional[List[str]] = None) -> LineageGraph:
        """
        Build the (optionally contracted) lineage graph.

        Args:
            catalog: Catalog provider or snapshot
            roots: Root identities to traverse; defaults to every catalog entry

        Returns:
            Annotated LineageGraph
        """
        graph = self.propagator.propagate(self.resolver.resolve(resolve_snapshot(catalog), roots))
        if self.contracted:
            return self.contraction.contract(graph)
        return graph

    def catalog_to_flow(self, catalog: Catalog) -> str:
        """Render every table, view and cached plan in the catalog as one DOT document."""
        return self.formatter.format(self.build_graph(catalog))

    def plan_to_flow(self, catalog: Catalog, root: Union[str, int]) -> str:
        """
        Render a single plan, e.g. an unregistered query result.

        Catalog names still label any registered node the plan reaches.
        """
        return self.formatter.format(self.build_graph(catalog, [str(root)]))

    def debug_print(self, catalog: Catalog, root: Optional[Union[str, int]] = None) -> None:
        if root is None:
            print(self.catalog_to_flow(catalog))
        else:
            print(self.plan_to_flow(catalog, root))


class SQLContractedFlow(SQLFlow):
    """SQLFlow variant that renders the contracted graph."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(contracted=True, config=config)


def save_as_flow(
    catalog: Catalog,
    path: Union[str, Path],
    image_format: Optional[str] = None,
    overwrite: bool = False,
    root: Optional[Union[str, int]] = None,
    config: Optional[Dict[str, Any]] = None
) -> Dict[str, str]:
    """
    Write the full and contracted flow documents of a catalog into ``path``.

    Args:
        catalog: Catalog provider or snapshot
        path: Output directory (``sqlflow.dot``, ``sqlflow-contracted.dot``)
        image_format: Also render jpg, png or svg images when given
        overwrite: Replace ``path`` if it exists
        root: Render a single plan instead of the whole catalog
        config: Flow configuration overrides

    Returns:
        Mapping of document name to written file path

    Raises:
        UnsupportedFormatError: for an image format outside jpg, png, svg
        DestinationExistsError: if ``path`` exists and ``overwrite`` is off
    """
    flow = SQLFlow(config=config)
    image_format = image_format or flow.config['image_format']
    overwrite = overwrite or flow.config['overwrite']

    roots = None if root is None else [str(root)]
    graph = flow.build_graph(catalog, roots)
    contracted = flow.contraction.contract(graph)

    logger.info(f"Saving flow documents to {path}")
    return FlowWriter(flow.formatter).write(graph, contracted, path, image_format, overwrite)
