"""Command-line interface for SQLFlow."""

import sys
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from . import __version__
from .catalog.registry import JsonCatalogProvider
from .core.errors import SQLFlowError
from .core.flow import SQLFlow, save_as_flow
from .formatters.console_formatter import ConsoleFormatter
from .formatters.json_formatter import JSONFormatter
from .utils.config import load_flow_config
from .utils.logging_config import SQLFlowLogger, get_logger


def _fail(console: Console, error: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(str(error))}", soft_wrap=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="sqlflow")
@click.option(
    '--config', '-c', 'config_file',
    type=click.Path(exists=True, dir_okay=False),
    help='JSON configuration file'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    help='Log level (default: $SQLFLOW_LOG_LEVEL or WARNING)'
)
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str]):
    """SQLFlow - Render column-level lineage of catalog plans as Graphviz flows."""
    if log_level:
        SQLFlowLogger.setup_logging(level=log_level)
    logger = get_logger('cli')
    logger.info("SQLFlow CLI started")

    try:
        ctx.obj = load_flow_config(config_file)
    except SQLFlowError as e:
        logger.error(f"Invalid configuration: {e}")
        _fail(Console(), e)


@cli.command()
@click.argument('snapshot', type=click.Path(exists=True, dir_okay=False))
@click.option('--contracted', is_flag=True, help='Render only tables, views, caches and sources')
@click.option('--root', help='Render the single plan rooted at this node id')
@click.option(
    '--output-format', '-o',
    type=click.Choice(['dot', 'json']),
    default='dot',
    help='Output format (default: dot)'
)
@click.pass_obj
def render(config: dict, snapshot: str, contracted: bool, root: Optional[str], output_format: str):
    """Print the lineage flow of a catalog SNAPSHOT file."""
    logger = get_logger('cli.render')
    logger.info(f"Rendering {snapshot} - contracted: {contracted}, root: {root}, format: {output_format}")

    try:
        flow = SQLFlow(contracted=contracted, config=config)
        catalog = JsonCatalogProvider(snapshot)
        if output_format == 'json':
            graph = flow.build_graph(catalog, None if root is None else [root])
            output = JSONFormatter().format(graph)
        elif root is None:
            output = flow.catalog_to_flow(catalog)
        else:
            output = flow.plan_to_flow(catalog, root)
    except SQLFlowError as e:
        logger.error(f"Render failed: {e}")
        _fail(Console(), e)

    click.echo(output, nl=False)


@cli.command()
@click.argument('snapshot', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_dir', type=click.Path())
@click.option(
    '--format', '-f', 'image_format',
    type=click.Choice(['jpg', 'png', 'svg']),
    help='Also render images with Graphviz'
)
@click.option('--overwrite', is_flag=True, help='Replace OUTPUT_DIR if it exists')
@click.option('--root', help='Save the single plan rooted at this node id')
@click.pass_obj
def save(
    config: dict,
    snapshot: str,
    output_dir: str,
    image_format: Optional[str],
    overwrite: bool,
    root: Optional[str]
):
    """Write full and contracted flow documents of SNAPSHOT into OUTPUT_DIR."""
    logger = get_logger('cli.save')
    console = Console()

    try:
        written = save_as_flow(
            JsonCatalogProvider(snapshot),
            output_dir,
            image_format=image_format,
            overwrite=overwrite,
            root=root,
            config=config
        )
    except SQLFlowError as e:
        logger.error(f"Save failed: {e}")
        _fail(console, e)

    for name, path in written.items():
        console.print(f"[green]Wrote {escape(name)}:[/green] {escape(path)}", highlight=False)


@cli.command()
@click.argument('snapshot', type=click.Path(exists=True, dir_okay=False))
@click.option('--contracted', is_flag=True, help='Summarize the contracted graph')
@click.option('--compact', is_flag=True, help='Print one line per column edge')
@click.pass_obj
def summary(config: dict, snapshot: str, contracted: bool, compact: bool):
    """Print rich tables of the nodes and column lineage of SNAPSHOT."""
    logger = get_logger('cli.summary')
    console = Console()

    try:
        graph = SQLFlow(contracted=contracted, config=config).build_graph(JsonCatalogProvider(snapshot))
    except SQLFlowError as e:
        logger.error(f"Summary failed: {e}")
        _fail(console, e)

    formatter = ConsoleFormatter(console)
    if compact:
        formatter.format_compact(graph)
    else:
        formatter.format(graph, title="SQL Contracted Flow" if contracted else "SQL Flow")


def main():
    """Main entry point."""
    logger = get_logger('main')
    logger.info("SQLFlow starting")
    try:
        cli()
    except Exception as e:
        logger.error(f"Unexpected error in main: {str(e)}", exc_info=True)
        raise
    finally:
        logger.info("SQLFlow session ended")


if __name__ == '__main__':
    main()
