"""Writes flow documents to disk and renders them with Graphviz."""

import os
import shutil
from pathlib import Path
from typing import Dict, Optional, Union

import graphviz

from ..core.errors import DestinationExistsError, ExternalToolUnavailableError, UnsupportedFormatError
from ..core.models import LineageGraph
from ..formatters.dot_formatter import DotFormatter
from ..utils.logging_config import get_logger, log_performance
from ..utils.validation import validate_image_format, validate_output_path

FLOW_FILE_NAME = 'sqlflow'
CONTRACTED_FLOW_FILE_NAME = 'sqlflow-contracted'

logger = get_logger('renderer')


def render_image(dot_path: Union[str, Path], image_format: str, output_path: Union[str, Path]) -> str:
    """
    Render a DOT file to an image with the Graphviz ``dot`` executable.

    Args:
        dot_path: Existing DOT document
        image_format: One of jpg, png, svg
        output_path: Image file to create

    Returns:
        Path to the rendered image

    Raises:
        UnsupportedFormatError: for formats outside the allowed set
        ExternalToolUnavailableError: if ``dot`` is not installed
    """
    if validate_image_format(image_format):
        raise UnsupportedFormatError(image_format)

    try:
        return graphviz.render('dot', image_format, str(dot_path), outfile=str(output_path))
    except graphviz.ExecutableNotFound as e:
        raise ExternalToolUnavailableError(
            f"Graphviz 'dot' executable not found; cannot render {dot_path} as {image_format}"
        ) from e


class FlowWriter:
    """Writes the full and contracted DOT documents of one catalog into a directory."""

    def __init__(self, formatter: Optional[DotFormatter] = None):
        self.formatter = formatter or DotFormatter()

    @log_performance(logger)
    def write(
        self,
        graph: LineageGraph,
        contracted: LineageGraph,
        path: Union[str, Path],
        image_format: Optional[str] = None,
        overwrite: bool = False
    ) -> Dict[str, str]:
        """
        Write ``sqlflow.dot`` and ``sqlflow-contracted.dot`` (plus images) under ``path``.

        The format and the destination are checked before anything touches
        the filesystem.

        Args:
            graph: Full lineage graph
            contracted: Contracted lineage graph
            path: Destination directory; must not exist unless ``overwrite``
            image_format: Optional image format rendered next to each document
            overwrite: Replace an existing destination

        Returns:
            Mapping of document name (``sqlflow``, ``sqlflow-contracted`` and
            their ``.<fmt>`` variants) to written file path

        Raises:
            UnsupportedFormatError: if ``image_format`` is not allowed
            DestinationExistsError: if ``path`` exists and overwrite is off
        """
        if validate_image_format(image_format):
            logger.error(f"Rejected image format {image_format}")
            raise UnsupportedFormatError(image_format)

        destination = str(path)
        if validate_output_path(destination, overwrite):
            logger.error(f"Output path {destination} already exists")
            raise DestinationExistsError(destination)

        if os.path.exists(destination):
            logger.info(f"Replacing existing output at {destination}")
            if os.path.isdir(destination):
                shutil.rmtree(destination)
            else:
                os.remove(destination)
        os.makedirs(destination)

        written: Dict[str, str] = {}
        for name, flow in ((FLOW_FILE_NAME, graph), (CONTRACTED_FLOW_FILE_NAME, contracted)):
            dot_path = os.path.join(destination, f"{name}.dot")
            self.formatter.format_to_file(flow, dot_path)
            written[name] = dot_path
            logger.info(f"Wrote {dot_path}")

            if image_format:
                image_path = os.path.join(destination, f"{name}.{image_format}")
                try:
                    written[f"{name}.{image_format}"] = render_image(dot_path, image_format, image_path)
                except ExternalToolUnavailableError as e:
                    logger.warning(f"Skipping image rendering: {e}")

        return written
