"""Flow document writing and Graphviz image rendering."""

from .renderer import FlowWriter, render_image

__all__ = ["FlowWriter", "render_image"]
