"""
Topology plots: node positions and discovered links.

Nodes are projected onto the x-y plane and colored by connected
component, so network partitions stand out.
"""

from __future__ import annotations
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.collections import LineCollection
from matplotlib.figure import Figure

from manetsim.analysis.topology import summarize_topology

if TYPE_CHECKING:
    from manetsim.core.discovery import NeighborPair
    from manetsim.core.nodes import NodeTable


def plot_topology(
    table: "NodeTable",
    pairs: Iterable["NeighborPair"],
    title: str = "Network Topology",
    ax: Axes | None = None,
    figsize: tuple[float, float] = (8, 8),
    show_ids: bool = False,
    link_color: str = "0.6",
    link_width: float = 0.6,
    cmap: str = "tab20",
) -> tuple[Figure, Axes]:
    """
    Plot nodes and links in the x-y plane.

    Args:
        table: Node table (positions after the tick)
        pairs: Discovered pairs from every worker
        title: Plot title
        ax: Existing axes (creates new if None)
        show_ids: Annotate each node with its ID
        link_color: Color of link segments
        link_width: Width of link segments
        cmap: Colormap for component coloring

    Returns:
        (fig, ax) tuple
    """
    pairs = list(pairs)
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    xy = table.positions[:, :2]
    summary = summarize_topology(pairs, len(table))

    links = {p.unordered() for p in pairs}
    segments = [xy[sorted(link)] for link in links]
    if segments:
        ax.add_collection(LineCollection(segments, colors=link_color, linewidths=link_width, zorder=1))

    ax.scatter(
        xy[:, 0], xy[:, 1],
        c=summary.component_labels if len(table) else None,
        cmap=cmap, s=20, zorder=2, edgecolors="black", linewidths=0.3,
    )
    if show_ids:
        for node_id, (x, y) in enumerate(xy):
            ax.annotate(str(node_id), (x, y), fontsize=7, xytext=(3, 3), textcoords="offset points")

    ax.set_xlabel("x (m)")
    ax.set_ylabel("y (m)")
    ax.set_aspect("equal")
    ax.set_title(
        f"{title}\n{len(table)} nodes, {summary.link_count} links, "
        f"{summary.n_components} components"
    )
    ax.autoscale_view()
    return fig, ax


def plot_degree_histogram(
    pairs: Iterable["NeighborPair"],
    node_count: int,
    ax: Axes | None = None,
    figsize: tuple[float, float] = (6, 4),
) -> tuple[Figure, Axes]:
    """Histogram of undirected node degree."""
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    degree = summarize_topology(pairs, node_count).degree
    bins = np.arange(degree.max() + 2) - 0.5 if node_count else 1
    ax.hist(degree, bins=bins, color="steelblue", edgecolor="black")
    ax.set_xlabel("Degree")
    ax.set_ylabel("Nodes")
    ax.set_title("Degree distribution")
    return fig, ax


def save_figure(fig: Figure, path: str | Path, dpi: int = 150, **kwargs) -> None:
    """Save figure to file."""
    fig.savefig(path, dpi=dpi, bbox_inches="tight", **kwargs)
