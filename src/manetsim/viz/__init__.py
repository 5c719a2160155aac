"""
Visualization utilities.

- Topology plot: nodes and links, colored by component
- Degree histogram
"""

from manetsim.viz.topology import plot_degree_histogram, plot_topology, save_figure

__all__ = ["plot_degree_histogram", "plot_topology", "save_figure"]
