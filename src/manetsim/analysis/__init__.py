"""
Analysis layer: derived quantities over discovered links.

IMPORTANT: This is NOT seen by the tick pipeline. One-way derivation only.

- adjacency_matrix: sparse directed adjacency from discovered pairs
- summarize_topology: components, degree, asymmetric links
"""

from manetsim.analysis.topology import TopologySummary, adjacency_matrix, summarize_topology

__all__ = ["TopologySummary", "adjacency_matrix", "summarize_topology"]
