"""Unit tests for link-graph analysis and the topology plot."""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from manetsim.analysis.topology import adjacency_matrix, summarize_topology
from manetsim.core.discovery import NeighborPair, build_index, discover_neighbors
from manetsim.core.nodes import NodeTable
from manetsim.core.partition import IndexShard
from manetsim.viz.topology import plot_degree_histogram, plot_topology, save_figure


def discover_all(table):
    return list(discover_neighbors(table, build_index(table), IndexShard(0, len(table))))


class TestAdjacency:
    """Tests for adjacency_matrix."""

    def test_directed_entries(self):
        adj = adjacency_matrix([NeighborPair(0, 1), NeighborPair(2, 1)], 3).toarray()
        assert adj.tolist() == [[0, 1, 0], [0, 0, 0], [0, 1, 0]]

    def test_duplicates_collapse(self):
        adj = adjacency_matrix([NeighborPair(0, 1)] * 3, 2)
        assert adj.toarray().tolist() == [[0, 1], [0, 0]]


class TestSummary:
    """Tests for summarize_topology."""

    def test_line_table(self, line_table):
        summary = summarize_topology(discover_all(line_table), len(line_table))
        assert summary.link_count == 2
        assert summary.n_components == 2
        assert summary.largest_component == 2
        assert summary.asymmetric_links == 0
        assert summary.degree.tolist() == [1, 1, 1, 1]
        assert summary.mean_degree == 1.0
        assert summary.component_labels[0] == summary.component_labels[1]
        assert summary.component_labels[1] != summary.component_labels[2]

    def test_isolated_nodes(self):
        table = NodeTable.from_positions(
            [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (500.0, 0.0, 0.0)], radio_range=2.0,
        )
        summary = summarize_topology(discover_all(table), 3)
        assert summary.isolated_nodes.tolist() == [2]
        assert summary.n_components == 2

    def test_asymmetric_link(self):
        summary = summarize_topology([NeighborPair(0, 1)], 2)
        assert summary.link_count == 1
        assert summary.asymmetric_links == 1
        assert summary.n_components == 1

    def test_empty(self):
        summary = summarize_topology([], 0)
        assert summary.link_count == 0
        assert summary.largest_component == 0
        assert summary.mean_degree == 0.0

    def test_fully_connected(self, rng):
        table = NodeTable.from_positions(rng.uniform(0, 10, size=(12, 3)), radio_range=100.0)
        summary = summarize_topology(discover_all(table), 12)
        assert summary.link_count == 12 * 11 // 2
        assert summary.n_components == 1
        assert np.all(summary.degree == 11)


class TestPlot:
    """Smoke tests for the topology plots."""

    def test_plot_topology(self, line_table, tmp_path):
        fig, ax = plot_topology(line_table, discover_all(line_table), show_ids=True)
        assert "2 links" in ax.get_title()
        assert "2 components" in ax.get_title()
        save_figure(fig, tmp_path / "topology.png")
        assert (tmp_path / "topology.png").exists()

    def test_plot_degree_histogram(self, line_table):
        fig, ax = plot_degree_histogram(discover_all(line_table), len(line_table))
        assert ax.get_xlabel() == "Degree"

    @pytest.mark.parametrize("n", [0, 1])
    def test_plot_without_links(self, n):
        table = NodeTable.from_positions(np.zeros((n, 3)))
        fig, ax = plot_topology(table, [])
        assert "0 links" in ax.get_title()
