# convergence.py
#
# Project: Sparsified PageRank
#
# Description:
#   Per-page convergence bookkeeping for the sparsified solver.
#
#   Once a page has converged its value is frozen and its row and column
#   are removed from the working matrix.  Two vectors keep the removed
#   pages' influence alive:
#     converged_contribution - frozen value of every converged page
#                              (0 for the others).
#     residual_contribution  - for every non-converged page, the damped
#                              inflow from converged pages, computed from
#                              residual_link_matrix (destination x source).

import numpy as np

from sparsified_pagerank.sparse_matrix import CooMatrix


class ConvergenceTracker:
    def __init__(self, number_of_pages, residual_capacity=0):
        self.number_of_pages = number_of_pages
        self.converged = np.zeros(number_of_pages, dtype=bool)
        self.converged_contribution = np.zeros(number_of_pages, dtype=np.float64)
        self.residual_contribution = np.zeros(number_of_pages, dtype=np.float64)
        self.residual_link_matrix = CooMatrix(number_of_pages, capacity=residual_capacity)

    @property
    def converged_count(self):
        return int(np.count_nonzero(self.converged))

    def is_converged(self, page):
        return bool(self.converged[page])

    def active_pages(self):
        """Indexes of the pages that have not converged yet."""
        return np.flatnonzero(~self.converged)

    def mark_converged(self, page, value):
        """
        Freeze `page` at `value`.

        Returns True if the page was newly marked.  A page that has already
        converged keeps its original frozen value.
        """
        if self.converged[page]:
            return False
        self.converged[page] = True
        self.converged_contribution[page] = value
        return True

    def record_residual_edge(self, source, destination, weight):
        """Remember the link source -> destination of a converged source."""
        self.residual_link_matrix.append(destination, source, weight)

    def record_residual_edges(self, source, destinations, weights):
        destinations = np.asarray(destinations, dtype=np.int64)
        self.residual_link_matrix.extend(destinations,
                                         np.full(len(destinations), source, dtype=np.int64),
                                         weights)

    def prune_residual(self):
        """Drop residual links whose destination has converged since."""
        residual = self.residual_link_matrix
        if len(residual):
            self.residual_link_matrix = residual.filter(~self.converged[residual.rows])

    def update_residual_contribution(self, vector):
        """Recompute the inflow from converged pages for the current vector."""
        self.residual_contribution = self.residual_link_matrix.dot(vector)
        return self.residual_contribution
