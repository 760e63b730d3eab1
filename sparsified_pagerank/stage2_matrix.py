# stage2_matrix.py
#
# Project: Sparsified PageRank
#
# Description:
#   Stage 2 - Build the transition matrix and report link statistics.
#
#   The edge list is loaded into a COO matrix preallocated to exactly the
#   number of edges, each row is normalized by the page's out-degree,
#   the matrix is transposed in place (the solver multiplies by P^T) and
#   finally converted to CSR.
#
#   Duplicate edges are kept: a page linking twice to the same target has
#   out-degree 2 and both entries end up in the same CSR row, so the link
#   carries twice the weight of a single one.

import numpy as np

from sparsified_pagerank.sparse_matrix import CooMatrix
from sparsified_pagerank.utils import print_stage, print_step, print_success, print_side_by_side_boxes, Timer


def build_transition_matrix(edges, number_of_pages):
    """
    Build the transposed, row-normalized transition matrix.

    Args:
        edges: (E, 2) array-like of (from, to) page indexes
        number_of_pages (int): Matrix dimension

    Returns:
        CsrMatrix: P^T, where P[i][j] = 1/outDegree(i) for every link i -> j.
                   Columns of dangling pages are empty.
    """
    edges = np.asarray(edges, dtype=np.int64).reshape(-1, 2)

    coo = CooMatrix(number_of_pages, capacity=len(edges), fixed=True)
    coo.extend(edges[:, 0], edges[:, 1], 1.0)

    out_degree = np.bincount(coo.rows, minlength=number_of_pages)
    coo.values[:] = 1.0 / out_degree[coo.rows]

    return coo.transpose().to_csr()


def initial_vector(number_of_pages):
    """Uniform starting vector, 1/N for every page."""
    return np.full(number_of_pages, 1.0 / number_of_pages, dtype=np.float64)


def compute_link_stats(link_counts):
    """
    Summary statistics for a list of per-page link counts.

    Args:
        link_counts (array-like[int]): Number of links per page

    Returns:
        dict: Label -> formatted value
    """
    values = np.asarray(link_counts)

    return {
        "Min": int(np.min(values)),
        "Max": int(np.max(values)),
        "Average": f"{np.mean(values):.2f}",
        "Median": f"{np.median(values):.2f}",
        "Q1 (20th)": f"{np.percentile(values, 20):.2f}",
        "Q2 (40th)": f"{np.percentile(values, 40):.2f}",
        "Q3 (60th)": f"{np.percentile(values, 60):.2f}",
        "Q4 (80th)": f"{np.percentile(values, 80):.2f}",
        "Zero-link pages": int(np.count_nonzero(values == 0)),
    }


def run_stats(graph):
    """
    Compute and display out-degree and in-degree statistics of a graph.

    Returns:
        tuple: (outgoing_stats dict, incoming_stats dict)
    """
    print_stage("Stats", "Computing link statistics")

    with Timer("Link statistics"):
        edges = np.asarray(graph.edges).reshape(-1, 2)
        outgoing_counts = np.bincount(edges[:, 0], minlength=graph.number_of_pages)
        incoming_counts = np.bincount(edges[:, 1], minlength=graph.number_of_pages)

        outgoing_stats = compute_link_stats(outgoing_counts)
        incoming_stats = compute_link_stats(incoming_counts)

        print_side_by_side_boxes(
            "Outgoing Link Statistics", outgoing_stats,
            "Incoming Link Statistics", incoming_stats,
        )

    return outgoing_stats, incoming_stats


def build_matrix(graph, verbose=False):
    """
    Stage 2 entry point: transition matrix and uniform initial vector.

    Returns:
        tuple: (CsrMatrix, numpy.ndarray)
    """
    if verbose:
        print_stage("Matrix", "Building normalized transition matrix")

    with Timer("Total Stage 2", quiet=not verbose):
        matrix = build_transition_matrix(graph.edges, graph.number_of_pages)
        vector = initial_vector(graph.number_of_pages)

        if verbose:
            dangling = int(np.count_nonzero(
                np.bincount(np.asarray(graph.edges).reshape(-1, 2)[:, 0],
                            minlength=graph.number_of_pages) == 0))
            print_step(f"Dangling pages (no out-links): {dangling}")
            print_success(f"Matrix: {matrix.number_of_pages} pages, {matrix.nnz} non-zero elements")

    return matrix, vector
