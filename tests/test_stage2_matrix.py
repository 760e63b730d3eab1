import numpy as np
import pytest
import scipy.sparse as sp

from sparsified_pagerank.stage1_read import Graph
from sparsified_pagerank.stage2_matrix import (
    build_matrix, build_transition_matrix, compute_link_stats, initial_vector, run_stats,
)


def dense(csr):
    n = csr.number_of_pages
    return sp.csr_matrix((csr.values, csr.column_indexes, csr.row_offsets), shape=(n, n)).toarray()


def test_transition_matrix_is_transposed_and_normalized():
    edges = [(0, 1), (0, 2), (1, 2), (2, 0)]
    matrix = build_transition_matrix(edges, 4)

    expected = np.zeros((4, 4))
    expected[1, 0] = 0.5
    expected[2, 0] = 0.5
    expected[2, 1] = 1.0
    expected[0, 2] = 1.0
    assert np.allclose(dense(matrix), expected)
    # Page 3 is dangling: empty column, empty row.
    assert matrix.row_offsets[4] - matrix.row_offsets[3] == 0
    assert np.allclose(dense(matrix).sum(axis=0), [1, 1, 1, 0])


def test_duplicate_links_count_towards_out_degree():
    matrix = build_transition_matrix([(0, 1), (0, 1), (0, 2)], 3)
    assert np.allclose(dense(matrix)[:, 0], [0.0, 2 / 3, 1 / 3])


def test_empty_edge_list_gives_all_dangling_matrix():
    matrix = build_transition_matrix(np.empty((0, 2), dtype=np.int64), 1)
    assert matrix.number_of_pages == 1
    assert matrix.nnz == 0


def test_edges_outside_the_page_range_are_rejected():
    with pytest.raises(IndexError):
        build_transition_matrix([(0, 5)], 3)


def test_initial_vector_is_uniform():
    vector = initial_vector(8)
    assert vector.shape == (8,)
    assert np.allclose(vector, 0.125)


def test_link_stats():
    stats = compute_link_stats([0, 1, 2, 3, 4])
    assert stats["Min"] == 0
    assert stats["Max"] == 4
    assert stats["Average"] == "2.00"
    assert stats["Zero-link pages"] == 1


def test_run_stats_reports_both_directions(capsys):
    graph = Graph(np.array([[0, 1], [0, 2], [1, 2]]), 3, None, None, "mem")
    outgoing, incoming = run_stats(graph)
    assert outgoing["Max"] == 2
    assert incoming["Max"] == 2
    assert outgoing["Zero-link pages"] == 1
    assert incoming["Zero-link pages"] == 1
    assert "Outgoing Link Statistics" in capsys.readouterr().out


def test_build_matrix_returns_matrix_and_vector():
    graph = Graph(np.array([[0, 1], [1, 0]]), 2, None, None, "mem")
    matrix, vector = build_matrix(graph)
    assert matrix.nnz == 2
    assert np.allclose(vector, 0.5)
