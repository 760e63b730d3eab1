import os

import numpy as np

from sparsified_pagerank.config import Parameters
from sparsified_pagerank.stage2_matrix import build_transition_matrix, initial_vector
from sparsified_pagerank.stage3_pagerank import compute_pagerank
from sparsified_pagerank.stage4_validation import reference_pagerank, verify_with_networkx


EDGES = np.array([
    (0, 1), (0, 2), (1, 2), (2, 0), (3, 2), (3, 4), (4, 5), (5, 3), (5, 0), (4, 6),
])


def test_reference_pagerank_is_a_distribution():
    scores = reference_pagerank(EDGES, 7)
    assert scores.shape == (7,)
    assert abs(scores.sum() - 1.0) < 1e-9


def test_sparsified_result_agrees_with_networkx(tmp_path):
    parameters = Parameters(convergence_tolerance=1e-10, num_workers=2)
    result = compute_pagerank(build_transition_matrix(EDGES, 7), initial_vector(7), parameters)

    metrics = verify_with_networkx(EDGES, 7, result.vector, out_dir=str(tmp_path))

    assert metrics["mae"] < 1e-5
    assert metrics["spearman"] > 0.9
    assert os.path.exists(tmp_path / "validation_rank_correlation.png")


def test_validation_without_plot(tmp_path):
    vector = reference_pagerank(EDGES, 7)
    metrics = verify_with_networkx(EDGES, 7, vector, out_dir=str(tmp_path), plot=False)
    assert metrics["mae"] < 1e-12
    assert metrics["top5_matches"] == 5
    assert not os.listdir(tmp_path)
