import numpy as np

from sparsified_pagerank.convergence import ConvergenceTracker


def test_mark_converged_freezes_value_once():
    tracker = ConvergenceTracker(4)
    assert tracker.mark_converged(2, 0.3) is True
    assert tracker.mark_converged(2, 0.9) is False
    assert tracker.is_converged(2)
    assert not tracker.is_converged(1)
    assert tracker.converged_contribution[2] == 0.3
    assert tracker.converged_count == 1
    assert list(tracker.active_pages()) == [0, 1, 3]


def test_residual_edges_feed_destinations():
    tracker = ConvergenceTracker(3)
    tracker.mark_converged(0, 0.5)
    tracker.record_residual_edge(0, 1, 0.4)
    tracker.record_residual_edges(0, [2], [0.6])
    contribution = tracker.update_residual_contribution(np.array([0.5, 0.2, 0.3]))
    assert np.allclose(contribution, [0.0, 0.2, 0.3])
    assert np.array_equal(tracker.residual_contribution, contribution)


def test_prune_drops_links_into_converged_pages():
    tracker = ConvergenceTracker(3)
    tracker.mark_converged(0, 0.5)
    tracker.record_residual_edges(0, [1, 2], [0.4, 0.6])
    tracker.mark_converged(2, 0.1)
    tracker.prune_residual()
    assert list(tracker.residual_link_matrix.rows) == [1]
    contribution = tracker.update_residual_contribution(np.array([0.5, 0.2, 0.1]))
    assert contribution[2] == 0.0


def test_prune_on_empty_residual_is_a_noop():
    tracker = ConvergenceTracker(2)
    tracker.prune_residual()
    assert len(tracker.residual_link_matrix) == 0
