# stage4_validation.py
#
# Project: Sparsified PageRank
#
# Description:
#   Stage 4 - Validate the sparsified PageRank against NetworkX using
#   standard ranking metrics (Spearman's rho, Kendall's tau, MAE, Precision@5).
#
# References:
#   [1] Spearman, C. (1904).
#       "The Proof and Measurement of Association between Two Things."
#       American Journal of Psychology, 15(1), 72-101.
#
#   [2] Kendall, M. (1938).
#       "A New Measure of Rank Correlation."
#       Biometrika, 30(1/2), 81-93.
#
#   This file invokes nx.MultiDiGraph() and nx.pagerank() at runtime as a
#   reference implementation.  A MultiDiGraph is used so that repeated
#   links carry the same extra weight they have in our transition matrix.
#
# Metrics used:
#   Score-level:  Mean Absolute Error (MAE) of the L1-normalized vectors.
#   Rank-level:   Spearman's rho and Kendall's tau over all N pages.
#   Top-K level:  Precision@5 (set overlap) and positional rank match.

import os
import numpy as np
from scipy.stats import spearmanr, kendalltau, rankdata
import matplotlib
matplotlib.use('Agg')  # non-interactive backend for saving to file
import matplotlib.pyplot as plt
import networkx as nx
from sparsified_pagerank.utils import (
    print_stage, print_step, print_success, print_summary_box,
    print_side_by_side_boxes, Timer,
)

DOCS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'docs')


def _plot_validation(custom_scores, nx_scores, rho, tau, out_dir):
    """
    Save rank-vs-rank and score-vs-score scatter plots to out_dir.

    Returns:
        str: path of the saved figure
    """
    custom_ranks = rankdata(-custom_scores, method='ordinal')
    nx_ranks = rankdata(-nx_scores, method='ordinal')

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 6))

    ax1.scatter(nx_ranks, custom_ranks, s=1, alpha=0.3, c='steelblue')
    rank_max = max(custom_ranks.max(), nx_ranks.max())
    ax1.plot([1, rank_max], [1, rank_max], 'r--', linewidth=1, label='Perfect agreement')
    ax1.set_xlabel('NetworkX Rank')
    ax1.set_ylabel('Sparsified Rank')
    ax1.set_title(f'Rank vs Rank  (Spearman rho = {rho:.6f})')
    ax1.legend(loc='upper left')
    ax1.set_aspect('equal')

    ax2.scatter(nx_scores, custom_scores, s=1, alpha=0.3, c='darkorange')
    score_min = min(nx_scores.min(), custom_scores.min())
    score_max = max(nx_scores.max(), custom_scores.max())
    ax2.plot([score_min, score_max], [score_min, score_max], 'r--', linewidth=1, label='y = x')
    ax2.set_xlabel('NetworkX PageRank Score')
    ax2.set_ylabel('Sparsified PageRank Score')
    ax2.set_title(f'Score vs Score  (Kendall tau = {tau:.6f})')
    ax2.legend(loc='upper left')

    fig.suptitle('Sparsified PageRank vs NetworkX PageRank', fontsize=14, fontweight='bold')
    fig.tight_layout()

    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, 'validation_rank_correlation.png')
    fig.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return path


def reference_pagerank(edges, number_of_pages, damping_factor=0.85):
    """NetworkX PageRank as an array indexed by page."""
    G = nx.MultiDiGraph()
    G.add_nodes_from(range(number_of_pages))
    G.add_edges_from((int(u), int(v)) for u, v in np.asarray(edges).reshape(-1, 2))
    nx_pr = nx.pagerank(G, alpha=damping_factor)
    return np.array([nx_pr[page] for page in range(number_of_pages)])


def verify_with_networkx(edges, number_of_pages, vector, damping_factor=0.85,
                         out_dir=DOCS_DIR, plot=True):
    """
    Compare a PageRank vector with NetworkX's PageRank.

    Args:
        edges: (E, 2) array of (from, to) page indexes
        number_of_pages (int): Number of pages
        vector (numpy.ndarray): Our PageRank vector
        damping_factor (float): alpha used for both runs
        out_dir (str): Directory for the scatter plots
        plot (bool): Save the scatter plots

    Returns:
        dict: mae, max_error, spearman, kendall, top5_matches, top5_overlap
    """
    print_stage("Verify", "Comparing with NetworkX PageRank")

    with Timer("NetworkX verification"):
        print_step("Computing NetworkX PageRank...")
        nx_scores = reference_pagerank(edges, number_of_pages, damping_factor)

        # NetworkX returns a distribution; compare shapes, not total mass.
        custom_scores = np.asarray(vector, dtype=np.float64)
        custom_scores = custom_scores / custom_scores.sum()

        # Score level
        abs_errors = np.abs(custom_scores - nx_scores)
        mae = float(abs_errors.mean())
        max_err = float(abs_errors.max())
        max_err_page = int(abs_errors.argmax())

        # Rank level
        rho, rho_p = spearmanr(custom_scores, nx_scores)
        tau, tau_p = kendalltau(custom_scores, nx_scores)

        print_summary_box("Validation Metrics", {
            "MAE (score)": f"{mae:.2e}",
            "Max error":   f"{max_err:.2e} (Page {max_err_page})",
            "Spearman rho [1]": f"{rho:.6f} (p={rho_p:.2e})",
            "Kendall tau  [2]": f"{tau:.6f} (p={tau_p:.2e})",
        })

        # Top-5
        nx_top5 = list(np.argsort(-nx_scores, kind='stable')[:5])
        custom_top5 = list(np.argsort(-custom_scores, kind='stable')[:5])

        print_side_by_side_boxes(
            "Sparsified Top 5", {f"#{i+1} Page {p}": f"{custom_scores[p]:.8f}" for i, p in enumerate(custom_top5)},
            "NetworkX Top 5", {f"#{i+1} Page {p}": f"{nx_scores[p]:.8f}" for i, p in enumerate(nx_top5)},
        )

        rank_matches = sum(1 for a, b in zip(custom_top5, nx_top5) if a == b)
        overlap = set(nx_top5) & set(custom_top5)

        if rank_matches == len(nx_top5):
            print_success("Top 5 matches perfectly (same pages, same order)")
        else:
            print_step(f"Top 5 positional match: {rank_matches}/{len(nx_top5)}")
            print_step(f"Top 5 Precision@5:      {len(overlap)}/{len(nx_top5)}")

        if plot:
            plot_path = _plot_validation(custom_scores, nx_scores, rho, tau, out_dir)
            print_success(f"Scatter plots saved to {plot_path}")

    return {
        "mae": mae,
        "max_error": max_err,
        "spearman": float(rho),
        "kendall": float(tau),
        "top5_matches": rank_matches,
        "top5_overlap": len(overlap),
    }
