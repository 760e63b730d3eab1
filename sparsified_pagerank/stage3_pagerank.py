# stage3_pagerank.py
#
# Project: Sparsified PageRank
#
# Description:
#   Stage 3 - PageRank by power iteration on the sparse transition matrix,
#   with converged-page removal ("sparsification").
#
# References:
#   [1] Page, L., Brin, S., Motwani, R., & Winograd, T. (1999).
#       "The PageRank Citation Ranking: Bringing Order to the Web."
#       http://ilpubs.stanford.edu:8090/422/1/1999-66.pdf
#
#   [2] Kamvar, S., Haveliwala, T., & Golub, G. (2003).
#       "Adaptive Methods for the Computation of PageRank."
#       Linear Algebra and its Applications, 386, 51-65.
#       - Pages whose value has stopped changing are frozen and their
#         rows/columns are no longer recomputed.
#
# Key ideas:
#   1. The matrix is P^T in CSR form, so one multiply gives, for every page,
#      the sum of PR(j)/C(j) over the pages j linking to it.
#   2. Probability mass that leaves through damping and dangling pages is
#      measured as ||previous||_1 - ||next||_1 and handed back uniformly
#      (scaled by the configurable teleport_correction factor; see
#      next_pagerank for the two correction formulas).
#   3. Every few iterations pages whose relative change fell below the
#      tolerance are frozen.  Their row and column are zeroed in the working
#      matrix, their value is carried by converged_contribution and their
#      out-links to pages still iterating are kept in a small residual COO
#      matrix whose product with the vector is added back every iteration.

from collections import namedtuple
from enum import Enum

import numpy as np

from sparsified_pagerank.config import ACTIVE_SHARE, UNIFORM
from sparsified_pagerank.convergence import ConvergenceTracker
from sparsified_pagerank.parallel import WorkerPool
from sparsified_pagerank.utils import (
    print_stage, print_step, print_success, print_warning, print_iteration,
    print_summary_box, print_vector_preview, Timer,
)


class SolverState(Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    MAX_ITERATIONS_REACHED = "max_iterations_reached"


class AllocationFailure(MemoryError):
    """The solver could not allocate its working vectors."""


PagerankResult = namedtuple("PagerankResult", ["vector", "iterations", "converged", "state", "tracker"])


def vector_norm(vector):
    """L1 norm."""
    return float(np.abs(vector).sum())


def relative_change(current, previous):
    """
    |current - previous| / |previous| per page.

    A page whose previous value is 0 has change 0 if it is still 0 and an
    unbounded (inf) change otherwise.
    """
    difference = np.abs(current - previous)
    magnitude = np.abs(previous)
    change = np.full(difference.shape, np.inf)
    nonzero = magnitude != 0.0
    change[nonzero] = difference[nonzero] / magnitude[nonzero]
    change[~nonzero & (difference == 0.0)] = 0.0
    return change


def next_pagerank(matrix, previous, tracker, damping_factor, teleport_correction=1.0, pool=None,
                  correction_formula=ACTIVE_SHARE):
    """
    One PageRank step on the working (sparsified) matrix.

    While no page has converged both formulas give the textbook update

        next = alpha * P^T x + c * (||x||_1 - ||alpha * P^T x||_1) / N

    UNIFORM keeps that expression after sparsification and adds the
    converged and residual contributions on top.  ACTIVE_SHARE gives
    converged pages exactly their frozen value and hands the lost mass,
    measured after the contributions, only to the pages still iterating.
    """
    result = matrix.dot(previous, pool)
    result *= damping_factor

    if correction_formula == UNIFORM:
        lost_mass = vector_norm(previous) - vector_norm(result)
        result += teleport_correction * lost_mass / len(result)
        result += tracker.converged_contribution
        result += tracker.residual_contribution
        return result

    result += tracker.converged_contribution
    result += tracker.residual_contribution

    lost_mass = vector_norm(previous) - vector_norm(result)
    if tracker.converged_count == 0:
        result += teleport_correction * lost_mass / len(result)
    else:
        active = tracker.active_pages()
        if len(active):
            result[active] += teleport_correction * lost_mass / len(active)
    return result


def find_converged_pages(current, previous, tracker, tolerance, pool):
    """Pages not yet converged whose relative change is below tolerance."""
    newly_converged = np.zeros(len(current), dtype=bool)
    already = tracker.converged

    def _check_pages(start, stop):
        change = relative_change(current[start:stop], previous[start:stop])
        newly_converged[start:stop] = ~already[start:stop] & (change < tolerance)

    pool.parallel_for(_check_pages, len(current))
    return np.flatnonzero(newly_converged)


def sparsify(matrix, tracker, current, previous, parameters, pool):
    """
    Freeze the pages that stopped changing and drop them from the matrix.

    All pages are checked (and marked) before any row or column is zeroed,
    so the residual links of a page are captured while they still exist.
    Pages are then removed one at a time.  Residual links carry the damped
    weight under ACTIVE_SHARE and the plain matrix weight under UNIFORM.

    Returns:
        int: number of newly converged pages
    """
    pages = find_converged_pages(current, previous, tracker,
                                 parameters.convergence_tolerance, pool)
    scale = 1.0 if parameters.correction_formula == UNIFORM else parameters.damping_factor
    for page in pages:
        tracker.mark_converged(page, current[page])

    for page in pages:
        # Column `page` of P^T holds the out-links of `page`.
        targets, weights = matrix.column(page, pool)
        keep = ~tracker.converged[targets]
        tracker.record_residual_edges(page, targets[keep], scale * weights[keep])
        matrix.zero_row(page)
        matrix.zero_column(page, pool)

    if len(pages):
        tracker.prune_residual()
        tracker.update_residual_contribution(current)
    return len(pages)


def compute_pagerank(matrix, vector, parameters, sink=None, callback=None):
    """
    Run the sparsified PageRank iteration.

    Each iteration:
      1. previous = current vector
      2. next = damped multiply + converged/residual contributions + teleport
      3. history mode: next is written to the sink
      4. every convergence_check_period iterations: delta = ||next - previous||_1,
         delta < tolerance ends the run
      5. every sparsify_period iterations (not iteration 0): freeze pages
         whose relative change is below tolerance and remove them from the
         matrix
      6. stop when converged or when max_iterations (if non-zero) is reached

    The matrix is modified in place.

    Args:
        matrix (CsrMatrix): P^T, owned by the solver for the run
        vector (array-like): Initial PageRank vector (copied)
        parameters (Parameters): Run configuration
        sink (PagerankSink|None): Receives the history or the final vector
        callback (callable|None): Called as callback(iteration, vector, tracker)
                  after every iteration

    Returns:
        PagerankResult: (vector, iterations, converged, state, tracker)
    """
    n = matrix.number_of_pages
    if n == 0:
        raise ValueError("cannot rank an empty graph")
    if np.shape(vector) != (n,):
        raise ValueError(f"initial vector length {np.shape(vector)} != {n} pages")

    verbose = parameters.verbose
    if verbose:
        print_stage("PageRank", "Computing PageRank scores")

    with Timer("Total Stage 3", quiet=not verbose):
        try:
            # ---------------------------------------------------------------
            # Step 1 - Working state
            # ---------------------------------------------------------------
            current = np.array(vector, dtype=np.float64)
            tracker = ConvergenceTracker(n, residual_capacity=matrix.nnz)

            state = SolverState.RUNNING
            iterations = 0
            delta = None

            # ---------------------------------------------------------------
            # Step 2 - Iterate
            # ---------------------------------------------------------------
            if verbose:
                print_step(f"Running iterations with {parameters.workers} worker(s)...")
            with WorkerPool(parameters.workers) as pool:
                while state is SolverState.RUNNING:
                    previous = current
                    current = next_pagerank(matrix, previous, tracker,
                                            parameters.damping_factor,
                                            parameters.teleport_correction, pool,
                                            parameters.correction_formula)

                    if parameters.history and sink is not None:
                        sink.write(current, append=iterations != 0)

                    if iterations % parameters.convergence_check_period == 0:
                        delta = vector_norm(current - previous)
                        if delta < parameters.convergence_tolerance:
                            state = SolverState.CONVERGED

                    if iterations and iterations % parameters.sparsify_period == 0:
                        sparsify(matrix, tracker, current, previous, parameters, pool)

                    iterations += 1
                    if verbose:
                        print_iteration(iterations, delta, tracker.converged_count)
                    if callback is not None:
                        callback(iterations, current, tracker)

                    if (state is SolverState.RUNNING and parameters.max_iterations
                            and iterations >= parameters.max_iterations):
                        state = SolverState.MAX_ITERATIONS_REACHED
        except MemoryError as e:
            raise AllocationFailure(f"out of memory while iterating over {n} pages") from e

        # ---------------------------------------------------------------
        # Step 3 - Output
        # ---------------------------------------------------------------
        if not parameters.history and sink is not None:
            sink.write(current, append=False)

        converged = state is SolverState.CONVERGED
        if verbose:
            if converged:
                print_success(f"Converged after {iterations} iterations")
            else:
                print_warning(f"Stopped after {iterations} iterations without converging")
            print_summary_box("Stage 3 Summary", {
                "Iterations": iterations,
                "Final delta": f"{delta:.10f}",
                "Converged pages": f"{tracker.converged_count}/{n}",
                "Residual links": len(tracker.residual_link_matrix),
                "Live matrix entries": f"{matrix.nonzero_count()}/{matrix.nnz}",
                "Vector L1 norm": f"{vector_norm(current):.8f}",
            })
            print_vector_preview(current)

    return PagerankResult(current, iterations, converged, state, tracker)
