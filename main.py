# main.py
#
# Project: Sparsified PageRank
#
# Description:
#   Entry point. Reads an edge-list web graph, builds the normalized
#   transition matrix, runs the sparsified PageRank iteration and writes the
#   result vector (or the whole history) to a file.  Optionally prints link
#   statistics and validates the result against NetworkX.
#
# Usage:
#   python main.py [-c tol] [-m max_iterations] [-a alpha] [-v] [-H]
#                  [-o output_filename] [-w workers]
#                  [--teleport-correction c] [--correction-formula f] <graph_file>
#
# References:
#   [1] Page, L., Brin, S., Motwani, R., & Winograd, T. (1999).
#       "The PageRank Citation Ranking: Bringing Order to the Web."
#       http://ilpubs.stanford.edu:8090/422/1/1999-66.pdf

import argparse
import sys

from google.api_core.exceptions import GoogleAPIError

import sparsified_pagerank.stage1_read
import sparsified_pagerank.stage2_matrix
import sparsified_pagerank.stage3_pagerank
import sparsified_pagerank.stage4_validation
import sparsified_pagerank.utils as utils
from sparsified_pagerank.config import ACTIVE_SHARE, CORRECTION_FORMULAS, DEFAULT_OUTPUT_FILENAME, Parameters
from sparsified_pagerank.sinks import FileSink


def _positive_float(text):
    value = float(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {text}")
    return value


def _alpha(text):
    value = float(text)
    if not 0 < value <= 1:
        raise argparse.ArgumentTypeError(f"must be in (0, 1], got {text}")
    return value


def _non_negative_int(text):
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {text}")
    return value


def build_parser():
    parser = argparse.ArgumentParser(description="PageRank with converged-page removal")
    parser.add_argument('graph_file', help="Edge list: local path, gs://bucket/object or http(s) URL")
    parser.add_argument('-c', '--convergence', type=_positive_float, default=1e-6,
                        help="Convergence tolerance (default: 1e-6)")
    parser.add_argument('-m', '--max-iterations', type=_non_negative_int, default=0,
                        help="Maximum number of iterations, 0 = unbounded (default: 0)")
    parser.add_argument('-a', '--alpha', type=_alpha, default=0.85,
                        help="Damping factor (default: 0.85)")
    parser.add_argument('-v', '--verbose', action='store_true', help="Verbose output")
    parser.add_argument('-H', '--history', action='store_true',
                        help="Write the vector of every iteration to the output file")
    parser.add_argument('-o', '--output', default=DEFAULT_OUTPUT_FILENAME,
                        help=f"Output filename (default: {DEFAULT_OUTPUT_FILENAME})")
    parser.add_argument('-w', '--workers', type=int, default=None,
                        help="Worker threads (default: all CPUs)")
    parser.add_argument('--teleport-correction', type=float, default=1.0,
                        help="Factor on the redistributed teleportation mass (default: 1.0)")
    parser.add_argument('--correction-formula', choices=CORRECTION_FORMULAS, default=ACTIVE_SHARE,
                        help="How lost mass is handed back once pages converge; "
                             "uniform with --teleport-correction 0.5 is the legacy update "
                             f"(default: {ACTIVE_SHARE})")
    parser.add_argument('--stats', action='store_true', help="Print link statistics of the graph")
    parser.add_argument('--validate', action='store_true', help="Compare the result with NetworkX")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        parameters = Parameters.from_args(args)
    except ValueError as e:
        parser.error(str(e))

    if parameters.verbose:
        utils.print_project_banner(parameters)

    try:
        # Stage 1
        graph = sparsified_pagerank.stage1_read.read_graph(parameters.graph_source, verbose=parameters.verbose)
        if args.stats:
            sparsified_pagerank.stage2_matrix.run_stats(graph)

        # Stage 2
        matrix, vector = sparsified_pagerank.stage2_matrix.build_matrix(graph, verbose=parameters.verbose)

        # Stage 3
        result = sparsified_pagerank.stage3_pagerank.compute_pagerank(
            matrix, vector, parameters, sink=FileSink(parameters.output_filename)
        )
    except (OSError, ValueError, GoogleAPIError) as e:
        utils.print_error(str(e))
        return 1

    print(f"Iterations: {result.iterations}, converged: {result.converged}, "
          f"output: {parameters.output_filename}")

    # Stage 4
    if args.validate:
        sparsified_pagerank.stage4_validation.verify_with_networkx(
            graph.edges, graph.number_of_pages, result.vector, parameters.damping_factor
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
