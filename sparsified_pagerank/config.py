# config.py
#
# Project: Sparsified PageRank
#
# Description:
#   Immutable run configuration. Everything the solver and the pipeline
#   stages need is carried by one Parameters instance that main.py builds
#   from the command line.

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_OUTPUT_FILENAME = "pagerank_output"

# Teleportation correction formulas.
#   active_share - lost mass measured after the converged and residual
#                  contributions, shared among the pages still iterating.
#   uniform      - lost mass of the damped multiply alone, shared among all
#                  pages; residual links keep their undamped weight.
ACTIVE_SHARE = "active_share"
UNIFORM = "uniform"
CORRECTION_FORMULAS = (ACTIVE_SHARE, UNIFORM)


@dataclass(frozen=True)
class Parameters:
    """
    Configuration for a single PageRank run.

    Attributes:
        damping_factor: alpha, probability of following an out-link. In (0, 1].
        convergence_tolerance: epsilon for both the global L1 test and the
            per-page relative change test. Must be > 0.
        max_iterations: iteration cap, 0 means unbounded.
        graph_source: local path, gs:// URI or http(s):// URL of the graph.
        output_filename: where the file sink writes the vector(s).
        verbose: print per-stage and per-iteration details.
        history: emit the vector of every iteration instead of only the last.
        teleport_correction: factor on the redistributed teleportation mass.
            1.0 conserves the total mass; 0.5 together with the uniform
            formula is the legacy update.
        correction_formula: ACTIVE_SHARE or UNIFORM, how the lost mass is
            measured and handed back once pages have converged.
        num_workers: worker threads for the parallel loops (None = all CPUs).
        convergence_check_period: iterations between global delta checks.
        sparsify_period: iterations between converged-page removal passes.
    """
    damping_factor: float = 0.85
    convergence_tolerance: float = 1e-6
    max_iterations: int = 0
    graph_source: Optional[str] = None
    output_filename: str = DEFAULT_OUTPUT_FILENAME
    verbose: bool = False
    history: bool = False
    teleport_correction: float = 1.0
    correction_formula: str = ACTIVE_SHARE
    num_workers: Optional[int] = None
    convergence_check_period: int = 3
    sparsify_period: int = 3

    def __post_init__(self):
        if not 0.0 < self.damping_factor <= 1.0:
            raise ValueError(f"damping_factor must be in (0, 1], got {self.damping_factor!r}")
        if not self.convergence_tolerance > 0.0:
            raise ValueError(f"convergence_tolerance must be > 0, got {self.convergence_tolerance!r}")
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must be >= 0, got {self.max_iterations!r}")
        if self.teleport_correction < 0.0:
            raise ValueError(f"teleport_correction must be >= 0, got {self.teleport_correction!r}")
        if self.correction_formula not in CORRECTION_FORMULAS:
            raise ValueError(f"correction_formula must be one of {CORRECTION_FORMULAS}, got {self.correction_formula!r}")
        if self.num_workers is not None and self.num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {self.num_workers!r}")
        if self.convergence_check_period < 1 or self.sparsify_period < 1:
            raise ValueError("check periods must be >= 1")

    @property
    def workers(self):
        """Resolved worker count."""
        return self.num_workers or os.cpu_count() or 1

    @classmethod
    def from_args(cls, args):
        """Build Parameters from the argparse namespace of main.py."""
        return cls(
            damping_factor=args.alpha,
            convergence_tolerance=args.convergence,
            max_iterations=args.max_iterations,
            graph_source=args.graph_file,
            output_filename=args.output,
            verbose=args.verbose,
            history=args.history,
            teleport_correction=args.teleport_correction,
            correction_formula=args.correction_formula,
            num_workers=args.workers,
        )
