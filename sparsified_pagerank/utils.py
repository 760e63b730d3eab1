# utils.py
#
# Project: Sparsified PageRank
#
# Description:
#   Terminal display utilities: colored output, summary boxes,
#   side-by-side table rendering, per-iteration progress lines and a
#   timing context manager.
#
# Components:
#   Colors            - ANSI escape code constants for terminal styling.
#   print_project_banner - Project banner with the run parameters.
#   print_stage / print_step / print_success / print_warning / print_error
#                     - Hierarchical log output with color-coded prefixes.
#   print_iteration   - One line per solver iteration, alternating colors.
#   print_summary_box - Single bordered table for key-value statistics.
#   print_side_by_side_boxes
#                     - Two bordered tables rendered on the same lines
#                       (e.g., [Outgoing Stats] [Incoming Stats]).
#   print_vector_preview
#                     - Quick preview of the highest ranked pages.
#   Timer             - Context manager that prints elapsed wall time.

import time


class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    RESET = '\033[0m'


def print_project_banner(parameters=None):
    """Print project info banner, with the run parameters when given."""
    w = 90
    print(f"\n{Colors.BOLD}{Colors.BLUE}{'=' * w}")
    print(f"  Sparsified PageRank")
    print(f"{'=' * w}{Colors.RESET}")
    print(f"  {Colors.DIM}Method:{Colors.RESET}  Power iteration with converged-page removal")
    print(f"  {Colors.DIM}Ref:{Colors.RESET}     Page, Brin, Motwani & Winograd (1999)")
    print(f"           {Colors.DIM}\"The PageRank Citation Ranking\"")
    print(f"           http://ilpubs.stanford.edu:8090/422/1/1999-66.pdf{Colors.RESET}")
    if parameters is not None:
        max_iterations = parameters.max_iterations or "inf"
        print(f"  {Colors.DIM}Graph:{Colors.RESET}   {parameters.graph_source}")
        print(f"  {Colors.DIM}Alpha:{Colors.RESET}   {parameters.damping_factor}")
        print(f"  {Colors.DIM}Tol:{Colors.RESET}     {parameters.convergence_tolerance}")
        print(f"  {Colors.DIM}MaxIt:{Colors.RESET}   {max_iterations}")
    print(f"{Colors.BOLD}{Colors.BLUE}{'=' * w}{Colors.RESET}\n")


def print_stage(name, message):
    """Print a stage header."""
    print(f"{Colors.BOLD}{Colors.CYAN}[{name}]{Colors.RESET} {message}")


def print_step(message):
    """Print a sub-step within a stage."""
    print(f"  {Colors.DIM}->{Colors.RESET} {message}")


def print_success(message):
    """Print a success message."""
    print(f"  {Colors.GREEN}[OK]{Colors.RESET} {message}")


def print_warning(message):
    """Print a warning message."""
    print(f"  {Colors.YELLOW}[WARN]{Colors.RESET} {message}")


def print_error(message):
    """Print an error message."""
    print(f"  {Colors.RED}[ERR]{Colors.RESET} {message}")


def print_iteration(iteration, delta, converged_pages=None):
    """Print one solver iteration. Odd and even iterations alternate colors."""
    color = Colors.BLUE if iteration % 2 else Colors.CYAN
    delta_text = "n/a" if delta is None else f"{delta:f}"
    line = f"Iteration {iteration}: delta = {delta_text}"
    if converged_pages is not None:
        line += f", converged pages = {converged_pages}"
    print(f"  {color}{line}{Colors.RESET}")


def print_summary_box(title, stats, width=50):
    """
    Print a single summary box.

    Args:
        title (str): Box title
        stats (dict): Key-value pairs to display
        width (int): Inner width of the box
    """
    print()
    for line in _build_box_lines(title, stats, width):
        print(f"  {line}")
    print()


def _build_box_lines(title, stats, width):
    """Bordered box as a list of strings, one per terminal line."""
    sep = f"+{'-' * width}+"
    lines = [sep, f"| {Colors.BOLD}{title:<{width - 1}}{Colors.RESET}|", sep]
    lines.extend(f"|{' ' + str(key) + ': ' + str(val):<{width}}|" for key, val in stats.items())
    lines.append(sep)
    return lines


def print_side_by_side_boxes(title_l, stats_l, title_r, stats_r, col_width=38, gap=3):
    """
    Print two summary boxes side by side.

    Args:
        title_l (str): Left box title
        stats_l (dict): Left box key-value pairs
        title_r (str): Right box title
        stats_r (dict): Right box key-value pairs
        col_width (int): Inner width of each box
        gap (int): Space between the two boxes
    """
    left = _build_box_lines(title_l, stats_l, col_width)
    right = _build_box_lines(title_r, stats_r, col_width)

    # Pad shorter side so both have equal line count
    empty = ' ' * (col_width + 2)
    max_len = max(len(left), len(right))
    left += [empty] * (max_len - len(left))
    right += [empty] * (max_len - len(right))

    spacer = ' ' * gap
    print()
    for l, r in zip(left, right):
        print(f"  {l}{spacer}{r}")
    print()


def print_vector_preview(vector, label="PageRank", num_preview=5):
    """
    Print the highest ranked pages of a PageRank vector.

    Args:
        vector (numpy.ndarray): page index -> score
        label (str): Label for the box title
        num_preview (int): Number of pages to show
    """
    order = sorted(range(len(vector)), key=lambda i: vector[i], reverse=True)
    print_summary_box(f"Top {min(num_preview, len(vector))} Pages by {label}", {
        f"Page {page}": f"{vector[page]:.8f}" for page in order[:num_preview]
    })


class Timer:
    """Context manager for timing code blocks."""
    def __init__(self, label="Operation", quiet=False):
        self.label = label
        self.quiet = quiet
        self.start = None
        self.elapsed = None

    def __enter__(self):
        self.start = time.time()
        return self

    def __exit__(self, *args):
        self.elapsed = time.time() - self.start
        if not self.quiet:
            print_success(f"{self.label} completed in {self.elapsed:.2f}s")
