# sinks.py
#
# Project: Sparsified PageRank
#
# Description:
#   Destinations for the PageRank vector.  The solver only knows the
#   PagerankSink interface: write(vector, append).  append=True adds a
#   snapshot to the history, append=False replaces whatever was written.

import numpy as np


class PagerankSink:
    def write(self, vector, append=False):
        raise NotImplementedError


class FileSink(PagerankSink):
    """
    Plain text output, one line per snapshot.

    Every value is written with "%f" followed by a space, and the line ends
    with a newline.
    """

    def __init__(self, filename):
        self.filename = filename

    def write(self, vector, append=False):
        with open(self.filename, 'a' if append else 'w') as f:
            f.write(format_vector(vector))


class MemorySink(PagerankSink):
    """Keeps copies of every snapshot. Handy for tests and notebooks."""

    def __init__(self):
        self.snapshots = []

    def write(self, vector, append=False):
        if not append:
            self.snapshots = []
        self.snapshots.append(np.array(vector, dtype=np.float64))

    @property
    def last(self):
        return self.snapshots[-1] if self.snapshots else None


def format_vector(vector):
    return "".join(f"{value:f} " for value in vector) + "\n"


def load_vectors(filename):
    """Read back a file written by FileSink as a list of arrays."""
    with open(filename, 'r') as f:
        return [np.array(line.split(), dtype=np.float64) for line in f if line.strip()]
