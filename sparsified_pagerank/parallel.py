# parallel.py
#
# Project: Sparsified PageRank
#
# Description:
#   Fork-join parallel-for over an index range, on top of
#   concurrent.futures.ThreadPoolExecutor.
#
#   The range [0, size) is cut into at most `workers` contiguous chunks.
#   Every chunk is submitted to the pool and the caller blocks until all
#   of them have finished, so the next algorithm step always sees the
#   complete result.  The numpy kernels run inside each chunk release the
#   GIL, which is what makes threads worthwhile here.
#
#   The pool lives for exactly one solver run (use it as a context
#   manager); no background thread outlives the run.

import os
from concurrent.futures import ThreadPoolExecutor


def partition(size, parts):
    """
    Split [0, size) into at most `parts` contiguous (start, stop) ranges.

    Ranges differ in length by at most one and empty ranges are dropped.
    """
    parts = max(1, min(parts, size))
    base, extra = divmod(size, parts)
    ranges = []
    start = 0
    for i in range(parts):
        stop = start + base + (1 if i < extra else 0)
        if stop > start:
            ranges.append((start, stop))
        start = stop
    return ranges


class WorkerPool:
    """Fixed-size thread pool exposing a blocking parallel_for."""

    def __init__(self, workers=None):
        self.workers = workers or os.cpu_count() or 1
        self._executor = None

    def __enter__(self):
        if self.workers > 1:
            self._executor = ThreadPoolExecutor(max_workers=self.workers)
        return self

    def __exit__(self, *args):
        self.close()

    def close(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def parallel_for(self, func, size):
        """
        Call func(start, stop) for every chunk of [0, size) and wait for all.

        Returns the chunk results in range order.  The first exception raised
        by a worker is re-raised here once every chunk has completed.
        """
        ranges = partition(size, self.workers)
        if self._executor is None or len(ranges) <= 1:
            return [func(start, stop) for start, stop in ranges]

        futures = [self._executor.submit(func, start, stop) for start, stop in ranges]
        # Join everything before surfacing errors so no chunk is still writing.
        errors = [f.exception() for f in futures]
        for error in errors:
            if error is not None:
                raise error
        return [f.result() for f in futures]


def serial_pool():
    """A pool that runs every chunk on the calling thread."""
    return WorkerPool(workers=1)
