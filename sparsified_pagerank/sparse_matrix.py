# sparse_matrix.py
#
# Project: Sparsified PageRank
#
# Description:
#   Sparse matrix formats used by the solver.
#
#   CooMatrix - growable list of (row, column, value) triples backed by
#               numpy arrays.  Used while building the transition matrix
#               and for the residual links of converged pages.
#   CsrMatrix - compressed sparse row form (row offsets, column indexes,
#               values) used by the matrix-vector multiply in the hot loop.
#               Converged pages are removed by overwriting their values
#               with 0; offsets and column indexes never change, so the
#               storage footprint stays the same for the whole run.
#
# References:
#   [1] Saad, Y. (2003). "Iterative Methods for Sparse Linear Systems",
#       2nd ed., SIAM. Section 3.4, storage schemes (COO, CSR).

import numpy as np

from sparsified_pagerank.parallel import serial_pool


class CapacityExceeded(RuntimeError):
    """A fixed-capacity COO matrix ran out of room."""


class CooMatrix:
    """
    Coordinate-format square matrix of size number_of_pages.

    When `fixed` is True the capacity is a hard limit and appending past it
    raises CapacityExceeded; otherwise the arrays double on demand.
    """

    def __init__(self, number_of_pages, capacity=0, fixed=False):
        self.number_of_pages = number_of_pages
        self.fixed = fixed
        self.size = 0
        self._rows = np.empty(capacity, dtype=np.int64)
        self._cols = np.empty(capacity, dtype=np.int64)
        self._values = np.empty(capacity, dtype=np.float64)

    @property
    def capacity(self):
        return len(self._values)

    @property
    def rows(self):
        return self._rows[:self.size]

    @property
    def cols(self):
        return self._cols[:self.size]

    @property
    def values(self):
        return self._values[:self.size]

    def __len__(self):
        return self.size

    def _reserve(self, required):
        if required <= self.capacity:
            return
        if self.fixed:
            raise CapacityExceeded(
                f"COO matrix holds at most {self.capacity} elements, {required} needed")
        new_capacity = max(required, 2 * self.capacity, 4)
        for name in ("_rows", "_cols", "_values"):
            old = getattr(self, name)
            grown = np.empty(new_capacity, dtype=old.dtype)
            grown[:self.size] = old[:self.size]
            setattr(self, name, grown)

    def _check_index(self, index):
        if not 0 <= index < self.number_of_pages:
            raise IndexError(f"page index {index} outside [0, {self.number_of_pages})")

    def append(self, row, col, value):
        """Add one element."""
        self._check_index(row)
        self._check_index(col)
        self._reserve(self.size + 1)
        self._rows[self.size] = row
        self._cols[self.size] = col
        self._values[self.size] = value
        self.size += 1

    def extend(self, rows, cols, values):
        """Add many elements at once. Same capacity rules as append()."""
        rows = np.asarray(rows, dtype=np.int64)
        cols = np.asarray(cols, dtype=np.int64)
        values = np.broadcast_to(np.asarray(values, dtype=np.float64), rows.shape)
        if rows.shape != cols.shape:
            raise ValueError("rows and cols must have the same length")
        if len(rows) == 0:
            return
        low = min(rows.min(), cols.min())
        high = max(rows.max(), cols.max())
        if low < 0 or high >= self.number_of_pages:
            raise IndexError(f"page index outside [0, {self.number_of_pages})")

        end = self.size + len(rows)
        self._reserve(end)
        self._rows[self.size:end] = rows
        self._cols[self.size:end] = cols
        self._values[self.size:end] = values
        self.size = end

    def transpose(self):
        """Swap the row and column role of every element, in place."""
        self._rows, self._cols = self._cols, self._rows
        return self

    def filter(self, keep):
        """Return a new COO matrix with only the elements where keep is True."""
        keep = np.asarray(keep, dtype=bool)
        kept = CooMatrix(self.number_of_pages, capacity=int(keep.sum()))
        kept.extend(self.rows[keep], self.cols[keep], self.values[keep])
        return kept

    def dot(self, vector):
        """Direct COO multiply: result[row] += value * vector[col]."""
        vector = np.asarray(vector, dtype=np.float64)
        if vector.shape != (self.number_of_pages,):
            raise ValueError(f"vector length {vector.shape} != {self.number_of_pages}")
        return np.bincount(self.rows, weights=self.values * vector[self.cols],
                           minlength=self.number_of_pages)

    def to_csr(self):
        """
        Convert to CSR.

        Elements are bucketed by row with a stable sort, so elements of one
        row keep their insertion order.  Row offsets are the prefix sum of the
        per-row counts; a row without elements gets a zero-width span.
        """
        n = self.number_of_pages
        counts = np.bincount(self.rows, minlength=n)
        offsets = np.zeros(n + 1, dtype=np.int64)
        np.cumsum(counts, out=offsets[1:])
        order = np.argsort(self.rows, kind="stable")
        return CsrMatrix(offsets, self.cols[order], self.values[order])


class CsrMatrix:
    """Compressed sparse row square matrix."""

    def __init__(self, row_offsets, column_indexes, values):
        self.row_offsets = np.asarray(row_offsets, dtype=np.int64)
        self.column_indexes = np.asarray(column_indexes, dtype=np.int64)
        self.values = np.array(values, dtype=np.float64)
        self.number_of_pages = len(self.row_offsets) - 1
        self._entry_rows = None

        if self.number_of_pages < 0 or self.row_offsets[0] != 0:
            raise ValueError("row_offsets must start with 0")
        if np.any(np.diff(self.row_offsets) < 0):
            raise ValueError("row_offsets must be non-decreasing")
        if not (len(self.column_indexes) == len(self.values) == self.nnz):
            raise ValueError("column_indexes and values must have row_offsets[-1] entries")
        if self.nnz and (self.column_indexes.min() < 0
                         or self.column_indexes.max() >= self.number_of_pages):
            raise ValueError("column index outside the matrix")

    @property
    def nnz(self):
        return int(self.row_offsets[-1])

    @property
    def entry_rows(self):
        """Row index of every stored entry (expanded row_offsets)."""
        if self._entry_rows is None:
            self._entry_rows = np.repeat(np.arange(self.number_of_pages, dtype=np.int64),
                                         np.diff(self.row_offsets))
        return self._entry_rows

    def nonzero_count(self):
        """Stored entries that still contribute to a multiply."""
        return int(np.count_nonzero(self.values))

    def dot(self, vector, pool=None):
        """
        Matrix-vector multiply into a fresh result buffer.

        result[i] = sum(values[j] * vector[column_indexes[j]]) over the entries
        j of row i.  Rows are split across the pool; every row is summed by
        one worker in storage order, so the result does not depend on the
        worker count.
        """
        vector = np.asarray(vector, dtype=np.float64)
        if vector.shape != (self.number_of_pages,):
            raise ValueError(f"vector length {vector.shape} != {self.number_of_pages}")
        pool = pool or serial_pool()
        result = np.zeros(self.number_of_pages, dtype=np.float64)
        offsets, columns, values, rows = (self.row_offsets, self.column_indexes,
                                          self.values, self.entry_rows)

        def _multiply_rows(start, stop):
            lo, hi = offsets[start], offsets[stop]
            products = values[lo:hi] * vector[columns[lo:hi]]
            result[start:stop] = np.bincount(rows[lo:hi] - start, weights=products,
                                             minlength=stop - start)

        pool.parallel_for(_multiply_rows, self.number_of_pages)
        return result

    def zero_row(self, page):
        """Drop every entry of row `page`."""
        self.values[self.row_offsets[page]:self.row_offsets[page + 1]] = 0.0

    def zero_column(self, page, pool=None):
        """Drop every entry of column `page`. Workers own disjoint row ranges."""
        pool = pool or serial_pool()
        offsets, columns, values = self.row_offsets, self.column_indexes, self.values

        def _zero_rows(start, stop):
            lo, hi = offsets[start], offsets[stop]
            segment = values[lo:hi]
            segment[columns[lo:hi] == page] = 0.0

        pool.parallel_for(_zero_rows, self.number_of_pages)

    def column(self, page, pool=None):
        """Rows and values of the non-zero entries in column `page`."""
        pool = pool or serial_pool()
        offsets, columns, values, rows = (self.row_offsets, self.column_indexes,
                                          self.values, self.entry_rows)

        def _scan_rows(start, stop):
            lo, hi = offsets[start], offsets[stop]
            hit = (columns[lo:hi] == page) & (values[lo:hi] != 0.0)
            return rows[lo:hi][hit], values[lo:hi][hit]

        parts = pool.parallel_for(_scan_rows, self.number_of_pages)
        if not parts:
            return np.empty(0, dtype=np.int64), np.empty(0, dtype=np.float64)
        return (np.concatenate([p[0] for p in parts]),
                np.concatenate([p[1] for p in parts]))
