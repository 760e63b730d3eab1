import numpy as np
import pytest
import scipy.sparse as sp

from sparsified_pagerank.parallel import WorkerPool
from sparsified_pagerank.sparse_matrix import CapacityExceeded, CooMatrix, CsrMatrix


def random_coo(n=30, nnz=120, seed=0):
    rng = np.random.default_rng(seed)
    coo = CooMatrix(n)
    coo.extend(rng.integers(0, n, nnz), rng.integers(0, n, nnz), rng.random(nnz))
    return coo


def scipy_csr(csr):
    n = csr.number_of_pages
    return sp.csr_matrix((csr.values, csr.column_indexes, csr.row_offsets), shape=(n, n))


def test_append_grows_on_demand():
    coo = CooMatrix(5)
    for i in range(5):
        coo.append(i, (i + 1) % 5, 0.5)
    assert len(coo) == 5
    assert coo.capacity >= 5
    assert list(coo.rows) == [0, 1, 2, 3, 4]
    assert list(coo.cols) == [1, 2, 3, 4, 0]


def test_fixed_capacity_is_a_hard_limit():
    coo = CooMatrix(3, capacity=2, fixed=True)
    coo.append(0, 1, 1.0)
    coo.append(1, 2, 1.0)
    with pytest.raises(CapacityExceeded):
        coo.append(2, 0, 1.0)
    with pytest.raises(CapacityExceeded):
        coo.extend([0], [0], [1.0])
    assert len(coo) == 2


def test_append_rejects_out_of_range_indexes():
    coo = CooMatrix(3)
    with pytest.raises(IndexError):
        coo.append(3, 0, 1.0)
    with pytest.raises(IndexError):
        coo.extend([0, 1], [1, -1], 1.0)


def test_transpose_swaps_rows_and_columns_in_place():
    coo = CooMatrix(4)
    coo.append(0, 3, 1.0)
    coo.append(2, 1, 0.5)
    same = coo.transpose()
    assert same is coo
    assert list(coo.rows) == [3, 1]
    assert list(coo.cols) == [0, 2]
    assert list(coo.values) == [1.0, 0.5]


def test_to_csr_groups_by_row_and_keeps_empty_rows():
    coo = CooMatrix(4)
    coo.append(2, 1, 0.5)
    coo.append(0, 3, 1.0)
    coo.append(2, 0, 0.25)
    csr = coo.to_csr()
    assert list(csr.row_offsets) == [0, 1, 1, 3, 3]
    assert list(csr.column_indexes) == [3, 1, 0]
    assert list(csr.values) == [1.0, 0.5, 0.25]
    assert csr.nnz == 3


def test_csr_multiply_matches_coo_and_scipy():
    coo = random_coo()
    csr = coo.to_csr()
    x = np.linspace(0.1, 1.0, coo.number_of_pages)

    expected = scipy_csr(csr) @ x
    assert np.allclose(csr.dot(x), expected)
    assert np.allclose(coo.dot(x), expected)
    assert csr.dot(x).shape == (coo.number_of_pages,)


def test_all_dangling_matrix_multiplies_to_zero():
    coo = CooMatrix(6)
    csr = coo.to_csr()
    assert list(csr.row_offsets) == [0] * 7
    x = np.full(6, 1 / 6)
    assert np.array_equal(csr.dot(x), np.zeros(6))
    assert np.array_equal(coo.dot(x), np.zeros(6))


def test_multiply_does_not_depend_on_worker_count():
    csr = random_coo(n=200, nnz=2000, seed=3).to_csr()
    x = np.random.default_rng(4).random(200)
    with WorkerPool(1) as single, WorkerPool(7) as many:
        assert np.array_equal(csr.dot(x, single), csr.dot(x, many))


def test_multiply_rejects_wrong_vector_length():
    csr = random_coo().to_csr()
    with pytest.raises(ValueError):
        csr.dot(np.ones(3))


def test_zero_row_and_column_keep_structure():
    coo = random_coo(n=10, nnz=60, seed=5)
    csr = coo.to_csr()
    offsets = csr.row_offsets.copy()
    columns = csr.column_indexes.copy()

    with WorkerPool(3) as pool:
        csr.zero_row(4)
        csr.zero_column(7, pool)

    dense = scipy_csr(csr).toarray()
    assert not dense[4].any()
    assert not dense[:, 7].any()
    assert np.array_equal(csr.row_offsets, offsets)
    assert np.array_equal(csr.column_indexes, columns)
    assert csr.nnz == len(columns)

    reference = sp.coo_matrix((coo.values, (coo.rows, coo.cols)), shape=(10, 10)).toarray()
    reference[4, :] = 0
    reference[:, 7] = 0
    assert np.allclose(dense, reference)


def test_column_lists_live_entries_only():
    coo = CooMatrix(4)
    coo.extend([0, 1, 3, 2], [2, 2, 2, 1], [0.5, 0.25, 1.0, 0.75])
    csr = coo.to_csr()
    csr.zero_row(1)
    rows, values = csr.column(2)
    assert list(rows) == [0, 3]
    assert list(values) == [0.5, 1.0]
    assert csr.nonzero_count() == 3


def test_csr_validates_its_arrays():
    with pytest.raises(ValueError):
        CsrMatrix([0, 2, 1], [0, 1], [1.0, 1.0])
    with pytest.raises(ValueError):
        CsrMatrix([0, 1, 2], [0], [1.0])
    with pytest.raises(ValueError):
        CsrMatrix([0, 1], [3], [1.0])


def test_filter_builds_a_new_matrix():
    coo = CooMatrix(3)
    coo.extend([0, 1, 2], [1, 2, 0], [1.0, 2.0, 3.0])
    kept = coo.filter([True, False, True])
    assert list(kept.rows) == [0, 2]
    assert list(kept.values) == [1.0, 3.0]
    assert len(coo) == 3
