import numpy as np
import pytest
import scipy.sparse as sp

from essential_bc.bc.row_cache import RowEliminationCache
from essential_bc.la.matrix import CSRMatrixBackend, DenseMatrixBackend, SparsityPatternError


def _tridiag(n=6):
    main = np.arange(1, n + 1, dtype=float)
    off = -np.ones(n - 1)
    return sp.diags([off, main, off], [-1, 0, 1], format="csr")


def test_buffers_are_allocated_once():
    A = CSRMatrixBackend(_tridiag())
    cache = RowEliminationCache()
    cache.ensure(A)
    working, zero, index = cache.working, cache.zero_block, cache.index_block
    assert zero.shape == (6,) and index.shape == (6,)
    assert working.matrix is not A.matrix

    cache.ensure(A)
    assert cache.working is working
    assert cache.zero_block is zero
    assert cache.index_block is index


def test_eliminate_row_keeps_pattern():
    A = CSRMatrixBackend(_tridiag())
    nnz = A.matrix.nnz
    cache = RowEliminationCache()
    cache.ensure(A)
    cache.refresh(A)
    k = cache.eliminate_row(2)
    assert k == 3
    cache.commit(A)

    dense = A.matrix.toarray()
    assert dense[2].tolist() == [0.0, 0.0, 1.0, 0.0, 0.0, 0.0]
    assert A.matrix.nnz == nnz
    assert dense[3, 2] == -1.0
    assert np.all(cache.zero_block == 0.0)


def test_refresh_picks_up_new_values():
    mat = _tridiag()
    A = CSRMatrixBackend(mat)
    cache = RowEliminationCache()
    cache.ensure(A)
    mat.data *= 2.0
    cache.refresh(A)
    cache.eliminate_row(0)
    cache.commit(A)
    assert mat[1, 1] == 4.0
    assert mat[0, 1] == 0.0


def test_changed_pattern_is_detected():
    cache = RowEliminationCache(check_sparsity=True)
    cache.ensure(CSRMatrixBackend(_tridiag()))
    wider = sp.diags([np.ones(4), np.ones(6), np.ones(4)], [-2, 0, 2], format="csr")
    with pytest.raises(SparsityPatternError):
        cache.ensure(CSRMatrixBackend(wider))

    cache.invalidate()
    assert not cache.built
    cache.ensure(CSRMatrixBackend(wider))
    assert cache.built


def test_non_square_matrix_rejected():
    cache = RowEliminationCache()
    with pytest.raises(ValueError):
        cache.ensure(DenseMatrixBackend(np.zeros((3, 4))))


def test_row_block_holds_values_before_elimination():
    A = CSRMatrixBackend(_tridiag())
    cache = RowEliminationCache()
    cache.ensure(A)
    cache.refresh(A)
    k = cache.eliminate_row(2)
    assert cache.index_block[:k].tolist() == [1, 2, 3]
    assert cache.row_block[:k].tolist() == [-1.0, 3.0, -1.0]


def test_duplicate_column_entries_are_fully_eliminated():
    indptr = np.array([0, 3, 5])
    indices = np.array([0, 0, 1, 0, 1])
    data = np.array([2.0, 3.0, 1.0, 1.0, 6.0])
    mat = sp.csr_matrix((data, indices, indptr), shape=(2, 2))
    A = CSRMatrixBackend(mat)
    cache = RowEliminationCache()
    cache.ensure(A)
    cache.refresh(A)
    cache.eliminate_row(0)
    cache.commit(A)
    dense = mat.toarray()
    assert dense[0].tolist() == [1.0, 0.0]
    assert dense[1].tolist() == [1.0, 6.0]
