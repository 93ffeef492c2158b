"""CSR row kernels.

Stateless loops over the raw ``indptr/indices/data`` arrays of a
``scipy.sparse`` CSR matrix with sorted column indices.
"""

from __future__ import annotations

import numpy as np
from numba import njit


@njit(cache=True)
def csr_scatter_row_numba(indptr, indices, data, row, cols, values):
    """Write ``values[k]`` at ``(row, cols[k])`` of the stored pattern.

    Returns
    -------
    missing : int
        Number of columns not present in the row pattern (left unwritten).
    """
    start = indptr[row]
    stop = indptr[row + 1]
    missing = 0
    for k in range(cols.shape[0]):
        c = cols[k]
        lo = start
        hi = stop
        while lo < hi:
            mid = (lo + hi) // 2
            if indices[mid] < c:
                lo = mid + 1
            else:
                hi = mid
        if lo < stop and indices[lo] == c:
            data[lo] = values[k]
        else:
            missing += 1
    return missing


def csr_scatter_row_python(indptr, indices, data, row, cols, values) -> int:
    """Reference implementation of :func:`csr_scatter_row_numba`."""
    start = int(indptr[row])
    stop = int(indptr[row + 1])
    row_cols = indices[start:stop]
    pos = np.searchsorted(row_cols, cols)
    hit = pos < row_cols.size
    hit[hit] = row_cols[pos[hit]] == cols[hit]
    data[start + pos[hit]] = np.asarray(values)[hit]
    return int(np.count_nonzero(~hit))
