"""Working copy and scratch buffers for repeated row elimination."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np

from essential_bc.la.matrix import SparseMatrixBackend, SparsityPatternError

logger = logging.getLogger(__name__)


class RowEliminationCache:
    """Reusable state for eliminating rows of a fixed-pattern matrix.

    The first :meth:`ensure` duplicates the matrix into a working copy and
    allocates three buffers of length ``row_count``. Later calls reuse all
    of it. The sparsity pattern must stay fixed for the cache's lifetime;
    with ``check_sparsity`` a changed pattern raises
    :class:`SparsityPatternError`. Call :meth:`invalidate` after the pattern
    legitimately changes (e.g. mesh adaptation).
    """

    def __init__(self, check_sparsity: bool = True):
        self.check_sparsity = bool(check_sparsity)
        self.working: Optional[SparseMatrixBackend] = None
        self.zero_block: Optional[np.ndarray] = None
        self.row_block: Optional[np.ndarray] = None
        self.index_block: Optional[np.ndarray] = None
        self._signature: Optional[Tuple] = None

    @property
    def built(self) -> bool:
        return self.working is not None

    def ensure(self, matrix: SparseMatrixBackend) -> None:
        if self.working is not None:
            if self.check_sparsity:
                sig = matrix.structure_signature()
                if sig != self._signature:
                    raise SparsityPatternError(
                        "matrix sparsity pattern changed since the row cache was built; "
                        "call invalidate() after changing the mesh or the assembly pattern"
                    )
            return

        nrow, ncol = matrix.shape
        if nrow != ncol:
            raise ValueError(f"row elimination needs a square matrix, got {nrow}x{ncol}")

        self.working = matrix.duplicate()
        self.zero_block = np.zeros(nrow, dtype=float)
        self.row_block = np.zeros(nrow, dtype=float)
        self.index_block = np.zeros(nrow, dtype=np.int64)
        self._signature = matrix.structure_signature()
        logger.debug("row cache built for %dx%d matrix", nrow, ncol)

    def refresh(self, matrix: SparseMatrixBackend) -> None:
        """Copy the caller's current values into the working copy."""
        self.working.copy_values_from(matrix)

    def eliminate_row(self, dof: int, diagonal: float = 1.0) -> int:
        """Zero the stored entries of row ``dof`` and set its diagonal.

        The row's columns and its values before elimination are left in
        ``index_block[:k]`` and ``row_block[:k]``. Returns the row length ``k``.
        """
        cols, vals = self.working.get_row(dof)
        k = int(cols.shape[0])
        self.index_block[:k] = cols
        self.row_block[:k] = vals
        self.working.set_row(dof, self.zero_block[:k], self.index_block[:k])
        self.working.set_value(dof, dof, diagonal)
        return k

    def commit(self, matrix: SparseMatrixBackend) -> None:
        """Write the working copy back into the caller's matrix."""
        self.working.flush()
        matrix.copy_values_from(self.working)

    def invalidate(self) -> None:
        self.working = None
        self.zero_block = None
        self.row_block = None
        self.index_block = None
        self._signature = None
