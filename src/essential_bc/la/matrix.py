"""Sparse matrix backends.

A backend wraps a caller-owned matrix and exposes the row-level operations
needed for row elimination. The concrete backend is chosen once per
boundary condition and reused for every later call.
"""

from __future__ import annotations

import abc
import zlib
from typing import Tuple, Type

import numpy as np
import scipy.sparse as sp

from essential_bc.numba.kernels_csr import csr_scatter_row_numba, csr_scatter_row_python


class SparsityPatternError(RuntimeError):
    """Matrix structure does not match the pattern the caller relies on."""


class SparseMatrixBackend(abc.ABC):
    """Row access to a square system matrix."""

    def __init__(self, matrix, use_numba: bool = True):
        self.matrix = matrix
        self.use_numba = bool(use_numba)

    @property
    def shape(self) -> Tuple[int, int]:
        return tuple(int(n) for n in self.matrix.shape)

    def row_count(self) -> int:
        return self.shape[0]

    @abc.abstractmethod
    def get_row(self, row: int) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(columns, values)`` of the stored entries of ``row``."""

    @abc.abstractmethod
    def set_row(self, row: int, values: np.ndarray, cols: np.ndarray) -> None:
        """Overwrite stored entries ``(row, cols)`` with ``values``."""

    def set_value(self, row: int, col: int, value: float) -> None:
        self.set_row(row, np.array([value], dtype=float), np.array([col], dtype=np.int64))

    @abc.abstractmethod
    def duplicate(self) -> "SparseMatrixBackend":
        """Independent copy with the same structure and values."""

    @abc.abstractmethod
    def copy_values_from(self, other: "SparseMatrixBackend") -> None:
        """Copy values of a matrix with identical structure."""

    @abc.abstractmethod
    def structure_signature(self) -> Tuple:
        """Hashable fingerprint of shape and sparsity pattern."""

    def flush(self) -> None:
        """Finalize pending insertions. In-memory backends have none."""
        return None


class CSRMatrixBackend(SparseMatrixBackend):
    """``scipy.sparse`` CSR matrix, mutated in place through ``data``.

    The matrix is brought to canonical form once on wrap (sorted column
    indices, duplicate entries summed); after that the sparsity pattern is
    never changed, explicit zeros stay stored.
    """

    def __init__(self, matrix, use_numba: bool = True):
        if not sp.issparse(matrix) or matrix.format != "csr":
            raise TypeError(f"CSRMatrixBackend needs a scipy CSR matrix, got {type(matrix).__name__}")
        if not matrix.has_canonical_format:
            # a duplicated column would keep its second value after set_row
            matrix.sum_duplicates()
        super().__init__(matrix, use_numba=use_numba)
        self._scatter = csr_scatter_row_numba if self.use_numba else csr_scatter_row_python

    def get_row(self, row: int) -> Tuple[np.ndarray, np.ndarray]:
        A = self.matrix
        a = A.indptr[row]
        b = A.indptr[row + 1]
        return A.indices[a:b], A.data[a:b]

    def set_row(self, row: int, values: np.ndarray, cols: np.ndarray) -> None:
        A = self.matrix
        missing = self._scatter(A.indptr, A.indices, A.data, int(row), cols, values)
        if missing:
            raise SparsityPatternError(
                f"{missing} of {len(cols)} columns are not in the stored pattern of row {row}"
            )

    def duplicate(self) -> "CSRMatrixBackend":
        return CSRMatrixBackend(self.matrix.copy(), use_numba=self.use_numba)

    def copy_values_from(self, other: "SparseMatrixBackend") -> None:
        src = other.matrix
        if src.shape != self.matrix.shape or src.nnz != self.matrix.nnz:
            raise SparsityPatternError(
                f"cannot copy values: shape/nnz {src.shape}/{src.nnz} vs "
                f"{self.matrix.shape}/{self.matrix.nnz}"
            )
        np.copyto(self.matrix.data, src.data)

    def structure_signature(self) -> Tuple:
        A = self.matrix
        crc = zlib.crc32(np.ascontiguousarray(A.indptr).tobytes())
        crc = zlib.crc32(np.ascontiguousarray(A.indices).tobytes(), crc)
        return (self.shape, int(A.nnz), crc)


class DenseMatrixBackend(SparseMatrixBackend):
    """Dense ``numpy`` matrix; every column is part of every row."""

    def __init__(self, matrix, use_numba: bool = True):
        if not isinstance(matrix, np.ndarray) or matrix.ndim != 2:
            raise TypeError(f"DenseMatrixBackend needs a 2D numpy array, got {type(matrix).__name__}")
        super().__init__(matrix, use_numba=use_numba)
        self._cols = np.arange(matrix.shape[1], dtype=np.int64)

    def get_row(self, row: int) -> Tuple[np.ndarray, np.ndarray]:
        return self._cols, self.matrix[row]

    def set_row(self, row: int, values: np.ndarray, cols: np.ndarray) -> None:
        self.matrix[row, cols] = values

    def set_value(self, row: int, col: int, value: float) -> None:
        self.matrix[row, col] = value

    def duplicate(self) -> "DenseMatrixBackend":
        return DenseMatrixBackend(self.matrix.copy())

    def copy_values_from(self, other: "SparseMatrixBackend") -> None:
        if other.matrix.shape != self.matrix.shape:
            raise SparsityPatternError(f"cannot copy values: shape {other.matrix.shape} vs {self.matrix.shape}")
        np.copyto(self.matrix, other.matrix)

    def structure_signature(self) -> Tuple:
        return (self.shape,)


def select_backend(matrix) -> Type[SparseMatrixBackend]:
    """Backend class for ``matrix``."""
    if isinstance(matrix, SparseMatrixBackend):
        return type(matrix)
    if sp.issparse(matrix):
        if matrix.format != "csr":
            raise TypeError(f"Unsupported sparse format '{matrix.format}'. Convert with .tocsr().")
        return CSRMatrixBackend
    if isinstance(matrix, np.ndarray):
        return DenseMatrixBackend
    raise TypeError(f"Unsupported matrix type {type(matrix).__name__}")


BACKENDS = {
    "csr": CSRMatrixBackend,
    "dense": DenseMatrixBackend,
}
