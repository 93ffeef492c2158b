"""Linear-algebra storage: matrix backends, ghosted vectors, communicators."""

from .comm import SerialComm, resolve_comm
from .matrix import (
    BACKENDS,
    CSRMatrixBackend,
    DenseMatrixBackend,
    SparseMatrixBackend,
    SparsityPatternError,
    select_backend,
)
from .vector import GhostedVector

__all__ = [
    "SerialComm", "resolve_comm",
    "BACKENDS", "CSRMatrixBackend", "DenseMatrixBackend", "SparseMatrixBackend",
    "SparsityPatternError", "select_backend",
    "GhostedVector",
]
