"""Numba-accelerated kernels.

Small, *stateless* loops compiled in Numba's ``nopython`` mode. Every kernel
has a numpy reference next to it; callers pick one with ``use_numba``.
"""

from .kernels_csr import csr_scatter_row_numba, csr_scatter_row_python

__all__ = [
    "csr_scatter_row_numba",
    "csr_scatter_row_python",
]
