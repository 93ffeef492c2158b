"""Parameter container for Dirichlet row elimination."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Type, Union

from essential_bc.la.matrix import BACKENDS, SparseMatrixBackend


@dataclass
class DirichletBCOptions:
    # Matrix backend: "csr" | "dense" | a SparseMatrixBackend subclass.
    # None picks one from the type of the first matrix passed to apply().
    backend: Optional[Union[str, Type[SparseMatrixBackend]]] = None

    # Numba CSR kernels (numpy reference path when False)
    use_numba: bool = True

    # Raise SparsityPatternError if the matrix pattern differs from the cached one
    check_sparsity: bool = True

    # Rank that logs progress at INFO; other ranks log at DEBUG
    log_rank: int = 0

    # Entry of the boundary function value to use. None -> the constrained component.
    value_component: Optional[int] = None

    # Value written on the diagonal of eliminated rows
    diagonal: float = 1.0

    def backend_class(self) -> Optional[Type[SparseMatrixBackend]]:
        if self.backend is None:
            return None
        if isinstance(self.backend, str):
            try:
                return BACKENDS[self.backend]
            except KeyError:
                raise ValueError(f"Unknown backend='{self.backend}'. Use {sorted(BACKENDS)}.") from None
        if isinstance(self.backend, type) and issubclass(self.backend, SparseMatrixBackend):
            return self.backend
        raise TypeError(f"backend must be a name or a SparseMatrixBackend subclass, got {self.backend!r}")
