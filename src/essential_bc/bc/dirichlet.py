"""Dirichlet condition on one component of a CG1 vector field.

The condition is applied by row elimination on the assembled system: each
constrained row is zeroed within its existing pattern, its diagonal set to
one and the matching right-hand-side entry set to the boundary value. The
boundary DOFs, the working copy of the matrix and the scratch buffers are
built on the first :meth:`DirichletBC.apply` and reused by every later call,
which is the intended use inside a time-stepping or Newton loop.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional, Type, Union

import numpy as np

from essential_bc.bc.boundary_nodes import BoundaryNodes, build_boundary_nodes
from essential_bc.bc.ghosts import GhostRowResolver
from essential_bc.bc.row_cache import RowEliminationCache
from essential_bc.config import DirichletBCOptions
from essential_bc.fem.dofmap import VectorCG1DofMap
from essential_bc.fem.form import Form
from essential_bc.fem.function import Constant
from essential_bc.fem.mesh import Mesh
from essential_bc.fem.subdomain import Ownership, SubDomain, VertexMarkers
from essential_bc.la.comm import resolve_comm
from essential_bc.la.matrix import SparseMatrixBackend, select_backend
from essential_bc.la.vector import GhostedVector

_logger = logging.getLogger(__name__)


class BCState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    CACHED = "cached"


class DirichletBC:
    """Row-elimination Dirichlet condition for a single vector component.

    Parameters
    ----------
    mesh:
        Local partition mesh.
    sub_domain:
        Either a :class:`SubDomain` predicate (an owned marker field is
        created with every vertex labelled 1 and the subdomain labelled 0),
        or an existing :class:`VertexMarkers` field which is borrowed and
        never modified; ``label`` then selects the constrained vertices.
    component:
        Vector component under constraint.
    value:
        Boundary function ``value(x) -> array``, or a constant.
    label:
        Marker label to constrain when ``sub_domain`` is a marker field.
    options:
        :class:`DirichletBCOptions`.
    comm:
        mpi4py-style communicator, serial when None.
    """

    def __init__(
        self,
        mesh: Mesh,
        sub_domain: Union[SubDomain, VertexMarkers],
        component: int,
        value,
        *,
        label: Optional[int] = None,
        options: Optional[DirichletBCOptions] = None,
        comm=None,
    ):
        self.mesh = mesh
        self.component = int(component)
        self.value = value if callable(value) else Constant(value)
        self.options = options if options is not None else DirichletBCOptions()
        self.comm = resolve_comm(comm)
        self.boundary = mesh.boundary_mesh()

        if isinstance(sub_domain, VertexMarkers):
            if len(sub_domain) != mesh.num_vertices:
                raise ValueError("marker field size does not match the mesh vertex count")
            if label is None:
                raise ValueError("label is required with a marker field")
            self.markers = VertexMarkers(values=sub_domain.values, ownership=Ownership.BORROWED)
            self.sub_domain = int(label)
        else:
            # Mark everything as 1 and the sub domain as 0
            self.markers = VertexMarkers.create(mesh, default=1)
            sub_domain.mark(self.markers, 0, mesh, self.boundary)
            self.sub_domain = 0

        self.resolver = GhostRowResolver(self.comm)
        self.cache = RowEliminationCache(check_sparsity=self.options.check_sparsity)
        self.state = BCState.UNINITIALIZED
        self._backend: Optional[Type[SparseMatrixBackend]] = self.options.backend_class()
        self._dofmap: Optional[VectorCG1DofMap] = None
        self._nodes: Optional[BoundaryNodes] = None
        self._nskipped = 0

    @classmethod
    def from_markers(cls, mesh: Mesh, markers: VertexMarkers, label: int, component: int, value, **kwargs):
        return cls(mesh, markers, component, value, label=label, **kwargs)

    @property
    def nodes(self) -> Optional[BoundaryNodes]:
        """Locally owned boundary nodes (None before the first apply)."""
        return self._nodes

    def apply(self, A, b, form: Optional[Form] = None, *, x=None, dof_map=None,
              logger: Optional[logging.Logger] = None) -> int:
        """Constrain ``A`` and ``b`` in place.

        Parameters
        ----------
        A:
            Square system matrix: scipy CSR, dense ndarray, or a
            :class:`SparseMatrixBackend`.
        b:
            Right-hand side: :class:`GhostedVector`, or a 1D ndarray on a
            single partition.
        form:
            Assembled form; its test DOF map locates the boundary rows.
        x:
            Current solution. Not supported.
        dof_map:
            Explicit DOF map instead of the form. Not supported.
        logger:
            Logger to report to; module logger when None.

        Returns
        -------
        int
            Number of rows constrained on this partition.
        """
        if dof_map is not None:
            raise NotImplementedError(
                "Not implemented: DirichletBC.apply(A, b, dof_map=..., form) with an explicit DOF map. "
                "Pass the assembled form instead."
            )
        if x is not None:
            raise NotImplementedError(
                "Not implemented: DirichletBC.apply(A, b, x=..., form) with a current solution vector. "
                "Call apply(A, b, form) on the linearized system instead."
            )
        if form is None:
            raise TypeError("DirichletBC.apply() requires the assembled form")

        log = logger if logger is not None else _logger
        level = logging.INFO if self.comm.rank == self.options.log_rank else logging.DEBUG
        log.log(level, "Applying Dirichlet boundary conditions to linear system.")

        dofmap = form.dofmaps[0]
        matrix = self._wrap_matrix(A)
        rhs = self._wrap_vector(b)

        if self.state is BCState.UNINITIALIZED or dofmap is not self._dofmap:
            self._initialize(dofmap, log)
        self.resolver.establish_ghost_layout(self.mesh, dofmap, rhs)

        nodes = self._nodes
        if len(nodes) == 0:
            log.debug("no boundary rows on rank %d; system left unchanged", self.comm.rank)
            matrix.flush()
            rhs.flush()
            return 0

        self.cache.ensure(matrix)
        self.cache.refresh(matrix)

        diagonal = float(self.options.diagonal)
        for i in range(len(nodes)):
            dof = int(nodes.dofs[i])
            self.cache.eliminate_row(dof, diagonal)
            rhs.set(dof, self._boundary_value(nodes.points[i]))

        # Apply changes in the stiffness matrix and load vector
        self.cache.commit(matrix)
        matrix.flush()
        rhs.flush()

        log.debug(
            "rank %d: constrained %d rows (%d ghost rows left to their owners)",
            self.comm.rank, len(nodes), self._nskipped,
        )
        return len(nodes)

    def invalidate(self) -> None:
        """Drop cached nodes, ghost rows and matrix copy.

        Required after the mesh, DOF map or matrix pattern changes.
        """
        self.cache.invalidate()
        self.resolver.reset()
        self._dofmap = None
        self._nodes = None
        self.state = BCState.UNINITIALIZED

    def _initialize(self, dofmap: VectorCG1DofMap, log: logging.Logger) -> None:
        if self.state is BCState.CACHED:
            log.debug("form DOF map changed; rebuilding boundary rows")
            self.cache.invalidate()
            self.resolver.reset()
        candidates = build_boundary_nodes(
            self.mesh, self.boundary, self.markers, self.sub_domain, dofmap, self.component
        )
        self._nodes = self.resolver.resolve(candidates)
        self._nskipped = len(candidates) - len(self._nodes)
        self._dofmap = dofmap
        self.state = BCState.CACHED

    def _wrap_matrix(self, A) -> SparseMatrixBackend:
        if isinstance(A, SparseMatrixBackend):
            if self._backend is None:
                self._backend = type(A)
            return A
        if self._backend is None:
            self._backend = select_backend(A)
        return self._backend(A, use_numba=self.options.use_numba)

    def _wrap_vector(self, b) -> GhostedVector:
        if isinstance(b, GhostedVector):
            return b
        if isinstance(b, np.ndarray):
            if self.comm.size > 1:
                raise TypeError("multi-partition runs need a GhostedVector right-hand side")
            return GhostedVector.from_array(b, comm=self.comm)
        raise TypeError(f"Unsupported vector type {type(b).__name__}")

    def _boundary_value(self, x: np.ndarray) -> float:
        v = np.atleast_1d(np.asarray(self.value(x), dtype=float))
        if v.size == 1:
            return float(v[0])
        c = self.options.value_component
        return float(v[self.component if c is None else c])
