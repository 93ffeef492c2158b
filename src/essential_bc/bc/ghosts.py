"""Ownership filtering and ghost layout for partitioned runs."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from essential_bc.bc.boundary_nodes import BoundaryNodes
from essential_bc.fem.dofmap import VectorCG1DofMap
from essential_bc.fem.mesh import Mesh
from essential_bc.la.comm import resolve_comm
from essential_bc.la.vector import GhostedVector

logger = logging.getLogger(__name__)


class GhostRowResolver:
    """Decide which boundary rows this partition constrains.

    Rows of ghost vertices belong to the owning partition, which constrains
    them itself; they are never touched locally.
    """

    def __init__(self, comm=None):
        self.comm = resolve_comm(comm)
        self._rows: Optional[np.ndarray] = None

    @property
    def distributed(self) -> bool:
        return self.comm.size > 1

    def resolve(self, nodes: BoundaryNodes) -> BoundaryNodes:
        if not self.distributed:
            return nodes
        return nodes.select(~nodes.ghost)

    def off_process_rows(self, mesh: Mesh, dofmap: VectorCG1DofMap) -> np.ndarray:
        """Every DOF touched by a local cell (computed once)."""
        if self._rows is None:
            rows = set()
            for c in range(mesh.num_cells):
                rows.update(int(d) for d in dofmap.tabulate_dofs(c))
            self._rows = np.fromiter(sorted(rows), dtype=np.int64, count=len(rows))
        return self._rows

    def establish_ghost_layout(self, mesh: Mesh, dofmap: VectorCG1DofMap, vector) -> None:
        """Give ``vector`` a ghost layout keyed by the local row set.

        No-op on a single partition or when the vector already has one.
        """
        if not self.distributed:
            return
        if not isinstance(vector, GhostedVector):
            raise TypeError("multi-partition runs need a GhostedVector right-hand side")
        if vector.has_ghost_layout:
            return
        rows = self.off_process_rows(mesh, dofmap)
        vector.init_ghosted(rows)
        logger.debug("rank %d: ghosted rhs over %d rows", self.comm.rank, rows.size)

    def reset(self) -> None:
        self._rows = None
