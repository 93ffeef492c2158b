"""DOF map for continuous piecewise-linear (CG1) vector fields."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from essential_bc.fem.mesh import Mesh


@dataclass
class VectorCG1DofMap:
    """Degree-of-freedom mapping for a ``num_components``-vector CG1 field.

    Global numbering is component-blocked::

        dof(vertex, c) = c * num_global_vertices + global_vertex_id

    and cell DOFs are tabulated component-major, so the DOF of local vertex
    ``i`` and component ``c`` is ``tabulate_dofs(cell)[i + stride * c]``
    with ``stride`` the number of vertices per cell.

    Attributes
    ----------
    mesh:
        Local (partition) mesh.
    num_components:
        Number of vector components. A mixed "1 CG1 + gdim CG1v" space is
        ``gdim + 1`` components.
    cell_dofs:
        Tabulated DOFs (ncell, num_components * stride).
    """

    mesh: Mesh
    num_components: int
    cell_dofs: np.ndarray

    @property
    def stride(self) -> int:
        return self.mesh.vertices_per_cell

    @property
    def local_dimension(self) -> int:
        return int(self.cell_dofs.shape[1])

    @property
    def global_dimension(self) -> int:
        return int(self.num_components * self.mesh.num_global_vertices)

    def tabulate_dofs(self, cell: int) -> np.ndarray:
        return self.cell_dofs[cell]

    def vertex_dof(self, vertex: int, component: int) -> int:
        ng = int(self.mesh.num_global_vertices)
        return int(component * ng + self.mesh.global_indices[vertex])

    def owned_dofs(self) -> np.ndarray:
        """Sorted DOFs of the vertices this partition owns."""
        ng = int(self.mesh.num_global_vertices)
        gids = self.mesh.global_indices[~self.mesh.ghost]
        dofs = (np.arange(self.num_components, dtype=np.int64)[:, None] * ng + gids[None, :]).ravel()
        return np.sort(dofs)


def build_vector_cg1_dofmap(mesh: Mesh, num_components: int) -> VectorCG1DofMap:
    """Tabulate the CG1 vector DOF layout for every cell of ``mesh``."""
    if num_components < 1:
        raise ValueError("num_components must be >= 1")

    ng = int(mesh.num_global_vertices)
    gcells = mesh.global_indices[mesh.cells]  # (ncell, nvc)
    blocks = [gcells + c * ng for c in range(num_components)]
    cell_dofs = np.ascontiguousarray(np.hstack(blocks), dtype=np.int64)
    return VectorCG1DofMap(mesh=mesh, num_components=int(num_components), cell_dofs=cell_dofs)
