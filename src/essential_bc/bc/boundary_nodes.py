"""Enumerate the boundary DOFs of one vector component."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import numpy as np

from essential_bc.fem.dofmap import VectorCG1DofMap
from essential_bc.fem.mesh import BoundaryMesh, Mesh
from essential_bc.fem.subdomain import VertexMarkers


@dataclass(frozen=True)
class BoundaryNode:
    vertex: int
    point: np.ndarray
    dof: int
    is_ghost: bool


@dataclass
class BoundaryNodes:
    """Parallel arrays describing the rows to constrain.

    Attributes
    ----------
    vertices:
        Volume-mesh vertex of each node.
    points:
        Coordinates (n, gdim).
    dofs:
        Global row of each node for the constrained component.
    ghost:
        True where the vertex is owned by another partition.
    """

    vertices: np.ndarray
    points: np.ndarray
    dofs: np.ndarray
    ghost: np.ndarray

    @classmethod
    def empty(cls, gdim: int) -> "BoundaryNodes":
        return cls(
            vertices=np.zeros(0, dtype=np.int64),
            points=np.zeros((0, gdim), dtype=float),
            dofs=np.zeros(0, dtype=np.int64),
            ghost=np.zeros(0, dtype=bool),
        )

    def __len__(self) -> int:
        return int(self.dofs.shape[0])

    def __iter__(self) -> Iterator[BoundaryNode]:
        for i in range(len(self)):
            yield BoundaryNode(
                vertex=int(self.vertices[i]),
                point=self.points[i],
                dof=int(self.dofs[i]),
                is_ghost=bool(self.ghost[i]),
            )

    def select(self, mask: np.ndarray) -> "BoundaryNodes":
        return BoundaryNodes(
            vertices=self.vertices[mask],
            points=self.points[mask],
            dofs=self.dofs[mask],
            ghost=self.ghost[mask],
        )


def build_boundary_nodes(
    mesh: Mesh,
    boundary: BoundaryMesh,
    markers: VertexMarkers,
    sub_domain: int,
    dofmap: VectorCG1DofMap,
    component: int,
) -> BoundaryNodes:
    """Collect ``(point, dof, is_ghost)`` for marked boundary vertices.

    Boundary vertices are visited in boundary-mesh order. For each vertex
    labelled ``sub_domain`` the first incident volume cell is tabulated and
    the DOF at ``local_vertex + stride * component`` is selected.
    """
    if not 0 <= component < dofmap.num_components:
        raise ValueError(f"component {component} out of range for a {dofmap.num_components}-component space")
    if boundary.num_cells == 0:
        return BoundaryNodes.empty(mesh.gdim)

    stride = dofmap.stride
    vertices = []
    dofs = []
    for bv in range(boundary.num_vertices):
        v = int(boundary.vertex_map[bv])

        # Skip vertices outside the sub domain
        if markers[v] != sub_domain:
            continue

        cell = int(mesh.vertex_cells(v)[0])
        local = mesh.local_vertex_index(cell, v)
        cell_dofs = dofmap.tabulate_dofs(cell)
        vertices.append(v)
        dofs.append(int(cell_dofs[local + stride * component]))

    if not vertices:
        return BoundaryNodes.empty(mesh.gdim)

    vertices = np.asarray(vertices, dtype=np.int64)
    return BoundaryNodes(
        vertices=vertices,
        points=mesh.nodes[vertices].copy(),
        dofs=np.asarray(dofs, dtype=np.int64),
        ghost=mesh.ghost[vertices].copy(),
    )
