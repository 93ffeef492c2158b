"""Subdomain predicates and per-vertex markers."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from essential_bc.fem.mesh import BoundaryMesh, Mesh


class Ownership(enum.Enum):
    """Who is allowed to mutate a marker field."""

    OWNED = "owned"
    BORROWED = "borrowed"


@dataclass
class VertexMarkers:
    """Integer label per mesh vertex."""

    values: np.ndarray
    ownership: Ownership = Ownership.BORROWED

    @classmethod
    def create(cls, mesh: Mesh, default: int = 1) -> "VertexMarkers":
        return cls(values=np.full(mesh.num_vertices, int(default), dtype=np.int64), ownership=Ownership.OWNED)

    def __getitem__(self, vertex):
        return self.values[vertex]

    def __len__(self) -> int:
        return int(self.values.shape[0])


class SubDomain:
    """Geometric predicate selecting mesh vertices.

    Subclasses override :meth:`inside`.
    """

    def inside(self, x: np.ndarray, on_boundary: bool) -> bool:
        raise NotImplementedError

    def mark(self, markers: VertexMarkers, label: int, mesh: Mesh, boundary: Optional[BoundaryMesh] = None) -> int:
        """Set ``markers[v] = label`` for every vertex inside the subdomain.

        Returns the number of marked vertices.
        """
        if markers.ownership is not Ownership.OWNED:
            raise ValueError("Refusing to mark a borrowed marker field")
        if boundary is None:
            boundary = mesh.boundary_mesh()
        on_boundary = np.zeros(mesh.num_vertices, dtype=bool)
        on_boundary[boundary.vertex_map] = True

        nmarked = 0
        for v in range(mesh.num_vertices):
            if self.inside(mesh.nodes[v], bool(on_boundary[v])):
                markers.values[v] = int(label)
                nmarked += 1
        return nmarked


class FunctionSubDomain(SubDomain):
    """SubDomain from a plain function ``fn(x, on_boundary) -> bool``."""

    def __init__(self, fn: Callable[[np.ndarray, bool], bool]):
        self.fn = fn

    def inside(self, x: np.ndarray, on_boundary: bool) -> bool:
        return bool(self.fn(x, on_boundary))
