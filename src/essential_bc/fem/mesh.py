"""Unstructured simplex/quad meshes and boundary-mesh extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np


# Topological dimension, vertices per cell and local facet -> local vertex table.
_CELL_TYPES: Dict[str, Tuple[int, int, Tuple[Tuple[int, ...], ...]]] = {
    "interval": (1, 2, ((0,), (1,))),
    "triangle": (2, 3, ((1, 2), (0, 2), (0, 1))),
    "quadrilateral": (2, 4, ((0, 1), (1, 2), (2, 3), (3, 0))),
    "tetrahedron": (3, 4, ((1, 2, 3), (0, 2, 3), (0, 1, 3), (0, 1, 2))),
}


def _default_cell_type(nvc: int, gdim: int) -> str:
    if nvc == 2:
        return "interval"
    if nvc == 3:
        return "triangle"
    if nvc == 4 and gdim == 2:
        return "quadrilateral"
    # 4 vertices in 3D is either a tetrahedron or a surface quad
    raise ValueError(f"cell_type must be given for {nvc}-vertex cells with gdim={gdim}")


@dataclass
class BoundaryMesh:
    """Exterior facets of a :class:`Mesh`.

    Attributes
    ----------
    cells:
        Boundary cells (facets) in boundary-vertex numbering.
    vertex_map:
        Boundary vertex -> volume vertex.
    cell_map:
        Boundary cell -> volume cell owning the facet.
    """

    cells: np.ndarray
    vertex_map: np.ndarray
    cell_map: np.ndarray

    @property
    def num_cells(self) -> int:
        return int(self.cells.shape[0])

    @property
    def num_vertices(self) -> int:
        return int(self.vertex_map.shape[0])


@dataclass
class Mesh:
    """Mesh storage for one partition.

    Attributes
    ----------
    nodes:
        Vertex coordinates (nvert, gdim).
    cells:
        Cell connectivity (ncell, nvc) in local vertex numbering.
    cell_type:
        "interval", "triangle", "quadrilateral" or "tetrahedron". Inferred
        from the connectivity when unambiguous.
    ghost:
        Boolean mask of vertices owned by another partition.
    global_indices:
        Local vertex -> global vertex id. Identity for serial meshes.
    num_global_vertices:
        Vertex count of the whole (unpartitioned) mesh.
    shared_facets:
        Facets (nfacet, nfv) in local vertex numbering that lie on the
        interface with another partition. Set by the partitioner; they are
        interior to the global mesh and never part of the boundary.
    """

    nodes: np.ndarray
    cells: np.ndarray
    cell_type: Optional[str] = None
    ghost: Optional[np.ndarray] = None
    global_indices: Optional[np.ndarray] = None
    num_global_vertices: Optional[int] = None
    shared_facets: Optional[np.ndarray] = None
    _vertex_cell_offsets: Optional[np.ndarray] = field(default=None, init=False, repr=False)
    _vertex_cell_data: Optional[np.ndarray] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.nodes = np.asarray(self.nodes, dtype=float)
        if self.nodes.ndim == 1:
            self.nodes = self.nodes.reshape(-1, 1)
        self.cells = np.asarray(self.cells, dtype=np.int64)
        nv = self.nodes.shape[0]
        if self.cells.ndim != 2:
            raise ValueError(f"cells must be (ncell, nvc), got shape {self.cells.shape}")
        if self.cell_type is None:
            self.cell_type = _default_cell_type(self.vertices_per_cell, self.gdim)
        if self.cell_type not in _CELL_TYPES:
            raise ValueError(f"Unknown cell_type='{self.cell_type}'. Use one of {sorted(_CELL_TYPES)}.")
        if _CELL_TYPES[self.cell_type][1] != self.vertices_per_cell:
            raise ValueError(
                f"cell_type='{self.cell_type}' does not match {self.vertices_per_cell} vertices per cell"
            )
        if self.ghost is None:
            self.ghost = np.zeros(nv, dtype=bool)
        else:
            self.ghost = np.asarray(self.ghost, dtype=bool)
        if self.global_indices is None:
            self.global_indices = np.arange(nv, dtype=np.int64)
        else:
            self.global_indices = np.asarray(self.global_indices, dtype=np.int64)
        if self.num_global_vertices is None:
            self.num_global_vertices = nv
        if self.ghost.shape != (nv,) or self.global_indices.shape != (nv,):
            raise ValueError("ghost and global_indices must have one entry per vertex")
        nfv = len(_CELL_TYPES[self.cell_type][2][0])
        if self.shared_facets is None:
            self.shared_facets = np.zeros((0, nfv), dtype=np.int64)
        else:
            self.shared_facets = np.asarray(self.shared_facets, dtype=np.int64).reshape(-1, nfv)

    @property
    def gdim(self) -> int:
        return int(self.nodes.shape[1])

    @property
    def tdim(self) -> int:
        return _CELL_TYPES[self.cell_type][0]

    @property
    def vertices_per_cell(self) -> int:
        return int(self.cells.shape[1])

    @property
    def num_vertices(self) -> int:
        return int(self.nodes.shape[0])

    @property
    def num_cells(self) -> int:
        return int(self.cells.shape[0])

    def is_ghost(self, vertex: int) -> bool:
        return bool(self.ghost[vertex])

    def cell_facets(self, cell: int) -> List[Tuple[int, ...]]:
        """Facets of ``cell`` as tuples of local vertex ids."""
        cv = self.cells[cell]
        return [tuple(int(cv[i]) for i in lf) for lf in _CELL_TYPES[self.cell_type][2]]

    def _build_vertex_cells(self) -> None:
        flat = self.cells.ravel()
        order = np.argsort(flat, kind="stable")
        counts = np.bincount(flat, minlength=self.num_vertices)
        offsets = np.zeros(self.num_vertices + 1, dtype=np.int64)
        np.cumsum(counts, out=offsets[1:])
        self._vertex_cell_offsets = offsets
        self._vertex_cell_data = order // self.vertices_per_cell

    def vertex_cells(self, vertex: int) -> np.ndarray:
        """Cells incident to ``vertex`` in increasing cell order."""
        if self._vertex_cell_offsets is None:
            self._build_vertex_cells()
        a = self._vertex_cell_offsets[vertex]
        b = self._vertex_cell_offsets[vertex + 1]
        return self._vertex_cell_data[a:b]

    def local_vertex_index(self, cell: int, vertex: int) -> int:
        hits = np.nonzero(self.cells[cell] == vertex)[0]
        if hits.size == 0:
            raise ValueError(f"vertex {vertex} is not a vertex of cell {cell}")
        return int(hits[0])

    def boundary_mesh(self) -> BoundaryMesh:
        """Extract the facets that belong to exactly one cell.

        Facets listed in ``shared_facets`` are skipped: they bound this
        partition but are interior to the global mesh.
        """
        nfv = self.shared_facets.shape[1]
        seen: Dict[Tuple[int, ...], Tuple[int, Tuple[int, ...]]] = {}
        count: Dict[Tuple[int, ...], int] = {}
        for c in range(self.num_cells):
            for facet in self.cell_facets(c):
                key = tuple(sorted(facet))
                count[key] = count.get(key, 0) + 1
                if key not in seen:
                    seen[key] = (c, facet)

        shared = {tuple(sorted(int(v) for v in f)) for f in self.shared_facets}
        exterior = [seen[k] for k in seen if count[k] == 1 and k not in shared]
        if not exterior:
            return BoundaryMesh(
                cells=np.zeros((0, nfv), dtype=np.int64),
                vertex_map=np.zeros(0, dtype=np.int64),
                cell_map=np.zeros(0, dtype=np.int64),
            )

        cell_map = np.array([c for c, _ in exterior], dtype=np.int64)
        facets = np.array([f for _, f in exterior], dtype=np.int64)
        vertex_map, inverse = np.unique(facets.ravel(), return_inverse=True)
        return BoundaryMesh(
            cells=inverse.reshape(facets.shape).astype(np.int64),
            vertex_map=vertex_map.astype(np.int64),
            cell_map=cell_map,
        )


def structured_quad_mesh(L: float, H: float, nx: int, ny: int):
    xs = np.linspace(0.0, L, nx + 1)
    ys = np.linspace(0.0, H, ny + 1)
    nodes = np.array([[x, y] for y in ys for x in xs], dtype=float)

    def nid(i, j):  # i along x, j along y
        return j * (nx + 1) + i

    elems = []
    for j in range(ny):
        for i in range(nx):
            n1 = nid(i, j)
            n2 = nid(i + 1, j)
            n3 = nid(i + 1, j + 1)
            n4 = nid(i, j + 1)
            elems.append([n1, n2, n3, n4])
    return nodes, np.array(elems, dtype=int)


def rectangle_mesh(L: float, H: float, nx: int, ny: int, cell_type: str = "triangle") -> Mesh:
    """Structured mesh of ``[0, L] x [0, H]``.

    ``cell_type`` is ``"quadrilateral"`` or ``"triangle"`` (each quad split
    along its 1-3 diagonal).
    """
    nodes, quads = structured_quad_mesh(L, H, nx, ny)
    if cell_type in ("quadrilateral", "quad"):
        return Mesh(nodes=nodes, cells=quads, cell_type="quadrilateral")
    if cell_type != "triangle":
        raise ValueError(f"Unknown cell_type='{cell_type}'. Use 'triangle' or 'quadrilateral'.")
    tris = np.empty((2 * quads.shape[0], 3), dtype=int)
    tris[0::2] = quads[:, [0, 1, 2]]
    tris[1::2] = quads[:, [0, 2, 3]]
    return Mesh(nodes=nodes, cells=tris, cell_type="triangle")


def unit_square_mesh(nx: int, ny: int, cell_type: str = "triangle") -> Mesh:
    return rectangle_mesh(1.0, 1.0, nx, ny, cell_type=cell_type)
