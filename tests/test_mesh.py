import numpy as np
import pytest

from essential_bc.fem.mesh import Mesh, rectangle_mesh, structured_quad_mesh, unit_square_mesh


def test_structured_quad_mesh_counts():
    nodes, elems = structured_quad_mesh(2.0, 1.0, 4, 2)
    assert nodes.shape == (15, 2)
    assert elems.shape == (8, 4)
    assert np.allclose(nodes[-1], [2.0, 1.0])


def test_triangle_boundary_mesh_is_the_perimeter():
    mesh = unit_square_mesh(4, 3)
    assert mesh.num_cells == 24
    bmesh = mesh.boundary_mesh()
    # 2 * (nx + ny) edges and as many vertices on a closed loop
    assert bmesh.num_cells == 14
    assert bmesh.num_vertices == 14
    x = mesh.nodes[bmesh.vertex_map]
    on_edge = (np.isclose(x[:, 0], 0.0) | np.isclose(x[:, 0], 1.0)
               | np.isclose(x[:, 1], 0.0) | np.isclose(x[:, 1], 1.0))
    assert on_edge.all()


def test_boundary_cell_map_points_at_owning_cells():
    mesh = rectangle_mesh(1.0, 1.0, 2, 2, cell_type="quadrilateral")
    bmesh = mesh.boundary_mesh()
    for f in range(bmesh.num_cells):
        verts = bmesh.vertex_map[bmesh.cells[f]]
        cell = mesh.cells[bmesh.cell_map[f]]
        assert set(verts.tolist()) <= set(cell.tolist())


def test_vertex_cells_and_local_index():
    mesh = unit_square_mesh(2, 2)
    centre = int(np.argmin(np.linalg.norm(mesh.nodes - 0.5, axis=1)))
    cells = mesh.vertex_cells(centre)
    assert cells.size == 6
    for c in cells:
        i = mesh.local_vertex_index(int(c), centre)
        assert mesh.cells[c, i] == centre
    with pytest.raises(ValueError):
        mesh.local_vertex_index(0, centre + 100)


def test_tetrahedron_boundary_faces():
    nodes = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1], [1, 1, 1]], dtype=float)
    cells = np.array([[0, 1, 2, 3], [1, 2, 3, 4]])
    mesh = Mesh(nodes=nodes, cells=cells, cell_type="tetrahedron")
    assert mesh.tdim == 3
    bmesh = mesh.boundary_mesh()
    # 8 faces, the shared face (1, 2, 3) is interior
    assert bmesh.num_cells == 6
    assert bmesh.num_vertices == 5


def test_mesh_rejects_bad_ghost_mask():
    nodes, elems = structured_quad_mesh(1.0, 1.0, 1, 1)
    with pytest.raises(ValueError):
        Mesh(nodes=nodes, cells=elems, ghost=np.zeros(3, dtype=bool))


def test_unknown_cell_type():
    with pytest.raises(ValueError):
        rectangle_mesh(1.0, 1.0, 2, 2, cell_type="hexagon")


def test_four_vertex_cells_in_3d_need_a_cell_type():
    nodes = np.array([[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]], dtype=float)
    cells = np.array([[0, 1, 2, 3]])
    with pytest.raises(ValueError):
        Mesh(nodes=nodes, cells=cells)

    surface = Mesh(nodes=nodes, cells=cells, cell_type="quadrilateral")
    assert surface.tdim == 2
    assert surface.boundary_mesh().num_cells == 4


def test_cell_type_must_match_connectivity():
    nodes, elems = structured_quad_mesh(1.0, 1.0, 1, 1)
    with pytest.raises(ValueError):
        Mesh(nodes=nodes, cells=elems, cell_type="triangle")


def test_shared_facets_are_not_boundary():
    mesh = rectangle_mesh(1.0, 1.0, 2, 1, cell_type="quadrilateral")
    # keep only the left quad; its right edge x=0.5 faces the other partition
    left = mesh.cells[:1]
    right_edge = [v for v in left[0] if np.isclose(mesh.nodes[v, 0], 0.5)]
    part = Mesh(nodes=mesh.nodes, cells=left, cell_type="quadrilateral",
                shared_facets=np.array([right_edge]))
    bmesh = part.boundary_mesh()
    assert bmesh.num_cells == 3
    for f in range(bmesh.num_cells):
        verts = bmesh.vertex_map[bmesh.cells[f]]
        assert not np.allclose(part.nodes[verts, 0], 0.5)
