import logging

import numpy as np
import pytest
import scipy.sparse as sp

from essential_bc import (
    Constant,
    DirichletBC,
    DirichletBCOptions,
    Expression,
    Form,
    FunctionSubDomain,
    VertexMarkers,
    build_vector_cg1_dofmap,
    unit_square_mesh,
)
from essential_bc.bc.dirichlet import BCState
from essential_bc.fem.subdomain import Ownership
from essential_bc.la.matrix import SparsityPatternError

from _support import assemble_pattern


def _left(x, on_boundary):
    return on_boundary and x[0] < 1e-12


def _setup(nx=4, ny=4, ncomp=2, seed=0):
    mesh = unit_square_mesh(nx, ny)
    V = build_vector_cg1_dofmap(mesh, ncomp)
    A = assemble_pattern(V, seed=seed)
    b = np.random.default_rng(seed + 1).normal(size=V.global_dimension)
    return mesh, V, Form(V), A, b


def test_left_edge_scenario():
    mesh, V, form, A, b = _setup()
    A0 = A.toarray()
    b0 = b.copy()
    bc = DirichletBC(mesh, FunctionSubDomain(_left), 0, Constant((5.0, 0.0)))

    n = bc.apply(A, b, form)
    assert n == 5

    left = np.nonzero(mesh.nodes[:, 0] < 1e-12)[0]
    dofs = [V.vertex_dof(int(v), 0) for v in left]
    dense = A.toarray()
    for d in dofs:
        expected = np.zeros(V.global_dimension)
        expected[d] = 1.0
        assert np.array_equal(dense[d], expected)
        assert b[d] == 5.0

    untouched = np.setdiff1d(np.arange(V.global_dimension), dofs)
    assert np.array_equal(dense[untouched], A0[untouched])
    assert np.array_equal(b[untouched], b0[untouched])


def test_apply_keeps_sparsity_pattern():
    mesh, V, form, A, b = _setup()
    indptr, indices = A.indptr.copy(), A.indices.copy()
    DirichletBC(mesh, FunctionSubDomain(_left), 1, Constant((0.0, -2.0))).apply(A, b, form)
    assert np.array_equal(A.indptr, indptr)
    assert np.array_equal(A.indices, indices)
    ng = mesh.num_vertices
    assert b[ng] == -2.0


def test_apply_twice_is_idempotent():
    mesh, V, form, A, b = _setup()
    bc = DirichletBC(mesh, FunctionSubDomain(_left), 0, Constant((5.0, 0.0)))
    bc.apply(A, b, form)
    A1, b1 = A.copy(), b.copy()
    bc.apply(A, b, form)
    assert np.array_equal(A.data, A1.data)
    assert np.array_equal(b, b1)


def test_repeated_solver_iterations_reuse_cache():
    mesh, V, form, A, b = _setup()
    bc = DirichletBC(mesh, FunctionSubDomain(_left), 1, Constant((0.0, 3.0)))
    assert bc.state is BCState.UNINITIALIZED

    rows = None
    working = None
    for it in range(4):
        # a fresh assembly each iteration, same pattern
        A_it = assemble_pattern(V, seed=it)
        b_it = np.zeros(V.global_dimension)
        bc.apply(A_it, b_it, form)
        assert bc.state is BCState.CACHED
        if working is None:
            working = bc.cache.working
        assert bc.cache.working is working

        constrained = A_it[bc.nodes.dofs].toarray()
        if rows is None:
            rows = constrained
        assert np.array_equal(constrained, rows)


def test_time_dependent_expression():
    mesh, V, form, A, b = _setup()
    g = Expression(lambda x, t: (t * (1.0 + x[1]), 0.0), value_size=2, t=0.0)
    bc = DirichletBC(mesh, FunctionSubDomain(_left), 0, g)
    for t in (0.5, 1.0):
        g.t = t
        bc.apply(A, b, form)
        for node in bc.nodes:
            assert b[node.dof] == pytest.approx(t * (1.0 + node.point[1]))


def test_scalar_boundary_value_and_value_component():
    mesh, V, form, A, b = _setup()
    DirichletBC(mesh, FunctionSubDomain(_left), 1, 4.0).apply(A, b, form)
    ng = mesh.num_vertices
    assert b[ng] == 4.0

    opts = DirichletBCOptions(value_component=0)
    bc = DirichletBC(mesh, FunctionSubDomain(_left), 1, Constant((9.0, 1.0)), options=opts)
    bc.apply(A, b, form)
    assert b[ng] == 9.0


def test_empty_boundary_is_a_noop():
    mesh, V, form, A, b = _setup()
    A0, b0 = A.copy(), b.copy()
    bc = DirichletBC(mesh, FunctionSubDomain(lambda x, on_boundary: x[0] > 2.0), 0, Constant((5.0, 0.0)))
    assert bc.apply(A, b, form) == 0
    assert np.array_equal(A.data, A0.data)
    assert np.array_equal(b, b0)
    assert not bc.cache.built


def test_integer_rhs_is_rejected():
    mesh, V, form, A, _ = _setup()
    bc = DirichletBC(mesh, FunctionSubDomain(_left), 0, Constant((5.0, 0.0)))
    with pytest.raises(TypeError):
        bc.apply(A, np.zeros(V.global_dimension, dtype=int), form)


def test_borrowed_markers_are_not_modified():
    mesh, V, form, A, b = _setup()
    markers = VertexMarkers(values=np.where(mesh.nodes[:, 1] > 1.0 - 1e-12, 3, 0))
    before = markers.values.copy()
    bc = DirichletBC.from_markers(mesh, markers, 3, 1, Constant((0.0, 1.0)))
    assert bc.markers.ownership is Ownership.BORROWED
    assert bc.apply(A, b, form) == 5
    assert np.array_equal(markers.values, before)
    assert np.allclose(bc.nodes.points[:, 1], 1.0)


def test_owned_markers_label_subdomain_zero():
    mesh, _, _, _, _ = _setup()
    bc = DirichletBC(mesh, FunctionSubDomain(_left), 0, Constant((1.0, 0.0)))
    assert bc.markers.ownership is Ownership.OWNED
    assert np.count_nonzero(bc.markers.values == 0) == 5
    assert np.count_nonzero(bc.markers.values == 1) == mesh.num_vertices - 5


def test_dense_backend_matches_csr():
    mesh, V, form, A, b = _setup(nx=3, ny=2)
    D = A.toarray()
    bd = b.copy()
    DirichletBC(mesh, FunctionSubDomain(_left), 0, Constant((5.0, 0.0))).apply(A, b, form)
    bc = DirichletBC(mesh, FunctionSubDomain(_left), 0, Constant((5.0, 0.0)),
                     options=DirichletBCOptions(backend="dense"))
    bc.apply(D, bd, form)
    assert np.array_equal(A.toarray(), D)
    assert np.array_equal(b, bd)


def test_numba_and_python_paths_agree():
    mesh, V, form, A, b = _setup()
    A2, b2 = A.copy(), b.copy()
    DirichletBC(mesh, FunctionSubDomain(_left), 1, Constant((0.0, 2.0))).apply(A, b, form)
    DirichletBC(mesh, FunctionSubDomain(_left), 1, Constant((0.0, 2.0)),
                options=DirichletBCOptions(use_numba=False)).apply(A2, b2, form)
    assert np.array_equal(A.data, A2.data)
    assert np.array_equal(b, b2)


def test_unsupported_apply_variants_fail_loudly():
    mesh, V, form, A, b = _setup()
    bc = DirichletBC(mesh, FunctionSubDomain(_left), 0, Constant((5.0, 0.0)))
    A0 = A.copy()
    with pytest.raises(NotImplementedError, match="explicit DOF map"):
        bc.apply(A, b, form, dof_map=V)
    with pytest.raises(NotImplementedError, match="current solution"):
        bc.apply(A, b, form, x=np.zeros_like(b))
    with pytest.raises(TypeError):
        bc.apply(A, b)
    assert np.array_equal(A.data, A0.data)
    assert bc.state is BCState.UNINITIALIZED


def test_changed_sparsity_raises_until_invalidated():
    mesh, V, form, A, b = _setup()
    bc = DirichletBC(mesh, FunctionSubDomain(_left), 0, Constant((5.0, 0.0)))
    bc.apply(A, b, form)

    fine = unit_square_mesh(4, 4, cell_type="quadrilateral")
    A_new = assemble_pattern(build_vector_cg1_dofmap(fine, 2))
    with pytest.raises(SparsityPatternError):
        bc.apply(A_new, b, form)

    bc.invalidate()
    bc.apply(A_new, b, form)
    assert bc.state is BCState.CACHED


def test_unsupported_matrix_format():
    mesh, V, form, A, b = _setup()
    bc = DirichletBC(mesh, FunctionSubDomain(_left), 0, Constant((5.0, 0.0)))
    with pytest.raises(TypeError):
        bc.apply(A.tocoo(), b, form)


def test_apply_logs_through_given_logger(caplog):
    mesh, V, form, A, b = _setup()
    log = logging.getLogger("solver.test")
    bc = DirichletBC(mesh, FunctionSubDomain(_left), 0, Constant((5.0, 0.0)))
    with caplog.at_level(logging.INFO, logger="solver.test"):
        bc.apply(A, b, form, logger=log)
    assert "Applying Dirichlet boundary conditions" in caplog.text
    assert caplog.records[0].name == "solver.test"
