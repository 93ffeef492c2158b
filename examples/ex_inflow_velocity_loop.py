"""Re-apply a time-dependent inflow condition inside a time-stepping loop.

A 2-component CG1 system (u, v) on the unit square is re-assembled every
step; the x-velocity on the left edge follows a ramped parabolic profile
and the y-velocity on the left edge is held at zero.
"""

import sys
from pathlib import Path

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from essential_bc import (
    Constant,
    DirichletBC,
    Expression,
    Form,
    FunctionSubDomain,
    build_vector_cg1_dofmap,
    setup_logging,
    unit_square_mesh,
)


def lumped_mass_plus_coupling(V, dt: float) -> sp.csr_matrix:
    """Small diffusion-like operator with the cell-coupling pattern of V."""
    rows, cols, data = [], [], []
    for c in range(V.mesh.num_cells):
        d = V.tabulate_dofs(c)
        nd = d.size
        block = -np.ones((nd, nd)) * dt
        np.fill_diagonal(block, 1.0 + (nd - 1) * dt)
        rows.append(np.repeat(d, nd))
        cols.append(np.tile(d, nd))
        data.append(block.ravel())
    n = V.global_dimension
    return sp.coo_matrix(
        (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))), shape=(n, n)
    ).tocsr()


def main():
    setup_logging()

    mesh = unit_square_mesh(16, 16)
    V = build_vector_cg1_dofmap(mesh, 2)
    form = Form(V)
    left = FunctionSubDomain(lambda x, on_boundary: on_boundary and x[0] < 1e-12)

    inflow = Expression(lambda x, t: (min(t, 1.0) * 4.0 * x[1] * (1.0 - x[1]), 0.0), value_size=2, t=0.0)
    bcs = [
        DirichletBC(mesh, left, 0, inflow),
        DirichletBC(mesh, left, 1, Constant((0.0, 0.0))),
    ]

    dt = 0.1
    u = np.zeros(V.global_dimension)
    print("=" * 60)
    print(f"{'step':>6} {'t':>8} {'max u':>12} {'u(0, 0.5)':>12}")
    print("=" * 60)
    for step in range(1, 16):
        inflow.t = step * dt
        A = lumped_mass_plus_coupling(V, dt)
        b = u.copy()
        for bc in bcs:
            bc.apply(A, b, form)
        u = spla.spsolve(A, b)

        mid = int(np.argmin(np.linalg.norm(mesh.nodes - np.array([0.0, 0.5]), axis=1)))
        print(f"{step:6d} {inflow.t:8.2f} {u[:mesh.num_vertices].max():12.6f} {u[V.vertex_dof(mid, 0)]:12.6f}")


if __name__ == "__main__":
    main()
