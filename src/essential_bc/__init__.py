"""essential_bc: Dirichlet row elimination for CG1 vector systems."""

from .bc import BCState, BoundaryNodes, DirichletBC, GhostRowResolver, RowEliminationCache, build_boundary_nodes
from .config import DirichletBCOptions
from .fem import (
    Constant,
    Expression,
    Form,
    FunctionSubDomain,
    Mesh,
    Ownership,
    SubDomain,
    VertexMarkers,
    build_vector_cg1_dofmap,
    unit_square_mesh,
)
from .la import CSRMatrixBackend, DenseMatrixBackend, GhostedVector, SerialComm, SparsityPatternError
from .logging_config import setup_logging

__version__ = "0.1.0"

__all__ = [
    "BCState", "BoundaryNodes", "DirichletBC", "GhostRowResolver", "RowEliminationCache",
    "build_boundary_nodes",
    "DirichletBCOptions",
    "Constant", "Expression", "Form", "FunctionSubDomain", "Mesh", "Ownership", "SubDomain",
    "VertexMarkers", "build_vector_cg1_dofmap", "unit_square_mesh",
    "CSRMatrixBackend", "DenseMatrixBackend", "GhostedVector", "SerialComm", "SparsityPatternError",
    "setup_logging",
]
