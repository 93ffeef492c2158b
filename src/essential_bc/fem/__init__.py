"""Mesh, DOF map, form and boundary-function collaborators."""

from .dofmap import VectorCG1DofMap, build_vector_cg1_dofmap
from .form import Form
from .function import Constant, Expression
from .mesh import BoundaryMesh, Mesh, rectangle_mesh, structured_quad_mesh, unit_square_mesh
from .subdomain import FunctionSubDomain, Ownership, SubDomain, VertexMarkers

__all__ = [
    "VectorCG1DofMap", "build_vector_cg1_dofmap",
    "Form",
    "Constant", "Expression",
    "BoundaryMesh", "Mesh", "rectangle_mesh", "structured_quad_mesh", "unit_square_mesh",
    "FunctionSubDomain", "Ownership", "SubDomain", "VertexMarkers",
]
