"""Dirichlet row elimination."""

from .boundary_nodes import BoundaryNode, BoundaryNodes, build_boundary_nodes
from .dirichlet import BCState, DirichletBC
from .ghosts import GhostRowResolver
from .row_cache import RowEliminationCache

__all__ = [
    "BoundaryNode", "BoundaryNodes", "build_boundary_nodes",
    "BCState", "DirichletBC",
    "GhostRowResolver",
    "RowEliminationCache",
]
