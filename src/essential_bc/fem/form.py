"""Bilinear form handle carrying the DOF maps of its arguments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from essential_bc.fem.dofmap import VectorCG1DofMap


@dataclass
class Form:
    """Assembled-form descriptor.

    Only the argument DOF maps are needed to constrain the assembled
    system; the integrand itself lives with the assembler.
    """

    test_dofmap: VectorCG1DofMap
    trial_dofmap: Optional[VectorCG1DofMap] = None

    def __post_init__(self):
        if self.trial_dofmap is None:
            self.trial_dofmap = self.test_dofmap

    @property
    def dofmaps(self) -> Tuple[VectorCG1DofMap, VectorCG1DofMap]:
        return (self.test_dofmap, self.trial_dofmap)
