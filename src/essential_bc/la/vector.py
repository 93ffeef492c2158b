"""Distributed vector with an optional ghost layout."""

from __future__ import annotations

import logging
from typing import Dict, Optional

import numpy as np

from essential_bc.la.comm import resolve_comm

logger = logging.getLogger(__name__)


class GhostedVector:
    """Globally indexed vector holding owned and ghost entries locally.

    Parameters
    ----------
    size:
        Global length.
    owned:
        Global indices owned by this process. All indices when None.
    comm:
        mpi4py-style communicator; serial when None.
    values:
        Optional initial owned values. Used without copying, so a vector
        built with :meth:`from_array` writes straight into the caller's
        array.
    """

    def __init__(self, size: int, owned: Optional[np.ndarray] = None, comm=None,
                 values: Optional[np.ndarray] = None):
        self.size = int(size)
        self.comm = resolve_comm(comm)
        if owned is None:
            owned = np.arange(self.size, dtype=np.int64)
        else:
            owned = np.unique(np.asarray(owned, dtype=np.int64))
        self.owned = owned
        if values is None:
            values = np.zeros(owned.size, dtype=float)
        elif values.shape != (owned.size,):
            raise ValueError(f"values has shape {values.shape}, expected ({owned.size},)")
        self._owned_values = values
        self._ghost_values = np.zeros(0, dtype=float)
        self.ghosts = np.zeros(0, dtype=np.int64)
        self.ghost_owners = np.zeros(0, dtype=np.int64)
        self._stash: Dict[int, float] = {}
        self._is_ghosted = False
        self._reindex()

    @classmethod
    def from_array(cls, array: np.ndarray, comm=None) -> "GhostedVector":
        """Serial view of a 1D float array (no copy)."""
        if array.ndim != 1:
            raise ValueError("expected a 1D array")
        if not np.issubdtype(array.dtype, np.floating):
            # a converted copy would silently detach from the caller's array
            raise TypeError(f"expected a floating point array, got dtype {array.dtype}")
        return cls(array.size, owned=None, comm=comm, values=array)

    def _reindex(self) -> None:
        local = np.concatenate([self.owned, self.ghosts])
        self._order = np.argsort(local, kind="stable")
        self._sorted = local[self._order]

    @property
    def has_ghost_layout(self) -> bool:
        return self._is_ghosted

    @property
    def owned_values(self) -> np.ndarray:
        return self._owned_values

    @property
    def ghost_values(self) -> np.ndarray:
        return self._ghost_values

    def local_index(self, dof: int) -> int:
        """Position in ``owned + ghosts`` storage, or -1 if not held locally."""
        k = int(np.searchsorted(self._sorted, dof))
        if k < self._sorted.size and self._sorted[k] == dof:
            return int(self._order[k])
        return -1

    def owns(self, dof: int) -> bool:
        k = self.local_index(dof)
        return 0 <= k < self.owned.size

    def get(self, dof: int) -> float:
        k = self.local_index(dof)
        if k < 0:
            raise IndexError(f"dof {dof} is neither owned nor ghosted on rank {self.comm.rank}")
        n = self.owned.size
        return float(self._owned_values[k] if k < n else self._ghost_values[k - n])

    __getitem__ = get

    def set(self, dof: int, value: float) -> None:
        """Set a global entry. Off-process entries are sent on :meth:`flush`."""
        k = self.local_index(dof)
        n = self.owned.size
        if 0 <= k < n:
            self._owned_values[k] = value
            return
        if k >= n:
            self._ghost_values[k - n] = value
        if not 0 <= dof < self.size:
            raise IndexError(f"dof {dof} out of range for vector of size {self.size}")
        self._stash[int(dof)] = float(value)

    __setitem__ = set

    def init_ghosted(self, rows) -> None:
        """Materialize ghost slots for the off-process entries of ``rows``.

        Collective: every rank exchanges its owned index set once to find
        the owner of each ghost.
        """
        rows = np.unique(np.asarray(rows, dtype=np.int64))
        ghosts = np.setdiff1d(rows, self.owned, assume_unique=True)

        all_owned = self.comm.allgather(self.owned)
        owners = -np.ones(ghosts.size, dtype=np.int64)
        for r, owned_r in enumerate(all_owned):
            if r == self.comm.rank:
                continue
            owners[np.isin(ghosts, owned_r, assume_unique=True)] = r
        if np.any(owners < 0):
            orphan = ghosts[owners < 0]
            raise ValueError(f"ghost indices without an owning rank: {orphan[:10].tolist()}")

        self.ghosts = ghosts
        self.ghost_owners = owners
        self._ghost_values = np.zeros(ghosts.size, dtype=float)
        self._is_ghosted = True
        self._reindex()
        logger.debug("rank %d: ghost layout with %d ghosts", self.comm.rank, ghosts.size)

    def flush(self) -> None:
        """Send stashed off-process entries to their owners.

        Collective when running on more than one rank.
        """
        if self.comm.size == 1:
            self._stash.clear()
            return
        gathered = self.comm.allgather(self._stash)
        self._stash = {}
        for r, stash in enumerate(gathered):
            if r == self.comm.rank:
                continue
            for dof, value in stash.items():
                k = self.local_index(dof)
                if 0 <= k < self.owned.size:
                    self._owned_values[k] = value

    def update_ghosts(self) -> None:
        """Refresh ghost entries from their owners. Collective."""
        if self.comm.size == 1:
            return
        requests = self.comm.allgather(self.ghosts)
        replies = {}
        for r, wanted in enumerate(requests):
            if r == self.comm.rank or wanted.size == 0:
                continue
            mine = np.isin(wanted, self.owned, assume_unique=True)
            for dof in wanted[mine]:
                replies[int(dof)] = float(self._owned_values[self.local_index(int(dof))])
        answered = self.comm.allgather(replies)
        for r, rep in enumerate(answered):
            if r == self.comm.rank:
                continue
            for i, dof in enumerate(self.ghosts):
                if self.ghost_owners[i] == r and int(dof) in rep:
                    self._ghost_values[i] = rep[int(dof)]

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return (f"GhostedVector(size={self.size}, owned={self.owned.size}, "
                f"ghosts={self.ghosts.size}, rank={self.comm.rank})")
