"""Communicator helpers.

Distributed runs pass an mpi4py communicator (``MPI.COMM_WORLD``); only the
``rank``, ``size``, ``allgather`` and ``barrier`` members are used.
"""

from __future__ import annotations

from typing import Any, List


class SerialComm:
    """Single-process communicator with the mpi4py call signatures."""

    rank = 0
    size = 1

    def allgather(self, obj: Any) -> List[Any]:
        return [obj]

    def barrier(self) -> None:
        return None

    def __repr__(self) -> str:
        return "SerialComm()"


def resolve_comm(comm=None):
    """Return ``comm`` or a serial communicator when None."""
    if comm is None:
        return SerialComm()
    for attr in ("rank", "size", "allgather"):
        if not hasattr(comm, attr):
            raise TypeError(f"communicator {comm!r} lacks '{attr}'")
    return comm
