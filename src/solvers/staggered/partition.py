"""Row-wise domain decomposition along y with one-row halos.

The interior cell rows ``[1, ny)`` of the global grid are split into
contiguous bands, one per rank. Each rank stores its band plus one row on
either side: a physical boundary row on the bottom/top rank, a ghost row
refreshed from the neighbour everywhere else. Local row ``jl`` maps to global
row ``j = jl + row_lo - 1``.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .comm import Communicator

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Partition:
    """Band of interior cell rows ``[row_lo, row_hi)`` owned by one rank."""

    rank: int
    size: int
    row_lo: int
    row_hi: int

    @property
    def n_rows(self) -> int:
        return self.row_hi - self.row_lo

    @property
    def prev(self) -> Optional[int]:
        """Neighbour below, None on the bottom wall."""
        return self.rank - 1 if self.rank > 0 else None

    @property
    def next(self) -> Optional[int]:
        """Neighbour above, None under the lid."""
        return self.rank + 1 if self.rank < self.size - 1 else None

    @property
    def is_bottom(self) -> bool:
        return self.prev is None

    @property
    def is_top(self) -> bool:
        return self.next is None


def decompose_rows(ny: int, size: int) -> List[Tuple[int, int]]:
    """Split interior rows ``[1, ny)`` into ``size`` contiguous bands.

    The first ``(ny - 1) % size`` bands get one extra row.
    """
    n_interior = ny - 1
    if size < 1:
        raise ValueError(f"Need at least one partition, got {size}")
    if n_interior < size:
        raise ValueError(
            f"Cannot split {n_interior} interior rows across {size} partitions"
        )
    base, extra = divmod(n_interior, size)
    bounds = []
    lo = 1
    for rank in range(size):
        hi = lo + base + (1 if rank < extra else 0)
        bounds.append((lo, hi))
        lo = hi
    return bounds


class DomainPartition:
    """Partition bookkeeping plus the halo exchange for one rank.

    Parameters
    ----------
    ny : int
        Global number of grid nodes in y.
    comm : Communicator
        Channel to the neighbouring ranks.
    """

    def __init__(self, ny: int, comm: Communicator):
        self.ny = ny
        self.comm = comm
        row_lo, row_hi = decompose_rows(ny, comm.size)[comm.rank]
        self.partition = Partition(
            rank=comm.rank, size=comm.size, row_lo=row_lo, row_hi=row_hi
        )
        log.debug(
            f"Rank {comm.rank}/{comm.size} owns rows [{row_lo}, {row_hi})"
        )

    @property
    def n_rows(self) -> int:
        return self.partition.n_rows

    @property
    def is_bottom(self) -> bool:
        return self.partition.is_bottom

    @property
    def is_top(self) -> bool:
        return self.partition.is_top

    def exchange(self, array: np.ndarray):
        """Refresh both ghost rows of ``array`` from the neighbours, in place.

        Two shifts: owned top row upwards (into ``next``'s bottom ghost),
        then owned bottom row downwards (into ``prev``'s top ghost). Each
        shift is a blocking sendrecv, so on return both ghosts hold the
        neighbours' values of this iteration.
        """
        part = self.partition
        n = part.n_rows

        received = self.comm.sendrecv(array[:, n], dest=part.next, source=part.prev)
        if received is not None:
            array[:, 0] = received

        received = self.comm.sendrecv(array[:, 1], dest=part.prev, source=part.next)
        if received is not None:
            array[:, n + 1] = received

    def allreduce_sum(self, values) -> np.ndarray:
        return self.comm.allreduce_sum(np.asarray(values, dtype=np.float64))

    def gather(self, array: np.ndarray, has_top_row: bool = True) -> Optional[np.ndarray]:
        """Assemble the global array on rank 0.

        Every rank contributes its owned rows; the bottom rank adds the bottom
        boundary row and, if ``has_top_row``, the top rank adds the row above
        its band (the lid ghost row for u and p; v has none).
        """
        part = self.partition
        start = 0 if part.is_bottom else 1
        stop = part.n_rows + 2 if (part.is_top and has_top_row) else part.n_rows + 1
        pieces = self.comm.gather(np.array(array[:, start:stop], copy=True), root=0)
        if pieces is None:
            return None
        return np.concatenate(pieces, axis=1)
