"""Point-to-point and collective communication between row partitions.

Three backends share one interface:

- SerialCommunicator: a single rank, everything is local.
- ThreadCommunicator: ranks are threads of one process (see ThreadGroup),
  linked by one FIFO queue per directed rank pair and a shared barrier.
- MPICommunicator: mpi4py over MPI.COMM_WORLD (or a given communicator).

``sendrecv`` follows MPI Sendrecv semantics: ``dest`` or ``source`` may be
None (no neighbour), in which case that half of the exchange is skipped and
None is returned for a missing source.
"""

import logging
import queue
import threading
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from ..exceptions import CommunicationError

log = logging.getLogger(__name__)


class Communicator(ABC):
    """Channel and collective operations used by the domain partition."""

    rank: int = 0
    size: int = 1

    @property
    def is_root(self) -> bool:
        return self.rank == 0

    @abstractmethod
    def sendrecv(self, sendbuf: np.ndarray, dest: Optional[int], source: Optional[int]):
        """Send ``sendbuf`` to ``dest`` and receive a same-shaped row from ``source``."""

    @abstractmethod
    def allreduce_sum(self, values: np.ndarray) -> np.ndarray:
        """Element-wise sum over all ranks; every rank gets the same result."""

    @abstractmethod
    def gather(self, obj, root: int = 0) -> Optional[list]:
        """Collect one object per rank on ``root`` (others get None)."""

    @abstractmethod
    def barrier(self):
        pass


class SerialCommunicator(Communicator):
    """Single-rank communicator."""

    def sendrecv(self, sendbuf, dest, source):
        if dest is not None or source is not None:
            raise CommunicationError("Serial communicator has no neighbours")
        return None

    def allreduce_sum(self, values):
        return np.asarray(values, dtype=np.float64).copy()

    def gather(self, obj, root=0):
        return [obj]

    def barrier(self):
        pass


class ThreadGroup:
    """Shared state for a set of in-process ranks.

    Parameters
    ----------
    size : int
        Number of ranks.
    timeout : float
        Seconds to wait on a receive or barrier before failing.
    """

    def __init__(self, size: int, timeout: float = 120.0):
        if size < 1:
            raise ValueError(f"Group size must be at least 1, got {size}")
        self.size = size
        self.timeout = timeout
        self._barrier = threading.Barrier(size, timeout=timeout)
        self._channels = {
            (src, dst): queue.Queue()
            for src in range(size)
            for dst in range(size)
            if src != dst
        }
        self._slots: List[object] = [None] * size

    def communicator(self, rank: int) -> "ThreadCommunicator":
        if not 0 <= rank < self.size:
            raise ValueError(f"Rank {rank} outside group of size {self.size}")
        return ThreadCommunicator(self, rank)

    def communicators(self) -> List["ThreadCommunicator"]:
        return [self.communicator(rank) for rank in range(self.size)]

    def abort(self):
        """Break the barrier so that blocked ranks fail instead of hanging."""
        self._barrier.abort()


class ThreadCommunicator(Communicator):
    """One rank of a :class:`ThreadGroup`."""

    def __init__(self, group: ThreadGroup, rank: int):
        self.group = group
        self.rank = rank
        self.size = group.size

    def sendrecv(self, sendbuf, dest, source):
        if dest is not None:
            self.group._channels[(self.rank, dest)].put(np.array(sendbuf, copy=True))
        if source is None:
            return None
        try:
            return self.group._channels[(source, self.rank)].get(timeout=self.group.timeout)
        except queue.Empty as exc:
            raise CommunicationError(
                f"Rank {self.rank} timed out waiting for a row from rank {source}"
            ) from exc

    def _wait(self):
        try:
            self.group._barrier.wait()
        except threading.BrokenBarrierError as exc:
            raise CommunicationError(f"Rank {self.rank}: partition group barrier broken") from exc

    def allreduce_sum(self, values):
        values = np.asarray(values, dtype=np.float64)
        self.group._slots[self.rank] = values.copy()
        self._wait()
        # Same summation order on every rank, so all ranks agree bit for bit
        total = np.zeros_like(values)
        for contribution in self.group._slots:
            total = total + contribution
        self._wait()
        return total

    def gather(self, obj, root=0):
        self.group._slots[self.rank] = obj
        self._wait()
        result = list(self.group._slots) if self.rank == root else None
        self._wait()
        return result

    def barrier(self):
        self._wait()


class MPICommunicator(Communicator):
    """mpi4py-backed communicator.

    Parameters
    ----------
    comm : mpi4py.MPI.Comm, optional
        Defaults to MPI.COMM_WORLD.
    """

    def __init__(self, comm=None):
        from mpi4py import MPI

        self._MPI = MPI
        self.comm = comm if comm is not None else MPI.COMM_WORLD
        self.rank = self.comm.Get_rank()
        self.size = self.comm.Get_size()

    def _peer(self, rank):
        return self._MPI.PROC_NULL if rank is None else rank

    def sendrecv(self, sendbuf, dest, source):
        send = np.ascontiguousarray(sendbuf, dtype=np.float64)
        recv = np.empty_like(send)
        self.comm.Sendrecv(
            send, dest=self._peer(dest), recvbuf=recv, source=self._peer(source)
        )
        return None if source is None else recv

    def allreduce_sum(self, values):
        send = np.ascontiguousarray(values, dtype=np.float64)
        recv = np.empty_like(send)
        self.comm.Allreduce(send, recv, op=self._MPI.SUM)
        return recv

    def gather(self, obj, root=0):
        return self.comm.gather(obj, root=root)

    def barrier(self):
        self.comm.Barrier()


def create_communicator(backend: str = "serial") -> Communicator:
    """Build the communicator named in the solver parameters."""
    backend = backend.lower()
    if backend == "serial":
        return SerialCommunicator()
    if backend == "mpi":
        comm = MPICommunicator()
        log.info(f"MPI rank {comm.rank} of {comm.size}")
        return comm
    raise ValueError(f"Unknown backend: {backend}. Use 'serial' or 'mpi'")
