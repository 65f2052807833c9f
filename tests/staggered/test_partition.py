"""Tests for row decomposition, halo exchange and collectives."""

import numpy as np
import pytest

from solvers.exceptions import CommunicationError
from solvers.staggered.comm import SerialCommunicator, ThreadGroup, create_communicator
from solvers.staggered.partition import DomainPartition, Partition, decompose_rows


class TestDecomposeRows:
    """Splitting interior rows [1, ny) into bands."""

    def test_single_band(self):
        assert decompose_rows(16, 1) == [(1, 16)]

    def test_bands_cover_interior_contiguously(self):
        bounds = decompose_rows(16, 4)
        assert bounds[0][0] == 1
        assert bounds[-1][1] == 16
        for (_, hi), (lo, _) in zip(bounds[:-1], bounds[1:]):
            assert hi == lo

    def test_remainder_goes_to_first_bands(self):
        sizes = [hi - lo for lo, hi in decompose_rows(16, 4)]
        assert sizes == [4, 4, 4, 3]

    def test_too_many_partitions(self):
        with pytest.raises(ValueError):
            decompose_rows(4, 4)

    def test_zero_partitions(self):
        with pytest.raises(ValueError):
            decompose_rows(16, 0)


class TestPartition:
    def test_neighbours(self):
        bottom = Partition(rank=0, size=3, row_lo=1, row_hi=4)
        middle = Partition(rank=1, size=3, row_lo=4, row_hi=7)
        top = Partition(rank=2, size=3, row_lo=7, row_hi=9)

        assert bottom.prev is None and bottom.next == 1
        assert middle.prev == 0 and middle.next == 2
        assert top.prev == 1 and top.next is None
        assert bottom.is_bottom and not bottom.is_top
        assert top.is_top and not top.is_bottom
        assert top.n_rows == 2


class TestSerialCommunicator:
    def test_single_rank_partition(self):
        domain = DomainPartition(8, SerialCommunicator())
        assert domain.n_rows == 7
        assert domain.is_bottom and domain.is_top

    def test_exchange_is_noop(self):
        domain = DomainPartition(8, SerialCommunicator())
        array = np.arange(4 * 9, dtype=float).reshape(4, 9)
        before = array.copy()
        domain.exchange(array)
        np.testing.assert_array_equal(array, before)

    def test_sendrecv_with_neighbour_fails(self):
        with pytest.raises(CommunicationError):
            SerialCommunicator().sendrecv(np.zeros(3), dest=1, source=None)

    def test_allreduce_and_gather(self):
        comm = SerialCommunicator()
        np.testing.assert_array_equal(comm.allreduce_sum(np.array([1.0, 2.0])), [1.0, 2.0])
        assert comm.gather("x") == ["x"]

    def test_create_communicator(self):
        assert isinstance(create_communicator("serial"), SerialCommunicator)
        with pytest.raises(ValueError):
            create_communicator("carrier-pigeon")


class TestThreadExchange:
    """Halo exchange and collectives between in-process ranks."""

    @pytest.mark.parametrize("size", [2, 3, 4])
    def test_ghost_rows_hold_neighbour_rows(self, size, thread_runner):
        ny, width = 13, 5

        def fill_and_exchange(comm):
            domain = DomainPartition(ny, comm)
            n = domain.n_rows
            array = np.full((width, n + 2), -1.0)
            # Owned rows carry their global row index
            for jl in range(1, n + 1):
                array[:, jl] = domain.partition.row_lo + jl - 1
            domain.exchange(array)
            return domain.partition, array

        results = thread_runner(size, fill_and_exchange)

        for part, array in results:
            n = part.n_rows
            if part.is_bottom:
                assert np.all(array[:, 0] == -1.0)
            else:
                assert np.all(array[:, 0] == part.row_lo - 1)
            if part.is_top:
                assert np.all(array[:, n + 1] == -1.0)
            else:
                assert np.all(array[:, n + 1] == part.row_hi)

    def test_allreduce_sum_identical_on_all_ranks(self, thread_runner):
        def reduce(comm):
            domain = DomainPartition(9, comm)
            return domain.allreduce_sum([comm.rank + 1.0, 0.5])

        results = thread_runner(3, reduce)
        for r in results:
            np.testing.assert_array_equal(r, [6.0, 1.5])

    def test_gather_reassembles_global_array(self, thread_runner):
        nx, ny = 4, 11
        global_u = np.arange(nx * (ny + 1), dtype=float).reshape(nx, ny + 1)

        def scatter_and_gather(comm):
            domain = DomainPartition(ny, comm)
            part = domain.partition
            local = global_u[:, part.row_lo - 1 : part.row_hi + 1].copy()
            return domain.gather(local, has_top_row=True)

        results = thread_runner(3, scatter_and_gather)
        np.testing.assert_array_equal(results[0], global_u)
        assert results[1] is None and results[2] is None

    def test_gather_without_top_row(self, thread_runner):
        nx, ny = 4, 11
        global_v = np.arange((nx + 1) * ny, dtype=float).reshape(nx + 1, ny)

        def scatter_and_gather(comm):
            domain = DomainPartition(ny, comm)
            part = domain.partition
            stop = part.row_hi if part.is_top else part.row_hi + 1
            local = global_v[:, part.row_lo - 1 : stop].copy()
            return domain.gather(local, has_top_row=False)

        results = thread_runner(2, scatter_and_gather)
        np.testing.assert_array_equal(results[0], global_v)

    def test_missing_partner_times_out(self):
        group = ThreadGroup(2, timeout=0.1)
        comm = group.communicator(0)
        with pytest.raises(CommunicationError):
            comm.sendrecv(np.zeros(3), dest=None, source=1)

    def test_invalid_rank(self):
        with pytest.raises(ValueError):
            ThreadGroup(2).communicator(2)


class TestMPICommunicator:
    """Single-process MPI world behaves like the serial communicator."""

    def test_single_rank_world(self):
        pytest.importorskip("mpi4py")
        from solvers.staggered.comm import MPICommunicator

        comm = MPICommunicator()
        if comm.size != 1:
            pytest.skip("run without mpiexec")

        assert comm.is_root
        assert comm.sendrecv(np.ones(3), dest=None, source=None) is None
        np.testing.assert_array_equal(comm.allreduce_sum(np.array([1.0, 2.0])), [1.0, 2.0])
        assert comm.gather(5) == [5]
