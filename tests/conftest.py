"""Pytest configuration and fixtures for the staggered cavity solver tests."""

import sys
import threading
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def small_grid_params():
    """Parameters for a small 16x16 test grid."""
    return {
        "Re": 100,
        "nx": 16,
        "ny": 16,
        "tolerance": 1e-6,
        "max_iterations": 200_000,
        "lid_velocity": 1.0,
        "Lx": 1.0,
        "Ly": 1.0,
        "parallel": False,
        "log_every": 10_000,
    }


@pytest.fixture
def tiny_grid_params():
    """Parameters for an 8x8 grid used by the quick step-level tests."""
    return {
        "Re": 100,
        "nx": 8,
        "ny": 8,
        "tolerance": 1e-6,
        "max_iterations": 1000,
        "parallel": False,
    }


def run_in_threads(size, target, timeout=120.0):
    """Run ``target(comm)`` on ``size`` in-process ranks and collect results.

    The first exception raised on any rank is re-raised after every thread
    has stopped.
    """
    from solvers.staggered.comm import ThreadGroup

    group = ThreadGroup(size, timeout=timeout)
    results = [None] * size
    errors = []

    def worker(rank):
        try:
            results[rank] = target(group.communicator(rank))
        except Exception as exc:  # re-raised in the calling thread below
            errors.append(exc)
            group.abort()

    threads = [threading.Thread(target=worker, args=(rank,)) for rank in range(size)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    if errors:
        raise errors[0]
    return results


@pytest.fixture
def thread_runner():
    """Callable running a per-rank function across a thread group."""
    return run_in_threads
