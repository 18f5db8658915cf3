import numpy as np
import pytest

from meshreduce import (
    LocalTransport,
    ThreadGroup,
    Transport,
)


@pytest.fixture
def mpi_transport():
    try:
        from mpi4py import MPI  # noqa: F401
    except (ImportError, RuntimeError) as exc:
        pytest.skip(f"MPI runtime unavailable: {exc}")
    from meshreduce import MPITransport

    return MPITransport()


def test_local_transport_is_identity():
    t = LocalTransport()
    assert isinstance(t, Transport)
    assert (t.rank, t.size) == (0, 1)
    assert t.allreduce_sum(3.5) == 3.5
    assert t.allreduce_minloc((2.0, 0)) == (2.0, 0)
    assert t.broadcast("x", root=0) == "x"


def test_thread_group_sum_and_broadcast():
    group = ThreadGroup(3)

    def work(t):
        total = t.allreduce_sum(t.rank + 1)
        vec = t.allreduce_sum(np.full(2, float(t.rank)))
        word = t.broadcast(f"from-{t.rank}", root=2)
        return total, vec.tolist(), word

    results = group.run(work)
    assert results == [(6, [3.0, 3.0], "from-2")] * 3


def test_thread_group_loc_reductions_break_ties_by_lowest_rank():
    group = ThreadGroup(4)
    values = [5.0, 1.0, 9.0, 1.0]

    def work(t):
        return t.allreduce_minloc((values[t.rank], t.rank)), t.allreduce_maxloc((9.0 if t.rank >= 2 else 0.0, t.rank))

    for lo, hi in group.run(work):
        assert lo == (1.0, 1)
        assert hi == (9.0, 2)


def test_thread_group_failure_does_not_hang_peers():
    group = ThreadGroup(2)

    def work(t):
        if t.rank == 1:
            raise KeyError("boom")
        return t.allreduce_sum(1)

    with pytest.raises(KeyError):
        group.run(work)
    # the group is usable again afterwards
    assert group.run(lambda t: t.allreduce_sum(1)) == [2, 2]


def test_mpi_transport_single_rank(mpi_transport):
    t = mpi_transport
    if t.size != 1:
        pytest.skip("run without mpirun")
    assert t.allreduce_sum(2.5) == 2.5
    np.testing.assert_array_equal(t.allreduce_sum(np.array([1.0, 2.0])), [1.0, 2.0])
    assert t.allreduce_minloc((4.0, 0)) == (4.0, 0)
    assert t.allreduce_maxloc((4.0, 0)) == (4.0, 0)
    assert t.broadcast({"a": 1}, root=0) == {"a": 1}
