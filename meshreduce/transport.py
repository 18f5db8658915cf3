from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Tuple

import numpy as np


def _pick_loc(pairs: List[Tuple[float, int]], better: Callable[[float, float], bool]) -> Tuple[float, int]:
    # Ties go to the lowest location.
    best_val, best_loc = pairs[0]
    for val, loc in pairs[1:]:
        if better(val, best_val) or (val == best_val and loc < best_loc):
            best_val, best_loc = val, loc
    return best_val, best_loc


def _sum_all(values: List[Any]) -> Any:
    if isinstance(values[0], np.ndarray):
        total = np.array(values[0], copy=True)
        for v in values[1:]:
            total = total + v
        return total
    total = values[0]
    for v in values[1:]:
        total = total + v
    return total


class LocalTransport:
    """Single worker: every collective returns its local input."""

    rank = 0
    size = 1

    def allreduce_sum(self, value: Any) -> Any:
        return value

    def allreduce_minloc(self, value: Tuple[float, int]) -> Tuple[float, int]:
        return value

    def allreduce_maxloc(self, value: Tuple[float, int]) -> Tuple[float, int]:
        return value

    def broadcast(self, obj: Any, root: int = 0) -> Any:
        return obj

    def barrier(self) -> None:
        return None

    def __repr__(self) -> str:
        return "LocalTransport()"


class MPITransport:
    """Collectives over an mpi4py communicator (``MPI.COMM_WORLD`` by default)."""

    def __init__(self, comm: Optional[Any] = None) -> None:
        from mpi4py import MPI

        self._MPI = MPI
        self.comm = comm if comm is not None else MPI.COMM_WORLD

    @property
    def rank(self) -> int:
        return int(self.comm.rank)

    @property
    def size(self) -> int:
        return int(self.comm.size)

    def allreduce_sum(self, value: Any) -> Any:
        if isinstance(value, np.ndarray):
            out = np.empty_like(value)
            self.comm.Allreduce(np.ascontiguousarray(value), out, op=self._MPI.SUM)
            return out
        return self.comm.allreduce(value, op=self._MPI.SUM)

    def allreduce_minloc(self, value: Tuple[float, int]) -> Tuple[float, int]:
        val, loc = self.comm.allreduce((float(value[0]), int(value[1])), op=self._MPI.MINLOC)
        return float(val), int(loc)

    def allreduce_maxloc(self, value: Tuple[float, int]) -> Tuple[float, int]:
        val, loc = self.comm.allreduce((float(value[0]), int(value[1])), op=self._MPI.MAXLOC)
        return float(val), int(loc)

    def broadcast(self, obj: Any, root: int = 0) -> Any:
        return self.comm.bcast(obj, root=root)

    def barrier(self) -> None:
        self.comm.Barrier()

    def abort(self, errorcode: int = 1) -> None:
        self.comm.Abort(errorcode)

    def __repr__(self) -> str:
        return f"MPITransport(rank={self.rank}, size={self.size})"


class _Exchange:
    def __init__(self, size: int) -> None:
        self.size = size
        self.slots: List[Any] = [None] * size
        self.barrier = threading.Barrier(size)

    def gather(self, rank: int, value: Any) -> List[Any]:
        self.slots[rank] = value
        self.barrier.wait()
        snapshot = list(self.slots)
        # Second phase keeps a fast worker from overwriting a slot before
        # every peer has read the round.
        self.barrier.wait()
        return snapshot


class ThreadTransport:
    """One worker of a ``ThreadGroup``."""

    def __init__(self, exchange: _Exchange, rank: int) -> None:
        self._exchange = exchange
        self._rank = rank

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def size(self) -> int:
        return self._exchange.size

    def allreduce_sum(self, value: Any) -> Any:
        return _sum_all(self._exchange.gather(self._rank, value))

    def allreduce_minloc(self, value: Tuple[float, int]) -> Tuple[float, int]:
        pairs = self._exchange.gather(self._rank, (float(value[0]), int(value[1])))
        return _pick_loc(pairs, lambda a, b: a < b)

    def allreduce_maxloc(self, value: Tuple[float, int]) -> Tuple[float, int]:
        pairs = self._exchange.gather(self._rank, (float(value[0]), int(value[1])))
        return _pick_loc(pairs, lambda a, b: a > b)

    def broadcast(self, obj: Any, root: int = 0) -> Any:
        return self._exchange.gather(self._rank, obj)[root]

    def barrier(self) -> None:
        self._exchange.barrier.wait()

    def __repr__(self) -> str:
        return f"ThreadTransport(rank={self.rank}, size={self.size})"


class ThreadGroup:
    """In-process worker group: ``size`` threads exchanging through a shared barrier."""

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError(f"ThreadGroup size must be positive; got {size}")
        self._exchange = _Exchange(size)
        self.transports = [ThreadTransport(self._exchange, r) for r in range(size)]

    @property
    def size(self) -> int:
        return self._exchange.size

    def _run_one(self, fn: Callable[[ThreadTransport], Any], transport: ThreadTransport) -> Any:
        try:
            return fn(transport)
        except BaseException:
            # Peers blocked in a collective get BrokenBarrierError instead of hanging.
            self._exchange.barrier.abort()
            raise

    def run(self, fn: Callable[[ThreadTransport], Any]) -> List[Any]:
        """Call ``fn(transport)`` on every worker; results come back in rank order."""
        if self._exchange.barrier.broken:
            self._exchange.barrier.reset()
        with ThreadPoolExecutor(max_workers=self.size) as executor:
            futures = [executor.submit(self._run_one, fn, t) for t in self.transports]
            errors = []
            results = []
            for fut in futures:
                try:
                    results.append(fut.result())
                except BaseException as exc:
                    errors.append(exc)
        if errors:
            # Report the originating failure, not a peer's broken barrier.
            primary = next((e for e in errors if not isinstance(e, threading.BrokenBarrierError)), errors[0])
            raise primary
        return results

    def __repr__(self) -> str:
        return f"ThreadGroup(size={self.size})"


__all__ = [
    "LocalTransport",
    "MPITransport",
    "ThreadTransport",
    "ThreadGroup",
]
