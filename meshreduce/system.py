from __future__ import annotations

import faulthandler
import os
import sys
import time
import traceback
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from .core import Transport
from .errors import ERROR_KINDS, MeshReduceError


def _now() -> str:
    return time.strftime("%H:%M:%S")


def make_rank_logger(transport: Transport) -> Callable[[str], None]:
    rank = transport.rank
    size = transport.size
    pid = os.getpid()

    def rprint(msg: str) -> None:
        print(f"[{_now()}] [rank {rank}/{size}] [pid {pid}] {msg}", flush=True)

    return rprint


def setup_faulthandler(*, rprint: Callable[[str], None] | None = None) -> None:
    if os.environ.get("MESHREDUCE_FAULTHANDLER", "0") != "1":
        return
    try:
        faulthandler.enable()
        sec = float(os.environ.get("MESHREDUCE_DUMP_EVERY", "30"))
        faulthandler.dump_traceback_later(sec, repeat=True, file=sys.stderr)
        if rprint is not None:
            rprint(f"faulthandler enabled; will dump tracebacks every {sec}s if hung.")
    except (RuntimeError, ValueError) as e:
        if rprint is not None:
            rprint(f"[warning] faulthandler setup failed: {type(e).__name__}: {e}")


def barrier(
        transport: Transport,
        tag: str,
        rprint: Callable[[str], None] | None = None,
        *,
        enabled: Optional[bool] = None,
) -> None:
    if enabled is None:
        enabled = os.environ.get("MESHREDUCE_DEBUG_BARRIERS", "0") == "1"
    if not enabled:
        return
    if rprint is not None:
        rprint(f"ENTER BARRIER: {tag}")
    transport.barrier()
    if rprint is not None:
        rprint(f"EXIT  BARRIER: {tag}")


@contextmanager
def collective_guard(
        transport: Transport,
        tag: str,
        rprint: Callable[[str], None] | None = None,
) -> Iterator[None]:
    """Run a local phase so that a failure on any worker fails every worker.

    Each worker reports whether its phase raised a ``MeshReduceError``. When
    any did, the lowest failing rank broadcasts the error kind and message
    and every worker raises that same error, leaving no peer blocked in a
    later collective.
    """
    local_error: MeshReduceError | None = None
    try:
        yield
    except MeshReduceError as exc:
        local_error = exc

    failed = transport.allreduce_minloc((0.0 if local_error is not None else 1.0, transport.rank))
    if failed[0] != 0.0:
        return
    root = failed[1]
    payload = None
    if transport.rank == root and local_error is not None:
        payload = (type(local_error).__name__, str(local_error))
    kind, message = transport.broadcast(payload, root=root)
    if rprint is not None:
        rprint(f"{tag}: {kind} on rank {root}: {message}")
    if local_error is not None and transport.rank == root:
        raise local_error
    raise ERROR_KINDS.get(kind, MeshReduceError)(f"[rank {root}] {message}")


def abort_on_exception(transport: Transport, rprint: Callable[[str], None], exc: BaseException) -> None:
    rprint(f"!!! EXCEPTION: {type(exc).__name__}: {exc}")
    traceback.print_exc()
    abort = getattr(transport, "abort", None)
    if callable(abort):
        abort(1)
    raise exc


__all__ = [
    "make_rank_logger",
    "setup_faulthandler",
    "barrier",
    "collective_guard",
    "abort_on_exception",
]
