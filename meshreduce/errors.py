from __future__ import annotations


class MeshReduceError(RuntimeError):
    """Base class for failures raised while querying a partitioned dataset."""


class SchemaError(MeshReduceError):
    """Unsupported topology/coordset kind, cell shape or field element type."""


class ConsistencyError(MeshReduceError):
    """Workers disagree about a schema fact for the same field or topology name."""


class PreconditionError(MeshReduceError, ValueError):
    """An operation was asked to work on empty or zero-count input."""


ERROR_KINDS: dict[str, type[MeshReduceError]] = {
    cls.__name__: cls
    for cls in (MeshReduceError, SchemaError, ConsistencyError, PreconditionError)
}


__all__ = [
    "MeshReduceError",
    "SchemaError",
    "ConsistencyError",
    "PreconditionError",
    "ERROR_KINDS",
]
