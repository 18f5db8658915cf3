from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Protocol, Tuple, runtime_checkable

import numpy as np

Association = Literal["vertex", "element"]
FieldType = Literal["float", "double"]

TOPOLOGY_KINDS: Tuple[str, ...] = ("points", "uniform", "rectilinear", "structured", "unstructured")
COORDSET_KINDS: Tuple[str, ...] = ("uniform", "rectilinear", "explicit")


@runtime_checkable
class Transport(Protocol):
    """Collective operations shared by every worker of a group.

    Every method is a blocking collective: all workers must call the same
    methods in the same order.
    """

    @property
    def rank(self) -> int:
        ...

    @property
    def size(self) -> int:
        ...

    def allreduce_sum(self, value: Any) -> Any:
        ...

    def allreduce_minloc(self, value: Tuple[float, int]) -> Tuple[float, int]:
        ...

    def allreduce_maxloc(self, value: Tuple[float, int]) -> Tuple[float, int]:
        ...

    def broadcast(self, obj: Any, root: int = 0) -> Any:
        ...

    def barrier(self) -> None:
        ...


@dataclass(frozen=True, slots=True)
class ExtremumResult:
    value: float
    rank: int
    domain_id: int
    position: np.ndarray

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": float(self.value),
            "rank": int(self.rank),
            "domain_id": int(self.domain_id),
            "position": np.asarray(self.position, dtype=np.float64).tolist(),
        }


@dataclass(frozen=True, slots=True)
class SumResult:
    value: float
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"value": float(self.value), "count": int(self.count)}


@dataclass(frozen=True, slots=True)
class ScalarResult:
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"value": float(self.value)}


@dataclass(frozen=True, slots=True)
class HistogramResult:
    """Fixed-width bins over ``[min_val, max_val]``.

    Used for count histograms as well as the pdf/cdf derived from them.
    """

    value: np.ndarray
    min_val: float
    max_val: float
    num_bins: int

    @property
    def bin_width(self) -> float:
        return (self.max_val - self.min_val) / self.num_bins

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": np.asarray(self.value, dtype=np.float64).tolist(),
            "min_val": float(self.min_val),
            "max_val": float(self.max_val),
            "num_bins": int(self.num_bins),
        }


__all__ = [
    "Association",
    "FieldType",
    "TOPOLOGY_KINDS",
    "COORDSET_KINDS",
    "Transport",
    "ExtremumResult",
    "SumResult",
    "ScalarResult",
    "HistogramResult",
]
